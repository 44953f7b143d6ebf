"""Account administration: listing, approval, rejection and deactivation.

The caller's capabilities are resolved fresh from the store for every request,
not taken from the access token snapshot.
"""

import math
import uuid
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.schemas.admin import AccountListResponse, AccountView, Pagination, RejectRequest
from app.schemas.auth import CurrentUser
from app.services import accounts, approval

router = APIRouter()


@router.get("", response_model=AccountListResponse)
def list_users(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=accounts.MAX_PAGE_SIZE)] = 20,
    approval_status: str | None = None,
) -> AccountListResponse:
    """List accounts (users:view). Filter by approval_status, or list active accounts."""
    items, total = accounts.list_accounts(
        db, current_user.id, approval_status=approval_status, page=page, limit=limit
    )
    total_pages = math.ceil(total / limit) if total else 0
    return AccountListResponse(
        users=[AccountView.model_validate(a) for a in items],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page + 1 < total_pages,
            has_previous=page > 0,
        ),
    )


@router.get("/{user_id}", response_model=AccountView)
def get_user(
    user_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountView:
    return AccountView.model_validate(accounts.view_account(db, current_user.id, user_id))


@router.post("/{user_id}/approve", response_model=AccountView)
def approve_user(
    user_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountView:
    """Approve a pending account (users:approve)."""
    return AccountView.model_validate(approval.approve(db, current_user.id, user_id))


@router.post("/{user_id}/reject", response_model=AccountView)
def reject_user(
    user_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    body: Annotated[RejectRequest | None, Body()] = None,
) -> AccountView:
    """Reject a pending or approved account with an optional reason (users:reject)."""
    reason = body.reason if body else None
    return AccountView.model_validate(approval.reject(db, current_user.id, user_id, reason))


@router.delete("/{user_id}", response_model=AccountView)
def deactivate_user(
    user_id: uuid.UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AccountView:
    """Deactivate an account and revoke its refresh tokens (users:delete). The row is kept."""
    return AccountView.model_validate(approval.deactivate(db, current_user.id, user_id))
