"""Shared test fixtures: in-memory SQLite database, fast settings and account factories."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.clock import utcnow
from app.core.config import Settings
from app.core.security import hash_password, normalize_email
from app.models import Account, Base, Role
from app.models.account import APPROVAL_APPROVED

TEST_SECRET = "test-signing-secret-0123456789-abcdefghij"
ADMIN_EMAIL = "root@example.com"
ADMIN_PASSWORD = "RootPass123!"


def make_settings(**overrides) -> Settings:
    """Settings with a cheap bcrypt cost and a fixed signing key."""
    values = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "BOOTSTRAP_ADMIN_EMAIL": ADMIN_EMAIL,
        "BOOTSTRAP_ADMIN_PASSWORD": ADMIN_PASSWORD,
        "AUDIT_ENABLED": False,
        "BOOTSTRAP_ON_STARTUP": False,
    }
    values.update(overrides)
    return Settings(**values)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database shared by every session from the returned factory."""
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_account(
    db: Session,
    email: str,
    password: str = "Password123!",
    approval_status: str = APPROVAL_APPROVED,
    active: bool = True,
    role_names: tuple[str, ...] = (),
) -> Account:
    """Insert an account directly, bypassing signup and approval."""
    account = Account(
        email=normalize_email(email),
        password_hash=hash_password(password, rounds=4),
        full_name=email,
        approval_status=approval_status,
        approved_at=utcnow() if approval_status == APPROVAL_APPROVED else None,
        active=active,
    )
    if role_names:
        account.roles = db.query(Role).filter(Role.name.in_(role_names)).all()
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def admin_account(db: Session) -> Account:
    return db.query(Account).filter(Account.email == ADMIN_EMAIL).one()
