"""Domain errors raised by the services and rendered by the API exception handlers.

Each error carries a stable machine-readable ``code``, the HTTP ``status_code``
the API layer answers with, and a human ``message`` that is safe to show to the
caller. Internal exception text never goes into ``message``.
"""


class AuthServiceError(Exception):
    """Base class for all domain errors."""

    code: str = "INVALID_INPUT"
    status_code: int = 400
    default_message: str = "Request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AuthServiceError):
    code = "INVALID_INPUT"
    status_code = 400
    default_message = "Invalid input."


class InvalidCredentialsError(AuthServiceError):
    code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Invalid email or password."


class PendingApprovalError(AuthServiceError):
    code = "USER_PENDING_APPROVAL"
    status_code = 401
    default_message = "User not yet approved. Contact administrator."


class AccountRejectedError(PendingApprovalError):
    """Rejected accounts are a status-specific variant of the approval gate failure."""

    code = "ACCOUNT_REJECTED"
    default_message = "User registration was rejected. Contact administrator."


class AccountInactiveError(AuthServiceError):
    code = "ACCOUNT_INACTIVE"
    status_code = 401
    default_message = "User account is inactive."


class EmailExistsError(AuthServiceError):
    code = "EMAIL_EXISTS"
    status_code = 409
    default_message = "Email already in use."


class ConflictError(AuthServiceError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Resource already exists."


class PermissionDeniedError(AuthServiceError):
    code = "PERMISSION_DENIED"
    status_code = 403
    default_message = "Permission denied."


class NotFoundError(AuthServiceError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found."


class AccountNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    default_message = "User not found."


class UnauthorizedError(AuthServiceError):
    """Access token missing or invalid. One outcome for every failure cause."""

    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Invalid or expired token."


class InvalidRefreshTokenError(AuthServiceError):
    code = "INVALID_REFRESH_TOKEN"
    status_code = 401
    default_message = "Invalid or expired refresh token."


class InvalidTokenError(AuthServiceError):
    code = "INVALID_TOKEN"
    status_code = 400
    default_message = "Invalid or expired token."


class TokenExpiredError(AuthServiceError):
    code = "TOKEN_EXPIRED"
    status_code = 400
    default_message = "Token expired."


class InvalidApprovalTransitionError(AuthServiceError):
    code = "INVALID_APPROVAL_STATUS"
    status_code = 400
    default_message = "Approval status transition not allowed."


class RoleExistsError(ConflictError):
    code = "ROLE_EXISTS"
    default_message = "Role already exists."


class PermissionExistsError(ConflictError):
    code = "PERMISSION_EXISTS"
    default_message = "Permission already exists."
