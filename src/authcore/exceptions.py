"""Authentication and identity exceptions.

Every failure a caller can act on is an ``AuthError`` with a stable
``ErrorCode``. The category base class (``NotFoundError``,
``UnauthorizedError``, ``ConflictError``, ``RateLimitedError``,
``BadInputError``) decides how the request layer reports it.

Unauthorized errors are deliberately generic: unknown email, wrong
password and wrong role all surface as the same ``InvalidCredentialsError``.

``SecurityError`` subclasses signal broken configuration or corrupted
ciphertext. They are not per-request conditions and are kept outside the
``AuthError`` hierarchy.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes for API clients."""

    # 400
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_EMAIL = "INVALID_EMAIL"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    PASSWORD_MISMATCH = "PASSWORD_MISMATCH"
    PASSWORD_REUSE = "PASSWORD_REUSE"
    INCORRECT_OTP = "INCORRECT_OTP"
    NO_ACTIVE_OTP = "NO_ACTIVE_OTP"
    OAUTH_ONLY_ACCOUNT = "OAUTH_ONLY_ACCOUNT"

    # 401
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    INVALID_RESET_TOKEN = "INVALID_RESET_TOKEN"
    INVALID_OTP = "INVALID_OTP"

    # 404
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"

    # 409
    CONFLICT = "CONFLICT"
    EMAIL_ALREADY_EXISTS = "EMAIL_ALREADY_EXISTS"
    EMAIL_ALREADY_VERIFIED = "EMAIL_ALREADY_VERIFIED"
    OAUTH_ACCOUNT_CONFLICT = "OAUTH_ACCOUNT_CONFLICT"

    # 429
    OTP_ATTEMPTS_EXCEEDED = "OTP_ATTEMPTS_EXCEEDED"

    # 500
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AuthError(Exception):
    """Base exception for all authentication errors."""

    default_message = "Authentication error"
    code = ErrorCode.UNAUTHORIZED

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, code={self.code.value!r})"
        )


# =============================================================================
# Categories
# =============================================================================


class NotFoundError(AuthError):
    """The addressed account does not exist."""

    default_message = "Not found"


class UnauthorizedError(AuthError):
    """Credentials, tokens or codes were rejected."""

    default_message = "Unauthorized"


class ConflictError(AuthError):
    """The operation collides with existing state."""

    default_message = "Conflict"
    code = ErrorCode.CONFLICT


class RateLimitedError(AuthError):
    """Too many attempts; the client should back off."""

    default_message = "Too many attempts"


class BadInputError(AuthError):
    """The request payload is malformed or violates a policy."""

    default_message = "Invalid input"
    code = ErrorCode.VALIDATION_ERROR


# =============================================================================
# Not found
# =============================================================================


class AccountNotFoundError(NotFoundError):
    default_message = "User not found"
    code = ErrorCode.ACCOUNT_NOT_FOUND


# =============================================================================
# Unauthorized
# =============================================================================


class InvalidCredentialsError(UnauthorizedError):
    """Raised when email, password or role do not match during login."""

    default_message = "Invalid credentials"
    code = ErrorCode.INVALID_CREDENTIALS


class InvalidTokenError(UnauthorizedError):
    """Raised when a JWT token is invalid, expired, or malformed."""

    default_message = "Invalid or expired token"
    code = ErrorCode.INVALID_TOKEN


class InvalidRefreshTokenError(InvalidTokenError):
    """Raised when a refresh token is invalid, expired or already rotated."""

    default_message = "Invalid or expired refresh token"
    code = ErrorCode.INVALID_REFRESH_TOKEN


class InvalidResetTokenError(UnauthorizedError):
    """Raised when a password reset token is invalid, expired or used."""

    default_message = "Invalid or expired reset token"
    code = ErrorCode.INVALID_RESET_TOKEN


class InvalidOtpError(UnauthorizedError):
    """Generic one-time code rejection for the password reset flow."""

    default_message = "Invalid or expired OTP"
    code = ErrorCode.INVALID_OTP


# =============================================================================
# Conflict
# =============================================================================


class EmailAlreadyExistsError(ConflictError):
    """Email already registered."""

    code = ErrorCode.EMAIL_ALREADY_EXISTS

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("User with this email already exists")


class EmailAlreadyVerifiedError(ConflictError):
    default_message = "Email is already verified"
    code = ErrorCode.EMAIL_ALREADY_VERIFIED


class OAuthAccountConflictError(ConflictError):
    """Email is bound to another OAuth provider, or the provider id is taken."""

    code = ErrorCode.OAUTH_ACCOUNT_CONFLICT

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(
            f"An account with this email already exists using "
            f"{provider} authentication",
        )


# =============================================================================
# Rate limited
# =============================================================================


class OtpAttemptsExceededError(RateLimitedError):
    default_message = (
        "Too many failed attempts. Please request a new verification code."
    )
    code = ErrorCode.OTP_ATTEMPTS_EXCEEDED


# =============================================================================
# Bad input
# =============================================================================


class InvalidEmailError(BadInputError):
    """Raised when email format is invalid."""

    default_message = "Invalid email address"
    code = ErrorCode.INVALID_EMAIL


class WeakPasswordError(BadInputError):
    """Raised when a password doesn't meet strength requirements."""

    default_message = "Password does not meet requirements"
    code = ErrorCode.WEAK_PASSWORD


class PasswordMismatchError(BadInputError):
    default_message = "Passwords do not match"
    code = ErrorCode.PASSWORD_MISMATCH


class PasswordReuseError(BadInputError):
    default_message = "New password must be different from the current password"
    code = ErrorCode.PASSWORD_REUSE


class OAuthOnlyAccountError(BadInputError):
    default_message = "This account signs in through an OAuth provider"
    code = ErrorCode.OAUTH_ONLY_ACCOUNT


class NoActiveOtpError(BadInputError):
    default_message = "No verification code found. Please request a new one."
    code = ErrorCode.NO_ACTIVE_OTP


class IncorrectOtpError(BadInputError):
    """Wrong signup code; carries how many attempts are left."""

    code = ErrorCode.INCORRECT_OTP

    def __init__(self, remaining_attempts: int) -> None:
        self.remaining_attempts = remaining_attempts
        plural = "" if remaining_attempts == 1 else "s"
        super().__init__(
            f"Invalid verification code. "
            f"{remaining_attempts} attempt{plural} remaining.",
        )


# =============================================================================
# Security (fatal)
# =============================================================================


class SecurityError(Exception):
    """Base exception for encryption and key handling failures."""


class EncryptionError(SecurityError):
    """Raised when encryption fails."""


class DecryptionError(SecurityError):
    """Raised when decryption fails (wrong key, tampered or truncated data)."""


class InvalidEncryptionKeyError(SecurityError):
    """Raised when the encryption key is missing or too short."""
