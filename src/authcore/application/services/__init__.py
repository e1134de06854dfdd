"""Application services orchestrating the authentication flows."""

from authcore.application.services.authentication_service import (
    AuthenticationService,
)
from authcore.application.services.oauth_service import (
    OAuthProfile,
    OAuthService,
    OAuthTokens,
)
from authcore.application.services.otp_service import OtpChallenge, OtpService
from authcore.application.services.password_reset_service import (
    PasswordResetService,
)
from authcore.application.services.token_service import TokenService

__all__ = [
    "AuthenticationService",
    "OAuthProfile",
    "OAuthService",
    "OAuthTokens",
    "OtpChallenge",
    "OtpService",
    "PasswordResetService",
    "TokenService",
]
