"""authcore: credential and session lifecycle core.

Password and OAuth authentication, one-time code verification, JWT
access/refresh rotation, reset tokens and at-rest encryption of OAuth
provider tokens.
"""

from authcore.application import (
    LoginResult,
    NotificationDispatcher,
    ProfileOnlyLogin,
    TokenIssuingLogin,
    role_issues_tokens,
)
from authcore.application.services import (
    AuthenticationService,
    OAuthProfile,
    OAuthService,
    OAuthTokens,
    OtpChallenge,
    OtpService,
    PasswordResetService,
    TokenService,
)
from authcore.container import (
    AuthContainer,
    create_dispatcher,
    create_engine,
    create_session_factory,
    init_db,
)
from authcore.domain.account import Account, AccountRole, Email, OtpPurpose
from authcore.schemas import TokenPair, TokenPayload

__all__ = [
    "Account",
    "AccountRole",
    "AuthContainer",
    "AuthenticationService",
    "Email",
    "LoginResult",
    "NotificationDispatcher",
    "OAuthProfile",
    "OAuthService",
    "OAuthTokens",
    "OtpChallenge",
    "OtpPurpose",
    "OtpService",
    "PasswordResetService",
    "ProfileOnlyLogin",
    "TokenIssuingLogin",
    "TokenPair",
    "TokenPayload",
    "TokenService",
    "create_dispatcher",
    "create_engine",
    "create_session_factory",
    "init_db",
    "role_issues_tokens",
]
