"""Application layer: login outcomes, notification dispatch and services."""

from authcore.application.login_result import (
    LoginResult,
    ProfileOnlyLogin,
    TokenIssuingLogin,
    role_issues_tokens,
)
from authcore.application.notifications import (
    CodeDelivery,
    CodeNotifier,
    NotificationDispatcher,
    PendingDeliveries,
)

__all__ = [
    "CodeDelivery",
    "CodeNotifier",
    "LoginResult",
    "NotificationDispatcher",
    "PendingDeliveries",
    "ProfileOnlyLogin",
    "TokenIssuingLogin",
    "role_issues_tokens",
]
