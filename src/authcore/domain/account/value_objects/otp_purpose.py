from enum import Enum


class OtpPurpose(str, Enum):
    """What a one-time code proves once it is verified."""

    SIGNUP_EMAIL_VERIFICATION = "SIGNUP_EMAIL_VERIFICATION"
    PASSWORD_RESET = "PASSWORD_RESET"
