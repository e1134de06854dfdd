"""Stateless credential services: JWT, bcrypt and one-time codes."""

from authcore.services.jwt_service import JWTService
from authcore.services.one_time_code_service import OneTimeCodeService
from authcore.services.password_service import PasswordHashingService
from authcore.services.token_hashing import hash_token, tokens_match

__all__ = [
    "JWTService",
    "OneTimeCodeService",
    "PasswordHashingService",
    "hash_token",
    "tokens_match",
]
