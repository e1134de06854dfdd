"""JWT token service.

Provides JWT token creation and verification for authentication. Access
and refresh tokens are signed with separate secrets, so a token of one
class never verifies as the other.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import jwt

from authcore.domain.account import Account, AccountRole
from authcore.exceptions import InvalidRefreshTokenError, InvalidTokenError
from authcore.schemas import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenPair,
    TokenPayload,
)


class JWTService:
    """Service for JWT token creation and verification.

    Examples
    --------
    >>> service = JWTService(access_secret="a" * 32, refresh_secret="b" * 32)
    >>> pair = service.create_token_pair(account)
    >>> payload = service.verify_access_token(pair.access_token)
    >>> print(payload.account_id)
    """

    DEFAULT_ACCESS_EXPIRE_MINUTES = 15
    DEFAULT_REFRESH_EXPIRE_DAYS = 7
    ALGORITHM = "HS256"

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_token_expire_minutes: int = DEFAULT_ACCESS_EXPIRE_MINUTES,
        refresh_token_expire_days: int = DEFAULT_REFRESH_EXPIRE_DAYS,
    ):
        """Initialize the JWT service.

        Parameters
        ----------
        access_secret
            Secret for signing access tokens. Must be kept secure.
        refresh_secret
            Secret for signing refresh tokens. Must differ from
            ``access_secret``.
        access_token_expire_minutes
            Minutes until access token expires (default 15)
        refresh_token_expire_days
            Days until refresh token expires (default 7)
        """
        if not access_secret or not refresh_secret:
            msg = "JWT secret keys cannot be empty"
            raise ValueError(msg)
        if access_secret == refresh_secret:
            msg = "Access and refresh token secrets must differ"
            raise ValueError(msg)

        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_expire = timedelta(minutes=access_token_expire_minutes)
        self._refresh_expire = timedelta(days=refresh_token_expire_days)

    def create_access_token(
        self,
        account: Account,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a short-lived access token."""
        return self._create_token(
            account=account,
            token_type=ACCESS_TOKEN_TYPE,
            secret=self._access_secret,
            expires_delta=expires_delta or self._access_expire,
        )

    def create_refresh_token(
        self,
        account: Account,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a long-lived refresh token.

        Every refresh token carries a fresh ``jti``, so two tokens minted
        for the same account within the same second still differ.
        """
        return self._create_token(
            account=account,
            token_type=REFRESH_TOKEN_TYPE,
            secret=self._refresh_secret,
            expires_delta=expires_delta or self._refresh_expire,
        )

    def create_token_pair(self, account: Account) -> TokenPair:
        return TokenPair(
            access_token=self.create_access_token(account),
            refresh_token=self.create_refresh_token(account),
        )

    def verify_access_token(self, token: str) -> TokenPayload:
        """Verify and decode an access token.

        Raises
        ------
        InvalidTokenError
            If token is invalid, expired, malformed, or not an access token
        """
        payload = self._decode(token, self._access_secret, InvalidTokenError)
        if not payload.is_access_token():
            raise InvalidTokenError("Not an access token")
        return payload

    def verify_refresh_token(self, token: str) -> TokenPayload:
        """Verify and decode a refresh token.

        Raises
        ------
        InvalidRefreshTokenError
            If token is invalid, expired, malformed, or not a refresh token
        """
        payload = self._decode(token, self._refresh_secret, InvalidRefreshTokenError)
        if not payload.is_refresh_token():
            raise InvalidRefreshTokenError("Not a refresh token")
        return payload

    def _decode(
        self,
        token: str,
        secret: str,
        error_cls: type[InvalidTokenError],
    ) -> TokenPayload:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.ALGORITHM],
                options={"require": ["sub", "exp", "iat", "type", "jti"]},
            )

            return TokenPayload(
                account_id=UUID(payload["sub"]),
                email=payload["email"],
                role=AccountRole(payload["role"]),
                is_master_admin=bool(payload.get("isMasterAdmin", False)),
                token_type=payload["type"],
                jti=payload["jti"],
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )

        except jwt.ExpiredSignatureError as e:
            raise error_cls("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise error_cls(f"Invalid token: {e}") from e
        except (KeyError, ValueError, TypeError) as e:
            raise error_cls(f"Malformed token payload: {e}") from e

    def _create_token(
        self,
        account: Account,
        token_type: str,
        secret: str,
        expires_delta: timedelta,
    ) -> str:
        now = datetime.now(tz=timezone.utc)
        expire = now + expires_delta

        payload = {
            "sub": str(account.id),
            "email": account.email,
            "role": account.role.value,
            "isMasterAdmin": account.is_master_admin,
            "type": token_type,
            "jti": str(uuid4()),
            "iat": now,
            "exp": expire,
        }

        return jwt.encode(payload, secret, algorithm=self.ALGORITHM)
