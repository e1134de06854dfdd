"""Account aggregate: identity plus the credential fields the core manages."""

from datetime import datetime
from typing import Union
from uuid import UUID

from authcore.domain.account.value_objects import AccountRole, Email
from authcore.domain.shared.ids import generate_uuid7
from authcore.domain.shared.time import utc_now


class Account:
    """
    Account aggregate root.

    An account authenticates either with a password hash or through an
    OAuth provider binding (or both, once a password account is linked).
    An account with neither cannot be constructed.

    OAuth provider tokens are held in plaintext here. Encryption at rest is
    the repository's concern.
    """

    def __init__(  # noqa: PLR0913
        self,
        email: Union[str, Email],
        password_hash: str | None = None,
        name: str | None = None,
        role: Union[str, AccountRole] = AccountRole.REGULAR,
        is_master_admin: bool = False,
        email_verified: bool = False,
        refresh_token_hash: str | None = None,
        oauth_provider: str | None = None,
        oauth_provider_id: str | None = None,
        oauth_access_token: str | None = None,
        oauth_refresh_token: str | None = None,
        oauth_token_expires_at: datetime | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        if not password_hash and not (oauth_provider and oauth_provider_id):
            msg = "Account requires a password hash or an OAuth provider binding"
            raise ValueError(msg)

        self._email = email if isinstance(email, Email) else Email(email)
        self._id = id or generate_uuid7()
        self._password_hash = password_hash
        self._name = name
        self._role = role if isinstance(role, AccountRole) else AccountRole(role)
        self._is_master_admin = is_master_admin
        self._email_verified = email_verified
        self._refresh_token_hash = refresh_token_hash
        self._oauth_provider = oauth_provider
        self._oauth_provider_id = oauth_provider_id
        self._oauth_access_token = oauth_access_token
        self._oauth_refresh_token = oauth_refresh_token
        self._oauth_token_expires_at = oauth_token_expires_at
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or utc_now()

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def email(self) -> str:
        return self._email.value

    @property
    def email_obj(self) -> Email:
        return self._email

    @property
    def password_hash(self) -> str | None:
        return self._password_hash

    @property
    def has_password(self) -> bool:
        return bool(self._password_hash)

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def role(self) -> AccountRole:
        return self._role

    @property
    def is_platform_admin(self) -> bool:
        return self._role == AccountRole.PLATFORM_ADMIN

    @property
    def is_master_admin(self) -> bool:
        return self._is_master_admin

    @property
    def email_verified(self) -> bool:
        return self._email_verified

    @property
    def refresh_token_hash(self) -> str | None:
        return self._refresh_token_hash

    @property
    def oauth_provider(self) -> str | None:
        return self._oauth_provider

    @property
    def oauth_provider_id(self) -> str | None:
        return self._oauth_provider_id

    @property
    def is_oauth_linked(self) -> bool:
        return bool(self._oauth_provider and self._oauth_provider_id)

    @property
    def oauth_access_token(self) -> str | None:
        return self._oauth_access_token

    @property
    def oauth_refresh_token(self) -> str | None:
        return self._oauth_refresh_token

    @property
    def oauth_token_expires_at(self) -> datetime | None:
        return self._oauth_token_expires_at

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @classmethod
    def create(
        cls,
        email: Union[str, Email],
        password_hash: str,
        name: str | None = None,
        role: AccountRole = AccountRole.REGULAR,
    ) -> "Account":
        """Create a new password account with an unverified email."""
        return cls(
            email=email,
            password_hash=password_hash,
            name=name,
            role=role,
        )

    @classmethod
    def create_oauth(  # noqa: PLR0913
        cls,
        email: Union[str, Email],
        provider: str,
        provider_id: str,
        name: str | None = None,
        access_token: str | None = None,
        refresh_token: str | None = None,
        token_expires_at: datetime | None = None,
    ) -> "Account":
        """Create a new OAuth account.

        The provider has already verified the address, so the email is
        marked verified.
        """
        return cls(
            email=email,
            name=name,
            email_verified=True,
            oauth_provider=provider,
            oauth_provider_id=provider_id,
            oauth_access_token=access_token,
            oauth_refresh_token=refresh_token,
            oauth_token_expires_at=token_expires_at,
        )

    @classmethod
    def reconstitute(cls, **fields) -> "Account":
        """Rebuild an account from persisted fields."""
        return cls(**fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"Account(id={self._id}, email={self._email.value}, "
            f"role={self._role.value})"
        )
