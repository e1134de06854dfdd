from authcore.domain.account.repositories.account_repository import (
    AccountRepository,
)

__all__ = ["AccountRepository"]
