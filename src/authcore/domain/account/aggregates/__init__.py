from authcore.domain.account.aggregates.account import Account

__all__ = ["Account"]
