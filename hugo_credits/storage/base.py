from abc import ABC, abstractmethod

from hugo_credits.core.config import Settings
from hugo_credits.models.credit_account import CreditAccount


class CreditStore(ABC):
    """Document store holding one CreditAccount per user id.

    Implementations raise StorageAccessError for every read/write failure.
    """

    @abstractmethod
    async def get(self, user_id: str) -> CreditAccount | None:
        """Return the stored account, or None if there is no record."""
        ...

    @abstractmethod
    async def create(self, user_id: str, account: CreditAccount) -> CreditAccount:
        """Insert `account` unless a record exists; return whatever is stored afterwards."""
        ...

    @abstractmethod
    async def replace(self, user_id: str, account: CreditAccount) -> None:
        """Overwrite the whole record (upsert)."""
        ...


def get_credit_store(settings: Settings, client=None) -> CreditStore:
    """Build the configured store; the mongo backend uses `client`, which the caller owns and closes."""
    if settings.storage_backend == "memory":
        from hugo_credits.storage.memory import InMemoryCreditStore
        return InMemoryCreditStore()
    if client is None:
        raise ValueError("A Motor client is required for the mongo credit store")
    from hugo_credits.storage.mongo import MongoCreditStore
    return MongoCreditStore(client[settings.mongodb_db_name][settings.credits_collection])
