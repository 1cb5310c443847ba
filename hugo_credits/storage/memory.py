from hugo_credits.models.credit_account import CreditAccount
from hugo_credits.storage.base import CreditStore


class InMemoryCreditStore(CreditStore):
    """Process-local store for development (STORAGE_BACKEND=memory) and tests.

    Records are kept in their serialized shape so callers never share mutable state.
    """

    def __init__(self) -> None:
        self.records: dict[str, dict] = {}

    async def get(self, user_id: str) -> CreditAccount | None:
        doc = self.records.get(user_id)
        return CreditAccount.model_validate(doc) if doc is not None else None

    async def create(self, user_id: str, account: CreditAccount) -> CreditAccount:
        if user_id not in self.records:
            self.records[user_id] = account.to_document()
        return CreditAccount.model_validate(self.records[user_id])

    async def replace(self, user_id: str, account: CreditAccount) -> None:
        self.records[user_id] = account.to_document()
