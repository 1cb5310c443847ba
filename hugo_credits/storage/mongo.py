from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from hugo_credits.core.exceptions import StorageAccessError
from hugo_credits.models.credit_account import CreditAccount
from hugo_credits.storage.base import CreditStore


class MongoCreditStore(CreditStore):
    """userCredits collection; the document _id is the user id."""

    def __init__(self, collection) -> None:
        self.collection = collection

    async def get(self, user_id: str) -> CreditAccount | None:
        try:
            doc = await self.collection.find_one({"_id": user_id})
        except PyMongoError as e:
            raise StorageAccessError(f"Failed to read credits: {e}") from e
        return self._decode(doc) if doc else None

    async def create(self, user_id: str, account: CreditAccount) -> CreditAccount:
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": user_id},
                {"$setOnInsert": account.to_document()},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StorageAccessError(f"Failed to create credits: {e}") from e
        return self._decode(doc) if doc else account

    async def replace(self, user_id: str, account: CreditAccount) -> None:
        try:
            await self.collection.replace_one({"_id": user_id}, account.to_document(), upsert=True)
        except PyMongoError as e:
            raise StorageAccessError(f"Failed to write credits: {e}") from e

    @staticmethod
    def _decode(doc: dict) -> CreditAccount:
        doc = {k: v for k, v in doc.items() if k != "_id"}
        try:
            return CreditAccount.model_validate(doc)
        except ValidationError as e:
            raise StorageAccessError("Malformed credits record", details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}) from e
