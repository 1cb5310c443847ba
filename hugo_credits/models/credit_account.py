from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def transaction_id_for(moment: datetime) -> str:
    """Epoch milliseconds of the creation time; not unique across concurrent writers."""
    return str(int(moment.timestamp() * 1000))


class Transaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    date: datetime
    amount: int  # positive = credit, negative = debit
    concept: str = ""
    balance_after: int = Field(alias="balanceAfter")


class CreditAccount(BaseModel):
    """Per-user balance plus its transaction log, newest first."""

    model_config = ConfigDict(populate_by_name=True)

    credits: int = 0
    transactions: list[Transaction] = Field(default_factory=list)
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")

    @field_validator("credits", mode="before")
    @classmethod
    def _null_credits(cls, v):
        return 0 if v is None else v

    @field_validator("transactions", mode="before")
    @classmethod
    def _null_transactions(cls, v):
        return [] if v is None else v

    @classmethod
    def placeholder(cls) -> "CreditAccount":
        """Zero-credit stand-in returned when there is no account context."""
        return cls(credits=0)

    @classmethod
    def opening(cls, credits: int, now: datetime) -> "CreditAccount":
        return cls(credits=credits, transactions=[], last_updated=now)

    def with_entry(self, amount: int, concept: str, now: datetime) -> "CreditAccount":
        """Return the full replacement record after applying `amount`."""
        balance_after = self.credits + amount
        entry = Transaction(
            id=transaction_id_for(now),
            date=now,
            amount=amount,
            concept=concept,
            balance_after=balance_after,
        )
        return CreditAccount(
            credits=balance_after,
            transactions=[entry, *self.transactions],
            last_updated=now,
        )

    def to_document(self) -> dict:
        """Record shape stored under userCredits/{userId}."""
        return self.model_dump(by_alias=True, exclude_none=True)
