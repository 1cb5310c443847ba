from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from hugo_credits.core.exceptions import (
    BadRequestError,
    InsufficientCreditsError,
    NotFoundError,
    StorageAccessError,
)
from hugo_credits.core.security import AuthenticatedUser
from hugo_credits.deps import get_current_user, get_ledger, require_admin
from hugo_credits.models.credit_account import CreditAccount, Transaction
from hugo_credits.services.credits import CreditLedger, LedgerOutcome, LedgerResult

router = APIRouter()


class DeductRequest(BaseModel):
    amount: int = Field(gt=0)
    concept: str = Field(min_length=1, max_length=200)


class AdjustRequest(BaseModel):
    amount: int
    concept: str = Field(min_length=1, max_length=200)


def _transaction_out(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "date": tx.date.isoformat(),
        "amount": tx.amount,
        "concept": tx.concept,
        "balance_after": tx.balance_after,
    }


def _account_out(account: CreditAccount) -> dict:
    return {
        "credits": account.credits,
        "last_updated": account.last_updated.isoformat() if account.last_updated else None,
    }


def _raise_for(result: LedgerResult) -> None:
    """Map a failed ledger outcome onto the API error schema."""
    if result.outcome is LedgerOutcome.INSUFFICIENT_FUNDS:
        credits = result.account.credits if result.account else 0
        raise InsufficientCreditsError(details={"credits": credits})
    if result.outcome is LedgerOutcome.NO_ACCOUNT:
        raise NotFoundError("Credit account not found")
    if result.outcome is LedgerOutcome.STORAGE_FAILURE:
        raise StorageAccessError()
    if result.outcome is LedgerOutcome.INVALID_INPUT:
        raise BadRequestError("Invalid credit operation")


@router.get("/balance")
async def credits_balance(
    user: AuthenticatedUser = Depends(get_current_user),
    ledger: CreditLedger = Depends(get_ledger),
):
    """Return current balance; the first call opens the account."""
    account = await ledger.get_account(user.uid)
    return _account_out(account)


@router.get("/transactions")
async def credits_transactions(
    user: AuthenticatedUser = Depends(get_current_user),
    ledger: CreditLedger = Depends(get_ledger),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Return transactions for current user (newest first)."""
    account = await ledger.get_account(user.uid)
    page = account.transactions[offset:offset + limit]
    return {
        "transactions": [_transaction_out(tx) for tx in page],
        "total": len(account.transactions),
        "limit": limit,
        "offset": offset,
    }


@router.post("/deduct")
async def credits_deduct(
    body: DeductRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    ledger: CreditLedger = Depends(get_ledger),
):
    result = await ledger.try_deduct(user.uid, body.amount, body.concept)
    if not result.ok:
        _raise_for(result)
    return {**_account_out(result.account), "transaction": _transaction_out(result.account.transactions[0])}


@router.post("/users/{user_id}/adjust")
async def credits_adjust(
    user_id: str,
    body: AdjustRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    ledger: CreditLedger = Depends(get_ledger),
):
    """Admin: apply a signed amount to any account (no balance floor)."""
    result = await ledger.apply(user_id, body.amount, body.concept)
    if not result.ok:
        _raise_for(result)
    return {**_account_out(result.account), "transaction": _transaction_out(result.account.transactions[0])}
