from hugo_credits.models.credit_account import CreditAccount, Transaction

__all__ = [
    "CreditAccount",
    "Transaction",
]
