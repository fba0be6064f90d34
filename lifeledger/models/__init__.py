# Import all models to ensure they are registered with SQLAlchemy
# Category first since both other models reference it
from lifeledger.models.category import Category
from lifeledger.models.recurring_transaction import RecurringTransaction
from lifeledger.models.ledger_entry import LedgerEntry, TransactionKind

__all__ = [
    "Category",
    "RecurringTransaction",
    "LedgerEntry",
    "TransactionKind",
]
