# Import all models so that Base.metadata is populated for create_all
from lifeledger.models.category import Category  # noqa: F401
from lifeledger.models.recurring_transaction import RecurringTransaction  # noqa: F401
from lifeledger.models.ledger_entry import LedgerEntry  # noqa: F401
