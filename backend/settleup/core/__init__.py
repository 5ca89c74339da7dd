"""Balance and debt-simplification engine."""

from .split_service import SplitCalculator
from .ledger_service import LedgerReducer
from .debt_service import DebtSimplifier
from .balance_service import BalanceService
from .record_service import RecordService

__all__ = [
    "SplitCalculator",
    "LedgerReducer",
    "DebtSimplifier",
    "BalanceService",
    "RecordService",
]
