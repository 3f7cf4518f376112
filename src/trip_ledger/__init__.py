"""
Trip Ledger - split group trip expenses and work out who owes whom.
"""
from .errors import (
    InvalidAmount,
    LedgerError,
    MissingSplitDetails,
    PercentageMismatch,
    SplitError,
    SplitMismatch,
    UnknownParticipant,
)
from .expense_calculator import compute_split, is_trip_expense
from .ledger import build_ledger
from .models import (
    ExpenseCalculation,
    ExpenseInput,
    Participant,
    ParticipantLedger,
    RecordedSettlement,
    Settlement,
    SplitType,
    Trip,
)
from .settlement import plan_settlement

__version__ = "0.1.0"
