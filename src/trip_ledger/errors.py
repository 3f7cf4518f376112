"""
Errors raised by the ledger core.

All of them are input-validation failures: raised synchronously and never
retried. They subclass ValueError so callers that already handle ValueError
keep working.
"""


class LedgerError(ValueError):
    """Base class for ledger errors."""


class SplitError(LedgerError):
    """An expense could not be split."""


class InvalidAmount(SplitError):
    """Expense amount is zero or negative."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Expense amount must be greater than 0 (got {amount})")


class MissingSplitDetails(SplitError):
    """The split type needs details that were not supplied."""

    def __init__(self, split_type):
        self.split_type = split_type
        name = getattr(split_type, "value", split_type)
        super().__init__(f"Split details required for {name} split")


class SplitMismatch(SplitError):
    """Custom amounts do not add up to the expense total."""

    def __init__(self, expected: float, got: float):
        self.expected = expected
        self.got = got
        super().__init__(f"Custom amounts must sum to {expected:.2f} (got {got:.2f})")


class PercentageMismatch(SplitError):
    """Percentages do not add up to 100."""

    def __init__(self, got: float):
        self.got = got
        super().__init__(f"Percentages must sum to 100 (got {got:g})")


class UnknownParticipant(LedgerError):
    """A participant id is not part of the trip."""

    def __init__(self, participant_id: str, context: str = ""):
        self.participant_id = participant_id
        self.context = context
        where = f" in {context}" if context else ""
        super().__init__(f"Unknown participant '{participant_id}'{where}")
