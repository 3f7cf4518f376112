"""
Data models for the Trip Ledger.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional
import uuid


class SplitType(Enum):
    """Supported policies for splitting an expense."""
    EQUAL = "EQUAL"
    SELECTED_EQUAL = "SELECTED_EQUAL"
    CUSTOM_AMOUNTS = "CUSTOM_AMOUNTS"
    PERCENTAGES = "PERCENTAGES"

    @classmethod
    def parse(cls, value) -> "SplitType":
        """Accept a SplitType or its name in any case."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown split type '{value}'") from None


@dataclass
class Participant:
    """Represents a person on a trip."""
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    email: Optional[str] = None

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Participant):
            return self.id == other.id
        return False


@dataclass
class ExpenseInput:
    """A single expense as recorded for a trip."""
    payer_id: str
    amount: float
    split_type: SplitType = SplitType.EQUAL
    split_details: dict[str, float] = field(default_factory=dict)
    tax_percent: Optional[float] = None
    tax_absolute: Optional[float] = None
    tip_percent: Optional[float] = None
    tip_absolute: Optional[float] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    description: str = ""
    category: Optional[str] = None
    date: datetime = field(default_factory=datetime.now)


@dataclass
class ExpenseCalculation:
    """Result of splitting one expense."""
    total_expense: float
    tax_amount: float
    tip_amount: float
    shares: dict[str, float] = field(default_factory=dict)


@dataclass
class ParticipantLedger:
    """Per-person totals for a trip. Positive net balance = is owed money."""
    id: str
    name: str
    total_paid: float = 0.0
    total_owed: float = 0.0
    net_balance: float = 0.0


@dataclass
class RecordedSettlement:
    """A payment that has already been made between two participants."""
    from_id: str
    to_id: str
    amount: float
    settled_at: Optional[datetime] = None


@dataclass
class Settlement:
    """A suggested payment from a debtor to a creditor."""
    from_id: str
    to_id: str
    amount: float
    from_name: Optional[str] = None
    to_name: Optional[str] = None

    def to_recorded(self, settled_at: Optional[datetime] = None) -> RecordedSettlement:
        """Turn an executed suggestion into a recorded payment."""
        return RecordedSettlement(
            from_id=self.from_id,
            to_id=self.to_id,
            amount=self.amount,
            settled_at=settled_at or datetime.now()
        )


@dataclass
class Trip:
    """Represents a trip and the people on it."""
    title: str
    participants: list[Participant] = field(default_factory=list)
    currency: str = "EUR"
    start_date: date = field(default_factory=date.today)
    end_date: date = field(default_factory=date.today)
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def add_participant(self, name: str, email: Optional[str] = None,
                        participant_id: Optional[str] = None) -> Participant:
        """Add a new participant to the trip."""
        if participant_id is None:
            participant = Participant(name=name, email=email)
        else:
            participant = Participant(name=name, id=participant_id, email=email)
        self.participants.append(participant)
        return participant

    def get_participant_by_id(self, participant_id: str) -> Optional[Participant]:
        """Find a participant by their ID."""
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def get_participant_by_name(self, name: str) -> Optional[Participant]:
        """Find a participant by their name (case-insensitive)."""
        for p in self.participants:
            if p.name.lower() == name.lower():
                return p
        return None
