"""
Per-participant ledger: who paid what, who owes what, and the net balance.
"""
import logging
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG, LedgerConfig
from .errors import LedgerError, UnknownParticipant
from .expense_calculator import compute_split_cents
from .models import ExpenseInput, Participant, ParticipantLedger, RecordedSettlement
from .money import TOLERANCE_CENTS, from_cents, to_cents

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = ['id', 'name', 'total_paid', 'total_owed', 'net_balance']


def normalize_balances(balances: np.ndarray, tolerance_cents: int = TOLERANCE_CENTS) -> np.ndarray:
    """
    Make balances (in cents) add up to zero.

    If the total is off by more than the tolerance, the whole difference is
    taken from the participant with the smallest absolute balance (the
    first one on ties).

    Returns:
        A new array; the input is not modified
    """
    balances = np.array(balances, dtype=np.int64)
    total = int(balances.sum())

    if balances.size and abs(total) > tolerance_cents:
        idx = int(np.argmin(np.abs(balances)))
        logger.debug("Absorbing %d cents of drift at index %d", total, idx)
        balances[idx] -= total

    return balances


class LedgerBuilder:
    """Accumulates expenses and recorded payments for one trip."""

    def __init__(self, participants: Sequence[Participant], config: Optional[LedgerConfig] = None):
        self.participants = list(participants)
        self.config = config or DEFAULT_CONFIG
        self.ids = [p.id for p in self.participants]
        self.index = {pid: i for i, pid in enumerate(self.ids)}

        n = len(self.ids)
        self.paid = np.zeros(n, dtype=np.int64)
        self.owed = np.zeros(n, dtype=np.int64)

    def _check_known(self, participant_id: str, context: str) -> bool:
        if participant_id in self.index:
            return True
        if self.config.strict_participants:
            raise UnknownParticipant(participant_id, context)
        logger.warning("Dropping %s for unknown participant '%s'", context, participant_id)
        return False

    def add_expense(self, expense: ExpenseInput) -> None:
        """Split one expense and add it to the totals, or raise and add nothing."""
        total, shares = compute_split_cents(expense, self.ids)

        context = f"expense {expense.id}"
        payer_known = self._check_known(expense.payer_id, context)
        known_shares = {
            pid: cents for pid, cents in shares.items()
            if self._check_known(pid, context)
        }

        if payer_known:
            self.paid[self.index[expense.payer_id]] += total
        for pid, cents in known_shares.items():
            self.owed[self.index[pid]] += cents

    def add_expenses(self, expenses: Iterable[ExpenseInput]) -> None:
        """Add expenses in order, halting or skipping on failure per config."""
        for expense in expenses:
            try:
                self.add_expense(expense)
            except LedgerError as e:
                if not self.config.skip_invalid_expenses:
                    raise
                logger.warning("Skipping expense %s: %s", expense.id, e)

    def net_balances(self, recorded_settlements: Iterable[RecordedSettlement] = ()) -> np.ndarray:
        """Net balances in cents with recorded payments folded in, normalized."""
        net = self.paid - self.owed

        for s in recorded_settlements:
            context = f"settlement {s.from_id}->{s.to_id}"
            if not (self._check_known(s.from_id, context) and self._check_known(s.to_id, context)):
                continue
            amount = to_cents(s.amount)
            net[self.index[s.from_id]] += amount
            net[self.index[s.to_id]] -= amount

        return normalize_balances(net, self.config.tolerance_cents)

    def build(self, recorded_settlements: Iterable[RecordedSettlement] = ()) -> list[ParticipantLedger]:
        """Produce ledger rows sorted by participant id."""
        net = self.net_balances(recorded_settlements)

        rows = [
            ParticipantLedger(
                id=p.id,
                name=p.name,
                total_paid=from_cents(self.paid[i]),
                total_owed=from_cents(self.owed[i]),
                net_balance=from_cents(net[i])
            )
            for i, p in enumerate(self.participants)
        ]
        return sorted(rows, key=lambda row: row.id)


def build_ledger(
    expenses: Iterable[ExpenseInput],
    participants: Sequence[Participant],
    recorded_settlements: Iterable[RecordedSettlement] = (),
    config: Optional[LedgerConfig] = None
) -> list[ParticipantLedger]:
    """
    Calculate the ledger for a trip.

    Every expense is split over all trip participants (see compute_split),
    the payer is credited with the total and each share is charged to its
    participant. Recorded payments then move both sides toward zero.

    Args:
        expenses: Expenses in the order they should be applied
        participants: Everyone on the trip
        recorded_settlements: Payments already made
        config: Policy switches; defaults to strict, fail-fast

    Returns:
        One ParticipantLedger per participant, sorted by id, whose net
        balances sum to zero

    Raises:
        SplitError: an expense could not be split
        UnknownParticipant: an id is not on the trip (strict mode)
    """
    builder = LedgerBuilder(participants, config)
    builder.add_expenses(expenses)
    return builder.build(recorded_settlements)


def ledger_dataframe(ledger: Sequence[ParticipantLedger]) -> pd.DataFrame:
    """
    Get the ledger as a DataFrame.

    Returns:
        DataFrame with id, name, total_paid, total_owed, net_balance columns
    """
    if not ledger:
        return pd.DataFrame(columns=LEDGER_COLUMNS)

    data = [
        {
            'id': row.id,
            'name': row.name,
            'total_paid': row.total_paid,
            'total_owed': row.total_owed,
            'net_balance': row.net_balance
        }
        for row in ledger
    ]
    return pd.DataFrame(data, columns=LEDGER_COLUMNS)
