"""
Settlement planning - minimizes number of transfers to settle debts.
"""
import logging
from typing import Sequence

import numpy as np
import pandas as pd

from .models import ParticipantLedger, Settlement
from .money import TOLERANCE_CENTS, cents_array, from_cents

logger = logging.getLogger(__name__)

SETTLEMENT_COLUMNS = ['from', 'to', 'amount']


def _ranked(ledger: list[ParticipantLedger], amounts: np.ndarray, mask: np.ndarray) -> list[list]:
    """[row, remaining cents] pairs for masked rows, largest first, stable on ties."""
    idx = np.flatnonzero(mask)
    order = idx[np.argsort(-amounts[idx], kind="stable")]
    return [[ledger[i], int(amounts[i])] for i in order]


def plan_settlement(
    ledger: Sequence[ParticipantLedger],
    tolerance_cents: int = TOLERANCE_CENTS
) -> list[Settlement]:
    """
    Calculate the transfers needed to settle all debts.

    Uses a greedy algorithm: debtors and creditors are each sorted largest
    first and matched with two pointers, moving on from whoever reaches
    zero. Balances within the tolerance of zero are already settled.

    The ledger must sum to zero (build_ledger guarantees this); otherwise the
    plan under- or over-settles.

    Returns:
        List of Settlement objects, at most n - 1 for n unsettled people
    """
    ledger = list(ledger)
    if not ledger:
        return []

    balances = cents_array(row.net_balance for row in ledger)
    debtors = _ranked(ledger, -balances, balances < -tolerance_cents)
    creditors = _ranked(ledger, balances, balances > tolerance_cents)

    settlements = []
    d_idx = c_idx = 0

    while d_idx < len(debtors) and c_idx < len(creditors):
        debtor = debtors[d_idx]
        creditor = creditors[c_idx]

        transfer = min(debtor[1], creditor[1])
        settlements.append(Settlement(
            from_id=debtor[0].id,
            to_id=creditor[0].id,
            amount=from_cents(transfer),
            from_name=debtor[0].name,
            to_name=creditor[0].name
        ))

        debtor[1] -= transfer
        creditor[1] -= transfer

        if debtor[1] < tolerance_cents:
            d_idx += 1
        if creditor[1] < tolerance_cents:
            c_idx += 1

    logger.debug("Planned %d settlements for %d participants", len(settlements), len(ledger))
    return settlements


def calculate_min_transactions(balances) -> int:
    """
    Upper bound on the transactions needed to settle a set of balances.

    This is at most n-1 where n is number of people with non-zero balance.

    Args:
        balances: Array of balances (positive = owed, negative = owes)

    Returns:
        Maximum number of transactions the greedy plan will use
    """
    non_zero = int(np.sum(np.abs(cents_array(balances)) > TOLERANCE_CENTS))
    return max(0, non_zero - 1)


def settlements_dataframe(settlements: Sequence[Settlement]) -> pd.DataFrame:
    """
    Get settlements as a DataFrame.

    Returns:
        DataFrame with from, to, amount columns
    """
    if not settlements:
        return pd.DataFrame(columns=SETTLEMENT_COLUMNS)

    data = [
        {
            'from': s.from_name or s.from_id,
            'to': s.to_name or s.to_id,
            'amount': s.amount
        }
        for s in settlements
    ]
    return pd.DataFrame(data, columns=SETTLEMENT_COLUMNS)


def settlement_summary(settlements: Sequence[Settlement], currency: str = "") -> str:
    """
    Get human-readable settlement instructions.

    Returns:
        Formatted string with settlement instructions
    """
    if not settlements:
        return "All settled! No payments needed."

    suffix = f" {currency}" if currency else ""
    lines = ["Settlements needed:", ""]

    for i, s in enumerate(settlements, 1):
        lines.append(
            f"  {i}. {s.from_name or s.from_id} pays {s.to_name or s.to_id}: "
            f"{s.amount:.2f}{suffix}"
        )

    lines.append("")
    lines.append(f"Total transactions: {len(settlements)}")

    return "\n".join(lines)
