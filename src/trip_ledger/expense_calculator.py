"""
Expense splitting logic with support for multiple split types.
"""
import logging
from decimal import Decimal
from typing import Optional, Sequence

import numpy as np

from .errors import (
    InvalidAmount,
    MissingSplitDetails,
    PercentageMismatch,
    SplitError,
    SplitMismatch,
)
from .models import ExpenseCalculation, SplitType
from .money import from_cents, percent_of, round2, to_cents, to_decimal

logger = logging.getLogger(__name__)

MAX_DRIFT = Decimal("0.01")
MAX_DRIFT_CENTS = 1


def resolve_tax_tip(
    gross_amount,
    tax_percent: Optional[float] = None,
    tax_absolute: Optional[float] = None,
    tip_percent: Optional[float] = None,
    tip_absolute: Optional[float] = None
) -> tuple[Decimal, Decimal]:
    """
    Work out tax and tip for an expense.

    A percentage wins over an absolute amount for the same field. Tax and
    tip are resolved independently.
    """
    return (
        _surcharge(gross_amount, tax_percent, tax_absolute),
        _surcharge(gross_amount, tip_percent, tip_absolute),
    )


def _surcharge(gross_amount, percent, absolute) -> Decimal:
    if percent is not None and percent > 0:
        return percent_of(gross_amount, percent)
    if absolute is not None and absolute > 0:
        return round2(absolute)
    return Decimal("0.00")


def split_equal_cents(total_cents: int, participant_ids: Sequence[str]) -> dict[str, int]:
    """
    Split an amount in cents equally.

    Every participant gets the floored base share; the leftover cents go
    one each to the first participants in the order given.
    """
    n = len(participant_ids)
    if n == 0:
        raise SplitError("No participants to split the expense among")

    base = total_cents // n
    amounts = np.full(n, base, dtype=np.int64)
    remainder = int(total_cents - base * n)
    amounts[:remainder] += 1

    return {pid: int(amt) for pid, amt in zip(participant_ids, amounts)}


def split_percentages_cents(total_cents: int, percentages: dict[str, float]) -> dict[str, int]:
    """
    Split an amount in cents by percentage.

    Ids are taken in sorted order; the last one absorbs whatever rounding
    left over so the shares always add up to the total.
    """
    pids = sorted(percentages)
    total = Decimal(total_cents) / 100
    amounts = np.array(
        [to_cents(percent_of(total, percentages[pid])) for pid in pids[:-1]],
        dtype=np.int64
    )
    last = total_cents - int(amounts.sum())

    shares = {pid: int(amt) for pid, amt in zip(pids, amounts)}
    shares[pids[-1]] = last
    return shares


def compute_split(
    gross_amount: float,
    split_type,
    participant_ids: Sequence[str],
    split_details: Optional[dict[str, float]] = None,
    tax_percent: Optional[float] = None,
    tax_absolute: Optional[float] = None,
    tip_percent: Optional[float] = None,
    tip_absolute: Optional[float] = None
) -> ExpenseCalculation:
    """
    Split one expense, including tax and tip, among participants.

    Args:
        gross_amount: Expense amount before tax and tip
        split_type: SplitType (or its name)
        participant_ids: Everyone on the trip, in trip order
        split_details: Per-participant values; meaning depends on split_type
        tax_percent, tax_absolute: Tax as percent of gross, or a fixed amount
        tip_percent, tip_absolute: Tip as percent of gross, or a fixed amount

    Returns:
        ExpenseCalculation whose shares add up to total_expense

    Raises:
        InvalidAmount: gross_amount <= 0
        MissingSplitDetails: CUSTOM_AMOUNTS or PERCENTAGES without details
        SplitMismatch: custom amounts off from the total by more than 0.01
        PercentageMismatch: percentages not summing to 100 (+/- 0.01)
    """
    split_type = SplitType.parse(split_type)

    if gross_amount is None or gross_amount <= 0:
        raise InvalidAmount(gross_amount)

    tax, tip = resolve_tax_tip(gross_amount, tax_percent, tax_absolute, tip_percent, tip_absolute)
    total = round2(to_decimal(gross_amount) + tax + tip)
    total_cents = to_cents(total)

    if split_type is SplitType.EQUAL:
        shares = split_equal_cents(total_cents, list(participant_ids))

    elif split_type is SplitType.SELECTED_EQUAL:
        # Selected ids are sorted; EQUAL keeps trip order.
        selected = sorted(split_details) if split_details else list(participant_ids)
        shares = split_equal_cents(total_cents, selected)

    elif split_type is SplitType.CUSTOM_AMOUNTS:
        if not split_details:
            raise MissingSplitDetails(split_type)
        # Checked after rounding so the stored shares are what reconciles.
        shares = {pid: to_cents(amt) for pid, amt in split_details.items()}
        custom_cents = sum(shares.values())
        if abs(custom_cents - total_cents) > MAX_DRIFT_CENTS:
            raise SplitMismatch(float(total), from_cents(custom_cents))

    elif split_type is SplitType.PERCENTAGES:
        if not split_details:
            raise MissingSplitDetails(split_type)
        pct_sum = sum(to_decimal(v) for v in split_details.values())
        if abs(pct_sum - 100) > MAX_DRIFT:
            raise PercentageMismatch(float(pct_sum))
        shares = split_percentages_cents(total_cents, split_details)

    else:  # pragma: no cover
        raise SplitError(f"Unsupported split type {split_type}")

    logger.debug(
        "Split %.2f (tax %.2f, tip %.2f) %s among %d",
        total, tax, tip, split_type.value, len(shares)
    )

    return ExpenseCalculation(
        total_expense=float(total),
        tax_amount=float(tax),
        tip_amount=float(tip),
        shares={pid: from_cents(c) for pid, c in shares.items()}
    )


def compute_split_cents(expense, participant_ids: Sequence[str]) -> tuple[int, dict[str, int]]:
    """Split an ExpenseInput and return (total, shares) in cents."""
    calc = compute_split(
        expense.amount,
        expense.split_type,
        participant_ids,
        expense.split_details,
        expense.tax_percent,
        expense.tax_absolute,
        expense.tip_percent,
        expense.tip_absolute
    )
    return (
        to_cents(calc.total_expense),
        {pid: to_cents(amt) for pid, amt in calc.shares.items()}
    )


def is_trip_expense(split_type, split_details: Optional[dict], all_participant_ids: Sequence[str]) -> bool:
    """
    Tell a trip-wide expense from a personal one.

    EQUAL always covers the whole trip. Any other split is trip-wide only
    when its details name as many people as the trip has.
    """
    if SplitType.parse(split_type) is SplitType.EQUAL:
        return True
    return bool(split_details) and len(split_details) == len(all_participant_ids)
