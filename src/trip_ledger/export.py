"""
Tabular export of a trip: expenses, per-person ledger and settlements.
"""
import csv
import io
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .expense_calculator import is_trip_expense, resolve_tax_tip
from .ledger import ledger_dataframe
from .models import ExpenseInput, ParticipantLedger, Settlement, SplitType, Trip
from .money import round2, to_decimal
from .settlement import settlements_dataframe

EXPENSE_HEADERS = [
    'Date', 'Payer', 'Category', 'Amount', 'Tax', 'Tip', 'Total', 'Split Type', 'Description'
]
LEDGER_HEADERS = ['Person', 'Total Paid', 'Total Owed', 'Net Balance']
SETTLEMENT_HEADERS = ['From', 'To', 'Amount']
SUMMARY_HEADERS = ['Kind', 'Count', 'Total']
CATEGORY_HEADERS = ['Category', 'Count', 'Total']

UNCATEGORIZED = "Uncategorized"


def expenses_dataframe(trip: Trip, expenses: Sequence[ExpenseInput]) -> pd.DataFrame:
    """Expense rows with tax, tip and total resolved the way the ledger does."""
    data = []
    for exp in expenses:
        tax, tip = resolve_tax_tip(
            exp.amount, exp.tax_percent, exp.tax_absolute, exp.tip_percent, exp.tip_absolute
        )
        payer = trip.get_participant_by_id(exp.payer_id)
        data.append({
            'Date': exp.date.strftime("%Y-%m-%d") if exp.date else "",
            'Payer': payer.name if payer else exp.payer_id,
            'Category': exp.category or "",
            'Amount': float(round2(exp.amount)),
            'Tax': float(tax),
            'Tip': float(tip),
            'Total': float(round2(to_decimal(exp.amount) + tax + tip)),
            'Split Type': SplitType.parse(exp.split_type).value,
            'Description': exp.description or ""
        })
    return pd.DataFrame(data, columns=EXPENSE_HEADERS)


def cost_summary(trip: Trip, expenses: Sequence[ExpenseInput]) -> pd.DataFrame:
    """
    Split spending into trip-wide and personal expenses.

    Returns:
        DataFrame with one 'Trip' and one 'Personal' row: Kind, Count, Total
    """
    df = expenses_dataframe(trip, expenses)
    ids = [p.id for p in trip.participants]
    is_trip = np.array(
        [is_trip_expense(exp.split_type, exp.split_details, ids) for exp in expenses],
        dtype=bool
    )

    data = []
    for kind, mask in (("Trip", is_trip), ("Personal", ~is_trip)):
        part = df[mask]
        data.append({
            'Kind': kind,
            'Count': int(len(part)),
            'Total': round(float(part['Total'].sum()), 2)
        })
    return pd.DataFrame(data, columns=SUMMARY_HEADERS)


def category_totals(trip: Trip, expenses: Sequence[ExpenseInput]) -> pd.DataFrame:
    """
    Total spending per category, largest first.

    Returns:
        DataFrame with Category, Count, Total columns
    """
    df = expenses_dataframe(trip, expenses)
    if df.empty:
        return pd.DataFrame(columns=CATEGORY_HEADERS)

    df['Category'] = df['Category'].replace("", UNCATEGORIZED)
    totals = (
        df.groupby('Category', sort=False)['Total']
        .agg(['count', 'sum'])
        .reset_index()
    )
    totals.columns = CATEGORY_HEADERS
    totals['Total'] = totals['Total'].round(2)
    return totals.sort_values('Total', ascending=False, kind='stable').reset_index(drop=True)


def trip_statistics(
    trip: Trip,
    expenses: Sequence[ExpenseInput],
    ledger: Sequence[ParticipantLedger]
) -> dict:
    """
    Headline numbers for a trip.

    The per-person average only counts trip-wide expenses; the highest
    spender is whoever paid the most (first in ledger order on ties).
    """
    summary = cost_summary(trip, expenses).set_index('Kind')['Total']
    trip_total = float(summary['Trip'])
    personal_total = float(summary['Personal'])

    highest: Optional[ParticipantLedger] = max(ledger, key=lambda row: row.total_paid, default=None)

    return {
        'trip_total': trip_total,
        'personal_total': personal_total,
        'total': round(trip_total + personal_total, 2),
        'average_per_person': round(trip_total / len(ledger), 2) if ledger else 0.0,
        'highest_spender': highest.name if highest else None
    }


def ledger_table(ledger: Sequence[ParticipantLedger]) -> pd.DataFrame:
    """Ledger rows under their export headers."""
    df = ledger_dataframe(ledger)
    df = df[['name', 'total_paid', 'total_owed', 'net_balance']]
    df.columns = LEDGER_HEADERS
    return df


def settlements_table(settlements: Sequence[Settlement]) -> pd.DataFrame:
    """Settlement rows under their export headers."""
    df = settlements_dataframe(settlements)
    df.columns = SETTLEMENT_HEADERS
    return df


def _plain(value):
    """Numbers as plain Python values; whole amounts without a trailing .0."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _to_csv(df: pd.DataFrame) -> str:
    """Bare header row, then rows with text quoted and numbers as-is."""
    buf = io.StringIO()
    buf.write(",".join(df.columns) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for row in df.itertuples(index=False):
        writer.writerow([_plain(v) for v in row])
    return buf.getvalue().rstrip("\n")


def generate_csv_export(
    trip: Trip,
    expenses: Sequence[ExpenseInput],
    ledger: Sequence[ParticipantLedger],
    settlements: Sequence[Settlement]
) -> str:
    """
    Render the whole trip as one CSV document.

    Sections are EXPENSES, PER-PERSON LEDGER and SETTLEMENT TRANSACTIONS,
    each with its own header row, after a short trip header.
    """
    lines = [
        f"Trip: {trip.title}",
        f"Currency: {trip.currency}",
        f"Period: {trip.start_date.isoformat()} - {trip.end_date.isoformat()}",
        "",
        "EXPENSES",
        _to_csv(expenses_dataframe(trip, expenses)),
        "",
        "PER-PERSON LEDGER",
        _to_csv(ledger_table(ledger)),
        "",
        "SETTLEMENT TRANSACTIONS",
        _to_csv(settlements_table(settlements)),
    ]
    return "\n".join(lines)


def write_csv_export(
    path: str,
    trip: Trip,
    expenses: Sequence[ExpenseInput],
    ledger: Sequence[ParticipantLedger],
    settlements: Sequence[Settlement]
) -> None:
    """Write the trip export to a file."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(generate_csv_export(trip, expenses, ledger, settlements))
        f.write("\n")
