"""
Tests for the trip export.
"""
import unittest
import tempfile
import sys
import os
from datetime import date, datetime

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from trip_ledger.export import (
    EXPENSE_HEADERS,
    category_totals,
    cost_summary,
    expenses_dataframe,
    generate_csv_export,
    ledger_table,
    settlements_table,
    trip_statistics,
    write_csv_export,
)
from trip_ledger.ledger import build_ledger
from trip_ledger.models import ExpenseInput, SplitType, Trip
from trip_ledger.settlement import plan_settlement


class TestExport(unittest.TestCase):

    def setUp(self):
        self.trip = Trip(title="Plovdiv", currency="BGN",
                         start_date=date(2024, 5, 1), end_date=date(2024, 5, 4))
        self.ivan = self.trip.add_participant("Ivan", participant_id="1")
        self.maria = self.trip.add_participant("Maria", participant_id="2")
        self.expenses = [
            ExpenseInput(payer_id="1", amount=90, tax_percent=5, tip_percent=10,
                         description='Dinner at "Pri Ivan"', category="Food",
                         date=datetime(2024, 5, 1, 20, 30)),
            ExpenseInput(payer_id="2", amount=20, split_type=SplitType.CUSTOM_AMOUNTS,
                         split_details={"1": 15, "2": 5}, tax_absolute=0,
                         description="Taxi", date=datetime(2024, 5, 2)),
        ]
        self.ledger = build_ledger(self.expenses, self.trip.participants)
        self.settlements = plan_settlement(self.ledger)

    def test_expense_columns_and_amounts(self):
        df = expenses_dataframe(self.trip, self.expenses)

        self.assertEqual(list(df.columns), EXPENSE_HEADERS)
        dinner = df.iloc[0]
        self.assertEqual(dinner['Date'], "2024-05-01")
        self.assertEqual(dinner['Payer'], "Ivan")
        self.assertEqual(dinner['Tax'], 4.5)
        self.assertEqual(dinner['Tip'], 9.0)
        self.assertEqual(dinner['Total'], 103.5)
        self.assertEqual(df.iloc[1]['Split Type'], "CUSTOM_AMOUNTS")

    def test_ledger_and_settlement_tables(self):
        ledger = ledger_table(self.ledger)
        self.assertEqual(list(ledger.columns), ['Person', 'Total Paid', 'Total Owed', 'Net Balance'])
        self.assertEqual(ledger['Person'].tolist(), ["Ivan", "Maria"])

        settlements = settlements_table(self.settlements)
        self.assertEqual(list(settlements.columns), ['From', 'To', 'Amount'])
        # Ivan: paid 103.50, owes 51.75 + 15; Maria: paid 20, owes 51.75 + 5
        self.assertEqual(settlements.values.tolist(), [["Maria", "Ivan", 36.75]])

    def test_csv_document(self):
        text = generate_csv_export(self.trip, self.expenses, self.ledger, self.settlements)
        lines = text.split("\n")

        self.assertEqual(lines[0], "Trip: Plovdiv")
        self.assertEqual(lines[1], "Currency: BGN")
        self.assertEqual(lines[2], "Period: 2024-05-01 - 2024-05-04")
        self.assertEqual(lines[4], "EXPENSES")
        self.assertEqual(
            lines[5],
            'Date,Payer,Category,Amount,Tax,Tip,Total,Split Type,Description'
        )
        self.assertEqual(
            lines[6],
            '"2024-05-01","Ivan","Food",90,4.5,9,103.5,"EQUAL","Dinner at ""Pri Ivan"""'
        )
        self.assertIn("PER-PERSON LEDGER", lines)
        self.assertIn('Person,Total Paid,Total Owed,Net Balance', lines)
        self.assertIn("SETTLEMENT TRANSACTIONS", lines)
        self.assertEqual(lines[-2], 'From,To,Amount')
        self.assertEqual(lines[-1], '"Maria","Ivan",36.75')

    def test_empty_trip(self):
        trip = Trip(title="Empty")
        text = generate_csv_export(trip, [], [], [])
        self.assertTrue(text.endswith('From,To,Amount'))

    def test_write_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "trip.csv")
            write_csv_export(path, self.trip, self.expenses, self.ledger, self.settlements)
            with open(path, encoding="utf-8") as f:
                content = f.read()
        self.assertTrue(content.startswith("Trip: Plovdiv"))


class TestTripStatistics(unittest.TestCase):

    def setUp(self):
        self.trip = Trip(title="Plovdiv")
        for pid, name in (("1", "Ivan"), ("2", "Maria"), ("3", "Georgi")):
            self.trip.add_participant(name, participant_id=pid)
        self.expenses = [
            ExpenseInput(payer_id="1", amount=90, category="Food"),
            ExpenseInput(payer_id="2", amount=60, category="Transport",
                         split_type=SplitType.PERCENTAGES,
                         split_details={"1": 50, "2": 25, "3": 25}),
            ExpenseInput(payer_id="3", amount=20, category="Food", tip_absolute=4,
                         split_type=SplitType.SELECTED_EQUAL,
                         split_details={"3": 1}),
            ExpenseInput(payer_id="2", amount=10,
                         split_type=SplitType.CUSTOM_AMOUNTS,
                         split_details={"1": 5, "2": 5}),
        ]
        self.ledger = build_ledger(self.expenses, self.trip.participants)

    def test_cost_summary(self):
        df = cost_summary(self.trip, self.expenses)

        self.assertEqual(list(df.columns), ['Kind', 'Count', 'Total'])
        self.assertEqual(df['Kind'].tolist(), ["Trip", "Personal"])
        self.assertEqual(df['Count'].tolist(), [2, 2])
        self.assertEqual(df['Total'].tolist(), [150.0, 34.0])

    def test_category_totals(self):
        df = category_totals(self.trip, self.expenses)

        self.assertEqual(list(df.columns), ['Category', 'Count', 'Total'])
        self.assertEqual(df['Category'].tolist(), ["Food", "Transport", "Uncategorized"])
        self.assertEqual(df['Total'].tolist(), [114.0, 60.0, 10.0])
        self.assertEqual(df['Count'].tolist(), [2, 1, 1])

    def test_trip_statistics(self):
        stats = trip_statistics(self.trip, self.expenses, self.ledger)

        self.assertEqual(stats['trip_total'], 150.0)
        self.assertEqual(stats['personal_total'], 34.0)
        self.assertEqual(stats['total'], 184.0)
        self.assertEqual(stats['average_per_person'], 50.0)
        self.assertEqual(stats['highest_spender'], "Ivan")

    def test_no_expenses(self):
        self.assertEqual(cost_summary(self.trip, [])['Total'].tolist(), [0.0, 0.0])
        self.assertTrue(category_totals(self.trip, []).empty)

        stats = trip_statistics(Trip(title="Empty"), [], [])
        self.assertEqual(stats['average_per_person'], 0.0)
        self.assertIsNone(stats['highest_spender'])


if __name__ == '__main__':
    unittest.main()
