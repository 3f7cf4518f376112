"""
Trip Ledger - CLI Interface

Keeps one trip in memory and answers "who owes whom" for it.
"""
import logging
import sys
from dataclasses import replace
from typing import Optional

from .config import LedgerConfig, load_config
from .errors import LedgerError
from .expense_calculator import compute_split, is_trip_expense
from .export import category_totals, cost_summary, expenses_dataframe, trip_statistics, write_csv_export
from .ledger import build_ledger
from .models import ExpenseInput, RecordedSettlement, SplitType, Trip
from .settlement import plan_settlement, settlement_summary

logger = logging.getLogger(__name__)


class TripSession:
    """Holds a trip, its expenses and the payments recorded so far."""

    def __init__(self, config: Optional[LedgerConfig] = None):
        self.config = config or LedgerConfig()
        self.trip: Optional[Trip] = None
        self.expenses: list[ExpenseInput] = []
        self.recorded: list[RecordedSettlement] = []

    def create_trip(self, title: str, currency: Optional[str] = None) -> None:
        """Start a new trip, dropping the current one."""
        self.trip = Trip(title=title, currency=currency or self.config.currency)
        self.expenses = []
        self.recorded = []
        print(f"Created trip: {title}")

    def add_participant(self, name: str) -> None:
        """Add a participant to the trip."""
        if not self.trip:
            print("Error: Create a trip first!")
            return
        p = self.trip.add_participant(name)
        print(f"Added: {name} (ID: {p.id})")

    def _ids_by_name(self, split_data: dict) -> dict[str, float]:
        by_id = {}
        for name, value in split_data.items():
            p = self.trip.get_participant_by_name(name)
            if not p:
                raise LedgerError(f"Participant '{name}' not found!")
            by_id[p.id] = value
        return by_id

    def add_expense(
        self,
        description: str,
        amount: float,
        paid_by_name: str,
        split_type: str = "EQUAL",
        split_data: Optional[dict] = None,
        tax_percent: Optional[float] = None,
        tip_percent: Optional[float] = None,
        category: Optional[str] = None,
        tax_absolute: Optional[float] = None,
        tip_absolute: Optional[float] = None
    ) -> Optional[ExpenseInput]:
        """Validate an expense and add it to the trip."""
        if not self.trip:
            print("Error: Create a trip first!")
            return None

        payer = self.trip.get_participant_by_name(paid_by_name)
        if not payer:
            print(f"Error: Participant '{paid_by_name}' not found!")
            return None

        try:
            expense = ExpenseInput(
                payer_id=payer.id,
                amount=amount,
                split_type=SplitType.parse(split_type),
                split_details=self._ids_by_name(split_data or {}),
                tax_percent=tax_percent,
                tax_absolute=tax_absolute,
                tip_percent=tip_percent,
                tip_absolute=tip_absolute,
                description=description,
                category=category
            )
            calc = self._validate(expense)
        except ValueError as e:
            print(f"Error: {e}")
            return None

        self.expenses.append(expense)
        print(f"Added expense: {description} ({calc.total_expense:.2f} {self.trip.currency})")
        return expense

    def _validate(self, expense: ExpenseInput):
        """Reject malformed splits before keeping the expense."""
        return compute_split(
            expense.amount, expense.split_type, [p.id for p in self.trip.participants],
            expense.split_details, expense.tax_percent, expense.tax_absolute,
            expense.tip_percent, expense.tip_absolute
        )

    def get_expense(self, expense_id: str) -> Optional[ExpenseInput]:
        """Find an expense by its ID."""
        for exp in self.expenses:
            if exp.id == expense_id:
                return exp
        return None

    def update_expense(self, expense_id: str, **changes) -> Optional[ExpenseInput]:
        """
        Change fields of an expense, keeping it only if it still splits.

        Accepts ExpenseInput field names, plus paid_by_name and split_data
        (keyed by participant name) like add_expense.
        """
        expense = self.get_expense(expense_id) if self.trip else None
        if not expense:
            print(f"Error: Expense '{expense_id}' not found!")
            return None

        try:
            if "paid_by_name" in changes:
                name = changes.pop("paid_by_name")
                payer = self.trip.get_participant_by_name(name)
                if not payer:
                    raise LedgerError(f"Participant '{name}' not found!")
                changes["payer_id"] = payer.id
            if "split_data" in changes:
                changes["split_details"] = self._ids_by_name(changes.pop("split_data") or {})
            if "split_type" in changes:
                changes["split_type"] = SplitType.parse(changes["split_type"])
            changes.pop("id", None)

            updated = replace(expense, **changes)
            calc = self._validate(updated)
        except (ValueError, TypeError) as e:
            print(f"Error: {e}")
            return None

        self.expenses[self.expenses.index(expense)] = updated
        print(f"Updated expense: {updated.description} ({calc.total_expense:.2f} {self.trip.currency})")
        return updated

    def remove_expense(self, expense_id: str) -> bool:
        """Delete an expense from the trip."""
        expense = self.get_expense(expense_id) if self.trip else None
        if not expense:
            print(f"Error: Expense '{expense_id}' not found!")
            return False
        self.expenses.remove(expense)
        print(f"Removed expense: {expense.description}")
        return True

    def record_payment(self, from_name: str, to_name: str, amount: float) -> None:
        """Record a payment that has been made."""
        if not self.trip:
            print("Error: Create a trip first!")
            return
        payer = self.trip.get_participant_by_name(from_name)
        payee = self.trip.get_participant_by_name(to_name)
        if not payer or not payee:
            print("Error: Unknown participant!")
            return
        if amount <= 0:
            print("Error: Payment must be greater than 0")
            return
        self.recorded.append(RecordedSettlement(payer.id, payee.id, amount))
        print(f"Recorded: {payer.name} paid {payee.name} {amount:.2f}")

    def settle_all(self) -> None:
        """Record every suggested settlement as paid."""
        settlements = self.settlements()
        if settlements is None:
            return
        for s in settlements:
            self.recorded.append(s.to_recorded())
        print(f"Recorded {len(settlements)} payment(s)")

    def ledger(self):
        """Compute the ledger, printing and returning None on error."""
        if not self.trip:
            print("Error: Create a trip first!")
            return None
        try:
            return build_ledger(self.expenses, self.trip.participants, self.recorded, self.config)
        except LedgerError as e:
            print(f"Error: {e}")
            return None

    def settlements(self):
        ledger = self.ledger()
        if ledger is None:
            return None
        return plan_settlement(ledger, self.config.tolerance_cents)

    def show_balances(self) -> None:
        """Display current balances for all participants."""
        ledger = self.ledger()
        if ledger is None:
            return

        print("\n--- Balances ---")
        if not ledger:
            print("No data")
            return

        for row in ledger:
            status = "owes" if row.net_balance < 0 else "is owed"
            print(f"  {row.name}: paid {row.total_paid:.2f}, share {row.total_owed:.2f}, "
                  f"{status} {abs(row.net_balance):.2f}")
        print()

    def show_expenses(self) -> None:
        """Display all expenses."""
        if not self.trip:
            print("Error: Create a trip first!")
            return

        print("\n--- Expenses ---")
        if not self.expenses:
            print("No expenses recorded")
            return

        ids = [p.id for p in self.trip.participants]
        df = expenses_dataframe(self.trip, self.expenses)
        for exp, (_, row) in zip(self.expenses, df.iterrows()):
            kind = "trip" if is_trip_expense(exp.split_type, exp.split_details, ids) else "personal"
            print(f"  {exp.id} [{row['Split Type']}, {kind}] {row['Description']}: "
                  f"{row['Total']:.2f} (paid by {row['Payer']})")
        print()

    def show_stats(self) -> None:
        """Display trip-wide vs personal costs and spending by category."""
        ledger = self.ledger()
        if ledger is None:
            return

        stats = trip_statistics(self.trip, self.expenses, ledger)
        currency = self.trip.currency
        print("\n--- Stats ---")
        for _, row in cost_summary(self.trip, self.expenses).iterrows():
            print(f"  {row['Kind']}: {row['Total']:.2f} {currency} ({row['Count']} expenses)")
        print(f"  Average per person: {stats['average_per_person']:.2f} {currency}")
        if stats['highest_spender']:
            print(f"  Highest spender: {stats['highest_spender']}")
        for _, row in category_totals(self.trip, self.expenses).iterrows():
            print(f"  {row['Category']}: {row['Total']:.2f} {currency}")
        print()

    def show_settlements(self) -> None:
        """Display the settlement plan."""
        settlements = self.settlements()
        if settlements is None:
            return
        print(settlement_summary(settlements, self.trip.currency))

    def export(self, path: str) -> None:
        """Write the trip to a CSV file."""
        ledger = self.ledger()
        if ledger is None:
            return
        settlements = plan_settlement(ledger, self.config.tolerance_cents)
        write_csv_export(path, self.trip, self.expenses, ledger, settlements)
        print(f"Exported to {path}")


def parse_split(args: list[str]) -> tuple[str, Optional[dict]]:
    """Parse 'TYPE name=value ...' into a split type and details."""
    if not args:
        return "EQUAL", None
    details = {}
    for pair in args[1:]:
        name, _, value = pair.partition("=")
        details[name] = float(value) if value else 1.0
    return args[0], details or None


def interactive_mode(session: TripSession):
    """Run the application in interactive mode."""
    print("=" * 50)
    print("  Trip Ledger - Interactive Mode")
    print("=" * 50)
    print("\nCommands:")
    print("  trip <title>                  - Create new trip")
    print("  add <name>                    - Add participant")
    print("  expense <desc> <amt> <payer> [TYPE name=value ...]")
    print("                                - Add expense (default EQUAL)")
    print("  balances                      - Show balances")
    print("  expenses                      - Show all expenses")
    print("  settle                        - Show settlement plan")
    print("  pay <from> <to> <amt>         - Record a payment")
    print("  remove <expense-id>           - Delete an expense")
    print("  stats                         - Show trip vs personal costs")
    print("  settle-all                    - Record the whole plan as paid")
    print("  export <file>                 - Export trip as CSV")
    print("  quit                          - Exit")
    print()

    while True:
        try:
            cmd = input("> ").strip().split()
            if not cmd:
                continue

            action = cmd[0].lower()

            if action == "quit" or action == "exit":
                print("Goodbye!")
                break
            elif action == "trip" and len(cmd) >= 2:
                session.create_trip(" ".join(cmd[1:]))
            elif action == "add" and len(cmd) >= 2:
                session.add_participant(" ".join(cmd[1:]))
            elif action == "expense" and len(cmd) >= 4:
                split_type, details = parse_split(cmd[4:])
                session.add_expense(cmd[1], float(cmd[2]), cmd[3], split_type, details)
            elif action == "balances":
                session.show_balances()
            elif action == "expenses":
                session.show_expenses()
            elif action == "settle":
                session.show_settlements()
            elif action == "pay" and len(cmd) == 4:
                session.record_payment(cmd[1], cmd[2], float(cmd[3]))
            elif action == "remove" and len(cmd) == 2:
                session.remove_expense(cmd[1])
            elif action == "stats":
                session.show_stats()
            elif action == "settle-all":
                session.settle_all()
            elif action == "export" and len(cmd) == 2:
                session.export(cmd[1])
            else:
                print("Unknown command. Type 'quit' to exit.")

        except KeyboardInterrupt:
            print("\nGoodbye!")
            break
        except (ValueError, OSError) as e:
            print(f"Error: {e}")


def demo(session: TripSession):
    """Run a demonstration of the trip ledger."""
    print("=" * 50)
    print("  Trip Ledger - Demo")
    print("=" * 50)

    session.create_trip("Trip to Plovdiv")

    session.add_participant("Ivan")
    session.add_participant("Maria")
    session.add_participant("Georgi")

    session.add_expense("Dinner", 90.00, "Ivan", tax_percent=5, tip_percent=10)
    session.add_expense("Taxi", 30.00, "Maria")
    session.add_expense("Museum", 45.00, "Georgi", "SELECTED_EQUAL", {"Georgi": 1, "Maria": 1})
    session.add_expense("Hotel", 300.00, "Ivan", "PERCENTAGES", {"Ivan": 50, "Maria": 30, "Georgi": 20})

    session.show_expenses()
    session.show_stats()
    session.show_balances()
    session.show_settlements()

    session.record_payment("Maria", "Ivan", 50.00)
    session.show_balances()
    session.show_settlements()


def main(argv: Optional[list[str]] = None):
    argv = sys.argv[1:] if argv is None else argv

    config = LedgerConfig()
    if "--config" in argv:
        i = argv.index("--config")
        if i + 1 >= len(argv):
            print("Error: --config needs a path")
            return 2
        try:
            config = load_config(argv[i + 1])
        except (ValueError, OSError) as e:
            print(f"Error: {e}")
            return 2

    logging.basicConfig(
        level=logging.DEBUG if "--verbose" in argv else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    session = TripSession(config)
    if "--demo" in argv:
        demo(session)
    else:
        interactive_mode(session)
    return 0


if __name__ == "__main__":
    sys.exit(main())
