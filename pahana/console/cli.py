"""
Interactive console front end over the CSV data files.

A login loop followed by a numbered menu. Prompts re-ask until the input is
usable; expected failures of the store are printed and the menu continues.
"""
import sys
from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, InvalidResponse, Prompt
from rich.table import Table

from ..core.config import settings
from ..core.exceptions import BillingError, MalformedRowError, StorageError
from ..core.logging import app_logger, setup_logging
from ..schemas.schemas import (
    MAX_QUANTITY, MAX_UNITS, MONEY_DECIMAL_PLACES, PRICE_MAX_DIGITS, Bill, Customer, CustomerCreate,
    CustomerUpdate, Item, ItemCreate, ItemUpdate, Price,
)
from ..services.calculation_service import TAX_RATE, CalculationService
from ..storage.csv_store import CSVStore

MAIN_MENU = [
    "Add New Customer Account",
    "Edit Customer Information",
    "Manage Item Information (Add/Update/Delete)",
    "Display Account Details",
    "Calculate & Print Bill",
    "Help",
    "Logout",
    "Exit",
]

ITEM_MENU = ["Add Item", "Update Item", "Delete Item", "List Items", "Back"]

HELP_TEXT = [
    "Login with your username and password. A default admin is created on first run.",
    "Add Customer: enter a unique account number and the customer's details.",
    "Edit Customer: update customer fields or units consumed; leave blank to keep a value.",
    "Manage Items: maintain the item list with unit prices.",
    "Calculate & Print Bill: tiered energy charge + items + tax.",
    "Use '*' when asked for an account number to list all customers.",
    "Data is saved under the '{data_dir}' folder as CSV text files.",
]


PRICE = TypeAdapter(Price)


class ScriptedInput:
    """Prompt mixin that reads an optional stream and raises EOFError once it is exhausted."""

    @classmethod
    def get_input(cls, console, prompt, password, stream=None):
        line = console.input(prompt, password=password and stream is None, stream=stream)
        if stream is not None and line == "":
            raise EOFError
        return line


class TextPrompt(ScriptedInput, Prompt):
    prompt_suffix = ""


class NonEmptyPrompt(TextPrompt):

    def process_response(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise InvalidResponse("Value cannot be empty. Try again.")
        return value


class BoundedIntPrompt(TextPrompt):

    def __init__(self, prompt: str, minimum: int = 0, maximum: Optional[int] = None, **kwargs):
        super().__init__(prompt, **kwargs)
        self.minimum = minimum
        self.maximum = maximum

    def process_response(self, value: str) -> int:
        try:
            number = int(value.strip())
        except ValueError:
            number = None
        if number is None or number < self.minimum or (self.maximum is not None and number > self.maximum):
            word = "non-negative" if self.minimum == 0 else "positive"
            limit = f" up to {self.maximum}" if self.maximum is not None else ""
            raise InvalidResponse(f"Enter a {word} integer{limit}.")
        return number


class PricePrompt(TextPrompt):

    def process_response(self, value: str) -> Decimal:
        try:
            return PRICE.validate_python(value.strip())
        except PydanticValidationError:
            raise InvalidResponse(
                f"Enter a non-negative number with at most {MONEY_DECIMAL_PLACES} decimals "
                f"and {PRICE_MAX_DIGITS} digits."
            )


class YesNoPrompt(ScriptedInput, Confirm):
    pass


class BillingConsole:

    def __init__(self, store: CSVStore, console: Optional[Console] = None, stream=None):
        self.store = store
        self.console = console or Console()
        # Scripted input for tests; None reads the terminal
        self.stream = stream
        self.current_user = None

    # ------------------------------------------------------------------
    # Input helpers
    # ------------------------------------------------------------------
    def ask(self, prompt: str, password: bool = False) -> str:
        return TextPrompt(prompt, console=self.console, password=password)(stream=self.stream)

    def read_non_empty(self, prompt: str) -> str:
        return NonEmptyPrompt(prompt, console=self.console)(stream=self.stream)

    def read_int(self, prompt: str, minimum: int, maximum: Optional[int] = None) -> int:
        return BoundedIntPrompt(prompt, minimum=minimum, maximum=maximum, console=self.console)(stream=self.stream)

    def read_price(self, prompt: str) -> Decimal:
        return PricePrompt(prompt, console=self.console)(stream=self.stream)

    def confirm(self, prompt: str) -> bool:
        return YesNoPrompt(prompt, console=self.console)(stream=self.stream)

    def say(self, message: str = ""):
        self.console.print(message)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def run(self):
        self.say("\n[bold]=== Pahana Edu Online Billing System ===[/bold]")
        try:
            while self.login():
                if self.main_menu():
                    break
        except (EOFError, KeyboardInterrupt):
            self.say()
        finally:
            self.shutdown()

    def shutdown(self):
        try:
            self.store.save_all()
        except StorageError as e:
            self.say(f"[red]{escape(str(e))}[/red]")
        self.say(f"\nThank you for using {escape(settings.COMPANY_NAME)} Billing System. Goodbye!\n")

    def login(self) -> bool:
        """Ask for credentials until they match; False when the user types exit."""
        self.say("(Type 'exit' at username to quit)\n")
        while True:
            username = self.ask("Username: ")
            if username.lower() == "exit":
                return False
            password = self.ask("Password: ", password=True)
            user = self.store.authenticate(username, password)
            if user is not None:
                self.current_user = user
                app_logger.info(f"User {user.username} logged in")
                self.say(f"\n[green]Login successful. Welcome, {escape(user.username)}![/green]\n")
                return True
            app_logger.warning(f"Failed login for {username}")
            self.say("[red]Invalid username or password. Please try again.[/red]\n")

    def main_menu(self) -> bool:
        """Run the main menu; True means exit, False means logout."""
        actions = {
            "1": self.add_customer,
            "2": self.edit_customer,
            "3": self.manage_items,
            "4": self.display_account_details,
            "5": self.calculate_and_print_bill,
            "6": self.show_help,
        }
        while True:
            self.say("[bold]================ MAIN MENU ================[/bold]")
            for number, label in enumerate(MAIN_MENU, start=1):
                self.say(f"{number}. {label}")
            choice = self.ask(f"Select option (1-{len(MAIN_MENU)}): ")

            if choice in actions:
                self.dispatch(actions[choice])
            elif choice == "7":
                app_logger.info(f"User {self.current_user.username} logged out")
                self.current_user = None
                self.say("\nLogged out.\n")
                return False
            elif choice == "8":
                return True
            else:
                self.say(f"Invalid selection. Please choose 1-{len(MAIN_MENU)}.\n")

    def dispatch(self, action):
        try:
            action()
        except BillingError as e:
            self.say(f"[red]{escape(str(e))}[/red]\n")
        except PydanticValidationError as e:
            problems = "; ".join(err["msg"] for err in e.errors())
            self.say(f"[red]Invalid input: {escape(problems)}[/red]\n")

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------
    def add_customer(self):
        self.say("\n--- Add New Customer ---")
        account_no = self.read_non_empty("Account Number (unique): ")
        if self.store.find_customer(account_no):
            self.say("Account already exists. Use Edit instead.\n")
            return
        customer = self.store.add_customer(CustomerCreate(
            account_no=account_no,
            name=self.read_non_empty("Full Name: "),
            address=self.read_non_empty("Address: "),
            phone=self.read_non_empty("Telephone: "),
            units_consumed=self.read_int("Units Consumed (integer): ", minimum=0, maximum=MAX_UNITS),
        ))
        self.say(f"[green]Customer {escape(customer.account_no)} added successfully.[/green]\n")

    def edit_customer(self):
        self.say("\n--- Edit Customer Information ---")
        account_no = self.read_non_empty("Enter Account Number: ")
        customer = self.store.find_customer(account_no)
        if customer is None:
            self.say(f"No customer found with account number: {escape(account_no)}\n")
            return
        self.say("Current:")
        self.print_customers([customer])

        name = self.ask("New Name (blank to keep): ")
        address = self.ask("New Address (blank to keep): ")
        phone = self.ask("New Telephone (blank to keep): ")
        units_text = self.ask("New Units Consumed (blank to keep): ")
        units = None
        if units_text:
            try:
                units = int(units_text)
            except ValueError:
                units = -1
            if not 0 <= units <= MAX_UNITS:
                self.say("Invalid units. Keeping previous value.")
                units = None

        self.store.update_customer(account_no, CustomerUpdate(
            name=name, address=address, phone=phone, units_consumed=units
        ))
        self.say("[green]Customer updated successfully.[/green]\n")

    def display_account_details(self):
        self.say("\n--- Display Account Details ---")
        account_no = self.read_non_empty("Enter Account Number (or * to list all): ")
        if account_no == "*":
            customers = self.store.list_customers()
            if not customers:
                self.say("No customers found.\n")
                return
            self.print_customers(customers, title="All Customers")
            return
        customer = self.store.find_customer(account_no)
        if customer is None:
            self.say("No customer found.\n")
            return
        self.print_customers([customer])

    def print_customers(self, customers: List[Customer], title: Optional[str] = None):
        table = Table(title=title)
        table.add_column("Account")
        table.add_column("Name")
        table.add_column("Address")
        table.add_column("Phone")
        table.add_column("Units", justify="right")
        for c in customers:
            table.add_row(escape(c.account_no), escape(c.name), escape(c.address), escape(c.phone), str(c.units_consumed))
        self.console.print(table)
        self.say()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------
    def manage_items(self):
        actions = {
            "1": self.add_item,
            "2": self.update_item,
            "3": self.delete_item,
            "4": self.list_items,
        }
        while True:
            self.say("\n--- Item Management ---")
            for number, label in enumerate(ITEM_MENU, start=1):
                self.say(f"{number}) {label}")
            choice = self.ask(f"Choose (1-{len(ITEM_MENU)}): ")
            if choice in actions:
                self.dispatch(actions[choice])
            elif choice == "5":
                return
            else:
                self.say("Invalid choice.\n")

    def add_item(self):
        code = self.read_non_empty("Item Code (unique): ")
        if self.store.find_item(code):
            self.say("Item code exists.\n")
            return
        self.store.add_item(ItemCreate(
            code=code,
            name=self.read_non_empty("Item Name: "),
            unit_price=self.read_price("Unit Price: "),
        ))
        self.say("[green]Item added.[/green]\n")

    def update_item(self):
        code = self.read_non_empty("Enter Item Code to update: ")
        item = self.store.find_item(code)
        if item is None:
            self.say("No such item.\n")
            return
        self.say(f"Current: {escape(item.code)} | {escape(item.name)} | {item.unit_price:.2f}")

        name = self.ask("New Name (blank keep): ")
        price_text = self.ask("New Unit Price (blank keep): ")
        price = None
        if price_text:
            try:
                price = PRICE.validate_python(price_text)
            except PydanticValidationError:
                self.say("Invalid price. Keeping previous.")
                price = None

        self.store.update_item(code, ItemUpdate(name=name, unit_price=price))
        self.say("[green]Item updated.[/green]\n")

    def delete_item(self):
        code = self.read_non_empty("Enter Item Code to delete: ")
        if self.store.find_item(code) is None:
            self.say("No such item.\n")
            return
        self.store.delete_item(code)
        self.say("[green]Item deleted.[/green]\n")

    def list_items(self):
        items = self.store.list_items()
        if not items:
            self.say("No items found.\n")
            return
        table = Table(title="Items")
        table.add_column("Code")
        table.add_column("Name")
        table.add_column("Unit Price", justify="right")
        for item in items:
            table.add_row(escape(item.code), escape(item.name), f"{item.unit_price:.2f}")
        self.console.print(table)
        self.say()

    # ------------------------------------------------------------------
    # Billing
    # ------------------------------------------------------------------
    def calculate_and_print_bill(self):
        self.say("\n--- Calculate & Print Bill ---")
        account_no = self.read_non_empty("Enter Account Number: ")
        customer = self.store.find_customer(account_no)
        if customer is None:
            self.say("No such customer.\n")
            return

        lines: List[Tuple[Item, int]] = []
        if self.store.list_items():
            adding = self.confirm("Add items to bill?")
            while adding:
                self.list_items()
                code = self.read_non_empty("Enter Item Code: ")
                item = self.store.find_item(code)
                if item is None:
                    self.say("Invalid code.")
                else:
                    quantity = self.read_int("Quantity: ", minimum=1, maximum=MAX_QUANTITY)
                    lines.append((item, quantity))
                    self.say(f"Added: {escape(item.name)} x {quantity} = {item.unit_price * quantity:.2f}")
                adding = self.confirm("Add another item?")

        bill = CalculationService.calculate_bill(customer.account_no, customer.units_consumed, lines)
        self.store.append_bill(bill)
        self.print_receipt(customer, bill)

    def print_receipt(self, customer: Customer, bill: Bill):
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("label")
        table.add_column("value", justify="right")
        table.add_row("Bill ID", escape(bill.bill_id))
        table.add_row("Date/Time", bill.created_at.strftime("%Y-%m-%d %H:%M"))
        table.add_row("Account No", escape(customer.account_no))
        table.add_row("Customer", escape(customer.name))
        table.add_row("Telephone", escape(customer.phone))
        table.add_section()
        table.add_row("Units Consumed", str(bill.units))
        table.add_row("Energy Charge", f"{bill.energy_charge:.2f}")
        for line in bill.lines:
            table.add_row(
                f"  {escape(line.item_name)} x {line.quantity}",
                f"{line.line_total:.2f}",
            )
        table.add_row("Items Total", f"{bill.item_total:.2f}")
        table.add_row(f"Tax ({TAX_RATE * 100:.0f}%)", f"{bill.tax:.2f}")
        table.add_section()
        table.add_row("[bold]GRAND TOTAL[/bold]", f"[bold]{bill.grand_total:.2f}[/bold]")

        title = f"{escape(settings.COMPANY_NAME.upper())} - BILL RECEIPT"
        self.console.print(Panel(table, title=title, width=50))
        self.say()

    def show_help(self):
        self.say("\n--- Help: System Usage Guidelines ---")
        for number, line in enumerate(HELP_TEXT, start=1):
            self.say(f"{number}) {escape(line.format(data_dir=settings.DATA_DIR))}")
        self.say()


def main():
    setup_logging(frontend="console", console=False)
    console = Console()
    store = CSVStore(settings.DATA_DIR)
    try:
        store.init_storage()
        store.load_all()
        admin = store.ensure_default_admin(settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD)
    except MalformedRowError as e:
        console.print(f"[red]Data file is corrupt, refusing to start: {escape(str(e))}[/red]")
        return 1
    except StorageError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    if admin is not None:
        console.print(
            f"[yellow]Default admin created - username: {escape(settings.DEFAULT_ADMIN_USERNAME)}, "
            f"password: {escape(settings.DEFAULT_ADMIN_PASSWORD)}[/yellow]\n"
        )

    BillingConsole(store, console=console).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
