import io
from decimal import Decimal

from rich.console import Console

from pahana.console.cli import BillingConsole
from pahana.schemas.schemas import CustomerCreate, ItemCreate


def run_session(store, *lines):
    output = io.StringIO()
    console = Console(file=output, width=100, color_system=None, force_terminal=False)
    stream = io.StringIO("".join(line + "\n" for line in lines))
    BillingConsole(store, console=console, stream=stream).run()
    return output.getvalue()


def seed(store):
    store.ensure_default_admin("admin", "admin123")
    store.add_customer(CustomerCreate(
        account_no="C001", name="Jane Perera", address="12 Galle Road", phone="0771234567", units_consumed=120,
    ))
    store.add_item(ItemCreate(code="PEN", name="Pen", unit_price=Decimal("25.00")))


def test_exit_at_login(store):
    store.ensure_default_admin("admin", "admin123")

    output = run_session(store, "exit")

    assert "Goodbye" in output


def test_bad_login_then_success(store):
    store.ensure_default_admin("admin", "admin123")

    output = run_session(store, "admin", "wrong", "Admin", "admin123", "8")

    assert "Invalid username or password" in output
    assert "Login successful. Welcome, admin!" in output


def test_add_customer_from_menu(store):
    store.ensure_default_admin("admin", "admin123")

    output = run_session(
        store,
        "admin", "admin123",
        "1", "C009", "Ravi Silva", "", "5, Lake Road", "0719999999", "-3", "42",
        "8",
    )

    assert "Value cannot be empty" in output
    assert "Enter a non-negative integer" in output
    customer = store.get_customer("C009")
    assert customer.address == "5, Lake Road"
    assert customer.units_consumed == 42


def test_add_existing_customer_is_refused(store):
    seed(store)

    output = run_session(store, "admin", "admin123", "1", "C001", "8")

    assert "Account already exists" in output


def test_edit_customer_blank_keeps_values(store):
    seed(store)

    run_session(store, "admin", "admin123", "2", "C001", "", "", "011222333", "abc", "8")

    customer = store.get_customer("C001")
    assert customer.name == "Jane Perera"
    assert customer.phone == "011222333"
    assert customer.units_consumed == 120


def test_manage_items(store):
    seed(store)

    output = run_session(
        store,
        "admin", "admin123",
        "3",
        "1", "PEN",
        "1", "RUL", "Ruler", "x", "40",
        "2", "PEN", "", "30",
        "3", "NOPE",
        "3", "RUL",
        "4",
        "5",
        "8",
    )

    assert "Item code exists" in output
    assert "Enter a non-negative number" in output
    assert "No such item" in output
    assert store.get_item("PEN").unit_price == Decimal("30")
    assert store.find_item("RUL") is None


def test_display_all_accounts(store):
    seed(store)

    output = run_session(store, "admin", "admin123", "4", "*", "4", "NOPE", "8")

    assert "Jane Perera" in output
    assert "No customer found." in output


def test_calculate_and_print_bill(store):
    seed(store)

    output = run_session(
        store,
        "admin", "admin123",
        "5", "C001", "y", "PEN", "0", "2", "n",
        "8",
    )

    assert "Enter a positive integer" in output
    assert "Added: Pen x 2 = 50.00" in output
    assert "1400.00" in output
    assert "217.50" in output
    assert "GRAND TOTAL" in output
    assert "1667.50" in output
    bills = store.list_bills("C001")
    assert len(bills) == 1
    assert bills[0].grand_total == Decimal("1667.50")


def test_bill_with_deleted_item_code(store):
    seed(store)
    store.add_item(ItemCreate(code="RUL", name="Ruler", unit_price=Decimal("40")))
    store.delete_item("PEN")

    output = run_session(
        store,
        "admin", "admin123",
        "5", "C001", "y", "PEN", "n",
        "8",
    )

    assert "Invalid code." in output
    assert store.list_bills()[0].item_total == Decimal("0.00")
    assert store.list_bills()[0].grand_total == Decimal("1610.00")


def test_logout_returns_to_login(store):
    store.ensure_default_admin("admin", "admin123")

    output = run_session(store, "admin", "admin123", "7", "exit")

    assert "Logged out." in output
    assert output.count("Type 'exit' at username to quit") == 2


def test_end_of_input_exits_cleanly(store):
    store.ensure_default_admin("admin", "admin123")

    output = run_session(store, "admin", "admin123", "6")

    assert "Help: System Usage Guidelines" in output
    assert "Goodbye" in output


def test_price_beyond_two_decimals_is_asked_again(store):
    seed(store)

    output = run_session(
        store,
        "admin", "admin123",
        "3",
        "1", "RUL", "Ruler", "2.345", "1e30", "2.35",
        "2", "PEN", "", "2.345",
        "5",
        "8",
    )

    assert "at most 2 decimals" in output
    assert "Invalid price. Keeping previous." in output
    assert store.get_item("RUL").unit_price == Decimal("2.35")
    assert store.get_item("PEN").unit_price == Decimal("25.00")


def test_oversized_quantity_and_units_are_asked_again(store):
    seed(store)

    output = run_session(
        store,
        "admin", "admin123",
        "1", "C002", "Ravi", "Lake Road", "0719999999", str(10 ** 30), "7",
        "5", "C001", "y", "PEN", str(10 ** 30), "3", "n",
        "8",
    )

    assert "Enter a non-negative integer up to" in output
    assert "Enter a positive integer up to" in output
    assert store.get_customer("C002").units_consumed == 7
    assert store.list_bills("C001")[0].item_total == Decimal("75.00")
