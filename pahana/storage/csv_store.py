import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from ..auth import hash_password, verify_password
from ..core.exceptions import ConflictError, MalformedRowError, NotFoundError, StorageError
from ..core.logging import app_logger
from ..schemas.schemas import (
    Bill,
    Customer,
    CustomerCreate,
    CustomerUpdate,
    Item,
    ItemCreate,
    ItemUpdate,
    User,
)
from . import csv_codec

USERS_FILE = "users.csv"
CUSTOMERS_FILE = "customers.csv"
ITEMS_FILE = "items.csv"
BILLS_FILE = "bills.csv"


class CSVStore:
    """
    Users, customers and items held in memory and mirrored to CSV files.

    Everything is loaded once by ``load_all``. Each mutation rewrites the
    affected file through a temporary file and an atomic rename; when that
    fails the in-memory collection is restored and StorageError is raised.
    Bills are only ever appended.
    """

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self.users_path = self.data_dir / USERS_FILE
        self.customers_path = self.data_dir / CUSTOMERS_FILE
        self.items_path = self.data_dir / ITEMS_FILE
        self.bills_path = self.data_dir / BILLS_FILE

        # users are keyed by lower-cased username
        self.users: Dict[str, User] = {}
        self.customers: Dict[str, Customer] = {}
        self.items: Dict[str, Item] = {}

    # ------------------------------------------------------------------
    # Loading and flushing
    # ------------------------------------------------------------------
    def init_storage(self):
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.users_path, self.customers_path, self.items_path, self.bills_path):
                path.touch(exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot prepare data directory {self.data_dir}: {e}") from e

    def load_all(self):
        self.users = {u.username.lower(): u for u in self._read(self.users_path, csv_codec.load_user)}
        self.customers = {c.account_no: c for c in self._read(self.customers_path, csv_codec.load_customer)}
        self.items = {i.code: i for i in self._read(self.items_path, csv_codec.load_item)}
        app_logger.info(
            f"Loaded {len(self.users)} users, {len(self.customers)} customers, "
            f"{len(self.items)} items from {self.data_dir}"
        )

    def save_all(self):
        self._flush(self.users_path, self.users.values(), csv_codec.dump_user)
        self._flush(self.customers_path, self.customers.values(), csv_codec.dump_customer)
        self._flush(self.items_path, self.items.values(), csv_codec.dump_item)

    def _read(self, path: Path, loader: Callable[[str], object]) -> List:
        records = []
        try:
            with open(path, encoding="utf-8") as fh:
                for line_no, line in enumerate(fh, start=1):
                    line = line.rstrip("\r\n")
                    if not line.strip():
                        continue
                    try:
                        records.append(loader(line))
                    except MalformedRowError as e:
                        app_logger.error(f"Malformed row in {path}:{line_no}: {e.reason}")
                        raise MalformedRowError(e.reason, source=str(path), line_no=line_no) from e
        except OSError as e:
            app_logger.warning(f"Could not read {path}: {e}")
            return []
        return records

    def _flush(self, path: Path, records: Iterable, dumper: Callable[[object], str]):
        lines = [dumper(record) + "\n" for record in records]
        try:
            fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.writelines(lines)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, path)
            except OSError:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            app_logger.error(f"Error saving {path}: {e}")
            raise StorageError(f"Could not save {path.name}: {e}") from e

    @contextmanager
    def _transaction(self, collection: Dict, path: Path, dumper: Callable[[object], str]):
        snapshot = dict(collection)
        try:
            yield
            self._flush(path, collection.values(), dumper)
        except Exception:
            collection.clear()
            collection.update(snapshot)
            raise

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def ensure_default_admin(self, username: str, password: str) -> Optional[User]:
        """Create the default admin when the user set is empty."""
        if self.users:
            return None

        admin = User(username=username, password_hash=hash_password(password))
        with self._transaction(self.users, self.users_path, csv_codec.dump_user):
            self.users[username.lower()] = admin

        app_logger.warning(f"Default admin created - username: {username}; change its password")
        return admin

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self.users.get(username.strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------
    def list_customers(self) -> List[Customer]:
        return list(self.customers.values())

    def find_customer(self, account_no: str) -> Optional[Customer]:
        return self.customers.get(account_no)

    def get_customer(self, account_no: str) -> Customer:
        customer = self.customers.get(account_no)
        if customer is None:
            raise NotFoundError("Customer", account_no)
        return customer

    def add_customer(self, data: CustomerCreate) -> Customer:
        if data.account_no in self.customers:
            raise ConflictError("Customer", data.account_no)

        customer = Customer(**data.model_dump())
        with self._transaction(self.customers, self.customers_path, csv_codec.dump_customer):
            self.customers[customer.account_no] = customer

        app_logger.info(f"Created customer {customer.account_no}: {customer.name}")
        return customer

    def update_customer(self, account_no: str, data: CustomerUpdate) -> Customer:
        customer = self.get_customer(account_no).model_copy(update=data.changes())
        with self._transaction(self.customers, self.customers_path, csv_codec.dump_customer):
            self.customers[account_no] = customer

        app_logger.info(f"Updated customer {account_no}")
        return customer

    def delete_customer(self, account_no: str):
        self.get_customer(account_no)
        with self._transaction(self.customers, self.customers_path, csv_codec.dump_customer):
            del self.customers[account_no]

        app_logger.info(f"Deleted customer {account_no}")

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------
    def list_items(self) -> List[Item]:
        return list(self.items.values())

    def find_item(self, code: str) -> Optional[Item]:
        return self.items.get(code)

    def get_item(self, code: str) -> Item:
        item = self.items.get(code)
        if item is None:
            raise NotFoundError("Item", code)
        return item

    def add_item(self, data: ItemCreate) -> Item:
        if data.code in self.items:
            raise ConflictError("Item", data.code)

        item = Item(**data.model_dump())
        with self._transaction(self.items, self.items_path, csv_codec.dump_item):
            self.items[item.code] = item

        app_logger.info(f"Created item {item.code}: {item.name} @ {item.unit_price}")
        return item

    def update_item(self, code: str, data: ItemUpdate) -> Item:
        item = self.get_item(code).model_copy(update=data.changes())
        with self._transaction(self.items, self.items_path, csv_codec.dump_item):
            self.items[code] = item

        app_logger.info(f"Updated item {code}")
        return item

    def delete_item(self, code: str):
        self.get_item(code)
        with self._transaction(self.items, self.items_path, csv_codec.dump_item):
            del self.items[code]

        app_logger.info(f"Deleted item {code}")

    # ------------------------------------------------------------------
    # Bills
    # ------------------------------------------------------------------
    def append_bill(self, bill: Bill):
        line = csv_codec.dump_bill(bill) + "\n"
        try:
            with open(self.bills_path, "a", encoding="utf-8") as fh:
                fh.write(line)
        except OSError as e:
            app_logger.error(f"Error appending bill {bill.bill_id}: {e}")
            raise StorageError(f"Could not save bill {bill.bill_id}: {e}") from e

        app_logger.info(f"Created bill {bill.bill_id} for {bill.account_no} with grand total {bill.grand_total}")

    def list_bills(self, account_no: Optional[str] = None) -> List[Bill]:
        bills = self._read(self.bills_path, csv_codec.load_bill)
        if account_no:
            bills = [b for b in bills if b.account_no == account_no]
        return bills
