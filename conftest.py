import pytest

from book_inventory.database import Database
from book_inventory.inventory import InventoryStore


@pytest.fixture
def db_file(tmp_path, request):
    # Unique database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def database(db_file):
    db = Database(db_file)
    db.initialize()
    return db


@pytest.fixture
def store(database):
    return InventoryStore(database)
