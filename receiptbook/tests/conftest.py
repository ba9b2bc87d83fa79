import os
import sys
from pathlib import Path

import pytest

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from receiptbook.db import Storage  # noqa: E402
from receiptbook.migrations import ensure_schema  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _isolated_default_db(tmp_path_factory):
    # Anything that falls back to the configured path (e.g. importing
    # receiptbook.api) must never touch a real database.
    path = tmp_path_factory.mktemp("default") / "receipts_default.db"
    os.environ["RECEIPTBOOK_DB_PATH"] = str(path)
    yield str(path)


@pytest.fixture()
def tmp_db_path(tmp_path):
    return str(tmp_path / "receipts_test.db")


@pytest.fixture()
def storage(tmp_db_path):
    st = Storage(tmp_db_path)
    ensure_schema(st)
    yield st
    st.close()


@pytest.fixture()
def offline_storage():
    return Storage(None, persistent=False)


@pytest.fixture()
def client(storage):
    from fastapi.testclient import TestClient
    from receiptbook.api import create_app

    app = create_app(storage)
    with TestClient(app) as c:
        yield c
