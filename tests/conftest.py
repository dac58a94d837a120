import io

import openpyxl
import pytest
from fastapi.testclient import TestClient

from keitruckhub.config import Settings
from keitruckhub.database import build_engine
from keitruckhub.store import MemoryRecordStore, SqlRecordStore
from main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'catalog.db'}",
        upload_dir=tmp_path / "uploads",
        seed_catalog=False,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        record_store = MemoryRecordStore()
    else:
        record_store = SqlRecordStore(build_engine(f"sqlite:///{tmp_path / 'store.db'}"))
    record_store.initialize()
    return record_store


@pytest.fixture
def kei_form():
    return {"id": "kei1", "name": "Test Truck", "year": "2000"}


@pytest.fixture
def make_workbook():
    return build_workbook


def build_workbook(rows):
    """Return .xlsx bytes with the import header row followed by ``rows``."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(["id", "name", "year", "description", "image_url"])
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
