import io
import zipfile

import pytest

from keitruckhub.errors import InvalidInput
from keitruckhub.importer import import_workbook, read_rows
from keitruckhub.store import MemoryRecordStore

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def replace_member(content, member, data):
    """Copy the .xlsx archive in ``content`` with ``member`` swapped for ``data``."""
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(content)) as src, zipfile.ZipFile(out, "w") as dst:
        for item in src.infolist():
            dst.writestr(item, data if item.filename == member else src.read(item.filename))
    return out.getvalue()


def test_read_rows_converts_numeric_text_cells(make_workbook):
    content = make_workbook([[360, "Mazda Scrum", 1995, None, None]])
    assert read_rows(content) == [
        (2, {"id": "360", "name": "Mazda Scrum", "year": 1995, "description": None, "image_url": None}),
    ]


def test_read_rows_rejects_garbage():
    with pytest.raises(InvalidInput) as excinfo:
        read_rows(b"not a workbook")
    assert "readable .xlsx" in excinfo.value.details[0]


def test_import_reports_skipped_rows(make_workbook):
    store = MemoryRecordStore()
    content = make_workbook([
        ["suzuki", "Suzuki Carry", 1999, "Workhorse", "/uploads/carry.webp"],
        ["old", "Too Old", 1800, None, None],
        ["suzuki", "Duplicate Carry", 2000, None, None],
        ["   ", None, None, None, None],
        ["honda", "Honda Acty", "1997", None, None],
    ])

    result = import_workbook(store, content)

    assert result == {
        "success": True,
        "imported": 2,
        "skipped": [
            {"row": 3, "errors": ["year must be between 1900 and 2100"]},
            {"row": 4, "errors": ["Model 'suzuki' already exists"]},
        ],
    }
    carry = store.find_by_id("suzuki")
    assert carry.description == "Workhorse"
    assert carry.image_url == "/uploads/carry.webp"
    assert store.find_by_id("honda").description == ""


def test_import_endpoint(client, make_workbook):
    content = make_workbook([["hijet", "Daihatsu Hijet", 2001, None, None]])
    resp = client.post("/api/models/import", files={"file": ("catalog.xlsx", content, XLSX)})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "imported": 1, "skipped": []}
    assert client.get("/api/models/hijet").json()["name"] == "Daihatsu Hijet"


def test_import_endpoint_rejects_other_files(client):
    resp = client.post("/api/models/import", files={"file": ("catalog.csv", b"id,name", "text/csv")})
    assert resp.status_code == 400
    assert resp.json()["details"] == ["file must be an .xlsx workbook"]


def test_import_endpoint_requires_file(client):
    resp = client.post("/api/models/import", data={})
    assert resp.status_code == 400
    assert resp.json()["details"] == ["file is required"]


@pytest.mark.parametrize("member", ["xl/workbook.xml", "xl/worksheets/sheet1.xml"])
def test_import_endpoint_rejects_corrupt_workbook(client, make_workbook, member):
    content = make_workbook([["hijet", "Daihatsu Hijet", 2001, None, None]])
    broken = replace_member(content, member, b"<worksheet><sheetData><row><c>broken")

    resp = client.post("/api/models/import", files={"file": ("catalog.xlsx", broken, XLSX)})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid input"
    assert "readable .xlsx" in resp.json()["details"][0]
    assert client.get("/api/models/hijet").status_code == 404


def test_import_reports_ids_that_cannot_be_routed(make_workbook):
    store = MemoryRecordStore()
    content = make_workbook([["kei/truck", "Slashed Truck", 2001, None, None]])

    result = import_workbook(store, content)

    assert result["imported"] == 0
    assert result["skipped"] == [
        {"row": 2, "errors": ["id may only contain letters, digits, '-' and '_'"]},
    ]
    assert store.count() == 0
