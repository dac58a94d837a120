"""
Bulk import of catalog models from an Excel workbook.

The first worksheet is read, header row skipped. Columns, in order:
``id, name, year, description, image_url``. Each row goes through the
same validation as ``POST /api/models``; rows that fail validation or
reuse an existing id are reported back instead of aborting the import.
"""

import io
import logging
import zipfile
from typing import Any, Dict, List, Tuple
from xml.etree.ElementTree import ParseError

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from keitruckhub.errors import Conflict, InvalidInput
from keitruckhub.models.vehicle_model import VehicleModel, validate_create
from keitruckhub.store import RecordStore

logger = logging.getLogger(__name__)

COLUMNS = ("id", "name", "year", "description", "image_url")
TEXT_COLUMNS = ("id", "name", "description", "image_url")

# Sheets are parsed lazily in read-only mode, so these can surface while iterating.
# SyntaxError covers lxml parse errors when openpyxl runs on lxml.
UNREADABLE_WORKBOOK = (
    InvalidFileException,
    zipfile.BadZipFile,
    KeyError,
    OSError,
    ParseError,
    SyntaxError,
    ValueError,
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def read_rows(content: bytes) -> List[Tuple[int, Dict[str, Any]]]:
    """Return ``(spreadsheet row number, field dict)`` for each non-blank row."""
    workbook = None
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        sheet = workbook.active
        rows = []
        for row_number, row in enumerate(sheet.iter_rows(min_row=2, values_only=True), start=2):
            values = list(row[:len(COLUMNS)])
            values += [None] * (len(COLUMNS) - len(values))
            if all(_is_blank(value) for value in values):
                continue

            data = dict(zip(COLUMNS, values))
            # Spreadsheet cells come back as numbers when they look like numbers
            for key in TEXT_COLUMNS:
                if data[key] is not None and not isinstance(data[key], str):
                    data[key] = str(data[key])
            rows.append((row_number, data))
        return rows
    except UNREADABLE_WORKBOOK as e:
        raise InvalidInput([f"file is not a readable .xlsx workbook ({e})"]) from e
    finally:
        if workbook is not None:
            workbook.close()


def import_workbook(store: RecordStore, content: bytes) -> Dict[str, Any]:
    imported = 0
    skipped = []

    for row_number, data in read_rows(content):
        try:
            payload = validate_create(data)
            record = VehicleModel(
                **payload.model_dump(),
                image_url=(data.get("image_url") or "").strip(),
            )
            store.create(record)
        except InvalidInput as e:
            skipped.append({"row": row_number, "errors": e.details})
        except Conflict as e:
            skipped.append({"row": row_number, "errors": [e.message]})
        else:
            imported += 1

    logger.info("Imported %d models, skipped %d rows", imported, len(skipped))
    return {"success": True, "imported": imported, "skipped": skipped}
