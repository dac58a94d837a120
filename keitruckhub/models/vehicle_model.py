from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from keitruckhub.errors import InvalidInput

YEAR_MIN = 1900
YEAR_MAX = 2100
MIN_TEXT_LENGTH = 2
# ids are used as a single URL path segment
ID_PATTERN = r"^[A-Za-z0-9_-]+$"


class VehicleModel(BaseModel):
    """
    A kei truck model as stored in the catalog and returned by the API.
    The image path travels as ``imageUrl`` on the wire.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique, human-readable identifier (ex: 'suzuki').")
    name: str = Field(..., description="Display name (ex: 'Suzuki Carry').")
    year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)
    description: str = ""
    image_url: str = Field("", alias="imageUrl", description="Server-relative path of the uploaded image.")

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ----------------------------------------------------
# Input schemas. Strings are stripped before the
# length checks run; year is coerced to int.
# ----------------------------------------------------
class VehicleModelCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str = Field(..., min_length=MIN_TEXT_LENGTH, pattern=ID_PATTERN)
    name: str = Field(..., min_length=MIN_TEXT_LENGTH)
    year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)
    description: str = ""


class VehicleModelUpdate(BaseModel):
    # id is not part of an update; a submitted id is dropped
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=MIN_TEXT_LENGTH)
    year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)
    description: str = ""


def _clean(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Strip strings and drop blank values so they count as missing."""
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        if value is None:
            continue
        cleaned[key] = value
    return cleaned


def _describe(error: Mapping[str, Any]) -> str:
    field = error["loc"][0] if error["loc"] else "input"
    kind = error["type"]
    ctx = error.get("ctx") or {}

    if kind == "missing":
        return f"{field} is required"
    if kind == "string_too_short":
        return f"{field} must be at least {ctx.get('min_length', MIN_TEXT_LENGTH)} characters"
    if kind == "string_pattern_mismatch":
        return f"{field} may only contain letters, digits, '-' and '_'"
    if kind in ("greater_than_equal", "less_than_equal"):
        return f"{field} must be between {YEAR_MIN} and {YEAR_MAX}"
    if kind in ("int_parsing", "int_type", "int_from_float"):
        return f"{field} must be a whole number"
    if kind == "string_type":
        return f"{field} must be text"
    return f"{field}: {error['msg']}"


def _violations(exc: ValidationError) -> List[str]:
    return [_describe(error) for error in exc.errors()]


def validate_create(data: Mapping[str, Any]) -> VehicleModelCreate:
    """Validate the fields of a create request or raise ``InvalidInput``."""
    try:
        return VehicleModelCreate(**_clean(data))
    except ValidationError as exc:
        raise InvalidInput(_violations(exc)) from None


def validate_update(data: Mapping[str, Any]) -> VehicleModelUpdate:
    """Validate the fields of an update request or raise ``InvalidInput``."""
    try:
        return VehicleModelUpdate(**_clean(data))
    except ValidationError as exc:
        raise InvalidInput(_violations(exc)) from None
