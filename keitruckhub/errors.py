from typing import List, Optional

from starlette import status


class CatalogError(Exception):
    """Base error rendered as ``{"error": message}`` with ``status_code``."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


class InvalidInput(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input"

    def __init__(self, details: List[str], message: Optional[str] = None):
        self.details = list(details)
        super().__init__(message)

    def __str__(self) -> str:
        return "; ".join(self.details) or self.message

    def to_body(self) -> dict:
        return {"error": self.message, "details": self.details}


class Conflict(CatalogError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Model '{model_id}' already exists")


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Model not found"


class StorageError(CatalogError):
    # The cause is logged, never sent to the client
    def to_body(self) -> dict:
        return {"error": CatalogError.message}
