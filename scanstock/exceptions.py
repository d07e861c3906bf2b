"""
Typed exceptions for the inventory service.

Every error carries a machine-readable ``code`` (the value of the ``error``
key in JSON responses), the HTTP status it maps to, and any structured
extras the caller needs. The API renders them in one exception handler and
the scanner client raises the same classes back from error responses, so
both sides catch by type rather than by message.

    ScanStockError              SERVER_ERROR      500
    +-- ItemNotFound            ITEM_NOT_FOUND    404
    +-- MissingFields           MISSING_FIELDS    400
    |   +-- MissingBarcode      MISSING_BARCODE   400
    +-- InvalidField            INVALID_FIELD     400
    +-- OutOfStock              OUT_OF_STOCK      409
    +-- ImmutableEvent          IMMUTABLE_EVENT   500
"""
from typing import Any, Dict, List, Optional


class ScanStockError(Exception):
    """Base class for all inventory service errors."""

    code: str = "SERVER_ERROR"
    status_code: int = 500

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code}


class ItemNotFound(ScanStockError):
    """No catalog item has the given scan code."""

    code = "ITEM_NOT_FOUND"
    status_code = 404

    def __init__(self, scanned_code: Optional[str] = None):
        self.scanned_code = scanned_code
        super().__init__(f"Item not found: {scanned_code}")


class MissingFields(ScanStockError):
    """Required request fields are absent or blank."""

    code = "MISSING_FIELDS"
    status_code = 400

    def __init__(self, required: Optional[List[str]] = None):
        self.required = required or []
        super().__init__(f"Missing required fields: {', '.join(self.required)}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "required": self.required}


class MissingBarcode(MissingFields):
    code = "MISSING_BARCODE"

    def __init__(self):
        super().__init__(["barcode"])

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code}


class InvalidField(ScanStockError):
    """A field name outside the filterable allow-list was used."""

    code = "INVALID_FIELD"
    status_code = 400

    def __init__(self, field: Optional[str] = None):
        self.field = field
        super().__init__(f"Invalid field: {field}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "field": self.field}


class OutOfStock(ScanStockError):
    """Removal confirmed against an item whose on-hand quantity is zero."""

    code = "OUT_OF_STOCK"
    status_code = 409

    def __init__(self, scanned_code: Optional[str] = None):
        self.scanned_code = scanned_code
        super().__init__(f"Out of stock: {scanned_code}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "onHand": 0}


class ImmutableEvent(ScanStockError):
    """Attempt to update or delete a stock event row."""

    code = "IMMUTABLE_EVENT"

