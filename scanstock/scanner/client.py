"""
HTTP client for the inventory API, used by the scan session.

Error responses are turned back into the service's typed exceptions
(ItemNotFound, OutOfStock, ...) so callers handle them by type. Anything
else surfaces as an ``httpx.HTTPError``.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote

import httpx

from scanstock.config import settings
from scanstock.exceptions import (
    InvalidField,
    ItemNotFound,
    MissingBarcode,
    MissingFields,
    OutOfStock,
    ScanStockError,
)

# Query-string keys of the filterable columns, in display order
FILTERABLE = (
    "brand",
    "model",
    "size",
    "color",
    "purchasedfrom",
    "scannedcode",
    "notes",
    "soldorder",
)

_ERRORS = {
    ItemNotFound.code: lambda body: ItemNotFound(body.get("code")),
    OutOfStock.code: lambda body: OutOfStock(),
    InvalidField.code: lambda body: InvalidField(body.get("field")),
    MissingFields.code: lambda body: MissingFields(body.get("required")),
    MissingBarcode.code: lambda body: MissingBarcode(),
    ScanStockError.code: lambda body: ScanStockError(),
}


class InventoryClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.http = http or httpx.Client(
            base_url=base_url or settings.API_URL,
            timeout=timeout or settings.API_TIMEOUT,
        )

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # -------------------------------
    # Helpers
    # -------------------------------
    def _json(self, response: httpx.Response) -> Any:
        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        factory = _ERRORS.get(body.get("error")) if isinstance(body, dict) else None
        if factory is not None:
            raise factory(body)
        response.raise_for_status()

    # -------------------------------
    # Items
    # -------------------------------
    def get_item(self, code: str) -> Optional[Dict[str, Any]]:
        """Item by scan code, or None when it is not in the catalog."""
        try:
            return self._json(self.http.get(f"/items/{quote(code, safe='')}"))
        except ItemNotFound:
            return None

    def create_item(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return self._json(self.http.post("/items", json=dict(fields)))

    def search(
        self,
        term: str = "",
        filters: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> List[Dict[str, Any]]:
        params = []
        if term:
            params.append(("q", term))
        for key, selected in (filters or {}).items():
            values = sorted(selected)
            if values:
                params.append((key, ",".join(values)))
        return self._json(self.http.get("/items/search", params=params))

    def distinct(self, field: str) -> List[Dict[str, Any]]:
        return self._json(self.http.get("/items/distinct", params={"field": field}))

    # -------------------------------
    # Inventory
    # -------------------------------
    def add(self, barcode: str) -> Dict[str, Any]:
        return self._json(self.http.post("/inventory/add", json={"barcode": barcode}))

    def initiate_remove(self, barcode: str) -> Dict[str, Any]:
        return self._json(
            self.http.post("/inventory/remove/initiate", json={"barcode": barcode})
        )

    def confirm_remove(
        self,
        barcode: str,
        order_id: Optional[str] = None,
        source: Optional[str] = None,
        date_subtracted: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        body = {
            "barcode": barcode,
            "orderId": order_id,
            "source": source,
            "dateSubtracted": date_subtracted.isoformat() if date_subtracted else None,
        }
        return self._json(self.http.post("/inventory/remove/confirm", json=body))
