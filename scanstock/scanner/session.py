"""
Scan session: interprets a stream of scanned strings.

Three reserved mode codes switch between ADD, REMOVE and SEARCH from any
state. Any other input is a payload for the active mode:

- IDLE: rejected, pick a mode first
- ADD / REMOVE: a scan code; unknown codes open the create-item sub-flow,
  known ones go to add or remove-initiate
- SEARCH: free text for the catalog search

A CONFIRM_REQUIRED answer from remove-initiate parks the session on a
pending removal until ``confirm_removal`` or ``cancel_removal``.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

import httpx
from loguru import logger

from scanstock.config import settings
from scanstock.exceptions import MissingFields, OutOfStock, ScanStockError
from scanstock.scanner.client import InventoryClient

CLIENT_ERRORS = (ScanStockError, httpx.HTTPError)


class Mode(str, enum.Enum):
    IDLE = "idle"
    ADD = "add"
    REMOVE = "remove"
    SEARCH = "search"


def display_name(item: Mapping[str, Any]) -> str:
    return f"{(item.get('Brand') or '').strip()} {item.get('Model') or ''}".strip()


@dataclass
class PendingRemoval:
    item: Dict[str, Any]
    on_hand: int


class ScanSession:
    def __init__(
        self,
        client: InventoryClient,
        add_code: Optional[str] = None,
        remove_code: Optional[str] = None,
        search_code: Optional[str] = None,
    ):
        self.client = client
        self.add_code = add_code or settings.ADD_ACTION_CODE
        self.remove_code = remove_code or settings.REMOVE_ACTION_CODE
        self.search_code = search_code or settings.SEARCH_ACTION_CODE
        self.mode_codes = {
            self.add_code: Mode.ADD,
            self.remove_code: Mode.REMOVE,
            self.search_code: Mode.SEARCH,
        }

        self.mode = Mode.IDLE
        self.toast = ""

        # sub-flows
        self.pending_code: Optional[str] = None
        self.pending_removal: Optional[PendingRemoval] = None

        # search
        self.search_term = ""
        self.results: List[Dict[str, Any]] = []
        self.summary = ""
        self.filters: Dict[str, FrozenSet[str]] = {}
        self.facets: Dict[str, List[Dict[str, Any]]] = {}
        self._search_seq = 0

    @property
    def awaiting_create(self) -> bool:
        return self.pending_code is not None

    @property
    def awaiting_confirmation(self) -> bool:
        return self.pending_removal is not None

    def _say(self, message: str) -> str:
        self.toast = message
        return message

    # --------------------------
    # Input
    # --------------------------
    def submit(self, text: str) -> str:
        code = (text or "").strip()
        if not code:
            return self.toast

        mode = self.mode_codes.get(code)
        if mode is not None:
            return self.switch_mode(mode)

        if self.mode is Mode.IDLE:
            return self._say(
                f"No mode selected. Scan {self.add_code}, {self.remove_code}, "
                f"or {self.search_code} first."
            )

        if self.awaiting_create or self.awaiting_confirmation:
            return self._say("Finish the pending step first.")

        if self.mode is Mode.SEARCH:
            self.search_term = code
            self._say("")
            self.apply_filters(self.filters)
            return self.toast

        try:
            item = self.client.get_item(code)
            if item is None:
                self.pending_code = code
                return self._say("Unknown item. Please create it.")
            return self._handle_item(item)
        except CLIENT_ERRORS:
            logger.exception(f"Scan failed in {self.mode.value} mode: {code}")
            return self._say("Error processing")

    def switch_mode(self, mode: Mode) -> str:
        self.mode = mode
        self.pending_code = None
        self.pending_removal = None
        self.results = []
        self.summary = ""
        self.filters = {}
        logger.info(f"Scan mode: {mode.value}")
        self._say(f"{mode.value.capitalize()} mode enabled.")

        if mode is Mode.SEARCH:
            self.search_term = ""
            self.apply_filters({})
        return self.toast

    def _handle_item(self, item: Dict[str, Any], created: bool = False) -> str:
        name = display_name(item)

        if self.mode is Mode.ADD:
            self.client.add(item["ScannedCode"])
            if created:
                return self._say(f"Item created and added: {name}")
            return self._say(f"Added: {name}")

        data = self.client.initiate_remove(item["ScannedCode"])
        if data["status"] == "CONFIRM_REQUIRED":
            self.pending_removal = PendingRemoval(item=data["item"], on_hand=data["onHand"])
            return self._say("Confirm removal")
        if created:
            return self._say(f"Item created and registered with quantity 0: {name}")
        return self._say(f"{name} is not in stock (registered at 0).")

    # --------------------------
    # Create-item sub-flow
    # --------------------------
    def complete_create(self, fields: Mapping[str, Any]) -> str:
        """
        Create the pending item, then carry on as if it had just been scanned
        in the current mode.
        """
        if not self.awaiting_create:
            return self._say("Nothing to create.")

        payload = dict(fields)
        payload.setdefault("ScannedCode", self.pending_code)

        try:
            item = self.client.create_item(payload)
        except MissingFields:
            return self._say("ScannedCode and Model are required.")
        except CLIENT_ERRORS:
            logger.exception(f"Create failed for {payload.get('ScannedCode')}")
            return self._say("Failed to create item")

        self.pending_code = None
        try:
            return self._handle_item(item, created=True)
        except CLIENT_ERRORS:
            logger.exception(f"Post-create action failed for {item.get('ScannedCode')}")
            return self._say("Post-create action failed")

    def cancel_create(self) -> str:
        self.pending_code = None
        return self._say("")

    # --------------------------
    # Remove confirmation sub-flow
    # --------------------------
    def confirm_removal(
        self,
        order_id: Optional[str] = None,
        source: Optional[str] = None,
        date_subtracted: Optional[datetime] = None,
    ) -> str:
        if not self.awaiting_confirmation:
            return self._say("Nothing to confirm.")

        pending = self.pending_removal
        try:
            data = self.client.confirm_remove(
                pending.item["ScannedCode"],
                order_id=order_id,
                source=source,
                date_subtracted=date_subtracted,
            )
            return self._say(
                f"Removed 1: {display_name(pending.item)}. New on-hand: {data['onHand']}"
            )
        except OutOfStock:
            return self._say("Already out of stock.")
        except CLIENT_ERRORS:
            logger.exception(f"Remove confirm failed for {pending.item.get('ScannedCode')}")
            return self._say("Failed to remove")
        finally:
            self.pending_removal = None

    def cancel_removal(self) -> str:
        self.pending_removal = None
        return self._say("Removal cancelled.")

    # --------------------------
    # Search & filters
    # --------------------------
    def apply_filters(self, snapshot: Mapping[str, Iterable[str]]) -> List[Dict[str, Any]]:
        """
        Run the search with the current term and exactly this filter set.
        A response that arrives after a newer search was issued is dropped.
        """
        filters = {key: frozenset(values) for key, values in snapshot.items() if values}
        self.filters = filters
        term = self.search_term

        self._search_seq += 1
        seq = self._search_seq

        try:
            hits = self.client.search(term, filters)
        except CLIENT_ERRORS:
            logger.exception("Search failed")
            self._say("Search failed")
            return self.results

        if seq != self._search_seq:
            logger.debug(f"Dropping stale search response #{seq}")
            return self.results

        self.results = hits
        label = f' for "{term}"' if term else ""
        self.summary = f"Results{label} - {len(hits)} item(s)"
        return hits

    def toggle_filter(self, field: str, value: str) -> List[Dict[str, Any]]:
        selected = set(self.filters.get(field, ()))
        if value in selected:
            selected.remove(value)
        else:
            selected.add(value)

        snapshot = dict(self.filters)
        snapshot[field] = frozenset(selected)
        return self.apply_filters(snapshot)

    def clear_filter(self, field: str) -> List[Dict[str, Any]]:
        snapshot = dict(self.filters)
        snapshot.pop(field, None)
        return self.apply_filters(snapshot)

    def clear_all_filters(self) -> List[Dict[str, Any]]:
        return self.apply_filters({})

    def load_facets(self, field: str) -> List[Dict[str, Any]]:
        """Filter-menu options for one field, fetched once and cached."""
        if field not in self.facets:
            try:
                self.facets[field] = self.client.distinct(field)
            except CLIENT_ERRORS:
                logger.exception(f"Could not load values for {field}")
                return []
        return self.facets[field]
