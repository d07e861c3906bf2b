"""
Tests for the scan session state machine, driven through the real API
via the TestClient, plus a couple of fake clients for ordering and caching.
"""
import httpx

from scanstock.inventory import service as inventory_service
from scanstock.scanner.session import Mode, PendingRemoval, ScanSession

ADD_CODE = "##ADD##"
REMOVE_CODE = "##REMOVE##"
SEARCH_CODE = "##SEARCH##"


def on_hand(scan, code):
    hits = scan.client.search(code, {"scannedcode": [code]})
    return hits[0]["onHand"]


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def test_idle_rejects_payloads(scan, make_item):
    make_item("X1")

    message = scan.submit("X1")

    assert scan.mode is Mode.IDLE
    assert message == "No mode selected. Scan ##ADD##, ##REMOVE##, or ##SEARCH## first."
    assert on_hand(scan, "X1") == 0


def test_mode_codes(scan):
    assert scan.submit(ADD_CODE) == "Add mode enabled."
    assert scan.mode is Mode.ADD
    assert scan.submit(f"  {REMOVE_CODE}\n") == "Remove mode enabled."
    assert scan.mode is Mode.REMOVE
    assert scan.submit(SEARCH_CODE) == "Search mode enabled."
    assert scan.mode is Mode.SEARCH


def test_blank_input_is_ignored(scan):
    scan.submit(ADD_CODE)

    assert scan.submit("   ") == "Add mode enabled."


# ---------------------------------------------------------------------------
# Add
# ---------------------------------------------------------------------------


def test_add_known_item(scan, make_item):
    make_item("X1", model="Tee", brand="Acme")
    scan.submit(ADD_CODE)

    assert scan.submit("X1") == "Added: Acme Tee"
    assert scan.submit("X1") == "Added: Acme Tee"
    assert on_hand(scan, "X1") == 2


def test_add_unknown_item_creates_then_adds(scan):
    scan.submit(ADD_CODE)

    assert scan.submit("NEW1") == "Unknown item. Please create it."
    assert scan.awaiting_create
    assert scan.pending_code == "NEW1"

    message = scan.complete_create({"Model": "Hoodie", "Brand": "Bolt"})

    assert message == "Item created and added: Bolt Hoodie"
    assert not scan.awaiting_create
    assert on_hand(scan, "NEW1") == 1


def test_create_requires_model(scan):
    scan.submit(ADD_CODE)
    scan.submit("NEW1")

    assert scan.complete_create({"Model": " "}) == "ScannedCode and Model are required."
    assert scan.awaiting_create
    assert scan.submit("OTHER") == "Finish the pending step first."


def test_cancel_create(scan):
    scan.submit(ADD_CODE)
    scan.submit("NEW1")

    scan.cancel_create()

    assert not scan.awaiting_create
    assert scan.client.get_item("NEW1") is None
    assert scan.complete_create({"Model": "x"}) == "Nothing to create."


# ---------------------------------------------------------------------------
# Remove
# ---------------------------------------------------------------------------


def test_remove_with_stock_confirmed(scan, db, make_item):
    make_item("X1", model="Tee", brand="Acme")
    inventory_service.add_one(db, "X1")
    inventory_service.add_one(db, "X1")
    scan.submit(REMOVE_CODE)

    assert scan.submit("X1") == "Confirm removal"
    assert scan.awaiting_confirmation
    assert scan.pending_removal.on_hand == 2

    message = scan.confirm_removal(order_id="ORD-1", source="Shop")

    assert message == "Removed 1: Acme Tee. New on-hand: 1"
    assert not scan.awaiting_confirmation
    assert on_hand(scan, "X1") == 1


def test_remove_cancelled(scan, db, make_item):
    make_item("X1")
    inventory_service.add_one(db, "X1")
    scan.submit(REMOVE_CODE)
    scan.submit("X1")

    assert scan.cancel_removal() == "Removal cancelled."
    assert not scan.awaiting_confirmation
    assert on_hand(scan, "X1") == 1
    assert scan.confirm_removal() == "Nothing to confirm."


def test_remove_at_zero_registers(scan, make_item):
    make_item("X1", model="Tee", brand="Acme")
    scan.submit(REMOVE_CODE)

    assert scan.submit("X1") == "Acme Tee is not in stock (registered at 0)."
    assert not scan.awaiting_confirmation


def test_remove_unknown_item_creates_at_zero(scan):
    scan.submit(REMOVE_CODE)
    scan.submit("NEW1")

    message = scan.complete_create({"Model": "Cap"})

    assert message == "Item created and registered with quantity 0: Cap"
    assert on_hand(scan, "NEW1") == 0


def test_confirm_after_concurrent_removal(scan, db, make_item):
    make_item("X1")
    inventory_service.add_one(db, "X1")
    scan.submit(REMOVE_CODE)
    scan.submit("X1")

    # another station takes the last unit first
    inventory_service.confirm_remove(db, "X1")

    assert scan.confirm_removal() == "Already out of stock."
    assert not scan.awaiting_confirmation
    assert on_hand(scan, "X1") == 0


def test_mode_code_clears_pending_removal(scan, db, make_item):
    make_item("X1")
    inventory_service.add_one(db, "X1")
    scan.submit(REMOVE_CODE)
    scan.submit("X1")

    scan.submit(ADD_CODE)

    assert not scan.awaiting_confirmation
    assert on_hand(scan, "X1") == 1


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def test_search_mode_browses(scan, make_item):
    make_item("1", model="Tee", brand="Acme")
    make_item("2", model="Cap", brand="Bolt")

    scan.submit(SEARCH_CODE)

    assert [hit["ScannedCode"] for hit in scan.results] == ["1", "2"]
    assert scan.summary == "Results - 2 item(s)"


def test_search_term(scan, make_item):
    make_item("1", model="Tee", brand="Acme")
    make_item("2", model="Cap", brand="Bolt")
    scan.submit(SEARCH_CODE)

    scan.submit("tee")

    assert [hit["ScannedCode"] for hit in scan.results] == ["1"]
    assert scan.summary == 'Results for "tee" - 1 item(s)'
    assert scan.toast == ""


def test_toggle_filters(scan, make_item):
    make_item("1", brand="Acme", size="M")
    make_item("2", brand="Bolt", size="M")
    make_item("3", brand="Cord", size="L")
    scan.submit(SEARCH_CODE)

    scan.toggle_filter("brand", "Acme")
    scan.toggle_filter("brand", "Cord")
    assert [hit["ScannedCode"] for hit in scan.results] == ["1", "3"]

    scan.toggle_filter("size", "M")
    assert [hit["ScannedCode"] for hit in scan.results] == ["1"]

    scan.toggle_filter("brand", "Acme")
    assert scan.results == []
    assert scan.filters == {"brand": frozenset({"Cord"}), "size": frozenset({"M"})}

    scan.clear_filter("size")
    assert [hit["ScannedCode"] for hit in scan.results] == ["3"]

    scan.clear_all_filters()
    assert len(scan.results) == 3
    assert scan.filters == {}


def test_entering_search_resets_filters(scan, make_item):
    make_item("1", brand="Acme")
    make_item("2", brand="Bolt")
    scan.submit(SEARCH_CODE)
    scan.toggle_filter("brand", "Acme")

    scan.submit(ADD_CODE)
    scan.submit(SEARCH_CODE)

    assert scan.filters == {}
    assert len(scan.results) == 2


def test_facets_from_api(scan, make_item):
    make_item("1", brand="Acme")
    make_item("2", brand="Acme")
    make_item("3", brand="Bolt")

    assert scan.load_facets("brand") == [
        {"value": "Acme", "count": 2},
        {"value": "Bolt", "count": 1},
    ]


class FakeClient:
    """In-memory stand-in for InventoryClient."""

    def __init__(self):
        self.searches = []
        self.distinct_calls = 0
        self.on_search = None

    def search(self, term="", filters=None):
        self.searches.append((term, dict(filters or {})))
        if self.on_search is not None:
            hook, self.on_search = self.on_search, None
            hook()
            return [{"ScannedCode": "stale"}]
        return [{"ScannedCode": "fresh"}]

    def distinct(self, field):
        self.distinct_calls += 1
        return [{"value": "Acme", "count": 1}]


def test_stale_search_response_is_dropped():
    fake = FakeClient()
    scan = ScanSession(fake, add_code=ADD_CODE, remove_code=REMOVE_CODE, search_code=SEARCH_CODE)
    scan.submit(SEARCH_CODE)

    # a newer search is issued while the first one is still in flight
    fake.on_search = lambda: scan.toggle_filter("brand", "Bolt")
    scan.toggle_filter("brand", "Acme")

    assert scan.results == [{"ScannedCode": "fresh"}]
    assert fake.searches[-1] == ("", {"brand": frozenset({"Acme", "Bolt"})})


def test_facets_are_cached():
    fake = FakeClient()
    scan = ScanSession(fake, add_code=ADD_CODE, remove_code=REMOVE_CODE, search_code=SEARCH_CODE)

    scan.load_facets("brand")
    scan.load_facets("brand")

    assert fake.distinct_calls == 1


class OfflineClient:
    """Every call fails at the transport level."""

    def _fail(self, *args, **kwargs):
        raise httpx.ConnectError("connection refused")

    get_item = create_item = search = distinct = add = _fail
    initiate_remove = confirm_remove = _fail


def test_transport_errors_become_messages():
    scan = ScanSession(
        OfflineClient(), add_code=ADD_CODE, remove_code=REMOVE_CODE, search_code=SEARCH_CODE
    )

    scan.submit(ADD_CODE)
    assert scan.submit("X1") == "Error processing"

    scan.submit(REMOVE_CODE)
    scan.pending_removal = PendingRemoval(item={"ScannedCode": "X1", "Model": "Tee"}, on_hand=1)
    assert scan.confirm_removal() == "Failed to remove"
    assert not scan.awaiting_confirmation

    assert scan.submit(SEARCH_CODE) == "Search failed"
    assert scan.results == []
    assert scan.load_facets("brand") == []
