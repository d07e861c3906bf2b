#!/usr/bin/env python3
"""
Terminal front end for the scan session.

Barcode scanners in keyboard-wedge mode type the code followed by Enter, so
each input line is one scan. In search mode a few extra commands work on the
result filters:

    :values <field>          list filter values for a field
    :filter <field> <value>  toggle one filter value
    :clear [<field>]         clear one field's filters, or all of them
    :quit
"""
import argparse
import sys
from datetime import datetime

from scanstock.config import settings
from scanstock.scanner.client import FILTERABLE, InventoryClient
from scanstock.scanner.session import Mode, ScanSession, display_name

NEW_ITEM_FIELDS = (
    "Model",
    "Brand",
    "Size",
    "Color",
    "Notes",
    "SoldOrder#",
    "PurchasedFrom",
    "PaintThickness",
    "Price",
    "Qty",
    "InventoryDate",
)


def ask(prompt: str) -> str:
    return input(prompt).strip()


def parse_date(text: str):
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        print(f"  ignoring unreadable date: {text}")
        return None


def prompt_new_item(session: ScanSession):
    print(f"New item {session.pending_code} (blank to skip a field, blank Model cancels)")
    fields = {}
    for name in NEW_ITEM_FIELDS:
        value = ask(f"  {name}: ")
        if name == "Model" and not value:
            session.cancel_create()
            print("Create cancelled.")
            return
        if value:
            fields[name] = value
    print(session.complete_create(fields))


def prompt_confirm(session: ScanSession):
    pending = session.pending_removal
    print(
        f"Remove 1 x {display_name(pending.item)} "
        f"({pending.item['ScannedCode']}), on hand {pending.on_hand}?"
    )
    if ask("  confirm [y/N]: ").lower() not in ("y", "yes"):
        print(session.cancel_removal())
        return

    order_id = ask("  Order Id: ") or None
    source = ask("  Where bought from: ") or None
    date_subtracted = parse_date(ask("  Date Subtracted (YYYY-MM-DDTHH:MM, blank = now): "))
    print(session.confirm_removal(order_id=order_id, source=source, date_subtracted=date_subtracted))


def print_results(session: ScanSession):
    print(session.summary or "All items")
    if not session.results:
        print("  No results.")
        return
    for hit in session.results:
        print(
            f"  {hit['ScannedCode']:<16} {display_name(hit):<32} "
            f"{hit.get('Size') or '':<6} {hit.get('Color') or '':<10} on hand {hit['onHand']}"
        )


def run_command(session: ScanSession, line: str) -> bool:
    parts = line[1:].split(maxsplit=2)
    if not parts:
        return True
    command, args = parts[0].lower(), parts[1:]

    if command in ("quit", "q", "exit"):
        return False

    if session.mode is not Mode.SEARCH:
        print("Filter commands only work in search mode.")
        return True

    if command == "values" and args:
        for opt in session.load_facets(args[0].lower()):
            print(f"  {opt['value']} ({opt['count']})")
    elif command == "filter" and len(args) == 2:
        session.toggle_filter(args[0].lower(), args[1])
        print_results(session)
    elif command == "clear":
        if args:
            session.clear_filter(args[0].lower())
        else:
            session.clear_all_filters()
        print_results(session)
    else:
        print(f"Unknown command. Fields: {', '.join(FILTERABLE)}")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Scan items into and out of inventory.")
    parser.add_argument("--api-url", default=settings.API_URL, help="Inventory API base URL")
    parser.add_argument("--timeout", type=float, default=settings.API_TIMEOUT, help="HTTP timeout in seconds")
    args = parser.parse_args(argv)

    with InventoryClient(base_url=args.api_url, timeout=args.timeout) as client:
        session = ScanSession(client)
        print(
            f"Codes: {session.add_code} add, {session.remove_code} remove, "
            f"{session.search_code} search. :quit to exit."
        )

        while True:
            try:
                line = ask(f"[{session.mode.value}] scan> ")
            except (EOFError, KeyboardInterrupt):
                print()
                return 0

            if line.startswith(":"):
                if not run_command(session, line):
                    return 0
                continue

            message = session.submit(line)
            if message:
                print(message)

            try:
                if session.awaiting_create:
                    prompt_new_item(session)
                elif session.awaiting_confirmation:
                    prompt_confirm(session)
            except (EOFError, KeyboardInterrupt):
                print()
                return 0

            if session.mode is Mode.SEARCH and line:
                print_results(session)


if __name__ == "__main__":
    sys.exit(main())
