"""CLI entry point for billbook."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import tempfile
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

from .config import BillingConfig, load_config
from .dashboard import compute_stats, filter_bills, format_money, list_customers
from .db import get_store
from .errors import BillingError, ValidationError
from .groups import BillGroupManager
from .models import BillRecord, BillResult, LineItem


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="billbook",
        description="Record customer bills, split payments and export PDFs",
    )
    parser.add_argument(
        "--config", "-c", type=str, default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command")

    # add / edit
    add_parser = sub.add_parser("add", help="Add a bill with one or more items")
    _add_bill_arguments(add_parser)

    edit_parser = sub.add_parser("edit", help="Replace the items of a bill")
    edit_parser.add_argument("id", type=int, help="ID of any row of the bill")
    _add_bill_arguments(edit_parser)

    # show / delete
    show_parser = sub.add_parser("show", help="Show a bill with all its items")
    show_parser.add_argument("id", type=int)
    show_parser.add_argument("--json", action="store_true", help="Output JSON")

    delete_parser = sub.add_parser("delete", help="Delete one bill row")
    delete_parser.add_argument("id", type=int)

    # list / customers / stats
    list_parser = sub.add_parser("list", help="List bill rows")
    _add_filter_arguments(list_parser)
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    sub.add_parser("customers", help="List customer names")

    stats_parser = sub.add_parser("stats", help="Show dashboard totals")
    stats_parser.add_argument("--customer", type=str, default=None)

    # export / print
    export_parser = sub.add_parser("export", help="Export bills to PDF")
    export_parser.add_argument("file", type=str, help="Output PDF path")
    export_parser.add_argument(
        "--id", type=int, default=None, help="Export a receipt for this bill",
    )
    _add_filter_arguments(export_parser)

    print_parser = sub.add_parser("print", help="Print bills")
    print_parser.add_argument(
        "--id", type=int, default=None, help="Print a receipt for this bill",
    )
    _add_filter_arguments(print_parser)
    print_parser.add_argument(
        "--printer", type=str, default=None, help="Printer name",
    )
    print_parser.add_argument(
        "--copies", type=int, default=1, help="Number of copies",
    )

    sub.add_parser("printers", help="List available printers")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s [%(name)s] %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)

    if args.command == "printers":
        _cmd_printers()
        return

    manager = BillGroupManager(get_store(config.database.path))

    try:
        match args.command:
            case "add":
                _cmd_add(manager, args)
            case "edit":
                _cmd_edit(manager, args)
            case "show":
                _cmd_show(manager, config, args)
            case "delete":
                _cmd_delete(manager, args)
            case "list":
                _cmd_list(manager, config, args)
            case "customers":
                _cmd_customers(manager)
            case "stats":
                _cmd_stats(manager, config, args)
            case "export":
                _cmd_export(manager, config, args)
            case "print":
                _cmd_print(manager, config, args)
    except BillingError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _add_bill_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--customer", type=str, required=True, help="Customer name")
    parser.add_argument(
        "--item", type=str, action="append", required=True, dest="items",
        metavar="NAME:QTY:PRICE", help="Line item (repeatable)",
    )
    parser.add_argument(
        "--paid", type=str, default="0", help="Amount paid for the whole bill",
    )


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--customer", type=str, default=None, help="Only this customer")
    parser.add_argument("--search", type=str, default="", help="Search product/customer")


def parse_item(spec: str) -> LineItem:
    """Parse ``NAME:QTY:PRICE`` into a LineItem.

    The name may itself contain colons; quantity and price are the last
    two fields.
    """
    parts = spec.rsplit(":", 2)
    if len(parts) != 3:
        raise ValidationError(f"Item must look like NAME:QTY:PRICE, got {spec!r}")
    name, qty, price = parts
    try:
        quantity = int(qty)
    except ValueError:
        raise ValidationError(f"Invalid quantity in {spec!r}") from None
    try:
        price_per_unit = Decimal(price)
    except InvalidOperation:
        raise ValidationError(f"Invalid price in {spec!r}") from None
    return LineItem(name.strip(), quantity, price_per_unit)


def _parse_paid(value: str) -> Decimal:
    try:
        paid = Decimal(value)
    except InvalidOperation:
        raise ValidationError(f"Invalid paid amount {value!r}") from None
    if not paid.is_finite() or paid < 0:
        raise ValidationError(f"Paid amount must be a non-negative number, got {value!r}")
    return paid


def _report(result: BillResult, verb: str) -> None:
    if not result.success:
        print(f"Error {verb} bill: {result.message}", file=sys.stderr)
        if result.record_ids:
            ids = ", ".join(str(i) for i in result.record_ids)
            print(f"Rows already written: {ids}", file=sys.stderr)
        sys.exit(1)


def _bill_to_dict(bill: BillRecord) -> dict:
    data = {
        "id": bill.id,
        "group_id": bill.group_id,
        "customer_name": bill.customer_name,
        "product_name": bill.product_name,
        "quantity": bill.quantity,
        "price_per_unit": str(bill.price_per_unit),
        "total": str(bill.total),
        "paid_amount": str(bill.paid_amount),
        "remaining_amount": str(bill.remaining_amount),
        "created_at": bill.created_at,
        "updated_at": bill.updated_at,
    }
    if bill.items:
        data["items"] = [
            {
                "product_name": i.product_name,
                "quantity": i.quantity,
                "price_per_unit": str(i.price_per_unit),
            }
            for i in bill.items
        ]
    return data


def _cmd_add(manager: BillGroupManager, args) -> None:
    items = [parse_item(s) for s in args.items]
    result = manager.create(args.customer, items, _parse_paid(args.paid))
    _report(result, "creating")
    ids = ", ".join(str(i) for i in result.record_ids)
    print(f"Created bill {result.group_id} (rows: {ids})")


def _cmd_edit(manager: BillGroupManager, args) -> None:
    items = [parse_item(s) for s in args.items]
    result = manager.update(args.id, args.customer, items, _parse_paid(args.paid))
    _report(result, "updating")
    print(f"Updated bill {result.group_id} ({len(items)} items)")


def _cmd_delete(manager: BillGroupManager, args) -> None:
    result = manager.delete(args.id)
    _report(result, "deleting")
    print(f"Deleted bill row {args.id}")


def _cmd_show(manager: BillGroupManager, config: BillingConfig, args) -> None:
    bill = manager.get(args.id)
    if args.json:
        print(json.dumps(_bill_to_dict(bill), ensure_ascii=False, indent=2))
        return

    cur = config.display.currency
    print(f"Bill #{bill.id}  {bill.customer_name}  ({bill.created_at})")
    print(f"Group: {bill.group_id or '-'}")
    for item in bill.items:
        total = item.quantity * item.price_per_unit
        print(
            f"  {item.product_name:<24} {item.quantity:>4} x "
            f"{format_money(item.price_per_unit, cur):>10} = {format_money(total, cur):>10}"
        )
    print(
        f"This row: total {format_money(bill.total, cur)}, "
        f"paid {format_money(bill.paid_amount, cur)}, "
        f"remaining {format_money(bill.remaining_amount, cur)}"
    )


def _cmd_list(manager: BillGroupManager, config: BillingConfig, args) -> None:
    bills = filter_bills(manager.list_bills(), args.customer, args.search)
    if args.json:
        print(json.dumps([_bill_to_dict(b) for b in bills], ensure_ascii=False, indent=2))
        return
    if not bills:
        print("No bills found.")
        return

    cur = config.display.currency
    print(
        f"{'ID':>5}  {'Customer':<18} {'Product':<20} {'Qty':>4} "
        f"{'Total':>11} {'Paid':>11} {'Remaining':>11}"
    )
    for b in bills:
        print(
            f"{b.id:>5}  {b.customer_name:<18.18} {b.product_name:<20.20} {b.quantity:>4} "
            f"{format_money(b.total, cur):>11} {format_money(b.paid_amount, cur):>11} "
            f"{format_money(b.remaining_amount, cur):>11}"
        )


def _cmd_customers(manager: BillGroupManager) -> None:
    customers = list_customers(manager.list_bills())
    if not customers:
        print("No customers yet.")
        return
    for name in customers:
        print(name)


def _cmd_stats(manager: BillGroupManager, config: BillingConfig, args) -> None:
    stats = compute_stats(manager.list_bills(), args.customer)
    cur = config.display.currency
    label = f"{args.customer}'s " if args.customer else "Total "
    print(f"{label}bills:     {stats.total_bills}")
    print(f"{label}amount:    {format_money(stats.total_amount, cur)}")
    print(f"{label}paid:      {format_money(stats.total_paid, cur)}")
    print(f"{label}remaining: {format_money(stats.total_remaining, cur)}")


def _write_pdf(
    manager: BillGroupManager, config: BillingConfig, args, output: Path
) -> None:
    from .pdf import generate_bill_receipt_pdf, generate_bills_pdf

    if args.id is not None:
        bill = manager.get(args.id)
        group = manager.list_group(bill.group_id) if bill.group_id else []
        generate_bill_receipt_pdf(
            group or [bill],
            output,
            currency=config.display.currency,
            font_path=config.pdf.font_path,
        )
    else:
        bills = filter_bills(manager.list_bills(), args.customer, args.search)
        title = f"Bills for {args.customer}" if args.customer else "Bills"
        generate_bills_pdf(
            bills,
            output,
            currency=config.display.currency,
            font_path=config.pdf.font_path,
            title=title,
        )


def _cmd_export(manager: BillGroupManager, config: BillingConfig, args) -> None:
    output = Path(args.file)
    if not output.is_absolute():
        output = Path(config.pdf.output_dir).expanduser() / output
    try:
        _write_pdf(manager, config, args, output)
    except (ImportError, FileNotFoundError) as e:
        print(f"PDF error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"PDF saved: {output}")


def _cmd_print(manager: BillGroupManager, config: BillingConfig, args) -> None:
    from .printer import Printer

    with tempfile.TemporaryDirectory(prefix="billbook_") as tmp_dir:
        pdf_path = Path(tmp_dir) / "bills.pdf"
        try:
            _write_pdf(manager, config, args, pdf_path)
        except (ImportError, FileNotFoundError) as e:
            print(f"PDF error: {e}", file=sys.stderr)
            sys.exit(1)

        printer_name = args.printer or config.printer.printer_name or None
        try:
            Printer.print_file(pdf_path, printer_name=printer_name, copies=args.copies)
        except RuntimeError as e:
            print(f"Print error: {e}", file=sys.stderr)
            sys.exit(1)
    print(f"Print job sent: {printer_name or 'default printer'}")


def _cmd_printers() -> None:
    from .printer import Printer

    try:
        printers = Printer.list_printers()
    except RuntimeError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    if not printers:
        print("No printers found.")
        return
    print(f"Available printers: {len(printers)}")
    for p in printers:
        default_mark = " (default)" if p.is_default else ""
        print(f"  {p.name}{default_mark}")


if __name__ == "__main__":
    main()
