"""Command-line interface for genrental."""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .config import load_settings
from .engine import LifecycleEngine, build_engine
from .errors import GenrentalError, InvalidStatusError
from .export import filter_by_range, rentals_to_csv
from .models import RentalStatus
from .utils import format_rental, format_unit, parse_date_range


def get_engine() -> LifecycleEngine:
    """Get an engine for the configured data directory."""
    return build_engine()


def cmd_init(args: argparse.Namespace) -> int:
    """Create the data files and seed the generator pool."""
    try:
        settings = load_settings()
        engine = build_engine(settings)
        units = engine.list_units()

        print(f"Data directory: {settings.data_dir}")
        print(f"Generators: {len(units)}")
        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_list(args: argparse.Namespace) -> int:
    """List rentals."""
    try:
        status = None
        if args.status and args.status != "all":
            try:
                status = RentalStatus(args.status)
            except ValueError:
                raise InvalidStatusError(args.status)

        rentals = get_engine().list_rentals(status)

        if not rentals:
            print("No rentals found.")
            return 0

        if args.json:
            data = [r.to_dict() for r in rentals]
            print(json.dumps(data, indent=2))
        else:
            print(f"Rentals ({len(rentals)}):")
            print()
            for rental in rentals:
                print(format_rental(rental, verbose=args.verbose))

        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_show(args: argparse.Namespace) -> int:
    """Show a single rental."""
    try:
        rental = get_engine().get_rental(args.rental_id)
        if args.json:
            print(json.dumps(rental.to_dict(), indent=2))
        else:
            print(format_rental(rental, verbose=True))
        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_approve(args: argparse.Namespace) -> int:
    """Approve a pending rental."""
    try:
        rental = get_engine().approve(args.rental_id)
        print(f"Approved rental: {rental.id}")
        print(f"  Assigned generator: {rental.unit_id}")
        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_invoice(args: argparse.Namespace) -> int:
    """Mark an approved rental as invoiced."""
    try:
        rental = get_engine().invoice(args.rental_id)
        print(f"Invoiced rental: {rental.id}")
        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_paid(args: argparse.Namespace) -> int:
    """Record payment for an invoiced rental."""
    try:
        rental = get_engine().mark_paid(args.rental_id)
        print(f"Paid rental: {rental.id}")
        print(f"  Released generator: {rental.unit_id}")
        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a rental."""
    try:
        rental = get_engine().delete_rental(args.rental_id)
        print(f"Deleted rental: {rental.id} ({rental.status.value})")
        if rental.status.holds_unit:
            print(f"  Released generator: {rental.unit_id}")
        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_units_list(args: argparse.Namespace) -> int:
    """List generators."""
    try:
        units = get_engine().list_units()

        if args.json:
            print(json.dumps([u.to_dict() for u in units], indent=2))
        else:
            print(f"Generators ({len(units)}):")
            for unit in units:
                print(format_unit(unit))

        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_units_toggle(args: argparse.Namespace) -> int:
    """Toggle a generator's in-service flag."""
    try:
        unit = get_engine().toggle_unit(args.unit_id)
        state = "in service" if unit.in_service else "out of service"
        print(f"Generator {unit.id} is now {state}")
        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_availability(args: argparse.Namespace) -> int:
    """Show fleet availability."""
    try:
        availability = get_engine().compute_availability()

        if args.json:
            print(json.dumps(availability.to_dict(), indent=2))
        else:
            print(f"Available: {availability.available}/{availability.total}")

        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_calendar(args: argparse.Namespace) -> int:
    """Show bookable days in a date window."""
    try:
        start, end = parse_date_range(args.start, args.end)
        engine = get_engine()
        snapshot = engine.booking_snapshot()
        days = engine.calendar(start, end, snapshot=snapshot)

        print(f"Active generators: {snapshot[1]}")
        for day in days:
            mark = "open" if day.bookable else "closed"
            print(f"  {day.day.isoformat()}  {day.bookings} booked  {mark}")

        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_export(args: argparse.Namespace) -> int:
    """Export rentals overlapping a date window as CSV."""
    try:
        start, end = parse_date_range(args.start, args.end)
        rentals = filter_by_range(get_engine().list_rentals(), start, end)
        content = rentals_to_csv(rentals)

        if args.output:
            Path(args.output).write_text(content, encoding="utf-8")
            print(f"Wrote {len(rentals)} rental(s) to {args.output}")
        else:
            sys.stdout.write(content)

        return 0

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Check that generator flags match rental assignments."""
    try:
        problems = get_engine().check_consistency()

        if not problems:
            print("OK: generators and rentals are consistent.")
            return 0

        print(f"Found {len(problems)} problem(s):")
        for problem in problems:
            print(f"  {problem}")
        return 2

    except GenrentalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        settings = load_settings()
        build_engine(settings)

        print("Starting genrental API server...")
        print(f"Data directory: {settings.data_dir}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "genrental.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="genrental",
        description="Manage generator rental requests and the generator pool.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init
    subparsers.add_parser("init", help="Create data files and seed generators")

    # list
    list_parser = subparsers.add_parser("list", help="List rentals")
    list_parser.add_argument(
        "--status", "-s",
        help="Filter by status (pending, approved, invoiced, paid, all)",
    )
    list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show contact details"
    )
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # show
    show_parser = subparsers.add_parser("show", help="Show a rental")
    show_parser.add_argument("rental_id", type=int, help="Rental ID")
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # transitions
    for name, help_text in (
        ("approve", "Approve a pending rental and assign a generator"),
        ("invoice", "Mark an approved rental as invoiced"),
        ("paid", "Record payment and release the generator"),
        ("delete", "Delete a rental"),
    ):
        transition_parser = subparsers.add_parser(name, help=help_text)
        transition_parser.add_argument("rental_id", type=int, help="Rental ID")

    # units
    units_parser = subparsers.add_parser("units", help="Manage generators")
    units_subparsers = units_parser.add_subparsers(dest="units_command", help="Units commands")

    units_list_parser = units_subparsers.add_parser("list", help="List generators")
    units_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    units_toggle_parser = units_subparsers.add_parser(
        "toggle", help="Take a generator out of service or back in"
    )
    units_toggle_parser.add_argument("unit_id", type=int, help="Generator ID")

    # availability
    availability_parser = subparsers.add_parser("availability", help="Show fleet availability")
    availability_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # calendar
    calendar_parser = subparsers.add_parser("calendar", help="Show bookable days")
    calendar_parser.add_argument("start", help="First day (YYYY-MM-DD or d.m.yyyy)")
    calendar_parser.add_argument("end", help="Last day (YYYY-MM-DD or d.m.yyyy)")

    # export
    export_parser = subparsers.add_parser("export", help="Export rentals as CSV")
    export_parser.add_argument("start", help="Window start (YYYY-MM-DD or d.m.yyyy)")
    export_parser.add_argument("end", help="Window end (YYYY-MM-DD or d.m.yyyy)")
    export_parser.add_argument("--output", "-o", help="Write to file instead of stdout")

    # check
    subparsers.add_parser("check", help="Check generator flags against rentals")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", type=int, default=3000, help="Port to bind (default: 3000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=load_settings().log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    # Handle units subcommands
    if args.command == "units":
        if not getattr(args, "units_command", None):
            parser.parse_args(["units", "--help"])
            return 0
        if args.units_command == "list":
            return cmd_units_list(args)
        elif args.units_command == "toggle":
            return cmd_units_toggle(args)

    commands = {
        "init": cmd_init,
        "list": cmd_list,
        "show": cmd_show,
        "approve": cmd_approve,
        "invoice": cmd_invoice,
        "paid": cmd_paid,
        "delete": cmd_delete,
        "availability": cmd_availability,
        "calendar": cmd_calendar,
        "export": cmd_export,
        "check": cmd_check,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
