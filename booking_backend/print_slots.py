"""Print the slots of an organization's service to stdout.

Usage:
    python -m booking_backend.print_slots <org_slug> <service_id> <from> <to> [--all]

``from`` and ``to`` are calendar days (YYYY-MM-DD) in the organization's
timezone, both included.
"""
import argparse
import sys
from datetime import date

from booking_backend.database import SessionLocal
from booking_backend.scheduling.calendar import local_date
from booking_backend.scheduling.errors import InvalidSlotQuery
from booking_backend.scheduling.slots import format_time_slot, generate_slots
from booking_backend.scheduling.storage import SqlAlchemyStorage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='python -m booking_backend.print_slots')
    parser.add_argument('org_slug')
    parser.add_argument('service_id', type=int)
    parser.add_argument('range_from', type=date.fromisoformat, metavar='from')
    parser.add_argument('range_to', type=date.fromisoformat, metavar='to')
    parser.add_argument('--all', action='store_true', dest='include_unavailable', help='also print unavailable slots')
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    db = SessionLocal()
    try:
        storage = SqlAlchemyStorage(db)
        organization = storage.get_organization_by_slug(args.org_slug)
        service = storage.get_service(args.service_id)
        if organization is None or service is None or service.organization_id != organization.id:
            print("Organization or service not found.", file=sys.stderr)
            sys.exit(1)

        try:
            slots = generate_slots(
                organization.id,
                service,
                args.range_from,
                args.range_to,
                organization.timezone,
                storage=storage,
            )
        except InvalidSlotQuery as exc:
            print(f"Invalid query: {exc}", file=sys.stderr)
            sys.exit(1)
    finally:
        db.close()

    for slot in slots:
        if not (slot.available or args.include_unavailable):
            continue
        day = local_date(slot.start, organization.timezone).isoformat()
        marker = '' if slot.available else ' (unavailable)'
        print(f"{day} {format_time_slot(slot, organization.timezone)}{marker}")


if __name__ == "__main__":
    main()
