"""Check slot/appointment consistency and optionally repair orphaned slots.

Usage:
    python -m barbershop.reconcile [--fix]
"""
import argparse
import logging
import sys

from barbershop.core.errors import StoreUnavailableError
from barbershop.database import SessionLocal
from barbershop.services.reconciliation import check_slot_consistency, fix_orphaned_slots


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Audit slot/appointment consistency.')
    parser.add_argument('--fix', action='store_true', help='repair orphaned slots before auditing')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    db = SessionLocal()
    try:
        if args.fix:
            fixed = fix_orphaned_slots(db)
            print(f'Repaired {fixed} orphaned slot(s).')
        report = check_slot_consistency(db)
    except StoreUnavailableError as exc:
        print(exc.message, file=sys.stderr)
        return 2
    finally:
        db.close()

    if not report.has_issues:
        print('No consistency issues found.')
        return 0

    for issue in report.issues:
        print(f'[{issue.kind}] {issue.message}')
    return 1


if __name__ == '__main__':
    sys.exit(main())
