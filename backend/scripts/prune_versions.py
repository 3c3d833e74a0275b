"""Prune version history to a fixed number of versions per record.

Deleted records become unrecoverable once their history is pruned.
Make a backup first.

Usage:
  python scripts/prune_versions.py --run dry             # count only
  python scripts/prune_versions.py --run yes --keep 20   # delete
  python scripts/prune_versions.py --run fast            # delete, skip live-record and snapshot passes
"""
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sweeper.config import settings
from sweeper.database import SessionLocal
from sweeper.exceptions import ConfigurationError, StoreError
from sweeper.services.prune_job import create_prune_job
from sweeper.services.retention_policy import RetentionPolicy


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("keep must be a positive integer")
    return number


def main(argv=None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--run", help="Run mode: 'dry', 'yes' or 'fast'")
    parser.add_argument("--keep", type=_positive_int, default=None, help="Number of versions to keep per record")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    try:
        policy = RetentionPolicy.for_mode(args.run, keep_versions=args.keep, default_keep=settings.SWEEPER_KEEP_VERSIONS)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    db = SessionLocal()
    try:
        report = create_prune_job(db, policy, settings).run()
    except (ConfigurationError, StoreError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    prefix = policy.message_prefix
    print(f"{prefix}Version prune result")
    print(f"  mode: {report.mode}")
    print(f"  keep_versions: {report.keep_versions}")
    print(f"  record_types: {', '.join(report.record_types) or '-'}")
    for row in report.passes:
        if row.cleared:
            print(f"  {row.pass_name}: {row.cleared} rows from {row.table}")
    for row in report.snapshots:
        print(f"  snapshots {row.record_type}: cleared {row.cleared}, kept {row.kept}, errors {len(row.errors)}")
    print(f"  total_cleared: {report.total_cleared}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
