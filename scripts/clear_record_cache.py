#!/usr/bin/env python3
"""
Utility script to clean up the relay record cache.

By default removes entries that hold no records (left behind by runs where
every relay returned nothing). Use --expired to drop expired entries, or
--all to wipe the cache so the next run does a full fetch.

Usage:
    python scripts/clear_record_cache.py [--expired | --all]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root))

from runstr.utils.cache_utils import clear_all_caches, clear_expired_record_cache
from runstr.utils.record_cache import clear_empty_record_caches


def main():
    """Run cache cleanup."""
    parser = argparse.ArgumentParser(description="Clean up the relay record cache")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--expired", action="store_true", help="Remove expired entries only")
    group.add_argument("--all", action="store_true", help="Remove every entry")
    args = parser.parse_args()

    print("=" * 80)
    print("Record Cache Cleanup")
    print("=" * 80)
    print()

    if args.all:
        clear_all_caches()
        print("\n✅ Record cache cleared - the next run will fetch the full window")
        return 0

    if args.expired:
        removed = clear_expired_record_cache()
        print(f"\n✅ Removed {removed} expired cache entries")
        return 0

    stats = clear_empty_record_caches()

    print()
    print("=" * 80)
    print("Cleanup Results:")
    print("=" * 80)
    print(f"  Entries checked:   {stats['checked']}")
    print(f"  Empty entries removed: {stats['removed']}")
    print(f"  Entries preserved: {stats['preserved']}")
    print("=" * 80)

    if stats['removed'] > 0:
        print(f"\n✅ Successfully removed {stats['removed']} empty cache entries")
    else:
        print("\n✅ No empty cache entries found - cache is clean!")

    return 0


if __name__ == "__main__":
    sys.exit(main())
