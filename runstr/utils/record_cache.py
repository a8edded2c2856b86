"""
Relay record caching utilities.

Stores the raw records of previous runs so a re-run only has to ask relays
for what is new. Entries are opaque bytes produced by encode_records.
"""

import os
import atexit
import json
from datetime import datetime
from threading import Lock
from typing import Dict, Iterable, Optional, Tuple
from diskcache import Cache
import bittensor as bt

from runstr.reward_engine.models.raw_record import RawRecord
from runstr.utils.config import CACHE_DIRS, RECORD_CACHE_EXPIRY


class RecordCache:
    """
    Thread-safe singleton cache for collected relay records.

    Follows the standard cache pattern used throughout the system with
    automatic cleanup and centralized management.
    """

    _instance = None
    _lock = Lock()
    _cache: Cache = None
    _cache_dir = CACHE_DIRS["records"]

    @classmethod
    def initialize_cache(cls) -> None:
        """Initialize the cache if it hasn't been initialized yet."""
        if cls._cache is None:
            os.makedirs(cls._cache_dir, exist_ok=True)
            cls._cache = Cache(
                directory=cls._cache_dir,
                size_limit=1e9,  # 1GB
                disk_min_file_size=0,
                disk_pickle_protocol=4,
            )
            # Register cleanup on program exit
            atexit.register(cls.cleanup)
            bt.logging.info(f"RecordCache initialized at: {cls._cache_dir}")

    @classmethod
    def cleanup(cls) -> None:
        """Clean up resources."""
        if cls._cache is not None:
            with cls._lock:
                if cls._cache is not None:
                    cls._cache.close()
                    cls._cache = None

    @classmethod
    def get_cache(cls) -> Cache:
        """Thread-safe cache access."""
        if cls._cache is None:
            cls.initialize_cache()
        return cls._cache

    @classmethod
    def get(cls, key: str) -> Optional[bytes]:
        data = cls.get_cache().get(key)
        if data is None:
            bt.logging.debug(f"Cache miss for {key}")
            return None
        bt.logging.debug(f"Cache hit for {key}")
        return data

    @classmethod
    def put(cls, key: str, data: bytes, ttl: Optional[int] = RECORD_CACHE_EXPIRY) -> None:
        cls.get_cache().set(key, data, expire=ttl)
        bt.logging.debug(f"Cached {len(data)} bytes under {key} (expires in {ttl}s)")


def get_records_cache_key(kind: int) -> str:
    """Generate cache key for the records of one event kind."""
    return f"records_{kind}"


def encode_records(records: Iterable[RawRecord], covered_since: Optional[int] = None) -> bytes:
    """
    Serialize records for the cache.

    Args:
        records: Records to store
        covered_since: Epoch seconds from which the set is complete; a later
                       run may only query incrementally if its window starts
                       at or after this point
    """
    payload = {
        'covered_since': covered_since,
        'cache_timestamp': datetime.now().isoformat(),
        'records': [record.to_event() for record in sorted(records, key=lambda r: r.id)],
    }
    return json.dumps(payload, separators=(',', ':')).encode('utf-8')


def decode_records(data: bytes) -> Tuple[Dict[str, RawRecord], Optional[int]]:
    """
    Deserialize a cache entry.

    Returns:
        Tuple of (records by id, covered_since). A corrupt entry decodes to
        no records so the caller falls back to a full fetch.
    """
    try:
        payload = json.loads(data.decode('utf-8'))
        events = payload['records']
        covered_since = payload.get('covered_since')
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        bt.logging.warning(f"Ignoring unreadable record cache entry: {e}")
        return {}, None

    records = {}
    for event in events:
        try:
            record = RawRecord.from_event(event)
        except ValueError as e:
            bt.logging.debug(f"Skipping invalid cached record: {e}")
            continue
        records[record.id] = record
    return records, covered_since


def clear_empty_record_caches() -> Dict[str, int]:
    """
    Remove cached entries that hold no records.

    Returns:
        Dictionary with statistics:
        - 'checked': Number of cache entries checked
        - 'removed': Number of empty entries removed
        - 'preserved': Number of entries with records preserved
    """
    cache = RecordCache.get_cache()

    stats = {
        'checked': 0,
        'removed': 0,
        'preserved': 0
    }

    for key in list(cache.iterkeys()):
        if not str(key).startswith('records_'):
            continue

        stats['checked'] += 1
        data = cache.get(key)
        if data is None:
            continue

        records, _ = decode_records(data)
        if records:
            stats['preserved'] += 1
        else:
            cache.delete(key)
            stats['removed'] += 1
            bt.logging.debug(f"Removed empty cache entry {key}")

    bt.logging.info(
        f"Record cache cleanup: checked {stats['checked']}, "
        f"removed {stats['removed']}, preserved {stats['preserved']}"
    )
    return stats
