import os
import shutil
import bittensor as bt
from runstr.utils.config import CACHE_DIRS
from runstr.utils.record_cache import RecordCache


def clear_all_caches():
    """Clear all cache directories and instances."""
    bt.logging.info("Clearing all caches")
    try:
        clear_record_cache()

        for cache_dir in CACHE_DIRS.values():
            if os.path.exists(cache_dir):
                bt.logging.debug(f"Clearing cache directory: {cache_dir}")
                # Close the open handle before its files disappear
                RecordCache.cleanup()
                shutil.rmtree(cache_dir)
                os.makedirs(cache_dir)
        bt.logging.info("Successfully cleared all caches")
    except OSError as e:
        bt.logging.error(f"Error clearing all caches: {str(e)}")
        raise


def clear_record_cache():
    """Clear record cache."""
    bt.logging.info("Clearing record cache")
    RecordCache.get_cache().clear()
    bt.logging.info("Successfully cleared record cache")


def clear_expired_record_cache():
    """Clear expired record cache entries."""
    bt.logging.info("Clearing expired record cache entries")
    removed = RecordCache.get_cache().expire()
    bt.logging.info(f"Successfully cleared {removed} expired record cache entries")
    return removed
