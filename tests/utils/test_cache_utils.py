from unittest.mock import patch

from runstr.utils import cache_utils
from runstr.utils.record_cache import encode_records
from conftest import make_record


def test_clear_all_caches_wipes_directories(record_cache):
    record_cache.put("records_1301", encode_records([make_record(event_id="a")]))

    with patch.dict(cache_utils.CACHE_DIRS, {"records": record_cache._cache_dir}, clear=True):
        cache_utils.clear_all_caches()

    assert record_cache.get("records_1301") is None


def test_clear_expired_record_cache(record_cache):
    record_cache.put("records_1301", encode_records([make_record(event_id="a")]), ttl=None)

    assert cache_utils.clear_expired_record_cache() == 0
    assert record_cache.get("records_1301") is not None
