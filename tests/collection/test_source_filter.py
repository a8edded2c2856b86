from runstr.collection.source_filter import is_client_record
from conftest import make_record


def test_matches_client_tag_case_insensitively():
    record = make_record(client="RUNSTR-app")
    assert is_client_record(record, ["runstr"])


def test_matches_source_tag():
    record = make_record(client=None, extra_tags=[("source", "runstr")])
    assert is_client_record(record, ["runstr"])


def test_rejects_other_clients():
    assert not is_client_record(make_record(client="othertracker"), ["runstr"])
    assert not is_client_record(make_record(client=None), ["runstr"])


def test_no_identifiers_accepts_everything():
    assert is_client_record(make_record(client=None), [])
    assert is_client_record(make_record(client="othertracker"), [""])
