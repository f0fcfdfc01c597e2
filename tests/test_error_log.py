from jobs.error_log import ErrorLog
from jobs.errors import RemoteCallFailure


def _raise(exc):
    try:
        raise exc
    except Exception as e:
        return e


def test_list_is_newest_first():
    log = ErrorLog()
    log.record("AI Studio", RemoteCallFailure("first"))
    log.record("Co-pilot", RemoteCallFailure("second"))

    entries = log.list()
    assert [e.context for e in entries] == ["Co-pilot", "AI Studio"]
    assert [e.message for e in entries] == ["second", "first"]


def test_entry_carries_timestamp_and_stack():
    log = ErrorLog()
    entry = log.record("AI Insights", _raise(RemoteCallFailure("quota exceeded")))

    assert entry.timestamp.endswith("+00:00")
    assert "quota exceeded" in entry.stack
    assert entry.to_dict()["context"] == "AI Insights"


def test_non_exception_errors_are_recorded_as_text():
    log = ErrorLog()
    entry = log.record("Wallet", "Copy failed")
    assert entry.message == "Copy failed"
    assert entry.stack is None


def test_clear_empties_and_reports_count():
    log = ErrorLog()
    log.record("a", RemoteCallFailure("x"))
    log.record("b", RemoteCallFailure("y"))

    assert log.clear() == 2
    assert log.list() == []
    assert len(log) == 0


def test_list_returns_a_copy():
    log = ErrorLog()
    log.record("a", RemoteCallFailure("x"))
    log.list().clear()
    assert len(log) == 1


def test_record_never_raises():
    class Unprintable:
        def __str__(self):
            raise ValueError("cannot render")

    log = ErrorLog()
    assert log.record("Broken", Unprintable()) is None
    assert len(log) == 0
