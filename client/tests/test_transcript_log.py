from threading import Thread

from voice_client.transcript.log import TranscriptLog
from voice_client.transcript.models import TranscriptEntry


def test_append_keeps_call_order_and_returns_entries():
    log = TranscriptLog()

    created = [log.append(f"line {i}", "agent", False) for i in range(5)]

    snapshot = log.snapshot()
    assert len(snapshot) == 5
    assert [e.text for e in snapshot] == [f"line {i}" for i in range(5)]
    assert list(snapshot) == created
    assert len({e.id for e in snapshot}) == 5
    assert log.last() == created[-1]


def test_clear_empties_log():
    log = TranscriptLog()
    log.append("a", "System", False)
    log.append("b", "user", True)

    log.clear()

    assert log.snapshot() == ()
    assert len(log) == 0
    assert log.last() is None


def test_empty_text_is_kept():
    log = TranscriptLog()
    entry = log.append("", "agent", False)
    assert entry.text == ""
    assert log.snapshot() == (entry,)


def test_timestamps_never_go_backward_when_clock_jumps_back():
    ticks = iter([100.0, 105.0, 90.0, 90.5, 110.0])
    log = TranscriptLog(clock=lambda: next(ticks))

    for i in range(5):
        log.append(str(i), "agent", False)

    stamps = [e.timestamp for e in log.snapshot()]
    assert stamps == [100.0, 105.0, 105.0, 105.0, 110.0]
    assert all(a <= b for a, b in zip(stamps, stamps[1:]))


def test_clear_does_not_reset_monotonic_floor():
    ticks = iter([50.0, 10.0])
    log = TranscriptLog(clock=lambda: next(ticks))
    log.append("before", "agent", False)
    log.clear()

    entry = log.append("after", "agent", False)
    assert entry.timestamp == 50.0


def test_snapshot_is_immutable_copy():
    log = TranscriptLog()
    log.append("one", "agent", False)
    snapshot = log.snapshot()

    log.append("two", "agent", False)

    assert len(snapshot) == 1
    assert isinstance(snapshot, tuple)


def test_concurrent_appends_are_all_recorded():
    log = TranscriptLog()

    def _worker(n: int):
        for i in range(200):
            log.append(f"{n}-{i}", f"w{n}", False)

    threads = [Thread(target=_worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snapshot = log.snapshot()
    assert len(snapshot) == 800
    stamps = [e.timestamp for e in snapshot]
    assert all(a <= b for a, b in zip(stamps, stamps[1:]))


def test_entry_display_speaker():
    local = TranscriptEntry(text="hi", speaker="user", is_local_user=True)
    remote = TranscriptEntry(text="hi", speaker="agent-1", is_local_user=False)

    assert local.display_speaker == "You"
    assert remote.display_speaker == "agent-1"
    assert remote.to_dict()["speaker"] == "agent-1"
