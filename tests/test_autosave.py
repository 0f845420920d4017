# tests/test_autosave.py

import threading
from concurrent.futures import CancelledError

import pytest

from tasksheet.services.autosave import DebounceScheduler


def test_repeated_schedules_collapse_into_one_call():
    scheduler = DebounceScheduler(default_delay=0.05)
    calls = []

    first = scheduler.schedule("file-1", lambda: calls.append("first"))
    second = scheduler.schedule("file-1", lambda: calls.append("second") or "saved")

    assert second.result(timeout=2) == "saved"
    assert first.cancelled()
    assert calls == ["second"]
    assert scheduler.pending_keys() == []


def test_keys_are_scheduled_independently():
    scheduler = DebounceScheduler(default_delay=0.05)
    fired = []

    a = scheduler.schedule("a", lambda: fired.append("a"))
    b = scheduler.schedule("b", lambda: fired.append("b"))
    a.result(timeout=2)
    b.result(timeout=2)

    assert sorted(fired) == ["a", "b"]


def test_cancel_pending_prevents_the_call():
    scheduler = DebounceScheduler(default_delay=0.05)
    ran = threading.Event()

    future = scheduler.schedule("file-1", ran.set)

    assert scheduler.cancel_pending("file-1") is True
    assert scheduler.cancel_pending("file-1") is False
    with pytest.raises(CancelledError):
        future.result(timeout=2)
    assert not ran.wait(0.2)


def test_callback_error_is_reported_on_the_future():
    scheduler = DebounceScheduler(default_delay=0.01)

    def boom():
        raise RuntimeError("store unavailable")

    future = scheduler.schedule("file-1", boom)

    with pytest.raises(RuntimeError, match="store unavailable"):
        future.result(timeout=2)


def test_cancel_all_clears_every_key():
    scheduler = DebounceScheduler(default_delay=10)
    futures = [scheduler.schedule(key, lambda: None) for key in ("a", "b")]

    assert sorted(scheduler.pending_keys()) == ["a", "b"]
    scheduler.cancel_all()

    assert scheduler.pending_keys() == []
    assert all(f.cancelled() for f in futures)
