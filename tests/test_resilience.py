"""Tests for the retry and caching wrapper."""

import pytest
from sqlalchemy.exc import OperationalError

from parkledger.utils.resilience import backoff_delay, resilient


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _locked():
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestBackoff:
    def test_doubles_and_caps(self):
        assert [backoff_delay(n, 0.1, 0.5) for n in range(4)] == [0.1, 0.2, 0.4, 0.5]


class TestRetry:
    """Tests for bounded retry."""

    def test_retries_then_succeeds(self):
        attempts = []
        sleeps = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise _locked()
            return "ok"

        wrapped = resilient(flaky, max_attempts=3, base_delay=0.1, sleep=sleeps.append)

        assert wrapped() == "ok"
        assert len(attempts) == 3
        assert sleeps == [0.1, 0.2]

    def test_gives_up_after_max_attempts(self):
        attempts = []

        def always_locked():
            attempts.append(1)
            raise _locked()

        wrapped = resilient(always_locked, max_attempts=2, sleep=lambda _: None)

        with pytest.raises(OperationalError):
            wrapped()
        assert len(attempts) == 2

    def test_other_errors_are_not_retried(self):
        attempts = []

        def broken():
            attempts.append(1)
            raise KeyError("nope")

        wrapped = resilient(broken, sleep=lambda _: None)

        with pytest.raises(KeyError):
            wrapped()
        assert len(attempts) == 1

    def test_custom_retry_on(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise TimeoutError()
            return 1

        assert resilient(flaky, retry_on=(TimeoutError,), sleep=lambda _: None)() == 1

    def test_max_attempts_validated(self):
        with pytest.raises(ValueError):
            resilient(lambda: None, max_attempts=0)

    def test_retries_are_logged(self, caplog):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise _locked()

        with caplog.at_level("WARNING", logger="parkledger"):
            resilient(flaky, sleep=lambda _: None)()

        assert any("retrying" in r.getMessage() for r in caplog.records)


class TestCache:
    """Tests for TTL caching."""

    def test_caches_per_arguments_within_ttl(self):
        clock = FakeClock()
        calls = []

        def lookup(kind, code):
            calls.append((kind, code))
            return f"{kind}:{code}"

        wrapped = resilient(lookup, ttl=60, clock=clock)

        assert wrapped("income", "4.1") == "income:4.1"
        assert wrapped("income", "4.1") == "income:4.1"
        assert wrapped("expense", "4.1") == "expense:4.1"
        assert calls == [("income", "4.1"), ("expense", "4.1")]

        clock.now = 61
        wrapped("income", "4.1")
        assert len(calls) == 3

    def test_kwargs_are_part_of_key(self):
        calls = []
        wrapped = resilient(lambda code, active=True: calls.append(code), ttl=60, clock=FakeClock())

        wrapped("4", active=True)
        wrapped("4", active=False)
        wrapped("4", active=True)
        assert len(calls) == 2

    def test_invalidate(self):
        calls = []
        wrapped = resilient(lambda: calls.append(1), ttl=60, clock=FakeClock())

        wrapped()
        wrapped.invalidate()
        wrapped()
        assert len(calls) == 2

    def test_wrappers_do_not_share_cache(self):
        calls = []

        def lookup():
            calls.append(1)
            return len(calls)

        first = resilient(lookup, ttl=60, clock=FakeClock())
        second = resilient(lookup, ttl=60, clock=FakeClock())

        assert first() == 1
        assert second() == 2

    def test_failures_are_not_cached(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise KeyError("cold")
            return "warm"

        wrapped = resilient(flaky, ttl=60, clock=FakeClock())

        with pytest.raises(KeyError):
            wrapped()
        assert wrapped() == "warm"
