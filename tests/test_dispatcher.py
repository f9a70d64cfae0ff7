"""Tests for concurrent fix dispatch."""

import asyncio
import time

import pytest

from reviewer.fixes.dispatcher import FixDispatcher
from reviewer.fixes.prompt_builder import FixRequest
from reviewer.llm.base import ChatOutcome, TokenTracker


class FakeChatClient:
    """Answers each request after a per-request delay; records arrival order."""

    def __init__(self, delays=None, fail=None, raise_for=None):
        self.delays = delays or {}
        self.fail = fail or {}
        self.raise_for = raise_for or set()
        self.finished: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, payload):
        key = payload["messages"][1]["content"]
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(key, 0))
            if key in self.raise_for:
                raise RuntimeError(f"boom {key}")
            self.finished.append(key)
            if key in self.fail:
                status = self.fail[key]
                return ChatOutcome(model="m", status_code=status, error=f"HTTP {status}", reason=f"http-{status}")
            return ChatOutcome(content=f"answer {key}", input_tokens=10, output_tokens=5, model="m")
        finally:
            self.in_flight -= 1


def _requests(*keys):
    return [(slot, FixRequest(model="m", system="s", user=key)) for slot, key in keys]


def test_outcomes_follow_slot_order_not_arrival():
    client = FakeChatClient(delays={"a": 0.3, "b": 0.15, "c": 0.0})
    report = FixDispatcher(client, timeout=5).dispatch(_requests((0, "a"), (1, "b"), (2, "c")))

    assert client.finished == ["c", "b", "a"]
    assert list(report.outcomes) == [0, 1, 2]
    assert [o.content for o in report.outcomes.values()] == ["answer a", "answer b", "answer c"]


def test_requests_run_concurrently():
    client = FakeChatClient(delays={k: 0.2 for k in "abcde"})
    start = time.monotonic()
    FixDispatcher(client, timeout=5).dispatch(_requests(*enumerate("abcde")))
    assert client.max_in_flight == 5
    assert time.monotonic() - start < 0.9


def test_timeout_is_isolated_to_one_slot():
    client = FakeChatClient(delays={"slow": 30})
    start = time.monotonic()
    report = FixDispatcher(client, timeout=0.2).dispatch(_requests((0, "a"), (1, "slow"), (2, "c")))

    assert time.monotonic() - start < 5
    assert report.outcomes[1].reason == "timeout"
    assert report.outcomes[0].ok and report.outcomes[2].ok
    assert report.failures == 1
    assert report.succeeded == 2


def test_http_failure_is_isolated():
    client = FakeChatClient(fail={"b": 500})
    report = FixDispatcher(client, timeout=5).dispatch(_requests((0, "a"), (1, "b")))
    assert report.outcomes[1].reason == "http-500"
    assert report.outcomes[0].content == "answer a"


def test_unexpected_exception_becomes_failure():
    client = FakeChatClient(raise_for={"b"})
    report = FixDispatcher(client, timeout=5).dispatch(_requests((0, "a"), (1, "b"), (2, "c")))
    assert report.outcomes[1].reason == "transport"
    assert "boom b" in report.outcomes[1].error
    assert report.failures == 1


def test_every_slot_gets_an_outcome():
    client = FakeChatClient(delays={"b": 30}, fail={"a": 502}, raise_for={"c"})
    report = FixDispatcher(client, timeout=0.2).dispatch(_requests((3, "a"), (7, "b"), (9, "c"), (11, "d")))
    assert set(report.outcomes) == {3, 7, 9, 11}
    assert report.failures == 3


def test_tracker_records_in_slot_order():
    tracker = TokenTracker()
    client = FakeChatClient(delays={"a": 0.1})
    FixDispatcher(client, timeout=5, tracker=tracker).dispatch(_requests((0, "a"), (1, "b")))
    assert [h["slot"] for h in tracker.history] == [0, 1]
    assert tracker.total_tokens == 30


def test_empty_dispatch():
    report = FixDispatcher(FakeChatClient(), timeout=5).dispatch([])
    assert report.outcomes == {}
    assert report.failures == 0


def test_duplicate_slots_are_rejected():
    with pytest.raises(ValueError):
        FixDispatcher(FakeChatClient(), timeout=5).dispatch(_requests((0, "a"), (0, "b")))
