"""Concurrent fan-out of fix requests.

Every request runs as its own asyncio task with its own timeout. Tasks
share nothing: each one owns its payload and its outcome, and every
failure is caught inside the task and turned into a ``ChatOutcome``.
``dispatch`` is the pipeline's only barrier; it returns once every
request is terminal, with one outcome per slot.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from reviewer.fixes.prompt_builder import FixRequest
from reviewer.llm.base import ChatOutcome, TokenTracker

logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    async def complete(self, payload: dict[str, Any]) -> ChatOutcome: ...


@dataclass
class DispatchReport:
    outcomes: dict[int, ChatOutcome] = field(default_factory=dict)

    @property
    def failures(self) -> int:
        return sum(1 for o in self.outcomes.values() if not o.ok)

    @property
    def succeeded(self) -> int:
        return len(self.outcomes) - self.failures


class FixDispatcher:
    def __init__(self, client: ChatClient, timeout: float, tracker: TokenTracker | None = None) -> None:
        self.client = client
        self.timeout = timeout
        self.tracker = tracker

    async def _call(self, slot: int, request: FixRequest) -> ChatOutcome:
        try:
            return await asyncio.wait_for(self.client.complete(request.to_payload()), timeout=self.timeout)
        except asyncio.TimeoutError:
            return ChatOutcome(
                model=request.model,
                error=f"no response within {self.timeout:g}s",
                reason="timeout",
            )
        except Exception as e:
            logger.error("Fix request for slot %d failed: %s", slot, e, extra={"slot": slot})
            return ChatOutcome(model=request.model, error=str(e), reason="transport")

    async def dispatch_async(self, requests: Sequence[tuple[int, FixRequest]]) -> DispatchReport:
        slots = [slot for slot, _ in requests]
        if len(set(slots)) != len(slots):
            raise ValueError("dispatch slots must be unique")

        results = await asyncio.gather(*(self._call(slot, request) for slot, request in requests))

        report = DispatchReport()
        for slot, outcome in sorted(zip(slots, results), key=lambda pair: pair[0]):
            report.outcomes[slot] = outcome
            if self.tracker is not None:
                self.tracker.record(outcome, slot=slot)
            if not outcome.ok:
                logger.warning(
                    "Fix request failed: %s",
                    outcome.error,
                    extra={"slot": slot, "reason": outcome.reason, "status_code": outcome.status_code},
                )

        logger.info(
            "Dispatched %d fix requests: %d succeeded, %d failed",
            len(report.outcomes),
            report.succeeded,
            report.failures,
        )
        return report

    def dispatch(self, requests: Sequence[tuple[int, FixRequest]]) -> DispatchReport:
        """Blocking wrapper around :meth:`dispatch_async`."""
        return asyncio.run(self.dispatch_async(requests))
