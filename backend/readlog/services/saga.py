"""
Readlog Backend — Saga (Compensating Multi-Step Mutation)
===========================================================

What:  An ordered list of (action, compensation) pairs run as one logical unit.
Why:   Note creation touches two documents (book.notes, then the note) with
       no transaction around them. When a later step fails, the earlier
       steps must be undone by hand.
How:   Steps run in order. When step N raises:
         1. compensations of steps N-1 .. 1 run in reverse order
         2. a compensation that raises is logged as an inconsistency needing
            out-of-band repair; the remaining compensations still run
         3. the ORIGINAL exception from step N is re-raised, never a
            compensation error
       No retries at any point.

Example:
    saga = Saga("create_note")
    saga.step("append", append_to_book, compensation=pull_from_book)
    saga.step("insert", insert_note)
    await saga.run()
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensation: Optional[Action] = None


@dataclass
class SagaOutcome:
    """What happened during the last run(); inspected by tests and callers."""
    completed: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None
    compensated: List[str] = field(default_factory=list)
    compensation_failures: List[str] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.compensation_failures


class Saga:
    def __init__(self, name: str):
        self.name = name
        self.steps: List[SagaStep] = []
        self.outcome = SagaOutcome()

    def step(self, name: str, action: Action, compensation: Optional[Action] = None) -> "Saga":
        self.steps.append(SagaStep(name=name, action=action, compensation=compensation))
        return self

    async def run(self, compensate: bool = True) -> List[Any]:
        """
        Run every step; return their results in order.

        Args:
            compensate: False when an enclosing store transaction will roll
                        the completed steps back on its own.
        """
        self.outcome = SagaOutcome()
        results: List[Any] = []
        done: List[SagaStep] = []

        for step in self.steps:
            try:
                results.append(await step.action())
            except Exception:
                self.outcome.failed_step = step.name
                logger.warning("Saga %s: step '%s' failed", self.name, step.name)
                if compensate:
                    await self._compensate(done)
                raise
            done.append(step)
            self.outcome.completed.append(step.name)

        return results

    async def _compensate(self, done: List[SagaStep]) -> None:
        for step in reversed(done):
            if step.compensation is None:
                continue
            try:
                await step.compensation()
            except Exception:
                # Reported to the operator, not to the caller
                self.outcome.compensation_failures.append(step.name)
                logger.error(
                    "Saga %s: compensation for step '%s' failed; "
                    "store left inconsistent, manual repair required",
                    self.name,
                    step.name,
                    exc_info=True,
                )
            else:
                self.outcome.compensated.append(step.name)
                logger.info("Saga %s: compensated step '%s'", self.name, step.name)
