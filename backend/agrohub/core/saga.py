"""
Compensating-action sequences for multi-step operations.

Each step pairs an action with an optional compensation. Steps run in
order; when one fails, the compensations of the steps that already
completed run in reverse and the original error is re-raised.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Action = Callable[[dict[str, Any]], Awaitable[Any]]
Compensation = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensation: Optional[Compensation] = None


@dataclass
class Saga:
    """Ordered list of (action, compensation) pairs."""

    name: str
    steps: list[SagaStep] = field(default_factory=list)

    def step(
        self,
        name: str,
        action: Action,
        compensation: Optional[Compensation] = None,
    ) -> "Saga":
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def run(self, context: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute every step; results are stored in the context by step name."""
        context = context if context is not None else {}
        completed: list[SagaStep] = []

        for step in self.steps:
            try:
                context[step.name] = await step.action(context)
            except Exception:
                logger.warning(
                    f"[{self.name}] step '{step.name}' failed, "
                    f"compensating {len(completed)} completed step(s)"
                )
                await self._compensate(completed, context)
                raise
            completed.append(step)

        return context

    async def _compensate(self, completed: list[SagaStep], context: dict[str, Any]) -> None:
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                await step.compensation(context)
            except Exception as e:
                # Left for manual reconciliation; the triggering error still propagates
                logger.error(f"[{self.name}] compensation for '{step.name}' failed: {e}")
