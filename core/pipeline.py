"""
Sequential pipeline of fallible async steps.

Every handler is a short chain of calls to external services where each call
depends on the previous result.  ``run_pipeline`` executes the steps in order,
stops at the first one that raises and reports which step failed, so callers
can treat the whole chain as all-or-nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

StepFn = Callable[[Any], Awaitable[Any]]
Step = Tuple[str, StepFn]


@dataclass
class StepResult:
    ok: bool
    value: Any = None
    failed_step: Optional[str] = None
    error: Optional[BaseException] = None
    completed: Tuple[str, ...] = ()

    def unwrap(self) -> Any:
        """Return the final value or re-raise the captured error."""
        if not self.ok:
            assert self.error is not None
            raise self.error
        return self.value


async def run_pipeline(steps: Sequence[Step], initial: Any = None) -> StepResult:
    """
    Run ``steps`` in order, feeding each one the previous step's value.

    The first step that raises short-circuits the pipeline; later steps
    never run.  The failure is logged with the step name and returned
    rather than raised.
    """
    value = initial
    completed: list[str] = []
    for name, fn in steps:
        try:
            value = await fn(value)
        except Exception as exc:
            logger.error("Step '%s' failed: %s", name, exc, exc_info=True)
            return StepResult(
                ok=False,
                failed_step=name,
                error=exc,
                completed=tuple(completed),
            )
        completed.append(name)
    return StepResult(ok=True, value=value, completed=tuple(completed))
