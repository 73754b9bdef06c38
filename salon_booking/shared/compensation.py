import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


async def run_best_effort(action: str, operation: Callable[[], Awaitable]) -> bool:
    """
    Run an external call whose failure must not undo the caller's work
    (compensating calendar deletes, courtesy emails). Failures are logged
    and reported as False, never raised.
    """
    try:
        await operation()
        return True
    except Exception:
        logger.exception(f"Best-effort {action} failed")
        return False
