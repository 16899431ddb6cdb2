"""Compensating actions for multi-step writes.

A multi-step operation (directory creation, file writes, catalog inserts)
pushes an undo callback onto a :class:`RollbackStack` after each side effect
completes. If the operation fails, the callbacks run in reverse order. Undo
failures are logged and never replace the error that triggered the rollback.

Usage:
    with RollbackStack("add image") as rollback:
        write_original(path)
        rollback.push("remove original", path.unlink)
        insert_row()
        # Leaving the block normally discards the undo actions
"""

import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class RollbackStack:
    """LIFO stack of undo actions.

    Attributes:
        operation: Description used in log messages
    """

    def __init__(self, operation: str):
        self.operation = operation
        self._actions: List[Tuple[str, Callable[[], object]]] = []

    def push(self, description: str, action: Callable[[], object]):
        """Register an undo action for a side effect that just completed."""
        self._actions.append((description, action))

    def rollback(self) -> List[Tuple[str, BaseException]]:
        """Run all pending undo actions in reverse order.

        Returns:
            List of (description, exception) for actions that failed
        """
        failures = []
        while self._actions:
            description, action = self._actions.pop()
            try:
                action()
                logger.debug(f"[{self.operation}] rolled back: {description}")
            except Exception as e:
                logger.error(f"[{self.operation}] rollback step failed ({description}): {e}")
                failures.append((description, e))
        return failures

    def discard(self):
        """Forget pending undo actions once the operation has succeeded."""
        self._actions.clear()

    def __len__(self) -> int:
        return len(self._actions)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.warning(f"[{self.operation}] failed, running {len(self)} undo action(s)")
            self.rollback()
        else:
            self.discard()
        return False  # Don't suppress exceptions

    def __repr__(self) -> str:
        return f"RollbackStack(operation='{self.operation}', pending={len(self)})"
