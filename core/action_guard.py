"""In-flight guard for user-triggered mutations.

A second identical action (same kind, same entity) is rejected while the
first one is still pending, the way a front-end disables a button during
its request.
"""

import logging
from contextlib import contextmanager
from typing import Hashable, Iterator, Set

from core.errors import ActionInFlight

logger = logging.getLogger(__name__)


class ActionGuard:
    """Tracks pending actions by key."""

    def __init__(self):
        self._pending: Set[Hashable] = set()

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    @contextmanager
    def claim(self, key: Hashable) -> Iterator[None]:
        """Hold ``key`` for the duration of the block.

        Raises:
            ActionInFlight: ``key`` is already held
        """
        if key in self._pending:
            logger.debug(f"Rejected duplicate action {key!r}")
            raise ActionInFlight(f"Action already in progress: {key!r}")
        self._pending.add(key)
        try:
            yield
        finally:
            self._pending.discard(key)
