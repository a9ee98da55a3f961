"""Change notifications published after successful mutations.

Mutations never call a cache directly. They publish "record X changed" and
any cache layer subscribes. Handlers run in subscription order; a failing
handler is logged and skipped because the mutation it reports has already
been committed.
"""

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Awaitable, Callable, Optional

from utils.logging import get_logger

logger = get_logger(__name__)


class ChangeKind(str, enum.Enum):
    DECISION_CREATED = "decision_created"
    DECISION_UPDATED = "decision_updated"
    DECISION_DELETED = "decision_deleted"
    LINKS_CHANGED = "links_changed"


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    decision_id: str
    actor_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_decision_change(self) -> bool:
        return self.kind != ChangeKind.LINKS_CHANGED


ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


class ChangeEventBus:
    """In-process publish/subscribe for ``ChangeEvent``."""

    def __init__(self):
        self._handlers: list[ChangeHandler] = []

    def subscribe(self, handler: ChangeHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: ChangeHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to every handler. Returns how many succeeded."""
        delivered = 0
        for handler in list(self._handlers):
            try:
                await handler(event)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f"Change handler {getattr(handler, '__qualname__', handler)!s} "
                    f"failed for {event.kind.value} {event.decision_id}: "
                    f"{type(e).__name__}: {e}"
                )
        logger.debug(
            f"Published {event.kind.value} for {event.decision_id} "
            f"to {delivered}/{len(self._handlers)} handlers"
        )
        return delivered


_bus: ChangeEventBus | None = None


def get_event_bus() -> ChangeEventBus:
    """Process-wide bus shared by the routers and the read cache."""
    global _bus
    if _bus is None:
        _bus = ChangeEventBus()
    return _bus
