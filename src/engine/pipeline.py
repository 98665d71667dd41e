"""
God Code Event Bus

Engine operations commit their own state change first, then emit.
Subscribers run synchronously, in subscription order, before the emitting
operation returns. A subscriber may call back into public engine operations;
those emit nested events the same way.

Subscriber exceptions are not caught here. They reach whoever called the
engine operation, whose own effects are already committed.
"""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from .types import Event, EventType, GameState


logger = logging.getLogger(__name__)

EventHandler = Callable[[Event, GameState], None]


@dataclass
class Subscription:
    token: int
    kind: Optional[EventType]  # None = every event
    handler: EventHandler


class EventPipeline:
    """Synchronous publish/subscribe keyed by EventType."""

    def __init__(self, state: GameState, max_depth: int = 200, history_limit: Optional[int] = None):
        self.state = state
        self.max_depth = max_depth
        # Oldest events drop off once history_limit is reached; 0 keeps none
        self.history: deque[Event] = deque(maxlen=history_limit)
        self._subscriptions: list[Subscription] = []
        self._next_token = 1
        self._depth = 0

    def subscribe(self, kind: Optional[EventType], handler: EventHandler) -> int:
        """Register handler for one event kind (or every kind if None). Returns a token."""
        token = self._next_token
        self._next_token += 1
        self._subscriptions.append(Subscription(token=token, kind=kind, handler=handler))
        return token

    def unsubscribe(self, token: int) -> bool:
        for i, sub in enumerate(self._subscriptions):
            if sub.token == token:
                del self._subscriptions[i]
                return True
        return False

    def emit(self, event: Event) -> Event:
        """Dispatch an already-committed event to its subscribers."""
        if self._depth >= self.max_depth:
            raise RuntimeError(f"Event nesting exceeded {self.max_depth} levels - possible trigger loop")

        event.timestamp = self.state.next_timestamp()
        self.history.append(event)
        logger.debug("emit %s %s", event.type.name, event.payload)

        # Snapshot so handlers that (un)subscribe don't disturb this dispatch
        targets = [s for s in self._subscriptions if s.kind is None or s.kind == event.type]

        self._depth += 1
        try:
            for sub in targets:
                sub.handler(event, self.state)
        finally:
            self._depth -= 1

        return event

    def events_of(self, kind: EventType) -> list[Event]:
        """History filtered to one kind (handy for callers and tests)."""
        return [e for e in self.history if e.type == kind]
