"""In-process event bus carrying booking and room registry events"""
import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Type, Union

from domain.events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], Union[None, Awaitable[None]]]


class EventBus:
    """
    Delivers each published event to every handler subscribed to its type
    (or to one of its base classes), in subscription order.

    Handlers run inline within publish(), so by the time the publishing
    service call returns the room side has seen the change. Handlers must
    tolerate receiving the same event twice.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Registered handler %s for %s", getattr(handler, "__qualname__", handler), event_type.__name__)

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[Handler]:
        matched = []
        for cls in event_type.__mro__:
            matched.extend(self._handlers.get(cls, []))
        return matched

    async def publish(self, event: DomainEvent) -> None:
        logger.debug("Publishing %r", event)
        for handler in self.handlers_for(type(event)):
            result = handler(event)
            if asyncio.iscoroutine(result):
                await result
