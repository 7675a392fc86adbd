"""
Typed map interaction events and their single dispatch point.

The rendering adapter emits events here; the feature inspector subscribes.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

from core.models import Attributes, Coordinate
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeatureClicked:
    attributes: Optional[Attributes]
    layer_name: str


@dataclass(frozen=True)
class MapBackgroundClicked:
    coordinate: Coordinate


class EventDispatcher:
    """Routes events to the handlers subscribed to their exact type."""

    def __init__(self) -> None:
        self._handlers: Dict[Type, List[Callable]] = {}

    def subscribe(self, event_type: Type, handler: Callable) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def dispatch(self, event) -> int:
        """
        Deliver an event to its handlers in subscription order.

        Returns:
            Number of handlers that received the event
        """
        handlers = self._handlers.get(type(event), [])
        if not handlers:
            logger.debug(f"No handlers for {type(event).__name__}")
        for handler in list(handlers):
            handler(event)
        return len(handlers)

    def clear(self) -> None:
        self._handlers.clear()
