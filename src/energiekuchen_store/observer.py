"""
StateObserver - change notifications for presentation collaborators.

The manager emits one event per committed intent. Each event carries the
state before and after the change, so a renderer can redraw only the
charts that actually changed, and a status line can tell whether the
change is waiting to be saved.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Deque, List, Optional

from .models import ChartType, EnergyState

logger = logging.getLogger(__name__)

MAX_HISTORY = 1000


@dataclass
class StateEvent:
    """
    A committed state change.

    intent_type is the intent name (e.g. "ADD_ACTIVITY"); chart is set for
    intents that target a single chart. previous is None only for events
    emitted without a known prior state.
    """
    intent_type: str
    timestamp: datetime
    state: EnergyState
    previous: Optional[EnergyState] = None
    chart: Optional[ChartType] = None

    def changed_charts(self) -> List[ChartType]:
        """Charts whose activities differ from the previous state."""
        if self.previous is None:
            return list(ChartType)
        return [
            c for c in ChartType
            if self.previous.data.chart(c) != self.state.data.chart(c)
        ]

    @property
    def persisted(self) -> bool:
        """True when this change stamped a new last_saved time."""
        if self.state.last_saved is None:
            return False
        return self.previous is None or self.state.last_saved != self.previous.last_saved


EventCallback = Callable[[StateEvent], None]


class StateObserver:
    """
    Fan-out of state change events with a bounded history.

    Usage:
        observer = StateObserver()
        observer.on_change(lambda event: redraw(event.changed_charts()))
        observer.emit("ADD_ACTIVITY", new_state, previous=old_state,
                      chart=ChartType.POSITIVE)
    """

    def __init__(self, max_history: int = MAX_HISTORY):
        self._callbacks: List[EventCallback] = []
        self._history: Deque[StateEvent] = deque(maxlen=max_history)

    def on_change(self, callback: EventCallback) -> None:
        self._callbacks.append(callback)

    def off_change(self, callback: EventCallback) -> None:
        """Unregister a callback; unknown callbacks are ignored."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def emit(
        self,
        intent_type: str,
        state: EnergyState,
        previous: Optional[EnergyState] = None,
        chart: Optional[ChartType] = None,
    ) -> StateEvent:
        """
        Record a committed state and notify every callback.

        A failing callback is logged and does not stop the others.
        """
        event = StateEvent(
            intent_type=intent_type,
            timestamp=datetime.now(timezone.utc),
            state=state,
            previous=previous,
            chart=chart,
        )
        self._history.append(event)

        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.warning("State callback for %s failed: %s", intent_type, e)

        return event

    def history(
        self,
        intent_type: Optional[str] = None,
        chart: Optional[ChartType] = None,
        persisted: Optional[bool] = None,
        limit: int = 50,
    ) -> List[StateEvent]:
        """
        Recent events, most recent first.

        Args:
            intent_type: Only events of this intent
            chart: Only events that changed this chart's activities
            persisted: Only events that were (True) or were not (False)
                stamped with a new last_saved time
            limit: Maximum events to return
        """
        matches: List[StateEvent] = []
        for event in reversed(self._history):
            if len(matches) >= limit:
                break
            if intent_type and event.intent_type != intent_type:
                continue
            if chart and chart not in event.changed_charts():
                continue
            if persisted is not None and event.persisted != persisted:
                continue
            matches.append(event)
        return matches

    def last_persisted(self) -> Optional[StateEvent]:
        """The most recent event that stamped a save, if any."""
        found = self.history(persisted=True, limit=1)
        return found[0] if found else None
