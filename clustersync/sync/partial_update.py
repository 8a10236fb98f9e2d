"""Handler for partial cluster update events."""

from __future__ import annotations

from ..sqs.event import PARTIAL_CLUSTER_UPDATE_EVENT, Event, EventError, EventHandler


class PartialClusterUpdateHandler(EventHandler):
    """Accepts partial-cluster-update events."""

    event_type = PARTIAL_CLUSTER_UPDATE_EVENT

    def handle(self, event: Event | None) -> None:
        if event is None:
            raise EventError("event is nil")
        if event.type != self.event_type:
            raise EventError("event type does not match handler type")