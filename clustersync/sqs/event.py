"""Queue events exchanged between the cluster registry components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

MESSAGE_ATTRIBUTE_TYPE = "Type"
MESSAGE_ATTRIBUTE_CLUSTER_NAME = "ClusterName"
MESSAGE_ATTRIBUTE_SKIP_CACHE_INVALIDATION = "SkipCacheInvalidation"

# An update of the Cluster object sent by the client controller and consumed
# by the API server, which reconciles the database.
CLUSTER_UPDATE_EVENT = "cluster-update"

# An update of the ClusterSync object on the management cluster sent by the
# sync controller and consumed by the sync client, which creates or updates
# the Cluster object on the cluster.
PARTIAL_CLUSTER_UPDATE_EVENT = "partial-cluster-update"

EVENT_TYPES = (CLUSTER_UPDATE_EVENT, PARTIAL_CLUSTER_UPDATE_EVENT)


class EventError(ValueError):
    """Raised when a message is not a usable event."""


@dataclass(frozen=True)
class Event:
    """A queue message together with its event type."""

    type: str
    message: Mapping[str, Any]


def new_event(message: Mapping[str, Any] | None) -> Event:
    """Build an event from a received queue message."""
    if message is None:
        raise EventError("empty message")
    attributes = message.get("MessageAttributes") or {}
    type_attribute = attributes.get(MESSAGE_ATTRIBUTE_TYPE)
    if type_attribute is None:
        raise EventError("missing event type")
    event_type = type_attribute.get("StringValue")
    if event_type not in EVENT_TYPES:
        raise EventError("invalid event type")
    return Event(type=event_type, message=message)


class EventHandler(ABC):
    """Handles the events of one type."""

    event_type: str = ""

    @abstractmethod
    def handle(self, event: Event | None) -> None:
        """Process one event, raising on failure."""