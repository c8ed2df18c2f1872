"""In-process channel publisher.

Connections register a handler for a channel; producers publish
``(channel, payload, event_name)`` and every handler currently registered
on that channel is called synchronously, in subscription order.

All registry access and delivery happens under one re-entrant lock, so:

- two publishes on a channel reach each subscriber in publish order, even
  when they come from different threads;
- a handler may unsubscribe itself (or others) during delivery;
- once ``unsubscribe`` returns, the handler is never called again.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from rivulet.sse.formatter import validate_event_name

if TYPE_CHECKING:
    from collections.abc import Callable

    Handler = Callable[[Any, str | None], None]

logger = structlog.get_logger()


@dataclass(slots=True)
class Subscription:
    """Binding of one handler to one channel."""

    id: int
    channel: str
    handler: Handler
    active: bool = True


class Publisher:
    """Named-channel broadcast registry."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._channels: dict[str, dict[int, Subscription]] = {}
        self._subscriptions: dict[int, Subscription] = {}

    def subscribe(self, channel: str, handler: Handler) -> int:
        """Register ``handler`` on ``channel`` and return the subscription id."""
        with self._lock:
            subscription = Subscription(id=next(self._ids), channel=channel, handler=handler)
            self._channels.setdefault(channel, {})[subscription.id] = subscription
            self._subscriptions[subscription.id] = subscription

        logger.debug("rivulet_subscribed", channel=channel, subscription_id=subscription.id)
        return subscription.id

    def unsubscribe(self, subscription_id: int) -> bool:
        """Remove a subscription. Unknown or already-removed ids are a no-op.

        Returns True if a subscription was removed.
        """
        with self._lock:
            subscription = self._subscriptions.pop(subscription_id, None)
            if subscription is None:
                return False
            subscription.active = False
            listeners = self._channels.get(subscription.channel)
            if listeners is not None:
                listeners.pop(subscription_id, None)
                if not listeners:
                    del self._channels[subscription.channel]

        logger.debug(
            "rivulet_unsubscribed",
            channel=subscription.channel,
            subscription_id=subscription_id,
        )
        return True

    def publish(self, channel: str, payload: Any, event_name: str | None = None) -> int:
        """Deliver an event to every handler on ``channel``.

        A handler that raises is logged and skipped; the remaining handlers
        still receive the event and the error does not reach the caller.

        Returns the number of handlers that accepted the event.
        """
        validate_event_name(event_name)
        delivered = 0
        with self._lock:
            listeners = list(self._channels.get(channel, {}).values())
            for subscription in listeners:
                # Removed by an earlier handler in this same delivery
                if not subscription.active:
                    continue
                try:
                    subscription.handler(payload, event_name)
                except Exception:
                    logger.exception(
                        "rivulet_handler_failed",
                        channel=channel,
                        subscription_id=subscription.id,
                        event_name=event_name,
                    )
                    continue
                delivered += 1
        return delivered

    def subscriber_count(self, channel: str | None = None) -> int:
        """Number of live subscriptions, optionally restricted to one channel."""
        with self._lock:
            if channel is None:
                return len(self._subscriptions)
            return len(self._channels.get(channel, {}))

    def channels(self) -> list[str]:
        """Channels that currently have at least one subscriber."""
        with self._lock:
            return list(self._channels)

    def clear(self) -> None:
        """Drop every subscription. Used on teardown."""
        with self._lock:
            for subscription in self._subscriptions.values():
                subscription.active = False
            self._subscriptions.clear()
            self._channels.clear()
