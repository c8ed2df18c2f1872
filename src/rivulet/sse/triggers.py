"""Publish triggers: the two ways an event reaches the Publisher.

``DirectTrigger`` is the method-call path behind ``Rivulet.send``.
``EventSourceRelay`` listens on an external emitter for events named
after the stream prefix and forwards each firing to the Publisher with the
same arguments, so both paths produce identical frames.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

    from rivulet.sse.publisher import Publisher

logger = structlog.get_logger()


@runtime_checkable
class EventSource(Protocol):
    """Anything with an emitter-style ``on``, e.g. ``pyee.EventEmitter``."""

    def on(self, event: str, listener: Callable[..., Any]) -> Any: ...


class DirectTrigger:
    """Publishes on direct method invocation."""

    def __init__(self, publisher: Publisher) -> None:
        self._publisher = publisher

    def send(self, channel: str, payload: Any, event_name: str | None = None) -> int:
        return self._publisher.publish(channel, payload, event_name)


class EventSourceRelay:
    """Relays ``source`` events named ``event`` into the Publisher.

    Each firing carries ``(channel, payload, event_name?)`` as positional
    arguments.
    """

    def __init__(self, publisher: Publisher, source: EventSource, event: str) -> None:
        self._publisher = publisher
        self._source = source
        self._event = event
        self._attached = True
        source.on(event, self.relay)
        logger.info("rivulet_relay_attached", relay_event=event)

    def relay(
        self,
        channel: str,
        payload: Any = None,
        event_name: str | None = None,
        *_: Any,
    ) -> int:
        if not self._attached:
            return 0
        return self._publisher.publish(channel, payload, event_name)

    def close(self) -> None:
        """Stop relaying; removes the listener where the source supports it."""
        if not self._attached:
            return
        self._attached = False
        remove = getattr(self._source, "remove_listener", None)
        if remove is not None:
            remove(self._event, self.relay)
        logger.info("rivulet_relay_detached", relay_event=self._event)
