"""
Best-effort bridge between the engines and the presentation panel.

Outbound messages are handed to whichever channel is attached right now.
With nothing attached they are dropped: no queue, no replay. The only
exception is the initial-state push, sent once after a short settle delay
following activate(), for panels that attach just after startup.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, runtime_checkable

from ..effects.timer import EffectTimer, TimerBackend
from ..errors import ChannelClosedError
from ..progression.engine import ProgressionEngine
from ..state.schema import Settings
from .messages import (
    OutboundMessage,
    ReadyCommand,
    RequestStateCommand,
    ResetXpCommand,
    ToggleCommand,
    init_message,
    parse_command,
    state_message,
)

logger = logging.getLogger(__name__)

INITIAL_PUSH_DELAY_MS = 500


@runtime_checkable
class MessageChannel(Protocol):
    """
    Outbound transport to a panel.

    send() must not block; raise ChannelClosedError if the panel is gone.
    """

    def send(self, payload: dict) -> None:
        ...


class StateSync:
    """Publishes engine state to the panel and dispatches panel commands."""

    def __init__(
        self,
        engine: ProgressionEngine,
        settings: Callable[[], Settings],
        backend: TimerBackend,
        on_toggle: Callable[[str, bool], None] | None = None,
        on_reset: Callable[[], None] | None = None,
        settle_delay_ms: float = INITIAL_PUSH_DELAY_MS,
    ):
        self.engine = engine
        self._settings = settings
        self.backend = backend
        self.on_toggle = on_toggle
        self.on_reset = on_reset
        self.settle_delay_ms = settle_delay_ms
        self._channel: MessageChannel | None = None
        self._initial_push: EffectTimer | None = None
        self.sent = 0
        self.dropped = 0

    # -------------------------------------------------------------------------
    # Channel
    # -------------------------------------------------------------------------

    @property
    def attached(self) -> bool:
        return self._channel is not None

    def attach(self, channel: MessageChannel) -> None:
        """Attach the panel channel, replacing any previous one."""
        self._channel = channel

    def detach(self, channel: MessageChannel | None = None) -> None:
        """Detach the current channel (or only if it is `channel`)."""
        if channel is None or channel is self._channel:
            self._channel = None

    def activate(self) -> EffectTimer:
        """Schedule the one-time initial state push."""
        if self._initial_push is None:
            self._initial_push = EffectTimer(
                self.backend, self.settle_delay_ms, self.push_init
            ).start()
        return self._initial_push

    # -------------------------------------------------------------------------
    # Outbound
    # -------------------------------------------------------------------------

    def publish(self, message: OutboundMessage) -> bool:
        """
        Send a message if a panel is attached.

        Returns:
            True if the message was handed to a channel
        """
        channel = self._channel
        if channel is None:
            self.dropped += 1
            logger.debug(f"No panel attached, dropped {message.type}")
            return False
        try:
            channel.send(message.to_wire())
        except ChannelClosedError:
            logger.info("Panel channel closed")
            self.detach(channel)
            self.dropped += 1
            return False
        self.sent += 1
        return True

    def push_state(self) -> bool:
        return self.publish(state_message(self.engine))

    def push_init(self) -> bool:
        return self.publish(init_message(self.engine, self._settings()))

    # -------------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------------

    def handle(self, command: Any) -> bool:
        """
        Dispatch a panel command.

        Args:
            command: Raw command as dict or JSON text

        Returns:
            True if the command was recognised
        """
        parsed = parse_command(command)
        if parsed is None:
            logger.warning(f"Ignoring unknown panel command: {str(command)[:100]}")
            return False

        if isinstance(parsed, ReadyCommand):
            self.push_init()
        elif isinstance(parsed, ToggleCommand):
            if self.on_toggle:
                self.on_toggle(parsed.key, parsed.value)
        elif isinstance(parsed, ResetXpCommand):
            if self.on_reset:
                self.on_reset()
            else:
                self.engine.reset()
                self.push_state()
        elif isinstance(parsed, RequestStateCommand):
            self.push_state()
        return True
