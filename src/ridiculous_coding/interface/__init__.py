"""Presentation glue: panel sync, settings, status line, editor events."""

from .controller import FeedbackController, TextChange, sanitize_label
from .messages import (
    BlipMessage,
    BoomMessage,
    FireworksMessage,
    InitMessage,
    StateMessage,
    parse_command,
)
from .status import StatusLine, status_text
from .sync import MessageChannel, StateSync

__all__ = [
    "FeedbackController",
    "TextChange",
    "sanitize_label",
    "BlipMessage",
    "BoomMessage",
    "FireworksMessage",
    "InitMessage",
    "StateMessage",
    "parse_command",
    "StatusLine",
    "status_text",
    "MessageChannel",
    "StateSync",
]
