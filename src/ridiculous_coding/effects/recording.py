"""
In-memory cue renderer.

Records every render/clear call instead of painting anything. Used by the
tests and by the headless panel server, where the browser panel is the only
visible output.
"""

from dataclasses import dataclass, field
from typing import Any
import weakref

from ..errors import SurfaceClosedError
from .scheduler import EffectKind, JitterSide, Position


@dataclass
class RenderCall:
    """One call made against the renderer."""
    op: str  # render_cue, clear_cue, render_jitter, clear_jitter
    surface: Any
    target: EffectKind | JitterSide
    position: Position | None = None
    label: str | None = None
    color: str | None = None


@dataclass
class RecordingRenderer:
    """CueRenderer that keeps a call log and tracks what is on screen."""

    calls: list[RenderCall] = field(default_factory=list)
    _closed: "weakref.WeakSet[Any]" = field(default_factory=weakref.WeakSet, init=False, repr=False)
    _visible: dict[int, set] = field(default_factory=dict, init=False, repr=False)

    def close(self, surface: Any) -> None:
        """Mark a surface closed; further calls against it raise."""
        self._closed.add(surface)
        self._visible.pop(id(surface), None)

    def is_closed(self, surface: Any) -> bool:
        return surface in self._closed

    def visible(self, surface: Any) -> set:
        """Cue kinds and jitter sides currently shown on a surface."""
        return set(self._visible.get(id(surface), set()))

    def count(self, op: str, target: EffectKind | JitterSide | None = None) -> int:
        return sum(
            1 for c in self.calls
            if c.op == op and (target is None or c.target == target)
        )

    def reset(self) -> None:
        self.calls.clear()

    # CueRenderer protocol

    def render_cue(
        self,
        surface: Any,
        kind: EffectKind,
        position: Position,
        label: str | None = None,
        color: str | None = None,
    ) -> None:
        self._check(surface)
        self.calls.append(RenderCall("render_cue", surface, kind, position, label, color))
        self._visible.setdefault(id(surface), set()).add(kind)

    def clear_cue(self, surface: Any, kind: EffectKind) -> None:
        self._check(surface)
        self.calls.append(RenderCall("clear_cue", surface, kind))
        self._visible.get(id(surface), set()).discard(kind)

    def render_jitter(self, surface: Any, side: JitterSide, position: Position) -> None:
        self._check(surface)
        self.calls.append(RenderCall("render_jitter", surface, side, position))
        self._visible.setdefault(id(surface), set()).add(side)

    def clear_jitter(self, surface: Any, side: JitterSide) -> None:
        self._check(surface)
        self.calls.append(RenderCall("clear_jitter", surface, side))
        self._visible.get(id(surface), set()).discard(side)

    def _check(self, surface: Any) -> None:
        if surface in self._closed:
            raise SurfaceClosedError(surface)
