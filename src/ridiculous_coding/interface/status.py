"""
Status line rendering.

Plain text for editor status bars, rich renderables for terminals.
"""

from rich.panel import Panel
from rich.text import Text

from ..progression.engine import ProgressionEngine
from ..state.event_bus import EventBus, EventType, ProgressEvent

BAR_WIDTH = 20


def status_text(engine: ProgressionEngine) -> str:
    """Short status: 'RC Lv 3 — 40/150 XP'."""
    prog = engine.progress
    return f"RC Lv {engine.level} — {prog.current}/{prog.max} XP"


def status_tooltip(engine: ProgressionEngine) -> str:
    prog = engine.progress
    return f"Ridiculous Coding\nLevel {engine.level}\n{prog.current}/{prog.max} XP"


def render_xp_bar(engine: ProgressionEngine, width: int = BAR_WIDTH) -> Text:
    """Level label plus a block bar for the current level."""
    prog = engine.progress
    filled = int(round(prog.fraction * width))

    text = Text()
    text.append(f"Lv {engine.level} ", style="bold cyan")
    text.append("█" * filled, style="green")
    text.append("░" * (width - filled), style="dim")
    text.append(f" {prog.current}/{prog.max} XP", style="white")
    return text


def render_status_panel(engine: ProgressionEngine) -> Panel:
    return Panel(
        render_xp_bar(engine),
        title="[bold]RIDICULOUS CODING[/bold]",
        title_align="left",
        border_style="blue",
        padding=(0, 1),
    )


class StatusLine:
    """
    Keeps a status string current by listening to progression events.

    `enabled=False` hides it (text becomes None), like the editor setting.
    """

    WATCHED = (
        EventType.XP_GAINED,
        EventType.XP_RESET,
        EventType.BASE_XP_CHANGED,
    )

    def __init__(self, engine: ProgressionEngine, bus: EventBus, enabled: bool = True):
        self.engine = engine
        self.bus = bus
        self.enabled = enabled
        self.text: str | None = None
        self.updates = 0
        for event_type in self.WATCHED:
            bus.on(event_type, self._on_event)
        self.refresh()

    def refresh(self) -> str | None:
        self.text = status_text(self.engine) if self.enabled else None
        self.updates += 1
        return self.text

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        self.refresh()

    def close(self) -> None:
        for event_type in self.WATCHED:
            self.bus.off(event_type, self._on_event)

    def _on_event(self, event: ProgressEvent) -> None:
        self.refresh()
