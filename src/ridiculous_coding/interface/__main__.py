"""
Run the XP panel server.

Usage:
    python -m ridiculous_coding.interface [--port 8765] [--base-xp 50] [--demo]

With --demo a scripted typist feeds keystrokes into a headless editor so a
connected panel has something to show.
"""

import argparse
import asyncio
import logging

from rich.console import Console

from ..effects.recording import RecordingRenderer
from ..effects.scheduler import Position
from ..effects.timer import AsyncioTimerBackend
from .config import DEFAULT_CONFIG_DIR
from .controller import FeedbackController, TextChange
from .status import render_status_panel
from .websocket_server import PanelWebSocketServer

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
)
logger = logging.getLogger(__name__)
console = Console()

DEMO_TEXT = "def hello():\n    return 'ridiculous'\n"


class DemoSurface:
    """Headless editor with just a caret."""

    def __init__(self):
        self.caret = Position(line=0, character=0)

    def type(self, ch: str) -> None:
        if ch == "\n":
            self.caret = Position(self.caret.line + 1, 0)
        else:
            self.caret = Position(self.caret.line, self.caret.character + 1)


async def run_demo(controller: FeedbackController, delay: float = 0.08):
    surface = DemoSurface()
    while True:
        for ch in DEMO_TEXT:
            surface.type(ch)
            controller.on_text_change(surface, TextChange(inserted_text=ch))
            await asyncio.sleep(delay)
        for _ in range(5):
            controller.on_text_change(surface, TextChange(removed_char_count=1))
            await asyncio.sleep(delay * 2)
        console.print(render_status_panel(controller.engine))


async def main(host: str, port: int, config_dir: str, demo: bool, base_xp: int | None = None):
    """Main entry point for the panel server."""
    controller = FeedbackController.create(
        RecordingRenderer(),
        AsyncioTimerBackend(),
        config_dir=config_dir,
    )
    if base_xp is not None:
        logger.info(f"Base XP set to {controller.set_base_xp(base_xp)}")
    server = PanelWebSocketServer(controller.sync, host=host, port=port)

    await server.start()
    controller.activate()
    console.print(render_status_panel(controller.engine))
    logger.info("Press Ctrl+C to stop")

    try:
        if demo:
            await run_demo(controller)
        else:
            while True:
                await asyncio.sleep(1)
    finally:
        controller.deactivate()
        await server.stop()


def cli():
    parser = argparse.ArgumentParser(description="Ridiculous Coding panel server")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--config-dir", default=DEFAULT_CONFIG_DIR)
    parser.add_argument("--base-xp", type=int, default=None, help="Save a new leveling base XP")
    parser.add_argument("--demo", action="store_true", help="Simulate typing")
    args = parser.parse_args()

    try:
        asyncio.run(main(args.host, args.port, args.config_dir, args.demo, args.base_xp))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    cli()
