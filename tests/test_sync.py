"""
Tests for StateSync and the panel message schemas.

Delivery is best-effort: nothing attached means nothing delivered.
"""

import json

import pytest

from ridiculous_coding.interface.messages import (
    BlipMessage,
    BoomMessage,
    FireworksMessage,
    ReadyCommand,
    ToggleCommand,
    init_message,
    parse_command,
    state_message,
)
from ridiculous_coding.interface.sync import INITIAL_PUSH_DELAY_MS, StateSync


@pytest.fixture
def sync(engine, settings, backend):
    toggles = []
    resets = []
    sync = StateSync(
        engine,
        settings=lambda: settings,
        backend=backend,
        on_toggle=lambda key, value: toggles.append((key, value)),
        on_reset=lambda: resets.append(True),
    )
    sync.toggles = toggles
    sync.resets = resets
    return sync


class TestMessages:
    """Wire format of outbound messages."""

    def test_state_message_fields(self, engine):
        engine.add_xp(60)
        wire = state_message(engine).to_wire()
        assert wire == {
            "type": "state",
            "xp": 60,
            "level": 2,
            "xpNext": 150,
            "xpLevelStart": 50,
        }

    def test_init_message_carries_settings(self, engine, settings):
        wire = init_message(engine, settings).to_wire()
        assert wire["type"] == "init"
        assert wire["xpNext"] == 50
        assert wire["settings"]["reducedEffects"] is False
        assert wire["settings"]["baseXp"] == 50
        assert wire["settings"]["enableStatusBar"] is True

    def test_effect_messages(self):
        assert BlipMessage(pitch=1.05, enabled=True).to_wire() == {
            "type": "blip", "pitch": 1.05, "enabled": True,
        }
        assert BoomMessage(enabled=False).to_wire() == {"type": "boom", "enabled": False}
        assert FireworksMessage(enabled=True).to_wire() == {"type": "fireworks", "enabled": True}

    def test_wire_is_json_serializable(self, engine, settings):
        json.dumps(init_message(engine, settings).to_wire())


class TestParseCommand:
    def test_dict_commands(self):
        assert isinstance(parse_command({"type": "ready"}), ReadyCommand)
        toggle = parse_command({"type": "toggle", "key": "shake", "value": False})
        assert isinstance(toggle, ToggleCommand)
        assert toggle.key == "shake"
        assert toggle.value is False

    def test_json_text(self):
        assert isinstance(parse_command('{"type": "ready"}'), ReadyCommand)

    @pytest.mark.parametrize("raw", [
        {"type": "explode"},
        {"type": "toggle"},
        {},
        "not json",
        42,
    ])
    def test_rejects_garbage(self, raw):
        assert parse_command(raw) is None


class TestPublish:
    def test_dropped_without_channel(self, sync):
        assert sync.publish(BoomMessage(enabled=True)) is False
        assert sync.dropped == 1

    def test_no_replay_after_attach(self, sync, channel):
        sync.push_state()
        sync.push_state()
        sync.attach(channel)
        assert channel.messages == []

    def test_delivers_when_attached(self, sync, channel):
        sync.attach(channel)
        assert sync.publish(BoomMessage(enabled=True)) is True
        assert channel.messages == [{"type": "boom", "enabled": True}]

    def test_closed_channel_detaches(self, sync, channel):
        sync.attach(channel)
        channel.closed = True
        assert sync.publish(BoomMessage(enabled=True)) is False
        assert not sync.attached

    def test_detach_only_matching_channel(self, sync, channel):
        from conftest import ListChannel

        other = ListChannel()
        sync.attach(channel)
        sync.detach(other)
        assert sync.attached
        sync.detach(channel)
        assert not sync.attached


class TestInitialPush:
    def test_pushes_init_once_after_settle_delay(self, sync, channel, backend):
        sync.attach(channel)
        sync.activate()
        sync.activate()

        backend.advance(INITIAL_PUSH_DELAY_MS - 1)
        assert channel.messages == []

        backend.advance(1)
        assert channel.types() == ["init"]

        backend.advance(5000)
        assert channel.types() == ["init"]

    def test_initial_push_dropped_if_nobody_listens(self, sync, channel, backend):
        sync.activate()
        backend.advance(INITIAL_PUSH_DELAY_MS)
        sync.attach(channel)
        backend.advance(5000)
        assert channel.messages == []


class TestHandle:
    def test_ready_pushes_init(self, sync, channel):
        sync.attach(channel)
        assert sync.handle({"type": "ready"}) is True
        assert channel.types() == ["init"]

    def test_request_state_pushes_state_only(self, sync, channel):
        sync.attach(channel)
        sync.handle({"type": "requestState"})
        assert channel.types() == ["state"]
        assert "settings" not in channel.messages[0]

    def test_toggle_forwarded(self, sync):
        sync.handle({"type": "toggle", "key": "sound", "value": False})
        assert sync.toggles == [("sound", False)]

    def test_reset_forwarded(self, sync):
        sync.handle('{"type": "resetXp"}')
        assert sync.resets == [True]

    def test_reset_without_callback_resets_engine(self, engine, settings, backend, channel):
        sync = StateSync(engine, settings=lambda: settings, backend=backend)
        sync.attach(channel)
        engine.add_xp(10)
        sync.handle({"type": "resetXp"})
        assert engine.total_xp == 0
        assert channel.messages[-1]["xp"] == 0

    def test_unknown_command_ignored(self, sync, channel):
        sync.attach(channel)
        assert sync.handle({"type": "selfDestruct"}) is False
        assert channel.messages == []
