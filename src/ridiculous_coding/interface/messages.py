"""
Pydantic schemas for the presentation panel protocol.

These models define the contract between the engine and the panel script.
Outbound messages carry a `type` literal; inbound commands are parsed with
parse_command().
"""

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..state.schema import Settings


# -----------------------------------------------------------------------------
# Outbound (engine -> panel)
# -----------------------------------------------------------------------------

class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class StateMessage(_Wire):
    """XP numbers for the progress bar."""
    type: Literal["state"] = "state"
    xp: int
    level: int
    xp_next: int = Field(alias="xpNext")
    xp_level_start: int = Field(alias="xpLevelStart")


class InitMessage(StateMessage):
    """Full snapshot: settings for the toggles plus XP state."""
    type: Literal["init"] = "init"  # type: ignore[assignment]
    settings: dict[str, Any]


class BlipMessage(_Wire):
    type: Literal["blip"] = "blip"
    pitch: float
    enabled: bool


class BoomMessage(_Wire):
    type: Literal["boom"] = "boom"
    enabled: bool


class FireworksMessage(_Wire):
    type: Literal["fireworks"] = "fireworks"
    enabled: bool


OutboundMessage = Union[InitMessage, StateMessage, BlipMessage, BoomMessage, FireworksMessage]


def state_message(engine) -> StateMessage:
    """Build a state message from a ProgressionEngine."""
    return StateMessage(
        xp=engine.total_xp,
        level=engine.level,
        xp_next=engine.xp_at_next_level,
        xp_level_start=engine.xp_at_level_start,
    )


def init_message(engine, settings: Settings) -> InitMessage:
    """Build an init message from a ProgressionEngine and current settings."""
    return InitMessage(
        settings=settings.to_wire(),
        xp=engine.total_xp,
        level=engine.level,
        xp_next=engine.xp_at_next_level,
        xp_level_start=engine.xp_at_level_start,
    )


# -----------------------------------------------------------------------------
# Inbound (panel -> engine)
# -----------------------------------------------------------------------------

class ReadyCommand(BaseModel):
    type: Literal["ready"]


class ToggleCommand(BaseModel):
    type: Literal["toggle"]
    key: str
    value: bool


class ResetXpCommand(BaseModel):
    type: Literal["resetXp"]


class RequestStateCommand(BaseModel):
    type: Literal["requestState"]


InboundCommand = Union[ReadyCommand, ToggleCommand, ResetXpCommand, RequestStateCommand]

_command_adapter: TypeAdapter = TypeAdapter(
    Union[ReadyCommand, ToggleCommand, ResetXpCommand, RequestStateCommand]
)


def parse_command(data: Any) -> InboundCommand | None:
    """
    Parse a raw inbound command (dict or JSON string).

    Returns None for anything that isn't a known, well-formed command.
    """
    try:
        if isinstance(data, (str, bytes)):
            return _command_adapter.validate_json(data)
        return _command_adapter.validate_python(data)
    except ValidationError:
        return None
