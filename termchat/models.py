from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import FrameError


SYSTEM_USERNAME = "[SYSTEM]"


# Inbound (connection -> server)

class RegisterFrame(BaseModel):
    type: Literal["register"]
    username: Optional[str] = None


class MessageFrame(BaseModel):
    type: Literal["message"]
    message: str


class PingFrame(BaseModel):
    type: Literal["ping"]


InboundFrame = Annotated[
    Union[RegisterFrame, MessageFrame, PingFrame],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter = TypeAdapter(InboundFrame)


def decode_frame(raw: Union[str, bytes]) -> Union[RegisterFrame, MessageFrame, PingFrame]:
    try:
        return _inbound_adapter.validate_json(raw)
    except ValidationError as exc:
        reasons = "; ".join(err["msg"] for err in exc.errors()[:3])
        raise FrameError(reasons or "invalid frame") from exc


# Outbound (server -> connection)

class ChatEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["message"] = "message"
    timestamp: str
    username: str
    color: str
    message: str
    id: str


class SystemEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["system"] = "system"
    timestamp: str
    username: str = SYSTEM_USERNAME
    message: str
    onlineCount: int = Field(ge=0)


Event = Union[ChatEvent, SystemEvent]


class WelcomePayload(BaseModel):
    type: Literal["welcome"] = "welcome"
    message: str
    history: List[Event] = Field(default_factory=list)
    onlineCount: int = Field(ge=0)


class ErrorPayload(BaseModel):
    type: Literal["error"] = "error"
    message: str


class PongPayload(BaseModel):
    type: Literal["pong"] = "pong"
