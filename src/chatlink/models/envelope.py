"""
Wire envelopes of the hidden message and beep channels.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr


class HiddenEnvelope(BaseModel):
    """Inner {type, message} pair carried by both channels."""
    type: StrictStr
    message: Any = None


class QueryMessage(BaseModel):
    id: StrictStr
    query: StrictStr
    data: Any = None


class QueryAnswerMessage(BaseModel):
    id: StrictStr
    ok: StrictBool
    data: Any = None
    error: Any = None


class HelloMessage(BaseModel):
    version: Optional[StrictStr] = None
    request: StrictBool = False
    effects: list[Any] = Field(default_factory=list)


class ChatRoomMessageData(BaseModel):
    """Host ChatRoomMessage event carrying a hidden message."""
    sender: StrictInt = Field(alias="Sender")
    content: str = Field(alias="Content")
    type: str = Field(alias="Type")
    dictionary: Any = Field(None, alias="Dictionary")
    target: Optional[int] = Field(None, alias="Target")

    model_config = {"populate_by_name": True}


class AccountBeepData(BaseModel):
    """Host AccountBeep event. `member_number` is the sender on inbound beeps."""
    member_number: StrictInt = Field(alias="MemberNumber")
    beep_type: str = Field(alias="BeepType")
    member_name: Optional[str] = Field(None, alias="MemberName")
    message: Any = Field(None, alias="Message")

    model_config = {"populate_by_name": True}
