"""
Envelope construction and parsing for hidden messages and beeps.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from chatlink.constants import BEEP_TYPE, BEEP_TYPES, HIDDEN_MESSAGE_CONTENT, LEASH_BEEP_TYPE
from chatlink.models.envelope import AccountBeepData, ChatRoomMessageData, HiddenEnvelope

logger = logging.getLogger(__name__)


def build_hidden_message(type: str, message: Any, target: Optional[int] = None) -> dict[str, Any]:
    """Build a ChatRoomChat payload. `target=None` reaches every room member."""
    return {
        "Content": HIDDEN_MESSAGE_CONTENT,
        "Type": "Hidden",
        "Target": target,
        "Dictionary": HiddenEnvelope(type=type, message=message).model_dump(),
    }


def build_hidden_beep(type: str, message: Any, target: int, as_leash_beep: bool = False) -> dict[str, Any]:
    """Build an AccountBeep payload on one of the two beep sub-channels."""
    return {
        "MemberNumber": target,
        "BeepType": LEASH_BEEP_TYPE if as_leash_beep else BEEP_TYPE,
        "Message": {
            BEEP_TYPE: HiddenEnvelope(type=type, message=message).model_dump(),
        },
    }


def is_hidden_message(data: Any) -> bool:
    """True if a ChatRoomMessage belongs to this protocol, whether well formed or not."""
    return (
        isinstance(data, dict)
        and data.get("Type") == "Hidden"
        and data.get("Content") == HIDDEN_MESSAGE_CONTENT
        and isinstance(data.get("Sender"), int)
        and not isinstance(data.get("Sender"), bool)
    )


def is_hidden_beep(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and data.get("BeepType") in BEEP_TYPES
        and isinstance(data.get("Message"), dict)
        and isinstance(data["Message"].get(BEEP_TYPE), dict)
    )


def parse_hidden_message(data: dict[str, Any]) -> Optional[tuple[int, HiddenEnvelope]]:
    """Unwrap a hidden ChatRoomMessage into (sender, envelope). Returns None if malformed."""
    try:
        outer = ChatRoomMessageData.model_validate(data)
        return outer.sender, HiddenEnvelope.model_validate(outer.dictionary)
    except ValidationError:
        logger.warning(f"Malformed hidden message: {data!r}")
        return None


def parse_hidden_beep(data: dict[str, Any]) -> Optional[tuple[int, HiddenEnvelope]]:
    """Unwrap a hidden AccountBeep into (sender, envelope). Returns None if malformed."""
    try:
        outer = AccountBeepData.model_validate(data)
        return outer.member_number, HiddenEnvelope.model_validate(outer.message[BEEP_TYPE])
    except ValidationError:
        logger.warning(f"Malformed hidden beep: {data!r}")
        return None
