"""
Shared room state as observed from host events.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from chatlink.models.events import HostEvent
from chatlink.models.room import ChatRoomSyncData, MemberJoinData, MemberLeaveData, RoomMember
from chatlink.transport.hooks import HookNext, HookRegistry

logger = logging.getLogger(__name__)

# Room observers run before every other hook so state is current when they run
ROOM_HOOK_PRIORITY = 100


class RoomState:
    def __init__(self) -> None:
        self.player: Optional[RoomMember] = None
        self.room_name: Optional[str] = None
        self.in_room = False
        self._members: dict[int, RoomMember] = {}

    @property
    def player_number(self) -> Optional[int]:
        return self.player.member_number if self.player else None

    @property
    def player_name(self) -> str:
        return self.player.name if self.player else ""

    @property
    def members(self) -> list[RoomMember]:
        return list(self._members.values())

    def is_member(self, member_number: int) -> bool:
        return self.in_room and member_number in self._members

    def get_member(self, member_number: int) -> Optional[RoomMember]:
        if not self.in_room:
            return None
        return self._members.get(member_number)

    def set_player(self, player: RoomMember) -> None:
        self.player = player

    def sync(self, data: ChatRoomSyncData) -> None:
        self.in_room = True
        self.room_name = data.name
        self._members = {m.member_number: m for m in data.members}

    def member_join(self, member: RoomMember) -> None:
        if self.in_room:
            self._members[member.member_number] = member

    def member_leave(self, member_number: int) -> None:
        self._members.pop(member_number, None)

    def leave(self) -> None:
        self.in_room = False
        self.room_name = None
        self._members.clear()

    def install(self, hooks: HookRegistry) -> None:
        hooks.hook(HostEvent.LOGIN_RESPONSE, ROOM_HOOK_PRIORITY, self._on_login_response)
        hooks.hook(HostEvent.CHAT_ROOM_SYNC, ROOM_HOOK_PRIORITY, self._on_sync)
        hooks.hook(HostEvent.CHAT_ROOM_SYNC_MEMBER_JOIN, ROOM_HOOK_PRIORITY, self._on_member_join)
        hooks.hook(HostEvent.CHAT_ROOM_SYNC_MEMBER_LEAVE, ROOM_HOOK_PRIORITY, self._on_member_leave)

    def _on_login_response(self, args: tuple[Any, ...], next: HookNext) -> Any:
        # A string response is a login failure reason
        if isinstance(args[0], dict):
            try:
                self.set_player(RoomMember.model_validate(args[0]))
            except ValidationError:
                logger.warning(f"Invalid login response: {args[0]!r}")
        return next(args)

    def _on_sync(self, args: tuple[Any, ...], next: HookNext) -> Any:
        try:
            self.sync(ChatRoomSyncData.model_validate(args[0]))
        except ValidationError:
            logger.warning(f"Invalid room sync: {args[0]!r}")
        return next(args)

    def _on_member_join(self, args: tuple[Any, ...], next: HookNext) -> Any:
        try:
            self.member_join(MemberJoinData.model_validate(args[0]).character)
        except ValidationError:
            logger.warning(f"Invalid member join: {args[0]!r}")
        return next(args)

    def _on_member_leave(self, args: tuple[Any, ...], next: HookNext) -> Any:
        try:
            self.member_leave(MemberLeaveData.model_validate(args[0]).source_member_number)
        except ValidationError:
            logger.warning(f"Invalid member leave: {args[0]!r}")
        return next(args)

    def allows_item_from(self, member_number: int) -> bool:
        """Default access check: does `member_number` have standing over the player?

        Owner always, self always; otherwise decided by the player's item
        permission level (0 everyone, 1 everyone not blacklisted, 2 and 3
        whitelisted, 4 lovers, 5 owner only).
        """
        player = self.player
        if player is None:
            return False
        if member_number == player.member_number:
            return True
        if player.ownership is not None and player.ownership.member_number == member_number:
            return True
        permission = player.item_permission
        if permission == 0:
            return True
        if permission <= 4 and any(lover.member_number == member_number for lover in player.lovership):
            return True
        if member_number in player.black_list:
            return False
        if permission == 1:
            return True
        if permission in (2, 3):
            return member_number in player.white_list
        return False
