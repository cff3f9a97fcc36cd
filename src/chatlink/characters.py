"""
Characters: one proxy per room member, behind a single async interface.

The player's own character calls the local authoritative functions directly.
Every other character sends a query to that member's client and validates
the answer before returning it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import TypeAdapter, ValidationError

from chatlink.constants import (
    PROTOCOL_VERSION,
    TOGGLEABLE_MODULES,
    AccessLevel,
    ConditionsLimit,
    LogAccessLevel,
    ModuleCategory,
)
from chatlink.errors import CategoryDisabledError, ChatLinkError, QueryError, ResponseDecodeError
from chatlink.local import LocalState
from chatlink.messaging import Messaging
from chatlink.models.character import (
    ACCESS_LEVEL,
    ANY_LIST,
    BOOL,
    LOG_CONFIG,
    LOG_ENTRIES,
    PERMISSION_BUNDLE,
    ConditionPublicData,
    ConditionsCategoryConfigurableData,
    ConditionsCategoryPublicData,
    LogAllowedActions,
    LogEntry,
    RolesData,
)
from chatlink.models.events import Query
from chatlink.room import RoomState

logger = logging.getLogger(__name__)

AccessCheck = Callable[[int], bool]

_ACCESS_LEVELS = {level.value for level in AccessLevel}
_LOG_ACCESS_LEVELS = {level.value for level in LogAccessLevel}
_ROLES_DATA = TypeAdapter(RolesData)
_LOG_ALLOWED_ACTIONS = TypeAdapter(LogAllowedActions)
_CONDITIONS_CATEGORY_DATA = TypeAdapter(ConditionsCategoryPublicData)


def check_permission_edit(mode: str, target: Any) -> None:
    """Raise TypeError if `target` does not fit the permission edit `mode`."""
    if mode == "self":
        if not isinstance(target, bool):
            raise TypeError("Invalid target value for self permission edit")
    elif mode == "min":
        if isinstance(target, bool) or not isinstance(target, int) or target not in _ACCESS_LEVELS:
            raise TypeError("Invalid target value for min permission edit")
    else:
        raise ValueError(f"Unknown permission edit mode {mode!r}")


class Character(ABC):
    def __init__(self, member_number: int, name: str, access_check: AccessCheck):
        self.member_number = member_number
        self.name = name
        self.version: Optional[str] = None
        self.effects: list[Any] = []
        self._access_check = access_check
        logger.debug(f"Loaded character {self}")

    def __str__(self) -> str:
        return f"{self.name} ({self.member_number})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(member_number={self.member_number!r}, name={self.name!r})"

    def is_player(self) -> bool:
        return False

    def has_access_to_player(self) -> bool:
        """Whether this character has standing authority over the local player."""
        return self._access_check(self.member_number)

    async def set_permission(self, permission: str, mode: str, target: Any) -> bool:
        """Edit a permission: mode "self" takes a bool, mode "min" an AccessLevel."""
        check_permission_edit(mode, target)
        return await self._set_permission(permission, mode, target)

    @abstractmethod
    async def _set_permission(self, permission: str, mode: str, target: Any) -> bool: ...

    @abstractmethod
    async def get_disabled_modules(self, timeout: Optional[float] = None) -> list[ModuleCategory]: ...

    @abstractmethod
    async def get_permissions(self) -> dict[str, tuple[bool, AccessLevel]]: ...

    @abstractmethod
    async def get_permission_access(self, permission: str) -> bool: ...

    @abstractmethod
    async def get_my_access_level(self) -> AccessLevel: ...

    @abstractmethod
    async def get_roles_data(self) -> RolesData: ...

    @abstractmethod
    async def edit_role(self, role: str, action: str, target: int) -> bool: ...

    @abstractmethod
    async def get_log_entries(self) -> list[LogEntry]: ...

    @abstractmethod
    async def log_message_delete(self, time: int) -> bool: ...

    @abstractmethod
    async def get_log_config(self) -> dict[str, LogAccessLevel]: ...

    @abstractmethod
    async def set_log_config(self, category: str, target: LogAccessLevel) -> bool: ...

    @abstractmethod
    async def log_clear(self) -> bool: ...

    @abstractmethod
    async def log_praise(self, value: int, message: Optional[str]) -> bool: ...

    @abstractmethod
    async def log_get_allowed_actions(self) -> LogAllowedActions: ...

    @abstractmethod
    async def curse_item(self, group: str, curse_properties: Optional[bool]) -> bool: ...

    @abstractmethod
    async def curse_lift(self, group: str) -> bool: ...

    @abstractmethod
    async def curse_batch(self, mode: str, including_empty: bool) -> bool: ...

    @abstractmethod
    async def curse_lift_all(self) -> bool: ...

    @abstractmethod
    async def conditions_get_by_category(self, category: str) -> ConditionsCategoryPublicData: ...

    @abstractmethod
    async def condition_set_limit(self, category: str, condition: str, limit: ConditionsLimit) -> bool: ...

    @abstractmethod
    async def condition_update(self, category: str, condition: str, data: ConditionPublicData) -> bool: ...

    @abstractmethod
    async def condition_category_update(self, category: str, data: ConditionsCategoryConfigurableData) -> bool: ...

    @abstractmethod
    async def rule_create(self, name: str) -> bool: ...

    @abstractmethod
    async def rule_delete(self, name: str) -> bool: ...


class RemoteCharacter(Character):
    """Another room member, reached through queries."""

    def __init__(self, member_number: int, name: str, access_check: AccessCheck, messaging: Messaging):
        super().__init__(member_number, name, access_check)
        self._messaging = messaging

    async def _query(
        self,
        query: str,
        data: Any = None,
        adapter: TypeAdapter = BOOL,
        timeout: Optional[float] = None,
    ) -> Any:
        result = await self._messaging.send_query(query, data, self.member_number, timeout)
        try:
            return adapter.validate_python(result)
        except ValidationError:
            logger.error(f"Bad data during {query!r} query from {self}: {result!r}")
            raise ResponseDecodeError(query, result) from None

    async def get_disabled_modules(self, timeout: Optional[float] = None) -> list[ModuleCategory]:
        data = await self._query(Query.DISABLED_MODULES, adapter=ANY_LIST, timeout=timeout)
        return [
            ModuleCategory(i) for i in data
            if isinstance(i, int) and not isinstance(i, bool) and i in TOGGLEABLE_MODULES
        ]

    async def get_permissions(self) -> dict[str, tuple[bool, AccessLevel]]:
        return await self._query(Query.PERMISSIONS, adapter=PERMISSION_BUNDLE)

    async def get_permission_access(self, permission: str) -> bool:
        try:
            return await self._query(Query.PERMISSION_ACCESS, permission)
        except QueryError as e:
            logger.error(f"Error while querying permission {permission!r} access for {self}: {e}")
            return False

    async def get_my_access_level(self) -> AccessLevel:
        return await self._query(Query.MY_ACCESS_LEVEL, adapter=ACCESS_LEVEL)

    async def _set_permission(self, permission: str, mode: str, target: Any) -> bool:
        return await self._query(Query.EDIT_PERMISSION, {
            "permission": permission,
            "edit": mode,
            "target": target,
        })

    async def get_roles_data(self) -> RolesData:
        return await self._query(Query.ROLES_DATA, adapter=_ROLES_DATA)

    async def edit_role(self, role: str, action: str, target: int) -> bool:
        return await self._query(Query.EDIT_ROLE, {"type": role, "action": action, "target": target})

    async def get_log_entries(self) -> list[LogEntry]:
        return await self._query(Query.LOG_DATA, adapter=LOG_ENTRIES)

    async def log_message_delete(self, time: int) -> bool:
        return await self._query(Query.LOG_DELETE, time)

    async def get_log_config(self) -> dict[str, LogAccessLevel]:
        data = await self._query(Query.LOG_CONFIG_GET, adapter=LOG_CONFIG)
        # unknown levels are dropped, not rejected
        return {k: LogAccessLevel(v) for k, v in data.items() if v in _LOG_ACCESS_LEVELS}

    async def set_log_config(self, category: str, target: LogAccessLevel) -> bool:
        return await self._query(Query.LOG_CONFIG_EDIT, {"category": category, "target": target})

    async def log_clear(self) -> bool:
        return await self._query(Query.LOG_CLEAR)

    async def log_praise(self, value: int, message: Optional[str]) -> bool:
        return await self._query(Query.LOG_PRAISE, {"message": message, "value": value})

    async def log_get_allowed_actions(self) -> LogAllowedActions:
        return await self._query(Query.LOG_GET_ALLOWED_ACTIONS, adapter=_LOG_ALLOWED_ACTIONS)

    async def curse_item(self, group: str, curse_properties: Optional[bool]) -> bool:
        return await self._query(Query.CURSE_ITEM, {"Group": group, "curseProperties": curse_properties})

    async def curse_lift(self, group: str) -> bool:
        return await self._query(Query.CURSE_LIFT, group)

    async def curse_batch(self, mode: str, including_empty: bool) -> bool:
        return await self._query(Query.CURSE_BATCH, {"mode": mode, "includingEmpty": including_empty})

    async def curse_lift_all(self) -> bool:
        return await self._query(Query.CURSE_LIFT_ALL)

    async def conditions_get_by_category(self, category: str) -> ConditionsCategoryPublicData:
        return await self._query(Query.CONDITIONS_GET, category, adapter=_CONDITIONS_CATEGORY_DATA)

    async def condition_set_limit(self, category: str, condition: str, limit: ConditionsLimit) -> bool:
        return await self._query(Query.CONDITION_SET_LIMIT, {"category": category, "condition": condition, "limit": limit})

    async def condition_update(self, category: str, condition: str, data: ConditionPublicData) -> bool:
        return await self._query(Query.CONDITION_UPDATE, {
            "category": category,
            "condition": condition,
            "data": data.model_dump(by_alias=True),
        })

    async def condition_category_update(self, category: str, data: ConditionsCategoryConfigurableData) -> bool:
        return await self._query(Query.CONDITION_CATEGORY_UPDATE, {
            "category": category,
            "data": data.model_dump(by_alias=True),
        })

    async def rule_create(self, name: str) -> bool:
        return await self._query(Query.RULE_CREATE, name)

    async def rule_delete(self, name: str) -> bool:
        return await self._query(Query.RULE_DELETE, name)


class PlayerCharacter(Character):
    """The local player. Calls straight into the local state; nothing crosses the wire."""

    def __init__(self, member_number: int, name: str, access_check: AccessCheck, local: Optional[LocalState]):
        super().__init__(member_number, name, access_check)
        self.version = PROTOCOL_VERSION
        self._local_state = local

    def is_player(self) -> bool:
        return True

    @property
    def local(self) -> LocalState:
        if self._local_state is None:
            raise ChatLinkError("no_local_state", "No local state configured for the player")
        return self._local_state

    async def get_disabled_modules(self, timeout: Optional[float] = None) -> list[ModuleCategory]:
        return self.local.get_disabled_modules()

    async def get_permissions(self) -> dict[str, tuple[bool, AccessLevel]]:
        return self.local.get_permissions()

    async def get_permission_access(self, permission: str) -> bool:
        return self.local.check_permission_access(permission, self)

    async def get_my_access_level(self) -> AccessLevel:
        return AccessLevel.SELF

    async def _set_permission(self, permission: str, mode: str, target: Any) -> bool:
        if mode == "self":
            return self.local.set_permission_self_access(permission, target, self)
        return self.local.set_permission_min_access(permission, AccessLevel(target), self)

    async def get_roles_data(self) -> RolesData:
        return self.local.get_roles_data(self)

    async def edit_role(self, role: str, action: str, target: int) -> bool:
        return self.local.edit_role(role, action, target, self)

    async def get_log_entries(self) -> list[LogEntry]:
        return self.local.get_visible_log_entries(self)

    async def log_message_delete(self, time: int) -> bool:
        return self.local.log_message_delete(time, self)

    async def get_log_config(self) -> dict[str, LogAccessLevel]:
        return self.local.log_get_config()

    async def set_log_config(self, category: str, target: LogAccessLevel) -> bool:
        return self.local.log_config_set(category, target, self)

    async def log_clear(self) -> bool:
        return self.local.log_clear(self)

    async def log_praise(self, value: int, message: Optional[str]) -> bool:
        return self.local.log_praise(value, message, self)

    async def log_get_allowed_actions(self) -> LogAllowedActions:
        return self.local.log_get_allowed_actions(self)

    async def curse_item(self, group: str, curse_properties: Optional[bool]) -> bool:
        return self.local.curse_item(group, curse_properties, self)

    async def curse_lift(self, group: str) -> bool:
        return self.local.curse_lift(group, self)

    async def curse_batch(self, mode: str, including_empty: bool) -> bool:
        return self.local.curse_batch(mode, including_empty, self)

    async def curse_lift_all(self) -> bool:
        return self.local.curse_lift_all(self)

    async def conditions_get_by_category(self, category: str) -> ConditionsCategoryPublicData:
        if not self.local.conditions_get_category_enabled(category):
            raise CategoryDisabledError(category)
        return self.local.conditions_get_category_public_data(category, self)

    async def condition_set_limit(self, category: str, condition: str, limit: ConditionsLimit) -> bool:
        return self.local.conditions_set_limit(category, condition, limit, self)

    async def condition_update(self, category: str, condition: str, data: ConditionPublicData) -> bool:
        return self.local.conditions_update(category, condition, data, self)

    async def condition_category_update(self, category: str, data: ConditionsCategoryConfigurableData) -> bool:
        return self.local.conditions_category_update(category, data, self)

    async def rule_create(self, name: str) -> bool:
        return self.local.rules_create(name, self)

    async def rule_delete(self, name: str) -> bool:
        return self.local.rules_delete(name, self)


class CharacterRegistry:
    """Caches one character per member number.

    Remote characters whose member left the room are dropped on the next
    lookup. The player's character is never dropped while the identity holds.
    """

    def __init__(
        self,
        room: RoomState,
        messaging: Messaging,
        local: Optional[LocalState] = None,
        access_check: Optional[AccessCheck] = None,
    ):
        self._room = room
        self._messaging = messaging
        self._local = local
        self.access_check: AccessCheck = access_check or room.allows_item_from
        self._characters: dict[int, Character] = {}

    def _clean_old_characters(self) -> None:
        player = self._room.player_number
        for member_number, character in list(self._characters.items()):
            if character.is_player():
                stale = member_number != player
            else:
                stale = not self._room.is_member(member_number)
            if stale:
                del self._characters[member_number]
                logger.debug(f"Dropped character {character}")

    def get_character(self, member_number: Any) -> Optional[Character]:
        if not isinstance(member_number, int) or isinstance(member_number, bool):
            return None
        self._clean_old_characters()
        character = self._characters.get(member_number)
        if character is None:
            if member_number == self._room.player_number:
                character = PlayerCharacter(member_number, self._room.player_name, self._check_access, self._local)
            else:
                member = self._room.get_member(member_number)
                if member is None:
                    return None
                character = RemoteCharacter(member_number, member.name, self._check_access, self._messaging)
            self._characters[member_number] = character
        return character

    def has_player(self) -> bool:
        return self._room.player_number is not None

    def get_player_character(self) -> PlayerCharacter:
        player = self._room.player_number
        if player is None:
            raise ChatLinkError("not_logged_in", "Player identity is not known yet")
        character = self.get_character(player)
        if not isinstance(character, PlayerCharacter):
            raise ChatLinkError("not_logged_in", "Player is not in the character registry")
        return character

    def get_all_characters_in_room(self) -> list[Character]:
        if not self._room.in_room:
            return [self.get_player_character()]
        characters = (self.get_character(m.member_number) for m in self._room.members)
        return [c for c in characters if c is not None]

    def clear(self) -> None:
        self._characters.clear()

    def _check_access(self, member_number: int) -> bool:
        return self.access_check(member_number)
