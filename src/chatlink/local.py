"""
Local authoritative state, owned by the player's own moderation modules.

chatlink never stores moderation state itself. The player's character calls
these functions directly, and the query module calls them on behalf of
remote senders. `character` is always the acting character, so the
implementation can apply its own permission rules.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol

from chatlink.constants import AccessLevel, ConditionsLimit, LogAccessLevel, ModuleCategory
from chatlink.models.character import (
    ConditionPublicData,
    ConditionsCategoryConfigurableData,
    ConditionsCategoryPublicData,
    LogAllowedActions,
    RolesData,
)

if TYPE_CHECKING:
    from chatlink.characters import Character


class LocalState(Protocol):
    # authority
    def get_disabled_modules(self) -> list[ModuleCategory]: ...
    def get_permissions(self) -> dict[str, tuple[bool, AccessLevel]]: ...
    def check_permission_access(self, permission: str, character: "Character") -> bool: ...
    def get_access_level(self, character: "Character") -> AccessLevel: ...
    def set_permission_self_access(self, permission: str, value: bool, character: "Character") -> bool: ...
    def set_permission_min_access(self, permission: str, value: AccessLevel, character: "Character") -> bool: ...
    def get_roles_data(self, character: "Character") -> RolesData: ...
    def edit_role(self, role: str, action: str, target: int, character: "Character") -> bool: ...

    # behaviour log
    def get_visible_log_entries(self, character: "Character") -> list[list[Any]]: ...
    def log_message_delete(self, time: int, character: "Character") -> bool: ...
    def log_get_config(self) -> dict[str, LogAccessLevel]: ...
    def log_config_set(self, category: str, target: LogAccessLevel, character: "Character") -> bool: ...
    def log_clear(self, character: "Character") -> bool: ...
    def log_praise(self, value: int, message: Optional[str], character: "Character") -> bool: ...
    def log_get_allowed_actions(self, character: "Character") -> LogAllowedActions: ...

    # curses
    def curse_item(self, group: str, curse_properties: Optional[bool], character: "Character") -> bool: ...
    def curse_lift(self, group: str, character: "Character") -> bool: ...
    def curse_batch(self, mode: str, including_empty: bool, character: "Character") -> bool: ...
    def curse_lift_all(self, character: "Character") -> bool: ...

    # conditions and rules
    def conditions_get_category_enabled(self, category: str) -> bool: ...
    def conditions_get_category_public_data(self, category: str, character: "Character") -> ConditionsCategoryPublicData: ...
    def conditions_set_limit(self, category: str, condition: str, limit: ConditionsLimit, character: "Character") -> bool: ...
    def conditions_update(self, category: str, condition: str, data: ConditionPublicData, character: "Character") -> bool: ...
    def conditions_category_update(self, category: str, data: ConditionsCategoryConfigurableData, character: "Character") -> bool: ...
    def rules_create(self, name: str, character: "Character") -> bool: ...
    def rules_delete(self, name: str, character: "Character") -> bool: ...
