"""
Answers the standard queries from the player's local state.

Payloads come from other clients and are validated before the local state
sees them; a payload that does not validate is answered with ok: false.
"""

import logging
from typing import Any, Callable

from pydantic import BaseModel, TypeAdapter, ValidationError

from chatlink.characters import Character
from chatlink.errors import CategoryDisabledError
from chatlink.lifecycle import BaseModule
from chatlink.local import LocalState
from chatlink.messaging import Messaging, QueryHandler, ReplyFunction
from chatlink.models.character import (
    CONDITIONS_CATEGORY,
    INTEGER,
    STRING,
    ConditionCategoryUpdateRequest,
    ConditionSetLimitRequest,
    ConditionUpdateRequest,
    CurseBatchRequest,
    CurseItemRequest,
    EditPermissionRequest,
    EditRoleRequest,
    LogConfigEditRequest,
    LogPraiseRequest,
)
from chatlink.models.events import Query

logger = logging.getLogger(__name__)

Answer = Callable[[Character, Any], Any]


def to_wire(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    return value


def answering(query: str, answer: Answer) -> QueryHandler:
    """Wrap `answer(sender, data)` into a query handler that replies exactly once."""
    def handler(sender: Character, reply: ReplyFunction, data: Any) -> None:
        try:
            result = answer(sender, data)
        except ValidationError:
            logger.warning(f"Invalid {query!r} payload from {sender}: {data!r}")
            reply(False)
            return
        except CategoryDisabledError as e:
            reply(False, str(e))
            return
        reply(True, to_wire(result))
    return handler


def _validate(model: Any, data: Any) -> Any:
    if isinstance(model, TypeAdapter):
        return model.validate_python(data)
    return model.model_validate(data)


class QueryModule(BaseModule):
    def __init__(self, messaging: Messaging, local: LocalState):
        self._messaging = messaging
        self._local = local

    def load(self) -> None:
        for query, answer in self._answers().items():
            self._messaging.register_query_handler(query, answering(query, answer))

    def _answers(self) -> dict[str, Answer]:
        local = self._local
        return {
            Query.DISABLED_MODULES: lambda sender, _: [int(m) for m in local.get_disabled_modules()],
            Query.PERMISSIONS: lambda sender, _: local.get_permissions(),
            Query.PERMISSION_ACCESS: lambda sender, data: local.check_permission_access(_validate(STRING, data), sender),
            Query.MY_ACCESS_LEVEL: lambda sender, _: local.get_access_level(sender),
            Query.EDIT_PERMISSION: self._edit_permission,
            Query.ROLES_DATA: lambda sender, _: local.get_roles_data(sender),
            Query.EDIT_ROLE: self._edit_role,
            Query.LOG_DATA: lambda sender, _: local.get_visible_log_entries(sender),
            Query.LOG_DELETE: lambda sender, data: local.log_message_delete(_validate(INTEGER, data), sender),
            Query.LOG_CONFIG_GET: lambda sender, _: local.log_get_config(),
            Query.LOG_CONFIG_EDIT: self._log_config_edit,
            Query.LOG_CLEAR: lambda sender, _: local.log_clear(sender),
            Query.LOG_PRAISE: self._log_praise,
            Query.LOG_GET_ALLOWED_ACTIONS: lambda sender, _: local.log_get_allowed_actions(sender),
            Query.CURSE_ITEM: self._curse_item,
            Query.CURSE_LIFT: lambda sender, data: local.curse_lift(_validate(STRING, data), sender),
            Query.CURSE_BATCH: self._curse_batch,
            Query.CURSE_LIFT_ALL: lambda sender, _: local.curse_lift_all(sender),
            Query.CONDITIONS_GET: self._conditions_get,
            Query.CONDITION_SET_LIMIT: self._condition_set_limit,
            Query.CONDITION_UPDATE: self._condition_update,
            Query.CONDITION_CATEGORY_UPDATE: self._condition_category_update,
            Query.RULE_CREATE: lambda sender, data: local.rules_create(_validate(STRING, data), sender),
            Query.RULE_DELETE: lambda sender, data: local.rules_delete(_validate(STRING, data), sender),
        }

    def _edit_permission(self, sender: Character, data: Any) -> bool:
        request = _validate(EditPermissionRequest, data)
        if request.edit == "self":
            return self._local.set_permission_self_access(request.permission, request.target, sender)
        return self._local.set_permission_min_access(request.permission, request.target, sender)

    def _edit_role(self, sender: Character, data: Any) -> bool:
        request = _validate(EditRoleRequest, data)
        return self._local.edit_role(request.type, request.action, request.target, sender)

    def _log_config_edit(self, sender: Character, data: Any) -> bool:
        request = _validate(LogConfigEditRequest, data)
        return self._local.log_config_set(request.category, request.target, sender)

    def _log_praise(self, sender: Character, data: Any) -> bool:
        request = _validate(LogPraiseRequest, data)
        return self._local.log_praise(request.value, request.message, sender)

    def _curse_item(self, sender: Character, data: Any) -> bool:
        request = _validate(CurseItemRequest, data)
        return self._local.curse_item(request.group, request.curse_properties, sender)

    def _curse_batch(self, sender: Character, data: Any) -> bool:
        request = _validate(CurseBatchRequest, data)
        return self._local.curse_batch(request.mode, request.including_empty, sender)

    def _conditions_get(self, sender: Character, data: Any) -> Any:
        category = _validate(CONDITIONS_CATEGORY, data)
        if not self._local.conditions_get_category_enabled(category):
            raise CategoryDisabledError(category)
        return self._local.conditions_get_category_public_data(category, sender)

    def _condition_set_limit(self, sender: Character, data: Any) -> bool:
        request = _validate(ConditionSetLimitRequest, data)
        return self._local.conditions_set_limit(request.category, request.condition, request.limit, sender)

    def _condition_update(self, sender: Character, data: Any) -> bool:
        request = _validate(ConditionUpdateRequest, data)
        return self._local.conditions_update(request.category, request.condition, request.data, sender)

    def _condition_category_update(self, sender: Character, data: Any) -> bool:
        request = _validate(ConditionCategoryUpdateRequest, data)
        return self._local.conditions_category_update(request.category, request.data, sender)
