"""
Payload shapes of the standard queries.

Answers are validated against these before a remote character resolves, and
inbound query payloads are validated before a local function sees them. Both
come from another client's process, so every field is checked strictly.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    TypeAdapter,
    model_validator,
)

from chatlink.constants import AccessLevel, ConditionsLimit, LogAccessLevel

AccessLevelValue = Annotated[StrictInt, AfterValidator(AccessLevel)]
LogAccessLevelValue = Annotated[StrictInt, AfterValidator(LogAccessLevel)]
ConditionsLimitValue = Annotated[StrictInt, AfterValidator(ConditionsLimit)]
ConditionsCategory = Literal["curses", "rules"]

# permission name -> (self allowed, minimum access level)
PermissionBundle = dict[str, tuple[StrictBool, AccessLevelValue]]


def _log_entry(entry: list[Any]) -> list[Any]:
    if len(entry) != 4 or not all(type(v) is int for v in entry[:3]):
        raise ValueError("expected [time, access, type, data]")
    return entry


# [time, access, type, data], kept as the list it arrived as
LogEntry = Annotated[list[Any], AfterValidator(_log_entry)]


class RolesData(BaseModel):
    mistresses: list[tuple[StrictInt, StrictStr]]
    owners: list[tuple[StrictInt, StrictStr]]
    allow_add_mistress: StrictBool = Field(alias="allowAddMistress")
    allow_remove_mistress: StrictBool = Field(alias="allowRemoveMistress")
    allow_add_owner: StrictBool = Field(alias="allowAddOwner")
    allow_remove_owner: StrictBool = Field(alias="allowRemoveOwner")

    model_config = {"populate_by_name": True}


class LogAllowedActions(BaseModel):
    delete: StrictBool
    configure: StrictBool
    praise: StrictBool
    leave_message: StrictBool = Field(alias="leaveMessage")

    model_config = {"populate_by_name": True}


class ConditionPublicData(BaseModel):
    active: StrictBool
    timer: Optional[StrictInt] = None
    timer_remove: StrictBool = Field(False, alias="timerRemove")
    requirements: Optional[dict[str, Any]] = None
    favorite: StrictBool = False
    data: Any = None

    model_config = {"populate_by_name": True}


class ConditionsCategoryConfigurableData(BaseModel):
    timer: Optional[StrictInt] = None
    timer_remove: StrictBool = Field(False, alias="timerRemove")
    requirements: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class ConditionsCategoryPublicData(BaseModel):
    access_normal: StrictBool
    access_limited: StrictBool
    access_configure: StrictBool
    highest_role_in_room: AccessLevelValue = Field(alias="highestRoleInRoom")
    conditions: dict[str, ConditionPublicData]
    limits: dict[str, ConditionsLimitValue]
    timer: Optional[StrictInt] = None
    timer_remove: StrictBool = Field(False, alias="timerRemove")
    requirements: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


# Inbound query payloads


class EditPermissionRequest(BaseModel):
    permission: StrictStr
    edit: Literal["self", "min"]
    target: Union[StrictBool, AccessLevelValue]

    @model_validator(mode="after")
    def _target_matches_edit(self) -> "EditPermissionRequest":
        if self.edit == "self" and not isinstance(self.target, bool):
            raise ValueError("self edit needs a boolean target")
        if self.edit == "min" and isinstance(self.target, bool):
            raise ValueError("min edit needs an access level target")
        return self


class EditRoleRequest(BaseModel):
    type: Literal["owner", "mistress"]
    action: Literal["add", "remove"]
    target: StrictInt


class LogConfigEditRequest(BaseModel):
    category: StrictStr
    target: LogAccessLevelValue


class LogPraiseRequest(BaseModel):
    value: Annotated[StrictInt, Field(ge=-1, le=1)]
    message: Optional[StrictStr] = None


class CurseItemRequest(BaseModel):
    group: StrictStr = Field(alias="Group")
    curse_properties: Optional[StrictBool] = Field(None, alias="curseProperties")

    model_config = {"populate_by_name": True}


class CurseBatchRequest(BaseModel):
    mode: Literal["items", "clothes"]
    including_empty: StrictBool = Field(alias="includingEmpty")

    model_config = {"populate_by_name": True}


class ConditionSetLimitRequest(BaseModel):
    category: ConditionsCategory
    condition: StrictStr
    limit: ConditionsLimitValue


class ConditionUpdateRequest(BaseModel):
    category: ConditionsCategory
    condition: StrictStr
    data: ConditionPublicData


class ConditionCategoryUpdateRequest(BaseModel):
    category: ConditionsCategory
    data: ConditionsCategoryConfigurableData


BOOL = TypeAdapter(StrictBool)
STRING = TypeAdapter(StrictStr)
INTEGER = TypeAdapter(StrictInt)
ANY_LIST = TypeAdapter(list[Any])
ACCESS_LEVEL = TypeAdapter(AccessLevelValue)
PERMISSION_BUNDLE = TypeAdapter(PermissionBundle)
LOG_ENTRIES = TypeAdapter(list[LogEntry])
LOG_CONFIG = TypeAdapter(dict[str, StrictInt])
CONDITIONS_CATEGORY = TypeAdapter(ConditionsCategory)
