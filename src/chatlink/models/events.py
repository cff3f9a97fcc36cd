"""
Event and message tag names.

Host events are the Socket.IO events of the chat server. Hidden message, beep
and query tags live in separate namespaces: the same string in two of them
means nothing.
"""


class HostEvent:
    SERVER_INFO = "ServerInfo"
    ACCOUNT_LOGIN = "AccountLogin"
    LOGIN_RESPONSE = "LoginResponse"
    ACCOUNT_BEEP = "AccountBeep"
    CHAT_ROOM_JOIN = "ChatRoomJoin"
    CHAT_ROOM_LEAVE = "ChatRoomLeave"
    CHAT_ROOM_CHAT = "ChatRoomChat"
    CHAT_ROOM_MESSAGE = "ChatRoomMessage"
    CHAT_ROOM_SYNC = "ChatRoomSync"
    CHAT_ROOM_SYNC_MEMBER_JOIN = "ChatRoomSyncMemberJoin"
    CHAT_ROOM_SYNC_MEMBER_LEAVE = "ChatRoomSyncMemberLeave"


class HiddenMessage:
    QUERY = "query"
    QUERY_ANSWER = "queryAnswer"
    SOMETHING_CHANGED = "somethingChanged"
    HELLO = "hello"


class Query:
    DISABLED_MODULES = "disabledModules"
    PERMISSIONS = "permissions"
    PERMISSION_ACCESS = "permissionAccess"
    MY_ACCESS_LEVEL = "myAccessLevel"
    EDIT_PERMISSION = "editPermission"
    ROLES_DATA = "rolesData"
    EDIT_ROLE = "editRole"
    LOG_DATA = "logData"
    LOG_DELETE = "logDelete"
    LOG_CONFIG_GET = "logConfigGet"
    LOG_CONFIG_EDIT = "logConfigEdit"
    LOG_CLEAR = "logClear"
    LOG_PRAISE = "logPraise"
    LOG_GET_ALLOWED_ACTIONS = "logGetAllowedActions"
    CURSE_ITEM = "curseItem"
    CURSE_LIFT = "curseLift"
    CURSE_BATCH = "curseBatch"
    CURSE_LIFT_ALL = "curseLiftAll"
    CONDITIONS_GET = "conditionsGet"
    CONDITION_SET_LIMIT = "conditionSetLimit"
    CONDITION_UPDATE = "conditionUpdate"
    CONDITION_CATEGORY_UPDATE = "conditionCategoryUpdate"
    RULE_CREATE = "ruleCreate"
    RULE_DELETE = "ruleDelete"
