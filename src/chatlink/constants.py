"""
Protocol constants and enumerations shared by both sides of a query.
"""

from enum import IntEnum

PROTOCOL_VERSION = "0.1.0"
DEFAULT_QUERY_TIMEOUT = 10.0
EFFECT_REBUILD_INTERVAL = 2.0

# Content marker of hidden chat messages and the beep sub-channel tags
HIDDEN_MESSAGE_CONTENT = "ChatLinkMsg"
BEEP_TYPE = "ChatLink"
LEASH_BEEP_TYPE = "Leash"
BEEP_TYPES = (BEEP_TYPE, LEASH_BEEP_TYPE)


class ModuleInitPhase(IntEnum):
    CONSTRUCT = 0
    INIT = 1
    LOAD = 2
    READY = 3
    DESTROY = 4


class AccessLevel(IntEnum):
    SELF = 0
    CLUBOWNER = 1
    OWNER = 2
    LOVER = 3
    MISTRESS = 4
    WHITELIST = 5
    FRIEND = 6
    PUBLIC = 7


class ModuleCategory(IntEnum):
    GLOBAL = 0
    AUTHORITY = 1
    LOG = 2
    CURSES = 3
    RULES = 4
    MISC = 99


TOGGLEABLE_MODULES: tuple[ModuleCategory, ...] = (
    ModuleCategory.LOG,
    ModuleCategory.CURSES,
    ModuleCategory.RULES,
)


class LogAccessLevel(IntEnum):
    NONE = 0
    PROTECTED = 1
    NORMAL = 2


class ConditionsLimit(IntEnum):
    NORMAL = 0
    LIMITED = 1
    BLOCKED = 2
