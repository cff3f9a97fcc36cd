"""Basic unit tests for the chatlink package."""

from chatlink import (
    AccessLevel,
    AsyncChatLink,
    CategoryDisabledError,
    ChatLinkError,
    ConnectionError,
    HiddenMessage,
    HostEvent,
    LoginError,
    ModuleCategory,
    Query,
    QueryCancelledError,
    QueryError,
    QueryNotSentError,
    QueryRejectedError,
    QueryTimeoutError,
    QueryUnavailableError,
    ResponseDecodeError,
    __version__,
)
from chatlink.constants import PROTOCOL_VERSION, TOGGLEABLE_MODULES


def test_version():
    assert __version__ == "0.1.0"
    assert PROTOCOL_VERSION == "0.1.0"


def test_public_exports():
    assert AsyncChatLink is not None


def test_error_hierarchy():
    for error in (QueryUnavailableError, QueryTimeoutError, QueryRejectedError, QueryCancelledError, QueryNotSentError, ResponseDecodeError):
        assert issubclass(error, QueryError)
    assert issubclass(QueryError, ChatLinkError)
    assert issubclass(ConnectionError, ChatLinkError)
    assert issubclass(LoginError, ChatLinkError)
    assert issubclass(CategoryDisabledError, ChatLinkError)


def test_error_attributes():
    err = ChatLinkError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    rejected = QueryRejectedError("logData", 42, {"reason": "nope"})
    assert rejected.code == "rejected"
    assert rejected.details == {"reason": "nope"}
    assert rejected.target == 42

    decode = ResponseDecodeError("logData", "oops")
    assert decode.code == "bad_data"
    assert decode.raw == "oops"

    assert str(QueryUnavailableError()) == "Unavailable during init"


def test_event_constants():
    assert HostEvent.CHAT_ROOM_CHAT == "ChatRoomChat"
    assert HiddenMessage.QUERY_ANSWER == "queryAnswer"
    assert Query.LOG_DATA == "logData"
    assert Query.CONDITION_CATEGORY_UPDATE == "conditionCategoryUpdate"


def test_enums():
    assert AccessLevel.SELF == 0
    assert AccessLevel.PUBLIC == 7
    assert set(TOGGLEABLE_MODULES) == {ModuleCategory.LOG, ModuleCategory.CURSES, ModuleCategory.RULES}
