import pytest

from fbrest.core import methods
from fbrest.core.errors import ParameterValidationError
from fbrest.core.request_builder import TARGET_API_VERSION, CallIdSource, RequestBuilder
from fbrest.core.session import SessionState


def _builder(session_key=None) -> RequestBuilder:
    session = SessionState(session_key=session_key)
    return RequestBuilder("key123", session, CallIdSource(clock=lambda: 1000.0))


def test_always_injects_method_api_key_and_version() -> None:
    ps = _builder().build(methods.AUTH_CREATE_TOKEN)
    assert ps.as_dict() == {
        "method": "facebook.auth.createToken",
        "api_key": "key123",
        "v": TARGET_API_VERSION,
    }


def test_session_params_only_for_session_methods_with_a_session() -> None:
    without = _builder().build(methods.USERS_IS_APP_ADDED)
    assert "session_key" not in without
    assert "call_id" not in without

    with_session = _builder("sk-1").build(methods.USERS_IS_APP_ADDED)
    assert with_session.get("session_key") == "sk-1"
    assert with_session.get("call_id") == "1000000"

    non_session = _builder("sk-1").build(methods.AUTH_GET_SESSION, [("auth_token", "t")])
    assert "session_key" not in non_session


def test_caller_value_wins_on_collision() -> None:
    ps = _builder().build(methods.FQL_QUERY, [("v", "1.1"), ("query", "a"), ("query", "b")])
    assert ps.get("v") == "1.1"
    assert ps.get("query") == "b"
    assert len(ps) == 4


def test_caller_may_not_supply_signature() -> None:
    with pytest.raises(ParameterValidationError):
        _builder().build(methods.FQL_QUERY, {"sig": "abc"})


def test_call_ids_strictly_increase_within_one_millisecond() -> None:
    ids = CallIdSource(clock=lambda: 1.5)
    assert [ids.next() for _ in range(3)] == [1500, 1501, 1502]


def test_call_ids_follow_the_clock() -> None:
    now = [10.0]
    ids = CallIdSource(clock=lambda: now[0])
    first = ids.next()
    now[0] = 20.0
    assert ids.next() == 20000 > first
