from fbrest.core.session import SessionState, SessionStatus


def test_new_state_is_unauthenticated() -> None:
    s = SessionState()
    assert s.status is SessionStatus.UNAUTHENTICATED
    assert s.is_established is False


def test_token_then_establish() -> None:
    s = SessionState()
    s.issue_token("tok")
    assert s.status is SessionStatus.TOKEN_ISSUED
    assert s.session_key is None

    s.establish(session_key="sk", user_id=42, expires=0, session_secret="ignored")
    assert s.status is SessionStatus.SESSION_ESTABLISHED
    assert s.auth_token is None
    assert s.session_secret is None
    assert (s.session_key, s.user_id, s.expires) == ("sk", 42, 0)


def test_establish_directly_from_unauthenticated() -> None:
    s = SessionState(desktop=True)
    s.establish(session_key="sk", user_id=1, expires=None, session_secret="ss")
    assert s.status is SessionStatus.SESSION_ESTABLISHED
    assert s.session_secret == "ss"


def test_signing_secret_selection() -> None:
    web = SessionState(session_key="sk")
    assert web.signing_secret("app", requires_session=True) == "app"

    desktop = SessionState(desktop=True)
    desktop.establish(session_key="sk", user_id=1, expires=None, session_secret="ss")
    assert desktop.signing_secret("app", requires_session=True) == "ss"
    assert desktop.signing_secret("app", requires_session=False) == "app"


def test_desktop_without_session_secret_falls_back() -> None:
    s = SessionState(desktop=True, session_key="sk")
    assert s.signing_secret("app", requires_session=True) == "app"


def test_repr_hides_secrets() -> None:
    s = SessionState(desktop=True)
    s.establish(session_key="sk", user_id=1, expires=None, session_secret="very-secret")
    assert "very-secret" not in repr(s)
