from bhavan.client.session import SESSION_KEY, SessionState
from bhavan.client.storage import LocalStorage


def test_listeners_are_notified_until_unsubscribed(tmp_path):
    session = SessionState(LocalStorage(str(tmp_path / "ls.json")))
    seen = []
    unsubscribe = session.subscribe(lambda s: seen.append(s.authenticated))

    session.sign_in("dev-token")
    session.sign_out()
    unsubscribe()
    session.sign_in("again")

    assert seen == [True, False]


def test_session_survives_reload(tmp_path):
    storage = LocalStorage(str(tmp_path / "ls.json"))
    session = SessionState(storage)
    session.sign_in("dev-token")
    session.update("user-1", "asha@example.com", True)

    restored = SessionState(storage)
    assert restored.authenticated
    assert restored.current.email == "asha@example.com"
    assert restored.current.is_admin

    restored.sign_out()
    assert storage.get(SESSION_KEY) is None
    assert not SessionState(storage).authenticated
