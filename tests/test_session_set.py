from models.session_set import SessionSet
from models.user import User


def test_add_returns_new_set_and_keeps_order():
    empty = SessionSet()
    one = empty.add("a")
    two = one.add("b")

    assert len(empty) == 0
    assert list(one) == ["a"]
    assert list(two) == ["a", "b"]


def test_remove_one_only_drops_the_given_token():
    sessions = SessionSet(["a", "b", "c"])
    assert list(sessions.remove_one("b")) == ["a", "c"]
    assert list(sessions) == ["a", "b", "c"]


def test_remove_one_missing_token_is_a_noop():
    sessions = SessionSet(["a"])
    assert sessions.remove_one("zzz") is sessions


def test_clear():
    sessions = SessionSet(["a", "b"])
    assert len(sessions.clear()) == 0
    assert "a" in sessions


def test_limit_evicts_oldest_first():
    sessions = SessionSet(["a", "b", "c"]).add("d", limit=3)
    assert list(sessions) == ["b", "c", "d"]


def test_no_limit_is_unbounded():
    sessions = SessionSet()
    for i in range(50):
        sessions = sessions.add(str(i))
    assert len(sessions) == 50


def test_equality():
    assert SessionSet(["a"]) == SessionSet(("a",))
    assert SessionSet(["a"]) != SessionSet(["b"])


def test_user_sessions_property_roundtrip():
    user = User(username="x", email="x@x.com", password_hash="h")
    assert len(user.sessions) == 0

    user.sessions = user.sessions.add("t1").add("t2")
    assert user.refresh_tokens == ["t1", "t2"]
    assert "t2" in user.sessions
