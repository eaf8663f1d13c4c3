import pytest

from votegate.core.security.actor import Actor


def test_actor_normalizes_labels_and_keeps_case():
    a = Actor.create("alice", ["  ROLE_USER ", "ROLE_USER", "role_user"])

    assert a.identity == "alice"
    assert a.labels == frozenset({"ROLE_USER", "role_user"})
    assert a.has_label("ROLE_USER") is True
    assert a.is_anonymous is False


def test_actor_anonymous_has_no_identity():
    a = Actor.anonymous()
    assert a.identity is None
    assert a.is_anonymous is True
    assert a.labels == frozenset()


def test_actor_is_immutable():
    a = Actor.create("alice", ["ROLE_USER"])
    with pytest.raises(Exception):
        a.identity = "mallory"


def test_actor_rejects_invalid_labels():
    with pytest.raises(TypeError):
        Actor(identity="x", labels="ROLE_USER")

    with pytest.raises(TypeError):
        Actor.create("x", ["ROLE_USER", 123])

    with pytest.raises(ValueError):
        Actor.create("x", ["   "])
