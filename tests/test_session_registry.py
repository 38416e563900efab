import pytest

from exceptions.exceptions import InvalidTokenException
from services.session_registry import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_issued_token_resolves_to_user():
    registry = SessionRegistry()
    token = registry.issue_token("user_1")
    assert registry.resolve(token) == "user_1"


def test_tokens_are_distinct_and_base36():
    registry = SessionRegistry()
    tokens = {registry.issue_token("user_1") for _ in range(200)}
    assert len(tokens) == 200
    assert all(t.isalnum() and t == t.lower() for t in tokens)


@pytest.mark.parametrize("token", ["", "not-a-token"])
def test_unknown_token_is_rejected(token):
    with pytest.raises(InvalidTokenException):
        SessionRegistry().resolve(token)


def test_tokens_never_expire_by_default():
    clock = FakeClock()
    registry = SessionRegistry(clock=clock)
    token = registry.issue_token("user_1")
    clock.now += 10 ** 9
    assert registry.resolve(token) == "user_1"


def test_ttl_expires_old_tokens():
    clock = FakeClock()
    registry = SessionRegistry(ttl_seconds=60, clock=clock)
    token = registry.issue_token("user_1")

    clock.now += 59
    assert registry.resolve(token) == "user_1"

    clock.now += 2
    with pytest.raises(InvalidTokenException):
        registry.resolve(token)
    assert len(registry) == 0

