import pytest

from services.auth_gate import AuthGate
from services.errors import InvalidToken, Unauthorized


@pytest.fixture
def gate(tokens):
    return AuthGate(tokens)


def test_valid_bearer_token_yields_identity(gate, tokens):
    identity = gate.authenticate({"Authorization": f"Bearer {tokens.issue('user-1')}"})
    assert identity.user_id == "user-1"


def test_lowercase_header_and_scheme_are_accepted(gate, tokens):
    identity = gate.authenticate({"authorization": f"bearer {tokens.issue('user-1')}"})
    assert identity.user_id == "user-1"


def test_missing_header_is_unauthorized_not_invalid_token(gate):
    with pytest.raises(Unauthorized) as exc_info:
        gate.authenticate({})
    assert not isinstance(exc_info.value, InvalidToken)


@pytest.mark.parametrize("header", ["Basic dXNlcjpwYXNz", "Bearer", "Bearer   ", "Token abc"])
def test_malformed_header_is_unauthorized(gate, header):
    with pytest.raises(Unauthorized) as exc_info:
        gate.authenticate({"Authorization": header})
    assert not isinstance(exc_info.value, InvalidToken)


def test_rejected_token_is_invalid_token(gate):
    with pytest.raises(InvalidToken):
        gate.authenticate({"Authorization": "Bearer not.a.jwt"})


def test_expired_token_is_invalid_token(gate, tokens, clock):
    header = {"Authorization": f"Bearer {tokens.issue('user-1')}"}
    clock.advance(hours=2)

    with pytest.raises(InvalidToken):
        gate.authenticate(header)
