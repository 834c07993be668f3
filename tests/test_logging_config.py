import logging

from logging_config import REDACTED, SensitiveDataFilter, get_logging_config

DIGEST = "$2b$12$" + "a" * 22 + "b" * 31


def make_record(msg, *args):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


def test_bcrypt_digest_is_redacted_and_record_kept():
    record = make_record("Stored hash %s for user %s", DIGEST, "u1")

    assert SensitiveDataFilter().filter(record) is True
    message = record.getMessage()
    assert "$2b$" not in message
    assert message == f"Stored hash {REDACTED} for user u1"


def test_bearer_token_is_redacted():
    record = make_record("Header was Bearer eyJhbGciOiJIUzI1NiJ9.e30.sig")

    assert SensitiveDataFilter().filter(record) is True
    assert "eyJ" not in record.getMessage()
    assert REDACTED in record.getMessage()


def test_plain_record_passes_unchanged():
    record = make_record("User %s created post %s", "u1", "p1")

    assert SensitiveDataFilter().filter(record) is True
    assert record.msg == "User %s created post %s"
    assert record.getMessage() == "User u1 created post p1"


def test_default_handler_uses_the_filter():
    config = get_logging_config("DEBUG")

    assert config["filters"]["sensitive_data_filter"]["()"] is SensitiveDataFilter
    assert "sensitive_data_filter" in config["handlers"]["default"]["filters"]
    assert config["root"]["level"] == "DEBUG"
