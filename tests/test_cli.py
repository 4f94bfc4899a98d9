"""
Tests for the command line interface.
"""

import hashlib
import json

import pytest

from twt.__main__ import main
from twt.tokens import validate_encoded_secret

ENCODED_SECRET = (
    "eyJzZWNyZXRLZXkiOiJmbWxGbXl0SzY5bFJmYl9rLTFsMm9oVG1HSjIyX25KMFdDUWR0YmVUQkRRPSIs"
    "Iml2IjoieUZ0RHplemhTdFRTbFRwYThGSURTUT09In0="
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TWT_ENCODED_SECRET", raising=False)
    monkeypatch.delenv("TWT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TWT_ALLOWABLE_CLOCK_DRIFT_SECONDS", raising=False)


def _generate(capsys, *extra):
    assert main(["generate", "--secret", ENCODED_SECRET, *extra]) == 0
    return capsys.readouterr().out.strip()


def test_salt(capsys):
    """Test the salt command prints a usable secret."""
    assert main(["salt"]) == 0

    validate_encoded_secret(capsys.readouterr().out.strip())


def test_generate_and_verify(capsys):
    """Test a generated token verifies with a key map."""
    token = _generate(capsys, "--claims", '{"u": "test"}')

    assert main(["verify", "--secret", ENCODED_SECRET, "--key-map", '{"u": "userID"}', token]) == 0
    claims = json.loads(capsys.readouterr().out)

    assert claims["userID"] == "test"
    assert claims["expiresIn"] == 2592000


def test_secret_from_environment(capsys, monkeypatch):
    """Test the secret defaults to TWT_ENCODED_SECRET."""
    monkeypatch.setenv("TWT_ENCODED_SECRET", ENCODED_SECRET)

    assert main(["generate"]) == 0
    token = capsys.readouterr().out.strip()

    assert main(["verify", token]) == 0
    assert "validAt" in json.loads(capsys.readouterr().out)


def test_verify_failure_exit_code(capsys):
    """Test a rejected token exits with status 1 and reports the code."""
    token = _generate(capsys)

    assert main(["verify", "--secret", ENCODED_SECRET, "x" + token]) == 1
    assert "[twt] E" in capsys.readouterr().err


def test_missing_secret(capsys):
    """Test generating without a secret reports ESECRET."""
    assert main(["generate"]) == 1
    assert "ESECRET" in capsys.readouterr().err


def test_bad_valid_at(capsys):
    """Test a past validAt reports EVALIDAT."""
    assert main(["generate", "--secret", ENCODED_SECRET, "--valid-at", "1"]) == 1
    assert "EVALIDAT" in capsys.readouterr().err


def test_invalid_claims_json():
    """Test malformed claims are a usage error."""
    with pytest.raises(SystemExit) as exc_info:
        main(["generate", "--secret", ENCODED_SECRET, "--claims", "[1]"])
    assert exc_info.value.code == 2


def test_hash(capsys):
    """Test the hash command prints SHA-512 of salt + token."""
    assert main(["hash", "--salt", "pepper", "token"]) == 0
    assert capsys.readouterr().out.strip() == hashlib.sha512(b"peppertoken").hexdigest()


def test_hash_empty_salt(capsys):
    """Test an empty salt fails."""
    assert main(["hash", "--salt", "", "token"]) == 1
    assert "salt" in capsys.readouterr().err


def test_unknown_log_level_is_a_usage_error():
    """Test --log-level only accepts known levels."""
    with pytest.raises(SystemExit) as exc_info:
        main(["--log-level", "verbose", "salt"])
    assert exc_info.value.code == 2


def test_log_level_is_case_insensitive(capsys):
    """Test --log-level accepts upper case names."""
    assert main(["--log-level", "DEBUG", "salt"]) == 0
    validate_encoded_secret(capsys.readouterr().out.strip())


def test_invalid_settings_exit_code(capsys, monkeypatch):
    """Test bad TWT_ environment values are reported, not raised."""
    monkeypatch.setenv("TWT_ALLOWABLE_CLOCK_DRIFT_SECONDS", "plenty")

    assert main(["salt"]) == 1
    assert "[twt] invalid settings" in capsys.readouterr().err
