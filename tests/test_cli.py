# tests/test_cli.py
import json

import pytest
import yaml
from click.testing import CliRunner

from confbind.cli import _match, _parse_overrides, cli
from confbind.encryption import SecretDecryptor

KEY = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "application.yml").write_text(yaml.safe_dump({
        "database": {"host": "db.local", "port": 5432, "user": "${DB_USER:admin}"},
        "feature": {"enabled": True},
    }))
    (tmp_path / "application-production.yml").write_text(yaml.safe_dump({
        "database": {"host": "db.prod"},
    }))
    return tmp_path


@pytest.fixture
def invoke(config_dir, monkeypatch):
    monkeypatch.delenv("CONFBIND_ENCRYPTION_KEY", raising=False)
    monkeypatch.delenv("DB_USER", raising=False)
    runner = CliRunner()

    def run(*args):
        return runner.invoke(cli, ["-d", str(config_dir), "-e", "CONFBIND_TEST_", "-p", "development", *args])

    return run


def test_get(invoke):
    result = invoke("get", "database.host")
    assert result.exit_code == 0
    assert json.loads(result.output) == "db.local"

def test_get_section(invoke):
    result = invoke("get", "database")
    assert json.loads(result.output) == {"host": "db.local", "port": 5432, "user": "admin"}

def test_get_missing(invoke):
    result = invoke("get", "database.nope")
    assert result.exit_code == 1
    assert "Key not found" in result.output

def test_profile(config_dir):
    result = CliRunner().invoke(cli, ["-d", str(config_dir), "-e", "CONFBIND_TEST_", "-p", "production",
                                      "get", "database.host"])
    assert json.loads(result.output) == "db.prod"

def test_set_override(invoke):
    result = invoke("-s", "database.port=6543", "-s", "database.tags=[\"a\"]", "get", "database")
    data = json.loads(result.output)
    assert data["port"] == 6543
    assert data["tags"] == ["a"]

def test_set_requires_equals(invoke):
    result = invoke("-s", "database.port", "dump")
    assert result.exit_code != 0

def test_no_placeholders(invoke):
    result = invoke("--no-placeholders", "get", "database.user")
    assert json.loads(result.output) == "${DB_USER:admin}"

def test_exists(invoke):
    assert invoke("exists", "feature.enabled").exit_code == 0
    missing = invoke("exists", "feature.missing")
    assert missing.exit_code == 1
    assert missing.output.strip() == "false"

def test_dump(invoke):
    result = invoke("dump")
    assert result.exit_code == 0
    assert json.loads(result.output)["feature"] == {"enabled": True}

def test_search_keys(invoke):
    result = invoke("search", "--key", "database.*")
    assert result.exit_code == 0
    assert set(json.loads(result.output)) == {"database.host", "database.port", "database.user"}

def test_search_values(invoke):
    result = invoke("search", "--val", "DB.LOCAL", "-i")
    assert json.loads(result.output) == {"database.host": "db.local"}

def test_search_requires_pattern(invoke):
    assert invoke("search").exit_code == 1

def test_search_no_match(invoke):
    result = invoke("search", "--key", "nothing")
    assert result.exit_code == 1
    assert "No matches" in result.output

def test_explain(invoke):
    result = invoke("explain", "database.host")
    assert result.exit_code == 0
    assert "db.local" in result.output
    assert "application.yml" in result.output

def test_explain_unknown(invoke):
    assert invoke("explain", "nope").exit_code == 1

def test_encrypt_decrypt(invoke):
    encrypted = invoke("-k", KEY, "encrypt", "s3cret")
    assert encrypted.exit_code == 0
    envelope = encrypted.output.strip()
    assert SecretDecryptor(KEY).decrypt(envelope) == "s3cret"

    decrypted = invoke("-k", KEY, "decrypt", envelope)
    assert decrypted.output.strip() == "s3cret"

def test_encrypt_requires_key(invoke):
    result = invoke("encrypt", "s3cret")
    assert result.exit_code == 1
    assert "encryption-key" in result.output

def test_bad_key(invoke):
    assert invoke("-k", "short", "dump").exit_code == 1

def test_get_decrypts_with_key(invoke, config_dir):
    envelope = SecretDecryptor(KEY).encrypt("pw")
    (config_dir / "application.json").write_text(json.dumps({"database": {"password": envelope}}))
    result = invoke("-k", KEY, "get", "database.password")
    assert json.loads(result.output) == "pw"


@pytest.mark.parametrize("pattern, text, ignore_case, expected", [
    ("db.*", "db.host", False, True),
    ("^db\\.h", "db.host", False, True),
    ("db.host", "db.host", False, True),
    ("DB", "db", True, True),
    ("DB", "db", False, False),
    ("host", "db.host", False, False),
])
def test_match(pattern, text, ignore_case, expected):
    assert _match(pattern, text, ignore_case) is expected

def test_parse_overrides():
    assert _parse_overrides(["a.b=1", "a.c=true", "d=plain text"]) == {
        "a": {"b": 1, "c": True}, "d": "plain text",
    }
