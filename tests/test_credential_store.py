"""
Tests for encrypted credential storage

Tests cover:
- Save and load round trip
- Secret fields encrypted at rest
- Tamper detection
- Master key lifecycle and file permissions
"""
import json
import os
import stat

import pytest

from xeet.security.credential_store import CredentialStore, Credentials
from xeet.utils.errors import CorruptConfigError, CredentialStoreError


def stored(store: CredentialStore) -> dict:
    return json.loads(store.path.read_text())


class TestRoundTrip:
    """Tests for save/load"""

    def test_round_trip(self, store, credentials):
        store.save(credentials)
        assert store.load() == credentials

    def test_round_trip_with_fresh_store_instance(self, store, credentials):
        store.save(credentials)
        reopened = CredentialStore(store.path, store.key_path)
        assert reopened.load() == credentials

    def test_missing_file_loads_empty(self, store):
        loaded = store.load()
        assert loaded == Credentials()
        assert loaded.is_empty
        assert not loaded.has_access_token

    def test_empty_secrets_stay_empty(self, store):
        store.save(Credentials(api_key="only-key"))
        assert stored(store)["api_secret"] == ""
        assert store.load() == Credentials(api_key="only-key")

    def test_unknown_fields_ignored(self, saved_store, credentials):
        data = stored(saved_store)
        data["bearer_token"] = "legacy"
        saved_store.path.write_text(json.dumps(data))

        assert saved_store.load() == credentials


class TestEncryptionAtRest:
    """Tests for what is written to disk"""

    def test_secrets_not_in_plaintext(self, saved_store, credentials):
        raw = saved_store.path.read_text()
        assert credentials.api_secret not in raw
        assert credentials.access_token_secret not in raw

    def test_public_fields_readable(self, saved_store, credentials):
        data = stored(saved_store)
        assert data["api_key"] == credentials.api_key
        assert data["username"] == credentials.username

    def test_same_secret_encrypts_differently(self, store, credentials):
        store.save(credentials)
        first = stored(store)["api_secret"]
        store.save(credentials)
        assert stored(store)["api_secret"] != first

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_files_are_owner_only(self, saved_store):
        for path in (saved_store.path, saved_store.key_path):
            assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_no_temp_file_left_behind(self, saved_store):
        assert not saved_store.path.with_suffix(".tmp").exists()


class TestCorruption:
    """Tests for tampered or unreadable files"""

    def test_tampered_ciphertext_fails(self, saved_store):
        data = stored(saved_store)
        token = data["access_token_secret"]
        middle = len(token) // 2
        flipped = "A" if token[middle] != "A" else "B"
        data["access_token_secret"] = token[:middle] + flipped + token[middle + 1:]
        saved_store.path.write_text(json.dumps(data))

        with pytest.raises(CorruptConfigError):
            CredentialStore(saved_store.path, saved_store.key_path).load()

    def test_wrong_key_fails(self, saved_store, tmp_path):
        other = CredentialStore(saved_store.path, tmp_path / "other.key")
        with pytest.raises(CorruptConfigError):
            other.load()

    def test_invalid_json_fails(self, store):
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text("{not json")
        with pytest.raises(CorruptConfigError):
            store.load()

    def test_non_object_fails(self, store):
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text("[1, 2]")
        with pytest.raises(CorruptConfigError):
            store.load()

    @pytest.mark.parametrize("value", [12345, ["token"], {"token": "x"}])
    def test_non_string_secret_fails(self, saved_store, value):
        data = stored(saved_store)
        data["api_secret"] = value
        saved_store.path.write_text(json.dumps(data))

        with pytest.raises(CorruptConfigError) as exc_info:
            CredentialStore(saved_store.path, saved_store.key_path).load()
        assert exc_info.value.details["field"] == "api_secret"

    def test_invalid_master_key(self, saved_store):
        saved_store.key_path.write_bytes(b"short")
        with pytest.raises(CorruptConfigError):
            CredentialStore(saved_store.path, saved_store.key_path).load()


class TestMasterKey:
    """Tests for master key generation"""

    def test_key_generated_once(self, store, credentials):
        store.save(credentials)
        key = store.key_path.read_bytes()

        CredentialStore(store.path, store.key_path).save(credentials)
        assert store.key_path.read_bytes() == key

    def test_unwritable_location(self, tmp_path, credentials):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = CredentialStore(blocker / "credentials.json", blocker / ".master.key")

        with pytest.raises(CredentialStoreError):
            store.save(credentials)
