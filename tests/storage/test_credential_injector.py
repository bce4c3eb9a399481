"""Tests for loading, expiry checks, regeneration and injection of auth data."""

import json
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from podauth.models.auth_data import AuthDataBundle
from podauth.models.config import ProviderConfig
from podauth.models.errors import AuthDataError, RegenerationError, TokensExpiredError
from podauth.models.flow import AuthResult
from podauth.storage.base import InMemorySecureStore
from podauth.storage.injector import (
    AUTH_DATA_STORAGE_KEY,
    LEGACY_STORAGE_KEYS,
    AuthDataStatus,
    CredentialInjector,
    write_auth_data_file,
)
from tests.fakes import make_credentials

NOW = 1_700_000_000.0


def make_bundle(token: dict | None = None, response: dict | None = None) -> dict:
    auth_response = {
        "issuer": {"issuer": "https://issuer.example"},
        "client_id": "C1",
        "client_secret": None,
        "token": {"access_token": "A", **(token or {})},
        "nonce": None,
    }
    if response is not None:
        auth_response["response"] = response
    return {
        "web_id": "https://issuer.example/tester/profile/card#me",
        "logout_url": "https://issuer.example/logout",
        "rsa_info": "{}",
        "auth_response": auth_response,
    }


class InjectorTestBase:
    @pytest.fixture(autouse=True)
    def setup_injector(self, tmp_path):
        self.now = NOW
        self.tmp_path = tmp_path
        self.auth_data_path = tmp_path / "fixtures" / "complete_auth_data.json"
        self.credentials_path = tmp_path / "fixtures" / "test_credentials.json"
        self.config = ProviderConfig(
            issuer_url="https://issuer.example",
            auth_data_path=str(self.auth_data_path),
            credentials_path=str(self.credentials_path),
        )
        self.store = InMemorySecureStore()
        self.automator = MagicMock()
        self.automator.authenticate = AsyncMock()
        self.injector = CredentialInjector(
            self.store, self.config, automator=self.automator, clock=lambda: self.now
        )

    def write_bundle(self, data: dict, mtime: float | None = None) -> None:
        write_auth_data_file(self.auth_data_path, data)
        if mtime is not None:
            os.utime(self.auth_data_path, (mtime, mtime))

    def write_credentials(self) -> None:
        self.credentials_path.parent.mkdir(parents=True, exist_ok=True)
        self.credentials_path.write_text(json.dumps(make_credentials().to_json()))


class TestTokenExpiry(InjectorTestBase):
    def test_expiry_inside_buffer_is_expired(self):
        # Arrange
        bundle = AuthDataBundle.model_validate(make_bundle({"expires_at": int(NOW) + 30}))

        # Act & Assert
        assert self.injector.is_token_expired(bundle) is True

    def test_expiry_outside_buffer_is_valid(self):
        # Arrange
        bundle = AuthDataBundle.model_validate(make_bundle({"expires_at": int(NOW) + 120}))

        # Act & Assert
        assert self.injector.is_token_expired(bundle) is False

    def test_legacy_expires_in_counts_from_capture_time(self):
        # Arrange
        bundle = AuthDataBundle.model_validate(make_bundle(response={"expires_in": 3600}))

        # Act
        fresh = self.injector.is_token_expired(bundle, issued_at=NOW)
        self.now = NOW + 3601
        later = self.injector.is_token_expired(bundle, issued_at=NOW)

        # Assert
        assert fresh is False
        assert later is True

    def test_legacy_expires_at(self):
        # Arrange
        bundle = AuthDataBundle.model_validate(
            make_bundle(response={"expires_at": int(NOW) + 600})
        )

        # Act & Assert
        assert self.injector.is_token_expired(bundle) is False

    def test_no_expiry_is_expired(self):
        # Arrange
        bundle = AuthDataBundle.model_validate(make_bundle())

        # Act & Assert
        assert self.injector.is_token_expired(bundle) is True

    def test_missing_auth_response_is_expired(self):
        # Arrange
        data = make_bundle()
        del data["auth_response"]
        bundle = AuthDataBundle.model_validate(data)

        # Act & Assert
        assert self.injector.is_token_expired(bundle) is True


class TestCheckAuthData(InjectorTestBase):
    def test_missing_file(self):
        # Act
        check = self.injector.check_auth_data()

        # Assert
        assert check.status is AuthDataStatus.MISSING
        assert check.needs_regeneration

    def test_unparsable_file(self):
        # Arrange
        self.auth_data_path.parent.mkdir(parents=True)
        self.auth_data_path.write_text("{broken")

        # Act
        check = self.injector.check_auth_data()

        # Assert
        assert check.status is AuthDataStatus.INVALID
        assert "podauth-generate" in check.error

    def test_non_utf8_file_is_invalid(self):
        # Arrange
        self.auth_data_path.parent.mkdir(parents=True)
        self.auth_data_path.write_bytes(b"\xff\xfe garbage")

        # Act
        check = self.injector.check_auth_data()

        # Assert
        assert check.status is AuthDataStatus.INVALID
        assert check.needs_regeneration

    def test_valid_file(self):
        # Arrange
        self.write_bundle(make_bundle({"expires_at": int(NOW) + 3600}))

        # Act
        check = self.injector.check_auth_data()

        # Assert
        assert check.status is AuthDataStatus.VALID
        assert check.bundle.auth_response.client_id == "C1"

    def test_legacy_file_uses_modification_time(self):
        # Arrange
        self.write_bundle(make_bundle(response={"expires_in": 3600}), mtime=NOW - 4000)

        # Act
        check = self.injector.check_auth_data()

        # Assert
        assert check.status is AuthDataStatus.EXPIRED

    def test_load_missing_file_hints_at_generator(self):
        # Act & Assert
        with pytest.raises(AuthDataError, match="Run: podauth-generate"):
            self.injector.load_complete_auth_data()


class TestInjectFullAuth(InjectorTestBase):
    async def test_valid_bundle_is_injected(self):
        # Arrange
        data = make_bundle({"expires_at": int(NOW) + 3600})
        self.write_bundle(data)

        # Act
        bundle = await self.injector.inject_full_auth()

        # Assert
        assert bundle.web_id == data["web_id"]
        assert json.loads(await self.store.read(AUTH_DATA_STORAGE_KEY)) == data
        assert await self.injector.verify_injection()
        self.automator.authenticate.assert_not_awaited()

    async def test_expired_without_regeneration_raises(self):
        # Arrange
        self.write_bundle(make_bundle({"expires_at": int(NOW) - 10}))

        # Act & Assert
        with pytest.raises(TokensExpiredError, match="podauth-generate"):
            await self.injector.inject_full_auth(auto_regenerate=False)
        assert await self.store.read(AUTH_DATA_STORAGE_KEY) is None

    async def test_missing_without_regeneration_raises(self):
        # Act & Assert
        with pytest.raises(AuthDataError, match="not found"):
            await self.injector.inject_full_auth(auto_regenerate=False)
        assert self.store.keys() == []

    async def test_non_utf8_without_regeneration_raises(self):
        # Arrange
        self.auth_data_path.parent.mkdir(parents=True)
        self.auth_data_path.write_bytes(b"\xff\xfe garbage")

        # Act & Assert
        with pytest.raises(AuthDataError, match="Failed to parse"):
            await self.injector.inject_full_auth(auto_regenerate=False)
        assert self.store.keys() == []

    async def test_expired_bundle_is_regenerated_and_injected(self):
        # Arrange
        self.write_bundle(make_bundle({"expires_at": int(NOW) - 10}))
        self.write_credentials()
        fresh = make_bundle({"expires_at": int(NOW) + 3600})
        self.automator.authenticate.return_value = AuthResult(
            success=True, tokens={}, complete_auth_data=fresh
        )

        # Act
        bundle = await self.injector.inject_full_auth(auto_regenerate=True)

        # Assert
        assert bundle.auth_response.token.expires_at == int(NOW) + 3600
        assert json.loads(self.auth_data_path.read_text()) == fresh
        assert json.loads(await self.store.read(AUTH_DATA_STORAGE_KEY)) == fresh
        credentials, config = self.automator.authenticate.call_args[0]
        assert credentials.email == "tester@example.com"
        assert config is self.config
        assert self.automator.authenticate.call_args[1] == {"headless": True}

    async def test_missing_bundle_is_regenerated(self):
        # Arrange
        self.write_credentials()
        self.automator.authenticate.return_value = AuthResult(
            success=True, tokens={}, complete_auth_data=make_bundle({"expires_at": int(NOW) + 3600})
        )

        # Act
        await self.injector.inject_full_auth(auto_regenerate=True)

        # Assert
        assert self.auth_data_path.exists()
        assert await self.injector.verify_injection()

    async def test_failed_regeneration_writes_nothing(self):
        # Arrange
        self.write_credentials()
        self.automator.authenticate.return_value = AuthResult.failed("Login form not found")

        # Act & Assert
        with pytest.raises(RegenerationError, match="Login form not found"):
            await self.injector.inject_full_auth(auto_regenerate=True)
        assert self.store.keys() == []
        assert not self.auth_data_path.exists()

    async def test_missing_credentials_fail_regeneration(self):
        # Act & Assert
        with pytest.raises(RegenerationError, match="Test credentials file not found"):
            await self.injector.inject_full_auth(auto_regenerate=True)
        self.automator.authenticate.assert_not_awaited()


class TestStoreOperations(InjectorTestBase):
    async def test_verify_injection_requires_web_id(self):
        # Arrange
        await self.store.write(AUTH_DATA_STORAGE_KEY, json.dumps({"web_id": ""}))

        # Act & Assert
        assert await self.injector.verify_injection() is False

    async def test_verify_injection_rejects_garbage(self):
        # Arrange
        await self.store.write(AUTH_DATA_STORAGE_KEY, "not json")

        # Act & Assert
        assert await self.injector.verify_injection() is False

    async def test_verify_injection_with_empty_store(self):
        # Act & Assert
        assert await self.injector.verify_injection() is False

    async def test_clear_credentials_removes_bundle_and_legacy_keys(self):
        # Arrange
        await self.store.write(AUTH_DATA_STORAGE_KEY, json.dumps(make_bundle()))
        for key in LEGACY_STORAGE_KEYS:
            await self.store.write(key, "stale")
        await self.store.write("unrelated", "kept")

        # Act
        await self.injector.clear_credentials()
        await self.injector.clear_credentials()

        # Assert
        assert self.store.keys() == ["unrelated"]
        assert await self.injector.verify_injection() is False


class TestWriteAuthDataFile:
    def test_creates_parents_and_indents(self, tmp_path):
        # Arrange
        path = tmp_path / "a" / "b" / "auth.json"

        # Act
        write_auth_data_file(path, {"web_id": "W"})

        # Assert
        assert path.read_text() == '{\n  "web_id": "W"\n}'
