"""Tests for settings, logging setup and container wiring."""

import json
import logging

import base58
import pytest

from ownnest.core.config import CLUSTER_ENDPOINTS, Settings, WalletSettings
from ownnest.core.container import ConfigurationError, build_container, load_owner_keypair
from ownnest.core.logging import configure_logging
from ownnest.infrastructure.ledger import Keypair


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.ledger.cluster == "testnet"
        assert settings.ledger.commitment == "confirmed"
        assert settings.rpc_url == CLUSTER_ENDPOINTS["testnet"]
        assert settings.tokenization.max_attempts == 3

    def test_nested_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("OWNNEST_LEDGER__CLUSTER", "devnet")
        monkeypatch.setenv("OWNNEST_TOKENIZATION__MAX_ATTEMPTS", "5")

        settings = Settings()

        assert settings.rpc_url == CLUSTER_ENDPOINTS["devnet"]
        assert settings.tokenization.max_attempts == 5

    def test_rpc_override(self, monkeypatch) -> None:
        monkeypatch.setenv("OWNNEST_LEDGER__RPC_URL", "http://localhost:8899")

        assert Settings().rpc_url == "http://localhost:8899"


class TestOwnerKeypair:
    def test_from_secret_key(self) -> None:
        keypair = Keypair.generate()
        settings = Settings(wallet=WalletSettings(secret_key=base58.b58encode(keypair.secret_key).decode()))

        assert load_owner_keypair(settings).address == keypair.address

    def test_from_keypair_file(self, tmp_path) -> None:
        keypair = Keypair.generate()
        path = tmp_path / "owner.json"
        path.write_text(json.dumps(list(keypair.secret_key)))

        settings = Settings(wallet=WalletSettings(keypair_path=path))

        assert load_owner_keypair(settings).address == keypair.address

    def test_missing_wallet(self) -> None:
        with pytest.raises(ConfigurationError):
            load_owner_keypair(Settings(wallet=WalletSettings()))

    def test_unreadable_wallet(self, tmp_path) -> None:
        settings = Settings(wallet=WalletSettings(keypair_path=tmp_path / "missing.json"))

        with pytest.raises(ConfigurationError):
            load_owner_keypair(settings)

    def test_both_sources_conflict(self, tmp_path) -> None:
        settings = Settings(wallet=WalletSettings(keypair_path=tmp_path / "a.json", secret_key="abc"))

        with pytest.raises(ConfigurationError):
            load_owner_keypair(settings)

    def test_container_requires_wallet(self, settings, session_factory, rpc) -> None:
        settings.wallet = WalletSettings()

        with pytest.raises(ConfigurationError):
            build_container(settings, session_factory=session_factory, rpc=rpc)


def test_configure_logging_is_idempotent(settings) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(settings)
        configure_logging(settings)

        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level >= logging.WARNING
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
        if hasattr(root, "_ownnest_configured"):
            delattr(root, "_ownnest_configured")
