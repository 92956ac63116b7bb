"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from carebudget.config import BaseConfig, DevConfig, TestingConfig


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CAREBUDGET_DATA_DIR", str(tmp_path / "data"))
    for name in ("CAREBUDGET_DATABASE_URL", "CAREBUDGET_DEV_MODE", "CAREBUDGET_SECRET_KEY", "CAREBUDGET_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_use_sqlite_under_data_dir(tmp_path):
    config = BaseConfig()

    assert config.DATA_DIR == (tmp_path / "data").resolve()
    assert config.DATA_DIR.is_dir()
    assert config.DATABASE_URL == f"sqlite:///{config.DATA_DIR / 'carebudget.db'}"
    assert config.DEV_MODE is True
    assert config.LOG_LEVEL == "INFO"
    assert config.REFUND_EPSILON == 1e-6
    assert config.sqlalchemy_engine_options() == {"connect_args": {"check_same_thread": False}}


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CAREBUDGET_DATABASE_URL", "postgresql://care:secret@db/care")
    monkeypatch.setenv("CAREBUDGET_LOG_LEVEL", "debug")
    monkeypatch.setenv("CAREBUDGET_DEV_MODE", "off")
    monkeypatch.setenv("CAREBUDGET_SECRET_KEY", "s3cret")

    config = BaseConfig()

    assert config.DATABASE_URL == "postgresql://care:secret@db/care"
    assert config.LOG_LEVEL == "DEBUG"
    assert config.DEV_MODE is False
    assert config.sqlalchemy_engine_options() == {"pool_pre_ping": True}


def test_secret_key_required_outside_dev_mode(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CAREBUDGET_DEV_MODE", "0")
    with pytest.raises(ValueError):
        BaseConfig()


def test_role_policy():
    config = BaseConfig()
    assert config.BUDGET_MANAGER_ROLES == {"management"}
    assert config.TRANSACTION_ROLES == {"carer", "management"}


def test_environment_classes():
    assert DevConfig.DEBUG is True
    assert TestingConfig.TESTING is True
    assert BaseConfig.DEBUG is False
