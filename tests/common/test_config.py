from __future__ import annotations

from pathlib import Path

import pytest

from pimsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    StorageConfig,
    get_database_config,
    get_env_flag,
    get_env_int,
    get_pim_config,
    get_storage_config,
    require_env_vars,
)
from pimsync.config.pim import DEFAULT_API_URL


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_names_every_missing_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


@pytest.mark.parametrize(("raw", "expected"), [("1", True), ("Yes", True), ("off", False)])
def test_env_flag_parsing(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("PIMSYNC_FLAG", raw)

    assert get_env_flag("PIMSYNC_FLAG") is expected


def test_invalid_env_values_are_configuration_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIMSYNC_FLAG", "maybe")
    monkeypatch.setenv("PIMSYNC_COUNT", "many")

    with pytest.raises(ConfigurationError):
        get_env_flag("PIMSYNC_FLAG")
    with pytest.raises(ConfigurationError):
        get_env_int("PIMSYNC_COUNT", default=0)


def test_pim_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BP_CLIENT_ID", "client")
    monkeypatch.setenv("BP_CLIENT_SECRET", "secret")
    monkeypatch.setenv("BP_API_URL", "")
    monkeypatch.setenv("PIMSYNC_MAX_RETRIES", "2")
    monkeypatch.delenv("PIMSYNC_DEBUG", raising=False)

    config = get_pim_config()

    assert config.api_url == DEFAULT_API_URL
    assert config.service_url("pim") == f"{DEFAULT_API_URL}/pim"
    resilience = config.resilience("pim")
    assert resilience.retry.total == 2
    assert resilience.credentials is not None
    assert resilience.credentials.client_id == "client"
    assert "secret" not in repr(config)


def test_pim_config_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BP_CLIENT_ID", raising=False)
    monkeypatch.delenv("BP_CLIENT_SECRET", raising=False)

    with pytest.raises(MissingConfigurationError, match="BP_CLIENT_ID, BP_CLIENT_SECRET"):
        get_pim_config()


def test_state_database_defaults_to_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("PIMSYNC_STATE_URI", raising=False)
    monkeypatch.setenv("PIMSYNC_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("PIMSYNC_WORKSPACE", raising=False)

    storage = get_storage_config()
    database = get_database_config(storage=storage)

    assert storage.data_dir == Path(tmp_path / "data")
    assert database.uri == f"sqlite+pysqlite:///{(tmp_path / 'data').resolve() / 'state.db'}"
    assert (tmp_path / "data").is_dir()


def test_state_uri_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIMSYNC_STATE_URI", "sqlite+pysqlite:///:memory:")

    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"


def test_named_workspace_gets_its_own_state_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("PIMSYNC_STATE_URI", "  ")
    monkeypatch.setenv("PIMSYNC_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PIMSYNC_WORKSPACE", "staging")

    storage = get_storage_config()

    assert storage.workspace == "staging"
    assert get_database_config(storage=storage).uri.endswith("/state-staging.db")


@pytest.mark.parametrize("workspace", ["../prod", "my workspace", ""])
def test_invalid_workspace_names_are_rejected(tmp_path: Path, workspace: str) -> None:
    with pytest.raises(ConfigurationError, match="Invalid workspace name"):
        StorageConfig(data_dir=tmp_path, workspace=workspace)
