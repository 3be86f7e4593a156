from pathlib import Path

from pocketsync.configuration import (
    DEFAULT_CONFIG_DIR,
    load_configuration,
    resolve_data_dir,
)
from pocketsync.sync import SyncSettings


def _write_override(data_dir: Path, content: str) -> None:
    cfg_dir = data_dir / "config"
    cfg_dir.mkdir(parents=True, exist_ok=True)
    (cfg_dir / "local.yml").write_text(content)


def test_repo_defaults_are_loaded(tmp_path: Path):
    data_dir = tmp_path / "home"
    data_dir.mkdir()

    bundle = load_configuration(data_dir)

    assert bundle.status == "ready"
    assert DEFAULT_CONFIG_DIR / "pocketsync.yml" in bundle.files_loaded
    assert bundle.merged["sync"]["conflict_strategy"] == "remote_wins"
    assert bundle.merged["logging"]["level"] == "INFO"


def test_overrides_are_deep_merged(tmp_path: Path):
    data_dir = tmp_path / "home"
    data_dir.mkdir()
    _write_override(
        data_dir,
        """
        sync:
          conflict_strategy: local_wins
        """,
    )

    bundle = load_configuration(data_dir)
    settings = SyncSettings.from_config(bundle.merged)

    assert bundle.status == "ready"
    assert settings.conflict_strategy == "local_wins"
    assert settings.enabled is True
    assert bundle.section("sync")["history_limit"] == 100


def test_missing_data_dir(tmp_path: Path):
    bundle = load_configuration(tmp_path / "nowhere")

    assert bundle.status == "missing"
    assert any("does not exist" in diag.message for diag in bundle.diagnostics)


def test_invalid_types_raise_diagnostics(tmp_path: Path):
    data_dir = tmp_path / "home"
    data_dir.mkdir()
    _write_override(
        data_dir,
        """
        sync:
          enabled: "yes"
          history_limit: true
        """,
    )

    bundle = load_configuration(data_dir)

    assert bundle.status == "invalid"
    assert any("sync.enabled" in diag.message for diag in bundle.diagnostics)
    assert any("sync.history_limit" in diag.message for diag in bundle.diagnostics)
    assert bundle.merged["sync"]["enabled"] is True
    assert bundle.merged["sync"]["history_limit"] == 100


def test_unknown_strategy_is_rejected(tmp_path: Path):
    data_dir = tmp_path / "home"
    data_dir.mkdir()
    _write_override(
        data_dir,
        """
        sync:
          conflict_strategy: newest_wins
        """,
    )

    bundle = load_configuration(data_dir)

    assert bundle.status == "invalid"
    assert bundle.merged["sync"]["conflict_strategy"] == "remote_wins"


def test_unknown_keys_warn(tmp_path: Path):
    data_dir = tmp_path / "home"
    data_dir.mkdir()
    _write_override(
        data_dir,
        """
        mystery:
          value: 1
        """,
    )

    bundle = load_configuration(data_dir)

    assert bundle.status == "ready"
    assert any("Unknown configuration key" in diag.message for diag in bundle.diagnostics)


def test_broken_yaml_is_reported(tmp_path: Path):
    data_dir = tmp_path / "home"
    data_dir.mkdir()
    _write_override(data_dir, "sync: [unclosed")

    bundle = load_configuration(data_dir)

    assert bundle.status == "invalid"
    assert any("Failed to parse" in diag.message for diag in bundle.diagnostics)


def test_resolve_data_dir_reads_environment(tmp_path: Path):
    assert resolve_data_dir({"POCKETSYNC_HOME": str(tmp_path)}) == tmp_path
    assert resolve_data_dir({}, default=str(tmp_path / "x")) == tmp_path / "x"
