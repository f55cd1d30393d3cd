import sys
from pathlib import Path
from unittest.mock import MagicMock

# Ensure scripts/ is importable for the CLI module
SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

import run_monitor as cli  # noqa: E402

from onion_monitor.persistence import PersistenceError  # noqa: E402


def _write_env(tmp_path: Path, *extra: str) -> Path:
    env_file = tmp_path / "test.env"
    env_file.write_text(
        "\n".join(
            [
                f"REGISTRY_PATH={tmp_path / 'onions.json'}",
                f"REPORT_PATH={tmp_path / 'docs' / 'index.html'}",
                f"LOG_DIR={tmp_path / 'logs'}",
                *extra,
            ]
        ),
        encoding="utf-8",
    )
    return env_file


def _clear_env(monkeypatch):
    for key in ["REGISTRY_PATH", "REPORT_PATH", "LOG_DIR", "CHECKER", "SOCKS_PROXY"]:
        monkeypatch.delenv(key, raising=False)


def test_main_runs_monitor_with_overrides(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    env_file = _write_env(tmp_path)
    run = MagicMock()
    run.return_value.counts = MagicMock(online=1, offline=0, total=1)
    monkeypatch.setattr(cli, "run_monitor", run)

    registry = tmp_path / "other.json"
    code = cli.main(
        ["--env-file", str(env_file), "--registry", str(registry), "--checker", "requests", "--skip-fetch"]
    )

    assert code == 0
    config, _directory, checker, run_config = run.call_args.args
    assert config.registry_path == registry
    assert config.checker == "requests"
    assert type(checker).__name__ == "RequestsChecker"
    assert run_config.skip_fetch is True
    assert run_config.probe_delay_seconds == 2.0
    assert run_config.probe_timeout_seconds == 60.0


def test_main_returns_one_on_persistence_error(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    env_file = _write_env(tmp_path)
    monkeypatch.setattr(
        cli,
        "run_monitor",
        MagicMock(side_effect=PersistenceError("write registry", tmp_path / "onions.json", OSError("disk full"))),
    )

    assert cli.main(["--env-file", str(env_file)]) == 1


def test_main_returns_one_on_bad_config(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    env_file = _write_env(tmp_path, "CHECKER=telnet")
    monkeypatch.setattr(cli, "REPO_ROOT", tmp_path)

    assert cli.main(["--env-file", str(env_file)]) == 1
