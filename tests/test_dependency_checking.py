"""
Runtime dependency checks.
"""

import builtins
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from testnode.preflight import check_runtime_dependencies  # noqa: E402


def _import_without(missing):
    real_import = builtins.__import__

    def mock_import(name, *args, **kwargs):
        if name == missing:
            raise ImportError(f"No module named '{name}'")
        return real_import(name, *args, **kwargs)

    return mock_import


def _printed(mock_print):
    return [str(call[0][0]) for call in mock_print.call_args_list]


class TestDependencyChecking:
    @pytest.fixture(autouse=True)
    def enable_check(self, monkeypatch):
        monkeypatch.delenv("SKIP_DEPENDENCY_CHECK", raising=False)

    def test_skips_check_when_env_var_set(self, monkeypatch):
        monkeypatch.setenv("SKIP_DEPENDENCY_CHECK", "1")

        with patch("subprocess.run") as mock_run:
            check_runtime_dependencies()

        mock_run.assert_not_called()

    def test_passes_when_everything_is_present(self):
        with patch("subprocess.run", return_value=Mock(returncode=0)) as mock_run:
            check_runtime_dependencies()

        commands = [call.args[0][:2] for call in mock_run.call_args_list]
        assert commands == [["docker", "--version"], ["docker", "compose"], ["docker", "info"]]

    def test_missing_docker_stops_early(self):
        with patch("subprocess.run", side_effect=FileNotFoundError()) as mock_run:
            with patch("builtins.print") as mock_print:
                with pytest.raises(SystemExit):
                    check_runtime_dependencies()

        assert mock_run.call_count == 1
        assert any("docker CLI" in msg for msg in _printed(mock_print))

    def test_checks_docker_compose_availability(self):
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = [
                Mock(returncode=0),
                Mock(returncode=1),
                Mock(returncode=0),
            ]

            with patch("builtins.print") as mock_print:
                with pytest.raises(SystemExit):
                    check_runtime_dependencies()

        assert any("docker compose v2 plugin" in msg for msg in _printed(mock_print))

    def test_unreachable_daemon_is_fatal(self):
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = [
                Mock(returncode=0),
                Mock(returncode=0),
                Mock(returncode=1),
            ]

            with patch("builtins.print") as mock_print:
                with pytest.raises(SystemExit):
                    check_runtime_dependencies()

        assert any("DOCKER_HOST" in msg for msg in _printed(mock_print))

    def test_jinja2_missing_is_fatal(self):
        with patch("subprocess.run", return_value=Mock(returncode=0)):
            with patch("builtins.__import__", side_effect=_import_without("jinja2")):
                with pytest.raises(SystemExit):
                    check_runtime_dependencies()

    def test_tomli_w_missing_is_fatal(self):
        with patch("subprocess.run", return_value=Mock(returncode=0)):
            with patch("builtins.__import__", side_effect=_import_without("tomli_w")):
                with patch("builtins.print") as mock_print:
                    with pytest.raises(SystemExit):
                        check_runtime_dependencies()

        assert any("pip install tomli_w" in msg for msg in _printed(mock_print))


class TestComposeFileWarning:
    @pytest.fixture(autouse=True)
    def enable_check(self, monkeypatch):
        monkeypatch.delenv("SKIP_DEPENDENCY_CHECK", raising=False)

    def test_warns_without_compose_file(self, tmp_path):
        with patch("subprocess.run", return_value=Mock(returncode=0)):
            with patch("builtins.print") as mock_print:
                check_runtime_dependencies(tmp_path)

        assert any("No docker-compose.yaml in" in msg for msg in _printed(mock_print))

    def test_silent_with_compose_file(self, tmp_path):
        (tmp_path / "docker-compose.yaml").write_text("services: {}\n")

        with patch("subprocess.run", return_value=Mock(returncode=0)):
            with patch("builtins.print") as mock_print:
                check_runtime_dependencies(tmp_path)

        mock_print.assert_not_called()
