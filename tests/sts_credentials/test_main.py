"""Tests for the command-line entry point."""

import logging
import sys

import pytest

from sts_credentials.__main__ import main

needs_plain_paths = pytest.mark.skipif(
    " " in sys.executable, reason="interpreter path contains a space"
)


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("STS_COMMAND", "STS_LIFETIME_SECONDS", "STS_RENEW_EARLY_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    yield
    logging.getLogger().handlers.clear()


def _script(tmp_path, body):
    if " " in str(tmp_path):
        pytest.skip("temporary path contains a space")
    script = tmp_path / "issue_token.py"
    script.write_text(body)
    return f"{sys.executable} {script}"


@needs_plain_paths
class TestMainOnce:
    def test_once_prints_summary_without_secrets(self, tmp_path, capsys):
        command = _script(
            tmp_path,
            "print('export ACCESS_KEY=ASIAEXAMPLE')\n"
            "print('export SECRET_KEY=supersecretvalue')\n"
            "print('export SESSION_TOKEN=sessiontokenvalue')\n",
        )

        code = main(["--command", command, "--once", "--no-file-log"])

        out = capsys.readouterr().out
        assert code == 0
        assert "ASIA..." in out
        assert "supersecretvalue" not in out
        assert "sessiontokenvalue" not in out

    def test_once_fails_on_incomplete_output(self, tmp_path):
        command = _script(tmp_path, "print('export ACCESS_KEY=ASIAEXAMPLE')\n")

        assert main(["--command", command, "--once", "--no-file-log"]) == 1


class TestMainConfiguration:
    def test_missing_command_is_config_error(self):
        assert main(["--once", "--no-file-log"]) == 2

    def test_missing_config_file(self, tmp_path):
        assert main(["--config", str(tmp_path / "nope.yaml"), "--once"]) == 2

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sts_credentials: [unclosed\n")

        assert main(["--config", str(path), "--once", "--no-file-log"]) == 2

    def test_scalar_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sts_credentials: get-token\n")

        assert main(["--config", str(path), "--once", "--no-file-log"]) == 2

    def test_non_numeric_lifetime(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("command: get-token\nlifetime_seconds: soon\n")

        assert main(["--config", str(path), "--once", "--no-file-log"]) == 2
