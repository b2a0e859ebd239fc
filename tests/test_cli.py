"""Tests for CLI commands."""

from __future__ import annotations

from unittest import mock

import pytest
from click.testing import CliRunner

from gcs_auth import __version__
from gcs_auth.cli import cli
from gcs_auth.client import Client


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
    monkeypatch.delenv("K_SERVICE", raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def metadata_client(make_session, make_json_response, clock):
    session = make_session(make_json_response({"access_token": "tok1", "expires_in": 3600}))
    return Client.from_metadata("proj", session=session, clock=clock)


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestTokenCommand:
    def test_prints_header_value(self, runner, metadata_client):
        with mock.patch("gcs_auth.client.Client.from_env", return_value=metadata_client):
            result = runner.invoke(cli, ["token"])

        assert result.exit_code == 0
        assert result.output.strip().splitlines()[-1] == "Bearer tok1"

    def test_project_option(self, runner, metadata_client):
        with mock.patch("gcs_auth.client.Client.from_env", return_value=metadata_client) as from_env:
            runner.invoke(cli, ["token", "--project", "my-project"])
        assert from_env.call_args[0][0] == "my-project"

    def test_with_config_file(self, runner, metadata_client, tmp_path):
        config_file = tmp_path / "gcs-auth.yaml"
        config_file.write_text("logging:\n  level: WARNING\nauth:\n  scopes: [scope-a]\n")
        with mock.patch("gcs_auth.client.Client.from_env", return_value=metadata_client) as from_env:
            result = runner.invoke(cli, ["token", "-c", str(config_file)])

        assert result.exit_code == 0
        assert from_env.call_args.kwargs["config"].scopes == ("scope-a",)

    def test_missing_credentials(self, runner, clean_env):
        result = runner.invoke(cli, ["token"])

        assert result.exit_code == 1
        assert "Missing both GOOGLE_APPLICATION_CREDENTIALS" in result.output

    def test_invalid_config(self, runner, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("credentials:\n  private_key: x\n")
        result = runner.invoke(cli, ["token", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "must not be stored" in result.output

    @pytest.mark.parametrize(
        "text, message",
        [
            ("logging: verbose\n", "'logging' must be a mapping"),
            ("auth:\n  timeout: null\n", "auth.timeout must be a number"),
        ],
    )
    def test_malformed_config_values(self, runner, tmp_path, text, message):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text(text)
        result = runner.invoke(cli, ["token", "-c", str(config_file)])

        assert result.exit_code == 1
        assert message in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_exchange_failure(self, runner, make_session, make_response, clock):
        client = Client.from_metadata(
            "proj", session=make_session(make_response(status=403, body=b"denied")), clock=clock
        )
        with mock.patch("gcs_auth.client.Client.from_env", return_value=client):
            result = runner.invoke(cli, ["token"])

        assert result.exit_code == 1
        assert "HTTP 403" in result.output


class TestInfoCommand:
    def test_shows_strategy_without_token(self, runner, metadata_client):
        with mock.patch("gcs_auth.client.Client.from_env", return_value=metadata_client):
            result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "metadata" in result.output
        assert "tok1" not in result.output

    def test_missing_credentials(self, runner, clean_env):
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 1
