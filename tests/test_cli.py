"""Tests for the fireauth command-line front-end."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

from fireauth import __version__
from fireauth.app import _install_log_handler, app, main
from fireauth.auth import AuthClient
from fireauth.config import load_global_config
from fireauth.exceptions import InvalidUsageError, RemoteRejected
from fireauth.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE, EXIT_REMOTE_REJECTED
from fireauth.output import OutputLogHandler

from conftest import FakeIdentityServer, json_body, refresh_body, sign_in_body


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_env(
    isolated_config: Path, server: FakeIdentityServer, monkeypatch: pytest.MonkeyPatch
) -> FakeIdentityServer:
    """Route every AuthClient the CLI builds to the scripted server."""
    monkeypatch.setenv("FIREAUTH_API_KEY", "test-key")
    monkeypatch.setenv("ADA_PASSWORD", "secret1")
    monkeypatch.setenv("FIREAUTH_REFRESH_TOKEN", "r1")
    monkeypatch.setattr(
        "fireauth.commands.common.AuthClient",
        lambda config: AuthClient(config, transport=server.transport),
    )
    return server


def _user() -> dict:
    return {"users": [{"localId": "user-1", "email": "ada@example.com", "displayName": "Ada"}]}


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"fireauth {__version__}" in result.stdout

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "sign-in" in result.output


# ---------------------------------------------------------------------------
# Session commands
# ---------------------------------------------------------------------------


class TestSignIn:
    def test_prints_redacted_session(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("accounts:signInWithPassword", sign_in_body())
        result = cli_runner.invoke(
            app,
            ["--json", "--quiet", "sign-in", "ada@example.com", "--password-source", "env:ADA_PASSWORD"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["local_id"] == "user-1"
        assert data["identity_token"] == "<redacted>"
        assert data["refresh_token"] == "<redacted>"
        assert json_body(cli_env.requests[0]) == {
            "email": "ada@example.com",
            "password": "secret1",
            "returnSecureToken": True,
        }

    def test_show_tokens(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("accounts:signInWithPassword", sign_in_body())
        result = cli_runner.invoke(
            app,
            [
                "--json",
                "--quiet",
                "--show-tokens",
                "sign-in",
                "ada@example.com",
                "--password-source",
                "env:ADA_PASSWORD",
            ],
        )
        data = json.loads(result.stdout)
        assert data["identity_token"] == "id-1"
        assert data["refresh_token"] == "r1"

    def test_invalid_email_is_rejected_locally(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        result = cli_runner.invoke(app, ["sign-in", "not-an-email", "--password-source", "env:ADA_PASSWORD"])
        assert isinstance(result.exception, InvalidUsageError)
        assert cli_env.requests == []

    def test_short_password_is_rejected_locally(
        self, cli_runner, cli_env: FakeIdentityServer, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ADA_PASSWORD", "abc")
        result = cli_runner.invoke(app, ["sign-up", "ada@example.com", "--password-source", "env:ADA_PASSWORD"])
        assert isinstance(result.exception, InvalidUsageError)
        assert cli_env.requests == []

    def test_rejection_surfaces(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reject("accounts:signInWithPassword", "INVALID_LOGIN_CREDENTIALS")
        result = cli_runner.invoke(
            app, ["sign-in", "ada@example.com", "--password-source", "env:ADA_PASSWORD"]
        )
        assert isinstance(result.exception, RemoteRejected)

    def test_anonymous(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("accounts:signUp", sign_in_body(local_id="anon-1"))
        result = cli_runner.invoke(app, ["--json", "--quiet", "anonymous"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["local_id"] == "anon-1"


class TestHelpers:
    def test_reset_password(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("accounts:sendOobCode", {"email": "ada@example.com"})
        result = cli_runner.invoke(app, ["reset-password", "ada@example.com", "--locale", "fr"])
        assert result.exit_code == 0, result.output
        request = cli_env.calls("accounts:sendOobCode")[0]
        assert json_body(request)["requestType"] == "PASSWORD_RESET"
        assert request.headers["X-Firebase-Locale"] == "fr"

    def test_providers(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("accounts:createAuthUri", {"allProviders": ["password", "google.com"]})
        result = cli_runner.invoke(app, ["--plain", "providers", "ada@example.com"])
        assert result.exit_code == 0, result.output
        assert "google.com" in result.stdout


# ---------------------------------------------------------------------------
# Account commands
# ---------------------------------------------------------------------------


class TestAccount:
    def test_whoami(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("token", refresh_body(id_token="tok2"))
        cli_env.reply("accounts:lookup", _user())
        result = cli_runner.invoke(app, ["--json", "--quiet", "whoami"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["display_name"] == "Ada"
        assert json_body(cli_env.calls("accounts:lookup")[0]) == {"idToken": "tok2"}

    def test_whoami_with_revoked_refresh_token(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reject("token", "TOKEN_EXPIRED")
        result = cli_runner.invoke(app, ["whoami"])
        assert isinstance(result.exception, RemoteRejected)
        assert result.exception.invalidates_refresh_token
        assert cli_env.calls("accounts:lookup") == []

    def test_refresh_token_from_file(
        self, cli_runner, cli_env: FakeIdentityServer, isolated_config: Path
    ) -> None:
        token_file = isolated_config / "refresh-token"
        token_file.write_text("r-from-file\n")
        cli_env.reply("token", refresh_body())
        cli_env.reply("accounts:lookup", _user())
        result = cli_runner.invoke(app, ["whoami", "--refresh-token-source", f"file:{token_file}"])
        assert result.exit_code == 0, result.output
        assert "refresh_token=r-from-file" in cli_env.calls("token")[0].content.decode()

    def test_update_profile(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("token", refresh_body())
        cli_env.reply("accounts:update", {"localId": "user-1", "displayName": "Ada L."})
        result = cli_runner.invoke(
            app, ["update-profile", "--display-name", "Ada L.", "--clear-photo-url"]
        )
        assert result.exit_code == 0, result.output
        assert json_body(cli_env.calls("accounts:update")[0]) == {
            "idToken": "tok2",
            "displayName": "Ada L.",
            "deleteAttribute": ["PHOTO_URL"],
            "returnSecureToken": False,
        }

    def test_update_profile_requires_a_change(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        result = cli_runner.invoke(app, ["update-profile"])
        assert isinstance(result.exception, InvalidUsageError)
        assert cli_env.requests == []

    def test_update_profile_conflicting_flags(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        result = cli_runner.invoke(app, ["update-profile", "--display-name", "x", "--clear-display-name"])
        assert isinstance(result.exception, InvalidUsageError)

    def test_verify_email(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("token", refresh_body())
        cli_env.reply("accounts:sendOobCode", {"email": "ada@example.com"})
        result = cli_runner.invoke(app, ["verify-email"])
        assert result.exit_code == 0, result.output
        assert json_body(cli_env.calls("accounts:sendOobCode")[0])["requestType"] == "VERIFY_EMAIL"

    def test_delete_account(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        cli_env.reply("token", refresh_body())
        cli_env.reply("accounts:delete", {})
        result = cli_runner.invoke(app, ["delete-account", "--yes"])
        assert result.exit_code == 0, result.output
        assert json_body(cli_env.calls("accounts:delete")[0]) == {"idToken": "tok2"}

    def test_delete_account_declined(self, cli_runner, cli_env: FakeIdentityServer) -> None:
        result = cli_runner.invoke(app, ["delete-account"], input="n\n")
        assert result.exit_code == 0
        assert cli_env.requests == []


# ---------------------------------------------------------------------------
# Library log forwarding
# ---------------------------------------------------------------------------


class TestLogForwarding:
    @pytest.fixture(autouse=True)
    def _restore_logger(self):
        logger = logging.getLogger("fireauth")
        handlers, level = list(logger.handlers), logger.level
        yield logger
        logger.handlers = handlers
        logger.setLevel(level)

    def _handler_types(self) -> list[type]:
        return [type(h) for h in logging.getLogger("fireauth").handlers]

    def test_quiet_by_default(self, capfd) -> None:
        _install_log_handler(False)
        assert self._handler_types() == [logging.NullHandler]

        logging.getLogger("fireauth.manager").warning("Token refresh for user-1 failed: boom")
        assert "Token refresh" not in capfd.readouterr().err

    def test_verbose_forwards_records(self) -> None:
        _install_log_handler(True)
        assert self._handler_types() == [OutputLogHandler]
        assert logging.getLogger("fireauth").level == logging.DEBUG

    def test_switching_does_not_stack_handlers(self) -> None:
        _install_log_handler(True)
        _install_log_handler(False)
        _install_log_handler(False)
        assert self._handler_types() == [logging.NullHandler]

    def test_plain_cli_run_discards_records(
        self, cli_runner, cli_env: FakeIdentityServer
    ) -> None:
        cli_env.reject("token", "TOKEN_EXPIRED")
        result = cli_runner.invoke(app, ["whoami"])
        assert isinstance(result.exception, RemoteRejected)
        assert self._handler_types() == [logging.NullHandler]


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_set_and_show(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["config", "set", "api_key_source", "env:MY_KEY"])
        assert result.exit_code == 0, result.output
        assert load_global_config().api_key_source == "env:MY_KEY"

        result = cli_runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert json.loads(result.stdout)["api_key_source"] == "env:MY_KEY"

    def test_reset(self, cli_runner, isolated_config: Path) -> None:
        cli_runner.invoke(app, ["config", "set", "request.timeout", "5"])
        result = cli_runner.invoke(app, ["config", "reset", "--yes"])
        assert result.exit_code == 0
        assert load_global_config().request.timeout == 60.0


# ---------------------------------------------------------------------------
# Entry point exit codes
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("fireauth.app._setup_signal_handlers", lambda: None)

    def _run(self, monkeypatch: pytest.MonkeyPatch, *args: str) -> int:
        monkeypatch.setattr(sys, "argv", ["fireauth", "--no-color", *args])
        with pytest.raises(SystemExit) as excinfo:
            main()
        return excinfo.value.code

    def test_invalid_usage(self, monkeypatch, cli_env, capsys) -> None:
        code = self._run(monkeypatch, "sign-in", "nope", "--password-source", "env:ADA_PASSWORD")
        assert code == EXIT_INVALID_USAGE
        assert "Not a valid email address" in capsys.readouterr().err

    def test_remote_rejection(self, monkeypatch, cli_env, capsys) -> None:
        cli_env.reject("accounts:signInWithPassword", "USER_DISABLED")
        code = self._run(monkeypatch, "sign-in", "ada@example.com", "--password-source", "env:ADA_PASSWORD")
        assert code == EXIT_REMOTE_REJECTED
        assert "USER_DISABLED" in capsys.readouterr().err

    def test_missing_api_key(self, monkeypatch, isolated_config, capsys) -> None:
        code = self._run(monkeypatch, "anonymous")
        assert code == EXIT_GENERIC_FAILURE
        assert "No API key" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(self, monkeypatch, cli_env, isolated_config, capsys) -> None:
        def explode(config):
            raise RuntimeError("kaboom")

        monkeypatch.setattr("fireauth.commands.common.AuthClient", explode)
        code = self._run(monkeypatch, "anonymous")
        assert code == EXIT_GENERIC_FAILURE
        assert "Debug log" in capsys.readouterr().err
        logs = list((isolated_config / "data" / "fireauth" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "kaboom" in logs[0].read_text()
