"""
Tests for EnvironmentConfigProvider.
"""

from datetime import datetime, timezone

import pytest

from tracksync.adapters.config import EnvironmentConfigProvider
from tracksync.adapters.config.environment import ENV_MAPPING
from tracksync.core.domain import OrphanPolicy
from tracksync.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from the developer's environment and any .env in the cwd."""
    for key in ENV_MAPPING:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class TestEnvironmentConfigProvider:
    """Tests for loading configuration."""

    def test_defaults(self):
        config = EnvironmentConfigProvider().load()

        assert config.linear.api_key == ""
        assert config.linear.api_url == "https://api.linear.app/graphql"
        assert config.linear.timeout == 30
        assert config.linear.requests_per_second == 1.0
        assert config.sync.orphan_policy == OrphanPolicy.LEAVE
        assert config.sync.webhook_secret is None
        assert config.storage.db_path == "tracksync.db"

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("LINEAR_API_KEY", "lin_api_env")
        monkeypatch.setenv("LINEAR_TIMEOUT", "12")
        monkeypatch.setenv("LINEAR_TEAM_ID", "team-1")
        monkeypatch.setenv("LINEAR_WEBHOOK_SECRET", "whsec")
        monkeypatch.setenv("TRACKSYNC_ORPHAN_POLICY", "mark-not-synced")
        monkeypatch.setenv("TRACKSYNC_VERBOSE", "yes")

        config = EnvironmentConfigProvider().load()

        assert config.linear.api_key == "lin_api_env"
        assert config.linear.timeout == 12
        assert config.sync.default_team_id == "team-1"
        assert config.sync.webhook_secret == "whsec"
        assert config.sync.orphan_policy == OrphanPolicy.MARK_NOT_SYNCED
        assert config.sync.verbose is True

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text(
            "# comment\n"
            "export LINEAR_API_KEY='lin_api_file'\n"
            'TRACKSYNC_DB_PATH="data/app.db"\n'
            "UNRELATED=1\n"
            "not a pair\n"
        )

        config = EnvironmentConfigProvider(env_file=env_file).load()

        assert config.linear.api_key == "lin_api_file"
        assert config.storage.db_path == "data/app.db"

    def test_env_file_autodetected_in_cwd(self, tmp_path):
        (tmp_path / ".env").write_text("LINEAR_API_KEY=lin_api_cwd\n")

        assert EnvironmentConfigProvider().load().linear.api_key == "lin_api_cwd"

    def test_precedence(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("TRACKSYNC_DB_PATH=from-file.db\nLINEAR_TEAM_ID=file-team\n")
        monkeypatch.setenv("TRACKSYNC_DB_PATH", "from-env.db")
        monkeypatch.setenv("LINEAR_TEAM_ID", "env-team")

        provider = EnvironmentConfigProvider(env_file=env_file, cli_overrides={"db": "from-cli.db"})
        config = provider.load()

        assert config.storage.db_path == "from-cli.db"
        assert config.sync.default_team_id == "env-team"

    def test_none_cli_override_is_ignored(self, monkeypatch):
        monkeypatch.setenv("LINEAR_TEAM_ID", "env-team")

        config = EnvironmentConfigProvider(cli_overrides={"team": None}).load()

        assert config.sync.default_team_id == "env-team"

    def test_rate_limiting_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("LINEAR_REQUESTS_PER_SECOND", "off")

        assert EnvironmentConfigProvider().load().linear.requests_per_second is None

    def test_token_expiry(self, monkeypatch):
        monkeypatch.setenv("LINEAR_TOKEN_EXPIRES_AT", "2025-06-01T00:00:00Z")

        expires = EnvironmentConfigProvider().load().linear.token_expires_at

        assert expires == datetime(2025, 6, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "key,value",
        [
            ("LINEAR_TIMEOUT", "soon"),
            ("LINEAR_TOKEN_EXPIRES_AT", "tomorrow"),
            ("TRACKSYNC_ORPHAN_POLICY", "delete"),
        ],
    )
    def test_invalid_values_raise_config_error(self, monkeypatch, key, value):
        monkeypatch.setenv(key, value)

        with pytest.raises(ConfigError):
            EnvironmentConfigProvider().load()

    def test_validate_reports_missing_key(self):
        errors = EnvironmentConfigProvider().validate()

        assert any("LINEAR_API_KEY" in e for e in errors)

    def test_validate_reports_bad_value(self, monkeypatch):
        monkeypatch.setenv("LINEAR_API_KEY", "lin_api_x")
        monkeypatch.setenv("LINEAR_MAX_RETRIES", "-1")

        assert EnvironmentConfigProvider().validate() == ["LINEAR_MAX_RETRIES must not be negative"]

    def test_get_and_set_normalize_keys(self):
        provider = EnvironmentConfigProvider()
        provider.set("linear.api-key", "lin_api_set")

        assert provider.get("LINEAR_API_KEY") == "lin_api_set"
        assert provider.name == "Environment"
