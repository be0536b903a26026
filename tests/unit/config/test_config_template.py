from pathlib import Path

import pytest

from src.murasaki.runtime.config.config_data import ConfigData, OIDCProviderConfig
from src.murasaki.runtime.config.config_template import (
    load_config,
    load_templated_yaml,
    substitute_env_vars,
)


class TestSubstituteEnvVars:
    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("MURASAKI_TEST_VAR", raising=False)
        assert substitute_env_vars("x=${MURASAKI_TEST_VAR:-fallback}") == "x=fallback"

    def test_environment_wins_over_default(self, monkeypatch):
        monkeypatch.setenv("MURASAKI_TEST_VAR", "from-env")
        assert substitute_env_vars("${MURASAKI_TEST_VAR:-fallback}") == "from-env"

    def test_required_variable_missing(self, monkeypatch):
        monkeypatch.delenv("MURASAKI_TEST_VAR", raising=False)
        with pytest.raises(ValueError, match="MURASAKI_TEST_VAR"):
            substitute_env_vars("${MURASAKI_TEST_VAR}")

    def test_required_variable_custom_message(self, monkeypatch):
        monkeypatch.delenv("MURASAKI_TEST_VAR", raising=False)
        with pytest.raises(ValueError, match="needed for login"):
            substitute_env_vars("${MURASAKI_TEST_VAR:?needed for login}")


class TestLoadTemplatedYaml:
    def _write(self, tmp_path: Path, body: str) -> Path:
        path = tmp_path / "config.yaml"
        path.write_text(body)
        return path

    def test_values_resolved_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("KC_ISSUER", "https://sso.example.com/realms/acme")
        monkeypatch.setenv("KC_SECRET", "s3cret")
        path = self._write(
            tmp_path,
            "config:\n"
            "  oidc:\n"
            "    issuer: ${KC_ISSUER:-http://localhost:8080/realms/murasaki-poc}\n"
            "    realm: acme\n"
            "    client_secret: ${KC_SECRET:-}\n"
            "  app:\n"
            "    port: ${KC_PORT:-6000}\n",
        )

        config = load_templated_yaml(path)

        assert config.oidc.issuer == "https://sso.example.com/realms/acme"
        assert config.oidc.client_secret == "s3cret"
        assert config.app.port == 6000

    def test_empty_placeholders_fall_back_to_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("KC_SECRET", raising=False)
        path = self._write(
            tmp_path, "config:\n  oidc:\n    client_secret: ${KC_SECRET:-}\n"
        )

        config = load_templated_yaml(path)

        assert config.oidc.client_secret is None

    def test_invalid_values_raise(self, tmp_path):
        path = self._write(tmp_path, "config:\n  app:\n    port: not-a-port\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_templated_yaml(path)

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config == ConfigData()


class TestDerivedEndpoints:
    def test_endpoints_derived_from_issuer_and_realm(self):
        oidc = OIDCProviderConfig(
            issuer="http://localhost:8080/realms/murasaki-poc", realm="murasaki-poc"
        )

        assert oidc.server_url == "http://localhost:8080"
        assert (
            oidc.token_endpoint
            == "http://localhost:8080/realms/murasaki-poc/protocol/openid-connect/token"
        )
        assert (
            oidc.jwks_uri
            == "http://localhost:8080/realms/murasaki-poc/protocol/openid-connect/certs"
        )

    def test_server_url_keeps_context_path(self):
        oidc = OIDCProviderConfig(issuer="https://sso.example.com/auth/realms/acme")
        assert oidc.server_url == "https://sso.example.com/auth"

    def test_explicit_endpoints_win(self):
        oidc = OIDCProviderConfig(
            token_endpoint_override="https://proxy.test/token",
            jwks_uri_override="https://proxy.test/certs",
        )
        assert oidc.token_endpoint == "https://proxy.test/token"
        assert oidc.jwks_uri == "https://proxy.test/certs"


class TestShippedConfig:
    CONFIG_FILE = Path(__file__).resolve().parents[3] / "config.yaml"

    def test_in_memory_sqlite_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

        config = load_templated_yaml(self.CONFIG_FILE)

        assert config.database.url == "sqlite+aiosqlite:///:memory:"

    def test_values_with_yaml_punctuation(self, monkeypatch):
        monkeypatch.setenv("KEYCLOAK_CLIENT_SECRET", "abc: def #ghi")
        monkeypatch.setenv("LOG_FILE", "/var/log/murasaki:api.log")

        config = load_templated_yaml(self.CONFIG_FILE)

        assert config.oidc.client_secret == "abc: def #ghi"
        assert config.logging.file == "/var/log/murasaki:api.log"
