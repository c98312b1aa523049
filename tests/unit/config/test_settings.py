"""
Tests unitaires du chargement de la configuration Movacal.
"""
import pytest

from movacal_gateway.config.loader import _clear_config_cache, load_config, reload_config
from movacal_gateway.config.settings import MovacalSettings, load_settings
from movacal_gateway.core.constants import DEFAULT_ALLOWED_ENDPOINTS, DEFAULT_BASE_URL
from movacal_gateway.core.exceptions import ConfigurationError

CONFIG_TOML = """
[movacal]
base_url = "https://movacal.test/api/v1/"
provider = "${TEST_MOVACAL_PROVIDER}"
secret_key = "${TEST_MOVACAL_SECRET}"
credential_ttl = 120
default_params_json = '{"a": 1}'
allowed_endpoints = ["getVersion.php", " getFileCategory.php "]

[movacal.basic]
id = "user"
password = "${TEST_MOVACAL_PASSWORD}"

[movacal.clinic_info]
clinic_id = "C01"
clinic_code = "code"
"""


@pytest.fixture(autouse=True)
def clear_cache():
    _clear_config_cache()
    yield
    _clear_config_cache()


class TestFromEnv:
    """Tests de la lecture des variables MOVACAL_*."""

    def test_defaults(self):
        settings = MovacalSettings.from_env({})

        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.credential_ttl == 900
        assert settings.default_params_json == "{}"
        assert settings.allowed_endpoints == DEFAULT_ALLOWED_ENDPOINTS
        assert settings.clinic_info == {}

    def test_values(self):
        settings = MovacalSettings.from_env({
            "MOVACAL_BASE_URL": "https://example.test/v1/",
            "MOVACAL_BASIC_ID": "id",
            "MOVACAL_BASIC_PASSWORD": "pw",
            "MOVACAL_PROVIDER": "prov",
            "MOVACAL_SECRET_KEY": "key",
            "MOVACAL_CREDENTIAL_TTL": "60",
            "MOVACAL_CLINIC_ID": "C01",
            "MOVACAL_CLINIC_CODE": "X",
            "MOVACAL_ALLOWED_ENDPOINTS": "getVersion.php, getPatient.php,,",
        })

        assert settings.base_url == "https://example.test/v1"
        assert settings.credential_ttl == 60
        assert settings.clinic_info == {"clinic_id": "C01", "clinic_code": "X"}
        assert settings.allowed_endpoints == ("getVersion.php", "getPatient.php")

    def test_empty_allowlist_env_denies_all(self):
        """Une variable définie mais vide n'est pas une variable absente."""
        assert MovacalSettings.from_env({"MOVACAL_ALLOWED_ENDPOINTS": ""}).allowed_endpoints == ()
        assert MovacalSettings.from_env({"MOVACAL_ALLOWED_ENDPOINTS": " , "}).allowed_endpoints == ()

    @pytest.mark.parametrize("raw,expected", [("abc", 900), ("0", 1), ("-5", 1), ("", 900)])
    def test_invalid_ttl(self, raw, expected):
        assert MovacalSettings.from_env({"MOVACAL_CREDENTIAL_TTL": raw}).credential_ttl == expected

    def test_secrets_hidden_from_repr(self):
        settings = MovacalSettings(basic_password="pw-secret", secret_key="hmac-secret")
        assert "pw-secret" not in repr(settings)
        assert "hmac-secret" not in repr(settings)


class TestFromToml:
    """Tests de la lecture de config.toml."""

    def test_load_settings_expands_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_MOVACAL_PROVIDER", "prov")
        monkeypatch.setenv("TEST_MOVACAL_SECRET", "key")
        monkeypatch.delenv("TEST_MOVACAL_PASSWORD", raising=False)
        config_file = tmp_path / "config.toml"
        config_file.write_text(CONFIG_TOML, encoding="utf-8")

        settings = load_settings(str(config_file))

        assert settings.base_url == "https://movacal.test/api/v1"
        assert settings.provider == "prov"
        assert settings.secret_key == "key"
        assert settings.basic_id == "user"
        assert settings.basic_password == ""
        assert settings.credential_ttl == 120
        assert settings.default_params_json == '{"a": 1}'
        assert settings.allowed_endpoints == ("getVersion.php", "getFileCategory.php")
        assert settings.clinic_info == {"clinic_id": "C01", "clinic_code": "code"}

    def test_missing_file_falls_back_to_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MOVACAL_PROVIDER", "env-prov")

        settings = load_settings(str(tmp_path / "absent.toml"))

        assert settings.provider == "env-prov"

    def test_load_config_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "absent.toml"))

    def test_invalid_toml_raises(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("[movacal\nbroken", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            reload_config(str(config_file))

    def test_explicit_path_bypasses_cache(self, tmp_path):
        first = tmp_path / "first.toml"
        second = tmp_path / "second.toml"
        first.write_text('[movacal]\nprovider = "one"\n', encoding="utf-8")
        second.write_text('[movacal]\nprovider = "two"\n', encoding="utf-8")

        assert load_settings(str(first)).provider == "one"
        assert load_settings(str(second)).provider == "two"


class TestAllowlistFromToml:
    """Une allowlist explicite est utilisée telle quelle."""

    def test_absent_key_uses_builtin_list(self):
        assert MovacalSettings.from_dict({}).allowed_endpoints == DEFAULT_ALLOWED_ENDPOINTS

    @pytest.mark.parametrize("value", [[], ["", "  "]])
    def test_explicit_empty_list_denies_all(self, value):
        assert MovacalSettings.from_dict({"allowed_endpoints": value}).allowed_endpoints == ()

    def test_unreadable_value_denies_all(self):
        assert MovacalSettings.from_dict({"allowed_endpoints": 42}).allowed_endpoints == ()

    def test_empty_list_in_toml_file(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text('[movacal]\nallowed_endpoints = []\n', encoding="utf-8")

        assert load_settings(str(config_file)).allowed_endpoints == ()


def test_config_package_exports():
    import movacal_gateway.config as config_pkg

    assert sorted(config_pkg.__all__) == ["MovacalSettings", "load_config", "load_settings", "reload_config"]
    assert not hasattr(config_pkg.loader, "get_config")
