"""
Unit tests for the configuration module

Every option is validated when settings are built; an invalid value must
fail fast with ConfigurationError.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from tablesession.core.config import SessionSettings, load_settings
from tablesession.core.exceptions import ConfigurationError


pytestmark = pytest.mark.unit


class TestSessionSettings:
    """Test session settings defaults and overrides"""

    def test_default_settings(self):
        """Test default configuration values"""
        settings = load_settings(salt="pepper", _env_file=None)

        assert settings.cookie_name == "sessionCookie"
        assert settings.table_name == "session"
        assert settings.seconds_until_expiration == 7200
        assert settings.renewal_time == 300
        assert settings.expire_on_close is False
        assert settings.check_ip_address is False
        assert settings.check_user_agent is False
        assert settings.secure_cookie is False
        assert settings.auto_run_session is True
        assert settings.gc_probability == 0.05

    def test_environment_variable_override(self):
        """Test that SESSION_* environment variables are picked up"""
        env = {
            "SESSION_SALT": "from-env",
            "SESSION_COOKIE_NAME": "envCookie",
            "SESSION_RENEWAL_TIME": "60",
            "SESSION_CHECK_IP_ADDRESS": "true",
        }
        with patch.dict(os.environ, env):
            settings = load_settings(_env_file=None)

        assert settings.salt.get_secret_value() == "from-env"
        assert settings.cookie_name == "envCookie"
        assert settings.renewal_time == 60
        assert settings.check_ip_address is True

    def test_keyword_overrides_win_over_environment(self):
        with patch.dict(os.environ, {"SESSION_SALT": "from-env"}):
            settings = load_settings(salt="explicit", _env_file=None)

        assert settings.salt.get_secret_value() == "explicit"

    def test_salt_hidden_from_repr(self):
        """The salt must not leak through repr or str"""
        settings = load_settings(salt="super-secret-salt", _env_file=None)

        assert "super-secret-salt" not in repr(settings)
        assert "super-secret-salt" not in str(settings)

    def test_log_level_normalized(self):
        settings = load_settings(salt="pepper", log_level="debug", _env_file=None)
        assert settings.log_level == "DEBUG"


class TestSettingsValidation:
    """Test that invalid options fail fast"""

    def test_missing_salt(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_settings(_env_file=None)

        assert "salt" in str(exc_info.value)

    @pytest.mark.parametrize("salt", ["", "   "])
    def test_empty_salt(self, salt):
        with pytest.raises(ConfigurationError):
            load_settings(salt=salt, _env_file=None)

    @pytest.mark.parametrize("name", ["session-cookie", "my cookie", "cookie;", "", "séssion"])
    def test_invalid_cookie_name(self, name):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(salt="pepper", cookie_name=name, _env_file=None)

        assert "cookie_name" in str(exc_info.value)

    @pytest.mark.parametrize("field", ["seconds_until_expiration", "renewal_time"])
    @pytest.mark.parametrize("value", [0, -5, "abc", 1.5, True, 300.0])
    def test_non_positive_or_non_integer_lifetimes(self, field, value):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(salt="pepper", _env_file=None, **{field: value})

        assert field in str(exc_info.value)

    @pytest.mark.parametrize("field", [
        "expire_on_close", "check_ip_address", "check_user_agent", "secure_cookie", "auto_run_session",
    ])
    def test_boolean_options_reject_garbage(self, field):
        with pytest.raises(ConfigurationError):
            load_settings(salt="pepper", _env_file=None, **{field: "maybe"})

    @pytest.mark.parametrize("field", ["expire_on_close", "secure_cookie"])
    @pytest.mark.parametrize("value", [1, 0, "on", "yes"])
    def test_boolean_options_are_strict(self, field, value):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(salt="pepper", _env_file=None, **{field: value})

        assert field in str(exc_info.value)

    def test_boolean_env_strings(self):
        with patch.dict(os.environ, {"SESSION_SECURE_COOKIE": "1", "SESSION_EXPIRE_ON_CLOSE": "False"}):
            settings = load_settings(salt="pepper", _env_file=None)

        assert settings.secure_cookie is True
        assert settings.expire_on_close is False

    @pytest.mark.parametrize("name", ["1session", "session; DROP TABLE users", "sessions-table", ""])
    def test_invalid_table_name(self, name):
        with pytest.raises(ConfigurationError):
            load_settings(salt="pepper", table_name=name, _env_file=None)

    @pytest.mark.parametrize("probability", [-0.1, 1.5])
    def test_gc_probability_bounds(self, probability):
        with pytest.raises(ConfigurationError):
            load_settings(salt="pepper", gc_probability=probability, _env_file=None)

    def test_configuration_error_is_value_error(self):
        """Callers catching ValueError still see configuration failures"""
        with pytest.raises(ValueError):
            load_settings(salt="pepper", renewal_time=0, _env_file=None)

    def test_direct_construction_still_validates(self):
        """Building SessionSettings directly raises pydantic's error"""
        with pytest.raises(ValidationError):
            SessionSettings(salt="pepper", cookie_name="bad name", _env_file=None)
