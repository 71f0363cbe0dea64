"""
Tests for environment-driven settings
"""
import pytest
from pydantic import ValidationError

from app.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ('MYJKKN_TIMEOUT', 'MYJKKN_MOCK_MODE', 'MYJKKN_PROXY_MODE', 'VERIFICATION_CACHE_TTL'):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings(_env_file=None)

    assert settings.MYJKKN_TIMEOUT == 30.0
    assert settings.VERIFICATION_CACHE_TTL == 900.0
    assert settings.MYJKKN_PROXY_URL == 'http://localhost:8000/api/myjkkn'


def test_unset_mode_flags_stay_none(clean_env):
    settings = Settings(_env_file=None)

    assert settings.MYJKKN_MOCK_MODE is None
    assert settings.MYJKKN_PROXY_MODE is None


def test_mode_flags_are_parsed(clean_env):
    clean_env.setenv('MYJKKN_PROXY_MODE', 'true')
    clean_env.setenv('MYJKKN_MOCK_MODE', '0')

    settings = Settings(_env_file=None)

    assert settings.MYJKKN_PROXY_MODE is True
    assert settings.MYJKKN_MOCK_MODE is False


def test_malformed_timeout_names_the_setting(clean_env):
    clean_env.setenv('MYJKKN_TIMEOUT', 'abc')

    with pytest.raises(ValidationError, match='MYJKKN_TIMEOUT'):
        Settings(_env_file=None)
