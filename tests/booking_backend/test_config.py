import pytest

from booking_backend.core import config


def test_get_bool_reads_common_spellings() -> None:
    assert config._get_bool(' Yes ') is True
    assert config._get_bool('0') is False
    assert config._get_bool(None, default=True) is True


def test_get_list_drops_blank_items() -> None:
    assert config._get_list('http://a.test, ,http://b.test', []) == ['http://a.test', 'http://b.test']


def test_validate_runtime_config_accepts_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'development')
    monkeypatch.setattr(config, 'DEFAULT_TIMEZONE', 'Europe/Prague')
    monkeypatch.setattr(config, 'MAX_SLOT_RANGE_DAYS', 62)

    config.validate_runtime_config()


@pytest.mark.parametrize(
    ('attribute', 'value', 'message'),
    [
        ('DEFAULT_TIMEZONE', 'Mars/Olympus', 'not a known IANA timezone'),
        ('MAX_SLOT_RANGE_DAYS', 0, 'MAX_SLOT_RANGE_DAYS'),
        ('APP_ENV', 'production', 'server database'),
    ],
)
def test_validate_runtime_config_rejects_bad_settings(
    monkeypatch: pytest.MonkeyPatch,
    attribute: str,
    value,
    message: str,
) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'development')
    monkeypatch.setattr(config, 'DATABASE_URL', 'sqlite:///./test.db')
    monkeypatch.setattr(config, attribute, value)

    with pytest.raises(RuntimeError, match=message):
        config.validate_runtime_config()
