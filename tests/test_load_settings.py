from darts_server.load_settings import _int_env, _log_level_env


def test_log_level_is_upper_cased(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert _log_level_env("LOG_LEVEL") == "DEBUG"


def test_unknown_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert _log_level_env("LOG_LEVEL") == "INFO"


def test_missing_log_level(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert _log_level_env("LOG_LEVEL") == "INFO"


def test_non_numeric_int_setting_falls_back(monkeypatch):
    monkeypatch.setenv("THROW_COOLDOWN_MS", "fast")
    assert _int_env("THROW_COOLDOWN_MS", 500) == 500
    monkeypatch.setenv("THROW_COOLDOWN_MS", "250")
    assert _int_env("THROW_COOLDOWN_MS", 500) == 250
