"""Tests for configuration loading and validation."""

import pytest

from slotbook.config import AppConfig, BackendConfig, BookingConfig, _validate_config


def _config(backend=None, booking=None) -> AppConfig:
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "backend", backend or BackendConfig())
    object.__setattr__(config, "booking", booking or BookingConfig())
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "app_name", "test")
    return config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_backend_url_must_be_http(self):
        backend = BackendConfig(url="localhost:54321")
        with pytest.raises(ValueError, match="BACKEND_URL"):
            _validate_config(_config(backend=backend))

    def test_timeout_must_be_positive(self):
        backend = BackendConfig(url="https://example.test", timeout_sec=0)
        with pytest.raises(ValueError, match="BACKEND_TIMEOUT_SEC"):
            _validate_config(_config(backend=backend))

    def test_unknown_timezone(self):
        booking = BookingConfig(store_timezone="Mars/Olympus_Mons")
        with pytest.raises(ValueError, match="STORE_TIMEZONE"):
            _validate_config(_config(booking=booking))

    def test_known_timezone(self):
        booking = BookingConfig(store_timezone="Australia/Melbourne")
        _validate_config(_config(booking=booking))

    def test_cancelled_is_not_a_valid_initial_status(self):
        booking = BookingConfig(default_reservation_status="cancelled")
        with pytest.raises(ValueError, match="DEFAULT_RESERVATION_STATUS"):
            _validate_config(_config(booking=booking))

    def test_notes_length_must_be_positive(self):
        booking = BookingConfig(max_notes_length=0)
        with pytest.raises(ValueError, match="MAX_NOTES_LENGTH"):
            _validate_config(_config(booking=booking))


class TestEnvParsing:
    def test_safe_int_parsing(self):
        from slotbook.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from slotbook.config import _safe_int

        monkeypatch.setenv("SLOTBOOK_TEST_INT", "forty")
        with pytest.raises(ValueError, match="SLOTBOOK_TEST_INT"):
            _safe_int("SLOTBOOK_TEST_INT", "1")

    def test_safe_float_parsing(self):
        from slotbook.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    @pytest.mark.parametrize("raw, expected", [
        ("true", True), ("1", True), ("YES", True), ("off", False), ("0", False),
    ])
    def test_safe_bool_parsing(self, monkeypatch, raw, expected):
        from slotbook.config import _safe_bool

        monkeypatch.setenv("SLOTBOOK_TEST_BOOL", raw)
        assert _safe_bool("SLOTBOOK_TEST_BOOL", "false") is expected

    def test_safe_bool_rejects_garbage(self, monkeypatch):
        from slotbook.config import _safe_bool

        monkeypatch.setenv("SLOTBOOK_TEST_BOOL", "maybe")
        with pytest.raises(ValueError, match="SLOTBOOK_TEST_BOOL"):
            _safe_bool("SLOTBOOK_TEST_BOOL", "false")
