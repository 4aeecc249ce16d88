"""
Settings tests.
"""
import pytest

from kiosk_backend.config import Settings
from kiosk_backend.state import build_state


class TestPaymentMethodTypes:
    @pytest.mark.unit
    def test_single_type_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("KIOSK_PAYMENT_METHOD_TYPES", "card_present")
        assert Settings(_env_file=None).get_payment_method_types_list() == ["card_present"]

    @pytest.mark.unit
    def test_comma_separated_types_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("KIOSK_PAYMENT_METHOD_TYPES", "card_present, card,")
        assert Settings(_env_file=None).get_payment_method_types_list() == ["card_present", "card"]

    @pytest.mark.unit
    def test_default(self, monkeypatch) -> None:
        monkeypatch.delenv("KIOSK_PAYMENT_METHOD_TYPES", raising=False)
        assert Settings(_env_file=None).get_payment_method_types_list() == ["card_present"]

    @pytest.mark.unit
    def test_gateway_receives_list(self, mailer) -> None:
        settings = Settings(_env_file=None, payment_method_types="card_present,card")
        ctx = build_state(settings, mailer=mailer)
        assert ctx.gateway.payment_method_types == ["card_present", "card"]


class TestSettingsValidation:
    @pytest.mark.unit
    def test_log_level_is_normalised(self) -> None:
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    @pytest.mark.unit
    def test_feed_max_pending_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            Settings(_env_file=None, feed_max_pending=0)

    @pytest.mark.unit
    def test_allowed_origins_list(self) -> None:
        settings = Settings(_env_file=None, allowed_origins="http://a.test, http://b.test")
        assert settings.get_allowed_origins_list() == ["http://a.test", "http://b.test"]
