import pytest

from kiosk_backend.helpers import OrderIdFactory, validate_order


class TestOrderIdFactory:
    @pytest.mark.unit
    def test_prefix_by_order_type(self) -> None:
        ids = OrderIdFactory(clock=lambda: 1700000000.5)
        assert ids.next_id("takeaway") == "ORD-1700000000500"
        assert ids.next_id("quote") == "QUO-1700000000501"

    @pytest.mark.unit
    def test_ids_increase_when_clock_stalls_or_goes_back(self) -> None:
        times = iter([10.0, 10.0, 9.0, 11.0])
        ids = OrderIdFactory(clock=lambda: next(times))
        out = [int(ids.next_id("pickup").split("-")[1]) for _ in range(4)]
        assert out == [10000, 10001, 10002, 11000]


class TestValidateOrder:
    @pytest.mark.unit
    def test_valid_order(self) -> None:
        error, fields = validate_order(
            {"producten": [{"item": " Cola ", "quantity": 2, "opmerking": "no ice"}], "type": "takeaway", "kiosk": 3}
        )
        assert error is None
        assert fields == {"type": "takeaway", "kiosk": 3, "producten": [{"item": "Cola", "quantity": 2, "opmerking": "no ice"}]}

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"producten": [], "type": "takeaway", "kiosk": 1}, "No products"),
            ({"type": "takeaway", "kiosk": 1}, "No products"),
            ({"producten": [{"item": "Cola", "quantity": 1}], "type": "delivery", "kiosk": 1}, "type must be"),
            ({"producten": [{"item": "Cola", "quantity": 1}], "type": "pickup"}, "kiosk is required"),
            ({"producten": [{"item": "Cola", "quantity": 1}], "type": "pickup", "kiosk": "3"}, "kiosk is required"),
            ({"producten": [{"item": "Cola", "quantity": 0}], "type": "pickup", "kiosk": 3}, "positive integer"),
            ({"producten": [{"quantity": 1}], "type": "pickup", "kiosk": 3}, "item is required"),
        ],
    )
    def test_rejections(self, payload: dict, message: str) -> None:
        error, fields = validate_order(payload)
        assert fields is None
        assert message in error

    @pytest.mark.unit
    def test_quote_without_kiosk(self) -> None:
        error, fields = validate_order({"producten": [{"item": "Catering", "quantity": 40}], "type": "quote"})
        assert error is None
        assert fields["kiosk"] is None
