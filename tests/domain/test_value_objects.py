"""Unit tests for Value Objects."""

import pytest

from stockhold.domain.exceptions import ValidationError
from stockhold.domain.model.value_objects import (
    BuyerInfo,
    DeliveryInfo,
    DeliveryMethod,
    Money,
    Quantity,
)


class TestMoney:

    def test_addition(self):
        assert Money(15990) + Money(10) == Money(16000)

    def test_multiplication(self):
        assert Money(15990) * 3 == Money(47970)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            Money(-1)

    def test_fractional_rejected(self):
        with pytest.raises(ValidationError):
            Money(10.5)

    def test_currency_mismatch(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(1, "CLP") + Money(1, "USD")

    def test_of_parses_strings(self):
        assert Money.of(" 15990 ") == Money(15990)

    def test_of_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("15.990,00")

    def test_str(self):
        assert str(Money(15990)) == "15990 CLP"


class TestQuantity:

    def test_positive(self):
        assert Quantity(3).value == 3

    @pytest.mark.parametrize("value", [0, -2])
    def test_non_positive_rejected(self, value):
        with pytest.raises(ValidationError, match="positive"):
            Quantity(value)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            Quantity(True)


class TestBuyerInfo:

    def test_strips_fields(self):
        buyer = BuyerInfo.of("  Ana ", "ana@example.com ", " 123")
        assert buyer == BuyerInfo("Ana", "ana@example.com", "123")

    def test_reports_every_missing_field(self):
        with pytest.raises(ValidationError, match="email, phone"):
            BuyerInfo.of("Ana", "  ", None)


class TestDelivery:

    @pytest.mark.parametrize("raw", ["pickup", "Retiro", "retiro_en_tienda", " PICK_UP "])
    def test_pickup_aliases(self, raw):
        assert DeliveryMethod.parse(raw) == DeliveryMethod.PICKUP

    @pytest.mark.parametrize("raw", ["ship", "despacho", "envío", "Envio por pagar"])
    def test_ship_aliases(self, raw):
        assert DeliveryMethod.parse(raw) == DeliveryMethod.SHIP

    def test_unknown_method(self):
        with pytest.raises(ValidationError, match="Invalid delivery method"):
            DeliveryMethod.parse("drone")

    def test_shipping_requires_address(self):
        with pytest.raises(ValidationError, match="address is required"):
            DeliveryInfo.of("ship", "   ")

    def test_pickup_drops_address(self):
        info = DeliveryInfo.of("retiro", "Av. Siempre Viva 742")
        assert info.method == DeliveryMethod.PICKUP
        assert info.address is None
