"""
Tests for the PayHere adapter (checkout signing and notification verification).

Known vectors were computed for merchant 1211149 with secret
"test-merchant-secret" (UPPER(MD5) = 413024A670C5DD96B2E6C98E88268C83).
"""

from decimal import Decimal

import pytest
from django.core.exceptions import ImproperlyConfigured

from payments.adapters import PayHereAdapter, format_amount
from payments.config import LIVE_CHECKOUT_URL, SANDBOX_CHECKOUT_URL, PayHereConfig
from payments.exceptions import PaymentValidationError
from payments.types import GatewayNotification

MERCHANT_ID = "1211149"
SECRET = "test-merchant-secret"


@pytest.fixture
def adapter():
    return PayHereAdapter(PayHereConfig(merchant_id=MERCHANT_ID, merchant_secret=SECRET))


def make_notification(adapter, **overrides):
    fields = {
        "merchant_id": MERCHANT_ID,
        "order_id": "Order12345",
        "amount": "1000.00",
        "currency": "LKR",
        "status_code": "2",
    }
    fields.update({k: v for k, v in overrides.items() if k in fields})
    signature = overrides.get("signature") or adapter.generate_notification_hash(**fields)
    return GatewayNotification(signature=signature, **fields)


class TestFormatAmount:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("1500", "1500.00"),
            (1500, "1500.00"),
            (Decimal("1500.5"), "1500.50"),
            ("1500.005", "1500.01"),
            ("1500.004", "1500.00"),
            (" 99.9 ", "99.90"),
        ],
    )
    def test_two_decimal_places(self, amount, expected):
        assert format_amount(amount) == expected

    @pytest.mark.parametrize("amount", ["", "abc", "NaN", "Infinity", None])
    def test_rejects_non_numeric(self, amount):
        with pytest.raises(PaymentValidationError):
            format_amount(amount)


class TestHashing:
    def test_hashed_secret(self, adapter):
        assert adapter.hashed_secret() == "413024A670C5DD96B2E6C98E88268C83"

    def test_checkout_hash_vector(self, adapter):
        assert (
            adapter.generate_checkout_hash("Order12345", "1000", "LKR")
            == "5920AE5049D1985536D71176895B0C7A"
        )

    def test_notification_hash_vectors(self, adapter):
        assert (
            adapter.generate_notification_hash(MERCHANT_ID, "Order12345", "1000.00", "LKR", "2")
            == "E17D60338DB8261FB657C6C49E102C61"
        )
        assert (
            adapter.generate_notification_hash(MERCHANT_ID, "Order12345", "1000.00", "LKR", "0")
            == "13CAB3CE4B15E3C2FF12215369C512D9"
        )

    def test_hash_is_uppercase_hex(self, adapter):
        signature = adapter.generate_checkout_hash("PAY-1", "1500.00", "LKR")

        assert len(signature) == 32
        assert signature == signature.upper()
        int(signature, 16)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("order_id", "Order12346"),
            ("amount", "1000.01"),
            ("currency", "USD"),
            ("status_code", "-2"),
        ],
    )
    def test_changing_any_field_changes_signature(self, adapter, field, value):
        fields = {
            "merchant_id": MERCHANT_ID,
            "order_id": "Order12345",
            "amount": "1000.00",
            "currency": "LKR",
            "status_code": "2",
        }
        original = adapter.generate_notification_hash(**fields)
        fields[field] = value

        assert adapter.generate_notification_hash(**fields) != original

    def test_missing_secret_is_improperly_configured(self):
        adapter = PayHereAdapter(PayHereConfig(merchant_id=MERCHANT_ID, merchant_secret=""))

        with pytest.raises(ImproperlyConfigured):
            adapter.generate_checkout_hash("PAY-1", "1500.00", "LKR")


class TestVerifyNotification:
    def test_valid_signature(self, adapter):
        assert adapter.verify_notification(make_notification(adapter)) is True

    def test_amount_normalised_before_hashing(self, adapter):
        signed = make_notification(adapter)
        notification = GatewayNotification(
            merchant_id=MERCHANT_ID,
            order_id="Order12345",
            amount="1000",
            currency="LKR",
            status_code="2",
            signature=signed.signature,
        )

        assert adapter.verify_notification(notification) is True

    def test_signature_from_other_secret_rejected(self, adapter):
        other = PayHereAdapter(PayHereConfig(merchant_id=MERCHANT_ID, merchant_secret="other"))
        notification = make_notification(other)

        assert adapter.verify_notification(notification) is False

    def test_single_character_change_rejected(self, adapter):
        signed = make_notification(adapter)
        tampered = signed.signature[:-1] + ("0" if signed.signature[-1] != "0" else "1")

        assert adapter.verify_notification(make_notification(adapter, signature=tampered)) is False

    def test_lowercase_signature_rejected(self, adapter):
        signed = make_notification(adapter)

        notification = make_notification(adapter, signature=signed.signature.lower())

        assert adapter.verify_notification(notification) is False

    def test_other_merchant_rejected(self, adapter):
        other = PayHereAdapter(PayHereConfig(merchant_id="9999999", merchant_secret=SECRET))
        notification = make_notification(other, merchant_id="9999999")

        assert adapter.verify_notification(notification) is False

    def test_blank_field_rejected(self, adapter):
        notification = make_notification(adapter, currency="")

        assert adapter.verify_notification(notification) is False

    def test_non_numeric_amount_rejected(self, adapter):
        notification = GatewayNotification(
            merchant_id=MERCHANT_ID,
            order_id="Order12345",
            amount="lots",
            currency="LKR",
            status_code="2",
            signature="E17D60338DB8261FB657C6C49E102C61",
        )

        assert adapter.verify_notification(notification) is False


class TestCheckoutUrl:
    def test_sandbox(self):
        config = PayHereConfig(merchant_id=MERCHANT_ID, merchant_secret=SECRET)

        assert PayHereAdapter(config).checkout_url == SANDBOX_CHECKOUT_URL
        assert config.environment == "sandbox"

    def test_live(self):
        config = PayHereConfig(merchant_id=MERCHANT_ID, merchant_secret=SECRET, sandbox=False)

        assert PayHereAdapter(config).checkout_url == LIVE_CHECKOUT_URL
        assert config.environment == "live"

    def test_repr_hides_secret(self):
        config = PayHereConfig(merchant_id=MERCHANT_ID, merchant_secret=SECRET)

        assert SECRET not in repr(config)
