"""
Unit tests — UPI deep links and QR rendering (services/qr_service.py).
"""
from __future__ import annotations

from courtside.services.qr_service import generate_qr_png, upi_payment_qr_png, upi_payment_uri

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestUpiPaymentUri:
    def test_minimal(self) -> None:
        assert upi_payment_uri("club@okbank") == "upi://pay?pa=club@okbank&cu=INR"

    def test_amount_two_decimals(self) -> None:
        uri = upi_payment_uri("club@okbank", amount=250)
        assert "am=250.00" in uri

    def test_zero_amount_omitted(self) -> None:
        assert "am=" not in upi_payment_uri("club@okbank", amount=0)

    def test_name_and_note_are_quoted(self) -> None:
        uri = upi_payment_uri("club@okbank", payee_name="City Open", note="Singles entry")
        assert "pn=City%20Open" in uri
        assert "tn=Singles%20entry" in uri


class TestQrPng:
    def test_png_signature(self) -> None:
        assert generate_qr_png("hello").startswith(PNG_SIGNATURE)

    def test_upi_png(self) -> None:
        png = upi_payment_qr_png("club@okbank", payee_name="City Open", amount=100)
        assert png.startswith(PNG_SIGNATURE)
        assert len(png) > 100
