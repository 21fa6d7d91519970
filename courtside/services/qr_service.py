"""
Payment QR service.

Renders UPI payment QR codes for tournaments whose organizer has not uploaded
their own QR image. Uses `segno` — a pure-Python QR encoder (no native libs required).
"""
from __future__ import annotations

import io
from decimal import Decimal
from typing import Optional, Union
from urllib.parse import quote

import segno

from courtside.validators import validate_upi_id

__all__ = ["validate_upi_id", "upi_payment_uri", "generate_qr_png", "upi_payment_qr_png"]


def upi_payment_uri(
    upi_id: str,
    payee_name: Optional[str] = None,
    amount: Union[float, Decimal, None] = None,
    note: Optional[str] = None,
) -> str:
    """
    Build a ``upi://pay`` deep link.

    >>> upi_payment_uri("club@okbank", amount=250)
    'upi://pay?pa=club@okbank&am=250.00&cu=INR'
    """
    params = [f"pa={quote(upi_id.strip(), safe='@.-_')}"]
    if payee_name:
        params.append(f"pn={quote(payee_name)}")
    if amount:
        params.append(f"am={Decimal(str(amount)):.2f}")
    params.append("cu=INR")
    if note:
        params.append(f"tn={quote(note)}")
    return "upi://pay?" + "&".join(params)


def generate_qr_png(data: str, scale: int = 10, border: int = 2) -> bytes:
    """
    Render a QR code for the given payload as a PNG image.

    Parameters
    ----------
    data   : text to encode
    scale  : pixels per module (default 10 → ~400px for a typical QR)
    border : quiet-zone width in modules

    Returns
    -------
    PNG bytes ready to be sent as a Telegram photo.
    """
    qr  = segno.make_qr(data, error="M")
    buf = io.BytesIO()
    qr.save(buf, kind="png", scale=scale, border=border)
    return buf.getvalue()


def upi_payment_qr_png(
    upi_id: str,
    payee_name: Optional[str] = None,
    amount: Union[float, Decimal, None] = None,
    note: Optional[str] = None,
) -> bytes:
    return generate_qr_png(upi_payment_uri(upi_id, payee_name, amount, note))
