from __future__ import annotations

import base64
import secrets
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from ezevent.core.config import settings

TOKEN_BYTES = 16


def generate_token() -> str:
    """Random scan token used for both event QR codes and registration QR codes."""
    return secrets.token_hex(TOKEN_BYTES)


def render_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=settings.qr_box_size,
        border=settings.qr_border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_url(data: str) -> str:
    encoded = base64.b64encode(render_qr_png(data)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
