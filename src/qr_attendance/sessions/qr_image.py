from __future__ import annotations

import base64
import io
from typing import BinaryIO, Optional

import qrcode
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import ValidationError


def render_png(data: str, *, box_size: int = 10, border: int = 2) -> bytes:
    """Render ``data`` as a black-on-white PNG QR code."""

    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_data_url(data: str) -> str:
    encoded = base64.b64encode(render_png(data)).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def symbol_text(data: bytes) -> Optional[str]:
    """Decoded QR bytes as text; ``None`` when they are not UTF-8."""

    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError:
        return None


def decode_image(stream: BinaryIO) -> Optional[str]:
    """Return the text of the first QR code found in an uploaded image."""

    try:
        img = Image.open(stream).convert("RGB")
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Uploaded file is not a readable image")

    from pyzbar.pyzbar import decode as pyzbar_decode

    decoded = pyzbar_decode(img)
    if not decoded:
        return None
    return symbol_text(decoded[0].data)
