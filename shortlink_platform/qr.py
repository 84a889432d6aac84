"""QR code rendering for short URLs."""

from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def build_short_url(base_url: str, code: str) -> str:
    return f"{base_url.rstrip('/')}/{code}"


def generate_qr_png(data: str, size: int = 256) -> bytes:
    """
    Render `data` as a PNG QR code roughly `size` pixels wide.

    Uses medium error correction; box size is derived from the symbol's
    module count so the image lands close to the requested width.
    """
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=4)
    qr.add_data(data)
    qr.make(fit=True)
    modules = qr.modules_count + 2 * qr.border
    qr.box_size = max(1, size // modules)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = BytesIO()
    img.save(buf)
    return buf.getvalue()
