"""PNG renderer for finalized QRIS payloads."""
from __future__ import annotations

import base64
import io
from dataclasses import dataclass

import qrcode
from PIL import Image, ImageDraw, ImageFont

from .config import RenderConfig

_ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}
CAPTION_HEIGHT = 40


@dataclass(frozen=True, slots=True)
class RenderedQR:
    png_bytes: bytes
    png_base64: str


def generate_qr_image(data: str, options: RenderConfig) -> Image.Image:
    """Generate a QR image, optionally with a caption strip below it."""

    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[options.error_correction],
        box_size=options.box_size,
        border=options.border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color=options.fill_color, back_color=options.back_color).convert("RGB")
    if not options.caption:
        return qr_img

    width, height = qr_img.size
    canvas = Image.new("RGB", (width, height + CAPTION_HEIGHT), color=options.back_color)
    canvas.paste(qr_img, (0, 0))

    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()
    text = options.caption.upper()
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    text_x = (width - (right - left)) // 2
    text_y = height + (CAPTION_HEIGHT - (bottom - top)) // 2
    draw.text((text_x, text_y), text, fill=options.fill_color, font=font)
    return canvas


def qr_image_to_png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_payload(payload: str, options: RenderConfig) -> RenderedQR:
    """Render payload into PNG bytes and base64 string."""

    png_bytes = qr_image_to_png_bytes(generate_qr_image(payload, options))
    return RenderedQR(png_bytes=png_bytes, png_base64=base64.b64encode(png_bytes).decode("ascii"))
