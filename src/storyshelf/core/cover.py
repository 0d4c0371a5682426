"""Placeholder cover image generation using Pillow."""

from __future__ import annotations

import io
import textwrap

from PIL import Image, ImageDraw, ImageFont


def render_placeholder_cover(
    title: str = "Storyshelf",
    subtitle: str = "A story awaits",
    width: int = 600,
    height: int = 900,
) -> bytes:
    """Draw a plain PNG cover used when a story has no artwork."""
    img = Image.new("RGB", (width, height), color="#fef3c7")
    draw = ImageDraw.Draw(img)

    band_y = height // 3
    band_height = height // 3
    draw.rectangle([(0, band_y), (width, band_y + band_height)], fill="#fde68a")
    draw.line([(40, band_y), (width - 40, band_y)], fill="#d97706", width=3)
    draw.line(
        [(40, band_y + band_height), (width - 40, band_y + band_height)],
        fill="#d97706",
        width=3,
    )

    try:
        title_font = ImageFont.truetype("DejaVuSerif.ttf", 40)
        subtitle_font = ImageFont.truetype("DejaVuSerif.ttf", 22)
    except OSError:
        title_font = ImageFont.load_default()
        subtitle_font = ImageFont.load_default()

    wrapped_title = textwrap.fill(title, width=20)
    bbox = draw.multiline_textbbox((0, 0), wrapped_title, font=title_font)
    title_x = (width - (bbox[2] - bbox[0])) // 2
    title_y = band_y + (band_height - (bbox[3] - bbox[1])) // 2 - 20
    draw.multiline_text(
        (title_x, title_y), wrapped_title, fill="#78350f", font=title_font, align="center"
    )

    bbox = draw.textbbox((0, 0), subtitle, font=subtitle_font)
    draw.text(
        ((width - (bbox[2] - bbox[0])) // 2, band_y + band_height + 30),
        subtitle,
        fill="#92400e",
        font=subtitle_font,
    )

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
