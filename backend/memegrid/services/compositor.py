"""
Image compositor.

Two pure operations on Pillow images: paste a scaled logo centered on the
base image, and draw a caption into a fixed rectangle at the top of it.
Both return a new RGBA image sized like the base; the inputs are never
modified. A missing base image makes either operation a no-op.
"""

import logging
import os
from functools import lru_cache
from typing import Any, Optional

from PIL import Image, ImageDraw, ImageFont

from memegrid.config import get_settings

logger = logging.getLogger(__name__)

BOLD_FONT_PATHS = [
    "C:\\Windows\\Fonts\\arialbd.ttf" if os.name == "nt" else None,
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
]


@lru_cache(maxsize=8)
def load_bold_font(size: int, font_path: Optional[str] = None) -> Any:
    """
    Load a bold TrueType font at the given size.

    Tries `font_path`, then common system locations, then Pillow's bundled font.
    """
    candidates = [font_path] + BOLD_FONT_PATHS
    for path in candidates:
        if path and os.path.exists(path):
            try:
                return ImageFont.truetype(path, size)
            except OSError as e:
                logger.error(f"Error loading font {path}: {e}")
    logger.warning("No bold TrueType font found, using Pillow's default font.")
    return ImageFont.load_default(size=size)


def overlay(base: Optional[Image.Image], logo: Optional[Image.Image], scale: float = 0.5) -> Optional[Image.Image]:
    """
    Draw `logo` centered on `base`.

    The logo is resized to `scale` times the base width and height, ignoring
    its own aspect ratio. For the default scale the logo's top-left corner
    lands at ((W - W//2) // 2, (H - H//2) // 2).
    """
    if base is None or logo is None:
        return base

    width, height = base.size
    logo_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    scaled = logo.convert("RGBA").resize(logo_size, Image.Resampling.LANCZOS)
    origin = ((width - logo_size[0]) // 2, (height - logo_size[1]) // 2)

    result = base.convert("RGBA")
    result.alpha_composite(scaled, dest=origin)
    return result


def _measure(draw: ImageDraw.ImageDraw, text: str, font: Any) -> float:
    return draw.textlength(text, font=font)


def _fit_prefix(draw: ImageDraw.ImageDraw, text: str, max_width: int, font: Any) -> int:
    """Length of the longest prefix of `text` that fits max_width, at least 1."""
    lo, hi = 1, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if _measure(draw, text[:mid], font) <= max_width:
            lo = mid
        else:
            hi = mid - 1
    return lo


def wrap_text(
    draw: ImageDraw.ImageDraw,
    text: str,
    max_width: int,
    font: Any,
    max_lines: Optional[int] = None,
) -> list[str]:
    """
    Wrap text into lines no wider than max_width.

    Explicit newlines start a new paragraph. Words wider than a whole line
    are broken by characters. Wrapping stops after `max_lines` lines.
    """
    lines: list[str] = []

    def full() -> bool:
        return max_lines is not None and len(lines) >= max_lines

    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            if full():
                return lines
            continue
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if _measure(draw, candidate, font) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
                if full():
                    return lines
            current = word
            while len(current) > 1 and _measure(draw, current, font) > max_width:
                cut = _fit_prefix(draw, current, max_width, font)
                lines.append(current[:cut])
                if full():
                    return lines
                current = current[cut:]
        lines.append(current)
        if full():
            return lines
    return lines


def _line_height(font: Any, size: int) -> int:
    try:
        bbox = font.getbbox("Ay")
        return max(1, int((bbox[3] - bbox[1]) * 1.2))
    except AttributeError:
        return int(size * 1.2)


def caption(
    base: Optional[Image.Image],
    text: str,
    *,
    margin: Optional[int] = None,
    box_height: Optional[int] = None,
    font_size: Optional[int] = None,
    color: Optional[str] = None,
    font_path: Optional[str] = None,
) -> Optional[Image.Image]:
    """
    Draw `text` into the rectangle (margin, margin, W - 2*margin, box_height).

    Text is bold, white, centered horizontally and wrapped to the rectangle
    width. Anything outside the rectangle is clipped. Style values default
    to the configured caption settings.
    """
    if base is None:
        return None

    settings = get_settings()
    margin = settings.CAPTION_MARGIN if margin is None else margin
    box_height = settings.CAPTION_HEIGHT if box_height is None else box_height
    font_size = settings.CAPTION_FONT_SIZE if font_size is None else font_size
    color = color or settings.CAPTION_COLOR
    font_path = font_path or settings.CAPTION_FONT_PATH

    result = base.convert("RGBA")
    box_width = result.width - 2 * margin
    box_height = min(box_height, result.height - margin)
    if not text or box_width <= 0 or box_height <= 0:
        return result

    # Drawing on a layer the size of the rectangle clips the text to it
    layer = Image.new("RGBA", (box_width, box_height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    font = load_bold_font(font_size, font_path)
    line_height = _line_height(font, font_size)

    # Lines starting below the rectangle would be clipped anyway
    max_lines = -(-box_height // line_height)

    y = 0
    for line in wrap_text(draw, text, box_width, font, max_lines=max_lines):
        if line:
            draw.text((box_width / 2, y), line, font=font, fill=color, anchor="ma")
        y += line_height

    result.alpha_composite(layer, dest=(margin, margin))
    return result
