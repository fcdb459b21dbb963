# render/compositor.py
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import requests
from PIL import Image, ImageDraw

from core.logger import get_logger
from core.models import Product, RenderConfig

from .assets import Assets, resolve_assets
from .fonts import load_font
from .layout import (
    BADGE_RADIUS,
    BANK_BADGE_BOX,
    CANVAS_H,
    CANVAS_W,
    PICKUP_RADIUS,
    PLACEHOLDER_BOX,
    PLACEHOLDER_TEXT_XY,
    Box,
    TextLine,
    price_lines,
    product_image_box,
    right_badges,
)

logger = get_logger(__name__)

WHITE = (255, 255, 255)
BANK_BLUE = (0x00, 0x82, 0xD1)
PICKUP_BLUE = (0x00, 0x82, 0xD1)
ORANGE = (0xFF, 0x66, 0x00)
PRICE_COLOR = (0xFF, 0x66, 0x00)
PLACEHOLDER_FILL = (0xF5, 0xF5, 0xF5)
PLACEHOLDER_TEXT = (0xCC, 0xCC, 0xCC)

PLACEHOLDER_LABEL = "Sin Imagen"
BANK_HEADLINE = "10% OFF"
BANK_SUBLINE = "1 PAGO Débito"
PICKUP_LABEL = "¡RETIRO GRATIS!"


@dataclass
class Rendering:
    """A finished canvas plus where each drawn layer landed."""
    image: Image.Image
    layers: List[str] = field(default_factory=list)
    boxes: Dict[str, Box] = field(default_factory=dict)


def _outlined_text(
    draw: ImageDraw.ImageDraw,
    xy: Tuple[int, int],
    text: str,
    line: TextLine,
    fill: Tuple[int, int, int],
    anchor: str,
) -> None:
    """White halo first, then the fill on top. `line.stroke` is a full line width."""
    font = load_font(line.size, line.weight)
    draw.text(xy, text, font=font, fill=WHITE, anchor=anchor,
              stroke_width=line.stroke // 2, stroke_fill=WHITE)
    draw.text(xy, text, font=font, fill=fill, anchor=anchor)


def _draw_product_image(canvas: Image.Image, photo: Image.Image, show_price: bool) -> Box:
    box = product_image_box(photo.width, photo.height, show_price)
    scaled = photo.resize((box.w, box.h), Image.LANCZOS)
    canvas.paste(scaled, (box.x, box.y), scaled)
    return box


def _draw_placeholder(draw: ImageDraw.ImageDraw) -> None:
    draw.rectangle(PLACEHOLDER_BOX.xyxy, fill=PLACEHOLDER_FILL)
    draw.text(PLACEHOLDER_TEXT_XY, PLACEHOLDER_LABEL, font=load_font(30, 400),
              fill=PLACEHOLDER_TEXT, anchor="ms")


def _draw_bank_badge(draw: ImageDraw.ImageDraw) -> Box:
    box = BANK_BADGE_BOX
    draw.rounded_rectangle(box.xyxy, radius=BADGE_RADIUS, fill=BANK_BLUE)
    cx = box.x + box.w // 2
    draw.text((cx, box.y + 40), BANK_HEADLINE, font=load_font(36, 900), fill=WHITE, anchor="ms")
    draw.text((cx, box.y + 65), BANK_SUBLINE, font=load_font(18, 400), fill=WHITE, anchor="ms")
    return box


def _draw_installments_badge(draw: ImageDraw.ImageDraw, box: Box, installments: int) -> None:
    draw.rounded_rectangle(box.xyxy, radius=BADGE_RADIUS, fill=ORANGE)
    draw.text((box.x + 15, box.y + box.h // 2 + 2), str(installments),
              font=load_font(50, 900), fill=WHITE, anchor="lm")
    label_font = load_font(20, 700)
    draw.text((box.x + 80, box.y + 25), "SIN", font=label_font, fill=WHITE, anchor="lm")
    draw.text((box.x + 80, box.y + 48), "INTERÉS", font=label_font, fill=WHITE, anchor="lm")


def _draw_pickup_badge(draw: ImageDraw.ImageDraw, box: Box) -> None:
    draw.rounded_rectangle(box.xyxy, radius=PICKUP_RADIUS, fill=PICKUP_BLUE)
    draw.text((box.x + box.w // 2, box.y + box.h // 2 + 2), PICKUP_LABEL,
              font=load_font(20, 700), fill=WHITE, anchor="mm")


def _draw_overlay(canvas: Image.Image, overlay: Image.Image) -> None:
    if overlay.size != canvas.size:
        overlay = overlay.resize(canvas.size, Image.LANCZOS)
    canvas.paste(overlay, (0, 0), overlay)


def compose(product: Product, config: RenderConfig, assets: Assets) -> Rendering:
    """
    Draw one promo canvas from already-loaded assets.

    Layers always go down in the same order; the config only decides which
    of them are present:
      background, product image (or placeholder), bank badge,
      installments + pickup badges, price block, overlay frame.
    """
    canvas = Image.new("RGB", (CANVAS_W, CANVAS_H), WHITE)
    draw = ImageDraw.Draw(canvas)
    out = Rendering(image=canvas, layers=["background"])

    if assets.product_image is not None:
        out.boxes["product_image"] = _draw_product_image(canvas, assets.product_image, config.show_price)
        out.layers.append("product_image")
    else:
        _draw_placeholder(draw)
        out.boxes["placeholder"] = PLACEHOLDER_BOX
        out.layers.append("placeholder")

    if config.show_bank_badge:
        out.boxes["bank_badge"] = _draw_bank_badge(draw)
        out.layers.append("bank_badge")

    if config.show_auto_badges:
        for name, box in right_badges(product):
            if name == "installments":
                _draw_installments_badge(draw, box, product.installments)
            else:
                _draw_pickup_badge(draw, box)
            out.boxes[name] = box
            out.layers.append(name)

    if config.show_price:
        for name, line in price_lines(product):
            color = ORANGE if name == "installment_line" else PRICE_COLOR
            _outlined_text(draw, (CANVAS_W // 2, line.y), line.text, line, color, anchor="md")
            out.layers.append(name)

    if assets.overlay is not None:
        _draw_overlay(canvas, assets.overlay)
        out.layers.append("overlay")

    logger.debug("Composed %s: %s", product.sku or product.id, out.layers)
    return out


async def render_product(
    product: Product,
    config: RenderConfig,
    session: requests.Session | None = None,
) -> Rendering:
    """Resolve the product photo and overlay, then compose. Never fails on asset errors."""
    assets = await resolve_assets(product, config, session=session)
    return compose(product, config, assets)
