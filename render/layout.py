# render/layout.py
"""
Fixed geometry of the 1000x1000 promo canvas.

Every position here is a constant except the product photo, which is scaled
uniformly to fit the area between the overlay header and the price band.
"""
from dataclasses import dataclass
from typing import List, Tuple

from core.currency import format_price
from core.models import Product

CANVAS_W = 1000
CANVAS_H = 1000

# Rows covered by the overlay frame's header and footer art
FRAME_TOP = 130
FRAME_BOTTOM = 130
SAFE_TOP = FRAME_TOP
SAFE_H = CANVAS_H - FRAME_TOP - FRAME_BOTTOM

IMAGE_PADDING = 20
PRICE_BAND_H = 140
IMAGE_TOP_INSET = 40
NO_PRICE_OFFSET = 50
MAX_IMG_W = CANVAS_W - IMAGE_PADDING * 2
MAX_IMG_H = SAFE_H - PRICE_BAND_H

BADGE_TOP = SAFE_TOP + 20
BADGE_MARGIN = 30
BADGE_RADIUS = 10

BANK_BADGE_W = 280
BANK_BADGE_H = 80

RIGHT_BADGE_W = 260
RIGHT_BADGE_X = CANVAS_W - RIGHT_BADGE_W - BADGE_MARGIN
INSTALLMENTS_BADGE_H = 70
# Cursor advance after the installments badge, badge height plus spacing
INSTALLMENTS_SLOT_H = 80
PICKUP_BADGE_H = 40
PICKUP_RADIUS = PICKUP_BADGE_H // 2

PRICE_BASELINE_Y = CANVAS_H - FRAME_BOTTOM - 30
INSTALLMENT_LINE_Y = PRICE_BASELINE_Y - 110


@dataclass(frozen=True)
class Box:
    x: int
    y: int
    w: int
    h: int

    @property
    def xyxy(self) -> Tuple[int, int, int, int]:
        """Inclusive corner coordinates, as ImageDraw expects."""
        return (self.x, self.y, self.x + self.w - 1, self.y + self.h - 1)

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x + self.w // 2, self.y + self.h // 2)


@dataclass(frozen=True)
class TextLine:
    text: str
    y: int
    size: int
    weight: int
    stroke: int


PLACEHOLDER_BOX = Box(100, SAFE_TOP, 800, SAFE_H)
PLACEHOLDER_TEXT_XY = (CANVAS_W // 2, CANVAS_H // 2)
BANK_BADGE_BOX = Box(BADGE_MARGIN, BADGE_TOP, BANK_BADGE_W, BANK_BADGE_H)


def fit_scale(img_w: int, img_h: int) -> float:
    """Uniform scale that fits the photo inside MAX_IMG_W x MAX_IMG_H."""
    if img_w <= 0 or img_h <= 0:
        raise ValueError(f"invalid image size {img_w}x{img_h}")
    return min(MAX_IMG_W / img_w, MAX_IMG_H / img_h)


def product_image_box(img_w: int, img_h: int, show_price: bool = True) -> Box:
    scale = fit_scale(img_w, img_h)
    draw_w = max(1, min(MAX_IMG_W, round(img_w * scale)))
    draw_h = max(1, min(MAX_IMG_H, round(img_h * scale)))
    x = (CANVAS_W - draw_w) // 2
    y = SAFE_TOP + IMAGE_TOP_INSET
    if not show_price:
        y += NO_PRICE_OFFSET
    return Box(x, y, draw_w, draw_h)


def right_badges(product: Product) -> List[Tuple[str, Box]]:
    """Installments then pickup, stacked downward from BADGE_TOP."""
    out: List[Tuple[str, Box]] = []
    cursor = BADGE_TOP
    if product.has_installments:
        out.append(("installments", Box(RIGHT_BADGE_X, cursor, RIGHT_BADGE_W, INSTALLMENTS_BADGE_H)))
        cursor += INSTALLMENTS_SLOT_H
    if product.pickup:
        out.append(("pickup", Box(RIGHT_BADGE_X, cursor, RIGHT_BADGE_W, PICKUP_BADGE_H)))
    return out


def installment_text(product: Product) -> str:
    per_installment = product.price / product.installments
    return (
        f"Hasta {product.installments}x {format_price(per_installment)} "
        f"cuotas sin interés"
    )


def price_lines(product: Product) -> List[Tuple[str, TextLine]]:
    """Text lines of the price block, top to bottom."""
    lines: List[Tuple[str, TextLine]] = []
    if product.has_installments:
        lines.append((
            "installment_line",
            TextLine(installment_text(product), INSTALLMENT_LINE_Y, size=32, weight=700, stroke=8),
        ))
    lines.append((
        "price",
        TextLine(format_price(product.price), PRICE_BASELINE_Y, size=110, weight=900, stroke=16),
    ))
    return lines
