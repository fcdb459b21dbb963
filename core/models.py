# core/models.py
import os
from dataclasses import dataclass, replace
from pathlib import Path

STATIC_DIR = Path(__file__).resolve().parent.parent / "render" / "static"
DEFAULT_OVERLAY = os.getenv("DEFAULT_OVERLAY", str(STATIC_DIR / "marco-ads-meta.png"))


@dataclass(frozen=True)
class Product:
    """
    Normalized catalog product, ready to be composited.
    Prices are whole currency units (pesos); there is no minor unit.
    """
    id: str
    name: str
    price: int = 0
    list_price: int = 0
    image_url: str = ""
    installments: int = 0
    free_shipping: bool = False
    sku: str = ""
    bank_promo: str = ""
    pickup: bool = False

    def __post_init__(self):
        if self.price < 0:
            raise ValueError(f"price must be >= 0, got {self.price}")
        if self.installments < 0:
            raise ValueError(f"installments must be >= 0, got {self.installments}")

    @property
    def has_installments(self) -> bool:
        return self.installments > 1


@dataclass
class RenderConfig:
    """
    Per-session render switches. Any combination is valid.

    overlay may be a local path, an http(s) URL or a data: URI; None disables
    the frame layer.
    """
    show_price: bool = True
    show_auto_badges: bool = True
    show_bank_badge: bool = True
    overlay: str | None = DEFAULT_OVERLAY

    def with_overlay(self, overlay: str | None) -> "RenderConfig":
        return replace(self, overlay=overlay)
