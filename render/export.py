# render/export.py
import os
from io import BytesIO
from pathlib import Path

from PIL import Image

from core.logger import get_logger
from core.models import Product
from core.naming import is_usable_filename, safe_filename

logger = get_logger(__name__)

EXPORT_PREFIX = os.getenv("EXPORT_PREFIX", "pardo")
EXPORT_QUALITY = int(os.getenv("EXPORT_QUALITY", "90"))


class ExportError(Exception):
    """A rendering cannot be exported (e.g. the product has no SKU)."""


def export_filename(sku: str, prefix: str = EXPORT_PREFIX) -> str:
    safe = safe_filename(sku)
    if not is_usable_filename(safe):
        raise ExportError(f"SKU {sku!r} is not usable as a file name")
    return f"{prefix}_{safe}.jpg"


def to_jpeg_bytes(image: Image.Image, quality: int = EXPORT_QUALITY) -> bytes:
    buf = BytesIO()
    image.convert("RGB").save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def export_image(image: Image.Image, product: Product, out_dir: str | Path) -> Path:
    """Write the canvas as <prefix>_<sku>.jpg under out_dir and return the path."""
    if not product.sku:
        raise ExportError(f"Product {product.id} has no SKU; cannot export.")

    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / export_filename(product.sku)
    path.write_bytes(to_jpeg_bytes(image))
    logger.info("Exported %s (%s) to %s", product.sku, product.name, path)
    return path
