import asyncio
import os
from pathlib import Path
from typing import List, Optional

import requests

from core.logger import get_logger
from core.models import DEFAULT_OVERLAY, Product, RenderConfig
from fetchers import FETCHERS
from fetchers.demo import DEMO_PRODUCT
from fetchers.vtex import CatalogConnectionError
from render.assets import encode_data_uri
from render.compositor import Rendering, render_product
from render.export import export_image

logger = get_logger(__name__)

OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")
SOURCE = os.getenv("SOURCE", "vtex").strip().lower()
CLUSTER_INPUT = os.getenv("CLUSTER_INPUT", "1970")
# Pauses around each render in a batch, in seconds
BATCH_PAUSE_BEFORE = float(os.getenv("BATCH_PAUSE_BEFORE", "0.6"))
BATCH_PAUSE_AFTER = float(os.getenv("BATCH_PAUSE_AFTER", "0.5"))


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def config_from_env() -> RenderConfig:
    overlay = os.getenv("OVERLAY", DEFAULT_OVERLAY).strip()
    return RenderConfig(
        show_price=_env_bool("SHOW_PRICE", True),
        show_auto_badges=_env_bool("SHOW_AUTO_BADGES", True),
        show_bank_badge=_env_bool("SHOW_BANK_BADGE", True),
        overlay=overlay or None,
    )


class PromoSession:
    """
    In-memory working state: the current product batch, the selection and
    the render switches. Stays usable after any failure.
    """

    def __init__(
        self,
        config: RenderConfig | None = None,
        source: str = "vtex",
        http: requests.Session | None = None,
    ):
        self.config = config or RenderConfig()
        self.source = source
        self.products: List[Product] = [DEMO_PRODUCT]
        self.selected: Optional[Product] = DEMO_PRODUCT
        self.error_message: Optional[str] = None
        self._http = http

    def load_cluster(self, text: str) -> List[Product]:
        """Replace the batch with the products of the cluster named by `text`."""
        if not text or not text.strip():
            logger.info("Empty cluster input; keeping current products.")
            return self.products

        fetcher = FETCHERS.get(self.source)
        if not fetcher:
            logger.error("No fetcher registered for source '%s'.", self.source)
            self.error_message = f"Fuente desconocida: {self.source}"
            return self.products

        self.error_message = None
        self.products = []
        self.selected = None

        try:
            products = fetcher(text, session=self._http)
        except CatalogConnectionError as e:
            logger.error("Cluster load failed for %r: %s", text, e)
            self.error_message = str(e)
            return self.products

        self.products = products
        self.selected = products[0] if products else None
        logger.info("Loaded %d products for %r.", len(products), text)
        return products

    def load_demo(self) -> List[Product]:
        self.products = FETCHERS["demo"]("")
        self.selected = self.products[0]
        self.error_message = None
        return self.products

    def select(self, product_id: str) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                self.selected = p
                return p
        logger.warning("Product %s is not in the current batch.", product_id)
        return None

    def set_overlay_png(self, data: bytes) -> None:
        """Use an uploaded PNG (ideally transparent, 1000x1000) as the frame."""
        self.config = self.config.with_overlay(encode_data_uri(data, "image/png"))

    async def render_selected(self) -> Optional[Rendering]:
        if self.selected is None:
            return None
        return await render_product(self.selected, self.config, session=self._http)

    async def export_selected(self, out_dir: str | Path = OUTPUT_DIR) -> Optional[Path]:
        rendering = await self.render_selected()
        if rendering is None or self.selected is None:
            logger.info("Nothing selected; nothing to export.")
            return None
        return export_image(rendering.image, self.selected, out_dir)

    async def export_all(
        self,
        out_dir: str | Path = OUTPUT_DIR,
        pause_before: float = BATCH_PAUSE_BEFORE,
        pause_after: float = BATCH_PAUSE_AFTER,
    ) -> List[Path]:
        """Render and export every product, one after another."""
        paths: List[Path] = []
        total = len(self.products)
        for index, product in enumerate(list(self.products), start=1):
            self.selected = product
            await asyncio.sleep(pause_before)
            try:
                rendering = await render_product(product, self.config, session=self._http)
                paths.append(export_image(rendering.image, product, out_dir))
            except Exception as e:
                logger.exception("Error exporting %s (%d/%d): %s", product.sku or product.id, index, total, e)
            logger.info("Generated %d/%d", index, total)
            await asyncio.sleep(pause_after)
        return paths


def run_once() -> int:
    session = PromoSession(config=config_from_env(), source=SOURCE)
    if SOURCE == "demo":
        session.load_demo()
    else:
        session.load_cluster(CLUSTER_INPUT)

    if session.error_message:
        logger.error("Batch aborted: %s", session.error_message)
        return 1

    paths = asyncio.run(session.export_all(OUTPUT_DIR))
    logger.info("Batch finished: %d of %d images written to %s.", len(paths), len(session.products), OUTPUT_DIR)
    return 0 if len(paths) == len(session.products) else 1


if __name__ == "__main__":
    try:
        raise SystemExit(run_once())
    except Exception as e:
        logger.exception("Fatal generator error: %s", e)
        raise SystemExit(2)
