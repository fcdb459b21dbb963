# render/assets.py
import asyncio
import base64
import binascii
import os
import threading
from contextlib import nullcontext
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from urllib.parse import unquote_to_bytes

import requests
from PIL import Image

from core.logger import get_logger
from core.models import Product, RenderConfig

logger = get_logger(__name__)

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))
USER_AGENT = os.getenv(
    "FETCH_USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)


class ImageLoadError(Exception):
    """An image source could not be fetched or decoded."""


@dataclass
class Assets:
    """
    Decoded inputs of one render. product_image None means "draw the
    placeholder"; overlay None means "no frame layer".
    """
    product_image: Image.Image | None = None
    overlay: Image.Image | None = None


def encode_data_uri(data: bytes, mime: str = "image/png") -> str:
    """Embed uploaded image bytes (e.g. a frame PNG) as a data: URI."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ImageLoadError("malformed data URI (no comma)")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except binascii.Error as exc:
            raise ImageLoadError(f"bad base64 payload: {exc}") from exc
    return unquote_to_bytes(payload)


def _read_source(src: str, session: requests.Session | None, lock=None) -> bytes:
    if src.startswith("data:"):
        return _decode_data_uri(src)

    if src.startswith("http://") or src.startswith("https://"):
        getter = session.get if session is not None else requests.get
        try:
            with lock or nullcontext():
                resp = getter(src, timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT})
        except requests.RequestException as exc:
            raise ImageLoadError(f"request failed for {src}: {exc}") from exc
        if not resp.ok:
            raise ImageLoadError(f"Bad status code {resp.status_code} for {src}")
        return resp.content

    path = Path(src)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ImageLoadError(f"cannot read {path}: {exc}") from exc


def load_image(
    src: str,
    session: requests.Session | None = None,
    lock=None,
) -> Image.Image:
    """
    Load an image from an http(s) URL, a data: URI or a local path and
    return it decoded as RGBA. Raises ImageLoadError on any failure.

    `lock` guards requests made through a session shared with other threads.
    """
    if not src:
        raise ImageLoadError("empty image source")

    data = _read_source(src, session, lock)
    try:
        with Image.open(BytesIO(data)) as im:
            im.load()
            return im.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageLoadError(f"cannot decode image from {src[:80]}: {exc}") from exc


async def load_image_async(
    src: str,
    session: requests.Session | None = None,
    lock=None,
) -> Image.Image:
    return await asyncio.to_thread(load_image, src, session, lock)


async def _load_optional(
    src: str | None, what: str, session: requests.Session | None, lock
) -> Image.Image | None:
    if not src:
        logger.debug("No %s source; skipping load.", what)
        return None
    try:
        img = await load_image_async(src, session, lock)
    except ImageLoadError as exc:
        logger.warning("Failed to load %s: %s", what, exc)
        return None
    logger.debug("Loaded %s %dx%d", what, img.width, img.height)
    return img


async def resolve_assets(
    product: Product,
    config: RenderConfig,
    session: requests.Session | None = None,
) -> Assets:
    """
    Load the product photo and the overlay frame concurrently; failures become None.

    Both loads run in worker threads. Requests through the one shared session
    take turns; reading and decoding do not.
    """
    lock = threading.Lock()
    photo, overlay = await asyncio.gather(
        _load_optional(product.image_url, f"product image for {product.sku or product.id}", session, lock),
        _load_optional(config.overlay, "overlay", session, lock),
    )
    return Assets(product_image=photo, overlay=overlay)
