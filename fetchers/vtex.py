# fetchers/vtex.py
import json
import math
import os
from dataclasses import dataclass
from typing import Any, Callable, List
from urllib.parse import quote

import requests

from core.fallback import ChainExhausted, Step, first_success
from core.identifiers import CATALOG_HOST, extract_cluster_id
from core.logger import get_logger
from core.models import Product

logger = get_logger(__name__)

CATALOG_PAGE_SIZE = int(os.getenv("CATALOG_PAGE_SIZE", "50"))
PREFERRED_SELLER_ID = os.getenv("PREFERRED_SELLER_ID", "1")
FREE_SHIPPING_THRESHOLD = int(os.getenv("FREE_SHIPPING_THRESHOLD", "100000"))
RESIZE_HOST = os.getenv("RESIZE_HOST", "https://wsrv.nl").rstrip("/")
RESIZE_SIZE = 1000
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))
USER_AGENT = os.getenv(
    "FETCH_USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)

CONNECTION_ERROR_MESSAGE = "Error de conexión (Proxies agotados)."


class VtexError(Exception):
    """A single strategy could not produce catalog records."""


class CatalogConnectionError(Exception):
    """Every retrieval strategy failed for a cluster."""


def _encode(url: str) -> str:
    # Same escaping as JavaScript's encodeURIComponent
    return quote(url, safe="!~*'()")


@dataclass(frozen=True)
class Strategy:
    """A pass-through endpoint: how to wrap the target URL and unwrap its response."""
    name: str
    build_url: Callable[[str], str]
    unwrap: Callable[[Any], Any]


def _unwrap_contents(payload: Any) -> Any:
    if not isinstance(payload, dict):
        raise VtexError(f"expected wrapper object, got {type(payload).__name__}")
    contents = payload.get("contents")
    if not isinstance(contents, str):
        raise VtexError("wrapper has no 'contents' string")
    return json.loads(contents)


STRATEGIES: List[Strategy] = [
    Strategy(
        name="AllOrigins Raw",
        build_url=lambda target: f"https://api.allorigins.win/raw?url={_encode(target)}",
        unwrap=lambda payload: payload,
    ),
    Strategy(
        name="CORSProxy",
        build_url=lambda target: f"https://corsproxy.io/?{_encode(target)}",
        unwrap=lambda payload: payload,
    ),
    Strategy(
        name="AllOrigins Wrapped",
        build_url=lambda target: f"https://api.allorigins.win/get?url={_encode(target)}",
        unwrap=_unwrap_contents,
    ),
]


def build_search_url(cluster_id: str, host: str = CATALOG_HOST) -> str:
    return (
        f"{host.rstrip('/')}/api/catalog_system/pub/products/search"
        f"?fq=productClusterIds:{cluster_id}&_from=0&_to={CATALOG_PAGE_SIZE - 1}"
    )


def _new_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    return session


def _fetch_json(session: requests.Session, url: str) -> Any:
    logger.debug("GET %s", url)
    resp = session.get(url, timeout=HTTP_TIMEOUT)
    if not resp.ok:
        raise VtexError(f"Bad status code {resp.status_code}")
    return resp.json()


def _is_record_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def fetch_records(
    cluster_id: str,
    session: requests.Session | None = None,
    strategies: List[Strategy] | None = None,
) -> list[dict]:
    """
    Fetch raw catalog records for a cluster, trying each pass-through
    strategy in order until one returns a non-empty array.

    Raises CatalogConnectionError when every strategy fails.
    """
    session = session or _new_session()
    target = build_search_url(cluster_id)
    logger.info("Fetching cluster %s from %s", cluster_id, target)

    def _attempt(strategy: Strategy) -> Callable[[], Any]:
        return lambda: strategy.unwrap(_fetch_json(session, strategy.build_url(target)))

    steps = [Step(name=s.name, run=_attempt(s)) for s in (strategies or STRATEGIES)]
    try:
        records = first_success(steps, accept=_is_record_list, label=f"cluster {cluster_id}")
    except ChainExhausted as exc:
        logger.error("Fetch failed for cluster %s: %s", cluster_id, exc)
        for name, err in exc.errors.items():
            logger.debug("  %s: %r", name, err)
        raise CatalogConnectionError(CONNECTION_ERROR_MESSAGE) from exc

    logger.info("Cluster %s: %d raw records", cluster_id, len(records))
    return records


def _pick_seller(sellers: list[dict]) -> dict:
    for seller in sellers:
        if str(seller.get("sellerId")) == PREFERRED_SELLER_ID:
            return seller
    return sellers[0]


def best_installments(plans: Any) -> int:
    """Highest interest-free installment count, else the highest of any plan, else 0."""
    if not isinstance(plans, list) or not plans:
        return 0
    zero_interest = [p for p in plans if p.get("InterestRate") == 0]
    pool = zero_interest or plans
    return max(_count(p["NumberOfInstallments"]) for p in pool)


def resize_url(image_url: str) -> str:
    """Route an image through the resize proxy as a 1000x1000 JPEG; '' stays ''."""
    clean = (image_url or "").split("?", 1)[0]
    if not clean:
        return ""
    return (
        f"{RESIZE_HOST}/?url={_encode(clean)}"
        f"&output=jpg&w={RESIZE_SIZE}&h={RESIZE_SIZE}"
    )


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number {value!r}")
    return number


def _count(value: Any) -> int:
    return int(_finite(value))


def _whole(value: Any) -> int:
    amount = int(round(_finite(value)))
    if amount < 0:
        raise ValueError(f"negative amount {value!r}")
    return amount


def normalize_record(raw: dict) -> Product:
    """Map one catalog search record onto a Product. Raises on malformed input."""
    item = raw["items"][0]
    offer = _pick_seller(item["sellers"])["commertialOffer"]

    images = item.get("images") or []
    first_image = images[0].get("imageUrl") or "" if images else ""

    price = _whole(offer["Price"])
    return Product(
        id=str(raw["productId"]),
        name=str(raw.get("productName") or ""),
        price=price,
        list_price=_whole(offer.get("ListPrice") or 0),
        image_url=resize_url(first_image),
        installments=best_installments(offer.get("Installments")),
        free_shipping=price > FREE_SHIPPING_THRESHOLD,
        sku=str(item.get("itemId") or ""),
        # Search results carry no pickup or bank promotion data
        pickup=True,
        bank_promo="",
    )


def normalize_records(records: list[Any]) -> list[Product]:
    """Normalize a batch, dropping (and logging) records that do not fit the expected shape."""
    products: list[Product] = []
    seen_ids: set[str] = set()
    for index, raw in enumerate(records):
        try:
            product = normalize_record(raw)
        except (KeyError, IndexError, TypeError, ValueError, AttributeError, ArithmeticError) as exc:
            logger.warning("Dropping malformed record #%d: %s: %s", index, type(exc).__name__, exc)
            continue
        if product.id in seen_ids:
            logger.debug("Skipping duplicate product id %s", product.id)
            continue
        seen_ids.add(product.id)
        products.append(product)

    logger.info("Normalized %d of %d records.", len(products), len(records))
    return products


def fetch_products(identifier: str, session: requests.Session | None = None) -> list[Product]:
    """Resolve user input to a cluster id, fetch it and normalize the results."""
    cluster_id = extract_cluster_id(identifier)
    return normalize_records(fetch_records(cluster_id, session=session))
