# core/identifiers.py
import os
import re
from urllib.parse import parse_qs, urlparse

from .logger import get_logger

logger = get_logger(__name__)

CATALOG_HOST = os.getenv("CATALOG_HOST", "https://www.pardo.com.ar")
CLUSTER_MAP_TOKEN = "productClusterIds"

_DIGITS_RE = re.compile(r"[0-9]{3,}")


def _host_pattern(host_url: str) -> re.Pattern:
    netloc = urlparse(host_url).netloc or host_url
    if netloc.startswith("www."):
        netloc = netloc[4:]
    return re.compile(re.escape(netloc) + r"/([0-9]+)")


_HOST_RE = _host_pattern(CATALOG_HOST)


def _from_url(text: str) -> str | None:
    """Apply the URL rules; None when the text is not an absolute URL or no rule matches."""
    try:
        parsed = urlparse(text.strip())
    except ValueError:
        return None
    if not (parsed.scheme and parsed.netloc):
        return None

    segments = [s for s in parsed.path.split("/") if s]
    for map_value in parse_qs(parsed.query).get("map", []):
        tokens = map_value.split(",")
        if CLUSTER_MAP_TOKEN in tokens:
            k = tokens.index(CLUSTER_MAP_TOKEN)
            if k < len(segments):
                return segments[k]

    m = _HOST_RE.search(text)
    if m:
        return m.group(1)
    return None


def extract_cluster_id(text: str) -> str:
    """
    Turn whatever the user pasted into a catalog cluster id.

    Accepted inputs, tried in order:
      - a bare numeric id: "1970"
      - a collection URL using the map param:
        https://www.pardo.com.ar/1970?map=productClusterIds
      - a catalog URL whose first path segment is numeric:
        https://www.pardo.com.ar/1970/ofertas
      - any text containing a run of 3+ digits

    Falls back to returning the input unchanged; never raises.
    """
    stripped = text.strip()
    if stripped.isdigit() and stripped.isascii():
        return stripped

    found = _from_url(text)
    if found:
        logger.debug("Cluster id %s extracted from URL %s", found, text)
        return found

    m = _DIGITS_RE.search(text)
    if m:
        logger.debug("Cluster id %s extracted from digit run in %r", m.group(0), text)
        return m.group(0)

    logger.debug("No cluster id pattern in %r; using input as-is", text)
    return text
