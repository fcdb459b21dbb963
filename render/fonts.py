# render/fonts.py
import os
from functools import lru_cache
from typing import List, Optional

from PIL import ImageFont

from core.logger import get_logger
from core.models import STATIC_DIR

logger = get_logger(__name__)

FONT_DIR = os.getenv("FONT_DIR", str(STATIC_DIR / "fonts"))
SYSTEM_FONT_DIRS = [
    "/usr/share/fonts/truetype/roboto/unhinted/RobotoTTF",
    "/usr/share/fonts/truetype/roboto",
    "/usr/share/fonts/truetype/dejavu",
    "/usr/share/fonts/truetype/liberation",
]

# CSS weight -> candidate files, best match first
WEIGHT_CANDIDATES = {
    400: ["Roboto-Regular.ttf", "DejaVuSans.ttf", "LiberationSans-Regular.ttf"],
    700: ["Roboto-Bold.ttf", "DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf"],
    900: ["Roboto-Black.ttf", "Roboto-Bold.ttf", "DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf"],
}


def _find_font(candidates: List[str]) -> Optional[str]:
    for name in candidates:
        local_path = os.path.join(FONT_DIR, name)
        if os.path.isfile(local_path):
            return local_path
        for base in SYSTEM_FONT_DIRS:
            p = os.path.join(base, name)
            if os.path.isfile(p):
                return p
    return None


@lru_cache(maxsize=32)
def load_font(size: int, weight: int = 400) -> ImageFont.FreeTypeFont:
    """Roboto at the closest available weight, falling back to Pillow's bundled font."""
    names = WEIGHT_CANDIDATES.get(weight) or WEIGHT_CANDIDATES[400]
    path = _find_font(names)
    if path:
        return ImageFont.truetype(path, size=size)
    logger.warning("No TrueType font for weight %d in %s; using Pillow default.", weight, FONT_DIR)
    return ImageFont.load_default(size=size)
