# core/naming.py
import re

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def safe_filename(name: str) -> str:
    """Collapse every run of characters outside [A-Za-z0-9_.-] into one underscore."""
    return _UNSAFE_RE.sub("_", name.strip())


def is_usable_filename(name: str) -> bool:
    """False for names made only of dots and underscores (e.g. '..', '__')."""
    return bool(name.strip("._"))
