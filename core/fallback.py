# core/fallback.py
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterable, TypeVar

from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ChainExhausted(Exception):
    """Every step of a fallback chain failed or was rejected."""

    def __init__(self, message: str, errors: Dict[str, BaseException] | None = None):
        super().__init__(message)
        self.errors: Dict[str, BaseException] = errors or {}


@dataclass
class Step(Generic[T]):
    """One way of producing a value; `run` may raise, the chain absorbs it."""
    name: str
    run: Callable[[], T]


def first_success(
    steps: Iterable[Step[T]],
    accept: Callable[[T], bool] = bool,
    label: str = "chain",
) -> T:
    """
    Run steps in order and return the first result that `accept` approves.

    Exceptions from a step are logged and swallowed; later steps are not run
    once one succeeds. Raises ChainExhausted when nothing was accepted.
    """
    errors: Dict[str, BaseException] = {}
    tried = 0
    for step in steps:
        tried += 1
        logger.info("%s: trying %s...", label, step.name)
        try:
            result = step.run()
        except Exception as exc:
            logger.warning("%s: %s failed: %s", label, step.name, exc)
            errors[step.name] = exc
            continue
        if accept(result):
            logger.info("%s: %s succeeded.", label, step.name)
            return result
        logger.warning("%s: %s returned an unusable result; moving on.", label, step.name)

    raise ChainExhausted(
        f"{label}: all {tried} steps exhausted ({len(errors)} raised)", errors
    )
