"""
Tiered free-text matching against a short list of named entities.

Resolution is first-hit, not scored: the first tier that produces any
match wins, and within a tier the first entity in list order wins.

Tiers:
1. exact, case-insensitive equality
2. containment in either direction ("cardio" -> "Cardiology")
3. a shared word longer than two characters ("dr chen" -> "Sarah Chen")
"""

import logging
import re
from typing import Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_SHARED_WORD_LENGTH = 3


def _words(text: str) -> set[str]:
    return {w for w in re.split(r"[^\w']+", text) if len(w) >= MIN_SHARED_WORD_LENGTH}


def match_entity(
    text: str,
    entities: Sequence[T],
    key: Callable[[T], str] = lambda e: e.name,  # type: ignore[attr-defined]
) -> Optional[T]:
    """Return the first entity whose name matches ``text``, or None."""
    needle = (text or "").lower().strip()
    if not needle or not entities:
        return None

    names = [(entity, key(entity).lower().strip()) for entity in entities]

    for entity, name in names:
        if name == needle:
            logger.debug("Exact entity match: %s", name)
            return entity

    for entity, name in names:
        if name and (name in needle or needle in name):
            logger.debug("Containment entity match: %s", name)
            return entity

    needle_words = _words(needle)
    for entity, name in names:
        shared = needle_words & _words(name)
        if shared:
            logger.debug("Word entity match: %s via %s", name, sorted(shared))
            return entity

    return None
