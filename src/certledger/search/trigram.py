"""Pure-Python renditions of the PostgreSQL text-matching functions.

``trigram_similarity`` mirrors ``pg_trgm.similarity`` and ``text_match``
mirrors ``to_tsvector('simple', doc) @@ plainto_tsquery('simple', term)``.
They back the SQL functions registered on SQLite connections so both
backends answer the same queries the same way.
"""

import re
from typing import Optional, Set

# Below this score a fuzzy field match is rejected.
SIMILARITY_THRESHOLD = 0.2

# pg_trgm and the 'simple' text search config both split on anything that
# is not a letter or a digit (underscore included).
_WORD_RE = re.compile(r"[^\W_]+")


def words(text: str) -> list[str]:
    """Lower-cased alphanumeric words of ``text``."""
    return _WORD_RE.findall(text.lower())


def trigrams(text: str) -> Set[str]:
    """
    Trigram set of ``text`` as computed by pg_trgm.

    Each word is padded with two leading blanks and one trailing blank
    before being cut into three-character windows.

    Example:
        >>> sorted(trigrams("cat"))
        ['  c', ' ca', 'at ', 'cat']
    """
    grams: Set[str] = set()
    for word in words(text):
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i:i + 3])
    return grams


def trigram_similarity(left: Optional[str], right: Optional[str]) -> Optional[float]:
    """
    Similarity in [0, 1]: shared trigrams over the union of trigrams.

    NULL in, NULL out, so a NULL column never passes a threshold.
    """
    if left is None or right is None:
        return None
    left_grams = trigrams(left)
    right_grams = trigrams(right)
    if not left_grams or not right_grams:
        return 0.0
    return len(left_grams & right_grams) / len(left_grams | right_grams)


def text_match(document: Optional[str], term: Optional[str]) -> Optional[int]:
    """
    1 when every word of ``term`` is a word of ``document``, else 0.

    Returns an int because SQLite has no boolean type.
    """
    if document is None or term is None:
        return None
    term_words = set(words(term))
    if not term_words:
        return 0
    return 1 if term_words <= set(words(document)) else 0
