"""
String similarity and phonetic metrics.

Pure, side-effect-free functions shared by the ranker's fuzzy fallback and
the spelling corrector. Every function case-folds its inputs and is total:
empty strings yield degenerate but defined values instead of errors.

Edit distances are computed with rapidfuzz; Soundex and the simplified
Metaphone are encoded here because their exact rules are part of the
scoring contract.
"""

import math
from typing import Iterable, List, Set, Tuple

from rapidfuzz.distance import DamerauLevenshtein, Levenshtein

from .dictionaries import KEYBOARD_NEIGHBORS, VOWEL_SUBSTITUTIONS

# fuzzy_match_score short-circuits
EXACT_MATCH_SCORE = 100
PREFIX_MATCH_SCORE = 95
SUBSTRING_MATCH_SCORE = 85

# Linear blend used by fuzzy_match_score. Edit-distance signals outweigh the
# phonetic one because phonetic collisions are noisier. Tunable, but fixtures
# depend on these exact values.
LEVENSHTEIN_WEIGHT = 30
DAMERAU_WEIGHT = 25
BIGRAM_WEIGHT = 20
TRIGRAM_WEIGHT = 15
PHONETIC_WEIGHT = 10

SOUNDEX_LENGTH = 4
METAPHONE_MAX_LENGTH = 8

_SOUNDEX_CODES = {
    "b": "1", "f": "1", "p": "1", "v": "1",
    "c": "2", "g": "2", "j": "2", "k": "2", "q": "2", "s": "2", "x": "2", "z": "2",
    "d": "3", "t": "3",
    "l": "4",
    "m": "5", "n": "5",
    "r": "6",
}

_METAPHONE_DIGRAPHS = {
    "ph": "f",
    "gh": "g",
    "gn": "n",
    "kn": "n",
    "ps": "s",
    "wr": "r",
    "mb": "m",
    "ck": "k",
    "ch": "x",
    "sh": "x",
    "th": "0",
    "wh": "w",
}

_VOWELS = "aeiou"


def _fold(value: str) -> str:
    return (value or "").lower()


def _letters(value: str) -> str:
    return "".join(ch for ch in _fold(value) if "a" <= ch <= "z")


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit-cost insert, delete and substitute."""
    return Levenshtein.distance(_fold(a), _fold(b))


def damerau_levenshtein(a: str, b: str) -> int:
    """
    Edit distance that also counts an adjacent transposition as one edit.

    Brand misspellings are frequently transpositions ("smasung" vs "samsung").
    """
    return DamerauLevenshtein.distance(_fold(a), _fold(b))


def similarity_ratio(a: str, b: str) -> float:
    """
    ``1 - levenshtein / max(len)``, in [0, 1].

    Two empty strings are identical (1.0); an empty string against a
    non-empty one shares nothing (0.0).
    """
    a, b = _fold(a), _fold(b)
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(a, b) / max_len


def damerau_ratio(a: str, b: str) -> float:
    """Same normalization as :func:`similarity_ratio` over the Damerau distance."""
    a, b = _fold(a), _fold(b)
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - DamerauLevenshtein.distance(a, b) / max_len


def soundex(value: str) -> str:
    """
    Four-character Soundex code.

    Non-letters are dropped; input without letters encodes to ``"0000"``.

    Examples:
        "Samsung" -> "S525"
        "Robert" -> "R163"
    """
    letters = _letters(value)
    if not letters:
        return "0" * SOUNDEX_LENGTH

    code = letters[0].upper()
    previous = _SOUNDEX_CODES.get(letters[0], "0")
    for ch in letters[1:]:
        if len(code) >= SOUNDEX_LENGTH:
            break
        current = _SOUNDEX_CODES.get(ch, "0")
        if current != "0" and current != previous:
            code += current
        previous = current

    return (code + "0" * SOUNDEX_LENGTH)[:SOUNDEX_LENGTH]


def metaphone(value: str) -> str:
    """
    Simplified Metaphone code of at most eight characters.

    Common English digraphs collapse to a single sound and vowels are kept
    only in the leading position.
    """
    word = _letters(value)
    result = []
    i = 0
    while i < len(word):
        digraph = word[i : i + 2]
        if len(digraph) == 2 and digraph in _METAPHONE_DIGRAPHS:
            result.append(_METAPHONE_DIGRAPHS[digraph])
            i += 2
            continue
        ch = word[i]
        if i == 0 or ch not in _VOWELS:
            result.append(ch)
        i += 1
    return "".join(result)[:METAPHONE_MAX_LENGTH]


def sounds_like(a: str, b: str) -> bool:
    """True when either the Soundex or the Metaphone codes agree."""
    return soundex(a) == soundex(b) or metaphone(a) == metaphone(b)


def _ngrams(value: str, n: int) -> Set[str]:
    return {value[i : i + n] for i in range(len(value) - n + 1)}


def n_gram_similarity(a: str, b: str, n: int = 2) -> float:
    """
    Jaccard similarity of the sets of contiguous ``n``-character substrings.

    Strings shorter than ``n`` contribute no n-grams; with no n-grams on
    either side the similarity is 0.0.
    """
    if n < 1:
        return 0.0
    grams_a = _ngrams(_fold(a), n)
    grams_b = _ngrams(_fold(b), n)
    union = grams_a | grams_b
    if not union:
        return 0.0
    return len(grams_a & grams_b) / len(union)


def fuzzy_match_score(query: str, target: str) -> int:
    """
    Comprehensive similarity score in [0, 100].

    Exact, prefix and substring matches short-circuit to 100, 95 and 85.
    Otherwise the score is a fixed linear blend of Levenshtein ratio (30),
    Damerau ratio (25), bigram (20) and trigram (15) similarity and the
    phonetic agreement (10), rounded half up.

    An empty query or target scores 0.
    """
    q = _fold(query).strip()
    t = _fold(target).strip()
    if not q or not t:
        return 0

    if q == t:
        return EXACT_MATCH_SCORE
    if t.startswith(q):
        return PREFIX_MATCH_SCORE
    if q in t:
        return SUBSTRING_MATCH_SCORE

    blended = (
        similarity_ratio(q, t) * LEVENSHTEIN_WEIGHT
        + damerau_ratio(q, t) * DAMERAU_WEIGHT
        + n_gram_similarity(q, t, 2) * BIGRAM_WEIGHT
        + n_gram_similarity(q, t, 3) * TRIGRAM_WEIGHT
        + (PHONETIC_WEIGHT if sounds_like(q, t) else 0)
    )
    return max(0, min(EXACT_MATCH_SCORE, int(math.floor(blended + 0.5))))


def find_fuzzy_matches(
    query: str, options: Iterable[str], threshold: int = 60
) -> List[Tuple[str, int]]:
    """
    Score every option against the query and keep those at or above threshold.

    Returns:
        List of (option, score) sorted by score descending; ties keep input order
    """
    matches = [(option, fuzzy_match_score(query, option)) for option in options]
    matches = [match for match in matches if match[1] >= threshold]
    matches.sort(key=lambda match: match[1], reverse=True)
    return matches


def keyboard_proximity_variants(token: str) -> Set[str]:
    """
    All single substitutions of one character by a physically adjacent key.

    The token itself is not part of the result.
    """
    chars = list(_fold(token))
    variants = set()
    for i, ch in enumerate(chars):
        for neighbor in KEYBOARD_NEIGHBORS.get(ch, ()):
            variants.add("".join(chars[:i] + [neighbor] + chars[i + 1 :]))
    variants.discard("".join(chars))
    return variants


def typo_variants(token: str) -> Set[str]:
    """
    Common single-edit typos of a token: doubled letters, dropped letters,
    swapped neighbours and vowel substitutions.

    The token itself is not part of the result.
    """
    word = _fold(token)
    variants = set()

    for i in range(len(word)):
        variants.add(word[:i] + word[i] + word[i:])
        variants.add(word[:i] + word[i + 1 :])

    for i in range(len(word) - 1):
        variants.add(word[:i] + word[i + 1] + word[i] + word[i + 2 :])

    for i, ch in enumerate(word):
        for substitute in VOWEL_SUBSTITUTIONS.get(ch, ()):
            variants.add(word[:i] + substitute + word[i + 1 :])

    variants.discard(word)
    variants.discard("")
    return variants


def single_edit_variants(token: str) -> Set[str]:
    """Union of typo and keyboard-proximity variants."""
    return typo_variants(token) | keyboard_proximity_variants(token)
