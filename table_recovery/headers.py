"""
Fuzzy matching of OCR words against table header vocabularies.
"""

from typing import Dict, Iterable, List, Sequence

from .ocr_engine import OcrWord


# Canonical bank/financial statement headers, in left-to-right order
EXPECTED_HEADERS = ("date", "description", "debit", "credit", "balance")

# Shortest alphabetic fragment allowed to match by containment
MIN_SUBSTRING_LEN = 3


def normalize_alpha(text: str) -> str:
    """Lower-case ASCII letters only."""
    return "".join(c for c in text.lower() if "a" <= c <= "z")


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def token_matches(text: str, target: str) -> bool:
    """
    True if a word fuzzy-matches a header token.

    The word's alphabetic form must be within edit distance 1 of the target,
    or contain / be contained in it (fragments of at least three letters).
    """
    norm = normalize_alpha(text)
    if not norm:
        return False
    if edit_distance(norm, target) <= 1:
        return True
    if len(norm) < MIN_SUBSTRING_LEN:
        return False
    return norm in target or target in norm


def match_header(line: Sequence[OcrWord],
                 headers: Sequence[str] = EXPECTED_HEADERS) -> Dict[str, OcrWord]:
    """
    Map each header to the first word on the line that matches it.

    A word is consumed by the first still-unmatched header it matches.
    """
    out: Dict[str, OcrWord] = {}
    for word in line:
        for target in headers:
            if target in out:
                continue
            if token_matches(word.text, target):
                out[target] = word
                break
    return out


def header_hits(line: Iterable[OcrWord], headers: Sequence[str] = EXPECTED_HEADERS) -> int:
    """Number of words on the line that match any header."""
    return sum(1 for w in line if any(token_matches(w.text, t) for t in headers))


def looks_like_header(line: Iterable[OcrWord], headers: Sequence[str] = EXPECTED_HEADERS) -> bool:
    return header_hits(line, headers) >= 3


def matches_required_headers(line: Sequence[OcrWord], required: Sequence[str]) -> bool:
    """True if every required token fuzzy-matches some word on the line."""
    if not required:
        return True
    return all(any(token_matches(w.text, token) for w in line) for token in required)


def header_positions(match: Dict[str, OcrWord],
                     headers: Sequence[str] = EXPECTED_HEADERS) -> List[float]:
    """Left edges of matched headers, in canonical header order."""
    return [float(match[h].left) for h in headers if h in match]
