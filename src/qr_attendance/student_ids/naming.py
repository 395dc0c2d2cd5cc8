"""Name and university prefixes shared by the id strategies."""

from __future__ import annotations

import re

_NON_ALPHA_KEEP_SPACE = re.compile(r"[^A-Za-z\s]")
_NON_ALPHA = re.compile(r"[^A-Za-z]")
_NON_DIGIT = re.compile(r"\D")


def sanitize_name(name: str) -> str:
    return _NON_ALPHA_KEEP_SPACE.sub("", name or "").strip().upper()


def name_prefix(name: str, length: int = 3) -> str:
    """Uppercase prefix of exactly ``length`` letters.

    Several words and room for one letter per word: every initial is used and
    the spare positions take the next letters of the first word
    ("Ana Lee", 3 -> "ANL"). Otherwise the first letters of the joined name.
    Short results are padded with "X".
    """

    words = sanitize_name(name).split()
    if len(words) > 1 and length >= len(words):
        first = words[0]
        spare = length - len(words)
        prefix = first[0] + first[1 : 1 + spare] + "".join(w[0] for w in words[1:])
        return prefix.ljust(length, "X")

    return "".join(words)[:length].ljust(length, "X")


def university_prefix(university: str, length: int = 3) -> str:
    return _NON_ALPHA.sub("", university or "").upper()[:length].ljust(length, "U")


def year_suffix(year: int) -> str:
    return str(year)[-2:]


def roll_digits(roll_number: str, length: int = 4) -> str:
    digits = _NON_DIGIT.sub("", roll_number or "")
    return digits[-length:].rjust(length, "0")
