"""
Field-level validation rules shared by the schemas, routes and services.

- Names (books and readers) must not contain regex metacharacters.
- ISBNs must be valid ISBN-10 or ISBN-13; hyphens and spaces are ignored
  when checking, but the value is stored exactly as sent.
"""

import re
from typing import Optional

from library_api.exceptions import ValidationError

NAME_SYNTAX_ERROR = "Syntax Error: not allowed characters"
INVALID_ISBN = "Invalid ISBN"
# Values the database itself rejected (NOT NULL, length, type)
INVALID_DATA = "Invalid data, the element could not be saved."

# - / \ ^ $ * + ? . ( ) | [ ] { }
_METACHARACTERS = re.compile(r"[-/\\^$*+?.()|\[\]{}]")
_ISBN_SEPARATORS = re.compile(r"[\s-]+")
_ISBN10 = re.compile(r"^\d{9}[\dX]$")
_ISBN13 = re.compile(r"^\d{13}$")


def contains_metacharacters(name: str) -> bool:
    return _METACHARACTERS.search(name) is not None


def ensure_valid_name(name: Optional[str]) -> None:
    """
    Rejects names with metacharacters.

    None is accepted so partial updates without a name pass through.
    """
    if name is not None and contains_metacharacters(name):
        raise ValidationError(message=NAME_SYNTAX_ERROR, field="name")


def _isbn10_checksum_ok(digits: str) -> bool:
    total = 0
    for position, char in enumerate(digits, start=1):
        value = 10 if char == "X" else int(char)
        total += position * value
    return total % 11 == 0


def _isbn13_checksum_ok(digits: str) -> bool:
    total = sum(int(char) * (1 if i % 2 == 0 else 3) for i, char in enumerate(digits))
    return total % 10 == 0


def is_valid_isbn(value: str) -> bool:
    """True for a well-formed ISBN-10 or ISBN-13 with a correct check digit."""
    if not isinstance(value, str):
        return False
    compact = _ISBN_SEPARATORS.sub("", value)
    if _ISBN10.match(compact):
        return _isbn10_checksum_ok(compact)
    if _ISBN13.match(compact):
        return _isbn13_checksum_ok(compact)
    return False


def ensure_valid_isbn(value: str, field: str = "isbn") -> str:
    if not is_valid_isbn(value):
        raise ValidationError(message=INVALID_ISBN, field=field)
    return value
