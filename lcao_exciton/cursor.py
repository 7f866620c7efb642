"""
Line Cursor Module

Forward-only reader over the lines of a text stream with a one-line
pushback buffer, plus the numeric token helpers shared by the section
readers. Readers that need to look one line ahead (Gaussian tables,
matrix blocks) push the line back instead of seeking in the file.
"""

import re
from typing import Iterable, Iterator, List, Optional

from .exceptions import CrystalParseError, TruncatedInputError

# ==============================
# Numeric Tokens
# ==============================

# Fortran output may use D exponents (1.0D-03)
float_pattern = re.compile(
    r'^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eEdD][-+]?\d+)?$'
)
int_pattern = re.compile(r'^[-+]?\d+$')


def is_float_token(token: str) -> bool:
    return bool(float_pattern.match(token))


def parse_float(token: str, line_number: Optional[int] = None,
                marker: Optional[str] = None) -> float:
    """Convert one numeric token, raising CrystalParseError if malformed."""
    if not float_pattern.match(token):
        raise CrystalParseError(
            f"expected a number, found {token!r}",
            line_number=line_number, marker=marker
        )
    return float(token.replace('D', 'E').replace('d', 'e'))


def parse_int(token: str, line_number: Optional[int] = None,
              marker: Optional[str] = None) -> int:
    """Convert one integer token, raising CrystalParseError if malformed."""
    if not int_pattern.match(token):
        raise CrystalParseError(
            f"expected an integer, found {token!r}",
            line_number=line_number, marker=marker
        )
    return int(token)


def tokenize_floats(line: str) -> Optional[List[float]]:
    """Return all tokens of ``line`` as floats, or None if any is not numeric."""
    tokens = line.split()
    if not all(is_float_token(tok) for tok in tokens):
        return None
    return [float(tok.replace('D', 'E').replace('d', 'e')) for tok in tokens]


class LineCursor:
    """
    Sequential line reader with single-line lookahead.

    Parameters
    ----------
    lines : iterable of str
        Any iterable yielding text lines (open file, list, generator).
        Trailing newlines are stripped.

    Attributes
    ----------
    line_number : int
        1-based number of the last consumed line (0 before the first read)
    """

    def __init__(self, lines: Iterable[str]):
        self._lines = iter(lines)
        self._pushed: Optional[str] = None
        self.line_number = 0

    def readline(self) -> Optional[str]:
        """Return the next line, or None once the stream is exhausted."""
        if self._pushed is not None:
            line = self._pushed
            self._pushed = None
        else:
            try:
                line = next(self._lines)
            except StopIteration:
                return None
            line = line.rstrip('\r\n')
        self.line_number += 1
        return line

    def next_line(self, marker: Optional[str] = None,
                  expected: str = "more lines") -> str:
        """
        Return the next line, failing if the stream is exhausted.

        Raises
        ------
        TruncatedInputError
            If no line is left.
        """
        line = self.readline()
        if line is None:
            raise TruncatedInputError(
                f"unexpected end of stream, expected {expected}",
                line_number=self.line_number, marker=marker
            )
        return line

    def push_back(self, line: str) -> None:
        """Un-consume ``line`` so that the next read returns it again."""
        if self._pushed is not None:
            raise RuntimeError("Only one line can be pushed back")
        self._pushed = line
        self.line_number -= 1

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.readline()
            if line is None:
                return
            yield line
