"""
Exceptions Module

Error types raised while reading CRYSTAL output. All of them derive from
ValueError so callers that already guard parsing with ``except ValueError``
keep working.
"""

from typing import Optional


class CrystalParseError(ValueError):
    """
    Malformed or unexpected content in a CRYSTAL output stream.

    Parameters
    ----------
    message : str
        Description of the problem (expected vs. found)
    line_number : int, optional
        1-based line number where the problem was detected
    marker : str, optional
        Section marker being processed when the error occurred
    """

    def __init__(self, message: str, line_number: Optional[int] = None,
                 marker: Optional[str] = None):
        self.message = message
        self.line_number = line_number
        self.marker = marker
        super().__init__(self._format())

    def _format(self) -> str:
        prefix = []
        if self.line_number is not None:
            prefix.append(f"line {self.line_number}")
        if self.marker:
            prefix.append(f"[{self.marker}]")
        if prefix:
            return f"{' '.join(prefix)}: {self.message}"
        return self.message


class TruncatedInputError(CrystalParseError):
    """The stream ended in the middle of a fixed-size section."""


class TruncatedMatrixError(TruncatedInputError):
    """The stream ended before the last element of a matrix was read."""


class UnsupportedConfigurationError(CrystalParseError):
    """The calculation uses a setting this reader cannot build a model for."""
