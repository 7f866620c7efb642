"""
Matrix Module

Reader for the blocked matrices printed by CRYSTAL (overlap and Fock
matrices of each unit cell). Matrices are printed in blocks of columns::

                 1              2              3

   1     1.0000000E+00
   2     2.5000000E-01  1.0000000E+00
   3     0.0000000E+00  1.2000000E-01  1.0000000E+00

                 4              5
   ...

A blank line announces a new block, followed by the 1-based column
indices; each data line starts with its 1-based row index. Only the
printed elements are filled, the rest stay zero.
"""

import numpy as np
from typing import List, Optional

from .cursor import LineCursor, parse_float, parse_int
from .exceptions import CrystalParseError, TruncatedMatrixError


def _read_column_indices(cursor: LineCursor, dimension: int,
                         context: Optional[str]) -> List[int]:
    line = cursor.readline()
    while line is not None and not line.strip():
        line = cursor.readline()
    if line is None:
        raise TruncatedMatrixError(
            "stream ended while waiting for a column index line",
            line_number=cursor.line_number, marker=context
        )

    columns = [parse_int(tok, cursor.line_number, context) for tok in line.split()]
    for col in columns:
        if not 1 <= col <= dimension:
            raise CrystalParseError(
                f"column index {col} outside 1..{dimension}",
                line_number=cursor.line_number, marker=context
            )
    return columns


def read_blocked_matrix(
    cursor: LineCursor,
    dimension: int,
    context: Optional[str] = None
) -> np.ndarray:
    """
    Rebuild one dense square matrix from its column blocks.

    Reading stops at the bottom-right corner: a data line whose row index
    is ``dimension`` and whose last value falls in column ``dimension``.

    Parameters
    ----------
    cursor : LineCursor
        Cursor positioned right after the matrix header
    dimension : int
        Matrix dimension (number of atomic orbitals); not inferred
    context : str, optional
        Header text used to label errors

    Returns
    -------
    ndarray of shape (dimension, dimension), complex128

    Raises
    ------
    TruncatedMatrixError
        If the stream ends before the bottom-right element is read.
    CrystalParseError
        On malformed tokens, out-of-range indices or data before any
        column header.
    """
    if dimension <= 0:
        raise CrystalParseError(
            "number of atomic orbitals must be known before reading matrices",
            line_number=cursor.line_number, marker=context
        )

    matrix = np.zeros((dimension, dimension), dtype=np.complex128)
    columns = None

    while True:
        line = cursor.readline()
        if line is None:
            raise TruncatedMatrixError(
                f"stream ended before element ({dimension}, {dimension}) was read",
                line_number=cursor.line_number, marker=context
            )

        if not line.strip():
            columns = _read_column_indices(cursor, dimension, context)
            following = cursor.readline()
            if following is not None and following.strip():
                cursor.push_back(following)
            continue

        if columns is None:
            raise CrystalParseError(
                f"matrix data before any column index line: {line.strip()!r}",
                line_number=cursor.line_number, marker=context
            )

        tokens = line.split()
        row = parse_int(tokens[0], cursor.line_number, context)
        values = [parse_float(tok, cursor.line_number, context) for tok in tokens[1:]]

        if not 1 <= row <= dimension:
            raise CrystalParseError(
                f"row index {row} outside 1..{dimension}",
                line_number=cursor.line_number, marker=context
            )
        if len(values) > len(columns):
            raise CrystalParseError(
                f"row {row} has {len(values)} values for {len(columns)} columns",
                line_number=cursor.line_number, marker=context
            )

        for col, value in zip(columns, values):
            matrix[row - 1, col - 1] = value

        if values and row == dimension and columns[len(values) - 1] == dimension:
            return matrix
