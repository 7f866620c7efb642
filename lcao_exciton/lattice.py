"""
Lattice Module

Reading of the direct lattice vectors and the Cartesian translation of
each unit cell.

CRYSTAL always prints three lattice vectors, even for slabs, polymers or
molecules. Non-periodic directions carry a placeholder vector of large
norm (typically 500 Angstrom), so the physical lattice is obtained by
discarding rows above a norm threshold.
"""

import numpy as np
from typing import Sequence, Tuple

from .cursor import LineCursor, parse_float
from .exceptions import CrystalParseError

LATTICE_MARKER = "DIRECT LATTICE VECTOR COMPONENTS"

# Angstrom
DEFAULT_LATTICE_THRESHOLD = 100.0


def parse_bravais_lattice(
    cursor: LineCursor,
    threshold: float = DEFAULT_LATTICE_THRESHOLD
) -> Tuple[np.ndarray, int]:
    """
    Read the three lines following the lattice header.

    Parameters
    ----------
    cursor : LineCursor
        Cursor positioned right after the header line
    threshold : float
        Maximum norm of a vector kept as a Bravais vector

    Returns
    -------
    lattice : ndarray of shape (ndim, 3)
        Retained lattice vectors, in file order
    ndim : int
        Dimensionality of the system

    Raises
    ------
    TruncatedInputError
        If the stream ends before three vectors are read.
    CrystalParseError
        If a line does not hold three numbers.
    """
    vectors = []
    for i in range(3):
        line = cursor.next_line(marker=LATTICE_MARKER,
                                expected=f"lattice vector {i + 1} of 3")
        tokens = line.split()
        if len(tokens) != 3:
            raise CrystalParseError(
                f"expected 3 vector components, found {len(tokens)}: {line.strip()!r}",
                line_number=cursor.line_number, marker=LATTICE_MARKER
            )
        vectors.append([
            parse_float(tok, cursor.line_number, LATTICE_MARKER) for tok in tokens
        ])

    return extract_dimension(np.array(vectors), threshold)


def extract_dimension(
    vectors: np.ndarray,
    threshold: float = DEFAULT_LATTICE_THRESHOLD
) -> Tuple[np.ndarray, int]:
    """
    Keep the vectors whose norm does not exceed ``threshold``.

    Returns the filtered (ndim, 3) array, order preserved, and ndim.
    """
    vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    norms = np.linalg.norm(vectors, axis=1)
    lattice = vectors[norms <= threshold]
    return lattice, lattice.shape[0]


def cell_translation(
    lattice: np.ndarray,
    coefficients: Sequence[int]
) -> np.ndarray:
    """
    Cartesian translation of a unit cell.

    Computes R = Σ_i n_i a_i over the ndim retained lattice vectors; the
    coefficients of non-periodic directions are ignored.
    """
    translation = np.zeros(3)
    for i in range(lattice.shape[0]):
        translation += lattice[i] * coefficients[i]
    return translation
