"""
Utility Functions Module

This module contains helper functions to hand the parsed record to
downstream tight-binding and exciton codes, plus consistency checks
and matrix summaries.
"""

import numpy as np
from typing import Dict, Sequence, Tuple

from .system import ElectronicStructureRecord

# ==============================
# Data Conversion
# ==============================

def to_real_space_matrices(
    record: ElectronicStructureRecord
) -> Dict[Tuple[int, int, int], Dict[str, np.ndarray]]:
    """
    Key the matrix stacks by integer lattice coefficients.

    Returns
    -------
    real_space_matrices : dict
        Maps (n1, n2, n3) -> {'H': H_matrix, 'S': S_matrix}
    """
    real_space_matrices = {}
    for i, cell in enumerate(record.cells):
        real_space_matrices[tuple(cell)] = {
            'H': record.hamiltonian[i],
            'S': record.overlap[i],
        }
    return real_space_matrices


def get_cell_index(record: ElectronicStructureRecord,
                   coefficients: Sequence[int]) -> int:
    """
    Position in the matrix stacks of the cell with the given coefficients.

    Raises
    ------
    KeyError
        If the cell was not retained.
    """
    target = tuple(int(n) for n in coefficients)
    for i, cell in enumerate(record.cells):
        if tuple(cell) == target:
            return i
    raise KeyError(f"Cell {target} not among the {record.ncells} retained cells")


# ==============================
# Verification & Diagnostics
# ==============================

def check_matrix_consistency(record: ElectronicStructureRecord) -> bool:
    """
    Check that the stacks are aligned: same number of cells as translation
    vectors, and square slices whose size matches the orbital count.
    """
    H_shape = record.hamiltonian.shape
    S_shape = record.overlap.shape

    if H_shape != S_shape:
        print(f"Warning: H stack {H_shape} and S stack {S_shape} differ")
        return False
    if H_shape[1] != H_shape[2]:
        print(f"Warning: matrices are not square: {H_shape[1:]}")
        return False
    if len(record.bravais_vectors) != H_shape[0]:
        print(f"Warning: {len(record.bravais_vectors)} translation vectors "
              f"for {H_shape[0]} matrices")
        return False
    if record.natoms and H_shape[0] and record.total_orbitals != H_shape[1]:
        print(f"Warning: basis holds {record.total_orbitals} orbitals, "
              f"matrices have dimension {H_shape[1]}")
        return False

    return True


def max_imaginary_part(record: ElectronicStructureRecord) -> float:
    """Largest |Im| over both stacks (zero for real CRYSTAL matrices)."""
    if record.ncells == 0:
        return 0.0
    return float(max(np.max(np.abs(record.hamiltonian.imag)),
                     np.max(np.abs(record.overlap.imag))))


# ==============================
# Reporting
# ==============================

def print_matrix_summary(record: ElectronicStructureRecord) -> None:
    """Print a summary of the per-cell matrices."""
    print("\n" + "=" * 70)
    print("Real-Space Matrices Summary")
    print("=" * 70)
    print(f"Number of cells: {record.ncells}")
    print(f"Matrix dimension: {record.norb} × {record.norb}")

    print("\nCells:")
    for i, cell in enumerate(record.cells):
        H_norm = np.linalg.norm(record.hamiltonian[i])
        S_norm = np.linalg.norm(record.overlap[i])
        print(f"  {tuple(cell)}: |H|={H_norm:.4e}  |S|={S_norm:.4e}")

    print("=" * 70)
