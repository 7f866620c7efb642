"""
Assembler Module

Folds the state accumulated during the scan into the final
ElectronicStructureRecord, expanding the spin structure when the
calculation is spin-polarized.

For collinear magnetic runs the alpha and beta Fock matrices of each cell
are combined as

    H(R) = F_alpha(R) ⊗ P_up + F_beta(R) ⊗ P_down,
    P_up = [[1, 0], [0, 0]],  P_down = [[0, 0], [0, 1]]

and the overlap as S(R) ⊗ I_2. Each orbital is thus followed by its spin
partner, which keeps the orbitals of every atom contiguous (orbital counts
per species simply double).
"""

import warnings
import numpy as np
from typing import List

from .exceptions import CrystalParseError, UnsupportedConfigurationError
from .state import ParserState
from .system import ElectronicStructureRecord, Motif, PolarizationMode

SPIN_UP_PROJECTOR = np.array([[1, 0], [0, 0]], dtype=np.float64)
SPIN_DOWN_PROJECTOR = np.array([[0, 0], [0, 1]], dtype=np.float64)


def _stack(matrices: List[np.ndarray], norb: int) -> np.ndarray:
    if not matrices:
        return np.zeros((0, norb, norb), dtype=np.complex128)
    return np.array(matrices, dtype=np.complex128)


def combine_spin_channels(alpha: np.ndarray, beta: np.ndarray) -> np.ndarray:
    """
    Spin-expanded Hamiltonian of one cell.

    Parameters
    ----------
    alpha, beta : ndarray of shape (N, N)
        Fock matrices of the alpha and beta electrons

    Returns
    -------
    ndarray of shape (2N, 2N)
    """
    return np.kron(alpha, SPIN_UP_PROJECTOR) + np.kron(beta, SPIN_DOWN_PROJECTOR)


def expand_overlap(overlap: np.ndarray) -> np.ndarray:
    """Spin-expanded overlap of one cell, S ⊗ I_2."""
    return np.kron(overlap, np.eye(2))


def species_orbitals(state: ParserState) -> np.ndarray:
    """Orbital count of each species, in species id order."""
    if state.atoms is None:
        return np.zeros(0, dtype=int)
    missing = [label for label in state.atoms.species if label not in state.basis]
    if missing:
        raise CrystalParseError(
            f"no basis set found for species {', '.join(missing)}"
        )
    return np.array([state.basis[label].norbitals for label in state.atoms.species],
                    dtype=int)


def assemble_model(state: ParserState) -> ElectronicStructureRecord:
    """
    Build the electronic structure record from a finished scan.

    Parameters
    ----------
    state : ParserState
        Accumulators of a complete pass over the output

    Returns
    -------
    ElectronicStructureRecord

    Raises
    ------
    UnsupportedConfigurationError
        For spin-orbit calculations.
    CrystalParseError
        If the matrix stacks are inconsistent with each other or with the
        basis set.
    """
    if state.polarization is PolarizationMode.SPIN_ORBIT:
        raise UnsupportedConfigurationError(
            "Hamiltonian construction for spin-orbit calculations is not supported yet"
        )

    if not state.lattice_found:
        warnings.warn("No direct lattice vectors found, assuming a 0D system")

    orbitals = species_orbitals(state)
    if state.atoms is not None:
        counted = int(np.sum(orbitals[state.atoms.species_ids]))
        if state.norbitals and counted != state.norbitals:
            raise CrystalParseError(
                f"basis set accounts for {counted} orbitals but the output "
                f"declares NUMBER OF AO {state.norbitals}"
            )
    else:
        warnings.warn("No atom table found, motif and orbital counts are empty")

    norb = state.norbitals
    filling = state.total_electrons / 2.
    overlap = _stack(state.overlap, norb)

    if state.polarization is PolarizationMode.COLLINEAR_MAGNETIC:
        if len(state.alpha) != len(state.beta):
            raise CrystalParseError(
                f"found {len(state.alpha)} alpha but {len(state.beta)} beta Fock matrices"
            )
        filling *= 2
        orbitals = orbitals * 2
        hamiltonian = _stack(
            [combine_spin_channels(a, b) for a, b in zip(state.alpha, state.beta)],
            2 * norb
        )
        overlap = _stack([expand_overlap(s) for s in state.overlap], 2 * norb)
    else:
        hamiltonian = _stack(state.fock, norb)

    if hamiltonian.shape[0] != overlap.shape[0]:
        raise CrystalParseError(
            f"found {overlap.shape[0]} overlap but {hamiltonian.shape[0]} "
            f"Hamiltonian matrices within the cell limit"
        )
    if hamiltonian.shape[0] == 0:
        warnings.warn("No overlap or Fock matrices retained")

    if state.atoms is not None:
        positions = state.atoms.positions
        species_ids = state.atoms.species_ids
        species = list(state.atoms.species)
    else:
        positions = np.zeros((0, 3))
        species_ids = np.zeros(0, dtype=int)
        species = []

    return ElectronicStructureRecord(
        ndim=state.ndim,
        bravais_lattice=state.lattice,
        motif=Motif(positions=positions, species_ids=species_ids),
        species=species,
        bravais_vectors=np.array(state.bravais_vectors).reshape(-1, 3),
        cells=list(state.cells),
        orbitals=orbitals,
        filling=filling,
        total_electrons=state.total_electrons,
        core_electrons=state.core_electrons,
        polarization=state.polarization,
        basis=dict(state.basis),
        overlap=overlap,
        hamiltonian=hamiltonian,
    )
