"""
System Module

Data model of the electronic structure extracted from a CRYSTAL run:
spin polarization mode and the final record handed to exciton builders.
"""

import numpy as np
from enum import Enum
from typing import Dict, List, Tuple
from dataclasses import dataclass

from .basis import SpeciesBasis


class PolarizationMode(Enum):
    """Spin treatment of the DFT calculation."""
    NONE = "none"
    SPIN_ORBIT = "spin-orbit"
    COLLINEAR_MAGNETIC = "collinear-magnetic"


class SpinChannel(Enum):
    """Spin channel of the Fock matrices currently being read."""
    ALPHA = "alpha"
    BETA = "beta"


@dataclass(frozen=True)
class Motif:
    """
    Atoms of the unit cell.

    Attributes
    ----------
    positions : ndarray of shape (natoms, 3)
        Atomic positions (Angstrom)
    species_ids : ndarray of shape (natoms,)
        Integer species id of each atom, indexing ``species``
    """
    positions: np.ndarray
    species_ids: np.ndarray

    def __len__(self) -> int:
        return len(self.species_ids)


@dataclass(frozen=True)
class ElectronicStructureRecord:
    """
    Tight-binding description of a crystal built from CRYSTAL output.

    Attributes
    ----------
    ndim : int
        Dimensionality (number of periodic directions)
    bravais_lattice : ndarray of shape (ndim, 3)
        Bravais basis vectors
    motif : Motif
        Atomic positions and species ids
    species : list of str
        Species labels, indexed by species id
    bravais_vectors : ndarray of shape (ncells, 3)
        Cartesian translation of each retained cell
    cells : list of tuple
        Integer lattice coefficients of each retained cell
    orbitals : ndarray of shape (nspecies,)
        Orbitals per species (doubled when spin-polarized)
    filling : float
        Number of occupied bands
    total_electrons : int
        Electrons per cell
    core_electrons : int
        Core electrons per cell
    polarization : PolarizationMode
        Spin treatment of the calculation
    basis : dict
        Maps species label -> SpeciesBasis
    overlap : ndarray of shape (ncells, norb, norb)
        Overlap matrices S(R)
    hamiltonian : ndarray of shape (ncells, norb, norb)
        Hamiltonian (Fock) matrices H(R)
    """
    ndim: int
    bravais_lattice: np.ndarray
    motif: Motif
    species: List[str]
    bravais_vectors: np.ndarray
    cells: List[Tuple[int, int, int]]
    orbitals: np.ndarray
    filling: float
    total_electrons: int
    core_electrons: int
    polarization: PolarizationMode
    basis: Dict[str, SpeciesBasis]
    overlap: np.ndarray
    hamiltonian: np.ndarray

    @property
    def natoms(self) -> int:
        return len(self.motif)

    @property
    def nspecies(self) -> int:
        return len(self.species)

    @property
    def ncells(self) -> int:
        return self.hamiltonian.shape[0]

    @property
    def norb(self) -> int:
        """Dimension of each matrix slice."""
        return self.hamiltonian.shape[1]

    @property
    def orbitals_per_atom(self) -> np.ndarray:
        return self.orbitals[self.motif.species_ids]

    @property
    def total_orbitals(self) -> int:
        return int(np.sum(self.orbitals_per_atom))

    @property
    def is_spin_polarized(self) -> bool:
        return self.polarization is not PolarizationMode.NONE


def _format_vector(vector) -> str:
    return " ".join(f"{x:12.6f}" for x in vector)


def print_system_summary(record: ElectronicStructureRecord) -> None:
    """Print the contents of a record."""
    print("\n" + "=" * 70)
    print("Electronic Structure Summary")
    print("=" * 70)
    print(f"Dimension: {record.ndim}")
    print(f"Polarization: {record.polarization.value}")

    print("\nBravais lattice (Angstrom):")
    for vector in record.bravais_lattice:
        print(f"  {_format_vector(vector)}")

    print("\nMotif:")
    for position, species_id in zip(record.motif.positions, record.motif.species_ids):
        print(f"  {record.species[species_id]:<4s} {_format_vector(position)}")

    print("\nOrbitals per species:")
    for label, norb in zip(record.species, record.orbitals):
        shells = ' '.join(record.basis[label].shell_types) if label in record.basis else '-'
        print(f"  {label:<4s} {int(norb):4d}  shells: {shells}")

    print(f"\nFilling: {record.filling}")
    print(f"Electrons per cell: {record.total_electrons} "
          f"(core: {record.core_electrons})")

    print(f"\nUnit cells: {record.ncells}")
    for cell, vector in zip(record.cells, record.bravais_vectors):
        print(f"  {cell}: {_format_vector(vector)}")

    print(f"\nHamiltonian: {record.hamiltonian.shape}")
    print(f"Overlap:     {record.overlap.shape}")
    print("=" * 70)
