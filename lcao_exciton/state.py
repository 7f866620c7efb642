"""
Parser State Module

Accumulators of a single pass over a CRYSTAL output stream. One
ParserState is created per parse and handed from section to section;
nothing is shared between runs.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from .atoms import AtomCatalog
from .basis import SpeciesBasis
from .exceptions import UnsupportedConfigurationError
from .system import PolarizationMode, SpinChannel


@dataclass
class ParserState:
    """
    Everything collected while scanning the stream.

    Matrix lists hold one (norbitals, norbitals) array per accepted cell,
    in reading order. ``cells`` and ``bravais_vectors`` follow the overlap
    matrices, which CRYSTAL prints before the Fock matrices.
    """
    lattice: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    ndim: int = 0
    lattice_found: bool = False

    natoms: int = 0
    nshells: int = 0
    norbitals: int = 0
    total_electrons: int = 0
    core_electrons: int = 0

    atoms: Optional[AtomCatalog] = None
    basis: Dict[str, SpeciesBasis] = field(default_factory=dict)

    cells: List[Tuple[int, int, int]] = field(default_factory=list)
    bravais_vectors: List[np.ndarray] = field(default_factory=list)
    overlap: List[np.ndarray] = field(default_factory=list)
    fock: List[np.ndarray] = field(default_factory=list)
    alpha: List[np.ndarray] = field(default_factory=list)
    beta: List[np.ndarray] = field(default_factory=list)

    polarization: PolarizationMode = PolarizationMode.NONE
    spin: SpinChannel = SpinChannel.ALPHA

    def set_polarization(self, mode: PolarizationMode,
                         line_number: Optional[int] = None) -> None:
        """Fix the polarization mode; a different second mode is an error."""
        if self.polarization not in (PolarizationMode.NONE, mode):
            raise UnsupportedConfigurationError(
                f"output declares both {self.polarization.value} and "
                f"{mode.value} polarization",
                line_number=line_number
            )
        self.polarization = mode
