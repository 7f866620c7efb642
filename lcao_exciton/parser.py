"""
Parser Module for CRYSTAL Output Files

This module drives a single forward pass over a CRYSTAL (.outp) output
stream. Each line is matched against the section markers below and the
corresponding reader consumes the section from the shared line cursor:

    DIRECT LATTICE VECTOR COMPONENTS   -> Bravais lattice and dimension
    N. OF ATOMS PER CELL               -> number of atoms
    NUMBER OF SHELLS                   -> number of shells
    NUMBER OF AO                       -> number of atomic orbitals
    N. OF ELECTRONS PER CELL           -> electrons per cell
    CORE ELECTRONS PER CELL            -> core electrons per cell
    ATOM ... SHELL                     -> atom table (motif, species)
    LOCAL ATOMIC FUNCTIONS BASIS SET   -> basis set per species
    OVERLAP MATRIX - CELL N.           -> overlap matrix of one cell
    FOCK MATRIX - CELL N.              -> Fock matrix of one cell
    UNRESTRICTED OPEN SHELL            -> collinear magnetic calculation
    BETA ... ELECTRONS                 -> following Fock matrices are beta

Markers are expected in the order CRYSTAL prints them. The accumulated
ParserState is folded into an ElectronicStructureRecord by the assembler.
"""

import os
import re
from typing import Callable, Iterable, List, Optional, Tuple, Union
from dataclasses import dataclass

from .assembler import assemble_model
from .atoms import parse_atoms
from .basis import BASIS_MARKER, parse_atomic_basis
from .cursor import LineCursor, parse_int
from .exceptions import CrystalParseError, UnsupportedConfigurationError
from .lattice import (
    DEFAULT_LATTICE_THRESHOLD,
    LATTICE_MARKER,
    cell_translation,
    parse_bravais_lattice,
)
from .matrix import read_blocked_matrix
from .state import ParserState
from .system import ElectronicStructureRecord, PolarizationMode, SpinChannel

# ==============================
# Markers and Patterns
# ==============================

ATOMS_PER_CELL_MARKER = "N. OF ATOMS PER CELL"
SHELLS_MARKER = "NUMBER OF SHELLS"
AO_MARKER = "NUMBER OF AO"
ELECTRONS_MARKER = "N. OF ELECTRONS PER CELL"
CORE_ELECTRONS_MARKER = "CORE ELECTRONS PER CELL"
OVERLAP_MARKER = "OVERLAP MATRIX"
FOCK_MARKER = "FOCK MATRIX"
MAGNETIC_MARKER = "UNRESTRICTED OPEN SHELL"
# Placeholder until the CRYSTAL23 spin-orbit banner is settled;
# override through ParserSettings.soc_marker
SOC_MARKER = "to_be_defined_for_crystal23"

# "CELL N.   3(  1 -1  0)"; I3 fields may touch when negative
cell_header_pattern = re.compile(
    r'CELL\s+N\.\s*(\d+)\s*\(\s*(-?\d+)\s*(-?\d+)\s*(-?\d+)\s*\)'
)
# Complex Fock matrices (non-collinear runs) come in real/imaginary parts
complex_fock_pattern = re.compile(r'FOCK MATRIX\s*\((REAL|IMAG) PART\)')


# ==============================
# Settings
# ==============================

@dataclass
class ParserSettings:
    """
    Options of a CRYSTAL output parse.

    Attributes
    ----------
    ncells : int
        Highest cell number (as printed in the matrix headers) to keep
    threshold : float
        Maximum norm (Angstrom) of a lattice vector counted as periodic
    center_motif : bool
        Shift the motif so that the first atom sits at the origin
    soc_marker : str
        Text identifying a spin-orbit calculation
    magnetic_marker : str
        Text identifying a collinear spin-polarized calculation
    """
    ncells: int
    threshold: float = DEFAULT_LATTICE_THRESHOLD
    center_motif: bool = False
    soc_marker: str = SOC_MARKER
    magnetic_marker: str = MAGNETIC_MARKER

    def __post_init__(self):
        if self.ncells < 1:
            raise ValueError(f"ncells must be at least 1, got {self.ncells}")
        if self.threshold <= 0:
            raise ValueError(f"threshold must be positive, got {self.threshold}")
        if not self.soc_marker or not self.magnetic_marker:
            raise ValueError("Polarization markers cannot be empty")


# ==============================
# Helpers
# ==============================

def parse_trailing_int(line: str, marker: str,
                       line_number: Optional[int] = None) -> int:
    """Integer printed right after ``marker`` on ``line``."""
    tail = line[line.index(marker) + len(marker):].split()
    if not tail:
        raise CrystalParseError(
            f"expected an integer after {marker!r}",
            line_number=line_number, marker=marker
        )
    return parse_int(tail[0], line_number, marker)


def parse_cell_header(line: str, marker: str,
                      line_number: Optional[int] = None) -> Tuple[int, Tuple[int, int, int]]:
    """
    Cell number and lattice coefficients of a matrix header.

    Returns
    -------
    cell_index : int
    coefficients : tuple of 3 ints
    """
    match = cell_header_pattern.search(line)
    if not match:
        raise CrystalParseError(
            f"expected 'CELL N. k( n1 n2 n3)' in {line.strip()!r}",
            line_number=line_number, marker=marker
        )
    cell_index = int(match.group(1))
    coefficients = tuple(int(match.group(j)) for j in range(2, 5))
    return cell_index, coefficients


# ==============================
# Parser
# ==============================

class CrystalOutputParser:
    """
    Single-pass reader of CRYSTAL output files.

    Parameters
    ----------
    settings : ParserSettings
        Cell limit, lattice threshold and markers
    verbose : bool
        Print a trace of the sections found

    Examples
    --------
    >>> parser = CrystalOutputParser(ParserSettings(ncells=7))
    >>> with open('hBN.outp') as f:
    ...     record = parser.parse(f)
    >>> record.hamiltonian.shape
    (7, 26, 26)
    """

    def __init__(self, settings: ParserSettings, verbose: bool = False):
        self.settings = settings
        self.verbose = verbose

        # First matching marker wins
        self._handlers: List[Tuple[Callable[[str], bool], Callable]] = [
            (lambda line: LATTICE_MARKER in line, self._handle_lattice),
            (lambda line: ATOMS_PER_CELL_MARKER in line, self._handle_natoms),
            (lambda line: SHELLS_MARKER in line, self._handle_nshells),
            (lambda line: AO_MARKER in line, self._handle_norbitals),
            (lambda line: ELECTRONS_MARKER in line, self._handle_electrons),
            (lambda line: CORE_ELECTRONS_MARKER in line, self._handle_core_electrons),
            (lambda line: "ATOM" in line and "SHELL" in line, self._handle_atoms),
            (lambda line: BASIS_MARKER in line, self._handle_basis),
            (lambda line: OVERLAP_MARKER in line, self._handle_overlap),
            (lambda line: FOCK_MARKER in line, self._handle_fock),
            (lambda line: settings.soc_marker in line, self._handle_soc),
            (lambda line: settings.magnetic_marker in line, self._handle_magnetic),
            (lambda line: "BETA" in line and "ELECTRONS" in line, self._handle_beta),
        ]

    def parse(self, lines: Iterable[str]) -> ElectronicStructureRecord:
        """Scan ``lines`` and assemble the electronic structure record."""
        state = self.scan(lines)
        return assemble_model(state)

    def scan(self, lines: Iterable[str]) -> ParserState:
        """
        Scan ``lines`` and return the raw accumulated state.

        Raises
        ------
        CrystalParseError
            On malformed or truncated sections.
        UnsupportedConfigurationError
            On spin-orbit output.
        """
        cursor = LineCursor(lines)
        state = ParserState()

        for line in cursor:
            for matches, handler in self._handlers:
                if matches(line):
                    handler(line, cursor, state)
                    break

        return state

    def _trace(self, cursor: LineCursor, message: str) -> None:
        if self.verbose:
            print(f"  line {cursor.line_number:>7d}: {message}")

    # ------------------------------
    # Section handlers
    # ------------------------------

    def _handle_lattice(self, line, cursor, state):
        state.lattice, state.ndim = parse_bravais_lattice(cursor, self.settings.threshold)
        state.lattice_found = True
        self._trace(cursor, f"Bravais lattice, {state.ndim}D")

    def _handle_natoms(self, line, cursor, state):
        state.natoms = parse_trailing_int(line, ATOMS_PER_CELL_MARKER, cursor.line_number)
        self._trace(cursor, f"{state.natoms} atoms per cell")

    def _handle_nshells(self, line, cursor, state):
        state.nshells = parse_trailing_int(line, SHELLS_MARKER, cursor.line_number)
        self._trace(cursor, f"{state.nshells} shells")

    def _handle_norbitals(self, line, cursor, state):
        state.norbitals = parse_trailing_int(line, AO_MARKER, cursor.line_number)
        self._trace(cursor, f"{state.norbitals} atomic orbitals")

    def _handle_electrons(self, line, cursor, state):
        state.total_electrons = parse_trailing_int(line, ELECTRONS_MARKER, cursor.line_number)
        self._trace(cursor, f"{state.total_electrons} electrons per cell")

    def _handle_core_electrons(self, line, cursor, state):
        state.core_electrons = parse_trailing_int(line, CORE_ELECTRONS_MARKER, cursor.line_number)
        self._trace(cursor, f"{state.core_electrons} core electrons per cell")

    def _handle_atoms(self, line, cursor, state):
        # Later ATOM/SHELL tables (Mulliken populations) are not atom records
        if state.atoms is not None:
            return
        state.atoms = parse_atoms(cursor, state.natoms, self.settings.center_motif)
        self._trace(cursor, f"motif with species {', '.join(state.atoms.species)}")

    def _handle_basis(self, line, cursor, state):
        if state.atoms is None:
            raise CrystalParseError(
                "atom table must precede the basis set",
                line_number=cursor.line_number, marker=BASIS_MARKER
            )
        state.basis = parse_atomic_basis(cursor, state.atoms)
        counts = ', '.join(f"{label}: {b.norbitals}" for label, b in state.basis.items())
        self._trace(cursor, f"basis set ({counts})")

    def _handle_overlap(self, line, cursor, state):
        context = line.strip()
        cell_index, coefficients = parse_cell_header(line, OVERLAP_MARKER, cursor.line_number)
        matrix = read_blocked_matrix(cursor, state.norbitals, context)

        if cell_index > self.settings.ncells:
            return
        state.cells.append(coefficients)
        state.bravais_vectors.append(cell_translation(state.lattice, coefficients))
        state.overlap.append(matrix)
        self._trace(cursor, f"overlap matrix, cell {cell_index} {coefficients}")

    def _handle_fock(self, line, cursor, state):
        context = line.strip()
        if complex_fock_pattern.search(line):
            raise UnsupportedConfigurationError(
                "complex (spin-orbit) Fock matrices are not supported yet",
                line_number=cursor.line_number, marker=FOCK_MARKER
            )
        if state.polarization is PolarizationMode.SPIN_ORBIT:
            raise UnsupportedConfigurationError(
                "Hamiltonian construction for spin-orbit calculations is not supported yet",
                line_number=cursor.line_number, marker=FOCK_MARKER
            )

        cell_index, coefficients = parse_cell_header(line, FOCK_MARKER, cursor.line_number)
        matrix = read_blocked_matrix(cursor, state.norbitals, context)

        if cell_index > self.settings.ncells:
            return
        if state.polarization is PolarizationMode.COLLINEAR_MAGNETIC:
            if state.spin is SpinChannel.ALPHA:
                state.alpha.append(matrix)
            else:
                state.beta.append(matrix)
            channel = state.spin.value
        else:
            state.fock.append(matrix)
            channel = "spin-restricted"
        self._trace(cursor, f"Fock matrix ({channel}), cell {cell_index} {coefficients}")

    def _handle_soc(self, line, cursor, state):
        state.set_polarization(PolarizationMode.SPIN_ORBIT, cursor.line_number)
        self._trace(cursor, "spin-orbit calculation")

    def _handle_magnetic(self, line, cursor, state):
        state.set_polarization(PolarizationMode.COLLINEAR_MAGNETIC, cursor.line_number)
        self._trace(cursor, "collinear magnetic calculation")

    def _handle_beta(self, line, cursor, state):
        state.spin = SpinChannel.BETA
        self._trace(cursor, "beta spin channel")


# ==============================
# Entry Point
# ==============================

def parse_crystal_output(
    source: Union[str, os.PathLike, Iterable[str]],
    ncells: int,
    threshold: float = DEFAULT_LATTICE_THRESHOLD,
    center_motif: bool = False,
    verbose: bool = False
) -> ElectronicStructureRecord:
    """
    Build the electronic structure record of a CRYSTAL calculation.

    Parameters
    ----------
    source : str, path-like or iterable of str
        Path to the .outp file, or its lines
    ncells : int
        Number of unit cells (cell numbers 1..ncells) to keep
    threshold : float
        Maximum norm of a lattice vector counted as periodic (Angstrom)
    center_motif : bool
        Shift the motif so that the first atom sits at the origin
    verbose : bool
        Print a trace of the sections found

    Returns
    -------
    ElectronicStructureRecord

    Examples
    --------
    >>> record = parse_crystal_output('hBN.outp', ncells=7)
    >>> record.ndim, record.filling
    (2, 4.0)
    """
    settings = ParserSettings(ncells=ncells, threshold=threshold,
                              center_motif=center_motif)
    parser = CrystalOutputParser(settings, verbose=verbose)

    if isinstance(source, (str, os.PathLike)):
        if verbose:
            print(f"Parsing CRYSTAL output file: {source}")
        with open(source, 'r') as f:
            return parser.parse(f)
    return parser.parse(source)
