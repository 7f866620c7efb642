"""
Basis Module

Reading of the LOCAL ATOMIC FUNCTIONS BASIS SET section: shell types,
Gaussian contraction tables and orbital counts per chemical species.

The basis of a species is printed only for its first atom::

       1 C     0.000   0.000   0.000
                                   1 S
                                       3.048E+03  1.83E-03  0.00E+00  0.00E+00
                                       4.574E+02  1.40E-02  0.00E+00  0.00E+00
                                 2-   5 SP
                                       7.868E+00 -1.19E-01  6.90E-02  0.00E+00
       2 C     1.252   0.723   0.000
       3 N     ...

The number in front of the shell type is the running AO count over all
atoms, so the orbital count of a species is recovered as the difference
with the total accumulated before it.
"""

import re
import numpy as np
from typing import Dict, List
from dataclasses import dataclass, field

from .atoms import AtomCatalog
from .cursor import LineCursor, parse_int, tokenize_floats
from .exceptions import CrystalParseError

BASIS_MARKER = "LOCAL ATOMIC FUNCTIONS BASIS SET"

# "1 S" or the range form "2-   5 SP"
shell_header_pattern = re.compile(
    r'^\s*(?:(\d+)\s*-\s*)?(\d+)\s+([A-Za-z]+)\s*$'
)

# Exponent, s, p and d coefficients
GAUSSIAN_COLUMNS = 4


@dataclass
class SpeciesBasis:
    """
    Atomic basis of one chemical species.

    Attributes
    ----------
    label : str
        Species label
    shell_types : list of str
        Shell type of each shell (S, SP, P, D, ...)
    gaussian_coefficients : list of ndarray
        One (nprimitives, 4) table per shell with columns
        exponent, s, p and d/f coefficients
    norbitals : int
        Number of atomic orbitals of the species
    """
    label: str
    shell_types: List[str] = field(default_factory=list)
    gaussian_coefficients: List[np.ndarray] = field(default_factory=list)
    norbitals: int = 0

    @property
    def nshells(self) -> int:
        return len(self.shell_types)


def read_gaussian_table(cursor: LineCursor) -> np.ndarray:
    """
    Consume the primitive Gaussians following a shell header.

    The table length is not printed, so lines are read while they hold
    exactly four numbers; the first line that does not is pushed back.
    """
    rows = []
    while True:
        line = cursor.readline()
        if line is None:
            break
        values = tokenize_floats(line)
        if values is None or len(values) != GAUSSIAN_COLUMNS:
            cursor.push_back(line)
            break
        rows.append(values)
    return np.array(rows, dtype=np.float64).reshape(-1, GAUSSIAN_COLUMNS)


def _read_shell_header(cursor: LineCursor):
    line = cursor.next_line(marker=BASIS_MARKER, expected="shell header")
    match = shell_header_pattern.match(line)
    if not match:
        raise CrystalParseError(
            f"expected a shell header such as '1 S' or '2- 5 SP', found {line.strip()!r}",
            line_number=cursor.line_number, marker=BASIS_MARKER
        )
    return int(match.group(2)), match.group(3).upper()


def parse_atomic_basis(cursor: LineCursor,
                       atoms: AtomCatalog) -> Dict[str, SpeciesBasis]:
    """
    Read the basis set section for every atom of the cell.

    Parameters
    ----------
    cursor : LineCursor
        Cursor positioned right after the section marker
    atoms : AtomCatalog
        Atom table parsed earlier (species and shell counts)

    Returns
    -------
    dict
        Maps species label -> SpeciesBasis, in first-seen order

    Raises
    ------
    CrystalParseError
        On malformed headers, unknown species or inconsistent AO counts.
    """
    for _ in range(3):
        cursor.next_line(marker=BASIS_MARKER, expected="basis set header")

    basis = {}
    total_orbitals = 0

    for atom_index in range(atoms.natoms):
        line = cursor.next_line(
            marker=BASIS_MARKER,
            expected=f"basis of atom {atom_index + 1} of {atoms.natoms}"
        )
        tokens = line.split()
        if len(tokens) < 2:
            raise CrystalParseError(
                f"expected atom index and species label, found {line.strip()!r}",
                line_number=cursor.line_number, marker=BASIS_MARKER
            )
        parse_int(tokens[0], cursor.line_number, BASIS_MARKER)
        label = tokens[1]

        expected_label = atoms.species[atoms.species_ids[atom_index]]
        if label != expected_label:
            raise CrystalParseError(
                f"atom {atom_index + 1} is {expected_label!r} in the atom table "
                f"but {label!r} in the basis set",
                line_number=cursor.line_number, marker=BASIS_MARKER
            )

        if label in basis:
            # Basis already printed for the first atom of this species
            total_orbitals += basis[label].norbitals
            continue

        species = SpeciesBasis(label=label)
        nshells = atoms.shells_per_species[atoms.species_index[label]]
        cumulative = None
        for _ in range(nshells):
            cumulative, shell_type = _read_shell_header(cursor)
            species.shell_types.append(shell_type)
            species.gaussian_coefficients.append(read_gaussian_table(cursor))

        if cumulative is None or cumulative <= total_orbitals:
            raise CrystalParseError(
                f"species {label!r} ends at AO {cumulative}, not after the "
                f"{total_orbitals} orbitals already counted",
                line_number=cursor.line_number, marker=BASIS_MARKER
            )
        species.norbitals = cumulative - total_orbitals
        total_orbitals = cumulative
        basis[label] = species

    return basis
