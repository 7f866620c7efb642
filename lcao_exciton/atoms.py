"""
Atoms Module

Reading of the atom table (one record per atom of the unit cell) into the
motif and the chemical species catalog.

Expected layout after the header line containing ATOM and SHELL::

     *******************************************************************************
       1   6 C    4  0.000E+00  0.000E+00  0.000E+00 ...
       2   7 N    4  1.252E+00  7.230E-01  0.000E+00 ...

Columns: atom index, atomic number, species label, number of shells,
x, y, z. Further columns are ignored.
"""

import numpy as np
from typing import Dict, List
from dataclasses import dataclass

from .cursor import LineCursor, parse_float, parse_int
from .exceptions import CrystalParseError

ATOMS_MARKER = "ATOM/SHELL"


@dataclass
class AtomCatalog:
    """
    Motif and species information of the unit cell.

    Attributes
    ----------
    species : list of str
        Species labels in first-seen order (index = species id)
    species_index : dict
        Maps species label -> species id
    shells_per_species : list of int
        Number of shells of each species
    positions : ndarray of shape (natoms, 3)
        Atomic positions
    species_ids : ndarray of shape (natoms,)
        Integer species id of each atom
    """
    species: List[str]
    species_index: Dict[str, int]
    shells_per_species: List[int]
    positions: np.ndarray
    species_ids: np.ndarray

    @property
    def natoms(self) -> int:
        return len(self.species_ids)

    @property
    def nspecies(self) -> int:
        return len(self.species)


def parse_atoms(cursor: LineCursor, natoms: int,
                center_motif: bool = False) -> AtomCatalog:
    """
    Read ``natoms`` atom records following the ATOM/SHELL header.

    Species ids are assigned in order of first appearance; the order is
    kept (not sorted) since it fixes the column order of every
    species-indexed array built afterwards.

    Parameters
    ----------
    cursor : LineCursor
        Cursor positioned right after the header line
    natoms : int
        Number of atoms per cell, parsed beforehand
    center_motif : bool
        Shift all positions so that the first atom sits at the origin

    Raises
    ------
    CrystalParseError
        If the number of atoms is not known yet or a record is malformed.
    """
    if natoms <= 0:
        raise CrystalParseError(
            "number of atoms per cell must be parsed before the atom table",
            line_number=cursor.line_number, marker=ATOMS_MARKER
        )

    cursor.next_line(marker=ATOMS_MARKER, expected="atom table separator")

    species = []
    species_index = {}
    shells_per_species = []
    positions = np.zeros((natoms, 3))
    species_ids = np.zeros(natoms, dtype=int)

    for i in range(natoms):
        line = cursor.next_line(marker=ATOMS_MARKER,
                                expected=f"atom record {i + 1} of {natoms}")
        tokens = line.split()
        if len(tokens) < 7:
            raise CrystalParseError(
                f"atom record needs 7 columns, found {len(tokens)}: {line.strip()!r}",
                line_number=cursor.line_number, marker=ATOMS_MARKER
            )
        n = cursor.line_number
        parse_int(tokens[0], n, ATOMS_MARKER)
        parse_int(tokens[1], n, ATOMS_MARKER)
        label = tokens[2]
        nshells = parse_int(tokens[3], n, ATOMS_MARKER)

        if label not in species_index:
            species_index[label] = len(species)
            species.append(label)
            shells_per_species.append(nshells)

        positions[i] = [parse_float(tok, n, ATOMS_MARKER) for tok in tokens[4:7]]
        species_ids[i] = species_index[label]

    if center_motif:
        positions = positions - positions[0]

    return AtomCatalog(
        species=species,
        species_index=species_index,
        shells_per_species=shells_per_species,
        positions=positions,
        species_ids=species_ids,
    )
