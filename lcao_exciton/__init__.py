"""
LCAO-to-Exciton Package

A Python package for building exciton-ready tight-binding models from
CRYSTAL (LCAO/DFT) output files.

Main Components
---------------
parse_crystal_output : function
    Read a CRYSTAL .outp file into an ElectronicStructureRecord
CrystalOutputParser : class
    Single-pass parser with configurable ParserSettings
ElectronicStructureRecord : class
    Lattice, motif, orbitals, filling and per-cell H(R), S(R) stacks

Section Readers
---------------
parse_bravais_lattice, extract_dimension, cell_translation
parse_atoms
parse_atomic_basis
read_blocked_matrix

Example
-------
>>> from lcao_exciton import parse_crystal_output
>>> from lcao_exciton.utils import to_real_space_matrices
>>>
>>> record = parse_crystal_output('hBN.outp', ncells=7)
>>> print(record.ndim, record.filling, record.orbitals)
>>> matrices = to_real_space_matrices(record)
>>> H0 = matrices[(0, 0, 0)]['H']
"""

__version__ = "1.0.0"

# Parser
from .parser import (
    CrystalOutputParser,
    ParserSettings,
    parse_crystal_output,
    parse_cell_header,
)

# Data model
from .system import (
    ElectronicStructureRecord,
    Motif,
    PolarizationMode,
    SpinChannel,
    print_system_summary,
)
from .state import ParserState
from .assembler import assemble_model, combine_spin_channels, expand_overlap

# Section readers
from .cursor import LineCursor
from .lattice import (
    DEFAULT_LATTICE_THRESHOLD,
    parse_bravais_lattice,
    extract_dimension,
    cell_translation,
)
from .atoms import AtomCatalog, parse_atoms
from .basis import SpeciesBasis, parse_atomic_basis
from .matrix import read_blocked_matrix

# Errors
from .exceptions import (
    CrystalParseError,
    TruncatedInputError,
    TruncatedMatrixError,
    UnsupportedConfigurationError,
)

# Utility functions
from .utils import (
    to_real_space_matrices,
    get_cell_index,
    check_matrix_consistency,
    print_matrix_summary,
)

# Public API
__all__ = [
    # Parser
    'CrystalOutputParser',
    'ParserSettings',
    'parse_crystal_output',
    'parse_cell_header',

    # Data model
    'ElectronicStructureRecord',
    'Motif',
    'PolarizationMode',
    'SpinChannel',
    'ParserState',
    'print_system_summary',
    'assemble_model',
    'combine_spin_channels',
    'expand_overlap',

    # Section readers
    'LineCursor',
    'DEFAULT_LATTICE_THRESHOLD',
    'parse_bravais_lattice',
    'extract_dimension',
    'cell_translation',
    'AtomCatalog',
    'parse_atoms',
    'SpeciesBasis',
    'parse_atomic_basis',
    'read_blocked_matrix',

    # Errors
    'CrystalParseError',
    'TruncatedInputError',
    'TruncatedMatrixError',
    'UnsupportedConfigurationError',

    # Utils
    'to_real_space_matrices',
    'get_cell_index',
    'check_matrix_consistency',
    'print_matrix_summary',
]
