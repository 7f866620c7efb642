"""
Command Line Interface

Reads a CRYSTAL output file and prints the extracted electronic
structure:

    crystal2exciton hBN.outp --ncells 7 --verbose
"""

import os
import sys
import argparse
from typing import List, Optional

from .lattice import DEFAULT_LATTICE_THRESHOLD
from .parser import parse_crystal_output
from .system import print_system_summary
from .utils import check_matrix_consistency, print_matrix_summary


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='crystal2exciton',
        description='Extract the tight-binding model of a CRYSTAL calculation'
    )
    parser.add_argument(
        'crystal_file',
        help='Path to CRYSTAL output file'
    )
    parser.add_argument(
        '--ncells',
        type=int,
        default=1,
        help='Number of unit cells to keep (default: 1)'
    )
    parser.add_argument(
        '--threshold',
        type=float,
        default=DEFAULT_LATTICE_THRESHOLD,
        help=f'Maximum norm of a periodic lattice vector in Angstrom '
             f'(default: {DEFAULT_LATTICE_THRESHOLD})'
    )
    parser.add_argument(
        '--center-motif',
        action='store_true',
        help='Place the first atom at the origin'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Print the sections found while parsing'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the ``crystal2exciton`` script."""
    args = build_argument_parser().parse_args(argv)

    if not os.path.exists(args.crystal_file):
        print(f"Error: File '{args.crystal_file}' not found!")
        return 1

    try:
        record = parse_crystal_output(
            args.crystal_file,
            ncells=args.ncells,
            threshold=args.threshold,
            center_motif=args.center_motif,
            verbose=args.verbose
        )
    except ValueError as e:
        print(f"\nError: {e}")
        return 1

    print_system_summary(record)
    if args.verbose:
        print_matrix_summary(record)
    if not check_matrix_consistency(record):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
