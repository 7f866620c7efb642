"""
Basic Usage Example for LCAO-Exciton Package

Parses a minimal CRYSTAL-like output (a hydrogen chain with one s orbital
per atom) and prints the resulting tight-binding model.
"""

import sys
import os

# Add parent directory to path for development
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lcao_exciton import parse_crystal_output, print_system_summary
from lcao_exciton.utils import to_real_space_matrices

HYDROGEN_CHAIN = """\
 DIRECT LATTICE VECTOR COMPONENTS (ANGSTROM)
        2.000000     0.000000     0.000000
        0.000000   500.000000     0.000000
        0.000000     0.000000   500.000000

 N. OF ATOMS PER CELL         1  COULOMB OVERLAP TOL         (T1) 10**    -6
 NUMBER OF SHELLS             1  COULOMB PENETRATION TOL     (T2) 10**    -6
 NUMBER OF AO                 1  EXCHANGE OVERLAP TOL        (T3) 10**    -6
 N. OF ELECTRONS PER CELL     1  EXCHANGE PSEUDO OVP (F(G))  (T4) 10**    -6
 CORE ELECTRONS PER CELL      0  EXCHANGE PSEUDO OVP (P(G))  (T5) 10**   -12

   ATOM  N.AT.  SHELL    X(A)      Y(A)      Z(A)      EXAD       N.ELECT.
 *******************************************************************************
   1   1 H    1  0.000E+00  0.000E+00  0.000E+00  0.000E+00     1.000

 *******************************************************************************
 LOCAL ATOMIC FUNCTIONS BASIS SET
 *******************************************************************************
   ATOM   X(AU)   Y(AU)   Z(AU)  N. TYPE  EXPONENT  S COEF   P COEF   D/F/G COEF
 *******************************************************************************
   1 H     0.000   0.000   0.000
                                   1 S
                                         1.873E+01  3.349E-02  0.000E+00  0.000E+00
                                         2.825E+00  2.347E-01  0.000E+00  0.000E+00
 *******************************************************************************

 OVERLAP MATRIX - CELL N.   1(  0  0  0)

                1

   1    1.0000000E+00

 OVERLAP MATRIX - CELL N.   2(  1  0  0)

                1

   1    2.1500000E-01

 OVERLAP MATRIX - CELL N.   3( -1  0  0)

                1

   1    2.1500000E-01

 FOCK MATRIX - CELL N.   1(  0  0  0)

                1

   1   -4.8200000E-01

 FOCK MATRIX - CELL N.   2(  1  0  0)

                1

   1   -2.6400000E-01

 FOCK MATRIX - CELL N.   3( -1  0  0)

                1

   1   -2.6400000E-01
"""


def main():
    """Main execution function."""
    print("=" * 70)
    print("BASIC USAGE EXAMPLE - LCAO-EXCITON PACKAGE")
    print("=" * 70)

    print("\nStep 1: Parsing the output...")
    record = parse_crystal_output(HYDROGEN_CHAIN.splitlines(), ncells=3, verbose=True)
    print(f"  ✓ {record.ndim}D system with {record.ncells} unit cells")

    print("\nStep 2: Inspecting the model...")
    print_system_summary(record)

    print("\nStep 3: Real-space matrices for a tight-binding code...")
    for R, blocks in to_real_space_matrices(record).items():
        print(f"  R = {R}: H = {blocks['H'][0, 0].real:+.4f}  S = {blocks['S'][0, 0].real:.4f}")


if __name__ == "__main__":
    main()
