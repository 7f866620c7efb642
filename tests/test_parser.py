"""
Integration tests for the CRYSTAL output parser

Tests cover:
- Complete spin-restricted output
- Cell limit filtering
- Polarization markers and unsupported runs
- Settings validation and file input
"""

import sys
import os
import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lcao_exciton.parser import (
    CrystalOutputParser,
    ParserSettings,
    parse_cell_header,
    parse_crystal_output,
    parse_trailing_int,
)
from lcao_exciton.system import PolarizationMode, SpinChannel
from lcao_exciton.exceptions import (
    CrystalParseError,
    TruncatedMatrixError,
    UnsupportedConfigurationError,
)

from crystal_samples import (
    CELLS,
    LATTICE,
    NCORE,
    NELECTRONS,
    NORBITALS,
    build_crystal_output,
    format_blocked_matrix,
    sample_matrices,
)

SOC_BANNER = " SPIN ORBIT COUPLING CALCULATION"


@pytest.fixture(scope="module")
def matrices():
    return sample_matrices()


@pytest.fixture(scope="module")
def sample_lines(matrices):
    return build_crystal_output(matrices['overlap'], matrices['fock'])


class TestHelpers:

    @pytest.mark.parametrize("line, expected", [
        (" OVERLAP MATRIX - CELL N.   1(  0  0  0)", (1, (0, 0, 0))),
        (" FOCK MATRIX - CELL N.  12(  1 -1  0)", (12, (1, -1, 0))),
        (" FOCK MATRIX - CELL N. 103(  1-10  0)", (103, (1, -10, 0))),
    ])
    def test_parse_cell_header(self, line, expected):
        assert parse_cell_header(line, "FOCK MATRIX") == expected

    def test_cell_header_without_coefficients(self):
        with pytest.raises(CrystalParseError, match="CELL N."):
            parse_cell_header(" FOCK MATRIX - CELL", "FOCK MATRIX", 7)

    def test_parse_trailing_int(self):
        line = " NUMBER OF AO                26  EXCHANGE OVERLAP TOL   (T3) 10**    -6"

        assert parse_trailing_int(line, "NUMBER OF AO") == 26

    def test_trailing_int_missing(self):
        with pytest.raises(CrystalParseError, match="expected an integer"):
            parse_trailing_int(" NUMBER OF AO", "NUMBER OF AO")


class TestSettings:

    def test_defaults(self):
        settings = ParserSettings(ncells=3)

        assert settings.threshold == 100.0
        assert settings.center_motif is False

    @pytest.mark.parametrize("kwargs", [
        {'ncells': 0},
        {'ncells': 1, 'threshold': 0.0},
        {'ncells': 1, 'soc_marker': ''},
        {'ncells': 1, 'magnetic_marker': ''},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ParserSettings(**kwargs)


class TestRestrictedOutput:
    """Complete spin-restricted output with five cells."""

    def test_metadata(self, sample_lines):
        record = parse_crystal_output(sample_lines, ncells=len(CELLS))

        assert record.ndim == 2
        np.testing.assert_allclose(record.bravais_lattice, LATTICE[:2])
        assert record.species == ['C', 'H']
        np.testing.assert_array_equal(record.motif.species_ids, [0, 1, 0])
        np.testing.assert_array_equal(record.orbitals, [10, 4])
        assert record.total_orbitals == NORBITALS
        assert record.filling == NELECTRONS / 2
        assert record.total_electrons == NELECTRONS
        assert record.core_electrons == NCORE
        assert record.polarization is PolarizationMode.NONE
        assert not record.is_spin_polarized

    def test_matrices(self, sample_lines, matrices):
        record = parse_crystal_output(sample_lines, ncells=len(CELLS))

        assert record.hamiltonian.shape == (5, NORBITALS, NORBITALS)
        assert record.overlap.shape == (5, NORBITALS, NORBITALS)
        assert record.hamiltonian.dtype == np.complex128
        np.testing.assert_allclose(record.overlap.real, matrices['overlap'], atol=1e-12)
        np.testing.assert_allclose(record.hamiltonian.real, matrices['fock'], atol=1e-12)

    def test_cells(self, sample_lines):
        record = parse_crystal_output(sample_lines, ncells=len(CELLS))

        assert record.cells == [coefficients for _, coefficients in CELLS]
        a1, a2 = np.array(LATTICE[0]), np.array(LATTICE[1])
        np.testing.assert_allclose(record.bravais_vectors, [
            0 * a1, a1, -a1, a2, a1 - a2
        ])

    def test_basis_in_record(self, sample_lines):
        record = parse_crystal_output(sample_lines, ncells=1)

        assert record.basis['C'].shell_types == ['S', 'SP', 'D']
        assert record.basis['H'].norbitals == 4

    def test_center_motif(self, sample_lines):
        record = parse_crystal_output(sample_lines, ncells=1, center_motif=True)

        np.testing.assert_allclose(record.motif.positions[0], [0, 0, 0])
        np.testing.assert_allclose(record.motif.positions[1], [1.25, 0.722, 0.0])

    def test_threshold_changes_dimension(self, sample_lines):
        record = parse_crystal_output(sample_lines, ncells=1, threshold=1000.0)

        assert record.ndim == 3

    def test_later_atom_tables_ignored(self, matrices):
        lines = build_crystal_output(matrices['overlap'], matrices['fock'])
        mulliken = [
            "",
            " MULLIKEN POPULATION ANALYSIS - NO. OF ELECTRONS  14.000000",
            "",
            "  ATOM    Z CHARGE  SHELL POPULATION",
            "   1 C    6  5.912  1.998  2.114  1.800",
        ]
        lines = lines[:-1] + mulliken + lines[-1:]

        record = parse_crystal_output(lines, ncells=len(CELLS))

        np.testing.assert_allclose(record.motif.positions[1], [1.25, 0.722, 0.0])


class TestCellLimit:
    """Cells beyond ncells are read past but not stored."""

    @pytest.mark.parametrize("ncells", [1, 2, 3, 4, 5, 8])
    def test_prefix_kept(self, sample_lines, matrices, ncells):
        record = parse_crystal_output(sample_lines, ncells=ncells)

        kept = min(ncells, len(CELLS))
        assert record.ncells == kept
        assert len(record.bravais_vectors) == kept
        np.testing.assert_allclose(record.overlap.real, matrices['overlap'][:kept], atol=1e-12)
        np.testing.assert_allclose(record.hamiltonian.real, matrices['fock'][:kept], atol=1e-12)

    def test_accepted_cell_after_rejected_one(self):
        cells = [(1, (0, 0, 0)), (4, (0, 1, 0)), (2, (1, 0, 0))]
        data = sample_matrices(cells=cells, seed=7)
        lines = build_crystal_output(data['overlap'], data['fock'], cells=cells)

        record = parse_crystal_output(lines, ncells=2)

        assert record.cells == [(0, 0, 0), (1, 0, 0)]
        np.testing.assert_allclose(record.bravais_vectors[1], LATTICE[0])
        np.testing.assert_allclose(record.overlap[1].real, data['overlap'][2], atol=1e-12)
        np.testing.assert_allclose(record.hamiltonian[1].real, data['fock'][2], atol=1e-12)

    def test_truncated_rejected_cell_still_fails(self, sample_lines):
        lines = sample_lines[:sample_lines.index(
            " OVERLAP MATRIX - CELL N.   5(  1 -1  0)") + 5]

        with pytest.raises(TruncatedMatrixError):
            parse_crystal_output(lines, ncells=1)


class TestPolarization:

    def test_magnetic_marker_sets_mode(self, matrices):
        lines = build_crystal_output(matrices['overlap'], matrices['fock'],
                                     beta=matrices['fock'])

        state = CrystalOutputParser(ParserSettings(ncells=5)).scan(lines)

        assert state.polarization is PolarizationMode.COLLINEAR_MAGNETIC
        assert state.spin is SpinChannel.BETA
        assert len(state.alpha) == 5
        assert len(state.beta) == 5
        assert state.fock == []

    def test_spin_orbit_fock_unsupported(self, matrices):
        lines = build_crystal_output(matrices['overlap'], matrices['fock'],
                                     extra_header=[SOC_BANNER])
        parser = CrystalOutputParser(ParserSettings(ncells=5, soc_marker="SPIN ORBIT"))

        with pytest.raises(UnsupportedConfigurationError, match="spin-orbit"):
            parser.parse(lines)

    def test_spin_orbit_without_fock_unsupported(self, matrices):
        lines = build_crystal_output(matrices['overlap'], extra_header=[SOC_BANNER])
        parser = CrystalOutputParser(ParserSettings(ncells=5, soc_marker="SPIN ORBIT"))

        state = parser.scan(lines)
        assert state.polarization is PolarizationMode.SPIN_ORBIT
        with pytest.raises(UnsupportedConfigurationError):
            parser.parse(lines)

    def test_default_soc_marker_does_not_trigger(self, matrices):
        lines = build_crystal_output(matrices['overlap'], matrices['fock'],
                                     extra_header=[SOC_BANNER])

        record = parse_crystal_output(lines, ncells=5)

        assert record.polarization is PolarizationMode.NONE

    def test_complex_fock_unsupported(self, matrices):
        lines = build_crystal_output(matrices['overlap'], matrices['fock'])
        position = next(i for i, line in enumerate(lines) if "FOCK MATRIX" in line)
        lines[position] = " FOCK MATRIX (REAL PART) - CELL N.   1(  0  0  0)"

        with pytest.raises(UnsupportedConfigurationError, match="complex") as info:
            parse_crystal_output(lines, ncells=5)
        assert info.value.line_number == position + 1

    def test_conflicting_modes(self, matrices):
        lines = build_crystal_output(matrices['overlap'], matrices['fock'],
                                     beta=matrices['fock'], extra_header=[SOC_BANNER])
        parser = CrystalOutputParser(ParserSettings(ncells=5, soc_marker="SPIN ORBIT"))

        with pytest.raises(UnsupportedConfigurationError, match="both"):
            parser.scan(lines)


class TestErrors:

    def test_matrix_before_orbital_count(self):
        lines = [" OVERLAP MATRIX - CELL N.   1(  0  0  0)"] + format_blocked_matrix(np.eye(2))

        with pytest.raises(CrystalParseError, match="must be known"):
            parse_crystal_output(lines, ncells=1)

    def test_basis_before_atoms(self):
        lines = [" LOCAL ATOMIC FUNCTIONS BASIS SET"]

        with pytest.raises(CrystalParseError, match="atom table must precede"):
            parse_crystal_output(lines, ncells=1)

    def test_ao_count_disagrees_with_basis(self):
        data = sample_matrices(n=20, cells=CELLS[:1])
        lines = build_crystal_output(data['overlap'], data['fock'],
                                     cells=CELLS[:1], norbitals=20)

        with pytest.raises(CrystalParseError, match="accounts for 24 orbitals"):
            parse_crystal_output(lines, ncells=1)

    def test_missing_fock_matrices(self, matrices):
        lines = build_crystal_output(matrices['overlap'], matrices['fock'][:4])

        with pytest.raises(CrystalParseError, match="5 overlap but 4 Hamiltonian"):
            parse_crystal_output(lines, ncells=5)

    def test_error_is_value_error(self, sample_lines):
        with pytest.raises(ValueError):
            parse_crystal_output(sample_lines[:-40], ncells=5)


class TestWarnings:

    def test_no_matrices(self, matrices):
        lines = build_crystal_output([], None)

        with pytest.warns(UserWarning, match="No overlap or Fock matrices"):
            record = parse_crystal_output(lines, ncells=1)
        assert record.hamiltonian.shape == (0, NORBITALS, NORBITALS)
        assert record.bravais_vectors.shape == (0, 3)

    def test_no_lattice(self):
        lines = [" N. OF ELECTRONS PER CELL    2"]

        with pytest.warns(UserWarning) as record_warnings:
            record = parse_crystal_output(lines, ncells=1)
        messages = [str(w.message) for w in record_warnings]
        assert any("No direct lattice vectors" in m for m in messages)
        assert any("No atom table" in m for m in messages)
        assert record.ndim == 0
        assert record.filling == 1.0


class TestSources:

    def test_path(self, tmp_path, sample_lines):
        path = tmp_path / "sample.outp"
        path.write_text("\n".join(sample_lines) + "\n")

        record = parse_crystal_output(str(path), ncells=2)

        assert record.ncells == 2
        assert record.ndim == 2

    def test_pathlike(self, tmp_path, sample_lines):
        path = tmp_path / "sample.outp"
        path.write_text("\n".join(sample_lines) + "\n")

        record = parse_crystal_output(path, ncells=1)

        assert record.ncells == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_crystal_output(tmp_path / "missing.outp", ncells=1)

    def test_generator(self, sample_lines):
        record = parse_crystal_output((line for line in sample_lines), ncells=1)

        assert record.ncells == 1


def test_verbose_trace(sample_lines, capsys):
    parse_crystal_output(sample_lines, ncells=2, verbose=True)

    out = capsys.readouterr().out
    assert "Bravais lattice, 2D" in out
    assert "24 atomic orbitals" in out
    assert "basis set (C: 10, H: 4)" in out
    assert "overlap matrix, cell 2 (1, 0, 0)" in out
    assert "cell 5" not in out


def test_quiet_by_default(sample_lines, capsys):
    parse_crystal_output(sample_lines, ncells=2)

    assert capsys.readouterr().out == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
