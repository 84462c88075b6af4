import numpy as np
import pytest

from tbexciton.gtf import GTFConfiguration, fortran_float


def _outp(atoms):
    lines = [
        " DIRECT LATTICE VECTOR COMPONENTS (ANGSTROM)",
        "   2.000   0.000   0.000",
        "   0.000 500.000   0.000",
        "   0.000   0.000 500.000",
        f" N. OF ATOMS PER CELL   {len(atoms)}",
        " NUMBER OF SHELLS   2",
        " NUMBER OF AO   1",
        " N. OF ELECTRONS PER CELL   2",
        "   ATOM  AT.N.  SHELL   X   Y   Z",
        " ****",
    ]
    for index, (number, species) in enumerate(atoms, start=1):
        lines.append(f"  {index}  {number} {species}  1  {0.5 * index}  0.0  0.0")
    lines += [
        " OVERLAP MATRIX - CELL N.   1(  0  0  0)",
        "",
        "        1",
        "    1   1.0000E+00",
        " OVERLAP MATRIX - CELL N.   2(  1  0  0)",
        "",
        "        1",
        "    1   2.0000E-01",
    ]
    return "\n".join(lines) + "\n"


BASES = """SCF BASIS
6 2
0 0 2 2.0 1.0
1.0D+01 5.0D-01
2.0D+00 5.0D-01
0 1 1 4.0 1.0
0.5 0.3 0.4
AUXILIARY BASIS
6 1
0 3 1 0.0 1.0
1.5 1.0
"""


@pytest.fixture
def files(tmp_path):
    outp = tmp_path / "system.outp"
    outp.write_text(_outp([(6, "C")]))
    bases = tmp_path / "bases.txt"
    bases.write_text(BASES)
    return bases, outp


def test_fortran_float():
    assert fortran_float("1.0D+01") == pytest.approx(10.0)
    assert fortran_float("2.5E-01") == pytest.approx(0.25)
    assert fortran_float("0.5") == pytest.approx(0.5)


def test_scf_basis(files):
    bases, outp = files
    config = GTFConfiguration(bases, outp, 2)
    scf = config.scf_basis
    assert scf.nshells == [3]
    assert scf.angular_momenta == [[0, 0, 1]]
    assert scf.n_gaussians == [[2, 1, 1]]
    assert scf.shells[0][0] == pytest.approx([10.0, 0.5, 2.0, 0.5])
    assert scf.shells[0][1] == pytest.approx([0.5, 0.3])
    assert scf.shells[0][2] == pytest.approx([0.5, 0.4])


def test_auxiliary_basis(files):
    bases, outp = files
    config = GTFConfiguration(bases, outp, 2)
    aux = config.aux_basis
    assert aux.nshells == [1]
    assert aux.angular_momenta == [[2]]
    assert aux.shells[0][0] == pytest.approx([1.5, 1.0])


def test_rlist_from_cells(files):
    bases, outp = files
    assert np.allclose(GTFConfiguration(bases, outp, 2).rlist, [[0.0, 2.0]])
    assert np.allclose(GTFConfiguration(bases, outp, 1).rlist, [[0.0]])


def test_species_reordered(tmp_path):
    outp = tmp_path / "system.outp"
    outp.write_text(_outp([(6, "C"), (8, "O")]))
    bases = tmp_path / "bases.txt"
    bases.write_text(
        "SCF BASIS\n8 1\n0 0 1 2.0 1.0\n7.0 1.0\n6 1\n0 3 1 2.0 1.0\n3.0 1.0\n"
        "AUXILIARY BASIS\n6 1\n0 0 1 0.0 1.0\n1.0 1.0\n8 1\n0 0 1 0.0 1.0\n2.0 1.0\n"
    )
    config = GTFConfiguration(bases, outp, 1)
    assert config.scf_basis.angular_momenta == [[2], [0]]
    assert config.scf_basis.shells[1][0] == pytest.approx([7.0, 1.0])
    assert config.aux_basis.shells[0][0] == pytest.approx([1.0, 1.0])


def test_pseudopotential_skipped(tmp_path):
    outp = tmp_path / "system.outp"
    outp.write_text(_outp([(6, "C")]))
    bases = tmp_path / "bases.txt"
    bases.write_text(
        "SCF BASIS\n206 1\nINPUT\n4.0 1 0 0 0 0 0\n1.0 2.0 3\n0 0 1 2.0 1.0\n3.0 1.0\n"
        "AUXILIARY BASIS\n6 1\n0 0 1 0.0 1.0\n1.0 1.0\n"
    )
    config = GTFConfiguration(bases, outp, 1)
    assert config.scf_basis.shells == [[[3.0, 1.0]]]


def test_bad_scale_rejected(files, tmp_path):
    _, outp = files
    bases = tmp_path / "bad.txt"
    bases.write_text(BASES.replace("0 3 1 0.0 1.0", "0 3 1 0.0 2.0"))
    with pytest.raises(ValueError):
        GTFConfiguration(bases, outp, 1)


def test_missing_auxiliary_basis(files, tmp_path):
    _, outp = files
    bases = tmp_path / "bad.txt"
    bases.write_text(BASES.split("AUXILIARY BASIS")[0])
    with pytest.raises(ValueError):
        GTFConfiguration(bases, outp, 1)


def test_unknown_atomic_number(files, tmp_path):
    _, outp = files
    bases = tmp_path / "bad.txt"
    bases.write_text(BASES.replace("6 2", "8 2"))
    with pytest.raises(ValueError):
        GTFConfiguration(bases, outp, 1)


def test_missing_bases_file(files, tmp_path):
    _, outp = files
    with pytest.raises(FileNotFoundError):
        GTFConfiguration(tmp_path / "absent.txt", outp, 1)