import numpy as np
import pytest

from tbexciton.biribbon import BiRibbon, matrix_with_spin


@pytest.fixture(scope="module")
def ribbon():
    return BiRibbon(3, "z")


def test_dimensions(ribbon):
    nsites = 2 * (ribbon.n + 1)
    assert ribbon.motif.shape == (nsites, 4)
    assert ribbon.natoms == nsites
    assert ribbon.basisdim == 8 * nsites
    assert ribbon.hamiltonian_matrices.shape == (3, 8 * nsites, 8 * nsites)
    assert ribbon.filling == ribbon.natoms * ribbon.filling_per_atom
    assert ribbon.fermi_level == ribbon.filling - 1


def test_too_narrow_ribbon_rejected():
    with pytest.raises(ValueError):
        BiRibbon(1)


def test_unit_cells_are_opposite(ribbon):
    cells = ribbon.unit_cell_list
    assert np.allclose(cells[0], 0.0)
    assert np.allclose(cells[1], ribbon.bravais_lattice[0])
    assert np.allclose(cells[2], -cells[1])


@pytest.mark.parametrize("axis", ["x", "y", "z"])
def test_hamiltonian_hermitian(axis):
    model = BiRibbon(2, axis)
    h = model.hamiltonian_matrices
    assert np.allclose(h[0], h[0].conj().T)
    assert np.allclose(h[2], h[1].conj().T)


def test_onsite_diagonal_without_zeeman():
    model = BiRibbon(2, "none")
    diagonal = np.diag(model.hamiltonian_matrices[0])
    expected = np.tile([model.es, model.es] + [model.ep] * 6, model.natoms)
    assert np.allclose(diagonal, expected)


def test_zeeman_z_splits_spin():
    with_field = BiRibbon(2, "z")
    without = BiRibbon(2, "none")
    difference = with_field.hamiltonian_matrices[0] - without.hamiltonian_matrices[0]
    expected = np.diag(np.tile([1e-7, -1e-7], 4 * with_field.natoms))
    assert np.allclose(difference, expected, atol=1e-15)


def test_matrix_with_spin():
    assert np.array_equal(matrix_with_spin(np.eye(4)), np.eye(8))
    doubled = matrix_with_spin([[3.0]])
    assert np.array_equal(doubled, 3.0 * np.eye(2))


def test_tightbinding_matrix_structure(ribbon):
    hopping = ribbon.tightbinding_matrix(ribbon.n3)
    assert hopping.shape == (8, 8)
    assert hopping[0, 0] == pytest.approx(ribbon.vsss)
    assert hopping[0, 2] == pytest.approx(-hopping[2, 0])
    # no spin flip
    assert np.allclose(hopping[0::2, 1::2], 0.0)
    # p-p block symmetric
    assert np.allclose(hopping[2:, 2:], hopping[2:, 2:].T)


def test_inversion_is_involution(ribbon):
    rng = np.random.default_rng(1)
    state = rng.normal(size=ribbon.basisdim) + 1j * rng.normal(size=ribbon.basisdim)
    twice = ribbon.inversion_operator(ribbon.inversion_operator(state))
    assert np.allclose(twice, state)


def test_electric_field_zero_is_noop():
    model = BiRibbon(2)
    before = model.hamiltonian_matrices.copy()
    model.apply_electric_field(0.0)
    assert np.allclose(model.hamiltonian_matrices, before)


def test_electric_field_follows_x():
    model = BiRibbon(2)
    before = model.hamiltonian_matrices[0].copy()
    model.apply_electric_field(0.5)
    difference = np.diag(model.hamiltonian_matrices[0] - before).real
    assert np.allclose(difference, np.repeat(model.motif[:, 0], 8) * 0.5)


def test_offset_edges():
    model = BiRibbon(2)
    before = model.hamiltonian_matrices[0].copy()
    model.offset_edges(0.2)
    difference = np.diag(model.hamiltonian_matrices[0] - before).real
    assert np.allclose(difference[:16], 0.2)
    assert np.allclose(difference[16:], 0.0)


def test_add_substrate_even_atoms():
    model = BiRibbon(2)
    before = model.hamiltonian_matrices[0].copy()
    model.add_substrate(0.3)
    difference = np.diag(model.hamiltonian_matrices[0] - before).real.reshape(model.natoms, 8)
    assert np.allclose(difference[0::2], 0.3)
    assert np.allclose(difference[1::2], 0.0)