"""Crystal lattices, Brillouin zone meshes and supercells."""

from __future__ import annotations

import math

import numpy as np

PI = 3.141592653589793


def generate_combinations(nvalues: int, ndim: int, centered: bool = False) -> np.ndarray:
    """List the integer coefficients of combinations of Bravais vectors.

    Row ``i`` holds the coefficients of one combination; the first column
    varies fastest. With ``centered`` the values are shifted by
    ``nvalues // 2`` so they surround the origin cell.
    """
    shift = nvalues // 2 if centered else 0
    index = np.arange(nvalues**ndim)
    columns = [(index // nvalues**n) % nvalues - shift for n in range(ndim)]
    if not columns:
        return np.zeros((index.size, 0))
    return np.column_stack(columns).astype(float)


def reciprocal_lattice(bravais_lattice, ndim: int) -> np.ndarray:
    """Reciprocal basis vectors (rows, 3 components) with a_i . b_j = 2 pi delta_ij."""
    bravais = np.atleast_2d(np.asarray(bravais_lattice, dtype=float))
    if ndim == 1:
        return 2.0 * PI * bravais[:1] / np.linalg.norm(bravais[0]) ** 2
    coefficients = bravais[:ndim, :ndim]
    try:
        solution = np.linalg.solve(coefficients, 2.0 * PI * np.eye(ndim))
    except np.linalg.LinAlgError as error:
        raise ValueError("Failed to obtain reciprocal lattice vectors") from error
    reciprocal = np.zeros((ndim, 3))
    reciprocal[:, :ndim] = solution.T
    return reciprocal


def rotate_c3(position) -> np.ndarray:
    """Rotate a vector by the inverse of a 2 pi / 3 rotation around z."""
    theta = 2.0 * PI / 3.0
    rotation = np.array(
        [
            [math.cos(theta), -math.sin(theta), 0.0],
            [math.sin(theta), math.cos(theta), 0.0],
            [0.0, 0.0, 1.0],
        ]
    )
    return np.linalg.inv(rotation) @ np.asarray(position, dtype=float)


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


class Lattice:
    """A Bravais lattice with a motif, its reciprocal lattice and k-point meshes."""

    def __init__(self, ndim, bravais_lattice, motif, unit_cell_list=None):
        self.ndim = int(ndim)
        self.bravais_lattice = np.atleast_2d(np.asarray(bravais_lattice, dtype=float))
        self.motif = np.atleast_2d(np.asarray(motif, dtype=float))
        if unit_cell_list is None:
            unit_cell_list = np.zeros((1, 3))
        self.unit_cell_list = np.atleast_2d(np.asarray(unit_cell_list, dtype=float))
        if self.motif.size == 0 or self.bravais_lattice.size == 0:
            raise ValueError("Can not obtain lattice parameters (no Bravais lattice or motif)")

        self.natoms = self.motif.shape[0]
        self.ncells = self.unit_cell_list.shape[0]
        self.nk = 0
        self.factor = 1
        self.kpoints = np.zeros((0, 3))
        self.mesh_bz = np.zeros((0, 3))
        self._inverse_reciprocal_matrix: np.ndarray | None = None

        self.reciprocal_lattice = reciprocal_lattice(self.bravais_lattice, self.ndim)
        self.a = float(np.linalg.norm(self.bravais_lattice[0]))
        heights = np.abs(self.motif[:, 2] - self.motif[0, 2])
        c = float(heights.max())
        self.c = c if c != 0 else 1.0
        self.unit_cell_area = self._unit_cell_area()

    def _unit_cell_area(self) -> float:
        """Length, area or volume of the unit cell depending on the dimension."""
        lattice = self.bravais_lattice
        if self.ndim == 1:
            return float(np.linalg.norm(lattice[0]))
        if self.ndim == 2:
            return float(np.linalg.norm(np.cross(lattice[0], lattice[1])))
        if self.ndim == 3:
            return float(np.dot(np.cross(lattice[0], lattice[1]), lattice[2]))
        return 0.0

    def _mesh(self, n: int, scale: int) -> np.ndarray:
        combinations = generate_combinations(n, self.ndim)
        if n % 2 == 1:
            combinations = combinations + 0.5
        weights = (2.0 * combinations - n) / (2.0 * n * scale)
        return weights @ self.reciprocal_lattice[: self.ndim]

    def brillouin_zone_mesh(self, n: int) -> np.ndarray:
        """Monkhorst-Pack mesh of the first Brillouin zone, centered at Gamma."""
        kpoints = self._mesh(n, 1)
        self.kpoints = kpoints
        self.mesh_bz = kpoints.copy()
        self.nk = kpoints.shape[0]
        return self.kpoints

    def reduced_brillouin_zone_mesh(self, n: int, factor: int) -> np.ndarray:
        """Mesh of n points per axis around Gamma, taken from a full mesh of n*factor points."""
        self.brillouin_zone_mesh(n * factor)
        self.kpoints = self._mesh(n, factor)
        self.nk = self.kpoints.shape[0]
        self.factor = factor
        return self.kpoints

    def shift_bz(self, shift) -> np.ndarray:
        """Displace every k point of the mesh by a 3d vector."""
        shift = np.asarray(shift, dtype=float).ravel()
        if shift.size != 3:
            raise ValueError("shift vector must be 3d")
        if self.kpoints.size == 0:
            raise RuntimeError("kpoints must be initialized before shifting the mesh")
        self.kpoints = self.kpoints + shift
        return self.kpoints

    @property
    def inverse_reciprocal_matrix(self) -> np.ndarray:
        """Inverse of R R^T, R holding the reciprocal vectors as rows."""
        if self._inverse_reciprocal_matrix is None:
            coefs = self.reciprocal_lattice @ self.reciprocal_lattice.T
            try:
                self._inverse_reciprocal_matrix = np.linalg.inv(coefs)
            except np.linalg.LinAlgError as error:
                raise ValueError("Unable to compute inverse reciprocal coefficients") from error
        return self._inverse_reciprocal_matrix

    def find_equivalent_point_bz(self, kpoint, ncell: int) -> int:
        """Index in the full mesh of the point equivalent to ``kpoint`` up to a reciprocal vector."""
        ncell = ncell * self.factor
        independent = self.reciprocal_lattice @ np.asarray(kpoint, dtype=float).ravel()
        coefs = self.inverse_reciprocal_matrix @ independent * 2 * ncell
        if ncell % 2 == 1:
            coefs = coefs - 1
        coefs = _round_half_away(coefs)
        coefs = np.where(coefs >= ncell, coefs - 2 * ncell, coefs)
        coefs = np.where(coefs < -ncell, coefs + 2 * ncell, coefs)
        coefs = (coefs + ncell) / 2
        strides = [1, ncell, ncell * ncell]
        return int(sum(coef * stride for coef, stride in zip(coefs, strides)))

    def _truncate(self, basis: np.ndarray, ncell: int, radius: float) -> np.ndarray:
        combinations = generate_combinations(ncell, self.ndim, centered=True)
        vectors = combinations @ basis[: self.ndim]
        keep = np.linalg.norm(vectors, axis=1) < radius + 1e-5
        return vectors[keep].reshape(-1, 3)

    def truncate_supercell(self, ncell: int, radius: float) -> np.ndarray:
        """Lattice vectors of the centered supercell lying within ``radius``."""
        return self._truncate(self.bravais_lattice, ncell, radius)

    def truncate_reciprocal_supercell(self, ncell: int, radius: float) -> np.ndarray:
        """Reciprocal lattice vectors of the centered supercell lying within ``radius``."""
        return self._truncate(self.reciprocal_lattice, ncell, radius)