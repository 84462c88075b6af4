"""Tight-binding model of zigzag bismuth nanoribbons.

Each atom carries one s and three p orbitals, both spin projections
included, with Slater-Koster hoppings between first neighbours, atomic
spin-orbit coupling and an optional infinitesimal Zeeman term.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from .lattice import PI, Lattice

logger = logging.getLogger(__name__)

_ORBITALS_PER_ATOM = 8


def matrix_with_spin(matrix) -> np.ndarray:
    """Double a spinless matrix so that every orbital holds an up and a down state."""
    return np.kron(np.asarray(matrix), np.eye(2))


class BiRibbon(Lattice):
    """Zigzag Bi ribbon whose unit cell holds ``n + 1`` dimers along the width.

    ``zeeman_axis`` selects the axis of the magnetic term (``'x'``, ``'y'``
    or ``'z'``); any other value leaves the Zeeman term out.
    """

    def __init__(self, n: int, zeeman_axis: str = "z"):
        if n < 2:
            raise ValueError("Invalid value for N (Expected N >= 2)")
        self.n = n
        self.zeeman_axis = zeeman_axis

        self.orbitals = np.array([_ORBITALS_PER_ATOM])
        self.filling_per_atom = 5

        # Lattice parameters
        a = 4.5332
        c = 1.585

        # On-site energies
        self.es = -10.906
        self.ep = -0.486
        # Slater-Koster amplitudes
        self.vsss = -0.608
        self.vsps = 1.320
        self.vpps = 1.854
        self.vppp = -0.600
        # Spin-orbit coupling
        self.soc_lambda = 1.5
        # Zeeman amplitude, only meant to split spin degeneracies
        self.zeeman = 1e-7
        # On-site energy to split edges
        self.onsite_edge = 0.0

        sqrt3 = math.sqrt(3.0)
        self.a1 = np.array([sqrt3 / 2, 0.5, 0.0]) * a
        self.a2 = np.array([sqrt3 / 2, -0.5, 0.0]) * a
        self.tau = np.array([a / sqrt3, 0.0, -c])
        self.n1 = self.a1 - self.tau
        self.n2 = self.a2 - self.tau
        self.n3 = self.tau.copy()

        self.gamma = np.zeros(3)
        self.k_point = 2 * PI * np.array([1.0 / sqrt3, 1.0 / 3.0, 0.0]) / a
        self.m_point = 2 * PI * np.array([1.0 / sqrt3, 0.0, 0.0]) / a

        period = self.a1 - self.a2
        cells = np.array([np.zeros(3), period, -period])
        super().__init__(1, period[np.newaxis, :], self._create_motif(), cells)
        self.c = c

        species = self.motif[:, 3].astype(int)
        self.basisdim = int(self.orbitals[species].sum())
        self.filling = self.natoms * self.filling_per_atom
        self.fermi_level = self.filling - 1

        self._initialize_block_matrices()
        self.hamiltonian_matrices = self._prepare_hamiltonian()

    # ------------------------------------------------------------ geometry

    def _create_motif(self) -> np.ndarray:
        positions = [np.zeros(3), self.n1, self.a1, self.a1 + self.n2]
        half_sum = self.a1 + self.a2
        for dimer in range(2, self.n + 1):
            if dimer % 2 == 0:
                base = half_sum * dimer / 2
                positions += [base, base + self.n1]
            else:
                base = half_sum * (dimer - 1) / 2 + self.a1
                positions += [base, base + self.n2]
        motif = np.zeros((len(positions), 4))
        motif[:, :3] = positions
        return motif

    # ------------------------------------------------------------ matrices

    def tightbinding_matrix(self, displacement) -> np.ndarray:
        """Spinful Slater-Koster hopping matrix between two atoms separated by ``displacement``."""
        vector = np.asarray(displacement, dtype=float).ravel()
        direction = vector / np.linalg.norm(vector)
        hopping = np.zeros((4, 4))
        hopping[0, 0] = self.vsss
        hopping[0, 1:] = direction * self.vsps
        hopping[1:, 0] = -hopping[0, 1:]
        outer = np.outer(direction, direction)
        hopping[1:, 1:] = outer * (self.vpps - self.vppp)
        np.fill_diagonal(
            hopping[1:, 1:],
            direction**2 * self.vpps + (1 - direction**2) * self.vppp,
        )
        return matrix_with_spin(hopping)

    def _initialize_block_matrices(self) -> None:
        onsite = np.zeros((4, 4))
        onsite[0, 0] = self.es
        onsite[1:, 1:] = self.ep * np.eye(3)
        self.m0 = matrix_with_spin(onsite)
        self.m1 = self.tightbinding_matrix(self.n3)
        self.m2p = self.tightbinding_matrix(self.n1)
        self.m2m = self.tightbinding_matrix(self.n2)

        soc = np.zeros((8, 8), dtype=complex)
        soc[2, 4] = -1j
        soc[2, 7] = 1
        soc[3, 5] = 1j
        soc[3, 6] = -1
        soc[4, 7] = -1j
        soc[5, 6] = -1j
        self.mso = (soc + soc.conj().T) * self.soc_lambda / 3.0

        zeeman = np.zeros((8, 8), dtype=complex)
        if self.zeeman_axis == "z":
            zeeman = np.diag(np.tile([1.0, -1.0], 4)).astype(complex) * self.zeeman
        elif self.zeeman_axis in ("x", "y"):
            if self.zeeman_axis == "x":
                pauli = np.array([[0, 1], [1, 0]], dtype=complex)
            else:
                pauli = np.array([[0, -1j], [1j, 0]], dtype=complex)
            zeeman[0:2, 0:2] = pauli
            zeeman[2:8, 2:8] = np.kron(pauli, np.eye(3))
            zeeman *= self.zeeman
        else:
            logger.warning("Incorrect Zeeman axis given, defaulting Zeeman term to zero")
        self.mzeeman = zeeman

    def _prepare_hamiltonian(self) -> np.ndarray:
        size = _ORBITALS_PER_ATOM
        half_onsite = self.m0 / 2

        h0_block1 = np.kron(np.eye(4), half_onsite)
        h0_block2 = np.kron(np.eye(4), half_onsite)
        h0_block1[0:size, size:2 * size] = self.m2p
        h0_block1[size:2 * size, 2 * size:3 * size] = self.m1
        h0_block1[2 * size:3 * size, 3 * size:4 * size] = self.m2m
        h0_block2[0:size, size:2 * size] = self.m2m
        h0_block2[size:2 * size, 2 * size:3 * size] = self.m1
        h0_block2[2 * size:3 * size, 3 * size:4 * size] = self.m2p
        h0_block1 = h0_block1 + h0_block1.T
        h0_block2 = h0_block2 + h0_block2.T

        ha_block1 = np.zeros((4 * size, 4 * size))
        ha_block2 = np.zeros((4 * size, 4 * size))
        ha_block1[size:2 * size, 0:size] = self.m2m.T
        ha_block1[2 * size:3 * size, 3 * size:4 * size] = self.m2p
        ha_block2[0:size, size:2 * size] = self.m2p
        ha_block2[3 * size:4 * size, 2 * size:3 * size] = self.m2m.T

        nsites = 2 * (self.n + 1)
        dim = nsites * size
        h0 = np.zeros((dim, dim), dtype=complex)
        ha = np.zeros((dim, dim), dtype=complex)
        h0[:4 * size, :4 * size] = h0_block1
        ha[:4 * size, :4 * size] = ha_block1
        for m in range(self.n - 1):
            start = 2 * size * (m + 1)
            stop = start + 4 * size
            h0_block, ha_block = (h0_block2, ha_block2) if m % 2 == 0 else (h0_block1, ha_block1)
            h0[start:stop, start:stop] = h0_block
            ha[start:stop, start:stop] = ha_block

        hsoc = np.kron(np.eye(nsites), self.mso)
        hzeeman = np.kron(np.eye(nsites), self.mzeeman)

        edges = np.arange(size)
        h0[edges, edges] += self.onsite_edge
        h0[size + edges, size + edges] += self.onsite_edge
        h0[dim - size + edges, dim - size + edges] -= self.onsite_edge
        h0[dim - 2 * size + edges, dim - 2 * size + edges] -= self.onsite_edge

        return np.array([h0 + hsoc + hzeeman, ha, ha.conj().T])

    # ------------------------------------------------------------ operators

    def inversion_operator(self, state) -> np.ndarray:
        """Apply the inversion operator P to a state of the ribbon."""
        nsites = 2 * (self.n + 1)
        positions = np.eye(nsites)[::-1]
        spin = np.zeros((8, 8), dtype=complex)
        spin[0, 1] = -1
        spin[1, 0] = -1
        spin[2:5, 5:8] = -np.eye(3)
        spin[5:8, 2:5] = -np.eye(3)
        return np.kron(positions, spin) @ np.asarray(state)

    def _add_onsite(self, atom: int, energy: float) -> None:
        block = slice(atom * _ORBITALS_PER_ATOM, (atom + 1) * _ORBITALS_PER_ATOM)
        self.hamiltonian_matrices[0, block, block] += np.eye(_ORBITALS_PER_ATOM) * energy

    def apply_electric_field(self, amplitude: float) -> None:
        """Shift onsite energies by a field across the width (proportional to x)."""
        for atom, x in enumerate(self.motif[:, 0]):
            self._add_onsite(atom, amplitude * x)

    def offset_edges(self, energy: float) -> None:
        """Add an onsite energy to the two atoms of one edge to split edge states."""
        for atom in (0, 1):
            self._add_onsite(atom, energy)

    def add_substrate(self, energy: float) -> None:
        """Add an onsite energy to the atoms of the lower sublattice."""
        for atom in range(0, 2 * (self.natoms // 2), 2):
            self._add_onsite(atom, energy)