"""Bethe-Salpeter equation for excitons in a tight-binding basis.

The electron-hole pair basis is a table with one row ``(v, c, k)`` per
pair, where ``v`` and ``c`` are absolute band indices and ``k`` is the
index of the k point. The k index varies slowest and the valence band
fastest. Single-particle data are stored per k point:
``eigvals[k, b]`` and ``eigvecs[k][:, b]``, where ``b`` is the column
of band ``band`` given by ``band_to_index[band]``.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Callable, Mapping, Union

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.linalg import eigsh, lobpcg

from .interactions import real_space_interaction_term

EquivalentIndex = Union[Callable[[int, int], int], np.ndarray]

METHODS = ("diag", "davidson", "sparse")


@dataclass
class ExcitonSpectrum:
    """Exciton energies (ascending) and states, one state per column."""

    energies: np.ndarray
    states: np.ndarray
    basis: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=int))

    def __len__(self) -> int:
        return int(np.asarray(self.energies).size)

    def state(self, index: int) -> np.ndarray:
        """Coefficients of exciton state ``index`` in the electron-hole pair basis."""
        return np.asarray(self.states)[:, index]


def band_lists(fermi_level: int, nbands: int, nrmbands: int = 0) -> tuple[np.ndarray, np.ndarray]:
    """Valence and conduction bands around the Fermi level.

    ``nbands`` bands are taken on each side, after skipping ``nrmbands``
    bands next to the Fermi level.
    """
    if nbands < 1:
        raise ValueError("Exciton object must have some bands")
    valence = np.arange(fermi_level - nbands - nrmbands + 1, fermi_level - nrmbands + 1)
    conduction = np.arange(fermi_level + 1 + nrmbands, fermi_level + nbands + nrmbands + 1)
    return valence, conduction


def build_basis(valence_bands, conduction_bands, nk: int) -> np.ndarray:
    """Electron-hole pair basis; rows ``(v, c, k)`` with k slowest and v fastest."""
    valence = np.asarray(valence_bands, dtype=int).ravel()
    conduction = np.asarray(conduction_bands, dtype=int).ravel()
    if valence.size == 0 or conduction.size == 0:
        raise ValueError("Exciton object must have some bands")
    if nk <= 0:
        raise ValueError("BZ mesh must be initialized first")
    k, c, v = np.meshgrid(np.arange(nk), conduction, valence, indexing="ij")
    return np.column_stack((v.ravel(), c.ravel(), k.ravel())).astype(int)


def _equivalent(equivalent_index: EquivalentIndex, k_index: int, k2_index: int) -> int:
    if callable(equivalent_index):
        return int(equivalent_index(k_index, k2_index))
    return int(np.asarray(equivalent_index)[k_index, k2_index])


def bse_hamiltonian(
    basis,
    band_to_index: Mapping[int, int],
    eigvals_k,
    eigvals_kq,
    eigvecs_k,
    eigvecs_kq,
    equivalent_index: EquivalentIndex,
    motif_ft_stack,
    motif,
    orbitals,
    scissor: float = 0.0,
    exchange_ft=None,
) -> np.ndarray:
    """Bethe-Salpeter Hamiltonian in the real-space formulation.

    ``equivalent_index(k, k2)`` (or ``equivalent_index[k, k2]``) gives the
    slice of ``motif_ft_stack`` holding the motif Fourier transform at
    ``k2 - k``. With ``exchange_ft`` (the motif Fourier transform at the
    total momentum) the exchange term is included.
    """
    basis = np.atleast_2d(np.asarray(basis, dtype=int))
    eigvals_k = np.asarray(eigvals_k, dtype=float)
    eigvals_kq = np.asarray(eigvals_kq, dtype=float)
    eigvecs_k = np.asarray(eigvecs_k, dtype=complex)
    eigvecs_kq = np.asarray(eigvecs_kq, dtype=complex)
    motif_ft_stack = np.asarray(motif_ft_stack, dtype=complex)

    dim = basis.shape[0]
    hamiltonian = np.zeros((dim, dim), dtype=complex)

    states = []
    for v_band, c_band, k_index in basis:
        v = band_to_index[int(v_band)]
        c = band_to_index[int(c_band)]
        states.append((int(k_index), v, c, eigvecs_k[k_index][:, v], eigvecs_kq[k_index][:, c]))

    for i, (k_index, v, c, coefs_k, coefs_kq) in enumerate(states):
        for j in range(i, dim):
            k2_index, _, _, coefs_k2, coefs_k2q = states[j]
            motif_ft = motif_ft_stack[_equivalent(equivalent_index, k_index, k2_index)]
            direct = real_space_interaction_term(
                coefs_kq, coefs_k2, coefs_k2q, coefs_k, motif_ft, motif, orbitals
            )
            exchange = 0.0
            if exchange_ft is not None:
                exchange = real_space_interaction_term(
                    coefs_kq, coefs_k2, coefs_k, coefs_k2q, exchange_ft, motif, orbitals
                )
            if i == j:
                gap = eigvals_kq[k_index, c] - eigvals_k[k_index, v]
                hamiltonian[i, j] = (scissor + gap) / 2.0 - (direct - exchange) / 2.0
            else:
                hamiltonian[i, j] = -(direct - exchange)

    return hamiltonian + hamiltonian.conj().T


def _davidson(hamiltonian: np.ndarray, nstates: int) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(0)
    n = hamiltonian.shape[0]
    guess = rng.standard_normal((n, nstates)) + 1j * rng.standard_normal((n, nstates))
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        energies, states = lobpcg(
            hamiltonian, guess, largest=False, tol=1e-10, maxiter=max(200, 20 * n)
        )
    return np.real(energies), states


def diagonalize(hamiltonian, method: str = "diag", nstates: int = 8) -> ExcitonSpectrum:
    """Solve the Bethe-Salpeter equation.

    ``'diag'`` gives the full spectrum; ``'davidson'`` and ``'sparse'``
    give the ``nstates`` lowest states with iterative solvers.
    """
    hamiltonian = np.asarray(hamiltonian, dtype=complex)
    if hamiltonian.size == 0 or not np.any(hamiltonian):
        raise ValueError("BSE Hamiltonian is not initialized.")
    if hamiltonian.ndim != 2 or hamiltonian.shape[0] != hamiltonian.shape[1]:
        raise ValueError("BSE Hamiltonian must be a square matrix")
    if method not in METHODS:
        raise ValueError("method must be one of 'diag', 'davidson' or 'sparse'")

    if method == "diag":
        energies, states = np.linalg.eigh(hamiltonian)
    else:
        n = hamiltonian.shape[0]
        if not 1 <= nstates < n:
            raise ValueError("nstates must be positive and smaller than the BSE dimension")
        if method == "davidson":
            energies, states = _davidson(hamiltonian, nstates)
        else:
            energies, states = eigsh(csr_matrix(hamiltonian), k=nstates, which="SA")
            energies = np.real(energies)

    order = np.argsort(energies)
    return ExcitonSpectrum(energies=np.asarray(energies)[order], states=np.asarray(states)[:, order])