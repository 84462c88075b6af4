"""Electron-hole interaction matrix elements in a tight-binding basis.

The single-particle basis is ordered atom by atom, each atom of the motif
contributing as many orbitals as its species holds. The motif is an array
whose rows are ``(x, y, z, species)``. Potentials are callables taking a
single displacement vector, for instance a ``functools.partial`` over
:func:`tbexciton.potentials.keldysh_potential`.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

Potential = Callable[[np.ndarray], float]


def _orbitals_per_atom(motif, orbitals) -> np.ndarray:
    motif = np.atleast_2d(np.asarray(motif, dtype=float))
    species = motif[:, 3].astype(int)
    return np.asarray(orbitals, dtype=int)[species]


def orbital_offsets(motif, orbitals) -> np.ndarray:
    """Offsets of each atom's orbitals in the basis.

    Returns ``natoms + 1`` values: entry ``i`` is the first basis index of
    atom ``i`` and the last entry is the basis dimension.
    """
    counts = _orbitals_per_atom(motif, orbitals)
    return np.concatenate(([0], np.cumsum(counts))).astype(int)


def motif_fourier_transform(
    first_atom,
    second_atom,
    k,
    cells,
    potential: Potential,
    total_cells: int,
) -> complex:
    """Lattice Fourier transform of the potential displaced by two motif positions.

    ``first_atom`` and ``second_atom`` are atomic positions; the sum runs
    over the lattice vectors in ``cells`` and is divided by ``total_cells``.
    """
    first = np.asarray(first_atom, dtype=float).ravel()[:3]
    second = np.asarray(second_atom, dtype=float).ravel()[:3]
    k = np.asarray(k, dtype=float).ravel()
    cells = np.atleast_2d(np.asarray(cells, dtype=float)).reshape(-1, 3)
    total = sum(
        potential(cell + first - second) * np.exp(1j * np.dot(k, cell)) for cell in cells
    )
    return complex(total) / total_cells


def motif_ft_matrix(motif, k, cells, potential: Potential, total_cells: int) -> np.ndarray:
    """Hermitian matrix of motif Fourier transforms between every pair of atoms at ``k``."""
    positions = np.atleast_2d(np.asarray(motif, dtype=float))[:, :3]
    natoms = positions.shape[0]
    result = np.zeros((natoms, natoms), dtype=complex)
    for i in range(natoms):
        for j in range(i, natoms):
            value = motif_fourier_transform(
                positions[i], positions[j], k, cells, potential, total_cells
            )
            result[i, j] = value
            result[j, i] = np.conj(value)
    return result


def extend_motif_ft(motif_ft, motif, orbitals) -> np.ndarray:
    """Expand an atom-by-atom matrix to the orbital basis, repeating each entry in blocks."""
    counts = _orbitals_per_atom(motif, orbitals)
    motif_ft = np.asarray(motif_ft)
    if motif_ft.shape != (counts.size, counts.size):
        raise ValueError("Motif Fourier transform does not match the number of atoms")
    return np.repeat(np.repeat(motif_ft, counts, axis=0), counts, axis=1)


def _check_dimension(vectors, dim: int) -> list[np.ndarray]:
    arrays = [np.asarray(vector, dtype=complex).ravel() for vector in vectors]
    if any(array.size != dim for array in arrays):
        raise ValueError("Coefficient vectors must match the basis dimension")
    return arrays


def real_space_interaction_term(
    coefs1, coefs2, coefs3, coefs4, motif_ft, motif, orbitals
) -> complex:
    """Interaction matrix element in real space.

    For the direct term pass ``(ck, v'k', c'k', vk)``; for the exchange term
    ``(ck, v'k', vk, c'k')``.
    """
    offsets = orbital_offsets(motif, orbitals)
    c1, c2, c3, c4 = _check_dimension((coefs1, coefs2, coefs3, coefs4), int(offsets[-1]))
    reduced_first = np.add.reduceat(np.conj(c1) * c3, offsets[:-1])
    reduced_second = np.add.reduceat(np.conj(c2) * c4, offsets[:-1])
    return complex(np.dot(reduced_first, np.asarray(motif_ft) @ reduced_second))


def bloch_coherence_factor(coefs1, coefs2, k1, k2, g, motif, orbitals) -> complex:
    """Bloch coherence factor of the states ``|n,k1>`` and ``|n',k2>`` at reciprocal vector ``g``."""
    counts = _orbitals_per_atom(motif, orbitals)
    c1, c2 = _check_dimension((coefs1, coefs2), int(counts.sum()))
    positions = np.atleast_2d(np.asarray(motif, dtype=float))[:, :3]
    q = (
        np.asarray(k1, dtype=float).ravel()
        - np.asarray(k2, dtype=float).ravel()
        + np.asarray(g, dtype=float).ravel()
    )
    phases = np.repeat(np.exp(1j * positions @ q), counts)
    return complex(np.dot(np.conj(c1) * c2, phases))


def fix_global_phase(coefs) -> np.ndarray:
    """Rotate each column (eigenvector) so that the sum of its coefficients is real and non-negative."""
    coefs = np.asarray(coefs, dtype=complex)
    phases = np.angle(coefs.sum(axis=0))
    return coefs * np.exp(-1j * phases)


def split_bands(bands, fermi_level: int) -> tuple[np.ndarray, np.ndarray]:
    """Absolute valence and conduction band indices from indices relative to the Fermi level.

    Bands ``<= 0`` are valence bands, the rest conduction bands.
    """
    bands = np.asarray(bands, dtype=int).ravel()
    valence = bands[bands <= 0] + fermi_level
    conduction = bands[bands > 0] + fermi_level
    return valence, conduction