"""Electron-hole interaction potentials: Keldysh and Coulomb.

Distances are given in Angstrom and energies are returned in eV.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np
from scipy.special import y0

from .lattice import PI

ELEMENTARY_CHARGE = 1.6021766e-19
VACUUM_PERMITTIVITY = 8.8541878e-12


@dataclass
class ScreeningParameters:
    """Dielectric constants and screening lengths of the Keldysh potential.

    ``ry`` defaults to ``r0`` and ``rz`` to the mean of ``r0`` and ``ry``.
    """

    eps_m: float
    eps_s: float
    r0: float
    ry: float | None = None
    rz: float | None = None

    def __post_init__(self) -> None:
        if self.r0 == 0:
            raise ValueError("r0 must be non-zero")
        if self.ry is None:
            self.ry = self.r0
        if self.rz is None:
            self.rz = 0.5 * (self.r0 + self.ry)

    @classmethod
    def from_sequence(cls, parameters: Sequence[float]) -> "ScreeningParameters":
        """Build from ``(eps_m, eps_s, r0[, ry[, rz]])``."""
        values = [float(value) for value in np.asarray(parameters, dtype=float).ravel()]
        if len(values) < 3:
            raise ValueError("parameters array must be at least 3D (eps_m, eps_s, r0)")
        return cls(*values[:5])

    @property
    def eps_bar(self) -> float:
        """Mean of the two dielectric constants."""
        return (self.eps_m + self.eps_s) / 2

    @property
    def lengths(self) -> np.ndarray:
        """Screening lengths along each axis."""
        return np.array([self.r0, self.ry, self.rz], dtype=float)

    @property
    def r0_average(self) -> float:
        """Mean screening length."""
        return float(self.lengths.mean())


def struve_h0(x: float) -> float:
    """Struve function H0(x) for x >= 0."""
    s = 1.0
    r = 1.0
    if x <= 20.0:
        a0 = 2.0 * x / PI
        for k in range(1, 61):
            r = -r * x / (2.0 * k + 1.0) * x / (2.0 * k + 1.0)
            s += r
            if abs(r) < abs(s) * 1.0e-12:
                break
        return a0 * s

    km = 25 if x >= 50.0 else int(0.5 * (x + 1.0))
    for k in range(1, km + 1):
        r = -r * ((2.0 * k - 1.0) / x) ** 2
        s += r
        if abs(r) < abs(s) * 1.0e-12:
            break
    t = 4.0 / x
    t2 = t * t
    p0 = (
        (((( -0.37043e-5 * t2 + 0.173565e-4) * t2 - 0.487613e-4) * t2 + 0.17343e-3) * t2
         - 0.1753062e-2) * t2
        + 0.3989422793
    )
    q0 = t * (
        ((((0.32312e-5 * t2 - 0.142078e-4) * t2 + 0.342468e-4) * t2 - 0.869791e-4) * t2
         + 0.4564324e-3) * t2
        - 0.0124669441
    )
    ta0 = x - 0.25 * PI
    by0 = 2.0 / math.sqrt(x) * (p0 * math.sin(ta0) + q0 * math.cos(ta0))
    return 2.0 / (PI * x) * s + by0


def keldysh_potential(
    r,
    params: ScreeningParameters,
    regularization: float,
    cutoff: float = math.inf,
) -> float:
    """Keldysh potential at displacement ``r``.

    The displacement is scaled by the screening lengths; at the origin the
    potential is evaluated at the regularization distance instead, and
    beyond ``cutoff`` (compared with the scaled distance) it vanishes.
    """
    scaled = float(np.linalg.norm(np.asarray(r, dtype=float).ravel() / params.lengths))
    r0avg = params.r0_average
    prefactor = ELEMENTARY_CHARGE / (8e-10 * VACUUM_PERMITTIVITY * params.eps_bar * r0avg)
    if scaled == 0:
        return prefactor * (
            struve_h0(regularization / params.r0) - float(y0(regularization / r0avg))
        )
    if scaled > cutoff:
        return 0.0
    return prefactor * (struve_h0(scaled) - float(y0(scaled)))


def coulomb_potential(r, regularization: float, cutoff: float = math.inf) -> float:
    """Bare Coulomb potential at displacement ``r``, regularized at the origin."""
    distance = float(np.linalg.norm(np.asarray(r, dtype=float).ravel()))
    if distance > cutoff:
        return 0.0
    if distance != 0:
        return ELEMENTARY_CHARGE / (4e-10 * PI * VACUUM_PERMITTIVITY * distance)
    return ELEMENTARY_CHARGE * 1e10 / (4 * PI * VACUUM_PERMITTIVITY * regularization)


def keldysh_fourier(
    q,
    params: ScreeningParameters,
    cell_area: float,
    total_cells: int,
    threshold: float,
) -> float:
    """Fourier transform of the Keldysh potential; zero for |q| below ``threshold``."""
    qnorm = float(np.linalg.norm(np.asarray(q, dtype=float).ravel()))
    if qnorm < threshold:
        return 0.0
    value = 1.0 / (qnorm * (1.0 + params.r0 * qnorm))
    return value * ELEMENTARY_CHARGE * 1e10 / (
        2 * VACUUM_PERMITTIVITY * params.eps_bar * cell_area * total_cells
    )


def select_potential(name: str) -> Callable[..., float]:
    """Return the potential function named ``'keldysh'`` or ``'coulomb'``."""
    potentials = {"keldysh": keldysh_potential, "coulomb": coulomb_potential}
    try:
        return potentials[name]
    except KeyError:
        raise ValueError("potential must be either 'keldysh' or 'coulomb'") from None