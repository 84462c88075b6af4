"""Tight-binding excitons: configuration readers, lattices, a Bi ribbon model, potentials and BSE solvers."""

__version__ = "0.1.0"

__all__ = [
    "configuration",
    "lattice",
    "exciton_config",
    "crystal",
    "biribbon",
    "gtf",
    "potentials",
    "interactions",
    "bse",
]