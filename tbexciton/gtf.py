"""Gaussian basis sets accompanying a CRYSTAL calculation.

The bases file holds the basis used in the self-consistent calculation
(after a line reading ``SCF BASIS``) and an auxiliary basis used to fit
the density (after a line reading ``AUXILIARY BASIS``), both in CRYSTAL
format. SP shells are unfolded into separate S and P shells and
pseudo-potential blocks are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .crystal import CrystalConfiguration


def fortran_float(text: str) -> float:
    """Convert a number written with Fortran ``D`` exponents to float."""
    return float(text.replace("D", "E"))


@dataclass
class BasisSet:
    """Shells per atomic species, in the species order of the CRYSTAL output.

    ``shells[s][i]`` is the flat list ``[alpha_1, d_1, ..., alpha_n, d_n]``
    of the contracted Gaussians of shell ``i`` of species ``s``.
    """

    nshells: list[int] = field(default_factory=list)
    n_gaussians: list[list[int]] = field(default_factory=list)
    angular_momenta: list[list[int]] = field(default_factory=list)
    shells: list[list[list[float]]] = field(default_factory=list)


def _next_line(lines: Iterator[str]) -> str:
    line = next(lines, None)
    if line is None:
        raise ValueError("Unexpected end of bases file")
    return line


class GTFConfiguration(CrystalConfiguration):
    """CRYSTAL configuration together with its SCF and auxiliary Gaussian bases."""

    def __init__(self, bases_file: str | Path, filename: str | Path, ncells: int):
        super().__init__(filename, ncells)
        if not str(bases_file):
            raise ValueError("GTFConfiguration: bases_file must not be empty")
        path = Path(bases_file)
        if not path.is_file():
            raise FileNotFoundError(f"Bases file does not exist: {bases_file}")
        self.bases_filename = str(bases_file)
        self.rlist = self.bravais_vectors[:, : self.ndim].T
        self.scf_basis, self.aux_basis = self._parse_bases(path.read_text().splitlines())

    def _parse_bases(self, lines: list[str]) -> tuple[BasisSet, BasisSet]:
        scf = BasisSet()
        aux = BasisSet()
        found = 0
        stream = iter(lines)
        for line in stream:
            if "SCF BASIS" in line:
                scf = self._parse_basis(stream)
                found += 1
            if "AUXILIARY BASIS" in line:
                aux = self._parse_basis(stream)
                found += 1
        if found != 2:
            raise ValueError(
                "The basis sets file is not valid. Make sure that the bases are preceded "
                "by the SCF BASIS and AUXILIARY BASIS lines, and that the ordering of this "
                "and the .outp file is correct"
            )
        return scf, aux

    def _species_order(self, atomic_number: int) -> int:
        ordering = self.atomic_number_ordering
        for candidate in (atomic_number, atomic_number + 200, atomic_number % 200):
            if candidate in ordering:
                return ordering.index(candidate)
        raise ValueError(
            "The atomic numbers in the basis sets file don't match those of the DFT calculation"
        )

    @staticmethod
    def _skip_pseudopotential(lines: Iterator[str]) -> None:
        tokens = _next_line(lines).split()
        if len(tokens) < 7:
            raise ValueError("Malformed pseudo-potential header")
        for _ in range(sum(int(token) for token in tokens[1:7])):
            _next_line(lines)

    def _parse_basis(self, lines: Iterator[str]) -> BasisSet:
        count = self.nspecies
        basis = BasisSet(
            nshells=[0] * count,
            n_gaussians=[[] for _ in range(count)],
            angular_momenta=[[] for _ in range(count)],
            shells=[[] for _ in range(count)],
        )
        for _ in range(count):
            header = _next_line(lines).split()
            if len(header) < 2:
                raise ValueError("Malformed species header in bases file")
            atomic_number, nshells = int(header[0]), int(header[1])
            order = self._species_order(atomic_number)

            if atomic_number > 200:
                line = _next_line(lines)
                if "INPUT" in line:
                    self._skip_pseudopotential(lines)
                elif "INPSOC" in line:
                    _next_line(lines)
                    self._skip_pseudopotential(lines)

            shells: list[list[float]] = []
            momenta: list[int] = []
            gaussians: list[int] = []
            sp_shells = 0
            for _ in range(nshells):
                tokens = _next_line(lines).split()
                if len(tokens) < 5:
                    raise ValueError("Malformed shell line in bases file")
                kind, shell_type, ngauss = (int(token) for token in tokens[:3])
                scale = float(tokens[4])
                if kind != 0 or scale != 1.0:
                    raise ValueError("ITYB and SCAL parameters must be 0 and 1, see CRYSTAL manual")

                primitives = [
                    [fortran_float(token) for token in _next_line(lines).split()]
                    for _ in range(ngauss)
                ]
                if shell_type == 1:
                    if any(len(values) < 3 for values in primitives):
                        raise ValueError("SP shell lines need three values")
                    sp_shells += 1
                    gaussians += [ngauss, ngauss]
                    momenta += [0, 1]
                    shells.append([value for values in primitives for value in values[:2]])
                    shells.append(
                        [value for values in primitives for value in (values[0], values[2])]
                    )
                else:
                    if any(len(values) < 2 for values in primitives):
                        raise ValueError("Shell lines need two values")
                    gaussians.append(ngauss)
                    momenta.append(max(shell_type - 1, 0))
                    shells.append([value for values in primitives for value in values[:2]])

            basis.nshells[order] = nshells + sp_shells
            basis.n_gaussians[order] = gaussians
            basis.angular_momenta[order] = momenta
            basis.shells[order] = shells
        return basis