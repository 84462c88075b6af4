"""Reader of the output of self-consistent calculations made with CRYSTAL.

The lattice, the motif, the atomic basis and the Fock and overlap matrices
of the first unit cells are extracted. Sets of matrices are stored as
arrays of shape ``(ncells, n, n)``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TypeVar

import numpy as np

from .configuration import ConfigurationBase

T = TypeVar("T")

SOC_STRING = "to_be_defined_for_crystal23"
MAGNETIC_STRING = "UNRESTRICTED OPEN SHELL"

_CELL_PATTERN = re.compile(r"CELL N\.\s*(\d+)\s*\(\s*(-?\d+)\s*(-?\d+)\s*(-?\d+)")
_SPLIT_SHELL = re.compile(r"\s*(\d+)\s*-\s*(\d+)\s*(\S*)")
_SHELL = re.compile(r"\s*(\d+)\s*(\S*)")
_LEADING_INT = re.compile(r"\s*([-+]?\d+)")


def _leading(text: str, kind: Callable[[str], T]) -> list[T]:
    values = []
    for token in text.split():
        try:
            values.append(kind(token))
        except ValueError:
            break
    return values


def split_numbers(text: str) -> list[float]:
    """Leading numeric tokens of a line, up to the first one that is not a number."""
    return _leading(text, float)


def _value_after(line: str, key: str) -> int:
    match = _LEADING_INT.match(line[line.find(key) + len(key):])
    if match is None:
        raise ValueError(f"Expected an integer after '{key}'")
    return int(match.group(1))


def _stack(matrices: list[np.ndarray], dim: int) -> np.ndarray:
    if not matrices:
        return np.zeros((0, dim, dim), dtype=complex)
    return np.array(matrices, dtype=complex)


@dataclass
class SystemInfo:
    """Tight-binding description of a crystal."""

    ndim: int
    bravais_lattice: np.ndarray
    motif: np.ndarray
    filling: int
    bravais_vectors: np.ndarray
    norbitals: np.ndarray
    hamiltonian: np.ndarray
    overlap: np.ndarray = field(default_factory=lambda: np.zeros((0, 0, 0)))


class CrystalConfiguration(ConfigurationBase):
    """Configuration extracted from a CRYSTAL ``.outp`` file.

    Only the matrices of the first ``ncells`` unit cells are kept.
    """

    def __init__(self, filename: str | Path, ncells: int):
        super().__init__(filename)
        self.ncells = ncells
        self.ndim = 0
        self.bravais_lattice = np.zeros((0, 3))
        self.motif = np.zeros((0, 4))
        self.natoms = 0
        self.nsh = 0
        self.norbitals = 0
        self.total_electrons = 0
        self.core_electrons = 0
        self.nspecies = 0
        self.shells_per_species: list[int] = []
        self.atomic_number_ordering: list[int] = []
        self.orbitals_per_species: list[int] = []
        self.gaussian_coefficients: dict[int, list[list[list[float]]]] = {}
        self.soc = False
        self.magnetic = False
        self._cursor = 0

        cells: list[np.ndarray] = []
        overlap: list[np.ndarray] = []
        fock: list[np.ndarray] = []
        alpha: list[np.ndarray] = []
        beta: list[np.ndarray] = []
        self._parse_content(cells, overlap, fock, alpha, beta)

        self.bravais_vectors = np.array(cells).reshape(-1, 3)
        self.overlap_matrices = _stack(overlap, self.norbitals)
        self.fock_matrices = _stack(fock, self.norbitals)
        self.alpha_matrices = _stack(alpha, self.norbitals)
        self.beta_matrices = _stack(beta, self.norbitals)

    # ------------------------------------------------------------ reading

    def _next_line(self) -> str | None:
        if self._cursor >= len(self.lines):
            return None
        line = self.lines[self._cursor]
        self._cursor += 1
        return line

    def _require_line(self) -> str:
        line = self._next_line()
        if line is None:
            raise ValueError("Unexpected end of file")
        return line

    def _cell_header(self, line: str) -> tuple[int, list[int]]:
        match = _CELL_PATTERN.search(line)
        if match is None:
            raise ValueError(f"Malformed matrix header: {line.strip()}")
        index, x, y, z = (int(group) for group in match.groups())
        return index, [x, y, z]

    def _parse_content(self, cells, overlap, fock, alpha, beta) -> None:
        found_lattice = False
        alpha_electrons = True
        while (line := self._next_line()) is not None:
            if "DIRECT LATTICE VECTOR COMPONENTS (ANGSTROM)" in line:
                self._parse_bravais_lattice()
                found_lattice = True
            elif "N. OF ATOMS PER CELL" in line:
                self.natoms = _value_after(line, "N. OF ATOMS PER CELL")
            elif "NUMBER OF SHELLS" in line:
                self.nsh = _value_after(line, "NUMBER OF SHELLS")
            elif "NUMBER OF AO" in line:
                self.norbitals = _value_after(line, "NUMBER OF AO")
            elif "N. OF ELECTRONS PER CELL" in line:
                self.total_electrons = _value_after(line, "N. OF ELECTRONS PER CELL")
            elif "CORE ELECTRONS PER CELL" in line:
                self.core_electrons = _value_after(line, "CORE ELECTRONS PER CELL")
            elif "ATOM" in line and "SHELL" in line:
                if self.natoms == 0:
                    raise RuntimeError("Must parse first number of atoms")
                self._parse_atoms()
            elif "LOCAL ATOMIC FUNCTIONS BASIS SET" in line:
                self._parse_atomic_basis()
            elif "OVERLAP MATRIX" in line:
                index, coefficients = self._cell_header(line)
                if index <= self.ncells:
                    cell = np.zeros(3)
                    for i in range(self.ndim):
                        cell += self.bravais_lattice[i] * coefficients[i]
                    cells.append(cell)
                    overlap.append(self._parse_matrix())
                continue
            elif SOC_STRING in line:
                self.soc = True
            elif MAGNETIC_STRING in line:
                self.magnetic = True

            if "BETA" in line and "ELECTRONS" in line:
                alpha_electrons = False

            if "FOCK MATRIX" in line:
                index, _ = self._cell_header(line)
                if index <= self.ncells:
                    matrix = self._parse_matrix()
                    if self.magnetic:
                        (alpha if alpha_electrons else beta).append(matrix)
                    elif self.soc:
                        continue
                    else:
                        fock.append(matrix)

        if not found_lattice:
            self.ndim = 0
            raise NotImplementedError("Finite systems are not yet implemented")

    def _parse_bravais_lattice(self) -> None:
        vectors = []
        for _ in range(3):
            values = split_numbers(self._require_line())
            if len(values) < 3:
                raise ValueError("Expected three components per lattice vector")
            vectors.append(values[:3])
        self.bravais_lattice = np.array(vectors, dtype=float)
        self._extract_dimension()

    def _extract_dimension(self) -> None:
        """Drop the fictitious (500 A or null) lattice vectors of 1D and 2D systems."""
        origin = np.zeros(3)
        far_y = np.array([0.0, 500.0, 0.0])
        far_z = np.array([0.0, 0.0, 500.0])

        def near(vector, reference):
            return bool(np.all(np.abs(vector - reference) <= 0.1))

        lattice = self.bravais_lattice
        if near(lattice[2], far_z) or near(lattice[2], origin):
            lattice = lattice[:2]
            if near(lattice[1], far_y) or near(lattice[1], origin):
                lattice = lattice[:1]
        self.bravais_lattice = lattice
        self.ndim = lattice.shape[0]

    def _parse_atoms(self) -> None:
        self._require_line()  # asterisks
        species_index: dict[str, int] = {}
        shells: list[int] = []
        ordering: list[int] = []
        motif = np.zeros((self.natoms, 4))
        for row in range(self.natoms):
            tokens = self._require_line().split()
            if len(tokens) < 7:
                raise ValueError("Malformed atom line")
            atomic_number, species, nsh = int(tokens[1]), tokens[2], int(tokens[3])
            x, y, z = (float(value) for value in tokens[4:7])
            if species not in species_index:
                species_index[species] = len(species_index)
                shells.append(nsh)
                ordering.append(atomic_number)
            motif[row] = [x, y, z, species_index[species]]
        self.motif = motif
        self.shells_per_species = shells
        self.atomic_number_ordering = ordering
        self.nspecies = len(species_index)

    def _parse_shell_line(self, line: str) -> tuple[int, str]:
        match = _SPLIT_SHELL.match(line) or _SHELL.match(line)
        if match is None:
            raise ValueError(f"Malformed shell line: {line.strip()}")
        groups = match.groups()
        return int(groups[-2]), groups[-1]

    def _parse_atomic_basis(self) -> None:
        for _ in range(3):
            self._require_line()  # asterisks, header, asterisks
        seen: list[str] = []
        total_orbitals = 0
        nspecies = 0
        for atom_index in range(self.natoms):
            tokens = self._require_line().split()
            species = tokens[1] if len(tokens) > 1 else ""
            if species in seen:
                total_orbitals += self.orbitals_per_species[int(self.motif[atom_index, 3])]
                continue
            seen.append(species)

            norbitals = total_orbitals
            shells: list[list[list[float]]] = []
            for _ in range(self.shells_per_species[nspecies]):
                norbitals, _shell_type = self._parse_shell_line(self._require_line())
                coefficients: list[list[float]] = []
                while True:
                    previous = self._cursor
                    line = self._next_line()
                    if line is None:
                        break
                    values = split_numbers(line)
                    if len(values) != 4:
                        self._cursor = previous
                        break
                    coefficients.append(values)
                shells.append(coefficients)
            self.gaussian_coefficients[nspecies] = shells
            self.orbitals_per_species.append(norbitals - total_orbitals)
            total_orbitals = norbitals
            nspecies += 1

    def _parse_matrix(self) -> np.ndarray:
        n = self.norbitals
        if n <= 0:
            raise ValueError("Number of atomic orbitals must be parsed before matrices")
        matrix = np.zeros((n, n), dtype=complex)
        col_indices: list[int] = []
        row_index = col_index = 0
        while (line := self._next_line()) is not None:
            if not line.strip():
                col_indices = _leading(self._next_line() or "", int)
                line = self._next_line()
                if line is None:
                    break
                if not line.strip():
                    continue

            values = split_numbers(line)
            row_index = int(values[0]) if values else 0
            for i, coefficient in enumerate(values[1:]):
                if i >= len(col_indices):
                    raise ValueError("More matrix values than column indices")
                col_index = col_indices[i]
                if not (1 <= row_index <= n and 1 <= col_index <= n):
                    raise ValueError("Matrix index out of range")
                matrix[row_index - 1, col_index - 1] = coefficient

            if row_index == n and col_index == n:
                return matrix
        raise ValueError("Unexpected end of file while reading a matrix")

    # ------------------------------------------------------------ output

    def system_info(self) -> SystemInfo:
        """Tight-binding description built from the parsed content."""
        filling = self.total_electrons // 2
        norbitals = np.array(self.orbitals_per_species, dtype=int)
        overlap = self.overlap_matrices
        hamiltonian = self.fock_matrices

        if self.soc:
            filling *= 2
            norbitals = norbitals * 2
        elif self.magnetic:
            filling *= 2
            norbitals = norbitals * 2
            spin_up = np.array([[1.0, 0.0], [0.0, 0.0]])
            spin_down = np.array([[0.0, 0.0], [0.0, 1.0]])
            fock = list(self.fock_matrices)
            new_overlap = []
            for i, alpha in enumerate(self.alpha_matrices):
                fock.append(np.kron(alpha, spin_up) + np.kron(self.beta_matrices[i], spin_down))
                new_overlap.append(np.kron(self.overlap_matrices[i], np.eye(2)))
            hamiltonian = _stack(fock, 2 * self.norbitals)
            overlap = _stack(new_overlap, 2 * self.norbitals)

        return SystemInfo(
            ndim=self.ndim,
            bravais_lattice=self.bravais_lattice,
            motif=self.motif,
            filling=filling,
            bravais_vectors=self.bravais_vectors,
            norbitals=norbitals,
            hamiltonian=hamiltonian,
            overlap=overlap,
        )