"""Exciton configuration files: the parameters of a Bethe-Salpeter calculation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .configuration import (
    ConfigurationBase,
    parse_line,
    parse_scalar,
    parse_word,
    standardize_line,
)

logger = logging.getLogger(__name__)

SUPPORTED_POTENTIALS = ("keldysh", "coulomb")
SUPPORTED_MODES = ("realspace", "reciprocalspace")


@dataclass
class ExcitonInfo:
    """Parameters of an exciton calculation as read from a configuration file."""

    label: str = "exciton"
    ncell: int = 0
    submesh_factor: int = 1
    shift: np.ndarray = field(default_factory=lambda: np.zeros(0))
    nbands: int = 0
    bands: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    q: np.ndarray = field(default_factory=lambda: np.zeros(3))
    cutoff: float = 0.0
    eps: np.ndarray = field(default_factory=lambda: np.zeros(0))
    mode: str = "realspace"
    n_reciprocal_vectors: int = 1
    exchange: bool = False
    exchange_potential: str = "keldysh"
    potential: str = "keldysh"
    scissor: float = 0.0
    regularization: float = 0.0


class ExcitonConfiguration(ConfigurationBase):
    """Reader of exciton configuration files.

    The file must hold at least the ``ncells`` and ``dielectric`` blocks;
    every block holds a single line.
    """

    def __init__(self, filename: str | Path):
        super().__init__(filename)
        self.expected_arguments = ["ncells", "dielectric"]
        self.exciton_info = ExcitonInfo()
        self.parse_content()
        self.check_arguments()
        self.check_content_coherence()

    def parse_content(self) -> ExcitonInfo:
        """Fill ``exciton_info`` from the blocks of the file."""
        self.extract_arguments()
        self.extract_raw_content()
        if not self.contents:
            raise RuntimeError("File contents must be extracted first")

        info = self.exciton_info
        for arg in self.found_arguments:
            content = self.contents.get(arg, [])
            if not content:
                continue
            if len(content) != 1:
                raise ValueError("Expected only one line per field")
            line = content[0]

            match arg:
                case "label":
                    info.label = standardize_line(line)
                case "ncells":
                    info.ncell = parse_scalar(line, int)
                case "submesh":
                    info.submesh_factor = parse_scalar(line, int)
                case "shift":
                    info.shift = np.array(parse_line(line, float))
                case "bands":
                    info.nbands = parse_scalar(line, int)
                case "bandlist":
                    info.bands = np.array(parse_line(line, int), dtype=int)
                case "totalmomentum":
                    info.q = np.array(parse_line(line, float))
                case "cutoff":
                    info.cutoff = parse_scalar(line, float)
                case "dielectric":
                    info.eps = np.array(parse_line(line, float))
                case "reciprocal":
                    info.mode = "reciprocalspace"
                    info.n_reciprocal_vectors = parse_scalar(line, int)
                case "exchange":
                    word = parse_word(line)
                    if word not in ("true", "false"):
                        raise ValueError("Exchange option must be set to 'true' or 'false'.")
                    if word == "true":
                        info.exchange = True
                case "exchange.potential":
                    info.exchange_potential = parse_word(line)
                case "potential":
                    info.potential = parse_word(line)
                case "scissor":
                    info.scissor = parse_scalar(line, float)
                case "regularization":
                    info.regularization = parse_scalar(line, float)
                case _:
                    logger.warning("Unexpected argument: %s, skipping block...", arg)
        return info

    def check_content_coherence(self) -> None:
        """Raise if the parsed parameters are inconsistent or incomplete."""
        info = self.exciton_info
        if np.asarray(info.q).size != 3:
            raise ValueError("'Q' must be a 3d vector")
        if info.ncell <= 0:
            raise ValueError("'ncell' must be a positive number")
        if np.asarray(info.bands).size == 0 and info.nbands == 0:
            raise ValueError("'bands' must be specified")
        if np.asarray(info.eps).size == 0:
            raise ValueError("'dielectric' must be specified")
        if info.potential not in SUPPORTED_POTENTIALS:
            raise ValueError("Specified 'potential' not supported. Use 'keldysh' or 'coulomb'")
        if info.exchange and info.exchange_potential not in SUPPORTED_POTENTIALS:
            raise ValueError(
                "Specified 'exchange.potential' not supported. Use 'keldysh' or 'coulomb'"
            )
        if info.mode not in SUPPORTED_MODES:
            raise ValueError("Invalid mode. Use 'realspace' or 'reciprocalspace'")