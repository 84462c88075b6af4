[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tbexciton"
version = "0.1.0"
description = "Tight-binding excitons: configuration parsing, lattices, a Bi ribbon model, interaction potentials and Bethe-Salpeter solvers"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "scipy",
]
keywords = [
    "exciton",
    "tight-binding",
    "bethe-salpeter",
    "keldysh",
    "brillouin-zone",
    "condensed-matter",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tbexciton"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
