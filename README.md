# tbexciton

A library of building blocks for computing excitons in tight-binding
crystals. It solves the Bethe-Salpeter equation (BSE) with screened
electron-hole interactions.

## Modules

- `tbexciton.configuration`: `ConfigurationBase` reads files made of
  blocks. Each block starts with a line holding `#` and the block's name,
  and that line is followed by the block's content. Blank lines and lines
  containing `!` are skipped. Commas and semicolons are turned into blanks.
  The module also provides the helpers `parse_argument`,
  `standardize_line`, `parse_line`, `parse_scalar`, `parse_word` and
  `parse_fraction`.
- `tbexciton.exciton_config`: `ExcitonConfiguration` reads an exciton file
  into an `ExcitonInfo` dataclass, which is stored as `exciton_info`. It
  understands these blocks: `label`, `ncells`, `submesh`, `shift`, `bands`,
  `bandlist`, `totalmomentum`, `cutoff`, `dielectric`, `reciprocal`,
  `exchange`, `exchange.potential`, `potential`, `scissor` and
  `regularization`. The blocks `ncells` and `dielectric` are required. The
  reader raises `ValueError` when the parameters are incoherent.
- `tbexciton.crystal`: `CrystalConfiguration` reads a CRYSTAL `.outp` file.
  It extracts the lattice, with the dimension found from the fictitious
  lattice vectors, and the motif. It also extracts the atomic basis and the
  Fock and overlap matrices of the first `ncells` cells.
  `system_info()` builds a `SystemInfo` from these. For spin-unrestricted
  runs, the alpha and beta matrices are combined into spinful matrices.
- `tbexciton.gtf`: `GTFConfiguration` adds the SCF and auxiliary Gaussian
  basis sets from a bases file, given as `BasisSet` records. SP shells are
  split into an S shell and a P shell, and pseudo-potentials are skipped.
  `fortran_float` converts numbers written with `D` exponents.
- `tbexciton.lattice`: `Lattice` computes the reciprocal lattice, the
  lattice parameters and the unit-cell length, area or volume. It also
  provides:
  - Monkhorst-Pack meshes through `brillouin_zone_mesh` and
    `reduced_brillouin_zone_mesh`;
  - mesh shifts through `shift_bz`;
  - the mapping of a k point back onto the mesh through
    `find_equivalent_point_bz`;
  - supercells cut off by a radius through `truncate_supercell` and
    `truncate_reciprocal_supercell`.

  The module also has the helpers `generate_combinations`,
  `reciprocal_lattice` and `rotate_c3`.
- `tbexciton.biribbon`: `BiRibbon(n, zeeman_axis)` is a Slater-Koster model
  of a zigzag bismuth nanoribbon. It has s and p orbitals with spin,
  spin-orbit coupling and a small Zeeman term. Its Bloch matrices are kept
  in `hamiltonian_matrices`, with shape `(3, dim, dim)`, for the cells in
  `unit_cell_list`. It also provides `inversion_operator`,
  `apply_electric_field`, `offset_edges` and `add_substrate`.
- `tbexciton.potentials`: this module contains:
  - `ScreeningParameters`;
  - the Struve function `struve_h0`;
  - `keldysh_potential` and `coulomb_potential`, both regularized at the
    origin and set to zero beyond a cutoff;
  - `keldysh_fourier`, the Fourier transform of the Keldysh potential;
  - `select_potential`, which picks a potential by name.
- `tbexciton.interactions`: this module provides the motif Fourier
  transforms (`motif_fourier_transform`, `motif_ft_matrix` and
  `extend_motif_ft`), `real_space_interaction_term`,
  `bloch_coherence_factor`, `fix_global_phase`, `split_bands` and
  `orbital_offsets`.
- `tbexciton.bse`: this module provides:
  - `band_lists` and `build_basis`, which build the electron-hole pair
    basis, with rows `(v, c, k)`;
  - `bse_hamiltonian`, the real-space BSE Hamiltonian, with an optional
    exchange term;
  - `diagonalize`, with method `"diag"` (full spectrum), `"davidson"`
    (LOBPCG) or `"sparse"` (ARPACK), which returns an `ExcitonSpectrum`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

```python
import numpy as np
from tbexciton.lattice import Lattice
from tbexciton.potentials import ScreeningParameters, keldysh_potential

a = 2.5
bravais = np.array([[a, 0.0, 0.0], [a / 2, a * np.sqrt(3) / 2, 0.0]])
motif = np.array([[0.0, 0.0, 0.0, 0.0]])
lattice = Lattice(2, bravais, motif, np.zeros((1, 3)))
kpoints = lattice.brillouin_zone_mesh(6)       # 36 k points

params = ScreeningParameters.from_sequence([1.0, 1.0, 10.0])
value = keldysh_potential(np.array([a, 0.0, 0.0]), params, regularization=a, cutoff=100.0)
```

```python
import numpy as np
from tbexciton.bse import build_basis, diagonalize

basis = build_basis([3], [4], nk=4)            # rows (v, c, k)
spectrum = diagonalize(np.diag([1.0, 2.0, 3.0]), method="diag")
spectrum.energies                              # ascending energies
```

An exciton configuration file looks like this:

```
# label
hBN
# ncells
20
# bands
1
# dielectric
1.0 1.0 10.0
```

Read it with `ExcitonConfiguration("exciton.txt")`. The parsed values are
in its `exciton_info` attribute.

## What the package does not do

- There is no command-line program. Everything is used from Python.
- There is no general tight-binding system class. Nothing turns a
  `SystemInfo` into Bloch Hamiltonians, and nothing solves its bands over a
  mesh. The single-particle eigenvalues and eigenvectors passed to
  `bse_hamiltonian` have to be computed by the caller.
- `bse_hamiltonian` assembles only the real-space kernel. The
  reciprocal-space pieces (`bloch_coherence_factor` and `keldysh_fourier`)
  are available, but nothing assembles them into a BSE Hamiltonian.
- Configurations cannot be read from HDF5 files.
- It does not compute absorption spectra, oscillator strengths, exciton
  spins, velocities or real-space wavefunctions, and it writes no result
  files.