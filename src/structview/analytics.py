"""Analyses of parsed molecules.

All functions are pure: they read a molecule and return a new value, nothing is cached on
the molecule.
"""

import collections
import time

import numpy as np
import numpy.typing as npt
from loguru import logger

from ._typing import DistanceMatrix
from .databases import get_amino_acid_name_map, get_nucleotide_name_map
from .models import Atom, ChainInfo, DistogramMethod, Molecule, MoleculeStatistics

WATER_RESIDUES = frozenset({"HOH", "WAT"})
UNKNOWN_RESIDUE_CODE = "X"


def is_water(residue: str) -> bool:
    return residue in WATER_RESIDUES


def is_ion(residue: str) -> bool:
    """Returns True if a residue code looks like an ion.

    This is a heuristic: codes of at most two characters without lowercase letters. It also
    matches some two-letter codes which are not ions (e.g. nucleotides such as "DA").
    """
    return len(residue) <= 2 and not any(char.islower() for char in residue)


def statistics(molecule: Molecule) -> MoleculeStatistics:
    """Computes summary statistics of a molecule in a single pass over its atoms."""
    elements = set()
    residue_counts = collections.Counter()
    chain_residues = collections.defaultdict(set)
    chain_atoms = collections.Counter()
    water_count = 0
    ion_count = 0

    for atom in molecule.atoms:
        elements.add(atom.element)
        residue_counts[atom.residue] += 1
        chain_residues[atom.chain].add(atom.residue_id)
        chain_atoms[atom.chain] += 1
        if is_water(atom.residue):
            water_count += 1
        elif is_ion(atom.residue):
            ion_count += 1

    chain_info = [
        ChainInfo(chain_id=chain_id, residue_count=len(chain_residues[chain_id]), atom_count=chain_atoms[chain_id])
        for chain_id in sorted(chain_atoms)
    ]

    return MoleculeStatistics(
        total_atoms=len(molecule.atoms),
        unique_elements=sorted(elements),
        residue_counts=dict(residue_counts),
        chain_info=chain_info,
        water_count=water_count,
        ion_count=ion_count,
    )


def residue_ids(molecule: Molecule) -> list[int]:
    """Returns the distinct residue ids of a molecule in ascending order.

    This is the order of the rows and columns of the distogram.
    """
    return sorted({atom.residue_id for atom in molecule.atoms})


def _is_alpha_carbon(atom: Atom) -> bool:
    return atom.name == "CA" and not atom.hetero


def representative_positions(molecule: Molecule) -> npt.NDArray[np.float64]:
    """Returns one position per residue id, ordered by ascending residue id.

    The representative atom of a residue is its alpha carbon if it has one, the first atom
    of the residue in file order otherwise.
    """
    representatives: dict[int, Atom] = {}
    for atom in molecule.atoms:
        current = representatives.get(atom.residue_id)
        if current is None or (_is_alpha_carbon(atom) and not _is_alpha_carbon(current)):
            representatives[atom.residue_id] = atom
    positions = [representatives[resid].position for resid in sorted(representatives)]
    return np.array(positions, dtype=np.float64).reshape(-1, 3)


def _pairwise_distances(positions: npt.NDArray[np.float64]) -> DistanceMatrix:
    """Returns the euclidean distance matrix of a set of positions.

    Only the upper triangle is computed, then mirrored. The diagonal is zero.
    """
    n = len(positions)
    matrix = np.zeros((n, n), dtype=np.float64)
    upper, lower = np.triu_indices(n, k=1)
    matrix[upper, lower] = np.linalg.norm(positions[upper] - positions[lower], axis=1)
    matrix[lower, upper] = matrix[upper, lower]
    return matrix


def _minimum_distances(molecule: Molecule) -> DistanceMatrix:
    """Returns the matrix of the minimum inter-atomic distance between each pair of residues."""
    by_residue = collections.defaultdict(list)
    for atom in molecule.atoms:
        by_residue[atom.residue_id].append(atom.position)
    groups = [np.array(by_residue[resid], dtype=np.float64) for resid in sorted(by_residue)]

    n = len(groups)
    matrix = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in range(i + 1, n):
            distances = np.linalg.norm(groups[i][:, None] - groups[j], axis=-1)
            matrix[i, j] = matrix[j, i] = distances.min()
    return matrix


def distogram(molecule: Molecule, method: DistogramMethod | str = DistogramMethod.REPRESENTATIVE) -> DistanceMatrix:
    """Computes the residue-residue distance matrix of a molecule.

    Rows and columns follow `residue_ids(molecule)`. The matrix is symmetric with a zero
    diagonal; a molecule without atoms gives a (0, 0) matrix.

    Time and memory are quadratic in the number of residues (cubic-ish in atoms for the
    "minimum" method), which limits the size of the structures this is usable for.

    Args:
        molecule: the molecule.
        method: "representative" uses one position per residue (see `representative_positions`),
            "minimum" uses the minimum distance between any two atoms of the residues.
    """
    method = DistogramMethod(method)
    timer_start = time.perf_counter()
    if method == DistogramMethod.MINIMUM:
        matrix = _minimum_distances(molecule)
    else:
        matrix = _pairwise_distances(representative_positions(molecule))
    elapsed = time.perf_counter() - timer_start
    logger.debug(f"{molecule.id}: {len(matrix)}x{len(matrix)} distogram ({method}) computed in {elapsed:.2f} seconds")
    return matrix


def sequence(molecule: Molecule) -> dict[str, str]:
    """Returns the one-letter sequence of each chain, keyed by chain id.

    Residues are taken in file order. Polymer residues (ATOM records) with an unknown code
    are written `X`. Hetero residues are only kept when they are known amino acids or
    nucleotides (e.g. MSE), so that water, ions and ligands are left out.
    """
    residue_names = get_amino_acid_name_map()
    residue_names.update(get_nucleotide_name_map())

    sequences = collections.defaultdict(list)
    seen = set()
    for atom in molecule.atoms:
        key = (atom.chain, atom.residue_id, atom.residue)
        if key in seen:
            continue
        seen.add(key)
        if atom.hetero and atom.residue not in residue_names:
            continue
        sequences[atom.chain].append(residue_names.get(atom.residue, UNKNOWN_RESIDUE_CODE))
    return {chain_id: "".join(sequences[chain_id]) for chain_id in sorted(sequences)}


def tm_score(predicted: npt.ArrayLike, reference: npt.ArrayLike) -> float:
    """Computes the TM-score of two sets of equally indexed coordinates.

    No superposition is performed: the coordinates are expected to be aligned already.
    Sets of different lengths are truncated to the shorter one. Non-finite distances
    are ignored.
    """
    predicted = np.asarray(predicted, dtype=np.float64).reshape(-1, 3)
    reference = np.asarray(reference, dtype=np.float64).reshape(-1, 3)

    if len(predicted) == 0 or len(reference) == 0:
        logger.warning("TM-score: empty coordinate set")
        return 0.0

    if len(predicted) != len(reference):
        logger.warning(
            f"TM-score: coordinate sets have different lengths ({len(predicted)} vs {len(reference)})"
        )
        length = min(len(predicted), len(reference))
        predicted = predicted[:length]
        reference = reference[:length]

    target_length = len(reference)
    d0 = max(1.24 * np.cbrt(target_length - 15) - 1.8, 0.5)

    distances = np.linalg.norm(predicted - reference, axis=1)
    distances = distances[np.isfinite(distances)]
    if len(distances) == 0:
        logger.warning("TM-score: no valid point")
        return 0.0

    return float(np.sum(1.0 / (1.0 + (distances / d0) ** 2)) / target_length)
