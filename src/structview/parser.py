"""Parses fixed-column coordinate files (ATOM/HETATM records) into molecules.

Only the atom records are read. Fields are extracted by column offset, following the
standard layout of the coordinate file format:

    columns  7-11   atom serial number
    columns 13-16   atom name
    columns 18-20   residue name
    column  22      chain identifier
    columns 23-26   residue sequence number
    columns 31-54   x, y, z coordinates (Å)
    columns 77-78   element symbol

A record whose coordinates cannot be read as three finite numbers is skipped. Nothing else
makes the parse fail: the parser never raises because of the file content.
"""

import math
import re
from collections.abc import Iterable
from pathlib import PurePath

import numpy as np
from loguru import logger

from .logging import is_logging_debug
from .models import Atom, Molecule

DEFAULT_LOCAL_EXTENSIONS = (".pdb", ".ent")

ATOM_RECORDS = ("ATOM  ", "HETATM")
HETERO_RECORD = "HETATM"

# Any line ending convention: LF, CRLF, CR (possibly mixed within one file).
LINE_BREAK = re.compile(r"\r\n|\n|\r")

# 0-based column slices.
SERIAL = slice(6, 11)
ATOM_NAME = slice(12, 16)
ATOM_NAME_ELEMENT = slice(12, 14)
RESIDUE_NAME = slice(17, 20)
CHAIN_ID = slice(21, 22)
RESIDUE_SEQ = slice(22, 26)
COORDINATES = (slice(30, 38), slice(38, 46), slice(46, 54))
ELEMENT = slice(76, 78)


def split_lines(text: str) -> list[str]:
    """Splits a text on any line ending convention."""
    return LINE_BREAK.split(text)


def strip_extension(name: str, extensions: Iterable[str] = DEFAULT_LOCAL_EXTENSIONS) -> str:
    """Returns `name` without its extension if the extension is a recognized one."""
    suffix = PurePath(name).suffix
    if suffix and suffix.lower() in {ext.lower() for ext in extensions}:
        return name[: -len(suffix)]
    return name


def is_local_format(name: str, extensions: Iterable[str] = DEFAULT_LOCAL_EXTENSIONS) -> bool:
    """Returns True if files named `name` are parsed locally."""
    return PurePath(name).suffix.lower() in {ext.lower() for ext in extensions}


def _parse_int(field: str, default: int) -> int:
    try:
        return int(field)
    except ValueError:
        return default


def _parse_coordinates(line: str) -> tuple[float, float, float] | None:
    """Returns the x, y, z coordinates of an atom record, or None if they are not all finite numbers."""
    try:
        x, y, z = (float(line[columns]) for columns in COORDINATES)
    except ValueError:
        return None
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        return None
    return x, y, z


def parse_atom_line(line: str, ordinal: int = 0) -> Atom | None:
    """Reads an ATOM/HETATM record.

    Args:
        line: the record.
        ordinal: 1-based position of the record among the atom records of the file, used as
            atom id when the serial number is not an integer.

    Returns:
        The atom, or None if the record coordinates are invalid.
    """
    position = _parse_coordinates(line)
    if position is None:
        return None

    # Some files store the element in the atom name field only.
    element = line[ELEMENT].strip() or line[ATOM_NAME_ELEMENT].strip()

    return Atom(
        id=_parse_int(line[SERIAL], ordinal),
        element=element,
        residue=line[RESIDUE_NAME].strip(),
        chain=line[CHAIN_ID].strip(),
        residue_id=_parse_int(line[RESIDUE_SEQ], 0),
        position=position,
        name=line[ATOM_NAME].strip(),
        hetero=line.startswith(HETERO_RECORD),
    )


def parse_structure_text(
    text: str, source_name: str, extensions: Iterable[str] = DEFAULT_LOCAL_EXTENSIONS
) -> Molecule:
    """Parses the content of a coordinate file.

    The molecule id is `source_name`, its display name is `source_name` without its
    recognized extension. Atoms are kept in file order.
    """
    lines = split_lines(text)
    atoms = []
    number_of_records = 0
    for line in lines:
        if not line.startswith(ATOM_RECORDS):
            continue
        number_of_records += 1
        atom = parse_atom_line(line, ordinal=number_of_records)
        if atom is None:
            logger.debug(f"Skipping atom record with invalid coordinates: {line!r}")
            continue
        atoms.append(atom)

    logger.debug(f"{source_name}: parsed {len(atoms):,d} atoms from {number_of_records:,d} atom records")
    if not atoms:
        logger.warning(f"No atoms found in {source_name}")
        if is_logging_debug():
            logger.debug(f"First lines of {source_name}: {lines[:10]}")

    return Molecule(id=source_name, name=strip_extension(source_name, extensions), atoms=tuple(atoms))


def ca_coordinates(text: str) -> np.ndarray:
    """Returns the coordinates of the alpha carbons (ATOM records named CA) as a (N, 3) array."""
    coordinates = []
    for line in split_lines(text):
        if not line.startswith(ATOM_RECORDS[0]) or line[ATOM_NAME].strip() != "CA":
            continue
        position = _parse_coordinates(line)
        if position is not None:
            coordinates.append(position)
    logger.debug(f"Extracted {len(coordinates):,d} CA atom coordinates")
    return np.array(coordinates, dtype=np.float64).reshape(-1, 3)
