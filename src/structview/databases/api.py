import json
from collections import Counter
from functools import lru_cache
from pathlib import Path
from typing import TypeVar

from loguru import logger

from .models import AminoAcid, Nucleotide

DATABASES_DATA_PATH = Path(__file__).parent.parent / "data" / "databases"
assert DATABASES_DATA_PATH.is_dir(), (
    f"Database path {DATABASES_DATA_PATH} does not exist or is not a directory"
)


class NotAFileError(IOError):
    """Raised when a path is not a file."""


def assert_database_exists(path: Path):
    """Asserts that the database exists and is a file."""
    if not path.exists():
        raise FileNotFoundError(f"Database {path!r} does not exist")
    if not path.is_file():
        raise NotAFileError(f"Database {path!r} is not a file")


AMINO_ACIDS_DB_PATH = DATABASES_DATA_PATH / "amino_acids.json"
assert_database_exists(AMINO_ACIDS_DB_PATH)

NUCLEOTIDES_DB_PATH = DATABASES_DATA_PATH / "nucleotides.json"
assert_database_exists(NUCLEOTIDES_DB_PATH)


ModelType = TypeVar("ModelType", AminoAcid, Nucleotide)


def _read_database(path: Path, model: type[ModelType]) -> list[ModelType]:
    """Reads a database file and returns a list of entries."""
    with open(path, "r") as f:
        raw_data = [model.model_validate(entry) for entry in json.load(f)]

    # Check for duplicates: the first occurrence is kept.
    counts = Counter(entry for entry in raw_data)
    for entry, count in counts.items():
        if count > 1:
            logger.warning(f"Duplicate residue {entry!r} found in database")

    return list(counts)


def read_amino_acid_database() -> list[AminoAcid]:
    return _read_database(AMINO_ACIDS_DB_PATH, AminoAcid)


def read_nucleotide_database() -> list[Nucleotide]:
    return _read_database(NUCLEOTIDES_DB_PATH, Nucleotide)


@lru_cache(maxsize=1)
def get_amino_acid_definitions() -> list[AminoAcid]:
    """Returns the definitions of the amino acids in the database."""
    return read_amino_acid_database()


@lru_cache(maxsize=1)
def get_nucleotide_definitions() -> list[Nucleotide]:
    """Returns the definitions of the nucleotides in the database."""
    return read_nucleotide_database()


def get_amino_acid_name_map() -> dict[str, str]:
    """Returns a mapping of amino acid 3-letter names to 1-letter names."""
    return {aa.long_name: aa.short_name for aa in get_amino_acid_definitions()}


def get_nucleotide_name_map() -> dict[str, str]:
    """Returns a mapping of nucleotide residue names to 1-letter names."""
    return {nucleotide.residue_name: nucleotide.short_name for nucleotide in get_nucleotide_definitions()}


def get_amino_acid_names() -> set[str]:
    """Returns the names of the amino acids in the database."""
    return set(aa.long_name for aa in get_amino_acid_definitions())


def get_nucleotide_names() -> set[str]:
    """Returns the names of the nucleotides in the database."""
    return set(nucleotide.residue_name for nucleotide in get_nucleotide_definitions())
