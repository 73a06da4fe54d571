"""structview read/write functions"""

from pathlib import Path

from loguru import logger

from ._typing import PathLike
from .models import Molecule, StructureReportRead
from .parser import DEFAULT_LOCAL_EXTENSIONS, parse_structure_text


class StructureReadError(IOError):
    """Raised when a structure file cannot be read or decoded."""


def decode_structure_bytes(data: bytes, source_name: str) -> str:
    """Decodes the raw content of a structure file."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise StructureReadError(f"{source_name}: content is not valid UTF-8 text") from e


def read_structure_text(path: PathLike) -> str:
    """Reads the text content of a structure file."""
    path = Path(path)
    logger.debug(f"Reading structure file {path}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise StructureReadError(f"failed to read {path}") from e
    return decode_structure_bytes(data, path.name)


def read_molecule(path: PathLike, extensions=DEFAULT_LOCAL_EXTENSIONS) -> Molecule:
    """Reads and parses a structure file."""
    path = Path(path)
    return parse_structure_text(read_structure_text(path), path.name, extensions)


def read_report(path: PathLike) -> StructureReportRead:
    with open(path) as fileobj:
        return StructureReportRead.model_validate_json(fileobj.read())
