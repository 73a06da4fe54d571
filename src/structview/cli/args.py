import sys
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from loguru import logger

from ..models import DistogramMethod

DEFAULT_OUTPUT_STEM_SUFFIX = "_structview"


def _fatal_error(msg: str, status: int = 1):
    """Prints an error message and exits with status `status`."""
    logger.critical(msg)
    sys.exit(status)


@dataclass
class InputFile:
    path: Path
    valid_extensions: ClassVar[set[str]]

    def __post_init__(self):
        # Ensures paths are pathlib.Path instances.
        self.path = Path(self.path)

        # Ensures paths are valid files.
        path = self.path
        if not path.exists():
            _fatal_error(f"'{path}' does not exist")
        if not path.is_file():
            _fatal_error(f"'{path}' is not a file")
        if path.suffix.lower() not in self.valid_extensions:
            _fatal_error(f"'{path}' has an invalid extension (valid extensions are {sorted(self.valid_extensions)})")

    @property
    def extension(self) -> str:
        return self.path.suffix

    @property
    def stem(self) -> str:
        return self.path.stem


@dataclass
class StructureFile(InputFile):
    valid_extensions: ClassVar[set[str]] = {".pdb", ".ent"}


@dataclass
class Arguments:
    """Holds command-line arguments.

    Attrs:
        structure_file (StructureFile): Path to the structure file.
        with_distogram (bool): Whether to include the distogram in the report.
        distogram_method (DistogramMethod): How residue distances are measured.
        print_to_stdout (bool): Whether to output results to stdout.
    """

    structure_file: StructureFile
    with_distogram: bool = False
    distogram_method: DistogramMethod = DistogramMethod.REPRESENTATIVE
    print_to_stdout: bool = False

    def get_log_filename(self) -> Path:
        return generate_output_log_path(self.structure_file.stem)

    def get_report_filename(self) -> Path:
        return generate_output_report_path(self.structure_file.stem)


def generate_output_report_path(stem: str) -> Path:
    return Path(stem + DEFAULT_OUTPUT_STEM_SUFFIX + ".json")


def generate_output_log_path(stem: str) -> Path:
    return Path(stem + DEFAULT_OUTPUT_STEM_SUFFIX + ".log")
