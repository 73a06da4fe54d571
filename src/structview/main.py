import hashlib
import json
import time
from typing import TYPE_CHECKING

from loguru import logger

from . import analytics
from ._typing import PathLike
from .databases import get_database_version
from .io import read_molecule
from .models import StructureReport
from .settings import get_settings
from .version import get_version

if TYPE_CHECKING:
    from .cli.args import Arguments as CliArgs


def _get_checksum(structure_path: PathLike) -> str:
    """Computes a checksum for the structure file."""
    with open(structure_path, "rb") as f:
        return hashlib.md5(f.read()).hexdigest()


def main(args: "CliArgs"):
    """Main function to read a structure file and summarize it."""
    start_time = time.perf_counter_ns()
    structure_path = args.structure_file.path

    logger.info(f"Processing structure file: {structure_path}")

    molecule = read_molecule(structure_path, get_settings().parser.local_extensions)
    logger.debug(f"Molecule has {molecule.number_of_atoms:,d} atoms, {molecule.number_of_residues:,d} residues")

    report = StructureReport(
        structure_file=structure_path.name,
        structure_file_checksum=_get_checksum(structure_path),
        database_version=get_database_version(),
        structview_version=get_version(),
        molecule_name=molecule.name,
        statistics=analytics.statistics(molecule),
        sequence=analytics.sequence(molecule),
    )
    if args.with_distogram:
        report = report.model_copy(
            update={
                "residue_ids": analytics.residue_ids(molecule),
                "distogram": analytics.distogram(molecule, args.distogram_method).tolist(),
                "distogram_method": args.distogram_method,
            }
        )

    # Updates run time as late as possible.
    output_json = report.model_dump(mode="json")
    output_json["runtime_in_seconds"] = (time.perf_counter_ns() - start_time) / 1e9

    # Output results: to stdout or writes to a file.
    if args.print_to_stdout:
        print(json.dumps(output_json, indent=2))
    else:
        report_filename = args.get_report_filename()
        with open(report_filename, "w") as f:
            f.write(json.dumps(output_json, indent=2))
        logger.info(f"Results written to {report_filename}")
