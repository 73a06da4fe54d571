import click

from ..logging import setup_logging
from ..main import main as structview_main
from ..models import DistogramMethod
from .args import Arguments as CliArgs
from .args import StructureFile


@click.command()
@click.argument("structure_file", type=StructureFile)
@click.option("--distogram", is_flag=True, help="include the residue distance matrix in the report")
@click.option(
    "--method",
    type=click.Choice([method.value for method in DistogramMethod]),
    default=DistogramMethod.REPRESENTATIVE.value,
    show_default=True,
    help="how the distance between two residues is measured",
)
@click.option(
    "-s",
    "--stdout",
    metavar="print_to_stdout",
    is_flag=True,
    help="Output the results to stdout in JSON format",
)
@click.option("-v", "--verbose", is_flag=True, help="show debug messages")
def cli(**kwargs):
    """Summarizes a structure file: atom, residue and chain statistics, sequences, distogram."""
    args = CliArgs(
        structure_file=kwargs["structure_file"],
        with_distogram=kwargs["distogram"],
        distogram_method=DistogramMethod(kwargs["method"]),
        print_to_stdout=kwargs["stdout"],
    )

    logfile = args.get_log_filename()
    setup_logging(logfile, kwargs["verbose"] or None)
    structview_main(args)


__all__ = ["cli"]
