from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]


class StructureSource(StrEnum):
    FILE = "file"
    JOB = "job"


class ViewMode(StrEnum):
    DEFAULT = "default"
    CARTOON = "cartoon"
    SPACEFILL = "spacefill"
    LICORICE = "licorice"
    SURFACE = "surface"


class ColorScheme(StrEnum):
    DEFAULT = "default"
    CHAIN = "chain"
    RESIDUE = "residue"
    ELEMENT = "element"
    BFACTOR = "bfactor"
    SEQUENCE = "sequence"


class DistogramMethod(StrEnum):
    REPRESENTATIVE = "representative"
    MINIMUM = "minimum"


class FrozenModel(BaseModel):
    """Base model with frozen configuration to prevent modification.

    Extra attributes are forbidden for more safety.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",  # forbid extra attributes
    )


class Atom(FrozenModel):
    """A single ATOM/HETATM record.

    `id` is the serial number read from the file. It is only unique within the atom list
    of the molecule it belongs to, if at all.
    """

    id: int
    element: str
    residue: str
    chain: str
    residue_id: int
    position: tuple[FiniteFloat, FiniteFloat, FiniteFloat]
    name: str = ""
    hetero: bool = False


class Molecule(FrozenModel):
    """A parsed structure: atoms in file order."""

    id: str
    name: str
    atoms: tuple[Atom, ...] = ()

    @property
    def number_of_atoms(self) -> int:
        return len(self.atoms)

    @property
    def number_of_residues(self) -> int:
        return len({atom.residue_id for atom in self.atoms})


class ChainInfo(FrozenModel):
    chain_id: str
    residue_count: int
    atom_count: int


class MoleculeStatistics(FrozenModel):
    """Summary statistics of a molecule.

    Derived on demand, never stored on the molecule itself.
    """

    total_atoms: int
    unique_elements: list[str]
    residue_counts: dict[str, int]
    chain_info: list[ChainInfo]
    water_count: int
    ion_count: int

    @model_validator(mode="after")
    def check_chain_atoms_add_up(self):
        n = sum(chain.atom_count for chain in self.chain_info)
        if n != self.total_atoms:
            raise ValueError(
                f"field `total_atoms` ({self.total_atoms}) does not add up with the chain info (found {n} atoms)"
            )
        return self


class StructureMetadata(FrozenModel):
    """Metadata attached to a structure by analyses or by the prediction service.

    The service payload names are accepted as aliases (`plddt_score`, `user_id`).
    """

    distogram: list[list[float]] | None = None
    confidence_score: float | None = Field(
        default=None, validation_alias=AliasChoices("confidence_score", "plddt_score")
    )
    created_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    owner: str | None = Field(default=None, validation_alias=AliasChoices("owner", "user_id"))

    def merge(self, patch: StructureMetadata) -> StructureMetadata:
        """Returns a copy where the fields explicitly set on `patch` replace the current values.

        Fields left unset on `patch` are kept. An explicit `None` clears a field.
        """
        return self.model_copy(update=patch.model_dump(exclude_unset=True))


class Structure(FrozenModel):
    """A registry entry.

    `molecule` is absent while the local parse is pending, and for formats which are not
    parsed locally (`parse_locally=False`), whose `raw` text is handed to the renderer as is.
    """

    id: str
    source: StructureSource
    name: str
    raw: str = ""
    molecule: Molecule | None = None
    metadata: StructureMetadata | None = None
    parse_locally: bool = True

    @property
    def pending(self) -> bool:
        """Returns True if the structure waits for its local parse."""
        return self.parse_locally and self.molecule is None


class FileBinding(FrozenModel):
    """An uploaded file paired with its (possibly not yet parsed) molecule.

    `structure_id` is the identity shared with the file-sourced structure created for the
    upload; it is the only key used to correlate the two.
    """

    structure_id: str
    file_name: str
    path: Path | None = None
    molecule: Molecule | None = None


def file_structure_id(file_name: str, created_at: datetime) -> str:
    """Returns the stable identity of a structure created from an uploaded file."""
    return f"{file_name}@{created_at:%Y%m%dT%H%M%S%f}"


class StructureReport(BaseModel):
    """Output model of the command line interface.

    `runtime_in_seconds` is added to the json output by hand, at the last moment, for better
    accuracy.
    """

    structure_file: str
    structure_file_checksum: str
    database_version: str
    structview_version: str
    molecule_name: str
    statistics: MoleculeStatistics
    sequence: dict[str, str]
    residue_ids: list[int] | None = None
    distogram: list[list[float]] | None = None
    distogram_method: DistogramMethod | None = None


class StructureReportRead(StructureReport):
    """Report read back from a json file."""

    runtime_in_seconds: float
