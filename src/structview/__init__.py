from .analytics import distogram, residue_ids, sequence, statistics, tm_score
from .io import StructureReadError, read_molecule, read_report, read_structure_text
from .loader import JobResult, StructureLoader
from .models import (
    Atom,
    ColorScheme,
    FileBinding,
    Molecule,
    MoleculeStatistics,
    Structure,
    StructureMetadata,
    StructureSource,
    ViewMode,
)
from .parser import parse_structure_text
from .registry import RegistrySnapshot, StructureRegistry
from .viewer import ViewerConfiguration, ViewerController

__all__ = [
    "distogram",
    "residue_ids",
    "sequence",
    "statistics",
    "tm_score",
    "parse_structure_text",
    "read_molecule",
    "read_report",
    "read_structure_text",
    "StructureReadError",
    "JobResult",
    "StructureLoader",
    "RegistrySnapshot",
    "StructureRegistry",
    "ViewerConfiguration",
    "ViewerController",
    "Atom",
    "ColorScheme",
    "FileBinding",
    "Molecule",
    "MoleculeStatistics",
    "Structure",
    "StructureMetadata",
    "StructureSource",
    "ViewMode",
]
