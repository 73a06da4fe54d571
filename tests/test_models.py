"""Tests for structview.models."""

from datetime import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from structview.models import (
    Atom,
    ChainInfo,
    Molecule,
    MoleculeStatistics,
    Structure,
    StructureMetadata,
    StructureReportRead,
    StructureSource,
    file_structure_id,
)

TEST_DATA_DIR = Path(__file__).parent / "data"


class TestAtom:
    def test_non_finite_position(self):
        with pytest.raises(ValidationError):
            Atom(id=1, element="C", residue="ALA", chain="A", residue_id=1, position=(0.0, float("inf"), 0.0))

    def test_extra_fields_are_forbidden(self):
        with pytest.raises(ValidationError):
            Atom(id=1, element="C", residue="ALA", chain="A", residue_id=1, position=(0.0, 0.0, 0.0), charge=1)


class TestMolecule:
    def test_counts(self):
        atoms = tuple(
            Atom(id=i, element="C", residue="ALA", chain="A", residue_id=i // 2, position=(0.0, 0.0, 0.0))
            for i in range(6)
        )
        molecule = Molecule(id="m.pdb", name="m", atoms=atoms)
        assert molecule.number_of_atoms == 6
        assert molecule.number_of_residues == 3


class TestMoleculeStatistics:
    def _statistics(self, total_atoms: int) -> MoleculeStatistics:
        return MoleculeStatistics(
            total_atoms=total_atoms,
            unique_elements=["C"],
            residue_counts={"ALA": 3},
            chain_info=[ChainInfo(chain_id="A", residue_count=1, atom_count=2), ChainInfo(chain_id="B", residue_count=1, atom_count=1)],
            water_count=0,
            ion_count=0,
        )

    def test_chain_atoms_validation_success(self):
        try:
            self._statistics(3)
        except Exception as exc:
            assert False, f"exception was raised: {exc}"

    def test_chain_atoms_validation_fails(self):
        with pytest.raises(ValueError, match=r"field `total_atoms` \(4\) does not add up"):
            self._statistics(4)


class TestStructureMetadata:
    def test_aliases(self):
        metadata = StructureMetadata.model_validate({"plddt_score": 12.5, "user_id": "me"})
        assert metadata.confidence_score == 12.5
        assert metadata.owner == "me"

    def test_merge_keeps_unset_fields(self):
        current = StructureMetadata(confidence_score=1.0, error_message="boom")
        merged = current.merge(StructureMetadata(owner="me"))
        assert merged.confidence_score == 1.0
        assert merged.error_message == "boom"
        assert merged.owner == "me"

    def test_merge_explicit_none(self):
        current = StructureMetadata(error_message="boom")
        assert current.merge(StructureMetadata(error_message=None)).error_message is None

    def test_merge_does_not_modify_original(self):
        current = StructureMetadata(confidence_score=1.0)
        current.merge(StructureMetadata(confidence_score=2.0))
        assert current.confidence_score == 1.0


class TestStructure:
    def test_pending(self):
        assert Structure(id="a", source=StructureSource.FILE, name="a").pending
        assert not Structure(id="a", source=StructureSource.FILE, name="a", parse_locally=False).pending

    def test_invalid_source(self):
        with pytest.raises(ValidationError):
            Structure(id="a", source="url", name="a")


class TestFileStructureId:
    def test_format(self):
        created_at = datetime(2026, 1, 2, 3, 4, 5, 678)
        assert file_structure_id("1abc.pdb", created_at) == "1abc.pdb@20260102T030405000678"

    def test_distinct_times(self):
        first = file_structure_id("a.pdb", datetime(2026, 1, 1, 0, 0, 0, 1))
        second = file_structure_id("a.pdb", datetime(2026, 1, 1, 0, 0, 0, 2))
        assert first != second


class TestStructureReportRead:
    def test_runtime_is_required(self):
        report = {
            "structure_file": "a.pdb",
            "structure_file_checksum": "0",
            "database_version": "2026.10",
            "structview_version": "0.1.0",
            "molecule_name": "a",
            "statistics": {
                "total_atoms": 0,
                "unique_elements": [],
                "residue_counts": {},
                "chain_info": [],
                "water_count": 0,
                "ion_count": 0,
            },
            "sequence": {},
        }
        with pytest.raises(ValidationError):
            StructureReportRead.model_validate(report)
        report["runtime_in_seconds"] = 0.1
        assert StructureReportRead.model_validate(report).distogram is None
