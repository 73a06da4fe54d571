"""Tests for structview.databases."""

import json

import pytest

from structview import databases as db
from structview.databases.api import _read_database
from structview.databases.models import AminoAcid


class TestNameMaps:
    @pytest.mark.parametrize("name, expected", [("ALA", "A"), ("TRP", "W"), ("MSE", "M"), ("HSD", "H")])
    def test_amino_acids(self, name, expected):
        assert db.get_amino_acid_name_map()[name] == expected

    @pytest.mark.parametrize("name, expected", [("A", "A"), ("U", "U"), ("DT", "T")])
    def test_nucleotides(self, name, expected):
        assert db.get_nucleotide_name_map()[name] == expected

    def test_standard_amino_acids_are_present(self):
        standard = {
            "ALA", "ARG", "ASN", "ASP", "CYS", "GLN", "GLU", "GLY", "HIS", "ILE",
            "LEU", "LYS", "MET", "PHE", "PRO", "SER", "THR", "TRP", "TYR", "VAL",
        }  # fmt: skip
        assert standard <= db.get_amino_acid_names()

    def test_amino_acids_and_nucleotides_do_not_overlap(self):
        assert not db.get_amino_acid_names() & db.get_nucleotide_names()

    def test_version(self):
        assert db.get_database_version()


class TestReadDatabase:
    def test_duplicates_are_kept_once(self, tmp_path):
        path = tmp_path / "amino_acids.json"
        entries = [
            {"description": "alanine", "long_name": "ALA", "short_name": "A"},
            {"description": "alanine", "long_name": "ALA", "short_name": "A"},
            {"description": "glycine", "long_name": "GLY", "short_name": "G"},
        ]
        path.write_text(json.dumps(entries))
        assert [aa.long_name for aa in _read_database(path, AminoAcid)] == ["ALA", "GLY"]
