from pydantic import BaseModel


class Nucleotide(BaseModel):
    """Model for a nucleotide."""

    description: str
    residue_name: str
    short_name: str

    def __hash__(self):
        return hash(self.residue_name)


class AminoAcid(BaseModel):
    """Model for an amino acid."""

    description: str
    long_name: str
    short_name: str

    def __hash__(self):
        return hash(self.long_name)
