"""Pydantic v2 schema for an election definition file.

An election definition names the election and lists every feed to pull
for it. It is read from a JSON file given to the CLI.
"""

from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field, HttpUrl

from election_tally.lib.sources import MetadataRequest, ResultsRequest, SupplementRequest


class ElectionDefinition(BaseModel):
    """What to ingest for one election."""

    id: str = Field(min_length=1, max_length=100, description="Election identifier, e.g. '20241105'")
    title: str = Field(min_length=1, max_length=500)
    election_date: date | None = Field(default=None, alias="date")
    primary: bool = False
    test: bool = Field(default=False, description="Marks test or draft results")
    notes: list[str] = Field(default_factory=list)
    state_name: str = Field(default="Statewide", description="Display name of the statewide district")

    metadata: list[MetadataRequest] = Field(default_factory=list)
    results: list[ResultsRequest] = Field(min_length=1)
    supplement: list[SupplementRequest] = Field(default_factory=list)
    verification_url: HttpUrl | None = None

    model_config = {"populate_by_name": True}


def load_definition(path: str | Path) -> ElectionDefinition:
    """Read and validate an election definition JSON file.

    Args:
        path: Definition file path.

    Returns:
        The validated definition.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file content is invalid.
    """
    return ElectionDefinition.model_validate_json(Path(path).read_text(encoding="utf-8"))
