"""Seed the supplemental store with computed entity IDs.

The engine only reads the supplemental store during a pipeline pass.
``setup_supplement`` is the one explicit write: it pushes a skeleton
record for every contest and candidate the store does not have yet, so
editors can fill in display fields keyed by canonical ID.

Provides a ``SupplementStore`` Protocol and a ``CsvSupplementStore``
implementation writing the same CSV layout the supplemental fetcher reads.
"""

import csv
import io
from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os
from loguru import logger

from election_tally.lib.sources import SupplementRecord
from election_tally.lib.sources.supplement import parse_supplement_text
from election_tally.models import Election

SETUP_COLUMNS = ["id", "entity", "contest_id", "title", "area", "full_name", "party"]


class SupplementStore(Protocol):
    """Writable supplemental data store."""

    async def existing_ids(self) -> set[str]:
        """Return the IDs of every record already in the store."""
        ...

    async def push(self, records: list[SupplementRecord]) -> int:
        """Add records to the store.

        Args:
            records: Records to add.

        Returns:
            Number of records written.
        """
        ...


class CsvSupplementStore:
    """Supplemental store kept in a local CSV file.

    Args:
        path: CSV file path; created with a header on first push.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def _read(self) -> str:
        if not await aiofiles.os.path.exists(self.path):
            return ""
        async with aiofiles.open(self.path, encoding="utf-8", newline="") as f:
            return await f.read()

    async def existing_ids(self) -> set[str]:
        text = await self._read()
        if not text.strip():
            return set()
        outcome = parse_supplement_text(text)
        return {record.id for record in outcome.records}

    async def push(self, records: list[SupplementRecord]) -> int:
        if not records:
            return 0
        existing = await self._read()
        header = next(csv.reader(io.StringIO(existing)), None) if existing.strip() else None
        columns = header or SETUP_COLUMNS

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
        if header is None:
            writer.writeheader()
        for record in records:
            writer.writerow({"id": record.id, "entity": record.entity, **record.fields})

        self.path.parent.mkdir(parents=True, exist_ok=True)
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        async with aiofiles.open(self.path, "a", encoding="utf-8", newline="") as f:
            await f.write(prefix + buffer.getvalue())
        return len(records)


def setup_records(election: Election, existing: set[str]) -> list[SupplementRecord]:
    """Skeleton records for every contest and candidate not in ``existing``."""
    records = []
    for contest in election.contests.values():
        if contest.id not in existing:
            fields = {"title": contest.title, "area": contest.area}
            records.append(
                SupplementRecord(entity="contest", id=contest.id, fields={k: v for k, v in fields.items() if v})
            )
        for candidate in contest.candidate_list:
            if candidate.id in existing:
                continue
            fields = {"contest_id": contest.id, "full_name": candidate.full_name, "party": candidate.party}
            records.append(
                SupplementRecord(entity="candidate", id=candidate.id, fields={k: v for k, v in fields.items() if v})
            )
    return records


async def setup_supplement(election: Election, store: SupplementStore) -> int:
    """Push skeleton records for new contests and candidates to the store.

    Args:
        election: A resolved election graph.
        store: Writable supplemental store.

    Returns:
        Number of records pushed.
    """
    existing = await store.existing_ids()
    records = setup_records(election, existing)
    pushed = await store.push(records)
    logger.info("Pushed {} new supplemental record(s) for {} ({} already present)", pushed, election.id, len(existing))
    return pushed
