"""Election root aggregate and the issue markers attached to it."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from election_tally.models.contest import Contest
from election_tally.models.district import District


class IssueKind(StrEnum):
    """Recoverable conditions recorded on the graph instead of raised."""

    PARSE_ERROR = "parse_error"
    FETCH_ERROR = "fetch_error"
    UNRESOLVED_ENTITY = "unresolved_entity"
    VERIFICATION_MISMATCH = "verification_mismatch"
    CONFIGURATION_ERROR = "configuration_error"


@dataclass(frozen=True)
class Issue:
    """A single recorded condition.

    Attributes:
        kind: Issue category.
        message: Human-readable description.
        source: Source kind or pipeline stage that raised it.
        entity_id: Canonical ID of the affected entity, if any.
    """

    kind: IssueKind
    message: str
    source: str | None = None
    entity_id: str | None = None


@dataclass
class CacheConfig:
    """Cache settings the graph was built with."""

    cache_dir: str
    use_cache: bool = False
    check_for_change: bool = True
    use_cache_on_fail: bool = True


@dataclass
class Election:
    """Root of the result graph; exclusively owns its contests and districts."""

    id: str
    title: str
    election_date: date | None = None
    primary: bool = False
    test: bool = False
    notes: list[str] = field(default_factory=list)
    contests: dict[str, Contest] = field(default_factory=dict)
    districts: dict[str, District] = field(default_factory=dict)
    issues: list[Issue] = field(default_factory=list)
    dropped_rows: dict[str, int] = field(default_factory=dict)
    degraded_sources: list[str] = field(default_factory=list)
    cache: CacheConfig | None = None

    def record_issue(
        self,
        kind: IssueKind,
        message: str,
        *,
        source: str | None = None,
        entity_id: str | None = None,
    ) -> Issue:
        """Attach an issue to the graph and return it."""
        issue = Issue(kind=kind, message=message, source=source, entity_id=entity_id)
        self.issues.append(issue)
        return issue

    def count_dropped(self, source: str, count: int) -> None:
        if count:
            self.dropped_rows[source] = self.dropped_rows.get(source, 0) + count

    def issues_of(self, kind: IssueKind) -> list[Issue]:
        return [i for i in self.issues if i.kind == kind]

    @property
    def unmatched_contests(self) -> list[Contest]:
        return [c for c in self.contests.values() if c.unmatched]
