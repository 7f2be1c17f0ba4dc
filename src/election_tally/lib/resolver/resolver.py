"""Join metadata, results and supplemental records.

The three inputs share no primary key. Districts and contests are keyed
by canonical IDs built with the shared key rules; a contest joins its
district by exact canonical ID first and the looser contest-match key
second. Anything that cannot be joined is kept and flagged, never
dropped.
"""

import re
from collections import defaultdict
from collections.abc import Iterable

from loguru import logger

from election_tally.lib.identity import (
    candidate_id,
    contest_id,
    contest_match_key,
    district_id,
    district_match_key,
    is_write_in_name,
    normalize_text,
    pad_left,
    parse_bool,
    parse_int,
    split_name,
)
from election_tally.lib.sources.records import (
    DistrictRecord,
    MetadataBatch,
    QuestionRecord,
    ResultRecord,
    SupplementRecord,
)
from election_tally.models import (
    WRITE_IN_PARTY,
    Candidate,
    Contest,
    District,
    DistrictKind,
    Election,
    IssueKind,
    RankedRound,
)

NONPARTISAN_PARTIES = {None, "NP", "NONPARTISAN"}
QUESTION_OPTIONS = {"yes", "no"}

_SEATS = re.compile(r"\(\s*elect\s+(\d+)\s*\)", re.IGNORECASE)
_SPECIAL = re.compile(r"\bspecial\s+election\b", re.IGNORECASE)
_PRIMARY = re.compile(r"\bprimary\b", re.IGNORECASE)
_QUESTION = re.compile(r"\b(question|amendment|referendum)\b", re.IGNORECASE)

# Supplemental fields that map onto typed attributes; anything else goes
# into the entity's ``extra`` mapping.
_CONTEST_OVERLAY = {
    "title": str,
    "seat_name": str,
    "sub_area": str,
    "question_title": str,
    "question_text": str,
    "called": parse_bool,
}
_CANDIDATE_OVERLAY = {
    "full_name": str,
    "first": str,
    "middle": str,
    "last": str,
    "suffix": str,
    "nickname": str,
    "prefix": str,
    "title": str,
    "party": str.upper,
    "incumbent": parse_bool,
    "votes": parse_int,
}


def _district_code(kind: DistrictKind, code: str | None) -> str | None:
    """Normalize a results-row district column to the metadata code width."""
    if kind == DistrictKind.SCHOOL:
        return pad_left(code, 4)
    if kind == DistrictKind.LOCAL:
        return pad_left(code, 5)
    return code


def _natural_key(kind: DistrictKind, record: ResultRecord) -> dict[str, str | None]:
    code = _district_code(kind, record.district)
    return {
        "county": record.county,
        "school": code if kind == DistrictKind.SCHOOL else None,
        "local": code if kind == DistrictKind.LOCAL else None,
        "precinct": record.precinct,
    }


def _parse_office_name(name: str | None) -> tuple[str | None, int, bool]:
    """Pull ``(Elect N)`` and the special-election marker out of an office name."""
    if name is None:
        return None, 1, False
    seats = 1
    match = _SEATS.search(name)
    if match:
        seats = max(int(match.group(1)), 1)
        name = _SEATS.sub("", name)
    return normalize_text(name), seats, bool(_SPECIAL.search(name))


class ElectionResolver:
    """Builds the district/contest/candidate graph onto an Election.

    Args:
        election: Root aggregate to populate. It is mutated in place.
        state_name: Display name of the statewide district.
    """

    def __init__(self, election: Election, state_name: str = "Statewide") -> None:
        self._election = election
        self._state_name = state_name
        self._districts_by_match: dict[str, list[District]] = defaultdict(list)
        self._contests_by_match: dict[str, list[Contest]] = defaultdict(list)
        self._candidates: dict[str, Candidate] = {}

    @property
    def election(self) -> Election:
        return self._election

    def resolve(
        self,
        metadata: MetadataBatch,
        supplements: Iterable[SupplementRecord],
        results: Iterable[ResultRecord],
    ) -> Election:
        """Run all resolution steps and return the populated election."""
        self.build_districts(metadata.districts)
        self.build_contests(results)
        self.join_districts()
        self.attach_questions(metadata.questions)
        self.overlay_supplements(supplements)
        self._finalize_flags()

        logger.info(
            "Resolved {} district(s), {} contest(s) ({} unmatched) for {}",
            len(self._election.districts),
            len(self._election.contests),
            len(self._election.unmatched_contests),
            self._election.id,
        )
        return self._election

    # --- Districts ---

    def build_districts(self, records: Iterable[DistrictRecord]) -> None:
        """Create District entities, including the synthesized statewide one."""
        eid = self._election.id
        statewide = District(
            id=district_id(eid, DistrictKind.STATE),
            kind=DistrictKind.STATE,
            contest_match=district_match_key(eid, DistrictKind.STATE),
            name=self._state_name,
        )
        self._add_district(statewide)

        for record in records:
            key = {
                "county": record.county,
                "school": record.school,
                "local": record.local,
                "precinct": record.precinct,
            }
            district = District(
                id=district_id(eid, record.kind, **key),
                kind=record.kind,
                contest_match=district_match_key(eid, record.kind, **key),
                name=record.name,
                county=record.county,
                school=record.school,
                local=record.local,
                precinct=record.precinct,
                county_name=record.county_name,
                precincts=record.precincts,
                attributes=dict(record.attributes),
            )
            self._add_district(district)

        self._link_precincts()

    def _add_district(self, district: District) -> None:
        existing = self._election.districts.get(district.id)
        if existing is None:
            self._election.districts[district.id] = district
            if district.contest_match:
                self._districts_by_match[district.contest_match].append(district)
            return
        # Repeated metadata row: fill gaps only.
        for attr in ("name", "county_name", "precincts"):
            if getattr(existing, attr) is None:
                setattr(existing, attr, getattr(district, attr))
        for attr_key, value in district.attributes.items():
            existing.attributes.setdefault(attr_key, value)

    def _find_district(self, exact_id: str | None, match_key: str | None) -> District | None:
        if exact_id and exact_id in self._election.districts:
            return self._election.districts[exact_id]
        if match_key and self._districts_by_match.get(match_key):
            return self._districts_by_match[match_key][0]
        return None

    def _link_precincts(self) -> None:
        """Point precincts at their county/school/local districts and roll up counts."""
        eid = self._election.id
        counts: dict[str, int] = defaultdict(int)

        for district in list(self._election.districts.values()):
            if district.kind != DistrictKind.PRECINCT:
                continue
            parents = [
                self._find_district(
                    district_id(eid, DistrictKind.COUNTY, county=district.county),
                    None,
                ),
                self._find_district(
                    district_id(eid, DistrictKind.SCHOOL, county=district.county, school=district.school),
                    district_match_key(eid, DistrictKind.SCHOOL, school=district.school),
                )
                if district.school
                else None,
                self._find_district(
                    district_id(eid, DistrictKind.LOCAL, county=district.county, local=district.local),
                    district_match_key(eid, DistrictKind.LOCAL, local=district.local),
                )
                if district.local
                else None,
            ]
            for parent in parents:
                if parent is not None:
                    district.parent_ids.append(parent.id)
                    counts[parent.id] += 1
                    if district.county_name is None and parent.kind == DistrictKind.COUNTY:
                        district.county_name = parent.name

        for parent_id, count in counts.items():
            parent = self._election.districts[parent_id]
            if parent.precincts is None:
                parent.precincts = count

    # --- Contests ---

    def build_contests(self, records: Iterable[ResultRecord]) -> None:
        """Create or merge Contest/Candidate skeletons from result rows.

        Rows are applied in ingestion order; for a repeated contest or
        candidate the most recent row wins for counts and progress.
        """
        for record in records:
            contest = self._upsert_contest(record)
            self._upsert_candidate(contest, record)

    def _upsert_contest(self, record: ResultRecord) -> Contest:
        eid = self._election.id
        kind = record.kind
        code = _district_code(kind, record.district)
        cid = contest_id(eid, kind, record.county, code, record.office, record.precinct)

        contest = self._election.contests.get(cid)
        if contest is None:
            title, seats, special = _parse_office_name(record.office_name)
            natural_key = _natural_key(kind, record)
            contest = Contest(
                id=cid,
                contest_match=contest_match_key(eid, kind, code, record.office, record.precinct),
                kind=kind,
                election_id=eid,
                office=record.office,
                title=title,
                seats=seats,
                special=special,
                primary=self._election.primary or bool(record.office_name and _PRIMARY.search(record.office_name)),
                question=bool(record.office_name and _QUESTION.search(record.office_name)),
                district_key=district_id(eid, kind, **natural_key),
                district_match_key=district_match_key(eid, kind, **natural_key),
            )
            self._election.contests[cid] = contest
            if contest.contest_match:
                self._contests_by_match[contest.contest_match].append(contest)
        elif contest.title is None and record.office_name:
            contest.title, contest.seats, contest.special = _parse_office_name(record.office_name)

        if record.precincts_reporting is not None:
            contest.precincts_reporting = record.precincts_reporting
        if record.total_precincts is not None:
            contest.total_precincts = record.total_precincts
        if record.total_votes is not None:
            contest.reported_total_votes = record.total_votes
        if record.ranked:
            contest.ranked = True
        return contest

    def _upsert_candidate(self, contest: Contest, record: ResultRecord) -> Candidate:
        cand_id = candidate_id(contest.id, record.candidate_code, record.candidate_name)
        candidate = contest.candidates.get(cand_id)
        if candidate is None:
            parts = split_name(record.candidate_name, record.suffix)
            candidate = Candidate(
                id=cand_id,
                contest_id=contest.id,
                code=record.candidate_code,
                full_name=record.candidate_name,
                first=parts.first,
                middle=parts.middle,
                last=parts.last,
                suffix=parts.suffix,
                nickname=parts.nickname,
            )
            contest.candidates[cand_id] = candidate
            self._candidates[cand_id] = candidate

        candidate.party = record.party or candidate.party
        candidate.write_in = candidate.party == WRITE_IN_PARTY or is_write_in_name(record.candidate_name)
        if record.incumbent is not None:
            candidate.incumbent = record.incumbent
        candidate.votes = record.votes
        if record.ranked:
            candidate.ranks = [RankedRound(round_number=i, votes=votes) for i, votes in enumerate(record.round_votes, start=1)]
        return candidate

    # --- Joins ---

    def join_districts(self) -> None:
        """Attach every contest to a district, flagging the ones that cannot be."""
        for contest in self._election.contests.values():
            district = self._find_district(contest.district_key, contest.district_match_key)
            if district is None:
                contest.unmatched = True
                contest.district_id = None
                self._election.record_issue(
                    IssueKind.UNRESOLVED_ENTITY,
                    f"No {contest.kind} district matches contest '{contest.title or contest.id}'",
                    source="resolver",
                    entity_id=contest.id,
                )
                logger.warning("Contest {} has no matching {} district", contest.id, contest.kind)
                continue

            contest.unmatched = False
            contest.district_id = district.id
            contest.area = district.name
            if contest.total_precincts is None:
                contest.total_precincts = district.precincts

    def attach_questions(self, questions: Iterable[QuestionRecord]) -> None:
        """Attach ballot-question titles and text to their contests."""
        eid = self._election.id
        for question in questions:
            qid = contest_id(eid, question.kind, question.county, question.district, question.office)
            targets = [self._election.contests[qid]] if qid in self._election.contests else []
            if not targets:
                match_key = contest_match_key(eid, question.kind, question.district, question.office)
                targets = self._contests_by_match.get(match_key, [])
            if not targets:
                self._election.record_issue(
                    IssueKind.UNRESOLVED_ENTITY,
                    f"Ballot question {question.number or question.office} has no matching contest",
                    source="metadata",
                    entity_id=qid,
                )
                continue
            for contest in targets:
                contest.question = True
                contest.question_title = contest.question_title or question.title
                contest.question_text = contest.question_text or question.text

    def overlay_supplements(self, records: Iterable[SupplementRecord]) -> None:
        """Fill gaps on contests and candidates from supplemental records.

        Values already populated from the results feed are never replaced.
        """
        for record in records:
            if record.entity == "contest":
                target = self._election.contests.get(record.id)
                overlay = _CONTEST_OVERLAY
            else:
                target = self._candidates.get(record.id)
                overlay = _CANDIDATE_OVERLAY

            if target is None:
                self._election.record_issue(
                    IssueKind.UNRESOLVED_ENTITY,
                    f"Supplemental {record.entity} '{record.id}' matches no {record.entity}",
                    source="supplement",
                    entity_id=record.id,
                )
                continue

            for name, value in record.fields.items():
                if name in overlay:
                    if getattr(target, name) is None:
                        setattr(target, name, overlay[name](value))
                else:
                    target.extra.setdefault(name, value)
            if record.entity == "candidate":
                target.write_in = target.write_in or target.party == WRITE_IN_PARTY

    def _finalize_flags(self) -> None:
        for contest in self._election.contests.values():
            counted = contest.counted_candidates
            if counted and all((c.last or "").lower() in QUESTION_OPTIONS for c in counted):
                contest.question = True
            contest.nonpartisan = bool(counted) and all(c.party in NONPARTISAN_PARTIES for c in counted)


def resolve_election(
    election: Election,
    metadata: MetadataBatch,
    supplements: Iterable[SupplementRecord],
    results: Iterable[ResultRecord],
    *,
    state_name: str = "Statewide",
) -> Election:
    """Resolve the three record sets into ``election``'s graph.

    Args:
        election: Root aggregate (ID, title, primary flag) to populate.
        metadata: District and question metadata.
        supplements: Supplemental records.
        results: Result rows in ingestion order.
        state_name: Display name of the statewide district.

    Returns:
        The same election, populated.
    """
    return ElectionResolver(election, state_name=state_name).resolve(metadata, supplements, results)
