"""Entity resolver — builds the election graph from parsed records.

Public API:
    - resolve_election: Join metadata, results and supplements onto an Election
    - ElectionResolver: Step-by-step resolver (districts, contests, joins, overlays)
"""

from election_tally.lib.resolver.resolver import ElectionResolver, resolve_election

__all__ = ["ElectionResolver", "resolve_election"]
