"""Language server discovery: probing, ranking, selection and history."""

from .choice import OPTED_OUT, UNDECIDED, ChoiceKind, ServerChoice
from .prober import Candidate, probe_candidates
from .ranker import ItemKind, PickItem, build_pick_items, sort_candidates
from .recent import MAX_RECENT_CHOICES, RecentChoices
from .selector import Selector

__all__ = [
    "OPTED_OUT",
    "UNDECIDED",
    "ChoiceKind",
    "ServerChoice",
    "Candidate",
    "probe_candidates",
    "ItemKind",
    "PickItem",
    "build_pick_items",
    "sort_candidates",
    "MAX_RECENT_CHOICES",
    "RecentChoices",
    "Selector",
]
