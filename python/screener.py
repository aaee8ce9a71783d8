"""
Name Screener
Ranks watchlist entries against every name a subject is known by

Features:
- Token-order tolerant name comparison (see name_utils)
- Per-candidate max-score aggregation across full name and aliases
- Ordered match bands: EXACT_MATCH, POSSIBLE_MATCH, NO_MATCH
- Detailed (per-name breakdown) and consolidated (summary) result views

The screener does no I/O and never raises for well-formed input; callers
are responsible for rejecting malformed requests (e.g. a watchlist that
is not a list) before screening.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Dict, Optional, Any, Sequence, Tuple

from config_manager import MatchingConfig, get_config
from name_utils import canonicalize, name_similarity

logger = logging.getLogger(__name__)


class MatchType(str, Enum):
    """Classification of a similarity score"""
    EXACT_MATCH = "EXACT_MATCH"
    POSSIBLE_MATCH = "POSSIBLE_MATCH"
    NO_MATCH = "NO_MATCH"


# Ranked candidates reported in the detailed view (top3Matches)
TOP_MATCHES = 3

# (lower bound inclusive, label), evaluated top-down
MATCH_BANDS: Tuple[Tuple[float, MatchType], ...] = (
    (0.90, MatchType.EXACT_MATCH),
    (0.75, MatchType.POSSIBLE_MATCH),
)


def build_match_bands(matching: MatchingConfig) -> Tuple[Tuple[float, MatchType], ...]:
    """Build the band table from matching configuration"""
    return (
        (matching.exact_match_threshold, MatchType.EXACT_MATCH),
        (matching.possible_match_threshold, MatchType.POSSIBLE_MATCH),
    )


def classify(score: float, bands: Sequence[Tuple[float, MatchType]] = MATCH_BANDS) -> MatchType:
    """Map a score in [0, 1] to its match band"""
    for lower_bound, label in bands:
        if score >= lower_bound:
            return label
    return MatchType.NO_MATCH


def round_score(score: float, precision: int = 2) -> float:
    """Round half-up for presentation"""
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(score)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass
class ScreeningSubject:
    """Names a single screening request is about"""
    request_id: Any = None
    full_name: Optional[str] = None
    aliases: List[Any] = field(default_factory=list)
    country: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_request_id: Any = None) -> 'ScreeningSubject':
        """Build a subject from request input (``fullName``/``aliases``/...)"""
        aliases = data.get('aliases')
        return cls(
            request_id=data.get('requestId') or default_request_id,
            full_name=data.get('fullName'),
            aliases=list(aliases) if isinstance(aliases, list) else [],
            country=data.get('country')
        )


@dataclass
class MatchCandidate:
    """Best score seen so far for one watchlist entry"""
    watchlist_entry: Dict[str, Any]
    score: float
    matched_input_name: Optional[str] = None


@dataclass(frozen=True)
class ScreeningResult:
    """Detailed and consolidated views of one screening"""
    detailed: Dict[str, Any]
    consolidated: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'detailed': self.detailed,
            'consolidated': self.consolidated
        }


def get_names_to_screen(subject: ScreeningSubject) -> List[Any]:
    """Full name first, then non-empty aliases; ``[""]`` when there are none"""
    names: List[Any] = []
    if subject.full_name:
        names.append(subject.full_name)
    names.extend(alias for alias in subject.aliases if alias)
    return names if names else ['']


def score_against_watchlist(input_name: Any, watchlist: Sequence[Dict[str, Any]]) -> List[Tuple[Dict[str, Any], float]]:
    """Score one name against every entry, best first (stable on ties)"""
    scored = [(entry, name_similarity(input_name, entry.get('name'))) for entry in watchlist]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored


def aggregate_candidates(names_to_screen: Sequence[Any],
                         watchlist: Sequence[Dict[str, Any]]) -> List[MatchCandidate]:
    """Keep the highest score per watchlist id across all screened names

    A later name only replaces a candidate when it scores strictly higher,
    so ties keep the earliest name.

    Returns:
        Candidates sorted by unrounded score, best first
    """
    candidates: Dict[Any, MatchCandidate] = {}
    for name in names_to_screen:
        for entry, score in score_against_watchlist(name, watchlist):
            entry_id = entry.get('id')
            existing = candidates.get(entry_id)
            if existing is None:
                candidates[entry_id] = MatchCandidate(entry, score, name)
            elif score > existing.score:
                existing.score = score
                existing.matched_input_name = name

    ranked = list(candidates.values())
    ranked.sort(key=lambda c: c.score, reverse=True)
    return ranked


class NameScreener:
    """Screens subjects against a watchlist using configured match bands"""

    def __init__(self, matching: Optional[MatchingConfig] = None):
        """Initialize screener

        Args:
            matching: Matching configuration; the global config is used if omitted
        """
        self.matching = matching or get_config().matching
        self.bands = build_match_bands(self.matching)

    def classify(self, score: float) -> MatchType:
        return classify(score, self.bands)

    def screen(self,
               names_to_screen: Sequence[Any],
               watchlist: Sequence[Dict[str, Any]],
               request_id: Any = None,
               primary_name: Optional[Any] = None) -> ScreeningResult:
        """Screen names against a watchlist

        Args:
            names_to_screen: Non-empty list of raw names (see get_names_to_screen)
            watchlist: Entries with at least ``id`` and ``name``
            request_id: Request identifier for the consolidated view
            primary_name: Name reported as ``rawName``; defaults to the first screened name

        Returns:
            ScreeningResult with detailed and consolidated views
        """
        precision = self.matching.score_precision
        ranked = aggregate_candidates(names_to_screen, watchlist)

        top = [
            {
                'id': c.watchlist_entry.get('id'),
                'name': c.watchlist_entry.get('name'),
                'score': round_score(c.score, precision),
                'matchedInputName': c.matched_input_name or None,
            }
            for c in ranked[:TOP_MATCHES]
        ]

        best = top[0] if top else {'id': None, 'name': None, 'score': 0, 'matchedInputName': None}
        match_type = self.classify(best['score'])

        logger.debug("Best match id=%s score=%s type=%s", best['id'], best['score'], match_type.value)

        if primary_name is None:
            primary_name = names_to_screen[0] if names_to_screen else ''

        detailed = {
            'rawName': primary_name,
            'normalizedName': canonicalize(primary_name),
            'allNamesScreened': [
                {'raw': name, 'normalized': canonicalize(name)} for name in names_to_screen
            ],
            'bestMatch': {
                'id': best['id'],
                'name': best['name'],
                'score': best['score'],
                'matchType': match_type.value,
            },
            'top3Matches': [
                dict(match, matchType=self.classify(match['score']).value) for match in top
            ],
        }

        consolidated = {
            'requestId': request_id,
            'screeningResult': match_type.value,
            'bestMatch': (
                {'id': best['id'], 'name': best['name'], 'score': best['score']}
                if best['id'] is not None else None
            ),
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }

        return ScreeningResult(detailed=detailed, consolidated=consolidated)

    def screen_subject(self, subject: ScreeningSubject,
                       watchlist: Sequence[Dict[str, Any]],
                       request_id: Any = None) -> ScreeningResult:
        """Screen every name of a subject"""
        names = get_names_to_screen(subject)
        return self.screen(
            names,
            watchlist,
            request_id=subject.request_id or request_id,
            primary_name=subject.full_name or names[0] or ''
        )


def screen(names_to_screen: Sequence[Any],
           watchlist: Sequence[Dict[str, Any]],
           request_id: Any = None,
           primary_name: Optional[Any] = None) -> ScreeningResult:
    """Screen with the default match bands"""
    return NameScreener(MatchingConfig()).screen(
        names_to_screen, watchlist, request_id=request_id, primary_name=primary_name
    )
