"""
Owning-team resolution for tests.
"""

import re
from typing import FrozenSet, Iterable, List, Optional, Sequence

from .models import Annotation

FALLBACK_TEAM = "Unknown"

DEFAULT_TEAMS: List[str] = [
    "Frontend",
    "Backend",
    "QA",
    "DevOps",
    "Performance",
    "Security",
    "Accessibility",
    "Mobile",
    "API",
    "Database",
    "Analytics",
    "Infrastructure",
    "Monitoring",
    "Documentation",
    "Support",
    "Marketing",
    "Sales",
    "Training",
    "Research",
    "Compliance",
    "Legal",
    "Product",
    "Design",
    "UserExperience",
    "UserInterface",
    "BusinessIntelligence",
    "DataScience",
    "DataEngineering",
    "DataAnalytics",
    "DataVisualization",
    "DataGovernance",
    "DataQuality",
]

_BRACKET_TAG = re.compile(r"\[([^\[\]]+)\]")


class TeamRegistry:
    """
    Closed set of team names used to resolve test ownership.

    Resolution order:
    1. First bracketed tag in the title naming a known team, e.g. ``[Frontend]``
    2. Annotation of type ``team`` naming a known team
    3. Annotation of type ``owner`` naming a known team
    4. The configured fallback team, if it is a known team
    5. ``"Unknown"``
    """

    def __init__(self, teams: Optional[Iterable[str]] = None, fallback_team: Optional[str] = None):
        self.teams: FrozenSet[str] = frozenset(DEFAULT_TEAMS if teams is None else teams)
        self.fallback_team = fallback_team

    def is_known(self, name: Optional[str]) -> bool:
        return bool(name) and name in self.teams

    def from_title(self, title: str) -> Optional[str]:
        for match in _BRACKET_TAG.finditer(title or ""):
            tag = match.group(1)
            if tag in self.teams:
                return tag
        return None

    def from_annotations(self, annotations: Sequence[Annotation], kind: str) -> Optional[str]:
        # Only the first annotation of the given type is considered
        annotation = next((a for a in annotations if a.type == kind), None)
        if annotation and self.is_known(annotation.description):
            return annotation.description
        return None

    def resolve(self, title: str, annotations: Sequence[Annotation] = ()) -> str:
        """Return the owning team for a test title and its annotations."""
        team = (
            self.from_title(title)
            or self.from_annotations(annotations, "team")
            or self.from_annotations(annotations, "owner")
        )
        if team:
            return team
        if self.is_known(self.fallback_team):
            return self.fallback_team  # type: ignore[return-value]
        return FALLBACK_TEAM
