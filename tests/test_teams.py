"""Tests for owning-team resolution."""

from src.run_summary.models import Annotation
from src.run_summary.teams import FALLBACK_TEAM, TeamRegistry


class TestTeamRegistry:
    """Tests for TeamRegistry.resolve."""

    def test_title_tag(self):
        assert TeamRegistry().resolve("[Frontend] renders header") == "Frontend"

    def test_first_known_tag_in_title_wins(self):
        registry = TeamRegistry()
        assert registry.resolve("[Backend] [Frontend] sync") == "Backend"

    def test_unknown_bracket_text_ignored(self):
        registry = TeamRegistry()
        assert registry.resolve("[WIP] [QA] checkout") == "QA"
        assert registry.resolve("array[0] is empty") == FALLBACK_TEAM

    def test_team_annotation(self):
        annotations = [Annotation("team", "Security")]
        assert TeamRegistry().resolve("login", annotations) == "Security"

    def test_title_beats_annotation(self):
        annotations = [Annotation("team", "Security")]
        assert TeamRegistry().resolve("[Mobile] login", annotations) == "Mobile"

    def test_team_annotation_beats_owner(self):
        annotations = [Annotation("owner", "QA"), Annotation("team", "API")]
        assert TeamRegistry().resolve("login", annotations) == "API"

    def test_owner_annotation(self):
        annotations = [Annotation("owner", "Database")]
        assert TeamRegistry().resolve("login", annotations) == "Database"

    def test_unknown_annotation_value_ignored(self):
        annotations = [Annotation("team", "Nobody"), Annotation("owner", "DevOps")]
        assert TeamRegistry().resolve("login", annotations) == "DevOps"

    def test_fallback_team(self):
        assert TeamRegistry(fallback_team="QA").resolve("login") == "QA"

    def test_unrecognized_fallback_team_ignored(self):
        assert TeamRegistry(fallback_team="Nobody").resolve("login") == FALLBACK_TEAM

    def test_literal_unknown(self):
        assert TeamRegistry().resolve("login") == "Unknown"

    def test_custom_team_set(self):
        registry = TeamRegistry(teams=["Payments"])
        assert registry.resolve("[Payments] refund") == "Payments"
        assert registry.resolve("[Frontend] refund") == FALLBACK_TEAM
