"""Tests for coach request preparation."""

import pytest

from app.core.errors import ValidationFailure
from app.models.challenge_record import Archetype, ArchetypeEntries
from app.services.completion import prompts
from app.services.journal import coach
from conftest import make_record


def test_synthesis_request_lists_every_archetype():
    request = coach.synthesis_request(ArchetypeEntries(jester="Played cards with my kids"))

    assert request.needs_completion
    assert request.system_prompt == prompts.SYNTHESIS_SYSTEM_PROMPT
    assert request.user_query.startswith("Summarize today's 5 Archetype reflections:\n\n")
    assert "Jester Archetype: Played cards with my kids" in request.user_query
    assert request.user_query.count("No entry.") == 4


def test_synthesis_request_refuses_empty_entries():
    with pytest.raises(ValidationFailure) as exc_info:
        coach.synthesis_request(ArchetypeEntries(king=" "))
    assert exc_info.value.message == coach.EMPTY_SYNTHESIS_MESSAGE


class TestGrowthRequest:
    def test_no_history(self):
        request = coach.growth_request([], Archetype.POET)

        assert not request.needs_completion
        assert request.immediate_result == coach.NO_HISTORY_MESSAGE

    def test_blank_entries_are_skipped(self):
        records = [
            make_record(day=1, poet="Wrote a poem about the sea at dawn"),
            make_record(day=2, poet="   "),
            make_record(day=3, poet="Read Rilke aloud to my wife after dinner"),
        ]
        request = coach.growth_request(records, Archetype.POET)

        assert request.needs_completion
        assert request.user_query.endswith(
            "Wrote a poem about the sea at dawn\n---\nRead Rilke aloud to my wife after dinner"
        )

    def test_threshold_is_fifty_characters(self):
        just_short = [make_record(day=1, priest="x" * 49)]
        just_enough = [make_record(day=1, priest="x" * 50)]

        assert coach.growth_request(just_short, Archetype.PRIEST).immediate_result == (
            "Not enough data for Priest analysis. Need more log entries."
        )
        assert coach.growth_request(just_enough, Archetype.PRIEST).needs_completion
