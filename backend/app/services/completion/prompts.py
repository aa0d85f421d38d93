# backend/app/services/completion/prompts.py
# Prompts du coach IA : synthèse du jour et analyse de progression par archétype.

from __future__ import annotations

from app.models.challenge_record import ArchetypeEntries
from app.shared.constants import ARCHETYPES

SYNTHESIS_SYSTEM_PROMPT = (
    "You are the Lost Kings Challenge master. Analyze the user's daily archetype entries. "
    "Provide a response in two parts: 1. A short, powerful, single-sentence \"Challenge Headline\" "
    "that captures the essence of his day's work. 2. A two-sentence summary paragraph of his "
    "performance across the 5 archetypes. Format the output with bold markdown headers for "
    "'Challenge Headline' and 'Performance Summary'."
)


def synthesis_query(entries: ArchetypeEntries) -> str:
    log_text = "\n".join(
        f"{title} Archetype: {entries.get(key) or 'No entry.'}" for key, title, _ in ARCHETYPES
    )
    return f"Summarize today's 5 Archetype reflections:\n\n{log_text}"


def growth_system_prompt(archetype_title: str) -> str:
    return (
        f"You are a strategic coach for the Lost Kings Challenge. Your job is to analyze the user's "
        f"past actions for the \"{archetype_title}\" archetype. Based on all provided historical logs, "
        f"highlight one recurring theme of consistent action and provide one highly specific, "
        f"actionable suggestion for how the user can deepen his commitment to this archetype over "
        f"the next week. Format your response with bold markdown headers for 'Consistent Theme' "
        f"and 'Strategic Suggestion'."
    )


def growth_query(archetype_title: str, history: str) -> str:
    return (
        f"Analyze the recurring themes and provide strategic coaching for the \"{archetype_title}\" "
        f"archetype based on the following history:\n\n{history}"
    )
