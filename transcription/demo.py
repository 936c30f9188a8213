"""Canned interview lines used when the speech-to-text service is unavailable."""

from __future__ import annotations

import random

from transcription.buffer import TENANT, YOU

INTERVIEWER_PHRASES = [
    "Thanks for your interest in the apartment.",
    "Could you tell me about your current employment?",
    "How long have you been at your current job?",
    "What's your monthly income?",
    "Do you have any pets?",
    "Have you ever been evicted before?",
    "When would you be looking to move in?",
    "How many people would be living in the unit?",
    "Do you have references from previous landlords?",
]

TENANT_PHRASES = [
    "I'm really interested in the two-bedroom unit you advertised.",
    "I work as a software developer at Tech Solutions Inc.",
    "I've been there for about three years now.",
    "My monthly income is around $5,500 before taxes.",
    "I have a small cat, she's very well-behaved.",
    "No, I've never been evicted.",
    "I'm hoping to move in by the first of next month.",
    "It would just be me and my partner.",
    "Yes, I can provide references from my last two landlords.",
]


class DemoLineGenerator:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def next_line(self) -> tuple[str, str]:
        """Return ``(speaker, phrase)``."""
        if self._rng.random() > 0.5:
            return TENANT, self._rng.choice(TENANT_PHRASES)
        return YOU, self._rng.choice(INTERVIEWER_PHRASES)
