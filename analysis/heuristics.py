"""Local stand-in for the analysis service.

Suggestions are drawn from a fixed catalog plus keyword-triggered items; the
final summary is a deterministic function of a few keyword checks.
"""

from __future__ import annotations

import random
import re

from common.schemas import (
    AnalysisResult,
    FinalSummary,
    KeyPoints,
    Priority,
    Suggestion,
    SuggestionType,
)

GENERIC_SUGGESTIONS = [
    Suggestion(
        text="Ask about their income verification documents (pay stubs, tax returns)",
        priority=Priority.high,
        type=SuggestionType.question,
    ),
    Suggestion(
        text="Inquire about their rental history and previous landlord references",
        priority=Priority.medium,
        type=SuggestionType.question,
    ),
    Suggestion(
        text="The tenant hasn't mentioned their credit score or financial situation",
        priority=Priority.medium,
        type=SuggestionType.missing_info,
    ),
    Suggestion(
        text="Ask about their reason for moving from their current residence",
        priority=Priority.low,
        type=SuggestionType.question,
    ),
]

INCOME_SUGGESTION = Suggestion(
    text="Request specific income amount and verification",
    priority=Priority.high,
    type=SuggestionType.question,
)
PET_SUGGESTION = Suggestion(
    text="Confirm pet policy and any additional pet deposit requirements",
    priority=Priority.medium,
    type=SuggestionType.question,
)
EVICTION_SUGGESTION = Suggestion(
    text="RED FLAG: Potential previous eviction mentioned - probe for details",
    priority=Priority.high,
    type=SuggestionType.red_flag,
)

FALLBACK_MISSING_INFORMATION = [
    "Detailed employment verification",
    "Credit score information",
    "Complete rental history",
    "References from previous landlords",
    "Background check consent",
]

FALLBACK_RISK_ASSESSMENT = (
    "Based on the limited information gathered, a moderate risk assessment is assigned. "
    "Further verification of employment, income, and rental history is strongly recommended "
    "before proceeding."
)

_MONEY_RE = re.compile(r"\$\s?\d")


def _contains(text: str, *keywords: str) -> bool:
    return any(k in text for k in keywords)


def mentions_income(text: str) -> bool:
    return _contains(text, "income", "salary", "earn", "paycheck") or bool(_MONEY_RE.search(text))


def mentions_employment(text: str) -> bool:
    return _contains(text, "job", "work", "employ")


def mentions_rental_history(text: str) -> bool:
    return _contains(text, "previous", "landlord", "rented")


def mentions_move_in(text: str) -> bool:
    return _contains(text, "move in", "moving")


class HeuristicAnalyzer:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def triggered_suggestions(self, transcript: str) -> list[Suggestion]:
        text = transcript.lower()
        triggered = []
        if mentions_income(text):
            triggered.append(INCOME_SUGGESTION)
        if _contains(text, "pet", "cat", "dog"):
            triggered.append(PET_SUGGESTION)
        if "evict" in text:
            triggered.append(EVICTION_SUGGESTION)
        return triggered

    def analyze(self, transcript: str) -> AnalysisResult:
        # Keyword-triggered items are always kept; generic ones pad the set to 2-3.
        triggered = self.triggered_suggestions(transcript)
        size = max(self._rng.randint(2, 3), len(triggered))
        padding = self._rng.sample(GENERIC_SUGGESTIONS, max(0, size - len(triggered)))
        selected = triggered + padding
        self._rng.shuffle(selected)
        return AnalysisResult(
            suggestions=[s.model_copy() for s in selected],
            summary=self.summarize(transcript),
        )

    def summarize(self, transcript: str) -> str:
        text = transcript.lower()
        parts = ["Tenant has expressed interest in the property."]
        if _contains(text, "job", "work"):
            parts.append("Some employment information provided.")
        else:
            parts.append("Employment details still needed.")
        if mentions_income(text):
            parts.append("Income mentioned but verification needed.")
        else:
            parts.append("No income information yet.")
        if "move in" in text:
            parts.append("Move-in timeframe discussed.")
        else:
            parts.append("Move-in timeline not established.")
        return " ".join(parts)

    def final_summary(self, transcript: str) -> FinalSummary:
        text = transcript.lower()
        has_income = mentions_income(text)
        has_employment = mentions_employment(text)
        has_rental_history = mentions_rental_history(text)
        has_move_in = mentions_move_in(text)

        summary = " ".join([
            "The applicant has expressed interest in the property and provided some basic "
            "information during the screening call.",
            "They mentioned current employment." if has_employment
            else "Employment details were not fully discussed.",
            "Some income information was provided but verification is recommended." if has_income
            else "Income details were not discussed in depth.",
            "The applicant mentioned previous rental experience." if has_rental_history
            else "Rental history was not fully explored.",
            "Move-in timeline was discussed." if has_move_in
            else "Move-in plans were not established.",
        ])

        return FinalSummary(
            summary=summary,
            missing_information=list(FALLBACK_MISSING_INFORMATION),
            risk_assessment=FALLBACK_RISK_ASSESSMENT,
            key_points=KeyPoints(
                income="Income was mentioned but requires verification." if has_income
                else "Income information not provided.",
                employment="Employment mentioned but details are limited." if has_employment
                else "Employment information not provided.",
                rental_history="Some rental history mentioned." if has_rental_history
                else "No rental history discussed.",
                move_in_plans="Move-in timeline discussed." if has_move_in
                else "No move-in plans established.",
                other_notes="Further screening recommended including credit check, "
                "background check, and landlord references.",
            ),
        )
