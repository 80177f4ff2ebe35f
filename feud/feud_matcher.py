"""Free-text guess matching against a round's answers."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .feud_state import Answer, RevealedAnswer


def normalize_guess(text: str) -> str:
    """Trim surrounding whitespace and fold case."""
    return text.strip().casefold()


def answer_keys(answer: Answer) -> set[str]:
    """All normalized strings that name `answer`."""
    keys = {normalize_guess(answer.text)}
    keys.update(normalize_guess(alias) for alias in answer.accepted)
    keys.discard("")
    return keys


def _unwrap(candidate: Answer | RevealedAnswer) -> Answer:
    return candidate.answer if isinstance(candidate, RevealedAnswer) else candidate


class AnswerMatcher(Protocol):
    """Resolves a guess to the canonical text of at most one candidate."""

    def match(self, guess: str, candidates: Sequence[Answer | RevealedAnswer]) -> str | None:
        ...


class ExactAnswerMatcher:
    """Case-insensitive exact matching on canonical text and accepted synonyms.

    Candidates are scanned in the order given (rank order on a board), so if a
    malformed category lets two answers share a synonym the higher-ranked one
    wins. Revealed answers are skipped.
    """

    def match(self, guess: str, candidates: Sequence[Answer | RevealedAnswer]) -> str | None:
        normalized = normalize_guess(guess)
        if not normalized:
            return None
        for candidate in candidates:
            if isinstance(candidate, RevealedAnswer) and candidate.revealed:
                continue
            answer = _unwrap(candidate)
            if normalized in answer_keys(answer):
                return answer.text
        return None


def find_revealed_duplicate(guess: str, board: Iterable[RevealedAnswer]) -> str | None:
    """Return the revealed answer a guess names, if any."""
    normalized = normalize_guess(guess)
    if not normalized:
        return None
    for slot in board:
        if slot.revealed and normalized in answer_keys(slot.answer):
            return slot.text
    return None
