"""Optional LLM-backed answer matcher with exact matching as the floor."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from framework.env_utils import getenv_any, getenv_flag
from framework.http_utils import post_json

from .feud_matcher import AnswerMatcher, ExactAnswerMatcher, normalize_guess
from .feud_state import Answer, RevealedAnswer

logger = logging.getLogger(__name__)

NO_MATCH_REPLY = "NONE"

SYSTEM_PROMPT = (
    "You judge a survey quiz show. Given a contestant's guess and a list of hidden survey answers, "
    "reply with the single answer the guess means, copied exactly from the list, or NONE if it "
    "means none of them. Accept synonyms, plurals and obvious misspellings. Reply with nothing else."
)


def _extract_openai_content(response: dict[str, Any]) -> str:
    choices = response.get("choices", [])
    if not choices:
        raise ValueError("Matcher response did not include choices.")
    content = choices[0].get("message", {}).get("content")
    if not isinstance(content, str):
        raise ValueError("Matcher response message content was not a string.")
    return content


@dataclass(frozen=True)
class SemanticAnswerMatcher:
    """Asks an OpenAI-compatible chat endpoint to map a guess to a hidden answer.

    Exact matches are resolved locally first. Any transport failure, missing
    key or reply that does not name a hidden answer counts as no match.
    """

    model: str = "gpt-4o-mini"
    base_url: str = "https://api.openai.com/v1"
    timeout_sec: float = 10.0
    api_key_env: tuple[str, ...] = ("FEUD_MATCHER_API_KEY", "OPENAI_API_KEY")
    fallback: ExactAnswerMatcher = field(default_factory=ExactAnswerMatcher)

    def match(self, guess: str, candidates: Sequence[Answer | RevealedAnswer]) -> str | None:
        exact = self.fallback.match(guess, candidates)
        if exact is not None:
            return exact

        hidden = [
            candidate.answer if isinstance(candidate, RevealedAnswer) else candidate
            for candidate in candidates
            if not (isinstance(candidate, RevealedAnswer) and candidate.revealed)
        ]
        if not hidden or not normalize_guess(guess):
            return None

        api_key = getenv_any(*self.api_key_env)
        if api_key is None:
            logger.debug("Semantic matcher has no API key; using exact matching only")
            return None

        try:
            reply = self._ask(guess.strip(), hidden, api_key)
        except (RuntimeError, ValueError) as exc:
            logger.warning("Semantic matcher failed, falling back to exact matching: %s", exc)
            return None
        return self._resolve_reply(reply, hidden)

    def _ask(self, guess: str, hidden: Sequence[Answer], api_key: str) -> str:
        listing = "\n".join(f"- {answer.text}" for answer in hidden)
        payload = {
            "model": self.model,
            "temperature": 0.0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Hidden answers:\n{listing}\n\nGuess: {guess}"},
            ],
        }
        response = post_json(
            url=f"{self.base_url.rstrip('/')}/chat/completions",
            payload=payload,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout_sec=self.timeout_sec,
        )
        return _extract_openai_content(response)

    def _resolve_reply(self, reply: str, hidden: Sequence[Answer]) -> str | None:
        normalized = normalize_guess(reply).strip("\"'.`")
        if not normalized or normalized == NO_MATCH_REPLY.casefold():
            return None
        for answer in hidden:
            if normalize_guess(answer.text) == normalized:
                return answer.text
        logger.warning("Semantic matcher replied with unknown answer %r; ignoring", reply)
        return None


def matcher_from_env() -> AnswerMatcher:
    """Exact matcher unless `FEUD_SEMANTIC_MATCHER` is switched on."""
    if not getenv_flag("FEUD_SEMANTIC_MATCHER"):
        return ExactAnswerMatcher()
    model = getenv_any("FEUD_MATCHER_MODEL", default=SemanticAnswerMatcher.model) or SemanticAnswerMatcher.model
    base_url = getenv_any("FEUD_MATCHER_BASE_URL", default=SemanticAnswerMatcher.base_url) or SemanticAnswerMatcher.base_url
    logger.info("Using semantic answer matcher (model=%s)", model)
    return SemanticAnswerMatcher(model=model, base_url=base_url)
