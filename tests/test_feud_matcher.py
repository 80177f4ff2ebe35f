"""Answer matching: normalization, synonyms, rank-order tie-break and duplicates."""

from __future__ import annotations

from feud.feud_matcher import ExactAnswerMatcher, find_revealed_duplicate, normalize_guess
from feud.feud_state import Answer, RevealedAnswer


def _board() -> tuple[RevealedAnswer, ...]:
    return (
        RevealedAnswer(answer=Answer(text="Pizza", points=10, accepted=("pizzas", "pie"))),
        RevealedAnswer(answer=Answer(text="Tacos", points=8, accepted=("taco",))),
        RevealedAnswer(answer=Answer(text="Pie", points=5)),
    )


def test_normalize_trims_and_folds_case() -> None:
    assert normalize_guess("  PiZZa \n") == "pizza"
    assert normalize_guess("   ") == ""


def test_matches_canonical_text_and_synonyms_case_insensitively() -> None:
    matcher = ExactAnswerMatcher()
    board = _board()

    assert matcher.match("pizza", board) == "Pizza"
    assert matcher.match("  PIZZAS ", board) == "Pizza"
    assert matcher.match("Taco", board) == "Tacos"
    assert matcher.match("Burgers", board) is None
    assert matcher.match("   ", board) is None


def test_overlapping_synonym_resolves_to_higher_ranked_answer() -> None:
    # "pie" is a synonym of Pizza and the canonical text of a lower answer.
    assert ExactAnswerMatcher().match("pie", _board()) == "Pizza"


def test_revealed_answers_are_not_matched_again() -> None:
    board = list(_board())
    board[0] = board[0].reveal(award=True)

    assert ExactAnswerMatcher().match("pie", board) == "Pie"
    assert ExactAnswerMatcher().match("pizza", board) is None


def test_plain_answers_can_be_matched_directly() -> None:
    answers = [Answer(text="Sushi", points=6), Answer(text="Wings", points=5, accepted=("chicken wings",))]
    assert ExactAnswerMatcher().match("Chicken Wings", answers) == "Wings"


def test_duplicate_detection_covers_synonyms_of_revealed_answers() -> None:
    board = list(_board())
    board[1] = board[1].reveal(award=True)

    assert find_revealed_duplicate("TACO", board) == "Tacos"
    assert find_revealed_duplicate("tacos ", board) == "Tacos"
    assert find_revealed_duplicate("pizza", board) is None
    assert find_revealed_duplicate("", board) is None
