"""Survey categories: data model, JSON loading, built-in bank and the draw deck."""

from __future__ import annotations

import json
import logging
import random
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Collection, Iterable, Mapping, Sequence

from framework.errors import CategoryDataError, NoEligibleCategoryError
from framework.state import Record

from .feud_matcher import answer_keys
from .feud_state import Answer, Difficulty

logger = logging.getLogger(__name__)

ROUND_OPTIONS: tuple[int, ...] = (3, 5, 7)
ANSWERS_COUNT = 10


@dataclass(frozen=True)
class CategoryEntry(Record):
    """One answer as listed by the category provider, before points are assigned."""

    text: str
    accepted: tuple[str, ...] = ()
    emoji: str | None = None
    points: int | None = None


@dataclass(frozen=True)
class Category(Record):
    label: str
    difficulty: Difficulty
    entries: tuple[CategoryEntry, ...]

    def answers(self, board_size: int = ANSWERS_COUNT) -> tuple[Answer, ...]:
        """Rank-ordered board answers; unset points become `board_size - rank`."""
        return tuple(
            Answer(
                text=entry.text,
                points=entry.points if entry.points is not None else board_size - index,
                accepted=entry.accepted,
                emoji=entry.emoji,
            )
            for index, entry in enumerate(self.entries[:board_size])
        )


def _parse_entry(raw: Any, *, label: str, index: int) -> CategoryEntry:
    if isinstance(raw, str):
        raw = {"text": raw}
    if not isinstance(raw, Mapping):
        raise CategoryDataError(f"{label!r} answer #{index + 1} must be an object or string.")

    text = str(raw.get("text") or "").strip()
    if not text:
        raise CategoryDataError(f"{label!r} answer #{index + 1} is missing text.")

    accepted = raw.get("accepted") or ()
    if isinstance(accepted, str) or not isinstance(accepted, Iterable):
        raise CategoryDataError(f"{label!r} answer {text!r}: accepted must be a list of strings.")

    points = raw.get("points")
    if points is not None:
        try:
            points = int(points)
        except (TypeError, ValueError) as exc:
            raise CategoryDataError(f"{label!r} answer {text!r}: points must be an integer.") from exc
        if points <= 0:
            raise CategoryDataError(f"{label!r} answer {text!r}: points must be positive.")

    return CategoryEntry(
        text=text,
        accepted=tuple(str(alias).strip() for alias in accepted if str(alias).strip()),
        emoji=raw.get("emoji"),
        points=points,
    )


def parse_category(raw: Mapping[str, Any]) -> Category:
    """Validate one category payload."""
    label = str(raw.get("category") or raw.get("label") or "").strip()
    if not label:
        raise CategoryDataError("Category is missing its label.")
    try:
        difficulty = Difficulty.parse(raw.get("difficulty", Difficulty.EASY))
    except ValueError as exc:
        raise CategoryDataError(f"{label!r}: {exc}") from exc

    answers = raw.get("answers")
    if not isinstance(answers, Sequence) or isinstance(answers, str) or not answers:
        raise CategoryDataError(f"{label!r} must list at least one answer.")

    entries = tuple(_parse_entry(entry, label=label, index=index) for index, entry in enumerate(answers))
    _warn_on_overlaps(label, entries)
    return Category(label=label, difficulty=difficulty, entries=entries)


def _warn_on_overlaps(label: str, entries: Sequence[CategoryEntry]) -> None:
    # Overlapping synonyms are resolved by rank order at match time.
    counts: Counter[str] = Counter()
    for entry in entries:
        counts.update(answer_keys(Answer(text=entry.text, points=1, accepted=entry.accepted)))
    overlaps = sorted(key for key, count in counts.items() if count > 1)
    if overlaps:
        logger.warning("Category %r has answers sharing accepted text: %s", label, ", ".join(overlaps))


def categories_from_data(data: Any) -> list[Category]:
    """Parse a list of categories, or an object with a `categories` list."""
    if isinstance(data, Mapping):
        data = data.get("categories")
    if not isinstance(data, Sequence) or isinstance(data, str):
        raise CategoryDataError("Category data must be a list of categories.")

    categories: list[Category] = []
    seen: set[str] = set()
    for raw in data:
        if not isinstance(raw, Mapping):
            raise CategoryDataError("Each category must be an object.")
        category = parse_category(raw)
        if category.label in seen:
            raise CategoryDataError(f"Duplicate category label {category.label!r}.")
        seen.add(category.label)
        categories.append(category)
    return categories


def load_categories(path: str | Path) -> list[Category]:
    """Load categories from a JSON file."""
    source = Path(path)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CategoryDataError(f"Category file not found: {source}") from exc
    except json.JSONDecodeError as exc:
        raise CategoryDataError(f"Category file {source} is not valid JSON: {exc}") from exc
    categories = categories_from_data(data)
    logger.info("Loaded %d categories from %s", len(categories), source)
    return categories


def _entries(*items: str | tuple[str, str] | tuple[str, str, tuple[str, ...]]) -> list[dict[str, Any]]:
    payload = []
    for item in items:
        if isinstance(item, str):
            payload.append({"text": item})
        elif len(item) == 2:
            payload.append({"text": item[0], "emoji": item[1]})
        else:
            payload.append({"text": item[0], "emoji": item[1], "accepted": list(item[2])})
    return payload


BUILTIN_CATEGORY_DATA: tuple[dict[str, Any], ...] = (
    {
        "category": "Name a food people order for delivery",
        "difficulty": "Easy",
        "answers": _entries(
            ("Pizza", "🍕", ("pizzas", "pie")),
            ("Chinese food", "🥡", ("chinese", "takeout")),
            ("Tacos", "🌮", ("taco",)),
            ("Burgers", "🍔", ("burger", "hamburger")),
            ("Sushi", "🍣"),
            ("Wings", "🍗", ("chicken wings",)),
            ("Thai food", "🍜", ("thai", "pad thai")),
            ("Sandwiches", "🥪", ("sandwich", "subs")),
        ),
    },
    {
        "category": "Name something you take to the beach",
        "difficulty": "Easy",
        "answers": _entries(
            ("Towel", "🏖️", ("towels", "beach towel")),
            ("Sunscreen", "🧴", ("sunblock", "suntan lotion")),
            ("Umbrella", "⛱️", ("beach umbrella",)),
            ("Cooler", "🧊", ("ice chest",)),
            ("Sunglasses", "🕶️", ("shades",)),
            ("Chair", "🪑", ("beach chair", "chairs")),
            ("Book", "📚", ("books", "magazine")),
            ("Ball", "🏐", ("volleyball", "frisbee")),
        ),
    },
    {
        "category": "Name a pet people keep at home",
        "difficulty": "Easy",
        "answers": _entries(
            ("Dog", "🐶", ("dogs", "puppy")),
            ("Cat", "🐱", ("cats", "kitten")),
            ("Fish", "🐟", ("goldfish",)),
            ("Bird", "🐦", ("parrot", "budgie")),
            ("Hamster", "🐹", ("hamsters",)),
            ("Rabbit", "🐰", ("bunny",)),
            ("Turtle", "🐢", ("tortoise",)),
            ("Snake", "🐍", ("snakes",)),
        ),
    },
    {
        "category": "Name something you do every morning",
        "difficulty": "Easy",
        "answers": _entries(
            ("Brush teeth", "🪥", ("brush my teeth", "brushing teeth")),
            ("Shower", "🚿", ("take a shower", "bathe")),
            ("Drink coffee", "☕", ("coffee",)),
            ("Eat breakfast", "🥣", ("breakfast",)),
            ("Get dressed", "👕", ("dress",)),
            ("Check phone", "📱", ("phone",)),
            ("Make the bed", "🛏️", ("make bed",)),
        ),
    },
    {
        "category": "Name a fruit that is yellow",
        "difficulty": "Easy",
        "answers": _entries(
            ("Banana", "🍌", ("bananas",)),
            ("Lemon", "🍋", ("lemons",)),
            ("Pineapple", "🍍"),
            ("Mango", "🥭"),
            ("Grapefruit", "🟡"),
            ("Star fruit", "⭐", ("starfruit", "carambola")),
        ),
    },
    {
        "category": "Name a sport played with a ball",
        "difficulty": "Easy",
        "answers": _entries(
            ("Soccer", "⚽", ("football", "futbol")),
            ("Basketball", "🏀"),
            ("Baseball", "⚾"),
            ("Tennis", "🎾"),
            ("Volleyball", "🏐"),
            ("Golf", "⛳"),
            ("Rugby", "🏉"),
            ("Bowling", "🎳"),
        ),
    },
    {
        "category": "Name something found in a kitchen",
        "difficulty": "Easy",
        "answers": _entries(
            ("Refrigerator", "🧊", ("fridge", "freezer")),
            ("Stove", "🔥", ("oven", "range")),
            ("Sink", "🚰"),
            ("Microwave", "📡"),
            ("Knife", "🔪", ("knives",)),
            ("Toaster", "🍞"),
            ("Dishwasher", "🍽️"),
        ),
    },
    {
        "category": "Name a reason you might be late for work",
        "difficulty": "Not-so-easy",
        "answers": _entries(
            ("Traffic", "🚗", ("traffic jam",)),
            ("Overslept", "😴", ("slept in", "alarm")),
            ("Car trouble", "🛠️", ("flat tire", "car broke down")),
            ("Kids", "🧒", ("children",)),
            ("Weather", "🌧️", ("snow", "rain")),
            ("Public transit delay", "🚌", ("bus", "train")),
        ),
    },
    {
        "category": "Name something people are afraid of",
        "difficulty": "Not-so-easy",
        "answers": _entries(
            ("Spiders", "🕷️", ("spider",)),
            ("Heights", "🏔️", ("falling",)),
            ("Snakes", "🐍", ("snake",)),
            ("Death", "💀", ("dying",)),
            ("Public speaking", "🎤", ("speaking in public",)),
            ("The dark", "🌑", ("dark", "darkness")),
            ("Clowns", "🤡", ("clown",)),
        ),
    },
    {
        "category": "Name a job that requires a uniform",
        "difficulty": "Not-so-easy",
        "answers": _entries(
            ("Police officer", "👮", ("police", "cop")),
            ("Nurse", "🩺", ("doctor",)),
            ("Firefighter", "🚒", ("fireman",)),
            ("Soldier", "🪖", ("military",)),
            ("Pilot", "✈️"),
            ("Chef", "👨‍🍳", ("cook",)),
        ),
    },
    {
        "category": "Name something that has a shell",
        "difficulty": "Hard",
        "answers": _entries(
            ("Turtle", "🐢", ("tortoise",)),
            ("Egg", "🥚", ("eggs",)),
            ("Snail", "🐌"),
            ("Crab", "🦀", ("lobster",)),
            ("Nut", "🥜", ("peanut", "walnut")),
            ("Clam", "🦪", ("oyster", "mussel")),
            ("Taco", "🌮", ("hard taco",)),
        ),
    },
    {
        "category": "Name something people collect",
        "difficulty": "Hard",
        "answers": _entries(
            ("Stamps", "📮", ("stamp",)),
            ("Coins", "🪙", ("coin",)),
            ("Cards", "🃏", ("baseball cards", "trading cards")),
            ("Records", "💿", ("vinyl",)),
            ("Shoes", "👟", ("sneakers",)),
            ("Comic books", "📚", ("comics",)),
        ),
    },
    {
        "category": "Name something a vampire avoids",
        "difficulty": "Hard",
        "answers": _entries(
            ("Garlic", "🧄"),
            ("Sunlight", "☀️", ("sun", "daylight")),
            ("Cross", "✝️", ("crucifix",)),
            ("Holy water", "💧"),
            ("Wooden stake", "🪵", ("stake",)),
            ("Mirrors", "🪞", ("mirror",)),
        ),
    },
    {
        "category": "Name an element on the periodic table people can name",
        "difficulty": "DEATH MODE",
        "answers": _entries(
            ("Oxygen", "🫁", ("o",)),
            ("Hydrogen", "💧", ("h",)),
            ("Gold", "🥇", ("au",)),
            ("Carbon", "⚫", ("c",)),
            ("Iron", "🧲", ("fe",)),
            ("Helium", "🎈", ("he",)),
            ("Silver", "🥈", ("ag",)),
        ),
    },
    {
        "category": "Name a famous painter",
        "difficulty": "DEATH MODE",
        "answers": _entries(
            ("Picasso", "🎨", ("pablo picasso",)),
            ("Van Gogh", "🌻", ("vincent van gogh",)),
            ("Da Vinci", "🖼️", ("leonardo", "leonardo da vinci")),
            ("Monet", "🪷", ("claude monet",)),
            ("Michelangelo", "🏛️"),
            ("Rembrandt", "🕯️"),
        ),
    },
    {
        "category": "Name a word that rhymes with 'feud'",
        "difficulty": "DEATH MODE",
        "answers": _entries(
            ("Food", "🍽️"),
            ("Mood", "🙂"),
            ("Rude", "😤"),
            ("Dude", "🤙"),
            ("Crude", "🛢️"),
            ("Nude", "🫣"),
        ),
    },
)


def builtin_categories() -> list[Category]:
    return categories_from_data(list(BUILTIN_CATEGORY_DATA))


class CategoryDeck:
    """Category source for a match. Draws never repeat a used label."""

    def __init__(self, categories: Iterable[Category]):
        self.categories: tuple[Category, ...] = tuple(categories)
        if not self.categories:
            raise CategoryDataError("Category deck is empty.")
        self._by_label = {category.label: category for category in self.categories}

    @classmethod
    def builtin(cls) -> "CategoryDeck":
        return cls(builtin_categories())

    @classmethod
    def from_path(cls, path: str | Path) -> "CategoryDeck":
        return cls(load_categories(path))

    def get(self, label: str) -> Category:
        try:
            return self._by_label[label]
        except KeyError as exc:
            raise CategoryDataError(f"Unknown category {label!r}.") from exc

    def for_difficulty(self, difficulty: Difficulty) -> list[Category]:
        return [category for category in self.categories if category.difficulty is difficulty]

    def eligible(self, difficulty: Difficulty, used: Collection[str] = ()) -> list[Category]:
        return [category for category in self.for_difficulty(difficulty) if category.label not in used]

    def has_remaining(self, difficulty: Difficulty, used: Collection[str] = ()) -> bool:
        return bool(self.eligible(difficulty, used))

    def draw(self, difficulty: Difficulty, used: Collection[str], rng: random.Random) -> Category:
        """Pick a random unplayed category of `difficulty`."""
        candidates = self.eligible(difficulty, used)
        if not candidates:
            raise NoEligibleCategoryError(difficulty.value)
        return rng.choice(candidates)

    def round_options(self, difficulty: Difficulty) -> list[int]:
        """Round counts offered at setup, limited by how many categories exist."""
        available = len(self.for_difficulty(difficulty))
        return [rounds for rounds in ROUND_OPTIONS if rounds <= available]
