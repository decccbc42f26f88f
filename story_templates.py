"""Constant template tables for the outline and refinement agents.

Every table is keyed by the str-valued :class:`Genre` / :class:`Theme` enums,
so plain labels such as ``"Sci-Fi"`` look up the same entries. Fallbacks live
in the lookup functions below rather than at the call sites.
"""
import logging
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class _Label(str, Enum):
    @classmethod
    def parse(cls, text: str):
        """Match a display label or member name, ignoring case and spacing."""
        key = str(text).strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower(), member.name.lower().replace("_", "-")):
                return member
        raise ValueError(f"Unknown {cls.__name__.lower()}: {text!r}")


class Genre(_Label):
    FANTASY = "Fantasy"
    SCI_FI = "Sci-Fi"
    MYSTERY = "Mystery"
    ROMANCE = "Romance"
    HORROR = "Horror"
    ADVENTURE = "Adventure"
    THRILLER = "Thriller"
    HISTORICAL = "Historical"


class Theme(_Label):
    LOVE = "Love"
    BETRAYAL = "Betrayal"
    REDEMPTION = "Redemption"
    POWER = "Power"
    SACRIFICE = "Sacrifice"
    DISCOVERY = "Discovery"
    REVENGE = "Revenge"
    HOPE = "Hope"
    LOSS = "Loss"
    TRANSFORMATION = "Transformation"


GenreLike = Union[Genre, str]
ThemeLike = Union[Theme, str]


class GenreTemplate(NamedTuple):
    characters: Tuple[str, ...]
    conflicts: Tuple[str, ...]
    plot_elements: Tuple[str, ...]


DEFAULT_GENRE = Genre.FANTASY
DEFAULT_TONE = "Dramatic and Engaging"

STORY_TEMPLATES: Mapping[Genre, GenreTemplate] = MappingProxyType({
    Genre.FANTASY: GenreTemplate(
        characters=(
            "A young mage discovering their power",
            "An exiled dragon rider",
            "A merchant with magical artifacts",
            "A warrior from a fallen kingdom",
        ),
        conflicts=(
            "An ancient evil awakens",
            "Magic is disappearing from the world",
            "A prophecy must be fulfilled",
            "Kingdoms are at war over magical resources",
        ),
        plot_elements=(
            "A magical artifact is discovered",
            "A mentor is lost",
            "A hidden truth is revealed",
            "A great sacrifice must be made",
            "Powers are awakened",
        ),
    ),
    Genre.SCI_FI: GenreTemplate(
        characters=(
            "A space station engineer",
            "An AI researcher",
            "A rebel pilot",
            "A time traveler",
        ),
        conflicts=(
            "Humanity faces extinction",
            "AI has become sentient",
            "A new planet must be colonized",
            "Time paradoxes threaten reality",
        ),
        plot_elements=(
            "Technology fails at crucial moment",
            "Contact with alien life",
            "Discovery of conspiracy",
            "Journey to unknown world",
            "Evolution of consciousness",
        ),
    ),
    Genre.MYSTERY: GenreTemplate(
        characters=(
            "A detective with a dark past",
            "A forensic scientist",
            "A private investigator",
            "A journalist",
        ),
        conflicts=(
            "A serial killer strikes again",
            "A cold case resurfaces",
            "Corporate secrets must be exposed",
            "A missing person case turns deadly",
        ),
        plot_elements=(
            "A crucial clue is found",
            "The prime suspect has an alibi",
            "A witness disappears",
            "Evidence is destroyed",
            "The truth is revealed",
        ),
    ),
    Genre.ROMANCE: GenreTemplate(
        characters=(
            "A wedding planner",
            "A single parent",
            "A travel writer",
            "A small town doctor",
        ),
        conflicts=(
            "Past relationships interfere",
            "Career ambitions clash",
            "Family disapproval",
            "Distance separates lovers",
        ),
        plot_elements=(
            "An unexpected meeting",
            "A misunderstanding occurs",
            "A grand gesture",
            "Support during crisis",
            "Declaration of love",
        ),
    ),
    Genre.HORROR: GenreTemplate(
        characters=(
            "A paranormal investigator",
            "A family moving to a new home",
            "A group of friends on vacation",
            "A night shift worker",
        ),
        conflicts=(
            "Ancient curse awakens",
            "Supernatural entity haunts",
            "Psychological terror unfolds",
            "Survival against unknown threat",
        ),
        plot_elements=(
            "Strange occurrences begin",
            "First victim appears",
            "Truth about evil is discovered",
            "Final confrontation",
            "Escape or sacrifice",
        ),
    ),
})

THEME_ELEMENTS: Mapping[Theme, Tuple[str, ...]] = MappingProxyType({
    Theme.LOVE: ("Finding connection", "Unconditional acceptance", "Love conquers all"),
    Theme.BETRAYAL: ("Trust is broken", "Hidden agendas revealed", "Loyalty tested"),
    Theme.REDEMPTION: ("Second chances", "Making amends", "Overcoming past mistakes"),
    Theme.POWER: ("Corruption of authority", "Struggle for control", "Responsibility of leadership"),
    Theme.SACRIFICE: ("Personal cost for greater good", "Difficult choices", "Noble suffering"),
    Theme.DISCOVERY: ("Hidden truths", "Self-revelation", "New worlds unveiled"),
    Theme.REVENGE: ("Justice through retribution", "Cycle of violence", "Price of vengeance"),
    Theme.HOPE: ("Light in darkness", "Perseverance through hardship", "Belief in better future"),
    Theme.LOSS: ("Grief and healing", "What remains after tragedy", "Learning to let go"),
    Theme.TRANSFORMATION: ("Personal growth", "Change through adversity", "Evolution of character"),
})

TONES: Mapping[Genre, str] = MappingProxyType({
    Genre.FANTASY: "Epic and Wonder-filled",
    Genre.SCI_FI: "Thought-provoking and Futuristic",
    Genre.MYSTERY: "Suspenseful and Intriguing",
    Genre.ROMANCE: "Emotional and Heartwarming",
    Genre.HORROR: "Dark and Atmospheric",
    Genre.ADVENTURE: "Exciting and Bold",
    Genre.THRILLER: "Intense and Fast-paced",
    Genre.HISTORICAL: "Rich and Immersive",
})

TITLE_WORDS: Tuple[str, ...] = (
    "The", "Shadow", "Light", "Crown", "Heart", "Song", "Blade", "Storm", "Fire", "Moon",
    "Echo", "Dream", "Whisper", "Dance", "Tears", "Blood", "Silver", "Golden", "Crimson", "Eternal",
)

GENRE_TITLE_WORDS: Mapping[Genre, Tuple[str, ...]] = MappingProxyType({
    Genre.FANTASY: ("Dragon", "Magic", "Realm", "Enchanted", "Mystic"),
    Genre.SCI_FI: ("Star", "Quantum", "Nebula", "Cosmic", "Infinite"),
    Genre.MYSTERY: ("Secret", "Hidden", "Silent", "Midnight", "Vanished"),
    Genre.ROMANCE: ("Beloved", "Passion", "Promise", "Forever", "Devotion"),
    Genre.HORROR: ("Nightmare", "Cursed", "Haunted", "Terror", "Darkness"),
})

PREMISE_MORAL = (
    "ultimately learning that courage comes not from the absence of fear, "
    "but from acting despite it."
)
NO_THEME_PHRASE = "who they truly are"

# Story form
CHAPTER_COUNT = 3
CHAPTER_SENTENCES = 8
CHAPTER_TITLES: Tuple[str, ...] = (
    "The Call to Adventure",
    "Trials in the Dark",
    "The Final Reckoning",
    "Aftermath",
)
CHAPTER_OPENINGS: Tuple[str, ...] = (
    "It all began when {seed}.",
    "The stakes rose sharply as {seed}.",
    "Everything converged on a single night, because {seed}.",
)
FILLER_SENTENCES: Tuple[str, ...] = (
    "The air itself seemed to hold its breath, waiting for what would come next.",
    "Old certainties began to crack, and nothing felt as safe as it once had.",
    "Allies and strangers alike watched closely, each with reasons of their own.",
    "Every choice carried a weight that could not be set down again.",
    "Somewhere beyond sight, a quiet force was already moving against them.",
    "Doubt crept in at the edges, but so did a stubborn spark of resolve.",
    "By the time the day was done, the path ahead had changed beyond recognition.",
)

# Refinement
CHARACTER_DEPTH: Tuple[str, ...] = (
    "who struggles with self-doubt despite their abilities",
    "haunted by a tragic past that shaped their worldview",
    "torn between loyalty to family and personal ambitions",
    "hiding a secret that could change everything",
    "whose greatest strength is also their greatest weakness",
)
COMPLICATIONS: Tuple[str, ...] = (
    "but the true enemy may be someone they trust",
    "while dealing with internal struggles that mirror the external threat",
    "only to discover the conflict has deeper roots than imagined",
    "as time runs out and stakes continue to escalate",
    "while questioning everything they believed to be true",
)
PLOT_TWISTS: Tuple[str, ...] = (
    "A trusted ally reveals their true agenda",
    "The protagonist discovers they're connected to the antagonist",
    "What seemed like victory leads to an even greater challenge",
    "A character presumed dead returns at a crucial moment",
    "The solution requires an unexpected sacrifice",
)
PREMISE_ENHANCEMENTS: Tuple[str, ...] = (
    "But beneath the surface lies a web of deception that challenges everything they believe.",
    "However, their greatest enemy may be the darkness within themselves.",
    "Yet the price of victory may be higher than they're willing to pay.",
    "But as they delve deeper, they realize the fate of more than just themselves hangs in the balance.",
)
EVOCATIVE_WORDS: Tuple[str, ...] = (
    "Whispers", "Embers", "Shadows", "Echoes", "Reckoning", "Awakening", "Thresholds",
)
EXTRA_PARAGRAPHS: Tuple[str, ...] = (
    "Later, in the quiet that followed, the memory of that moment returned again and again, "
    "each time revealing a detail that had gone unnoticed before.",
    "Not everyone who had stood beside them would remain loyal, and the first signs of that "
    "fracture were already there for anyone willing to look.",
    "The cost of what had happened would not be counted for a long time, but it had already "
    "begun to reshape every plan they had made.",
    "In a place far from the center of events, someone else was making a choice that would "
    "soon bend the story in an unexpected direction.",
)

MAX_OUTLINE_PLOT_POINTS = 5
MAX_REFINED_PLOT_POINTS = 7
OUTLINE_THEME_LIMIT = 3
REFINED_OUTLINE_SUFFIX = ": Refined"
REFINED_STORY_SUFFIX = ": Enhanced Edition"


def label(value: Union[Enum, str]) -> str:
    """Display text for an enum member or a raw label."""
    return value.value if isinstance(value, Enum) else str(value)


def primary_genre(genres: Iterable[GenreLike]) -> GenreLike:
    for genre in genres:
        return genre
    return DEFAULT_GENRE


def template_for(genre: Optional[GenreLike]) -> GenreTemplate:
    template = STORY_TEMPLATES.get(genre)
    if template is None:
        if genre not in TONES:
            logger.warning("Unrecognized genre %r; using %s templates", genre, DEFAULT_GENRE.value)
        template = STORY_TEMPLATES[DEFAULT_GENRE]
    return template


def title_words_for(genre: Optional[GenreLike]) -> Tuple[str, ...]:
    return GENRE_TITLE_WORDS.get(genre) or GENRE_TITLE_WORDS[DEFAULT_GENRE]


def tone_for(genre: Optional[GenreLike]) -> str:
    return TONES.get(genre, DEFAULT_TONE)


def theme_elements_for(theme: ThemeLike) -> Tuple[str, ...]:
    """Phrases for a theme; unknown themes contribute nothing."""
    elements = THEME_ELEMENTS.get(theme)
    if elements is None:
        logger.warning("Unrecognized theme %r; ignoring", theme)
        return ()
    return elements


def chapter_title(index: int) -> str:
    """Title for the zero-based chapter ``index``."""
    if 0 <= index < len(CHAPTER_TITLES):
        return CHAPTER_TITLES[index]
    return f"Chapter {index + 1}"
