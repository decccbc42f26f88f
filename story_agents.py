import logging
import random
import re
import time
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple

from story_models import Chapter, Outline, Story
from story_templates import (
    CHAPTER_COUNT,
    CHAPTER_OPENINGS,
    CHAPTER_SENTENCES,
    CHARACTER_DEPTH,
    COMPLICATIONS,
    EVOCATIVE_WORDS,
    EXTRA_PARAGRAPHS,
    FILLER_SENTENCES,
    MAX_OUTLINE_PLOT_POINTS,
    MAX_REFINED_PLOT_POINTS,
    NO_THEME_PHRASE,
    OUTLINE_THEME_LIMIT,
    PLOT_TWISTS,
    PREMISE_ENHANCEMENTS,
    PREMISE_MORAL,
    REFINED_OUTLINE_SUFFIX,
    REFINED_STORY_SUFFIX,
    TITLE_WORDS,
    GenreLike,
    ThemeLike,
    chapter_title,
    label,
    primary_genre,
    template_for,
    theme_elements_for,
    title_words_for,
    tone_for,
)

logger = logging.getLogger(__name__)

Delay = Callable[[], None]


def no_delay() -> None:
    return None


class SimulatedLatency:
    """Sleep for a random duration in ``[low, high]`` seconds.

    Jitter comes from a private generator so that seeding the content rng of
    an agent yields the same story whether or not latency is simulated.
    """

    def __init__(self, low: float, high: float, sleep: Callable[[float], None] = time.sleep):
        if low < 0 or high < low:
            raise ValueError(f"invalid latency range: {low}..{high}")
        self.low = low
        self.high = high
        self._sleep = sleep
        self._rng = random.Random()

    def __call__(self) -> None:
        seconds = self._rng.uniform(self.low, self.high)
        logger.debug("Simulating %.2fs of processing", seconds)
        self._sleep(seconds)

    def __repr__(self) -> str:
        return f"SimulatedLatency({self.low}, {self.high})"


class _Agent:
    default_latency: Tuple[float, float] = (0.0, 0.0)

    def __init__(self, rng: Optional[random.Random] = None, delay: Optional[Delay] = None):
        self.rng = rng if rng is not None else random.Random()
        self.delay = delay if delay is not None else SimulatedLatency(*self.default_latency)


class OutlineAgent(_Agent):
    """Builds outlines and three-chapter stories from the genre template tables."""

    default_latency = (2.0, 4.0)

    def generate_outline(self, genres: Sequence[GenreLike], themes: Sequence[ThemeLike]) -> Outline:
        genres = list(genres or [])
        themes = list(themes or [])
        self.delay()

        genre = primary_genre(genres)
        template = template_for(genre)
        title = self._generate_title(genre)
        character = self.rng.choice(template.characters)
        conflict = self.rng.choice(template.conflicts)
        plot_points = self._generate_plot_points(template.plot_elements, themes)

        outline = Outline(
            title=title,
            premise=self._generate_premise(character, conflict, themes),
            main_character=character,
            conflict=conflict,
            plot_points=plot_points,
            themes=tuple(label(t) for t in themes[:OUTLINE_THEME_LIMIT]),
            tone=tone_for(genres[0] if genres else None),
        )
        logger.info("Generated outline %r (%s, %d plot points)", outline.title, label(genre), len(plot_points))
        return outline

    def generate_story(self, prompt: Optional[str], genres: Sequence[GenreLike], themes: Sequence[ThemeLike]) -> Story:
        """Three chapters of template prose; a non-blank ``prompt`` becomes the summary verbatim."""
        prompt = prompt or ""
        genres = list(genres or [])
        themes = list(themes or [])
        has_prompt = bool(prompt.strip())
        self.delay()

        genre = primary_genre(genres)
        template = template_for(genre)
        title = self._title_from_prompt(prompt) if has_prompt else ""
        if not title:
            title = self._generate_title(genre)
        character = self.rng.choice(template.characters)
        conflict = self.rng.choice(template.conflicts)
        premise = self._generate_premise(character, conflict, themes)

        if has_prompt:
            seed = _as_clause(prompt)
        else:
            seed = f"{_as_clause(character)} came face to face with a hard truth: {conflict.lower()}"
        chapters = tuple(
            Chapter(title=chapter_title(i), content=self._chapter_content(seed, i))
            for i in range(CHAPTER_COUNT)
        )

        story = Story(
            title=title,
            chapters=chapters,
            themes=tuple(label(t) for t in themes[:OUTLINE_THEME_LIMIT]),
            tone=tone_for(genres[0] if genres else None),
            summary=prompt if has_prompt else premise,
        )
        logger.info("Generated story %r (%d chapters, prompt=%s)", story.title, len(chapters), has_prompt)
        return story

    def _generate_title(self, genre: GenreLike) -> str:
        word = self.rng.choice(TITLE_WORDS)
        genre_word = self.rng.choice(title_words_for(genre))
        return f"{word} {genre_word}"

    @staticmethod
    def _title_from_prompt(prompt: str) -> str:
        words = [w for w in re.findall(r"\w[\w'-]*", prompt) if len(w) > 3][:3]
        return " ".join(w[:1].upper() + w[1:].lower() for w in words)

    @staticmethod
    def _generate_premise(character: str, conflict: str, themes: Sequence[ThemeLike]) -> str:
        phrases = [elements[0] for elements in map(theme_elements_for, themes[:2]) if elements]
        meaning = " and ".join(phrases) or NO_THEME_PHRASE
        return (
            f"{character} must face {conflict.lower()}. Through their journey, they will discover "
            f"the true meaning of {meaning}, {PREMISE_MORAL}"
        )

    def _generate_plot_points(self, elements: Sequence[str], themes: Sequence[ThemeLike]) -> Tuple[str, ...]:
        shuffled = list(elements)
        self.rng.shuffle(shuffled)
        selected: List[str] = shuffled[:4]
        for theme in themes:
            theme_elements = theme_elements_for(theme)
            if theme_elements and len(selected) < MAX_OUTLINE_PLOT_POINTS:
                selected.append(f"Character experiences {theme_elements[0].lower()}")
        return tuple(selected[:MAX_OUTLINE_PLOT_POINTS])

    @staticmethod
    def _chapter_content(seed: str, index: int) -> str:
        opening = CHAPTER_OPENINGS[index % len(CHAPTER_OPENINGS)].format(seed=seed)
        return " ".join([opening, *FILLER_SENTENCES[:CHAPTER_SENTENCES - 1]])


class RefinementAgent(_Agent):
    """Derives enhanced copies of outlines and stories. Inputs are never modified."""

    default_latency = (3.0, 5.0)

    def refine_outline(self, outline: Outline) -> Outline:
        self.delay()
        refined = replace(
            outline,
            title=outline.title + REFINED_OUTLINE_SUFFIX,
            main_character=f"{outline.main_character} {self.rng.choice(CHARACTER_DEPTH)}",
            conflict=f"{outline.conflict} {self.rng.choice(COMPLICATIONS)}",
            plot_points=self._add_plot_twists(outline.plot_points),
            premise=f"{outline.premise} {self.rng.choice(PREMISE_ENHANCEMENTS)}",
        )
        logger.info("Refined outline %r (%d -> %d plot points)", outline.title,
                    len(outline.plot_points), len(refined.plot_points))
        return refined

    def refine_story(self, story: Story) -> Story:
        self.delay()
        chapters = tuple(
            Chapter(
                title=f"{self.rng.choice(EVOCATIVE_WORDS)}: {chapter.title}",
                content=f"{chapter.content}\n\n{self.rng.choice(EXTRA_PARAGRAPHS)}",
            )
            for chapter in story.chapters
        )
        refined = replace(
            story,
            title=story.title + REFINED_STORY_SUFFIX,
            chapters=chapters,
            summary=f"{story.summary} {self.rng.choice(PREMISE_ENHANCEMENTS)}",
        )
        logger.info("Refined story %r (%d chapters)", story.title, len(chapters))
        return refined

    def _add_plot_twists(self, plot_points: Sequence[str]) -> Tuple[str, ...]:
        enhanced = list(plot_points)
        for _ in range(self.rng.randint(1, 2)):
            if len(enhanced) >= MAX_REFINED_PLOT_POINTS:
                break
            twist = self.rng.choice(PLOT_TWISTS)
            enhanced.insert(self.rng.randint(1, max(1, len(enhanced) - 1)), twist)
        return tuple(enhanced)


def _as_clause(text: str) -> str:
    """Strip trailing punctuation and lower a leading article so ``text`` reads mid-sentence."""
    clause = text.strip().rstrip(".!?")
    return re.sub(r"^(A|An|The)\b", lambda m: m.group(1).lower(), clause)
