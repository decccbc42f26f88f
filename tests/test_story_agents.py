import copy
import dataclasses
import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from story_agents import OutlineAgent, RefinementAgent, SimulatedLatency, no_delay  # noqa: E402
from story_models import Chapter, Outline, Story  # noqa: E402
from story_templates import (  # noqa: E402
    CHAPTER_TITLES,
    EVOCATIVE_WORDS,
    PLOT_TWISTS,
    STORY_TEMPLATES,
    TONES,
    Genre,
    Theme,
)

FANTASY_CHARACTERS = [
    "A young mage discovering their power",
    "An exiled dragon rider",
    "A merchant with magical artifacts",
    "A warrior from a fallen kingdom",
]
FANTASY_CONFLICTS = [
    "An ancient evil awakens",
    "Magic is disappearing from the world",
    "A prophecy must be fulfilled",
    "Kingdoms are at war over magical resources",
]
TOKYO_PROMPT = "A detective investigating supernatural crimes in modern Tokyo"


def outline_agent(seed=0):
    return OutlineAgent(rng=random.Random(seed), delay=no_delay)


def refinement_agent(seed=0):
    return RefinementAgent(rng=random.Random(seed), delay=no_delay)


@pytest.mark.parametrize("genre", list(Genre))
def test_tone_matches_table_for_every_genre(genre):
    outline = outline_agent().generate_outline([genre], [Theme.HOPE])
    assert outline.tone == TONES[genre]


@pytest.mark.parametrize("genres", [[], ["Western"]])
def test_unknown_or_empty_genre_uses_fallback_tone(genres):
    outline = outline_agent().generate_outline(genres, ["Love"])
    assert outline.tone == "Dramatic and Engaging"
    # templates still fall back to Fantasy
    assert outline.main_character in FANTASY_CHARACTERS


def test_fantasy_hope_loss_scenario():
    outline = outline_agent(3).generate_outline(["Fantasy"], ["Hope", "Loss"])
    assert outline.main_character in FANTASY_CHARACTERS
    assert outline.conflict in FANTASY_CONFLICTS
    assert outline.tone == "Epic and Wonder-filled"
    assert outline.themes == ("Hope", "Loss")
    assert "Light in darkness and Grief and healing" in outline.premise
    assert outline.premise.endswith("but from acting despite it.")


def test_themes_capped_at_three():
    themes = [Theme.LOVE, Theme.POWER, Theme.HOPE, Theme.LOSS]
    assert outline_agent().generate_outline([Genre.HORROR], themes).themes == ("Love", "Power", "Hope")
    assert outline_agent().generate_outline([Genre.HORROR], themes[:1]).themes == ("Love",)
    assert outline_agent().generate_outline([Genre.HORROR], []).themes == ()


@pytest.mark.parametrize("seed", range(10))
def test_plot_point_count(seed):
    without = outline_agent(seed).generate_outline([Genre.MYSTERY], [])
    with_themes = outline_agent(seed).generate_outline([Genre.MYSTERY], [Theme.HOPE, Theme.LOSS])
    assert len(without.plot_points) == 4
    assert len(with_themes.plot_points) == 5
    assert with_themes.plot_points[-1] == "Character experiences light in darkness"
    elements = set(STORY_TEMPLATES[Genre.MYSTERY].plot_elements)
    assert set(without.plot_points) <= elements
    assert len(set(without.plot_points)) == 4


def test_outline_title_combines_generic_and_genre_word():
    first, second = outline_agent(5).generate_outline([Genre.ROMANCE], []).title.split(" ")
    assert second in ("Beloved", "Passion", "Promise", "Forever", "Devotion")
    assert first


def test_premise_without_themes():
    outline = outline_agent().generate_outline([Genre.SCI_FI], [])
    assert "the true meaning of who they truly are," in outline.premise
    assert outline.premise.startswith(f"{outline.main_character} must face {outline.conflict.lower()}.")


def test_same_seed_same_outline():
    a = outline_agent(42).generate_outline([Genre.HORROR], [Theme.REVENGE])
    b = outline_agent(42).generate_outline([Genre.HORROR], [Theme.REVENGE])
    assert a == b


def test_outline_is_frozen():
    outline = outline_agent().generate_outline([Genre.FANTASY], [Theme.HOPE])
    with pytest.raises(dataclasses.FrozenInstanceError):
        outline.title = "Other"


def test_story_from_prompt():
    story = outline_agent().generate_story(TOKYO_PROMPT, [], [])
    assert story.summary == TOKYO_PROMPT
    assert len(story.chapters) == 3
    assert story.title == "Detective Investigating Supernatural"
    assert [c.title for c in story.chapters] == list(CHAPTER_TITLES[:3])
    first = story.chapters[0].content
    assert first.startswith("It all began when a detective investigating supernatural crimes in modern Tokyo.")
    assert first.count(".") == 8
    assert story.tone == "Dramatic and Engaging"


@pytest.mark.parametrize("prompt", ["", "   \n", None])
def test_story_blank_prompt_uses_template_summary(prompt):
    story = outline_agent(1).generate_story(prompt, [Genre.MYSTERY], [Theme.BETRAYAL])
    characters = STORY_TEMPLATES[Genre.MYSTERY].characters
    assert any(story.summary.startswith(c) for c in characters)
    assert "Trust is broken" in story.summary
    assert len(story.title.split(" ")) == 2
    assert len(story.chapters) == 3
    assert story.tone == "Suspenseful and Intriguing"


def test_story_prompt_without_long_words_uses_generated_title():
    story = outline_agent().generate_story("a cat on a mat", [Genre.FANTASY], [])
    assert story.summary == "a cat on a mat"
    assert story.title.split(" ")[1] in ("Dragon", "Magic", "Realm", "Enchanted", "Mystic")


def test_delay_runs_once_per_call():
    calls = []
    agent = OutlineAgent(rng=random.Random(0), delay=lambda: calls.append(1))
    agent.generate_outline([Genre.FANTASY], [])
    agent.generate_story("", [Genre.FANTASY], [])
    refiner = RefinementAgent(rng=random.Random(0), delay=lambda: calls.append(1))
    refiner.refine_outline(outline_agent().generate_outline([Genre.FANTASY], []))
    assert len(calls) == 3


def test_simulated_latency_uses_injected_sleep():
    slept = []
    latency = SimulatedLatency(1.0, 2.0, sleep=slept.append)
    latency()
    latency()
    assert len(slept) == 2
    assert all(1.0 <= s <= 2.0 for s in slept)


def test_simulated_latency_does_not_change_content():
    quiet = OutlineAgent(rng=random.Random(9), delay=no_delay)
    timed = OutlineAgent(rng=random.Random(9), delay=SimulatedLatency(0.0, 0.5, sleep=lambda s: None))
    assert quiet.generate_story("", [Genre.HORROR], [Theme.LOSS]) == timed.generate_story("", [Genre.HORROR], [Theme.LOSS])


def test_simulated_latency_rejects_bad_range():
    with pytest.raises(ValueError):
        SimulatedLatency(3.0, 1.0)


def test_default_agents_simulate_latency():
    assert isinstance(OutlineAgent().delay, SimulatedLatency)
    assert (OutlineAgent().delay.low, OutlineAgent().delay.high) == (2.0, 4.0)
    assert (RefinementAgent().delay.low, RefinementAgent().delay.high) == (3.0, 5.0)


def test_refine_outline_does_not_mutate_input():
    outline = outline_agent(2).generate_outline([Genre.FANTASY], [Theme.HOPE, Theme.LOSS])
    snapshot = copy.deepcopy(outline)
    refined = refinement_agent(2).refine_outline(outline)
    assert outline == snapshot
    assert refined.title == outline.title + ": Refined"
    assert refined.main_character.startswith(outline.main_character + " ")
    assert refined.conflict.startswith(outline.conflict + " ")
    assert refined.premise.startswith(outline.premise + " ")
    assert refined.themes == outline.themes
    assert refined.tone == outline.tone


@pytest.mark.parametrize("seed", range(15))
def test_refine_outline_plot_point_bounds(seed):
    outline = outline_agent(seed).generate_outline([Genre.SCI_FI], [Theme.DISCOVERY])
    refined = refinement_agent(seed).refine_outline(outline)
    assert len(outline.plot_points) < len(refined.plot_points) <= 7
    # original order survives; twists are only inserted after the first entry
    assert refined.plot_points[0] == outline.plot_points[0]
    remaining = [p for p in refined.plot_points]
    for point in outline.plot_points:
        assert point in remaining
        remaining = remaining[remaining.index(point) + 1:]
    added = len(refined.plot_points) - len(outline.plot_points)
    assert 1 <= added <= 2


def test_refine_outline_caps_at_seven():
    full = Outline("T", "P", "C", "X", plot_points=tuple(f"p{i}" for i in range(7)))
    assert refinement_agent().refine_outline(full).plot_points == full.plot_points
    for seed in range(10):
        six = dataclasses.replace(full, plot_points=full.plot_points[:6])
        refined = refinement_agent(seed).refine_outline(six)
        assert len(refined.plot_points) == 7
        assert set(refined.plot_points) - set(six.plot_points) <= set(PLOT_TWISTS)


def test_refine_outline_with_single_plot_point():
    outline = Outline("T", "P", "C", "X", plot_points=("only",))
    refined = refinement_agent(4).refine_outline(outline)
    assert refined.plot_points[0] == "only"


def test_refine_story():
    story = outline_agent().generate_story(TOKYO_PROMPT, [Genre.MYSTERY], [Theme.DISCOVERY])
    snapshot = copy.deepcopy(story)
    refined = refinement_agent().refine_story(story)
    assert story == snapshot
    assert refined.title == story.title + ": Enhanced Edition"
    assert refined.summary.startswith(TOKYO_PROMPT + " ")
    assert refined.themes == story.themes
    assert refined.tone == story.tone
    assert len(refined.chapters) == len(story.chapters)
    for before, after in zip(story.chapters, refined.chapters):
        word, _, rest = after.title.partition(": ")
        assert word in EVOCATIVE_WORDS
        assert rest == before.title
        assert after.content.startswith(before.content + "\n\n")
        assert len(after.paragraphs()) == 2


def test_refine_story_is_reproducible():
    story = Story("T", chapters=(Chapter("One", "Text."),), summary="S")
    assert refinement_agent(8).refine_story(story) == refinement_agent(8).refine_story(story)
