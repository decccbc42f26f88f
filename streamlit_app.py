# ruff: noqa: I001
import logging
import os

import streamlit as st

from logger_config import setup_logging
from story_app import StoryConfig, build_agents, generate_draft, refine_draft
from story_models import Outline, Story
from story_templates import Genre, Theme

setup_logging()
logger = logging.getLogger(__name__)

SIMULATE_LATENCY = os.getenv("STORYWEAVER_SIMULATE_LATENCY", "1").strip().lower() not in ("0", "false", "no", "off")

st.set_page_config(page_title="StoryWeaver", page_icon="📖", layout="wide")

# idle -> generated -> refined; agents run inside button callbacks, so each
# script pass renders the state they left behind
if "phase" not in st.session_state:
    st.session_state.phase = "idle"
    st.session_state.draft = None
    st.session_state.refined = None
    st.session_state.notice = None
    st.session_state.toast = None


def _reset():
    st.session_state.phase = "idle"
    st.session_state.draft = None
    st.session_state.refined = None
    st.session_state.notice = None
    st.session_state.genres = []
    st.session_state.themes = []
    st.session_state.prompt = ""


def _generate(output: str) -> None:
    config = StoryConfig(
        genres=st.session_state.genres,
        themes=st.session_state.themes,
        prompt=st.session_state.prompt,
        output=output,
        simulate_latency=SIMULATE_LATENCY,
    )
    problem = config.selection_error()
    if problem:
        st.session_state.notice = f"Selection Required: {problem}"
        return
    st.session_state.phase = "idle"
    st.session_state.draft = None
    st.session_state.refined = None
    st.session_state.notice = None
    outline_agent, _ = build_agents(config)
    try:
        with st.spinner("Weaving your story..."):
            draft = generate_draft(config, outline_agent)
    except Exception:
        logger.exception("Generation failed")
        st.session_state.notice = "Generation Failed: Something went wrong while generating your story. Please try again."
        return
    st.session_state.draft = draft
    st.session_state.phase = "generated"
    st.session_state.toast = "Story Generated! Your draft has been created by the Outline Agent."


def _refine() -> None:
    if st.session_state.phase != "generated":
        return
    _, refinement_agent = build_agents(StoryConfig(simulate_latency=SIMULATE_LATENCY))
    st.session_state.notice = None
    try:
        with st.spinner("Adding depth and plot twists..."):
            refined = refine_draft(st.session_state.draft, refinement_agent)
    except Exception:
        logger.exception("Refinement failed")
        st.session_state.notice = "Refinement Failed: Something went wrong while refining your story. Please try again."
        return
    st.session_state.refined = refined
    st.session_state.phase = "refined"
    st.session_state.toast = "Story Refined! Deeper characters and new twists have been woven in."


def _show_outline(outline: Outline) -> None:
    st.header(outline.title)
    st.caption(outline.tone)
    st.markdown(f"**Premise.** {outline.premise}")
    st.markdown(f"**Main Character.** {outline.main_character}")
    st.markdown(f"**Conflict.** {outline.conflict}")
    st.subheader("Plot Points")
    st.markdown("\n".join(f"{i}. {p}" for i, p in enumerate(outline.plot_points, 1)))
    if outline.themes:
        st.markdown("**Themes:** " + ", ".join(outline.themes))


def _show_story(story: Story) -> None:
    st.header(story.title)
    st.caption(story.tone)
    st.markdown(f"*{story.summary}*")
    if story.themes:
        st.markdown("**Themes:** " + ", ".join(story.themes))
    for chapter in story.chapters:
        st.subheader(chapter.title)
        for paragraph in chapter.paragraphs():
            st.write(paragraph)


st.title("StoryWeaver 📖")
st.caption("Two agents craft a story from your genres and themes: one drafts, one refines.")

controls, display = st.columns(2)

with controls:
    st.multiselect("Select Genres", [g.value for g in Genre], key="genres")
    st.multiselect("Select Themes", [t.value for t in Theme], key="themes")
    st.text_area(
        "Story prompt (optional, full stories only)",
        key="prompt",
        placeholder="A detective investigating supernatural crimes in modern Tokyo",
    )
    col1, col2, col3 = st.columns(3)
    with col1:
        st.button("Generate Outline", key="generate_outline", on_click=_generate, args=("outline",))
    with col2:
        st.button("Generate Story", key="generate_story", on_click=_generate, args=("story",))
    with col3:
        if st.session_state.phase in ("generated", "refined"):
            st.button("New Story", key="reset", on_click=_reset)
    if st.session_state.notice:
        st.error(st.session_state.notice)
        st.session_state.notice = None

if st.session_state.toast:
    st.toast(st.session_state.toast)
    st.session_state.toast = None

with display:
    if st.session_state.phase == "generated":
        st.button("Refine", key="refine", on_click=_refine)

    latest = st.session_state.refined or st.session_state.draft
    if latest is None:
        st.info("Ready to Create: select genres and themes, or enter a prompt, to generate your story.")
    else:
        if isinstance(latest, Story):
            _show_story(latest)
        else:
            _show_outline(latest)
        st.download_button(
            "Download Markdown",
            data=latest.to_markdown(),
            file_name="story.md",
            mime="text/markdown",
        )
