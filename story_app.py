import argparse
import contextlib
import json
import logging
import os
import random
import sys
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Dict, Iterable, List, Optional, Tuple, Union

from docx import Document
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.validation import ValidationError, Validator
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from logger_config import setup_logging
from story_agents import OutlineAgent, RefinementAgent, no_delay
from story_models import Outline, Story
from story_templates import THEME_ELEMENTS, Genre, Theme, label, tone_for

logger = logging.getLogger(__name__)

_console = Console()
_err_console = Console(stderr=True)

OUTPUT_CHOICES = ("outline", "story")
Draft = Union[Outline, Story]


def _parse_labels(values, enum_cls) -> list:
    """Parse a comma string or iterable of labels into unique enum members, keeping order."""
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    elif not isinstance(values, (list, tuple)):
        raise ValueError(f"{enum_cls.__name__.lower()}s must be a list or comma-separated text")
    parsed = []
    for value in values:
        if not isinstance(value, enum_cls):
            if not str(value).strip():
                continue
            value = enum_cls.parse(value)
        if value not in parsed:
            parsed.append(value)
    return parsed


@dataclass
class StoryConfig:
    genres: List[Genre] = field(default_factory=list)
    themes: List[Theme] = field(default_factory=list)
    prompt: str = ""
    output: str = "outline"  # outline | story
    refine: bool = False
    seed: Optional[int] = None
    simulate_latency: bool = True

    def __post_init__(self):
        self.genres = _parse_labels(self.genres, Genre)
        self.themes = _parse_labels(self.themes, Theme)
        for name in ("prompt", "output"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{name} must be text, not {type(value).__name__}")
        for name in ("refine", "simulate_latency"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be true or false")
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ValueError("seed must be an integer")
        # blank prompts count as no prompt; anything else is kept verbatim
        if not (self.prompt or "").strip():
            self.prompt = ""
        self.output = (self.output or "outline").strip().lower()
        if self.output not in OUTPUT_CHOICES:
            raise ValueError(f"Unknown output {self.output!r}; choose from {', '.join(OUTPUT_CHOICES)}")

    def selection_error(self) -> Optional[str]:
        """Message explaining why this selection cannot be generated, or None."""
        if self.genres and self.themes:
            return None
        if self.output == "story":
            if self.prompt:
                return None
            return "Please enter a prompt or select at least one genre and one theme to generate your story."
        return "Please select at least one genre and one theme to generate your story."

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["genres"] = [label(g) for g in self.genres]
        data["themes"] = [label(t) for t in self.themes]
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "StoryConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    def save(self, path: str) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> "StoryConfig":
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} does not contain a JSON object")
        return cls.from_dict(data)


def build_agents(config: StoryConfig) -> Tuple[OutlineAgent, RefinementAgent]:
    """Both agents share one rng so a seed reproduces draft and refinement together."""
    rng = random.Random(config.seed)
    delay = None if config.simulate_latency else no_delay
    return OutlineAgent(rng=rng, delay=delay), RefinementAgent(rng=rng, delay=delay)


def generate_draft(config: StoryConfig, agent: OutlineAgent) -> Draft:
    if config.output == "story":
        return agent.generate_story(config.prompt, config.genres, config.themes)
    return agent.generate_outline(config.genres, config.themes)


def refine_draft(draft: Draft, agent: RefinementAgent) -> Draft:
    if isinstance(draft, Story):
        return agent.refine_story(draft)
    return agent.refine_outline(draft)


# ----------------- RENDERING -----------------
def render_outline(outline: Outline, console: Console, heading: str = "Story Outline") -> None:
    body = Table(show_header=False, box=None, padding=(0, 1))
    body.add_row("[bold]Tone[/]", Text(outline.tone))
    body.add_row("[bold]Premise[/]", Text(outline.premise))
    body.add_row("[bold]Main Character[/]", Text(outline.main_character))
    body.add_row("[bold]Conflict[/]", Text(outline.conflict))
    if outline.themes:
        body.add_row("[bold]Themes[/]", Text(", ".join(outline.themes)))
    points = "\n".join(f"{i}. {p}" for i, p in enumerate(outline.plot_points, 1))
    body.add_row("[bold]Plot Points[/]", Text(points))
    console.print(Panel(body, title=Text(outline.title), subtitle=heading))


def render_story(story: Story, console: Console, heading: str = "Generated Story") -> None:
    # summary and chapters may carry the user's prompt verbatim, so never parse them as markup
    intro = Text.assemble((story.tone, "italic"), "\n\n", story.summary)
    if story.themes:
        intro.append("\n\n")
        intro.append("Themes:", style="bold")
        intro.append(" " + ", ".join(story.themes))
    console.print(Panel(intro, title=Text(story.title), subtitle=heading))
    for chapter in story.chapters:
        console.print(Panel(Text(chapter.content), title=Text(chapter.title)))


def render_draft(draft: Draft, console: Console, heading: str) -> None:
    if isinstance(draft, Story):
        render_story(draft, console, heading)
    else:
        render_outline(draft, console, heading)


def render_catalog(console: Console) -> None:
    genres = Table(title="Genres")
    genres.add_column("Genre")
    genres.add_column("Tone")
    for genre in Genre:
        genres.add_row(genre.value, tone_for(genre))
    console.print(genres)
    themes = Table(title="Themes")
    themes.add_column("Theme")
    themes.add_column("Elements")
    for theme in Theme:
        themes.add_row(theme.value, "; ".join(THEME_ELEMENTS[theme]))
    console.print(themes)


# ----------------- EXPORT -----------------
def _write_docx(drafts: Iterable[Draft], path: str) -> None:
    doc = Document()
    for draft in drafts:
        for line in draft.to_markdown().splitlines():
            if not line.strip():
                continue
            if line.startswith("## "):
                doc.add_heading(line[3:], level=1)
            elif line.startswith("# "):
                doc.add_heading(line[2:], level=0)
            elif line.startswith("*") and line.endswith("*") and not line.startswith("**"):
                doc.add_paragraph().add_run(line.strip("*")).italic = True
            else:
                doc.add_paragraph(line)
        doc.add_page_break()
    doc.save(path)


def export_output(drafts: List[Draft], path: str) -> Tuple[bool, str]:
    """Export drafts to path by extension. Returns (ok, info_message)."""
    ext = os.path.splitext(path)[1].lower()
    try:
        if ext == ".md":
            with open(path, "w", encoding="utf-8") as f:
                f.write("\n---\n\n".join(d.to_markdown() for d in drafts))
            return True, f"Saved Markdown to {path}"
        if ext == ".docx":
            _write_docx(drafts, path)
            return True, f"Saved DOCX to {path}"
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n\n".join(d.to_text() for d in drafts))
        if ext in (".txt", ""):
            return True, f"Saved TXT to {path}"
        return True, f"Saved to {path}"
    except (OSError, ValueError) as e:
        logger.exception("Export to %s failed", path)
        return False, f"Failed to export to {path}: {e}"


# ----------------- WIZARD -----------------
class LabelListValidator(Validator):
    def __init__(self, enum_cls, allow_empty: bool = True):
        self.enum_cls = enum_cls
        self.allow_empty = allow_empty

    def validate(self, document):
        try:
            parsed = _parse_labels(document.text, self.enum_cls)
        except ValueError as e:
            raise ValidationError(message=str(e))
        if not parsed and not self.allow_empty:
            raise ValidationError(message=f"Choose at least one of: {', '.join(m.value for m in self.enum_cls)}")


class ChoiceValidator(Validator):
    def __init__(self, choices):
        self.choices = choices

    def validate(self, document):
        txt = document.text.strip().lower()
        if txt and txt not in self.choices:
            raise ValidationError(message=f"Choose from {self.choices}")


def run_wizard(base: Optional[StoryConfig] = None, session_input=None, session_output=None) -> StoryConfig:
    """Interactive configuration using prompt_toolkit; input/output default to the terminal."""
    base = base or StoryConfig()
    session = PromptSession(input=session_input, output=session_output)
    genre_names = [g.value for g in Genre]
    theme_names = [t.value for t in Theme]
    output = session.prompt(
        "Output (outline, story) [outline]: ",
        default=base.output,
        validator=ChoiceValidator(list(OUTPUT_CHOICES)),
    ) or "outline"
    prompt = ""
    if output.strip().lower() == "story":
        prompt = session.prompt("Story prompt (optional): ", default=base.prompt)
    genres = session.prompt(
        f"Genres (comma, from {', '.join(genre_names)}): ",
        default=", ".join(label(g) for g in base.genres),
        completer=WordCompleter(genre_names, ignore_case=True),
        validator=LabelListValidator(Genre),
    )
    themes = session.prompt(
        f"Themes (comma, from {', '.join(theme_names)}): ",
        default=", ".join(label(t) for t in base.themes),
        completer=WordCompleter(theme_names, ignore_case=True),
        validator=LabelListValidator(Theme),
    )
    refine = session.prompt(
        "Refine the draft afterwards? (y/n) [n]: ",
        default="y" if base.refine else "n",
        validator=ChoiceValidator(["y", "n", "yes", "no"]),
    )
    return replace(
        base,
        output=output,
        prompt=prompt,
        genres=genres,
        themes=themes,
        refine=refine.strip().lower().startswith("y"),
    )


def confirm_config(cfg: StoryConfig, console: Console, session_input=None, session_output=None) -> bool:
    console.print("\n[bold cyan]Configuration Preview[/]:")
    table = Table(show_header=False, box=None)
    table.add_row("Output", cfg.output)
    table.add_row("Genres", ", ".join(label(g) for g in cfg.genres) or "-")
    table.add_row("Themes", ", ".join(label(t) for t in cfg.themes) or "-")
    if cfg.prompt:
        table.add_row("Prompt", Text(cfg.prompt))
    table.add_row("Refine", "yes" if cfg.refine else "no")
    console.print(table)
    session = PromptSession(input=session_input, output=session_output)
    ans = session.prompt("Proceed? (y/n) [y]: ") or "y"
    return ans.strip().lower().startswith("y")


# ----------------- CLI -----------------
def _label_list(enum_cls):
    def parse(text: str) -> list:
        try:
            return _parse_labels(text, enum_cls)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e))
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storyweaver",
        description="Generate a story outline or a short multi-chapter story from genres, themes or a prompt.",
    )
    parser.add_argument("--genres", type=_label_list(Genre), help="Comma-separated genres (e.g. 'Fantasy,Horror')")
    parser.add_argument("--themes", type=_label_list(Theme), help="Comma-separated themes (e.g. 'Hope,Loss')")
    parser.add_argument("--prompt", type=str, help="Free-text story idea (story output only)")
    parser.add_argument("--output", choices=OUTPUT_CHOICES, help="Generate an outline (default) or a full story")
    parser.add_argument("--refine", action="store_true", help="Run the refinement agent on the draft")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible generation")
    parser.add_argument("--no-delay", action="store_true", help="Skip the simulated processing time")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--save", type=str, help="Save output to a file (.txt, .md or .docx)")
    parser.add_argument("--save-config", type=str, help="Save configuration to a JSON file")
    parser.add_argument("--load-config", type=str, help="Load configuration from a JSON file")
    parser.add_argument("--wizard", action="store_true", help="Use interactive configuration wizard")
    parser.add_argument("--list-genres", "--list-themes", dest="list_catalog", action="store_true",
                        help="List available genres and themes and exit")
    parser.add_argument("--log-level", type=str, help="Logging level (default: STORYWEAVER_LOG_LEVEL or WARNING)")
    return parser


def config_from_args(args: argparse.Namespace) -> StoryConfig:
    """Merge CLI values over a loaded config file; CLI values win."""
    base = StoryConfig.load(args.load_config) if args.load_config else StoryConfig()
    overrides = {}
    for name in ("genres", "themes", "prompt", "output", "seed"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.refine:
        overrides["refine"] = True
    if args.no_delay:
        overrides["simulate_latency"] = False
    return replace(base, **overrides)


def _status(console: Console, message: str, quiet: bool = False):
    return contextlib.nullcontext() if quiet else console.status(message)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    console = _console
    # with --json, stdout carries only the JSON payload
    notices = _err_console if args.json else console

    if args.list_catalog:
        render_catalog(console)
        return 0

    try:
        config = config_from_args(args)
    except (OSError, ValueError) as e:
        parser.error(f"could not load configuration: {e}")

    if args.wizard:
        config = run_wizard(config)
        if not confirm_config(config, console):
            console.print("Aborting.")
            return 0

    if args.save_config:
        try:
            config.save(args.save_config)
        except OSError as e:
            logger.error("Saving configuration to %s failed: %s", args.save_config, e)
            _err_console.print(Text(f"Failed to save configuration to {args.save_config}: {e}", style="bold red"))
            return 1
        notices.print(Text(f"Configuration saved to {args.save_config}"))

    problem = config.selection_error()
    if problem:
        _err_console.print(f"[bold red]Selection Required[/]: {problem}")
        return 2

    outline_agent, refinement_agent = build_agents(config)
    try:
        with _status(console, "Outline Agent is weaving your story...", quiet=args.json):
            draft = generate_draft(config, outline_agent)
    except Exception:
        logger.exception("Generation failed")
        _err_console.print("[bold red]Generation Failed[/]: Something went wrong while generating your story.")
        return 1

    refined = None
    if config.refine:
        try:
            with _status(console, "Refinement Agent is adding depth and twists...", quiet=args.json):
                refined = refine_draft(draft, refinement_agent)
        except Exception:
            logger.exception("Refinement failed")
            _err_console.print("[bold red]Refinement Failed[/]: Something went wrong while refining your story.")
            return 1

    drafts = [draft] + ([refined] if refined is not None else [])
    if args.json:
        payload = {"draft": draft.to_dict(), "refined": refined.to_dict() if refined is not None else None}
        print(json.dumps(payload, indent=2))
    else:
        render_draft(draft, console, "Generated Story" if config.output == "story" else "Story Outline")
        if refined is not None:
            render_draft(refined, console, "Refined")

    if args.save:
        ok, msg = export_output(drafts, args.save)
        notices.print(Text(msg))
        if not ok:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
