from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Outline:
    title: str
    premise: str
    main_character: str
    conflict: str
    plot_points: Tuple[str, ...] = field(default_factory=tuple)
    themes: Tuple[str, ...] = field(default_factory=tuple)
    tone: str = ""

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "premise": self.premise,
            "main_character": self.main_character,
            "conflict": self.conflict,
            "plot_points": list(self.plot_points),
            "themes": list(self.themes),
            "tone": self.tone,
        }

    def to_markdown(self) -> str:
        lines = [
            f"# {self.title}",
            "",
            f"*{self.tone}*",
            "",
            "## Premise",
            self.premise,
            "",
            "## Main Character",
            self.main_character,
            "",
            "## Conflict",
            self.conflict,
            "",
            "## Plot Points",
        ]
        lines.extend(f"{i}. {point}" for i, point in enumerate(self.plot_points, 1))
        if self.themes:
            lines.extend(["", "## Themes", ", ".join(self.themes)])
        return "\n".join(lines) + "\n"

    def to_text(self) -> str:
        sections = [
            f"{self.title}\nTone: {self.tone}",
            f"Premise:\n{self.premise}",
            f"Main Character:\n{self.main_character}",
            f"Conflict:\n{self.conflict}",
            "Plot Points:\n" + "\n".join(f"{i}. {p}" for i, p in enumerate(self.plot_points, 1)),
        ]
        if self.themes:
            sections.append("Themes: " + ", ".join(self.themes))
        return "\n\n".join(sections) + "\n"


@dataclass(frozen=True)
class Chapter:
    title: str
    content: str

    def paragraphs(self) -> List[str]:
        return [p for p in self.content.split("\n\n") if p.strip()]


@dataclass(frozen=True)
class Story:
    title: str
    chapters: Tuple[Chapter, ...] = field(default_factory=tuple)
    themes: Tuple[str, ...] = field(default_factory=tuple)
    tone: str = ""
    summary: str = ""

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "chapters": [{"title": c.title, "content": c.content} for c in self.chapters],
            "themes": list(self.themes),
            "tone": self.tone,
            "summary": self.summary,
        }

    def to_markdown(self) -> str:
        lines = [f"# {self.title}", "", f"*{self.tone}*", "", self.summary]
        if self.themes:
            lines.extend(["", "**Themes:** " + ", ".join(self.themes)])
        for chapter in self.chapters:
            lines.extend(["", f"## {chapter.title}", "", chapter.content])
        return "\n".join(lines) + "\n"

    def to_text(self) -> str:
        sections = [f"{self.title}\nTone: {self.tone}", self.summary]
        if self.themes:
            sections.append("Themes: " + ", ".join(self.themes))
        sections.extend(f"{c.title}\n\n{c.content}" for c in self.chapters)
        return "\n\n".join(sections) + "\n"
