"""Plain-text manuscript export.

Chapters are written in order, each headed with its phase name; every
episode contributes its latest draft. Episodes without a draft keep a
placeholder line so gaps stay visible in the manuscript.
"""

from __future__ import annotations

from story_builder.models import Project
from story_builder.storage import Storage
from story_builder.structure import phase_name_for_key


def _clean(value: str | None) -> str:
    if not value:
        return ""
    return str(value).strip()


def export_manuscript(storage: Storage, project: Project) -> str:
    """Render ``project`` as a UTF-8 text manuscript."""
    lines: list[str] = [_clean(project.title) or "無題", f"ジャンル: {_clean(project.genre)}"]

    synopsis = storage.get_synopsis(project.id)
    if synopsis and _clean(synopsis.content):
        lines.extend(["", "【あらすじ】", _clean(synopsis.content)])

    for number, chapter in enumerate(storage.list_chapters(project.id), start=1):
        lines.extend(["", "", f"第{number}章 {_clean(chapter.title)}（{phase_name_for_key(chapter.structure)}）"])
        episodes = storage.list_episodes(chapter.id)
        if not episodes:
            lines.extend(["", _clean(chapter.summary) or "（エピソードなし）"])
        for episode in episodes:
            lines.extend(["", f"■ {_clean(episode.title)}"])
            drafts = storage.list_drafts(episode.id)
            content = _clean(drafts[-1].content) if drafts else ""
            lines.extend(["", content or "（草案なし）"])

    return "\n".join(lines).rstrip() + "\n"
