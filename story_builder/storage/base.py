"""Storage interface shared by every backend.

Entity operations (defaults, ordering, cascades, synopsis versioning) live
here once. Backends only implement five row primitives over named tables:

    _insert(table, row)            store a new row
    _get(table, id)                one row by id, or None
    _select(table, **filters)      rows whose fields equal the filters
    _update(table, id, fields)     merge fields into a row, return it or None
    _delete(table, id)             remove a row, return whether it existed

Rows are plain dicts matching the pydantic models in story_builder.models.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any

from story_builder.models import (
    Chapter,
    Character,
    Draft,
    Episode,
    Plot,
    Project,
    Synopsis,
    SynopsisVersion,
    step_progress,
    utcnow,
)


def new_id() -> str:
    return str(uuid.uuid4())


class Storage(ABC):
    # ------------------------------------------------------------------
    # Row primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def _insert(self, table: str, row: dict[str, Any]) -> None: ...

    @abstractmethod
    def _get(self, table: str, row_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def _select(self, table: str, **filters: Any) -> list[dict[str, Any]]: ...

    @abstractmethod
    def _update(self, table: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any] | None: ...

    @abstractmethod
    def _delete(self, table: str, row_id: str) -> bool: ...

    def close(self) -> None:
        """Release backend resources. No-op unless the backend holds any."""

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[Project]:
        projects = [Project.model_validate(r) for r in self._select("projects")]
        return sorted(projects, key=lambda p: p.updated_at, reverse=True)

    def get_project(self, project_id: str) -> Project | None:
        row = self._get("projects", project_id)
        return Project.model_validate(row) if row else None

    def create_project(self, fields: dict[str, Any]) -> Project:
        project = Project(id=new_id(), **fields)
        project.progress = step_progress(project.current_step)
        self._insert("projects", project.model_dump())
        return project

    def update_project(self, project_id: str, fields: dict[str, Any]) -> Project | None:
        updates = _without_keys(fields, "id", "created_at")
        if "current_step" in updates:
            updates["progress"] = step_progress(updates["current_step"])
        updates["updated_at"] = utcnow()
        row = self._update("projects", project_id, updates)
        return Project.model_validate(row) if row else None

    def touch_project(self, project_id: str) -> None:
        self._update("projects", project_id, {"updated_at": utcnow()})

    def delete_project(self, project_id: str) -> bool:
        if not self._delete("projects", project_id):
            return False
        for table in ("characters", "plots", "synopses", "synopsis_versions"):
            for row in self._select(table, project_id=project_id):
                self._delete(table, row["id"])
        for row in self._select("chapters", project_id=project_id):
            self.delete_chapter(row["id"])
        return True

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    def list_characters(self, project_id: str) -> list[Character]:
        rows = self._select("characters", project_id=project_id)
        return sorted((Character.model_validate(r) for r in rows), key=lambda c: c.order)

    def get_character(self, character_id: str) -> Character | None:
        row = self._get("characters", character_id)
        return Character.model_validate(row) if row else None

    def create_character(self, project_id: str, fields: dict[str, Any]) -> Character:
        character = Character(id=new_id(), project_id=project_id, **fields)
        self._insert("characters", character.model_dump())
        self.touch_project(project_id)
        return character

    def update_character(self, character_id: str, fields: dict[str, Any]) -> Character | None:
        row = self._update("characters", character_id, _without_keys(fields, "id", "project_id"))
        return Character.model_validate(row) if row else None

    def delete_character(self, character_id: str) -> bool:
        return self._delete("characters", character_id)

    # ------------------------------------------------------------------
    # Plot (one per project)
    # ------------------------------------------------------------------

    def get_plot(self, project_id: str) -> Plot | None:
        rows = self._select("plots", project_id=project_id)
        return Plot.model_validate(rows[0]) if rows else None

    def create_plot(self, project_id: str, fields: dict[str, Any]) -> Plot:
        plot = Plot(id=new_id(), project_id=project_id, **fields)
        self._insert("plots", plot.model_dump())
        self.touch_project(project_id)
        return plot

    def update_plot(self, plot_id: str, fields: dict[str, Any]) -> Plot | None:
        row = self._update("plots", plot_id, _without_keys(fields, "id", "project_id"))
        return Plot.model_validate(row) if row else None

    # ------------------------------------------------------------------
    # Synopsis (one per project) + version history
    # ------------------------------------------------------------------

    def get_synopsis(self, project_id: str) -> Synopsis | None:
        rows = self._select("synopses", project_id=project_id)
        return Synopsis.model_validate(rows[0]) if rows else None

    def create_synopsis(self, project_id: str, fields: dict[str, Any]) -> Synopsis:
        synopsis = Synopsis(id=new_id(), project_id=project_id, **fields)
        self._insert("synopses", synopsis.model_dump())
        self._record_synopsis_version(project_id, synopsis.content)
        self.touch_project(project_id)
        return synopsis

    def update_synopsis(self, synopsis_id: str, fields: dict[str, Any]) -> Synopsis | None:
        updates = _without_keys(fields, "id", "project_id")
        row = self._update("synopses", synopsis_id, updates)
        if row is None:
            return None
        synopsis = Synopsis.model_validate(row)
        if "content" in updates:
            self._record_synopsis_version(synopsis.project_id, synopsis.content)
        return synopsis

    def list_synopsis_versions(self, project_id: str) -> list[SynopsisVersion]:
        rows = self._select("synopsis_versions", project_id=project_id)
        versions = [SynopsisVersion.model_validate(r) for r in rows]
        return sorted(versions, key=lambda v: v.version, reverse=True)

    def restore_synopsis_version(self, project_id: str, version_id: str) -> Synopsis | None:
        """Copy a stored version back into the synopsis and mark it active."""
        row = self._get("synopsis_versions", version_id)
        synopsis = self.get_synopsis(project_id)
        if row is None or row["project_id"] != project_id or synopsis is None:
            return None
        self._activate_synopsis_version(project_id, version_id)
        updated = self._update("synopses", synopsis.id, {"content": row["content"]})
        return Synopsis.model_validate(updated)

    def _record_synopsis_version(self, project_id: str, content: str) -> SynopsisVersion:
        existing = self.list_synopsis_versions(project_id)
        version = SynopsisVersion(
            id=new_id(),
            project_id=project_id,
            content=content,
            version=(existing[0].version + 1) if existing else 1,
            is_active=True,
        )
        for v in existing:
            if v.is_active:
                self._update("synopsis_versions", v.id, {"is_active": False})
        self._insert("synopsis_versions", version.model_dump())
        return version

    def _activate_synopsis_version(self, project_id: str, version_id: str) -> None:
        for v in self.list_synopsis_versions(project_id):
            active = v.id == version_id
            if v.is_active != active:
                self._update("synopsis_versions", v.id, {"is_active": active})

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def list_chapters(self, project_id: str) -> list[Chapter]:
        rows = self._select("chapters", project_id=project_id)
        return sorted((Chapter.model_validate(r) for r in rows), key=lambda c: c.order)

    def get_chapter(self, chapter_id: str) -> Chapter | None:
        row = self._get("chapters", chapter_id)
        return Chapter.model_validate(row) if row else None

    def create_chapter(self, project_id: str, fields: dict[str, Any]) -> Chapter:
        chapter = Chapter(id=new_id(), project_id=project_id, **fields)
        self._insert("chapters", chapter.model_dump())
        self.touch_project(project_id)
        return chapter

    def update_chapter(self, chapter_id: str, fields: dict[str, Any]) -> Chapter | None:
        row = self._update("chapters", chapter_id, _without_keys(fields, "id", "project_id"))
        return Chapter.model_validate(row) if row else None

    def delete_chapter(self, chapter_id: str) -> bool:
        if not self._delete("chapters", chapter_id):
            return False
        for row in self._select("episodes", chapter_id=chapter_id):
            self.delete_episode(row["id"])
        return True

    # ------------------------------------------------------------------
    # Episodes
    # ------------------------------------------------------------------

    def list_episodes(self, chapter_id: str) -> list[Episode]:
        rows = self._select("episodes", chapter_id=chapter_id)
        return sorted((Episode.model_validate(r) for r in rows), key=lambda e: e.order)

    def get_episode(self, episode_id: str) -> Episode | None:
        row = self._get("episodes", episode_id)
        return Episode.model_validate(row) if row else None

    def create_episode(self, chapter_id: str, fields: dict[str, Any]) -> Episode:
        episode = Episode(id=new_id(), chapter_id=chapter_id, **fields)
        self._insert("episodes", episode.model_dump())
        return episode

    def update_episode(self, episode_id: str, fields: dict[str, Any]) -> Episode | None:
        row = self._update("episodes", episode_id, _without_keys(fields, "id", "chapter_id"))
        return Episode.model_validate(row) if row else None

    def delete_episode(self, episode_id: str) -> bool:
        if not self._delete("episodes", episode_id):
            return False
        for row in self._select("drafts", episode_id=episode_id):
            self._delete("drafts", row["id"])
        return True

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def list_drafts(self, episode_id: str) -> list[Draft]:
        rows = self._select("drafts", episode_id=episode_id)
        return sorted((Draft.model_validate(r) for r in rows), key=lambda d: d.version)

    def get_draft(self, draft_id: str) -> Draft | None:
        row = self._get("drafts", draft_id)
        return Draft.model_validate(row) if row else None

    def create_draft(self, episode_id: str, fields: dict[str, Any]) -> Draft:
        """Create a draft; without an explicit version it follows the latest one."""
        fields = dict(fields)
        if fields.get("version") is None:
            existing = self.list_drafts(episode_id)
            fields["version"] = existing[-1].version + 1 if existing else 1
        draft = Draft(id=new_id(), episode_id=episode_id, **fields)
        self._insert("drafts", draft.model_dump())
        return draft

    def update_draft(self, draft_id: str, fields: dict[str, Any]) -> Draft | None:
        row = self._update("drafts", draft_id, _without_keys(fields, "id", "episode_id"))
        return Draft.model_validate(row) if row else None

    def delete_draft(self, draft_id: str) -> bool:
        return self._delete("drafts", draft_id)


def _without_keys(fields: dict[str, Any], *keys: str) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in keys}
