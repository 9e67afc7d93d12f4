"""Tests for manuscript export and the demo project."""

from story_builder import storage
from story_builder.demo import DEMO_TOTAL_CHAPTERS, create_demo_data
from story_builder.export import export_manuscript


def test_export_empty_project():
    store = storage.get_storage()
    project = store.create_project({"title": "白紙", "genre": "SF"})
    assert export_manuscript(store, project) == "白紙\nジャンル: SF\n"


def test_export_chapter_without_episodes_uses_summary():
    store = storage.get_storage()
    project = store.create_project({"title": "星の街", "genre": "SF"})
    store.create_chapter(project.id, {"title": "序", "summary": "出会いの章", "structure": "ki", "order": 1})
    store.create_chapter(project.id, {"title": "破", "structure": "act2", "order": 2})
    text = export_manuscript(store, project)
    assert "第1章 序（起）" in text
    assert "出会いの章" in text
    assert "第2章 破（第二幕）" in text
    assert "（エピソードなし）" in text


def test_export_episode_without_draft():
    store = storage.get_storage()
    project = store.create_project({"title": "星の街", "genre": "SF"})
    chapter = store.create_chapter(project.id, {"title": "序", "structure": "ki", "order": 1})
    store.create_episode(chapter.id, {"title": "屋上", "order": 0})
    assert "■ 屋上\n\n（草案なし）" in export_manuscript(store, project)


def test_demo_data():
    create_demo_data()
    store = storage.get_storage()
    projects = store.list_projects()
    assert len(projects) == 1
    project = projects[0]
    assert project.current_step == 6
    assert project.progress == 100

    chapters = store.list_chapters(project.id)
    assert len(chapters) == DEMO_TOTAL_CHAPTERS
    assert [c.structure for c in chapters] == ["ki", "ki", "sho", "sho", "ten", "ten", "ketsu", "ketsu"]
    assert all(c.estimated_words == 5000 for c in chapters)
    assert store.get_synopsis(project.id) is not None

    text = export_manuscript(store, project)
    assert "色褪せた星図" in text


def test_demo_data_replaces_existing_projects():
    store = storage.get_storage()
    store.create_project({"title": "古い", "genre": "SF"})
    create_demo_data()
    assert [p.title for p in store.list_projects()] == ["星降る街の約束"]
