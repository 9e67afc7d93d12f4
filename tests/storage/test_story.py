"""Plot, synopsis (with versions), chapter, episode and draft storage."""

import pytest


@pytest.fixture
def project(store):
    return store.create_project({"title": "星の街", "genre": "ファンタジー"})


# ── Plot ────────────────────────────────────────────────────


def test_plot_roundtrip(store, project):
    assert store.get_plot(project.id) is None
    plot = store.create_plot(project.id, {"theme": "勇気", "structure": "three-act"})
    assert store.get_plot(project.id) == plot

    updated = store.update_plot(plot.id, {"climax": "対決"})
    assert updated.climax == "対決"
    assert updated.structure == "three-act"


def test_update_missing_plot(store):
    assert store.update_plot("nope", {"theme": "x"}) is None


# ── Synopsis & versions ─────────────────────────────────────


def test_create_synopsis_records_first_version(store, project):
    synopsis = store.create_synopsis(project.id, {"content": "初稿"})
    versions = store.list_synopsis_versions(project.id)
    assert len(versions) == 1
    assert versions[0].version == 1
    assert versions[0].is_active is True
    assert versions[0].content == synopsis.content


def test_update_synopsis_content_adds_version(store, project):
    synopsis = store.create_synopsis(project.id, {"content": "初稿"})
    store.update_synopsis(synopsis.id, {"content": "改稿"})
    store.update_synopsis(synopsis.id, {"content": "決定稿"})

    versions = store.list_synopsis_versions(project.id)
    assert [v.version for v in versions] == [3, 2, 1]
    assert [v.content for v in versions] == ["決定稿", "改稿", "初稿"]
    assert [v.is_active for v in versions] == [True, False, False]


def test_update_synopsis_without_content_keeps_versions(store, project):
    synopsis = store.create_synopsis(project.id, {"content": "初稿"})
    updated = store.update_synopsis(synopsis.id, {"tone": "明るい"})
    assert updated.tone == "明るい"
    assert len(store.list_synopsis_versions(project.id)) == 1


def test_restore_synopsis_version(store, project):
    synopsis = store.create_synopsis(project.id, {"content": "初稿"})
    store.update_synopsis(synopsis.id, {"content": "改稿"})
    first = store.list_synopsis_versions(project.id)[-1]

    restored = store.restore_synopsis_version(project.id, first.id)
    assert restored.content == "初稿"
    assert store.get_synopsis(project.id).content == "初稿"
    active = [v for v in store.list_synopsis_versions(project.id) if v.is_active]
    assert [v.id for v in active] == [first.id]


def test_restore_version_of_other_project(store, project):
    other = store.create_project({"title": "別", "genre": "SF"})
    store.create_synopsis(project.id, {"content": "こちら"})
    store.create_synopsis(other.id, {"content": "あちら"})
    foreign = store.list_synopsis_versions(other.id)[0]
    assert store.restore_synopsis_version(project.id, foreign.id) is None
    assert store.restore_synopsis_version(project.id, "nope") is None


# ── Chapters ────────────────────────────────────────────────


def test_chapters_listed_by_order(store, project):
    store.create_chapter(project.id, {"title": "第2章", "structure": "sho", "order": 2})
    store.create_chapter(project.id, {"title": "第1章", "structure": "ki", "order": 1})
    assert [c.title for c in store.list_chapters(project.id)] == ["第1章", "第2章"]


def test_chapter_character_ids_roundtrip(store, project):
    chapter = store.create_chapter(project.id, {
        "title": "第1章", "structure": "ki", "order": 1, "character_ids": ["a", "b"],
    })
    assert store.get_chapter(chapter.id).character_ids == ["a", "b"]
    updated = store.update_chapter(chapter.id, {"character_ids": ["b"], "estimated_words": 2500})
    assert updated.character_ids == ["b"]
    assert updated.estimated_words == 2500


def test_delete_chapter_cascades_to_episodes_and_drafts(store, project):
    chapter = store.create_chapter(project.id, {"title": "第1章", "structure": "ki", "order": 1})
    episode = store.create_episode(chapter.id, {"title": "出会い", "order": 0})
    draft = store.create_draft(episode.id, {"content": "本文"})

    assert store.delete_chapter(chapter.id) is True
    assert store.get_episode(episode.id) is None
    assert store.get_draft(draft.id) is None
    assert store.delete_chapter(chapter.id) is False


# ── Episodes ────────────────────────────────────────────────


def test_episode_events_roundtrip(store, project):
    chapter = store.create_chapter(project.id, {"title": "第1章", "structure": "ki", "order": 1})
    episode = store.create_episode(chapter.id, {"title": "出会い", "events": ["発見", "決意"], "order": 0})
    assert store.get_episode(episode.id).events == ["発見", "決意"]
    assert [e.id for e in store.list_episodes(chapter.id)] == [episode.id]


def test_update_episode_keeps_chapter(store, project):
    chapter = store.create_chapter(project.id, {"title": "第1章", "structure": "ki", "order": 1})
    episode = store.create_episode(chapter.id, {"title": "出会い", "order": 0})
    updated = store.update_episode(episode.id, {"mood": "静か", "chapter_id": "other"})
    assert updated.mood == "静か"
    assert updated.chapter_id == chapter.id


# ── Drafts ──────────────────────────────────────────────────


def test_draft_versions_increment(store, project):
    chapter = store.create_chapter(project.id, {"title": "第1章", "structure": "ki", "order": 1})
    episode = store.create_episode(chapter.id, {"title": "出会い", "order": 0})
    first = store.create_draft(episode.id, {"content": "一"})
    second = store.create_draft(episode.id, {"content": "二", "is_generated": True})
    assert (first.version, second.version) == (1, 2)
    assert [d.content for d in store.list_drafts(episode.id)] == ["一", "二"]
    assert store.get_draft(second.id).is_generated is True


def test_draft_explicit_version(store, project):
    chapter = store.create_chapter(project.id, {"title": "第1章", "structure": "ki", "order": 1})
    episode = store.create_episode(chapter.id, {"title": "出会い", "order": 0})
    draft = store.create_draft(episode.id, {"content": "一", "version": 5})
    assert draft.version == 5
    assert store.create_draft(episode.id, {"content": "二"}).version == 6


def test_update_and_delete_draft(store, project):
    chapter = store.create_chapter(project.id, {"title": "第1章", "structure": "ki", "order": 1})
    episode = store.create_episode(chapter.id, {"title": "出会い", "order": 0})
    draft = store.create_draft(episode.id, {"content": "一"})
    assert store.update_draft(draft.id, {"content": "改"}).content == "改"
    assert store.delete_draft(draft.id) is True
    assert store.list_drafts(episode.id) == []
