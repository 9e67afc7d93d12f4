"""API tests: chapters, episodes and drafts."""

import pytest


@pytest.fixture
def pid(client):
    resp = client.post("/api/projects", json={"title": "星の街", "genre": "ファンタジー"})
    return resp.json()["id"]


def _plan(client, pid, total=10, structure="kishotenketsu", length=50000):
    return client.post(f"/api/projects/{pid}/chapters/plan", json={
        "total_chapters": total, "structure": structure, "estimated_length": length,
    })


# ── Chapter plan ────────────────────────────────────────────


def test_plan_creates_tagged_chapters(client, pid):
    resp = _plan(client, pid, total=10, length=50000)
    assert resp.status_code == 201
    chapters = resp.json()
    assert [c["title"] for c in chapters][:2] == ["第1章", "第2章"]
    assert [c["structure"] for c in chapters] == ["ki"] * 3 + ["sho"] * 3 + ["ten"] * 3 + ["ketsu"]
    assert all(c["estimated_words"] == 5000 for c in chapters)
    assert all(c["estimated_reading_time"] == 20 for c in chapters)


def test_plan_three_chapters_leaves_final_phase_empty(client, pid):
    chapters = _plan(client, pid, total=3).json()
    assert [c["structure"] for c in chapters] == ["ki", "sho", "ten"]


def test_plan_three_act(client, pid):
    chapters = _plan(client, pid, total=10, structure="three-act").json()
    assert [c["structure"] for c in chapters] == ["act1"] * 3 + ["act2"] * 5 + ["act3"] * 2


def test_plan_rejects_existing_chapters(client, pid):
    _plan(client, pid, total=4)
    assert _plan(client, pid, total=4).status_code == 409


@pytest.mark.parametrize("body", [
    {"total_chapters": 0, "estimated_length": 1000},
    {"total_chapters": 5, "estimated_length": 0},
    {"total_chapters": 5, "estimated_length": 1000, "structure": "hero-journey"},
])
def test_plan_validation(client, pid, body):
    assert client.post(f"/api/projects/{pid}/chapters/plan", json=body).status_code == 422


def test_plan_updates_plot_structure(client, pid):
    client.post(f"/api/projects/{pid}/plot", json={"structure": "kishotenketsu"})
    _plan(client, pid, total=6, structure="three-act")
    assert client.get(f"/api/projects/{pid}/plot").json()["structure"] == "three-act"


# ── Chapter CRUD ────────────────────────────────────────────


def test_create_chapter_gets_phase_of_position(client, pid):
    tags = []
    for i in range(4):
        chapter = client.post(f"/api/projects/{pid}/chapters", json={"title": f"章{i}"}).json()
        tags.append((chapter["order"], chapter["structure"]))
    # each new chapter is tagged by its position in a plan of the new size
    assert tags == [(1, "ki"), (2, "sho"), (3, "ten"), (4, "ketsu")]


def test_create_chapter_explicit_fields(client, pid):
    chapter = client.post(f"/api/projects/{pid}/chapters", json={
        "title": "終章", "structure": "ketsu", "estimated_words": 1200, "order": 9,
    }).json()
    assert chapter["structure"] == "ketsu"
    assert chapter["estimated_words"] == 1200
    assert chapter["order"] == 9


def test_chapter_get_update_delete(client, pid):
    chapter = client.post(f"/api/projects/{pid}/chapters", json={"title": "章"}).json()
    cid = chapter["id"]
    assert client.get(f"/api/chapters/{cid}").json()["title"] == "章"
    updated = client.patch(f"/api/chapters/{cid}", json={"summary": "概要", "character_ids": ["c1"]}).json()
    assert updated["summary"] == "概要"
    assert updated["character_ids"] == ["c1"]
    assert client.delete(f"/api/chapters/{cid}").json() == {"ok": True}
    assert client.get(f"/api/chapters/{cid}").status_code == 404


def test_chapter_update_ignores_null_fields(client, pid):
    cid = client.post(f"/api/projects/{pid}/chapters", json={"title": "章"}).json()["id"]
    resp = client.patch(f"/api/chapters/{cid}", json={"title": None, "summary": "概要"})
    assert resp.status_code == 200
    assert resp.json()["title"] == "章"
    assert resp.json()["summary"] == "概要"
    listed = client.get(f"/api/projects/{pid}/chapters")
    assert listed.status_code == 200
    assert [c["title"] for c in listed.json()] == ["章"]
    assert client.get(f"/api/projects/{pid}/export").status_code == 200


def test_chapters_missing_project(client):
    assert client.get("/api/projects/nope/chapters").status_code == 404
    assert client.get("/api/projects/nope/chapters/stats").status_code == 404


# ── Phases & stats ──────────────────────────────────────────


def test_chapter_phases(client, pid):
    _plan(client, pid, total=10)
    data = client.get(f"/api/projects/{pid}/chapters/phases").json()
    assert data["structure"] == "kishotenketsu"
    assert [p["name"] for p in data["phases"]] == ["起", "承", "転", "結"]
    assert [c["phase"] for c in data["chapters"]] == ["起"] * 3 + ["承"] * 3 + ["転"] * 3 + ["結"]


def test_chapter_phases_structure_override(client, pid):
    _plan(client, pid, total=4)
    data = client.get(f"/api/projects/{pid}/chapters/phases", params={"structure": "three-act"}).json()
    assert [c["phase"] for c in data["chapters"]] == ["第一幕", "第二幕", "第二幕", "第三幕"]


def test_chapter_stats(client, pid):
    chapters = _plan(client, pid, total=4, length=10000).json()
    client.patch(f"/api/chapters/{chapters[0]['id']}", json={"character_ids": ["a", "b"]})
    client.patch(f"/api/chapters/{chapters[1]['id']}", json={"character_ids": ["b", "c"]})
    stats = client.get(f"/api/projects/{pid}/chapters/stats").json()
    assert stats == {
        "total_chapters": 4,
        "total_words": 10000,
        "total_reading_time": 40,
        "unique_characters": 3,
    }


# ── Chapter generation ──────────────────────────────────────


def test_generate_chapters_with_fallback(client, pid):
    resp = client.post(f"/api/projects/{pid}/chapters/generate")
    assert resp.status_code == 201
    chapters = resp.json()
    assert len(chapters) == 10
    assert [c["order"] for c in chapters] == list(range(1, 11))
    assert chapters[0]["structure"] == "ki"
    assert chapters[-1]["structure"] == "ketsu"
    assert chapters[0]["estimated_words"] == 3000


def test_generate_chapters_uses_estimated_length(client, pid):
    chapters = client.post(f"/api/projects/{pid}/chapters/generate", json={
        "estimated_length": 20000,
    }).json()
    assert chapters[0]["estimated_words"] == 2000
    assert chapters[0]["estimated_reading_time"] == 8


def test_generate_chapters_rejects_existing(client, pid):
    _plan(client, pid, total=2)
    assert client.post(f"/api/projects/{pid}/chapters/generate").status_code == 409


# ── Episodes ────────────────────────────────────────────────


@pytest.fixture
def cid(client, pid):
    return client.post(f"/api/projects/{pid}/chapters", json={"title": "第1章"}).json()["id"]


def test_episode_crud(client, cid):
    first = client.post(f"/api/chapters/{cid}/episodes", json={"title": "朝", "events": ["目覚め"]}).json()
    second = client.post(f"/api/chapters/{cid}/episodes", json={"title": "夜"}).json()
    assert (first["order"], second["order"]) == (0, 1)
    assert client.get(f"/api/episodes/{first['id']}").json()["events"] == ["目覚め"]

    updated = client.patch(f"/api/episodes/{second['id']}", json={"mood": "静か"}).json()
    assert updated["mood"] == "静か"

    assert client.delete(f"/api/episodes/{first['id']}").json() == {"ok": True}
    titles = [e["title"] for e in client.get(f"/api/chapters/{cid}/episodes").json()]
    assert titles == ["夜"]


def test_episodes_missing_chapter(client):
    assert client.get("/api/chapters/nope/episodes").status_code == 404
    assert client.post("/api/chapters/nope/episodes/generate").status_code == 404
    assert client.get("/api/episodes/nope").status_code == 404


def test_generate_episodes_appends(client, cid):
    client.post(f"/api/chapters/{cid}/episodes", json={"title": "朝"})
    resp = client.post(f"/api/chapters/{cid}/episodes/generate")
    assert resp.status_code == 201
    generated = resp.json()
    assert generated[0]["title"] == "新たな出会い"
    assert generated[0]["order"] == 1
    assert len(client.get(f"/api/chapters/{cid}/episodes").json()) == 2


def test_delete_chapter_removes_episodes(client, cid):
    episode = client.post(f"/api/chapters/{cid}/episodes", json={"title": "朝"}).json()
    client.delete(f"/api/chapters/{cid}")
    assert client.get(f"/api/episodes/{episode['id']}").status_code == 404


# ── Drafts ──────────────────────────────────────────────────


@pytest.fixture
def eid(client, cid):
    return client.post(f"/api/chapters/{cid}/episodes", json={"title": "屋上"}).json()["id"]


def test_draft_versions(client, eid):
    first = client.post(f"/api/episodes/{eid}/drafts", json={"content": "一稿"}).json()
    second = client.post(f"/api/episodes/{eid}/drafts", json={"content": "二稿"}).json()
    assert (first["version"], second["version"]) == (1, 2)
    assert first["reading_time"] == 1

    edited = client.patch(f"/api/drafts/{first['id']}", json={"content": "一稿改"}).json()
    assert edited["content"] == "一稿改"
    assert edited["version"] == 1

    assert client.delete(f"/api/drafts/{second['id']}").json() == {"ok": True}
    assert [d["content"] for d in client.get(f"/api/episodes/{eid}/drafts").json()] == ["一稿改"]


def test_drafts_missing_records(client):
    assert client.get("/api/episodes/nope/drafts").status_code == 404
    assert client.patch("/api/drafts/nope", json={"content": "x"}).status_code == 404
    assert client.delete("/api/drafts/nope").status_code == 404


def test_generate_draft_default_tone(client, eid):
    resp = client.post(f"/api/episodes/{eid}/drafts/generate")
    assert resp.status_code == 201
    draft = resp.json()
    assert draft["is_generated"] is True
    assert draft["tone"] == "バランスの取れた"
    assert draft["content"].startswith("夕日が校舎に")


def test_generate_draft_with_tone(client, eid):
    client.post(f"/api/episodes/{eid}/drafts", json={"content": "手書き"})
    draft = client.post(f"/api/episodes/{eid}/drafts/generate", json={"tone": "シリアス"}).json()
    assert draft["tone"] == "シリアス"
    assert draft["version"] == 2
