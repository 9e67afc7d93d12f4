"""Create a demo project for development/testing."""

from story_builder.storage import get_storage
from story_builder.structure import estimate_chapter_length, phase_key_of, plan_structure

DEMO_PROJECT = {
    "title": "星降る街の約束",
    "genre": "ファンタジー",
    "description": "流星の夜にだけ開く扉をめぐって、幼なじみの二人が街の秘密に迫る物語。",
}

DEMO_CHARACTERS = [
    {
        "name": "朝霧ひかり",
        "description": "星図を読むのが得意な高校生",
        "personality": "好奇心旺盛で、一度決めたら曲げない",
        "background": "天文台を営む祖父に育てられた",
        "role": "主人公",
        "affiliation": "天文部",
    },
    {
        "name": "篠宮蒼",
        "description": "ひかりの幼なじみ。無口な時計職人見習い",
        "personality": "慎重で観察眼が鋭い",
        "background": "十年前の流星の夜に兄が行方不明になった",
        "role": "相棒",
        "affiliation": "篠宮時計店",
    },
]

DEMO_PLOT = {
    "theme": "失われたものと向き合う勇気",
    "setting": "流星群が毎年降る港町",
    "structure": "kishotenketsu",
    "hook": "流星の夜にだけ現れる古い扉",
    "opening": "ひかりが祖父の遺した星図に謎の印を見つける",
    "development": "蒼と共に扉の伝承を調べ、街の人々の隠し事に触れていく",
    "climax": "扉の向こうで蒼の兄の真実が明かされる",
    "conclusion": "二人は街に残ることを選び、次の流星を待つ",
}

DEMO_SYNOPSIS = (
    "流星群が降る港町で暮らすひかりは、祖父の星図に描かれた不思議な印を見つける。"
    "幼なじみの蒼と共に、流星の夜にだけ現れる扉の伝承を追ううち、"
    "十年前に消えた蒼の兄の行方と、街が隠してきた約束に辿り着く。"
)

DEMO_TOTAL_CHAPTERS = 8
DEMO_ESTIMATED_LENGTH = 40000


def create_demo_data() -> None:
    """Wipe existing projects and create one demo project planned into chapters."""
    storage = get_storage()
    for project in storage.list_projects():
        storage.delete_project(project.id)

    project = storage.create_project(DEMO_PROJECT)
    characters = [
        storage.create_character(project.id, {**c, "order": order})
        for order, c in enumerate(DEMO_CHARACTERS)
    ]
    storage.create_plot(project.id, DEMO_PLOT)
    storage.create_synopsis(project.id, {"content": DEMO_SYNOPSIS})

    phases = plan_structure(DEMO_TOTAL_CHAPTERS, DEMO_PLOT["structure"])
    words, minutes = estimate_chapter_length(DEMO_ESTIMATED_LENGTH, DEMO_TOTAL_CHAPTERS)
    first_chapter = None
    for number in range(1, DEMO_TOTAL_CHAPTERS + 1):
        chapter = storage.create_chapter(project.id, {
            "title": f"第{number}章",
            "structure": phase_key_of(phases, number),
            "estimated_words": words,
            "estimated_reading_time": minutes,
            "character_ids": [c.id for c in characters],
            "order": number,
        })
        first_chapter = first_chapter or chapter

    episode = storage.create_episode(first_chapter.id, {
        "title": "星図の印",
        "description": "ひかりが祖父の書斎で星図を広げ、見慣れない印に気づく",
        "perspective": "朝霧ひかり",
        "mood": "静かな期待",
        "events": ["書斎の片付け", "星図の発見", "蒼への連絡"],
        "setting": "天文台の書斎、夕方",
        "order": 0,
    })
    storage.create_draft(episode.id, {
        "content": "書斎の窓から、港に沈む夕日が見えた。ひかりは祖父の机の引き出しを開け、"
                   "色褪せた星図を取り出した。",
        "tone": "バランスの取れた",
    })
    storage.update_project(project.id, {"current_step": 6})
