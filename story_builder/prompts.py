"""Handlebars prompt templates for each writing step.

Every generation stage renders one template against a context built from
the project state (see story_builder.generation). Templates can be replaced
per stage through settings["prompts"]; an empty override means the default
below is used.

User-supplied text is inserted with triple-stash ({{{...}}}) so quotes and
angle brackets reach the model unescaped.
"""

from collections.abc import Callable
from typing import Any

import pybars


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_join(this, items, separator=", "):
    """{{{join names ", "}}} — join a list of strings."""
    return separator.join(str(item) for item in (items or []))


def _helper_take(this, options, items, count):
    """{{#take array N}}...{{/take}} — iterate over the first N items."""
    result = []
    for item in list(items)[:int(count)]:
        result.extend(options["fn"](item))
    return result


_HELPERS: dict[str, Callable] = {
    "join": _helper_join,
    "take": _helper_take,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return compiled(context, helpers=_HELPERS)
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# ── System prompts ───────────────────────────────────────

SYSTEM_PROMPTS: dict[str, str] = {
    "characters": "あなたは創作支援のプロフェッショナルです。魅力的で一貫性のあるキャラクターを提案してください。",
    "character_completion": "あなたは創作支援AIです。既存の設定と矛盾しないようにキャラクターを補完してください。",
    "plot": "あなたは物語構成の専門家です。魅力的で一貫性のあるプロットを作成してください。",
    "synopsis": "あなたは読者の興味を引く魅力的なあらすじを書く専門家です。",
    "chapters": "あなたは物語構成の専門家です。バランスの取れた章構成を提案してください。",
    "episodes": "あなたは具体的で魅力的なエピソードを設計する専門家です。",
    "draft": "あなたは優秀な小説家です。読者を引き込む魅力的な文章を書いてください。",
}


# ── Default templates ────────────────────────────────────

DEFAULT_CHARACTERS_PROMPT = """\
プロジェクト「{{{project.title}}}」（ジャンル: {{{project.genre}}}）の新しいキャラクターを{{count}}人提案してください。
{{#if project.description}}
作品概要: {{{project.description}}}
{{/if}}
既存のキャラクター: {{#if character_names}}{{{join character_names "、"}}}{{else}}なし{{/if}}

以下のJSON形式で回答してください:
{
  "characters": [
    {
      "name": "キャラクター名",
      "description": "外見・特徴の説明",
      "personality": "性格の詳細",
      "background": "背景・過去の説明",
      "role": "物語での役割",
      "affiliation": "所属・立場"
    }
  ]
}
"""

DEFAULT_CHARACTER_COMPLETION_PROMPT = """\
以下のキャラクターの空欄部分を補完してください。

【作品情報】
- タイトル: {{{project.title}}}
- ジャンル: {{{project.genre}}}

【既存キャラクター情報】
- 名前: {{{character.name}}}
- 説明: {{#if character.description}}{{{character.description}}}{{else}}（空欄）{{/if}}
- 性格: {{#if character.personality}}{{{character.personality}}}{{else}}（空欄）{{/if}}
- 背景: {{#if character.background}}{{{character.background}}}{{else}}（空欄）{{/if}}
- 役割: {{#if character.role}}{{{character.role}}}{{else}}（空欄）{{/if}}
- 所属: {{#if character.affiliation}}{{{character.affiliation}}}{{else}}（空欄）{{/if}}

【要求】
空欄部分のみを補完し、以下のJSON形式で回答してください：
{
  "description": "キャラクターの詳細説明",
  "personality": "性格的特徴",
  "background": "背景・設定",
  "role": "物語での役割",
  "affiliation": "所属・立場"
}

既存の内容がある項目は変更せず、空欄の部分のみ魅力的に補完してください。日本語で回答してください。
"""

DEFAULT_PLOT_PROMPT = """\
プロジェクト「{{{project.title}}}」（ジャンル: {{{project.genre}}}）のプロット構成を提案してください。

登場キャラクター:
{{#if characters}}
{{#each characters}}
- {{{name}}}{{#if role}}（{{{role}}}）{{/if}}{{#if personality}}: {{{personality}}}{{/if}}
{{/each}}
{{else}}
- （未設定）
{{/if}}

{{{structure_label}}}の構造で、以下のJSON形式で回答してください:
{
  "plot": {
    "theme": "メインテーマ",
    "setting": "舞台設定",
    "hook": "読者を引き込む要素",
    "opening": "物語の始まり",
    "development": "展開と発展",
    "climax": "クライマックス",
    "conclusion": "結末"
  }
}
"""

DEFAULT_SYNOPSIS_PROMPT = """\
以下の情報を基に、魅力的なあらすじを作成してください。

プロジェクト: {{{project.title}}}
ジャンル: {{{project.genre}}}
{{#if plot}}
テーマ: {{{plot.theme}}}
舞台: {{{plot.setting}}}
導入: {{{plot.opening}}}
展開: {{{plot.development}}}
クライマックス: {{{plot.climax}}}
結末: {{{plot.conclusion}}}
{{/if}}
主要キャラクター: {{#if character_names}}{{{join character_names "、"}}}{{else}}なし{{/if}}

読者が興味を持つような、簡潔で魅力的なあらすじを日本語で書いてください。あらすじ本文のみを出力してください。
"""

DEFAULT_CHAPTERS_PROMPT = """\
以下の情報に基づいて章構成を{{count}}章分提案してください。

【作品情報】
- タイトル: {{{project.title}}}
- ジャンル: {{{project.genre}}}
- あらすじ: {{#if synopsis}}{{{synopsis}}}{{else}}（未作成）{{/if}}
{{#if plot}}
- テーマ: {{{plot.theme}}}
- クライマックス: {{{plot.climax}}}
{{/if}}

【構成（{{{structure_label}}}）】
{{#each phases}}
- {{{name}}}（{{{description}}}）: {{{span}}}
{{/each}}

【出力形式】
各章について以下の要素を含むJSON形式で回答してください：
{
  "chapters": [
    {
      "title": "章タイトル",
      "summary": "章の概要（200字程度）",
      "characterIds": ["登場キャラクター名"]
    }
  ]
}

物語の流れが自然で、各章が適切な長さと内容を持つように構成してください。
"""

DEFAULT_EPISODES_PROMPT = """\
章「{{{chapter.title}}}」のエピソード構成を提案してください。

章の概要: {{#if chapter.summary}}{{{chapter.summary}}}{{else}}（未設定）{{/if}}
章の位置づけ: {{{phase_name}}}
登場キャラクター: {{#if character_names}}{{{join character_names "、"}}}{{else}}なし{{/if}}
{{#if existing_titles}}
既存のエピソード: {{{join existing_titles "、"}}}
{{/if}}

この章内の具体的なエピソードを3-4個提案してください。以下のJSON形式で回答してください:
{
  "episodes": [
    {
      "title": "エピソードタイトル",
      "description": "エピソードの詳細説明",
      "perspective": "視点キャラクター",
      "mood": "雰囲気・トーン",
      "events": ["起こる出来事"],
      "dialogue": "重要な会話の例",
      "setting": "場面設定"
    }
  ]
}
"""

DEFAULT_DRAFT_PROMPT = """\
以下のエピソードの草案を執筆してください。

章: {{{chapter.title}}}
エピソードタイトル: {{{episode.title}}}
エピソード概要: {{#if episode.description}}{{{episode.description}}}{{else}}（未設定）{{/if}}
{{#if episode.setting}}
場面設定: {{{episode.setting}}}
{{/if}}
{{#if episode.perspective}}
視点: {{{episode.perspective}}}
{{/if}}
{{#if episode.events}}
出来事:
{{#each episode.events}}
- {{{this}}}
{{/each}}
{{/if}}
{{#if characters}}
登場人物:
{{#take characters 8}}
- {{{name}}}{{#if personality}}: {{{personality}}}{{/if}}
{{/take}}
{{/if}}
希望するトーン: {{{tone}}}

読みやすく魅力的な文章で、約1000文字程度の草案を書いてください。会話文や描写を含めて、実際の小説の一部として自然な仕上がりにしてください。本文のみを出力してください。
"""

DEFAULT_PROMPTS: dict[str, str] = {
    "characters": DEFAULT_CHARACTERS_PROMPT,
    "character_completion": DEFAULT_CHARACTER_COMPLETION_PROMPT,
    "plot": DEFAULT_PLOT_PROMPT,
    "synopsis": DEFAULT_SYNOPSIS_PROMPT,
    "chapters": DEFAULT_CHAPTERS_PROMPT,
    "episodes": DEFAULT_EPISODES_PROMPT,
    "draft": DEFAULT_DRAFT_PROMPT,
}


def get_template(stage: str, overrides: dict[str, str] | None = None) -> str:
    """Template for ``stage``: a non-empty override wins over the default."""
    override = (overrides or {}).get(stage)
    return override if override else DEFAULT_PROMPTS[stage]
