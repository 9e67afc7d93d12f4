"""Global app settings (LLM provider, connections, prompt overrides).

Stored as JSON in {data_dir}/config.json. Defaults come from environment
variables (loaded from .env by the app factory), so a fresh install works
with nothing but an API key exported.

get_settings() returns defaults merged with stored values.
update_settings() applies partial updates — connections merged per provider
and field, prompts merged per stage, scalars overwritten.
"""

import json
import os
from pathlib import Path
from typing import Any

from story_builder.storage import data_dir

PROVIDERS = ("openai", "gemini", "ollama", "fallback")
PROMPT_STAGES = ("characters", "character_completion", "plot", "synopsis", "chapters", "episodes", "draft")


def _defaults() -> dict[str, Any]:
    return {
        "provider": os.getenv("LLM_PROVIDER", "gemini"),
        "connections": {
            "openai": {
                "base_url": os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
                "api_key": os.getenv("OPENAI_API_KEY", ""),
                "model": os.getenv("OPENAI_MODEL", "gpt-4o"),
            },
            "gemini": {
                "base_url": os.getenv(
                    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
                ),
                "api_key": os.getenv("GEMINI_API_KEY", ""),
                "model": os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            },
            "ollama": {
                "base_url": os.getenv("OLLAMA_HOST", "http://localhost:11434"),
                "api_key": "",
                "model": os.getenv("OLLAMA_MODEL", "llama3.2:3b"),
            },
        },
        "prompts": {stage: "" for stage in PROMPT_STAGES},
        "target_chapters": 10,
        "default_tone": "バランスの取れた",
    }


def _settings_path() -> Path:
    return data_dir() / "config.json"


def _merge(config: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
    if "provider" in fields and fields["provider"] in PROVIDERS:
        config["provider"] = fields["provider"]
    for name, values in (fields.get("connections") or {}).items():
        if name in config["connections"] and isinstance(values, dict):
            for key in ("base_url", "api_key", "model"):
                if key in values:
                    config["connections"][name][key] = values[key]
    for stage, template in (fields.get("prompts") or {}).items():
        if stage in config["prompts"]:
            config["prompts"][stage] = template
    for key in ("target_chapters", "default_tone"):
        if key in fields:
            config[key] = fields[key]
    return config


def get_settings() -> dict[str, Any]:
    """Read settings, returning defaults merged with stored values."""
    config = _defaults()
    path = _settings_path()
    if path.is_file():
        config = _merge(config, json.loads(path.read_text(encoding="utf-8")))
    return config


def update_settings(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into settings and persist. Returns full settings."""
    config = _merge(get_settings(), fields)
    _settings_path().write_text(json.dumps(config, indent=2, ensure_ascii=False), encoding="utf-8")
    return config


def public_settings(config: dict[str, Any]) -> dict[str, Any]:
    """Settings safe to return over HTTP: API keys reduced to a set/unset flag."""
    result = json.loads(json.dumps(config))
    for conn in result["connections"].values():
        conn["has_api_key"] = bool(conn.pop("api_key", ""))
    return result
