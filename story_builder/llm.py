"""LLM client — HTTP connection to a chat/completion provider.

Generation code receives an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str, *,
                       system: str = "", json_mode: bool = False) -> str: ...

`stage` identifies which writing step is calling (e.g. "characters",
"draft"). Implementations may use it for logging or canned replies.

Two implementations are provided:

    HttpLLM      — real HTTP client for OpenAI-compatible, Gemini and
                   Ollama backends. Selected by provider.
    FallbackLLM  — returns a canned reply per stage without any network
                   call. Used when the selected provider has no API key, so
                   the app stays usable offline.

build_llm() picks one from the app settings.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Protocol

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: the call signature generation code relies on
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(
        self, stage: str, prompt: str, *, system: str = "", json_mode: bool = False
    ) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM: OpenAI, Gemini and Ollama wire formats
# ---------------------------------------------------------------------------

Provider = Literal["openai", "gemini", "ollama"]


def _headers(provider: str, api_key: str) -> dict[str, str]:
    headers: dict[str, str] = {"Content-Type": "application/json"}
    if not api_key:
        return headers
    if provider == "gemini":
        headers["x-goog-api-key"] = api_key
    else:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _json_body(resp: httpx.Response, backend: str) -> dict:
    """Decode a provider reply, which must be a JSON object."""
    try:
        data = resp.json()
    except ValueError as e:
        raise LLMError(f"{backend} returned a non-JSON body") from e
    if not isinstance(data, dict):
        raise LLMError(f"Unexpected response format from {backend}")
    return data


class HttpLLM:
    """Async HTTP client for chat/completion backends.

    Supported providers:
      "openai"  — POST {base}/chat/completions
                  {"model", "messages": [system, user], "response_format"?}
                  Response: {"choices": [{"message": {"content": "..."}}]}
      "gemini"  — POST {base}/models/{model}:generateContent
                  {"contents", "systemInstruction"?, "generationConfig"?}
                  Response: {"candidates": [{"content": {"parts": [{"text"}]}}]}
      "ollama"  — POST {base}/api/generate
                  {"model", "prompt", "system"?, "stream": false, "format"?}
                  Response: {"response": "..."}

    Args:
        provider:  Wire format to use.
        base_url:  Base URL, e.g. "https://api.openai.com/v1".
        api_key:   Credential, or empty string if not required.
        model:     Model identifier.
        timeout:   HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider: Provider,
        base_url: str,
        api_key: str = "",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        self._provider = provider
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return _headers(self._provider, self._api_key)

    def _build_request(self, prompt: str, system: str, json_mode: bool) -> tuple[str, dict]:
        """Return (url, body) for the configured provider."""
        if self._provider == "openai":
            messages = []
            if system:
                messages.append({"role": "system", "content": system})
            messages.append({"role": "user", "content": prompt})
            body: dict[str, Any] = {"model": self._model, "messages": messages}
            if json_mode:
                body["response_format"] = {"type": "json_object"}
            return f"{self._base_url}/chat/completions", body

        if self._provider == "gemini":
            body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
            if system:
                body["systemInstruction"] = {"parts": [{"text": system}]}
            if json_mode:
                body["generationConfig"] = {"responseMimeType": "application/json"}
            return f"{self._base_url}/models/{self._model}:generateContent", body

        # ollama
        body = {"model": self._model, "prompt": prompt, "stream": False}
        if system:
            body["system"] = system
        if json_mode:
            body["format"] = "json"
        return f"{self._base_url}/api/generate", body

    def _parse_response(self, data: dict) -> str:
        """Extract the completion text from the response body."""
        if self._provider == "openai":
            choices = data.get("choices")
            if not choices or "content" not in (choices[0].get("message") or {}):
                raise LLMError("Unexpected response format from OpenAI-compatible backend")
            return choices[0]["message"]["content"] or ""

        if self._provider == "gemini":
            candidates = data.get("candidates")
            parts = (candidates[0].get("content") or {}).get("parts") if candidates else None
            if not parts:
                raise LLMError("Unexpected response format from Gemini backend")
            return "".join(p.get("text", "") for p in parts)

        if "response" not in data:
            raise LLMError("Unexpected response format from Ollama backend")
        return data["response"]

    async def __call__(
        self, stage: str, prompt: str, *, system: str = "", json_mode: bool = False
    ) -> str:
        url, body = self._build_request(prompt, system, json_mode)
        logger.debug(
            "llm call provider=%s stage=%s url=%s prompt_len=%d",
            self._provider, stage, url, len(prompt),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.TransportError as e:
            raise LLMError(f"LLM backend connection failed: {e}") from e

        text = self._parse_response(_json_body(resp, "LLM backend"))
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# FallbackLLM: canned replies, no network
# ---------------------------------------------------------------------------

FALLBACK_RESPONSES: dict[str, Any] = {
    "characters": {
        "characters": [
            {
                "name": "主人公",
                "description": "ごく普通の学生。ある日不思議な力に目覚める",
                "personality": "勇敢で優しく、好奇心旺盛",
                "background": "平凡な日常を送っていたが、運命的な出会いで特別な世界に足を踏み入れる",
                "role": "主人公",
                "affiliation": "",
            }
        ]
    },
    "character_completion": {
        "description": "魅力的で個性豊かなキャラクター",
        "personality": "誠実で行動力があり、困っている人を放っておけない性格",
        "background": "平凡な日常を送っていたが、運命的な出会いをきっかけに特別な世界に足を踏み入れる",
        "role": "物語の中心となる重要な人物",
        "affiliation": "正義の組織または仲間グループ",
    },
    "plot": {
        "plot": {
            "theme": "成長と冒険",
            "setting": "現代の日本を舞台とした異世界もの",
            "hook": "平凡な日常に突如現れる非日常的な出来事",
            "opening": "主人公の日常描写と運命を変える出会い",
            "development": "新たな世界での試練と仲間との出会い",
            "climax": "最大の敵との対決と真実の発覚",
            "conclusion": "成長した主人公と平和になった世界",
        }
    },
    "synopsis": (
        "平凡な学生だった主人公が、ある日不思議な力を持つ者たちの世界に巻き込まれる。"
        "初めは戸惑いながらも、持ち前の正義感と勇気で仲間たちと共に困難に立ち向かう。"
        "様々な試練を乗り越えながら成長していく主人公は、やがて世界を脅かす大きな謎と対峙する。"
    ),
    "chapters": {
        "chapters": [
            {"title": f"第{i}章", "summary": f"第{i}章の内容概要"} for i in range(1, 11)
        ]
    },
    "episodes": {
        "episodes": [
            {
                "title": "新たな出会い",
                "description": "主人公が重要な人物と出会い、物語が動き出す",
                "perspective": "主人公",
                "mood": "神秘的",
                "events": ["偶然の出会い", "重要な情報の開示", "新たな決意"],
                "dialogue": "「君にしかできないことがある」",
                "setting": "学校の屋上、夕暮れ時",
            }
        ]
    },
    "draft": (
        "夕日が校舎に長い影を落とす頃、私は屋上にいた。\n\n"
        "いつもの静かな放課後のはずだった。それなのに、今日は何かが違っていた。\n\n"
        "「やっと見つけた」\n\n"
        "背後からの声に振り返ると、見慣れない制服を着た少女が立っていた。"
    ),
}


class FallbackLLM:
    """Returns a canned reply for the calling stage. No network calls."""

    async def __call__(
        self, stage: str, prompt: str, *, system: str = "", json_mode: bool = False
    ) -> str:
        logger.debug("FallbackLLM stage=%s prompt_len=%d", stage, len(prompt))
        reply = FALLBACK_RESPONSES.get(stage, "")
        if isinstance(reply, str):
            return reply
        return json.dumps(reply, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Factory and connection helpers
# ---------------------------------------------------------------------------

def build_llm(settings: dict[str, Any]) -> LLM:
    """Build the LLM for the selected provider in ``settings``."""
    provider = settings.get("provider", "fallback")
    if provider == "fallback":
        return FallbackLLM()
    conn = settings["connections"][provider]
    if provider in ("openai", "gemini") and not conn.get("api_key"):
        logger.warning("no API key for provider=%s; using canned responses", provider)
        return FallbackLLM()
    return HttpLLM(
        provider=provider,
        base_url=conn["base_url"],
        api_key=conn.get("api_key", ""),
        model=conn.get("model", ""),
    )


def _models_url(provider: str, base_url: str) -> str:
    base = base_url.rstrip("/")
    if provider == "ollama":
        return f"{base}/api/tags"
    return f"{base}/models"


async def check_connection(provider: str, base_url: str, api_key: str = "") -> bool:
    """Quick reachability check against a provider's model listing."""
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            resp = await client.get(_models_url(provider, base_url), headers=_headers(provider, api_key))
            resp.raise_for_status()
    except httpx.HTTPError:
        return False
    return True


async def list_ollama_models(base_url: str) -> list[str]:
    """Names of the models installed in an Ollama server."""
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(_models_url("ollama", base_url))
            resp.raise_for_status()
    except httpx.ConnectError as e:
        raise LLMError(f"Cannot connect to Ollama at {base_url}") from e
    except httpx.HTTPStatusError as e:
        raise LLMError(f"Ollama returned HTTP {e.response.status_code}") from e
    except httpx.TimeoutException as e:
        raise LLMError("Ollama timed out") from e
    except httpx.TransportError as e:
        raise LLMError(f"Ollama connection failed: {e}") from e
    models = _json_body(resp, "Ollama").get("models") or []
    return [m["name"] for m in models if isinstance(m, dict) and "name" in m]


# ---------------------------------------------------------------------------
# LLMError: provider I/O and response-format failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
