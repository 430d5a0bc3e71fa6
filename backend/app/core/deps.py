import base64
import logging
import os
from functools import lru_cache
from supabase import create_client, Client
from openai import OpenAI
from app.core.config import get_settings

_prompt_logger = logging.getLogger("pebbletrack.llm_prompts")

GEMINI_MODEL = "gemini-2.5-flash"


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)


# ── Gemini adapter — mimics the OpenAI client interface ──────────────────────
# LessonExtractor calls client.chat.completions.create(...) with OpenAI-style
# messages; this adapter translates text and image_url parts for Gemini.

class _FakeMessage:
    def __init__(self, content: str):
        self.content = content


class _FakeChoice:
    def __init__(self, content: str):
        self.message = _FakeMessage(content)


class _FakeResponse:
    def __init__(self, text: str):
        self.choices = [_FakeChoice(text)]


def _split_data_url(url: str) -> tuple[str, bytes]:
    """Split a ``data:<mime>;base64,<payload>`` URL into (mime, raw bytes)."""
    header, _, payload = url.partition(",")
    mime_type = header[len("data:"):].split(";")[0] or "image/jpeg"
    return mime_type, base64.b64decode(payload)


class _FakeCompletions:
    def __init__(self, api_key: str):
        self._api_key = api_key

    def create(
        self,
        model=None,
        messages=None,
        temperature=0.3,
        max_tokens=None,
        **kwargs,
    ):
        from google import genai
        from google.genai import types

        system_parts: list[str] = []
        contents: list = []
        for m in messages or []:
            content = m.get("content")
            if m.get("role") == "system":
                system_parts.append(content)
                continue
            if isinstance(content, str):
                contents.append(content)
                continue
            for part in content or []:
                if part.get("type") == "text":
                    contents.append(part["text"])
                elif part.get("type") == "image_url":
                    mime_type, data = _split_data_url(part["image_url"]["url"])
                    contents.append(types.Part.from_bytes(data=data, mime_type=mime_type))

        system_instruction = "\n\n".join(system_parts) or None

        if os.environ.get("DEBUG_LLM_PROMPTS", "").lower() in ("1", "true"):
            _prompt_logger.warning(
                "\n── SYSTEM ──\n%s\n── USER ──\n%s\n── CONFIG ──\n  model=%s  temp=%s  max_tokens=%s",
                system_instruction or "(none)",
                "\n\n".join(c for c in contents if isinstance(c, str)),
                GEMINI_MODEL,
                temperature,
                max_tokens or 2048,
            )

        client = genai.Client(api_key=self._api_key)

        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_tokens or 2048,
            response_mime_type="application/json",
            # Disable thinking — prevents preamble text before JSON output
            thinking_config=types.ThinkingConfig(thinking_budget=0),
        )
        response = client.models.generate_content(
            model=GEMINI_MODEL,
            contents=contents,
            config=config,
        )
        return _FakeResponse(response.text or "")


class _FakeChat:
    def __init__(self, api_key: str):
        self.completions = _FakeCompletions(api_key)


class GeminiClientAdapter:
    def __init__(self, api_key: str):
        self.chat = _FakeChat(api_key)


def get_llm_client(settings=None):
    """Return the active LLM client based on llm_provider setting."""
    if settings is None:
        settings = get_settings()
    if settings.llm_provider == "openai":
        return OpenAI(api_key=settings.openai_api_key)
    return GeminiClientAdapter(api_key=settings.gemini_api_key)
