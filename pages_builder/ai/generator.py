import re
from typing import Any, Dict, List, Optional

import httpx

from pages_builder.ai.fallback import FALLBACK_APP_HTML
from pages_builder.core.config import Settings
from pages_builder.core.errors import GenerationError
from pages_builder.core.logger import logger


SYSTEM_PROMPT = """You are an expert web developer specializing in creating single-file, self-contained HTML applications.
You must use Tailwind CSS for styling, loaded from the official CDN. All HTML, CSS, and JavaScript must be included in a single index.html file.
The application should be visually appealing, responsive, and fully functional based on the user's brief. Do not include any placeholder comments like "<!-- Your code here -->".
Your response should be ONLY the HTML code, starting with <!DOCTYPE html> and nothing else."""

_FENCE_RE = re.compile(r"```(?:html)?", re.IGNORECASE)


def build_prompt(brief: str) -> str:
    return f'{SYSTEM_PROMPT}\n\nCreate an application based on this brief: "{brief}"'


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _join_parts(parts: Any) -> Optional[str]:
    if not isinstance(parts, list) or not parts:
        return None
    pieces = [p.get("text", "") if isinstance(p, dict) else str(p) for p in parts]
    return _non_empty("\n".join(pieces).strip())


class ResponseShape:
    """
    One known layout of an LLM response body.

    Each shape knows how to pull the generated text out of its own layout and
    returns None when the body is not in that layout.
    """
    name = "base"

    def extract(self, body: Dict[str, Any]) -> Optional[str]:
        raise NotImplementedError


class OutputTextShape(ResponseShape):
    """Responses API convenience field: {"output_text": "..."}"""
    name = "output_text"

    def extract(self, body):
        return _non_empty(body.get("output_text"))


class OutputBlocksShape(ResponseShape):
    """Responses API: {"output": [{"content": [{"type": "output_text", "text": "..."}]}]}"""
    name = "output"

    def extract(self, body):
        outputs = body.get("output")
        if not isinstance(outputs, list):
            return None
        for out in outputs:
            if not isinstance(out, dict) or not isinstance(out.get("content"), list):
                continue
            for block in out["content"]:
                if not isinstance(block, dict):
                    continue
                text = _non_empty(block.get("text")) or _join_parts(block.get("parts"))
                if text:
                    return text
        return None


class CandidatesShape(ResponseShape):
    """Gemini-style: {"candidates": [{"content": [{"parts": [...]}]}]}"""
    name = "candidates"

    def extract(self, body):
        candidates = body.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return None
        cand = candidates[0]
        text = _non_empty(cand.get("output_text"))
        if text:
            return text
        content = cand.get("content")
        if isinstance(content, list) and content and isinstance(content[0], dict):
            return _non_empty(content[0].get("text")) or _join_parts(content[0].get("parts"))
        return None


class ChoicesShape(ResponseShape):
    """Chat completions: {"choices": [{"message": {"content": "..."}}]}"""
    name = "choices"

    def extract(self, body):
        choices = body.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        choice = choices[0]
        message = choice.get("message") if isinstance(choice.get("message"), dict) else {}
        return _non_empty(message.get("content")) or _non_empty(choice.get("text"))


# Checked in this order, first non-empty match wins
RESPONSE_SHAPES: List[ResponseShape] = [
    OutputTextShape(),
    OutputBlocksShape(),
    CandidatesShape(),
    ChoicesShape(),
]


def extract_text(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for shape in RESPONSE_SHAPES:
        text = shape.extract(body)
        if text:
            logger.debug(f"LLM response matched shape '{shape.name}'")
            return text
    return None


class ContentGenerator:
    """
    Produces the index.html of a task from its brief.

    generate() never raises: whatever goes wrong with the LLM call, the caller
    gets FALLBACK_APP_HTML so there is always something to publish.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    async def generate(self, brief: str) -> str:
        try:
            html = await self._request(brief)
        except Exception as e:
            logger.error(f"=====LLM generation failed, using fallback app=====\n{e}\n===============")
            return FALLBACK_APP_HTML
        logger.info(f"LLM content generated successfully | chars={len(html)}")
        return html

    async def _request(self, brief: str) -> str:
        api_key = self.settings.llm_api_key
        if not api_key:
            raise GenerationError("Missing LLM API key. Set OPENAI_API_KEY or AI_PIPE_TOKEN.")

        url = f"{self.settings.llm_base_url}/responses"
        body = {
            "model": self.settings.AI_MODEL,
            "input": build_prompt(brief),
            "max_output_tokens": self.settings.MAX_OUTPUT_TOKENS,
        }
        logger.info(f"Using LLM endpoint: {url} | model={self.settings.AI_MODEL}")

        async with httpx.AsyncClient(timeout=self.settings.LLM_TIMEOUT, transport=self.transport) as client:
            response = await client.post(
                url,
                json=body,
                headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            )

        if response.is_error:
            raise GenerationError(f"LLM endpoint returned {response.status_code}: {response.text[:200]}")

        try:
            result = response.json()
        except ValueError as e:
            raise GenerationError(f"LLM response is not JSON: {e}") from e

        text = extract_text(result)
        if not text:
            raise GenerationError("No content generated by the LLM. Response shape unexpected.")

        html = strip_code_fences(text)
        if not html:
            raise GenerationError("LLM returned only code fences")
        return html
