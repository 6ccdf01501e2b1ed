import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from .errors import GenerationError
from .models import Attachment
from .settings import Settings

logger = logging.getLogger("appbuilder.llm")

ATTACHMENT_URL_LIMIT = 100

# ---------- prompt ----------
def _attachment_lines(attachments: Sequence[Attachment]) -> str:
    return "\n".join(
        f"Attachment: {a.name} - {a.url[:ATTACHMENT_URL_LIMIT]}..." for a in attachments
    )

def build_prompt(brief: str, checks: List[str], attachments: Sequence[Attachment]) -> str:
    checks_text = "\n".join(f"- {c}" for c in checks)
    attachment_block = (
        f"\nAttachments provided:\n{_attachment_lines(attachments)}\n" if attachments else ""
    )
    return (
        "Create a complete, self-contained HTML file that does this:\n\n"
        f"{brief}\n\n"
        f"Requirements:\n{checks_text}\n"
        f"{attachment_block}\n"
        "Return ONLY valid HTML code with inline CSS and JavaScript. "
        "Make it functional and complete."
    )

# ---------- generator ----------
class CodeGenerator:
    """
    Single-shot wrapper around an OpenAI-compatible chat completion backend.

    The returned document is the first choice's content, untouched: no fence
    stripping, no HTML validation. Whatever the backend produced is what gets
    published.
    """

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.settings = settings
        self._client_override = client

    def _client(self):
        if self._client_override is not None:
            return self._client_override
        if not self.settings.OPENAI_API_KEY:
            raise GenerationError("OPENAI_API_KEY not set")
        return AsyncOpenAI(
            api_key=self.settings.OPENAI_API_KEY,
            base_url=self.settings.OPENAI_BASE_URL,
            timeout=self.settings.GENERATION_TIMEOUT_SECONDS,
            max_retries=0,
        )

    async def generate(self, brief: str, checks: List[str], attachments: Sequence[Attachment] = ()) -> str:
        prompt = build_prompt(brief, checks, attachments)
        client = self._client()
        try:
            completion = await client.chat.completions.create(
                model=self.settings.GENERATION_MODEL,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.settings.GENERATION_MAX_TOKENS,
            )
        except OpenAIError as e:
            body = getattr(e, "body", None)
            logger.error("generation backend call failed: %s (body=%s)", e, body)
            raise GenerationError(f"generation backend call failed: {e}") from e
        finally:
            # clients built here own a connection pool; injected ones belong to the caller
            if client is not self._client_override:
                await client.close()

        data: Dict[str, Any] = completion.model_dump()
        raw = json.dumps(data, default=str)
        logger.debug("generation backend response: %s", raw)

        if data.get("error"):
            logger.error("generation backend returned an error: %s", raw)
            err = data["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            raise GenerationError(f"generation backend error: {message}")

        choices = data.get("choices") or []
        content = None
        if choices:
            content = ((choices[0] or {}).get("message") or {}).get("content")
        if content is None:
            logger.error("unexpected generation response shape: %s", raw)
            raise GenerationError("unexpected generation response shape: no choices[0].message.content")

        logger.info("generated %d characters with %s", len(content), self.settings.GENERATION_MODEL)
        return content
