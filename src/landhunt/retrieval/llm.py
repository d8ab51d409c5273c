"""Structured completion client for one OpenAI-compatible chat completions endpoint.

Sends a system + user prompt pair and returns the completion text. The
caller treats the text as untrusted: nothing here checks that it matches
the requested shape (see landhunt.pipeline.validate).

No retry, backoff or provider fallback happens at this layer; every
failure is terminal for the request and surfaces as UpstreamModelError.
"""

import logging
import time

import httpx

from landhunt.config import Settings
from landhunt.core.errors import UpstreamModelError
from landhunt.observability.tracing import log_metrics, start_span

logger = logging.getLogger(__name__)

MAX_TOKENS = 2000


def llm_timeout(settings: Settings) -> httpx.Timeout:
    """Granular timeouts: fail fast on connect, generous on read (generation)."""
    return httpx.Timeout(
        connect=settings.llm_connect_timeout_s,
        read=settings.llm_read_timeout_s,
        write=10.0,
        pool=5.0,
    )


class CompletionClient:
    """Async client for a hosted chat completions endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: httpx.Timeout,
        json_mode: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._api_key = api_key
        self.model = model
        self._json_mode = json_mode
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        return cls(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            timeout=llm_timeout(settings),
            json_mode=settings.llm_json_mode,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        model: str | None = None,
        json_mode: bool = False,
    ) -> str:
        """Run one completion and return the message content.

        Args:
            json_mode: ask the endpoint for a JSON object response. This only
                biases the output; it is still validated downstream.

        Raises:
            UpstreamModelError: transport error, non-2xx status, unexpected
                response structure, or empty content.
        """
        payload: dict = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": MAX_TOKENS,
        }
        if json_mode and self._json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        with start_span(name="llm_completion", span_type="CHAT_MODEL") as span:
            span.set_inputs({
                "model": payload["model"],
                "temperature": temperature,
                "system_chars": len(system_prompt),
                "user_chars": len(user_prompt),
            })
            t0 = time.monotonic()

            try:
                resp = await self._client.post(self._url, json=payload, headers=headers)
                resp.raise_for_status()
                data = resp.json()
                content = data["choices"][0]["message"].get("content")
            except httpx.HTTPStatusError as e:
                logger.error(
                    "LLM error %d: %s", e.response.status_code, e.response.text[:200],
                )
                span.set_outputs({"error": f"http_{e.response.status_code}"})
                raise UpstreamModelError(
                    f"Generation service returned HTTP {e.response.status_code}"
                ) from e
            except httpx.HTTPError as e:
                logger.error("LLM transport error: %s", e)
                span.set_outputs({"error": type(e).__name__})
                raise UpstreamModelError(f"Generation service unreachable: {e}") from e
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.error("Unexpected LLM response structure: %s", e)
                span.set_outputs({"error": f"parse_error: {e}"})
                raise UpstreamModelError("Generation service returned an unexpected response") from e

            duration_ms = round((time.monotonic() - t0) * 1000, 1)
            if not content or not isinstance(content, str):
                span.set_outputs({"error": "empty_content"})
                raise UpstreamModelError("No content from generation service")

            usage = data.get("usage") or {}
            prompt_tokens = usage.get("prompt_tokens", 0)
            completion_tokens = usage.get("completion_tokens", 0)
            span.set_outputs({
                "content_chars": len(content),
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "duration_ms": duration_ms,
            })
            if prompt_tokens or completion_tokens:
                log_metrics({
                    "llm_prompt_tokens": float(prompt_tokens),
                    "llm_completion_tokens": float(completion_tokens),
                })

        logger.info(
            "LLM response (model=%s, %d chars)", payload["model"], len(content),
            extra={"duration_ms": duration_ms},
        )
        return content
