from __future__ import annotations
from typing import Dict, Any, Optional, List
import time
from os import getenv

from openai import OpenAI
from openai import APIError, APITimeoutError, APIConnectionError, RateLimitError
from tenacity import Retrying, stop_after_attempt, wait_exponential_jitter, retry_if_exception

from .base import ModelProvider, ChatRequest, EncodedImage, ModelResponse, ModelError, ModelRetryable, ModelTimeout

RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}

def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (APITimeoutError, APIConnectionError, RateLimitError, ModelRetryable)):
        return True
    if isinstance(exc, APIError):
        return getattr(exc, 'status_code', None) in RETRYABLE_STATUS
    return False

class OpenAIProvider(ModelProvider):
    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, default_headers: Optional[Dict[str, str]] = None, timeout: float = 60.0, max_attempts: int = 1, **kwargs):
        self.client = OpenAI(
            base_url=base_url,
            api_key=api_key or getenv("OPENAI_API_KEY"),
            default_headers=default_headers or {},
            timeout=timeout,
            max_retries=0, #retry policy lives in chat(), off unless max_attempts > 1
            **kwargs
        )
        self.base_url = base_url
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))

    def _format_messages(self, messages: List[Dict[str, Any]], images: List[EncodedImage]) -> List[Dict[str, Any]]:
        """Attach images to the first user message as OpenAI content parts."""
        if not images:
            return messages

        image_contents = [
            {"type": "image_url", "image_url": {"url": img.data_url}}
            for img in images
        ]

        processed_messages = []
        images_added = False
        for msg in messages:
            if msg.get("role") == "user" and not images_added:
                processed_msg = msg.copy()
                content_array = [{"type": "text", "text": msg.get("content", "")}]
                content_array.extend(image_contents)
                processed_msg["content"] = content_array
                processed_messages.append(processed_msg)
                images_added = True
            else:
                processed_messages.append(msg)

        return processed_messages

    def chat(self, req: ChatRequest) -> ModelResponse:
        retrying = Retrying(
            reraise=True,
            wait=wait_exponential_jitter(initial=0.5, max=4),
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception(_is_retryable),
        )
        return retrying(self._chat_once, req)

    def _chat_once(self, req: ChatRequest) -> ModelResponse:
        params = dict(req.params or {})
        messages = self._format_messages(req.messages, req.images or [])

        completion_params = {
            "model": req.model,
            "messages": messages,
            **params
        }

        t0 = time.perf_counter()
        try:
            response = self.client.chat.completions.create(**completion_params)
        except APITimeoutError as e:
            raise ModelTimeout(f"OpenAI timeout: {e}") from e
        except APIError as e:
            msg = f"OpenAI API error: {e}"
            if _is_retryable(e):
                raise ModelRetryable(msg) from e
            raise ModelError(msg) from e
        except Exception as e:
            raise ModelError(f"OpenAI provider error: {e}") from e

        dt = time.perf_counter() - t0

        try:
            content = response.choices[0].message.content
        except (IndexError, AttributeError, TypeError) as e:
            raise ModelError(f"Invalid response structure from OpenAI API: {e}") from e
        if content is None:
            raise ModelError("OpenAI API returned an empty message")

        meta = {
            "provider": "openai",
            "model": getattr(response, 'model', req.model),
            "latency": dt,
            "base_url": self.base_url or "https://api.openai.com/v1",
            "timeout": self.timeout
        }

        usage = getattr(response, 'usage', None)
        if usage is not None and hasattr(usage, 'model_dump'):
            meta["usage"] = usage.model_dump()

        meta["finish_reason"] = getattr(response.choices[0], 'finish_reason', None)
        if hasattr(response, 'id'):
            meta["id"] = response.id

        return ModelResponse(content=content, raw=response, meta=meta)

    def cleanup(self):
        self.client.close()
