from __future__ import annotations
from typing import Any, Dict, List, Optional
import time
import httpx
from tenacity import Retrying, stop_after_attempt, wait_exponential_jitter, retry_if_exception
from ollama import Client, ResponseError
from .base import ModelProvider, ChatRequest, EncodedImage, ModelResponse, ModelError, ModelRetryable, ModelTimeout

RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504}

def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.ConnectError, httpx.RemoteProtocolError)):
        return True
    if isinstance(exc, ResponseError):
        return getattr(exc, "status_code", None) in RETRYABLE_STATUS
    return isinstance(exc, ModelRetryable)

class OllamaProvider(ModelProvider):
    def __init__(self, host: str = "http://localhost:11434", request_timeout_s: float = 300, keep_alive: str = "5m", max_attempts: int = 1):
        self.client = Client(host=host, timeout=request_timeout_s)
        self.keep_alive = keep_alive
        self.host = host
        self.request_timeout_s = request_timeout_s
        self.max_attempts = max(1, int(max_attempts))

    def _process_messages(self, messages: List[Dict[str, Any]], images: Optional[List[EncodedImage]]) -> List[Dict[str, Any]]:
        if not images: return messages
        # ollama takes bare base64 and sniffs the format itself
        base64_images = [img.base64_data for img in images]
        processed_messages = []
        images_added = False
        for msg in messages:
            if msg.get("role") == "user" and not images_added:
                processed_msg = msg.copy()
                processed_msg["images"] = base64_images
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
        options = dict(req.params or {})
        keep_alive = options.pop('keep_alive', self.keep_alive)
        # openai-style length cap maps onto ollama's num_predict
        if 'max_tokens' in options:
            options.setdefault('num_predict', options.pop('max_tokens'))

        messages = self._process_messages(req.messages, req.images)

        t0 = time.perf_counter()
        try:
            response = self.client.chat(
                model=req.model,
                messages=messages,
                options=options,
                keep_alive=keep_alive
            )
        except httpx.TimeoutException as e:
            raise ModelTimeout(f"Ollama timeout after {self.request_timeout_s}s: {e}") from e
        except ResponseError as e:
            msg = str(e)
            if _is_retryable(e): raise ModelRetryable(msg) from e
            raise ModelError(msg) from e
        except Exception as e:
            raise ModelError(f"Ollama request failed: {e}") from e

        dt = time.perf_counter() - t0

        # The ollama client returns either a dict or a response object
        if isinstance(response, dict):
            raw_response_dict = response
            message = response.get('message')
            content = message.get('content') if isinstance(message, dict) else None
            model_name = response.get('model', req.model)
        elif hasattr(response, 'message') and hasattr(response.message, 'content'):
            raw_response_dict = getattr(response, '__dict__', {})
            content = response.message.content
            model_name = getattr(response, 'model', req.model)
        else:
            raise ModelError(f"Received unexpected response structure from Ollama: {response}")

        if content is None:
            raise ModelError("Ollama returned an empty message")

        meta = {"provider": "ollama", "model": model_name, "latency": dt}
        for key in ['total_duration', 'load_duration', 'prompt_eval_count', 'eval_count']:
            if key in raw_response_dict:
                meta[key] = raw_response_dict[key]

        return ModelResponse(content=content, raw=response, meta=meta)
