from __future__ import annotations

import asyncio
import json
import logging
import random
from typing import Any, Dict, List, Sequence

import aiohttp

logger = logging.getLogger("nanogpt_bot")

WEB_SEARCH_MODES = ("none", "standard", "deep")
RETRIABLE_STATUSES = frozenset({408, 409, 429, 500, 502, 503, 504})


class NanoGPTError(RuntimeError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def model_with_web_search(model: str, web_search: str) -> str:
    if web_search == "standard":
        return f"{model}:online"
    if web_search == "deep":
        return f"{model}:online/linkup-deep"
    return model


class NanoGPTClient:
    def __init__(
        self,
        api_key: str,
        timeout_seconds: int,
        temperature: float,
        max_tokens: int,
        base_url: str = "https://nano-gpt.com/api",
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(
        self,
        method: str,
        endpoint: str,
        payload: Dict[str, Any] | None = None,
        retries: int = 3,
    ) -> Any:
        if self._session is None or self._session.closed:
            await self.start()
        assert self._session is not None

        url = f"{self.base_url}{endpoint}"
        last_error: Exception | None = None

        for attempt in range(1, max(1, retries) + 1):
            try:
                async with self._session.request(method, url, json=payload) as response:
                    text = await response.text()
                    if response.status == 200:
                        return json.loads(text)

                    if response.status not in RETRIABLE_STATUSES:
                        raise NanoGPTError(f"NanoGPT API error ({response.status}): {text}", response.status)
                    last_error = NanoGPTError(
                        f"NanoGPT retriable error ({response.status}): {text}",
                        response.status,
                    )
            except asyncio.CancelledError:
                raise
            except NanoGPTError as exc:
                if exc.status not in RETRIABLE_STATUSES:
                    raise
                last_error = exc
            except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as exc:
                last_error = exc

            if attempt < retries:
                logger.warning("NanoGPT %s %s failed (attempt %s/%s): %s", method, endpoint, attempt, retries, last_error)
                await asyncio.sleep(min(4.0, 0.35 * attempt + random.random() * 0.2))

        if last_error is not None:
            raise NanoGPTError(f"NanoGPT request failed after retries: {last_error}") from last_error
        raise NanoGPTError("NanoGPT request failed without explicit error")

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content")
        if isinstance(content, str):
            return content.strip()
        return ""

    @staticmethod
    def _unwrap_list(data: Any) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            items = data.get("data") or []
        else:
            items = []
        return [item for item in items if isinstance(item, dict)]

    async def chat(
        self,
        messages: Sequence[Dict[str, Any]],
        model: str,
        web_search: str = "none",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        if web_search not in WEB_SEARCH_MODES:
            raise ValueError(f"Unsupported web search mode: {web_search!r}")
        payload = {
            "model": model_with_web_search(model, web_search),
            "messages": list(messages),
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
            "top_p": 1,
        }
        data = await self._request("POST", "/v1/chat/completions", payload)
        return self._extract_text(data)

    @classmethod
    def _model_ids(cls, data: Any) -> List[str]:
        ids: List[str] = []
        for item in cls._unwrap_list(data):
            model_id = str(item.get("id") or item.get("name") or "").strip()
            if model_id:
                ids.append(model_id)
        return ids

    async def get_models(self) -> List[str]:
        return self._model_ids(await self._request("GET", "/subscription/v1/models"))

    async def get_image_models(self) -> List[str]:
        return self._model_ids(await self._request("GET", "/subscription/v1/image-models"))

    async def get_usage(self) -> Dict[str, Any]:
        data = await self._request("GET", "/subscription/v1/usage")
        return data if isinstance(data, dict) else {}

    async def generate_image(
        self,
        prompt: str,
        model: str,
        *,
        size: str | None = None,
        image_data_url: str | None = None,
        strength: float | None = None,
        guidance_scale: float | None = None,
        num_inference_steps: int | None = None,
        seed: int | None = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"prompt": prompt, "model": model, "n": 1, "response_format": "url"}
        optional = {
            "size": size,
            "imageDataUrl": image_data_url,
            "strength": strength,
            "guidance_scale": guidance_scale,
            "num_inference_steps": num_inference_steps,
            "seed": seed,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        # Billed per call, so no automatic retry.
        data = await self._request("POST", "/v1/images/generations", body, retries=1)
        return data if isinstance(data, dict) else {}

    async def scrape_urls(self, urls: Sequence[str], stealth_mode: bool = False) -> Dict[str, Any]:
        body = {"urls": list(urls), "stealthMode": bool(stealth_mode)}
        data = await self._request("POST", "/scrape-urls", body, retries=1)
        return data if isinstance(data, dict) else {}
