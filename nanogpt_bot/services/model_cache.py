from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, List, Sequence

logger = logging.getLogger("nanogpt_bot")


class ModelListCache:
    """Time-windowed cache of remote model ids with explicit expiry and invalidation."""

    def __init__(
        self,
        loader: Callable[[], Awaitable[List[str]]],
        ttl_seconds: float,
        fallback: Sequence[str] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self.fallback = list(fallback)
        self._clock = clock
        self.models: List[str] = []
        self.expires_at = 0.0

    @property
    def is_fresh(self) -> bool:
        return bool(self.models) and self._clock() < self.expires_at

    def invalidate(self) -> None:
        self.models = []
        self.expires_at = 0.0

    async def get(self) -> List[str]:
        if self.is_fresh:
            return list(self.models)
        try:
            loaded = await self._loader()
        except Exception as exc:
            logger.warning("Model list refresh failed, serving cached or fallback list: %s", exc)
            return list(self.models or self.fallback)
        if not loaded:
            return list(self.models or self.fallback)
        self.models = list(loaded)
        self.expires_at = self._clock() + self.ttl_seconds
        return list(self.models)
