"""The site-wide headline banner. Held in process memory; resets to the configured default on restart."""

import asyncio
from typing import Optional

from wrytix.config import settings
from wrytix.errors import ValidationError


class HeadlineState:
    """Single-writer headline holder. Reads never block."""

    def __init__(self, initial: str):
        self._text = initial
        self._lock = asyncio.Lock()

    @property
    def text(self) -> str:
        return self._text

    async def update(self, text: Optional[str]) -> str:
        """
        Replace the headline with the trimmed `text`.

        Raises:
            ValidationError: `text` is missing or blank.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Invalid headline text")
        async with self._lock:
            self._text = text.strip()
            return self._text

    def reset(self) -> None:
        self._text = settings.DEFAULT_HEADLINE


headline_state = HeadlineState(settings.DEFAULT_HEADLINE)
