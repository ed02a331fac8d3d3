"""
Support chat connection for one storefront session.

One handshake at a time: a second connect() while the first is still running
waits on the same task instead of starting another. Failed handshakes are
retried with linear backoff (attempt * base_delay) before giving up.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from storefront.api import StorefrontClient

logger = logging.getLogger(__name__)

DISCONNECTED = "disconnected"
CONNECTING = "connecting"
CONNECTED = "connected"


class ChatSession(BaseModel):
    user_id: str
    user_name: str = ""
    token: str
    channel: str


class ChatConnectionError(Exception):
    pass


Handshake = Callable[[], Awaitable[ChatSession]]


def api_handshake(client: StorefrontClient) -> Handshake:
    """Handshake that asks the API for a chat token and the support channel."""

    async def handshake() -> ChatSession:
        user = await asyncio.to_thread(client.me)
        token = await asyncio.to_thread(client.chat_token)
        channel = await asyncio.to_thread(client.support_channel)
        return ChatSession(user_id=user["id"], user_name=user.get("name") or "", token=token, channel=channel)

    return handshake


class ChatConnectionManager:
    def __init__(self, handshake: Handshake, max_attempts: int = 3, base_delay: float = 1.0):
        self.handshake = handshake
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.session: Optional[ChatSession] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def state(self) -> str:
        if self.session is not None:
            return CONNECTED
        if self._pending is not None and not self._pending.done():
            return CONNECTING
        return DISCONNECTED

    async def connect(self) -> ChatSession:
        if self.session is not None:
            return self.session
        if self._pending is None or self._pending.done():
            self._pending = asyncio.ensure_future(self._connect_with_retry())
        return await asyncio.shield(self._pending)

    async def _connect_with_retry(self) -> ChatSession:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                self.session = await self.handshake()
                return self.session
            except Exception as e:
                last_error = e
                logger.warning("Chat connect attempt %d/%d failed: %s", attempt, self.max_attempts, e)
                if attempt < self.max_attempts:
                    await asyncio.sleep(attempt * self.base_delay)
        raise ChatConnectionError(f"Could not connect to chat after {self.max_attempts} attempts") from last_error

    async def disconnect(self) -> None:
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()
            try:
                await pending
            except (asyncio.CancelledError, ChatConnectionError):
                pass
        self.session = None
