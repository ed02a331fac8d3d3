"""
Support chat on top of Stream.

Every customer gets one channel, "support-<user id>", shared with the whole
admin pool. Message delivery, ordering and history belong to Stream; this
module only manages channel membership and the tokens browsers use to
connect.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, FrozenSet, List, Optional

import requests
from pymongo.database import Database
from stream_chat import StreamChat
from stream_chat.base.exceptions import StreamAPIException

import config
from auth import admin_ids
from errors import UpstreamError
from schemas import unique_in_order

logger = logging.getLogger(__name__)

CHANNEL_TYPE = "messaging"

CHANNEL_FEATURES = {
    "typing_events": True,
    "read_events": True,
    "connect_events": True,
    "reactions": True,
    "replies": True,
    "search": True,
}

# Capability grants
MEMBER_ACTIONS = ("read-channel", "write-channel", "join-channel")
ADMIN_ACTIONS = ("create-channel", "delete-channel", "update-channel", "query-channels")
ALL_ACTIONS = MEMBER_ACTIONS + ADMIN_ACTIONS

CapabilitySet = FrozenSet[str]

CAPABILITIES: Dict[str, CapabilitySet] = {
    "user": frozenset(MEMBER_ACTIONS),
    "admin": frozenset(ALL_ACTIONS),
}


def capabilities_for(role: str) -> CapabilitySet:
    """Chat actions a role may take. Unknown roles get the member set."""
    return CAPABILITIES.get(role, CAPABILITIES["user"])


def permission_claims(role: str) -> Dict[str, List[str]]:
    granted = capabilities_for(role)
    return {action: (["*"] if action in granted else []) for action in ALL_ACTIONS}


def support_channel_id(user_id: str) -> str:
    return f"support-{user_id}"


class ChatGateway:
    """Server-side calls to Stream. Any service failure becomes UpstreamError."""

    def __init__(self, client: StreamChat):
        self.client = client

    def _call(self, what: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (StreamAPIException, requests.RequestException) as e:
            raise UpstreamError(f"Chat service failed to {what}: {e}") from e

    def find_channel(self, channel_id: str) -> Optional[Dict[str, Any]]:
        response = self._call(
            "query channels",
            self.client.query_channels,
            {"type": CHANNEL_TYPE, "id": channel_id},
            None,
            limit=1,
        )
        channels = response.get("channels") or []
        if not channels:
            return None
        state = channels[0]
        return {
            "cid": state["channel"]["cid"],
            "members": {m.get("user_id") or m.get("user", {}).get("id") for m in state.get("members", [])},
        }

    def create_channel(self, channel_id: str, name: str, created_by: str, members: List[str]) -> str:
        channel = self.client.channel(CHANNEL_TYPE, channel_id, {"name": name, "members": members})
        self._call("create channel", channel.create, created_by)
        self._call("add members", channel.add_members, members)
        return channel.cid

    def add_members(self, channel_id: str, members: List[str]) -> None:
        channel = self.client.channel(CHANNEL_TYPE, channel_id)
        self._call("add members", channel.add_members, members)

    def create_token(self, user_id: str, exp: Optional[datetime] = None, **claims) -> str:
        return self.client.create_token(user_id, exp=exp, **claims)

    def configure_channel_type(self) -> None:
        self._call("update channel type", self.client.update_channel_type, CHANNEL_TYPE, **CHANNEL_FEATURES)


@lru_cache()
def get_chat_gateway() -> ChatGateway:
    if not config.chat_configured():
        raise UpstreamError("Chat service is not configured")
    return ChatGateway(StreamChat(api_key=config.STREAM_API_KEY, api_secret=config.STREAM_API_SECRET))


def get_or_create_support_channel(db: Database, gateway: ChatGateway, user: Dict[str, Any]) -> str:
    """Return the cid of the user's support channel, creating it if needed.

    Membership is reconciled on every call: admins promoted since the channel
    was created are added, so the channel always holds its owner plus every
    current admin.
    """
    user_id = user["id"]
    channel_id = support_channel_id(user_id)
    members = unique_in_order([user_id] + admin_ids(db))

    existing = gateway.find_channel(channel_id)
    if existing is None:
        cid = gateway.create_channel(channel_id, f"Support - {user.get('name', '')}", user_id, members)
        logger.info("Created support channel %s with %d members", cid, len(members))
        return cid

    missing = [m for m in members if m not in existing["members"]]
    if missing:
        gateway.add_members(channel_id, missing)
        logger.info("Added %d missing members to %s", len(missing), existing["cid"])
    return existing["cid"]


def issue_chat_token(gateway: ChatGateway, user_id: str, role: str) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=config.JWT_EXPIRE_MINUTES)
    return gateway.create_token(user_id, exp=exp, role=role, permissions=permission_claims(role))


def configure_chat() -> None:
    """Apply channel feature flags at startup. Failure is logged, not fatal."""
    if not config.chat_configured():
        logger.warning("STREAM_API_KEY/STREAM_API_SECRET not set; support chat disabled")
        return
    try:
        get_chat_gateway().configure_channel_type()
    except UpstreamError as e:
        logger.error("Could not configure chat channel type: %s", e.message)
