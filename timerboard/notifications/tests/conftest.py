"""
Fixtures for notification tests.

``store`` replaces the query functions used by the dispatcher, the upcoming
list maintainer and the scheduler with an in-memory implementation, and
``discord_api`` replaces the outbound Discord calls with a recorder.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from timerboard.enums import PingFormatFieldType


GUILD_ID = "100000000000000001"
CHANNEL_A = "200000000000000001"
CHANNEL_B = "200000000000000002"
COMMANDER_ID = "300000000000000001"
ROLE_ID = "400000000000000001"


@asynccontextmanager
async def fake_connection():
    yield MagicMock()


class FakeStore:
    """In-memory stand-in for the query layer (same signatures, conn ignored)."""

    def __init__(self):
        self.categories: dict[int, dict] = {}
        self.fleets: dict[int, dict] = {}
        self.field_values: dict[int, dict[int, str]] = {}
        self.messages: list[dict] = []
        self.lists: dict[str, dict] = {}
        self._next_id = 1
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    # --- setup helpers -------------------------------------------------------

    def add_category(
        self,
        name="Stratop",
        channel_ids=(CHANNEL_A, CHANNEL_B),
        ping_role_ids=(ROLE_ID,),
        lead_time_seconds=1800,
        fields=None,
        guild_id=GUILD_ID,
    ) -> dict:
        category_id = self._id()
        category = {
            "category_id": category_id,
            "guild_id": guild_id,
            "ping_format_id": 1,
            "name": name,
            "ping_lead_time_seconds": lead_time_seconds,
            "ping_cooldown_seconds": None,
            "max_pre_ping_seconds": None,
            "channel_ids": list(channel_ids),
            "ping_role_ids": list(ping_role_ids),
            "fields": fields
            if fields is not None
            else [
                {
                    "field_id": 1,
                    "name": "Doctrine",
                    "priority": 0,
                    "field_type": PingFormatFieldType.text,
                    "show_in_ping": True,
                }
            ],
        }
        self.categories[category_id] = category
        return category

    def add_fleet(
        self,
        category,
        fleet_time,
        name="Home Defense",
        hidden=False,
        disable_reminder=False,
        field_values=None,
    ) -> dict:
        fleet_id = self._id()
        fleet = {
            "fleet_id": fleet_id,
            "category_id": category["category_id"],
            "name": name,
            "commander_id": COMMANDER_ID,
            "fleet_time": fleet_time,
            "description": None,
            "hidden": hidden,
            "disable_reminder": disable_reminder,
            "created_at": self._tick(),
        }
        self.fleets[fleet_id] = fleet
        self.field_values[fleet_id] = dict(field_values or {})
        return fleet

    def add_message(self, fleet, channel_id, message_type, message_id) -> dict:
        record = {
            "fleet_message_id": self._id(),
            "fleet_id": fleet["fleet_id"],
            "channel_id": channel_id,
            "message_id": str(message_id),
            "message_type": message_type,
            "created_at": self._tick(),
        }
        self.messages.append(record)
        return record

    def messages_of(self, fleet, message_type=None) -> list[dict]:
        return [
            m
            for m in self.messages
            if m["fleet_id"] == fleet["fleet_id"]
            and (message_type is None or m["message_type"] == message_type)
        ]

    # --- categories ----------------------------------------------------------

    async def get_category(self, conn, category_id):
        category = self.categories.get(category_id)
        return dict(category) if category else None

    async def get_category_ids_for_channel(self, conn, channel_id):
        return [
            c["category_id"]
            for c in self.categories.values()
            if channel_id in c["channel_ids"]
        ]

    async def get_categories_by_ids(self, conn, category_ids):
        return {i: dict(self.categories[i]) for i in category_ids if i in self.categories}

    async def get_configured_channel_ids(self, conn):
        return sorted({ch for c in self.categories.values() for ch in c["channel_ids"]})

    # --- fleets --------------------------------------------------------------

    async def get_fleet_field_values(self, conn, fleet_id):
        return dict(self.field_values.get(fleet_id, {}))

    async def get_reminder_candidates(self, conn, now):
        rows = []
        for fleet in self.fleets.values():
            category = self.categories[fleet["category_id"]]
            if (
                not fleet["hidden"]
                and not fleet["disable_reminder"]
                and category["ping_lead_time_seconds"] is not None
                and fleet["fleet_time"] > now
            ):
                rows.append(
                    {**fleet, "ping_lead_time_seconds": category["ping_lead_time_seconds"]}
                )
        return sorted(rows, key=lambda f: f["fleet_time"])

    async def get_formup_candidates(self, conn, now, max_age):
        return sorted(
            (
                dict(f)
                for f in self.fleets.values()
                if now - max_age <= f["fleet_time"] <= now
            ),
            key=lambda f: f["fleet_time"],
        )

    async def get_upcoming_fleets(self, conn, category_ids, now):
        return sorted(
            (
                dict(f)
                for f in self.fleets.values()
                if f["category_id"] in category_ids
                and not f["hidden"]
                and f["fleet_time"] > now
            ),
            key=lambda f: (f["fleet_time"], f["fleet_id"]),
        )

    # --- fleet messages ------------------------------------------------------

    async def reserve_fleet_message(self, conn, fleet_id, channel_id, message_type):
        for m in self.messages:
            if (
                m["fleet_id"] == fleet_id
                and m["channel_id"] == channel_id
                and m["message_type"] == message_type
            ):
                return None
        record = {
            "fleet_message_id": self._id(),
            "fleet_id": fleet_id,
            "channel_id": channel_id,
            "message_id": None,
            "message_type": message_type,
            "created_at": self._tick(),
        }
        self.messages.append(record)
        return record["fleet_message_id"]

    async def confirm_fleet_message(self, conn, fleet_message_id, message_id):
        for m in self.messages:
            if m["fleet_message_id"] == fleet_message_id:
                m["message_id"] = message_id
                m["created_at"] = self._tick()

    async def release_fleet_message(self, conn, fleet_message_id):
        self.messages = [
            m
            for m in self.messages
            if not (m["fleet_message_id"] == fleet_message_id and m["message_id"] is None)
        ]

    async def get_fleet_messages(self, conn, fleet_id):
        return sorted(
            (
                dict(m)
                for m in self.messages
                if m["fleet_id"] == fleet_id and m["message_id"] is not None
            ),
            key=lambda m: m["created_at"],
        )

    async def get_fleet_messages_for_channel(self, conn, fleet_id, channel_id):
        return [
            m for m in await self.get_fleet_messages(conn, fleet_id)
            if m["channel_id"] == channel_id
        ]

    async def fleet_message_exists(self, conn, fleet_id, message_type):
        return any(
            m["fleet_id"] == fleet_id and m["message_type"] == message_type
            for m in self.messages
        )

    # --- channel lists -------------------------------------------------------

    async def get_channel_fleet_list(self, conn, channel_id):
        record = self.lists.get(channel_id)
        return dict(record) if record else None

    async def save_posted_list(self, conn, channel_id, message_id, now):
        existing = self.lists.get(channel_id, {})
        self.lists[channel_id] = {
            "channel_id": channel_id,
            "message_id": message_id,
            "last_message_at": now,
            "created_at": existing.get("created_at", now),
            "updated_at": now,
        }

    async def mark_list_edited(self, conn, channel_id, now):
        self.lists[channel_id]["updated_at"] = now


class FakeDiscord:
    """Records outbound Discord calls; channels in ``failing`` raise."""

    def __init__(self):
        self.sent: list[dict] = []
        self.edited: list[dict] = []
        self.deleted: list[tuple[int, int]] = []
        self.failing_channels: set[int] = set()
        self.failing_messages: set[int] = set()
        self.fail_deletes = False
        self._next_message_id = 900000000000000001

    async def send_channel_message(self, channel_id, content=None, embed=None, reply_to=None):
        if channel_id in self.failing_channels:
            raise RuntimeError(f"Missing Access to channel {channel_id}")
        message_id = self._next_message_id
        self._next_message_id += 1
        self.sent.append(
            {
                "channel_id": channel_id,
                "message_id": message_id,
                "content": content,
                "embed": embed,
                "reply_to": reply_to,
            }
        )
        return message_id

    async def edit_channel_message(self, channel_id, message_id, embed, clear_content=False):
        if message_id in self.failing_messages or channel_id in self.failing_channels:
            raise RuntimeError(f"Unknown Message {message_id}")
        self.edited.append(
            {
                "channel_id": channel_id,
                "message_id": message_id,
                "embed": embed,
                "clear_content": clear_content,
            }
        )

    async def delete_channel_message(self, channel_id, message_id):
        if self.fail_deletes:
            raise RuntimeError(f"Missing Permissions to delete {message_id}")
        self.deleted.append((channel_id, message_id))


_STORE_PATCHES = {
    "timerboard.notifications.dispatcher": [
        "get_category",
        "get_fleet_messages",
        "reserve_fleet_message",
        "confirm_fleet_message",
        "release_fleet_message",
    ],
    "timerboard.notifications.upcoming": [
        "get_category_ids_for_channel",
        "get_categories_by_ids",
        "get_upcoming_fleets",
        "get_fleet_messages_for_channel",
        "get_channel_fleet_list",
        "save_posted_list",
        "mark_list_edited",
    ],
    "timerboard.notifications.scheduler": [
        "get_reminder_candidates",
        "get_formup_candidates",
        "fleet_message_exists",
        "get_fleet_field_values",
        "get_configured_channel_ids",
    ],
}

_CONNECTION_PATCHES = {
    "timerboard.notifications.dispatcher": ["get_connection", "get_transaction"],
    "timerboard.notifications.upcoming": ["get_connection", "get_transaction"],
    "timerboard.notifications.scheduler": ["get_connection"],
}

_DISCORD_PATCHES = {
    "timerboard.notifications.dispatcher": [
        "send_channel_message",
        "edit_channel_message",
    ],
    "timerboard.notifications.upcoming": [
        "send_channel_message",
        "edit_channel_message",
        "delete_channel_message",
    ],
}


@pytest.fixture
def store():
    """In-memory query layer patched into the notification modules."""
    fake = FakeStore()
    patchers = []
    for module, names in _STORE_PATCHES.items():
        for name in names:
            patchers.append(patch(f"{module}.{name}", getattr(fake, name)))
    for module, names in _CONNECTION_PATCHES.items():
        for name in names:
            patchers.append(patch(f"{module}.{name}", fake_connection))

    for p in patchers:
        p.start()
    yield fake
    for p in reversed(patchers):
        p.stop()


@pytest.fixture
def discord_api():
    """Recorded Discord calls patched into the notification modules."""
    fake = FakeDiscord()
    patchers = [
        patch(f"{module}.{name}", getattr(fake, name))
        for module, names in _DISCORD_PATCHES.items()
        for name in names
    ]
    patchers.append(
        patch(
            "timerboard.notifications.composer.resolve_display_name",
            new_callable=AsyncMock,
            return_value="Jita Jim",
        )
    )
    for p in patchers:
        p.start()
    yield fake
    for p in reversed(patchers):
        p.stop()
