"""Pytest fixtures for query tests against a real database."""

import os

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import ENUM


@pytest_asyncio.fixture
async def db_conn():
    """
    Provide a DB connection that rolls back after each test.

    The schema is created inside the same transaction when it is missing, so
    an empty database works as well as a migrated one. Nothing outlives the
    test.
    """
    load_dotenv(".env.local")
    if not os.getenv("DATABASE_URL"):
        pytest.skip("DATABASE_URL not set")

    from timerboard.database import close_engine, get_engine
    from timerboard.enums import FleetMessageType, PingFormatFieldType
    from timerboard.tables import metadata

    def create_schema(sync_conn):
        for enum_cls, name in (
            (FleetMessageType, "fleet_message_type"),
            (PingFormatFieldType, "ping_format_field_type"),
        ):
            ENUM(*[m.value for m in enum_cls], name=name).create(
                sync_conn, checkfirst=True
            )
        metadata.create_all(sync_conn, checkfirst=True)

    engine = get_engine()

    async with engine.connect() as conn:
        txn = await conn.begin()
        try:
            await conn.run_sync(create_schema)
            yield conn
        finally:
            await txn.rollback()

    await close_engine()


@pytest_asyncio.fixture
async def category(db_conn):
    """A category posting into two channels, with one ping format field."""
    from timerboard.enums import PingFormatFieldType
    from timerboard.tables import (
        fleet_categories,
        fleet_category_channels,
        ping_format_fields,
        ping_formats,
    )

    ping_format_id = (
        await db_conn.execute(
            insert(ping_formats)
            .values(guild_id="100000000000000001", name="Standard")
            .returning(ping_formats.c.ping_format_id)
        )
    ).scalar_one()
    await db_conn.execute(
        insert(ping_format_fields).values(
            ping_format_id=ping_format_id,
            name="Doctrine",
            priority=0,
            field_type=PingFormatFieldType.text,
        )
    )
    result = await db_conn.execute(
        insert(fleet_categories)
        .values(
            guild_id="100000000000000001",
            ping_format_id=ping_format_id,
            name="Stratop",
            ping_lead_time_seconds=1800,
        )
        .returning(fleet_categories)
    )
    row = dict(result.mappings().one())
    await db_conn.execute(
        insert(fleet_category_channels),
        [
            {"category_id": row["category_id"], "channel_id": "200000000000000001"},
            {"category_id": row["category_id"], "channel_id": "200000000000000002"},
        ],
    )
    return row
