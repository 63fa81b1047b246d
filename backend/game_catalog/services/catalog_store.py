"""Catalog persistence for game records.

Every operation opens its own session, so each call is one single-row
statement (plus a refresh) against the database.
"""
import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from game_catalog.errors import NotFoundError, ValidationError
from game_catalog.models.game import Game

# Only these may change after creation
METADATA_FIELDS = ("title", "description", "genre", "developer", "release_date")

GAME_NOT_FOUND = "Game not found"


def _parse_id(game_id: str | uuid.UUID) -> uuid.UUID:
    if isinstance(game_id, uuid.UUID):
        return game_id
    try:
        return uuid.UUID(game_id)
    except (ValueError, TypeError, AttributeError):
        raise NotFoundError(GAME_NOT_FOUND) from None


def _check_title(title: str | None) -> None:
    if title is None or not title.strip():
        raise ValidationError("title is required")


class CatalogStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, fields: dict[str, Any]) -> Game:
        """Insert a new record. The id and uploaded_at are assigned here."""
        _check_title(fields.get("title"))
        game = Game(**{k: v for k, v in fields.items() if k not in ("id", "uploaded_at")})
        async with self._session_factory() as db:
            db.add(game)
            await db.commit()
            await db.refresh(game)
        return game

    async def get(self, game_id: str | uuid.UUID) -> Game:
        key = _parse_id(game_id)
        async with self._session_factory() as db:
            game = await db.get(Game, key)
        if game is None:
            raise NotFoundError(GAME_NOT_FOUND)
        return game

    async def list_all(self) -> list[Game]:
        async with self._session_factory() as db:
            result = await db.execute(select(Game).order_by(Game.uploaded_at))
            return list(result.scalars().all())

    async def update(self, game_id: str | uuid.UUID, fields: dict[str, Any]) -> Game:
        """Apply metadata fields only. File fields and timestamps are ignored."""
        key = _parse_id(game_id)
        update_data = {k: v for k, v in fields.items() if k in METADATA_FIELDS}
        if "title" in update_data:
            _check_title(update_data["title"])

        async with self._session_factory() as db:
            game = await db.get(Game, key)
            if game is None:
                raise NotFoundError(GAME_NOT_FOUND)
            for key_name, value in update_data.items():
                setattr(game, key_name, value)
            await db.commit()
            await db.refresh(game)
        return game

    async def delete(self, game_id: str | uuid.UUID) -> None:
        key = _parse_id(game_id)
        async with self._session_factory() as db:
            result = await db.execute(delete(Game).where(Game.id == key))
            await db.commit()
        if result.rowcount == 0:
            raise NotFoundError(GAME_NOT_FOUND)
