"""Game request/response schemas."""
import uuid
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, field_validator
from game_catalog.schemas.base import CamelModel, CamelORMModel


class GameMetadata(CamelModel):
    """Metadata fields a client may set. Title presence is checked by the catalog store."""
    title: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[str] = None
    developer: Optional[str] = None
    release_date: Optional[date] = None

    @field_validator("release_date", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # Form fields arrive as "" when left empty
        if isinstance(v, str) and not v.strip():
            return None
        return v


class GameCreate(GameMetadata):
    pass


class GameUpdate(GameMetadata):
    pass


class GameResponse(CamelORMModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    genre: Optional[str] = None
    developer: Optional[str] = None
    release_date: Optional[date] = None
    file_name: Optional[str] = None
    file_path: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: datetime


class GameMessageResponse(BaseModel):
    message: str
    game: GameResponse
