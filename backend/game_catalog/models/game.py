"""Game model - catalog metadata (file bytes live in the blob store)."""
import uuid
from datetime import date
from sqlalchemy import BigInteger, Date, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from game_catalog.models.base import Base, UploadedAtMixin


class Game(Base, UploadedAtMixin):
    __tablename__ = "games"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    genre: Mapped[str | None] = mapped_column(String(200), nullable=True)
    developer: Mapped[str | None] = mapped_column(String(200), nullable=True)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # File fields are written once at upload time
    file_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    file_path: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
