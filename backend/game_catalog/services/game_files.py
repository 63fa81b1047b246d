"""Game file lifecycle: keeps blobs and catalog records in step.

Upload writes the blob before the record; delete removes the blob before
the record. Neither pair is transactional.
"""
import logging
import uuid
from pathlib import Path

from game_catalog.errors import MissingFileError, NotFoundError
from game_catalog.models.game import Game
from game_catalog.schemas.game import GameCreate, GameUpdate
from game_catalog.services.blob_store import BlobStore
from game_catalog.services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

FILE_NOT_FOUND = "File not found"


class GameFileService:
    """Create, download and delete games together with their files."""

    def __init__(self, blobs: BlobStore, catalog: CatalogStore):
        self.blobs = blobs
        self.catalog = catalog

    async def create_with_file(
        self,
        metadata: GameCreate,
        file_name: str | None,
        stream,
        declared_size: int | None = None,
    ) -> Game:
        """Store the uploaded file, then create its catalog record.

        If the record cannot be created the freshly written blob is removed
        again so no orphan is left behind.
        """
        if stream is None or not file_name:
            raise MissingFileError("No file was uploaded")

        file_path, file_size = await self.blobs.store(file_name, stream, declared_size)

        fields = metadata.model_dump()
        fields.update(file_name=file_name, file_path=file_path, file_size=file_size)
        try:
            game = await self.catalog.create(fields)
        except BaseException:
            # Includes cancellation while the record is being written
            logger.warning("Catalog create failed, removing orphan blob %s", file_path)
            await self.blobs.delete(file_path)
            raise

        logger.info("Stored game %s (%s, %d bytes) at %s", game.id, file_name, file_size, file_path)
        return game

    async def read_with_download(self, game_id: str | uuid.UUID) -> tuple[Path, str]:
        """Return the blob path and the name the client should save it as."""
        game = await self.catalog.get(game_id)
        if not game.file_path:
            raise NotFoundError(FILE_NOT_FOUND)
        if not await self.blobs.exists(game.file_path):
            logger.warning("Game %s references missing blob %s", game.id, game.file_path)
            raise NotFoundError(FILE_NOT_FOUND)
        download_name = game.file_name or Path(game.file_path).name
        return Path(game.file_path).resolve(), download_name

    async def delete_with_cleanup(self, game_id: str | uuid.UUID) -> None:
        game = await self.catalog.get(game_id)
        if game.file_path:
            await self.blobs.delete(game.file_path)
        await self.catalog.delete(game.id)
        logger.info("Deleted game %s", game.id)

    async def list_games(self) -> list[Game]:
        return await self.catalog.list_all()

    async def get_game(self, game_id: str | uuid.UUID) -> Game:
        return await self.catalog.get(game_id)

    async def update_metadata(self, game_id: str | uuid.UUID, changes: GameUpdate) -> Game:
        """Apply only the fields the client sent. File fields are never touched."""
        return await self.catalog.update(game_id, changes.model_dump(exclude_unset=True))
