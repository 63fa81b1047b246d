"""Games API routes."""
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse
from pydantic import ValidationError as SchemaValidationError

from game_catalog.errors import MissingFileError, ValidationError
from game_catalog.schemas.common import MessageResponse
from game_catalog.schemas.game import GameCreate, GameMessageResponse, GameResponse, GameUpdate
from game_catalog.services.game_files import GameFileService

router = APIRouter(prefix="/api/games", tags=["games"])


def get_game_files(request: Request) -> GameFileService:
    """FastAPI dependency returning the service built by the app factory."""
    return request.app.state.game_files


@router.get("", response_model=list[GameResponse])
async def list_games(service: GameFileService = Depends(get_game_files)):
    """List every game in the catalog."""
    games = await service.list_games()
    return [GameResponse.model_validate(g) for g in games]


@router.get("/{game_id}", response_model=GameResponse)
async def get_game(game_id: str, service: GameFileService = Depends(get_game_files)):
    """Get a single game by ID."""
    return GameResponse.model_validate(await service.get_game(game_id))


@router.post("/upload", response_model=GameMessageResponse, status_code=201)
async def upload_game(
    game_file: Optional[UploadFile] = File(None, alias="gameFile"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    developer: Optional[str] = Form(None),
    release_date: Optional[str] = Form(None, alias="releaseDate"),
    service: GameFileService = Depends(get_game_files),
):
    """Upload a game file together with its metadata."""
    if game_file is None:
        raise MissingFileError("No file was uploaded")

    try:
        metadata = GameCreate(
            title=title,
            description=description,
            genre=genre,
            developer=developer,
            release_date=release_date,
        )
    except SchemaValidationError as e:
        raise ValidationError(_first_error(e)) from e

    game = await service.create_with_file(
        metadata, game_file.filename, game_file, declared_size=game_file.size
    )
    return {"message": "Game uploaded successfully", "game": GameResponse.model_validate(game)}


@router.get("/{game_id}/download")
async def download_game(game_id: str, service: GameFileService = Depends(get_game_files)):
    """Stream the game's file back under its original name."""
    path, download_name = await service.read_with_download(game_id)
    return FileResponse(
        path=path,
        filename=download_name,
        media_type="application/octet-stream",
    )


@router.put("/{game_id}", response_model=GameMessageResponse)
async def update_game(
    game_id: str,
    body: GameUpdate,
    service: GameFileService = Depends(get_game_files),
):
    """Update game metadata. Only provided fields are updated."""
    game = await service.update_metadata(game_id, body)
    return {"message": "Game updated successfully", "game": GameResponse.model_validate(game)}


@router.delete("/{game_id}", response_model=MessageResponse)
async def delete_game(game_id: str, service: GameFileService = Depends(get_game_files)):
    """Delete a game and its stored file."""
    await service.delete_with_cleanup(game_id)
    return {"message": "Game deleted successfully"}


def _first_error(exc: SchemaValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ()))
    return f"{field}: {err.get('msg', 'invalid value')}" if field else err.get("msg", "invalid value")
