"""Run the API with uvicorn: ``python -m game_catalog``."""
import uvicorn

from game_catalog.config import settings


def main() -> None:
    uvicorn.run(
        "game_catalog.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.API_PORT,
    )


if __name__ == "__main__":
    main()
