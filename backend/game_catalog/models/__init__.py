"""Import all models so SQLAlchemy metadata knows about them."""
from game_catalog.models.base import Base
from game_catalog.models.game import Game

__all__ = ["Base", "Game"]
