"""Game catalog service: games with downloadable files, served over FastAPI."""
