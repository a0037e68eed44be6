from app.services.sources.base import ArtSource, HttpArtSource
from app.services.sources.registry import build_source_roster

__all__ = ["ArtSource", "HttpArtSource", "build_source_roster"]
