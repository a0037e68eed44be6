from loguru import logger

from app.core.config import Settings
from app.services.sources.base import ArtSource
from app.services.sources.chicago import ChicagoArtSource
from app.services.sources.cleveland import ClevelandArtSource
from app.services.sources.korea import KoreaMuseumSource
from app.services.sources.local_catalog import LocalCatalogSource
from app.services.sources.met import MetMuseumSource
from app.services.sources.rijksmuseum import RijksmuseumSource
from app.services.translation import TranslationService


def build_source_roster(settings: Settings, translation: TranslationService | None = None) -> list[ArtSource]:
    """Instantiate every source the current configuration allows, in query order."""
    timeout = settings.SOURCE_TIMEOUT_SECONDS
    roster: list[ArtSource] = [
        MetMuseumSource(timeout=timeout),
        ChicagoArtSource(timeout=timeout),
        ClevelandArtSource(timeout=timeout),
    ]

    if settings.RIJKSMUSEUM_API_KEY:
        roster.append(RijksmuseumSource(settings.RIJKSMUSEUM_API_KEY, timeout=timeout))
    else:
        logger.info("RIJKSMUSEUM_API_KEY not set. Rijksmuseum source disabled.")

    if settings.KOREA_MUSEUM_API_KEY:
        roster.append(KoreaMuseumSource(settings.KOREA_MUSEUM_API_KEY, translation or TranslationService(), timeout))
    else:
        logger.info("KOREA_MUSEUM_API_KEY not set. National Museum of Korea source disabled.")

    if settings.LOCAL_CATALOG_PATH:
        roster.append(LocalCatalogSource(settings.LOCAL_CATALOG_PATH, category=settings.LOCAL_CATALOG_CATEGORY))

    logger.info(f"Source roster: {[source.name for source in roster]}")
    return roster
