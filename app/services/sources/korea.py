from xml.etree import ElementTree

from loguru import logger

from app.core.constants import SOURCE_CATEGORY_KOREAN
from app.core.exceptions import SourceUnavailableError
from app.models.artwork import CandidateArtwork
from app.services.sources.base import HttpArtSource
from app.services.translation import TranslationService

DESCRIPTOR_KEYS = ("nationalityName1", "nationalityName2", "materialName1", "materialName2", "purposeName1")
RESULT_OK = "0000"


def parse_relic_list(xml_text: str) -> tuple[list[dict[str, str]], int]:
    """Parse the e-museum relic list payload into flat dicts of item key/value pairs."""
    root = ElementTree.fromstring(xml_text)
    result_code = root.findtext("resultCode")
    if result_code and result_code != RESULT_OK:
        raise SourceUnavailableError(
            f"e-museum returned {result_code}: {root.findtext('resultMsg') or 'unknown error'}",
            source="National Museum of Korea",
            result_code=result_code,
        )
    total_text = root.findtext("totalCount") or "0"
    relics = []
    for data in root.iter("data"):
        relic = {item.get("key"): item.get("value") or "" for item in data.iter("item") if item.get("key")}
        if relic:
            relics.append(relic)
    return relics, int(total_text) if total_text.isdigit() else len(relics)


class KoreaMuseumSource(HttpArtSource):
    """
    National Museum of Korea e-museum open API (requires a service key).
    Keywords are translated to Korean before querying.
    """

    name = "National Museum of Korea"
    category = SOURCE_CATEGORY_KOREAN
    base_url = "https://www.emuseum.go.kr/openapi"

    def __init__(self, service_key: str, translation: TranslationService, timeout: float = 10.0):
        super().__init__(timeout=timeout, headers={"Accept": "application/xml"})
        self.service_key = service_key
        self.translation = translation

    async def fetch(self, keywords: list[str], limit: int) -> tuple[list[CandidateArtwork], int]:
        korean_keywords = await self.translation.translate_keywords(keywords, "ko")
        logger.debug(f"Korean keywords for e-museum: {korean_keywords}")
        query = next((keyword for keyword in korean_keywords if keyword), None)
        if query is None:
            return [], 0
        text = await self.client.get_text(
            "/relic/list",
            params={
                "serviceKey": self.service_key,
                "name": query,
                "numOfRows": limit,
                "pageNo": 1,
            },
        )
        try:
            relics, total = parse_relic_list(text)
        except ElementTree.ParseError as e:
            raise ValueError(f"Invalid e-museum payload: {e}") from e
        artworks = [self.format_artwork(relic) for relic in relics if relic.get("id")]
        return artworks, total

    def format_artwork(self, relic: dict[str, str]) -> CandidateArtwork:
        descriptors = {relic[key] for key in DESCRIPTOR_KEYS if relic.get(key)}
        return CandidateArtwork(
            id=f"korea_{relic['id']}",
            title=relic.get("nameKr") or relic.get("name") or "Untitled",
            artist=relic.get("author") or "Unknown Artist",
            keywords=descriptors,
            source_name=self.name,
            platform="emuseum",
            source_url=f"https://www.emuseum.go.kr/detail?relicId={relic['id']}",
            image_url=relic.get("imgThumUriM") or relic.get("imgUri"),
            metadata={"museum": relic.get("museumName2") or ""},
        )
