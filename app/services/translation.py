import asyncio

from async_lru import alru_cache
from deep_translator import GoogleTranslator
from loguru import logger

# Common art vocabulary, used before falling back to the online translator
KOREAN_GLOSSARY: dict[str, str] = {
    "painting": "회화",
    "ceramic": "도자기",
    "pottery": "도기",
    "porcelain": "자기",
    "sculpture": "조각",
    "buddha": "불상",
    "buddhist": "불교",
    "landscape": "산수화",
    "portrait": "초상화",
    "calligraphy": "서예",
    "ink": "수묵",
    "gold": "금",
    "silver": "은",
    "bronze": "청동",
    "iron": "철",
    "wood": "목",
    "stone": "석",
    "jade": "옥",
    "silk": "비단",
    "paper": "종이",
    "ancient": "고대",
    "traditional": "전통",
    "royal": "왕실",
    "temple": "사찰",
    "palace": "궁궐",
}


class TranslationService:
    @alru_cache(maxsize=1000, ttl=7 * 24 * 60 * 60)
    async def translate(self, text: str, target_lang: str | None) -> str:
        if not text or not target_lang:
            return text

        # Normalize lang (e.g. ko-KR -> ko)
        lang = target_lang.split("-")[0].lower()
        if lang == "en":
            return text
        if lang == "ko" and text.lower() in KOREAN_GLOSSARY:
            return KOREAN_GLOSSARY[text.lower()]

        try:
            loop = asyncio.get_running_loop()
            translated = await loop.run_in_executor(
                None, lambda: GoogleTranslator(source="en", target=lang).translate(text)
            )
            return translated if translated else text
        except Exception as e:
            logger.warning(f"Translation failed for '{text}' to '{lang}': {e}")
            return text

    async def translate_keywords(self, keywords: list[str], target_lang: str) -> list[str]:
        return list(await asyncio.gather(*(self.translate(k, target_lang) for k in keywords)))
