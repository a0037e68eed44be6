import asyncio
import json
from typing import Protocol

from google import genai
from google.genai import types
from loguru import logger

from app.core.config import settings
from app.core.exceptions import AnalysisError
from app.models.analysis import ImageAnalysisResult

DESCRIPTOR_FIELDS = ("keywords", "colors", "style", "mood")


class ImageAnalyzer(Protocol):
    async def analyze(self, image: bytes) -> ImageAnalysisResult: ...


def detect_mime_type(image: bytes) -> str:
    """Best-effort MIME sniffing from magic bytes; JPEG when unknown."""
    if image.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if image[:4] == b"RIFF" and image[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def parse_descriptors(text: str) -> ImageAnalysisResult:
    """Turn the model's JSON answer into an ImageAnalysisResult."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        cleaned = cleaned[cleaned.find("{") :]
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise AnalysisError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise AnalysisError("Model returned a non-object JSON payload")

    fields = {}
    for field in DESCRIPTOR_FIELDS:
        values = data.get(field) or []
        if isinstance(values, str):
            values = [values]
        fields[field] = frozenset(str(v).strip() for v in values if str(v).strip())

    try:
        confidence = float(data.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    return ImageAnalysisResult(confidence=max(0.0, min(1.0, confidence)), **fields)


class GeminiImageAnalyzer:
    """Extracts art descriptors from an image with a Gemini multimodal model."""

    def __init__(self, model: str = settings.DEFAULT_GEMINI_MODEL, api_key: str | None = None):
        self.model = model
        self.client = None
        if api_key := api_key or settings.GEMINI_API_KEY:
            try:
                self.client = genai.Client(api_key=api_key)
            except Exception as e:
                logger.warning(f"Failed to initialize Gemini client: {e}")
        else:
            logger.warning("GEMINI_API_KEY not set. Image analysis will fail for every image.")

    @staticmethod
    def get_prompt() -> str:
        return """
        You are an art curator describing an image so it can be matched against museum collections.
        Return only a JSON object with these fields:
        - "keywords": up to 10 English nouns for subjects, objects and genre (e.g. "landscape", "portrait")
        - "colors": up to 5 dominant color names (e.g. "blue", "ochre")
        - "style": up to 3 art styles or techniques (e.g. "impressionism", "watercolor")
        - "mood": up to 3 moods (e.g. "calm", "melancholic")
        - "confidence": a number between 0 and 1
        Use lower-case single words or short phrases. No commentary.
        """

    def generate_descriptors(self, image: bytes) -> str:
        if not self.client:
            raise AnalysisError("Gemini client not initialized")
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image, mime_type=detect_mime_type(image)),
                    self.get_prompt(),
                ],
                config=types.GenerateContentConfig(response_mime_type="application/json"),
            )
        except Exception as e:
            raise AnalysisError(f"Gemini request failed: {e}") from e
        if not response.text:
            raise AnalysisError("Gemini returned an empty response")
        return response.text

    async def analyze(self, image: bytes) -> ImageAnalysisResult:
        """Async wrapper to avoid blocking the event loop during network calls."""
        loop = asyncio.get_running_loop()
        text = await loop.run_in_executor(None, lambda: self.generate_descriptors(image))
        return parse_descriptors(text)
