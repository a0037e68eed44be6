import pytest

from app.core.exceptions import AnalysisError
from app.models.analysis import ImageAnalysisResult
from app.services.batch_analyzer import ImageBatchAnalyzer
from app.services.gemini import detect_mime_type, parse_descriptors
from tests.conftest import FakeAnalyzer, descriptors


@pytest.mark.asyncio
async def test_results_follow_input_order_with_placeholders():
    first = descriptors(["landscape"])
    third = descriptors(["portrait"])
    analyzer = FakeAnalyzer({b"one": first, b"two": AnalysisError("bad image"), b"three": third})

    batch = await ImageBatchAnalyzer(analyzer).analyze_batch([b"one", b"two", b"three"])

    assert batch.results == [first, ImageAnalysisResult.empty(), third]
    assert batch.failed_count == 1
    assert analyzer.calls == [b"one", b"two", b"three"]


@pytest.mark.asyncio
async def test_images_are_analyzed_one_at_a_time():
    analyzer = FakeAnalyzer()

    await ImageBatchAnalyzer(analyzer).analyze_batch([b"a", b"b", b"c", b"d"])

    assert analyzer.max_in_flight == 1


@pytest.mark.asyncio
async def test_unexpected_errors_do_not_abort_batch():
    analyzer = FakeAnalyzer({b"a": RuntimeError("socket closed")})

    batch = await ImageBatchAnalyzer(analyzer).analyze_batch([b"a", b"b"])

    assert batch.failed_count == 1
    assert batch.results[0].is_empty
    assert not batch.results[1].is_empty


@pytest.mark.asyncio
async def test_empty_descriptors_are_kept_but_not_counted_as_failures():
    analyzer = FakeAnalyzer({b"blank": ImageAnalysisResult.empty()})

    batch = await ImageBatchAnalyzer(analyzer).analyze_batch([b"blank", b"b"])

    assert batch.failed_count == 0
    assert [result.is_empty for result in batch.results] == [True, False]


def test_parse_descriptors():
    result = parse_descriptors(
        '{"keywords": ["landscape", "mountain"], "colors": "blue", "style": [], "mood": ["calm", ""], '
        '"confidence": 1.7}'
    )

    assert result.keywords == frozenset({"landscape", "mountain"})
    assert result.colors == frozenset({"blue"})
    assert result.mood == frozenset({"calm"})
    assert result.confidence == 1.0


def test_parse_descriptors_strips_code_fence():
    result = parse_descriptors('```json\n{"keywords": ["boat"]}\n```')

    assert result.keywords == frozenset({"boat"})


def test_parse_descriptors_rejects_invalid_json():
    with pytest.raises(AnalysisError):
        parse_descriptors("I think this is a landscape")


@pytest.mark.parametrize(
    "payload, mime_type",
    [
        (b"\x89PNG\r\n\x1a\nrest", "image/png"),
        (b"GIF89a....", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"\xff\xd8\xff\xe0", "image/jpeg"),
    ],
)
def test_detect_mime_type(payload, mime_type):
    assert detect_mime_type(payload) == mime_type
