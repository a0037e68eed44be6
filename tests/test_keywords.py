import pytest

from app.models.analysis import ImageAnalysisResult
from app.services.keywords import CommonKeywordExtractor, common_threshold
from tests.conftest import descriptors


@pytest.mark.parametrize(
    "image_count, expected",
    [(1, 1), (2, 1), (3, 1), (4, 2), (5, 2), (10, 5), (50, 25)],
)
def test_common_threshold(image_count, expected):
    assert common_threshold(image_count) == expected


def test_threshold_boundary_with_four_images():
    results = [
        descriptors(["landscape", "mountain"]),
        descriptors(["landscape", "river"]),
        descriptors(["portrait"]),
        descriptors(["still life"]),
    ]

    common = CommonKeywordExtractor().extract(results)

    # landscape is in 2 of 4 images (threshold 2); everything else in only 1
    assert common.keywords == ["landscape"]
    assert common.frequency["landscape"] == 2
    assert common.frequency["mountain"] == 1


def test_single_image_keeps_all_distinct_tokens():
    common = CommonKeywordExtractor().extract([descriptors(["Tree", "tree ", "x"], ["green"])])

    assert common.keywords == ["tree", "green"]


def test_frequency_counts_images_not_occurrences():
    results = [descriptors(["blue"], ["blue"]), descriptors(["blue"])]

    common = CommonKeywordExtractor().extract(results)

    assert common.frequency == {"blue": 2}


def test_sorted_by_frequency_then_first_seen():
    results = [
        descriptors(["boat"], ["blue"]),
        descriptors(["sea"], ["blue"]),
        descriptors(["sea"], ["blue"]),
        descriptors(["boat", "sea"]),
    ]

    common = CommonKeywordExtractor().extract(results)

    assert common.keywords == ["blue", "sea", "boat"]


def test_truncated_to_max_keywords():
    tokens = [f"token{i:02d}" for i in range(30)]

    common = CommonKeywordExtractor(max_keywords=20).extract([descriptors(tokens)])

    assert len(common.keywords) == 20


def test_confidence_heuristic():
    results = [descriptors(["landscape"], ["blue"]), descriptors(["landscape"], ["blue"])]

    common = CommonKeywordExtractor().extract(results)

    # 4 token occurrences across 2 images, 10 expected per image
    assert common.confidence == pytest.approx(0.2)
    assert common.confidence_percent == 20


def test_confidence_capped_at_one():
    tokens = [f"token{i:02d}" for i in range(15)]

    common = CommonKeywordExtractor(max_keywords=20).extract([descriptors(tokens)])

    assert common.confidence == 1.0


def test_empty_input():
    common = CommonKeywordExtractor().extract([])

    assert common.keywords == []
    assert common.confidence == 0.0


def test_all_failed_images_give_zero_confidence():
    common = CommonKeywordExtractor().extract([ImageAnalysisResult.empty(), ImageAnalysisResult.empty()])

    assert common.keywords == []
    assert common.confidence == 0.0
