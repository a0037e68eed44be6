from loguru import logger

from app.models.analysis import BatchAnalysis, ImageAnalysisResult
from app.services.gemini import ImageAnalyzer


class ImageBatchAnalyzer:
    """
    Runs the image analyzer over a batch, one image at a time.

    At most one analysis call is in flight per batch. Output order matches input order.
    """

    def __init__(self, analyzer: ImageAnalyzer):
        self.analyzer = analyzer

    async def analyze_batch(self, images: list[bytes]) -> BatchAnalysis:
        results: list[ImageAnalysisResult] = []
        failed = 0

        for index, image in enumerate(images, start=1):
            logger.info(f"Analyzing image {index}/{len(images)}")
            try:
                result = await self.analyzer.analyze(image)
            except Exception as e:
                # A failed image never aborts the batch
                logger.warning(f"Failed to analyze image {index}/{len(images)}: {e}")
                results.append(ImageAnalysisResult.empty())
                failed += 1
                continue
            if result.is_empty:
                logger.info(f"Image {index}/{len(images)} produced no descriptors")
            results.append(result)

        if failed:
            logger.warning(f"{failed}/{len(images)} images failed analysis")
        return BatchAnalysis(results=results, failed_count=failed)
