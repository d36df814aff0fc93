import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from src.utils.image_converter import to_base64
from .inference import InferenceClient
from .preprocessor import ImagePreprocessor
from .types import (
    ImageUpload, ImageValidationError, ClassificationResult,
    DetailedIdentification, PipelineOutcome
)

logger = logging.getLogger(__name__)


class ClassificationPipeline:
    """
    Two-stage plant / fungus classification.

    The resized image goes to the coarse classification call. Only when that
    answer mentions a plant or a fungus is the detailed identification call
    made, and it receives the original, unresized image.
    """

    def __init__(self, inference_client: InferenceClient, preprocessor: Optional[ImagePreprocessor] = None):
        self.inference_client = inference_client
        self.preprocessor = preprocessor or ImagePreprocessor()

    async def process(self, upload: Optional[ImageUpload]) -> PipelineOutcome:
        self._validate(upload)
        media_type = upload.media_type

        resized = await run_in_threadpool(self.preprocessor.resize, upload.content)
        resized_base64 = to_base64(resized)
        original_base64 = to_base64(upload.content)

        classification = await self.classify(resized_base64, media_type)
        logger.info(f"Initial classification label: {classification.label}")
        logger.debug(f"Initial classification text: {classification.raw_text!r}")

        if classification.kind is None:
            return PipelineOutcome(initial_classification=classification.raw_text)

        detailed = await self.identify(original_base64, media_type, classification)
        logger.info(f"Detailed classification done for {detailed.kind}")
        logger.debug(f"Detailed classification text: {detailed.raw_text!r}")

        return PipelineOutcome(
            initial_classification=classification.raw_text,
            detailed_classification=detailed.raw_text,
        )

    async def classify(self, image_base64: str, media_type: str) -> ClassificationResult:
        text = await run_in_threadpool(self.inference_client.classify, image_base64, media_type)
        return ClassificationResult.from_text(text)

    async def identify(self, image_base64: str, media_type: str, classification: ClassificationResult) -> DetailedIdentification:
        text = await run_in_threadpool(self.inference_client.identify, image_base64, media_type, classification.kind)
        return DetailedIdentification(kind=classification.kind, raw_text=text)

    def _validate(self, upload: Optional[ImageUpload]) -> None:
        if upload is None or not upload.content:
            raise ImageValidationError("No image file provided")
