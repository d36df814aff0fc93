"""
Maps pipeline outcomes and failures onto the HTTP response contract.

Only the fixed messages below ever reach the caller; the underlying cause of a
failure is logged server-side.
"""

import logging

from fastapi import status
from fastapi.responses import JSONResponse

from .models.classification import ClassificationResponse, ErrorResponse
from src.pipeline.classification.types import PipelineOutcome

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image file provided"
PROCESSING_FAILED_MESSAGE = "Failed to process image or classify it"


class ResponseAssembler:
    def success(self, outcome: PipelineOutcome) -> JSONResponse:
        body = ClassificationResponse(
            initial_classification=outcome.initial_classification,
            detailed_classification=outcome.detailed_classification,
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(by_alias=True))

    def rejected(self) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error=NO_IMAGE_MESSAGE).model_dump(),
        )

    def failed(self, error: BaseException) -> JSONResponse:
        logger.error(f"Error processing image or calling the inference service: {error}", exc_info=error)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=PROCESSING_FAILED_MESSAGE).model_dump(),
        )
