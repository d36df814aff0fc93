"""
Image classification endpoint.

Accepts a multipart upload with a single ``image`` field and runs it through
the plant / fungus classification pipeline.
"""

import logging
import mimetypes
import time
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from ..dependencies.pipeline import get_pipeline, get_response_assembler
from ..models.classification import ClassificationResponse, ErrorResponse
from ..responses import ResponseAssembler
from src.pipeline.classification.pipeline import ClassificationPipeline
from src.pipeline.classification.types import ImageUpload, ImageValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_MEDIA_TYPE = "application/octet-stream"

# the form is parsed by hand so that a non-file "image" value is a 400, not a 422
UPLOAD_REQUEST_BODY = {
    "requestBody": {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "image": {"type": "string", "format": "binary", "description": "Image to classify"},
                    },
                }
            }
        }
    }
}


async def read_upload(image: Any) -> Optional[ImageUpload]:
    # plain text form values count as a missing image
    if not isinstance(image, UploadFile):
        return None
    content = await image.read()
    media_type = image.content_type or mimetypes.guess_type(image.filename or "")[0] or DEFAULT_MEDIA_TYPE
    return ImageUpload(content=content, media_type=media_type, filename=image.filename)


@router.post(
    "/classify-image",
    response_model=ClassificationResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra=UPLOAD_REQUEST_BODY,
)
async def classify_image(
    request: Request,
    pipeline: ClassificationPipeline = Depends(get_pipeline),
    assembler: ResponseAssembler = Depends(get_response_assembler),
):
    """
    Classify an uploaded image as plant, fungus or something else.

    This endpoint:
    1. Shrinks the image to at most 512x512 and asks for a coarse label
    2. If the label mentions a plant or a fungus, asks for a detailed
       identification using the original image
    3. Returns both free-text answers (the second one may be null)
    """
    start_time = time.time()
    try:
        form = await request.form()
        upload = await read_upload(form.get("image"))
        outcome = await pipeline.process(upload)
    except ImageValidationError:
        logger.info("Rejected classification request without an image")
        return assembler.rejected()
    except Exception as e:
        return assembler.failed(e)

    logger.info(f"Classified {upload.filename or 'upload'} in {time.time() - start_time:.2f}s")
    return assembler.success(outcome)
