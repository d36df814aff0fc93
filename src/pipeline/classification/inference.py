from abc import ABC, abstractmethod
import logging

from src.models.manager import ModelManager
from src.models.providers.base import EncodedImage, ModelError
from .types import InferenceError, Kind

logger = logging.getLogger(__name__)

CLASSIFICATION_TASK = "classification"
IDENTIFICATION_TASK = "identification"


class InferenceClient(ABC):
    """The two calls the pipeline makes against the vision-inference service."""

    @abstractmethod
    def classify(self, image_base64: str, media_type: str) -> str:
        """Ask for a coarse plant / fungus / else label. Raises InferenceError."""
        raise NotImplementedError

    @abstractmethod
    def identify(self, image_base64: str, media_type: str, kind: Kind) -> str:
        """Ask for common name, scientific name, link and basic info. Raises InferenceError."""
        raise NotImplementedError


class ModelInferenceClient(InferenceClient):
    def __init__(self, model_manager: ModelManager, classification_task: str = CLASSIFICATION_TASK, identification_task: str = IDENTIFICATION_TASK):
        self.model_manager = model_manager
        self.classification_task = classification_task
        self.identification_task = identification_task

    def classify(self, image_base64: str, media_type: str) -> str:
        return self._complete(self.classification_task, {}, EncodedImage(image_base64, media_type))

    def identify(self, image_base64: str, media_type: str, kind: Kind) -> str:
        return self._complete(self.identification_task, {"kind": kind}, EncodedImage(image_base64, media_type))

    def _complete(self, task: str, variables: dict, image: EncodedImage) -> str:
        try:
            response = self.model_manager.call(task=task, variables=variables, images=[image])
        except ModelError as e:
            raise InferenceError(f"{task} call failed: {e}") from e
        except (ValueError, FileNotFoundError) as e:
            # unknown task, missing prompt or bad provider settings
            raise InferenceError(f"{task} is misconfigured: {e}") from e
        return response.content
