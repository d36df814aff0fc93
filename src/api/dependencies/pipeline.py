"""
Dependency providers for the classification pipeline.

A fresh pipeline is assembled for every request; only the ModelManager
(configuration plus provider clients) is shared, created once at startup.
"""

from fastapi import Depends

from src.models.manager import ModelManager
from src.pipeline.classification.inference import InferenceClient, ModelInferenceClient
from src.pipeline.classification.pipeline import ClassificationPipeline
from src.pipeline.classification.preprocessor import ImagePreprocessor, DEFAULT_MAX_DIMENSION
from ..responses import ResponseAssembler


def get_model_manager() -> ModelManager:
    """FastAPI dependency to get the model manager from app state."""
    from ..main import app_state
    return app_state["model_manager"]

def get_inference_client(model_manager: ModelManager = Depends(get_model_manager)) -> InferenceClient:
    return ModelInferenceClient(model_manager)

def get_preprocessor(model_manager: ModelManager = Depends(get_model_manager)) -> ImagePreprocessor:
    max_dimension = model_manager.preprocessing.get("max_dimension", DEFAULT_MAX_DIMENSION)
    return ImagePreprocessor(max_dimension=int(max_dimension))

def get_pipeline(
    inference_client: InferenceClient = Depends(get_inference_client),
    preprocessor: ImagePreprocessor = Depends(get_preprocessor),
) -> ClassificationPipeline:
    return ClassificationPipeline(inference_client, preprocessor)

def get_response_assembler() -> ResponseAssembler:
    return ResponseAssembler()
