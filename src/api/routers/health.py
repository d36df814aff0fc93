"""
Health check endpoints for monitoring and diagnostics.
"""

import time
from fastapi import APIRouter, Depends

from ..models.common import HealthStatus
from ..dependencies.pipeline import get_model_manager
from src.models.manager import ModelManager
from src.pipeline.classification.inference import CLASSIFICATION_TASK, IDENTIFICATION_TASK

router = APIRouter()

API_VERSION = "1.0.0"

# Track server start time for uptime calculation
_server_start_time = time.time()

@router.get("/", response_model=HealthStatus)
async def health_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Basic health check endpoint.

    Reports uptime and which provider serves each inference task. No
    request is made to the providers themselves.
    """
    uptime = time.time() - _server_start_time

    dependencies = {}
    for task in (CLASSIFICATION_TASK, IDENTIFICATION_TASK):
        try:
            task_cfg = model_manager.task_config(task)
            dependencies[task] = f"{task_cfg.provider}/{task_cfg.model}"
        except ValueError as e:
            dependencies[task] = f"Error: {e}"

    return HealthStatus(
        status="healthy",
        version=API_VERSION,
        uptime=uptime,
        dependencies=dependencies
    )

@router.get("/ready")
async def readiness_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Readiness check for container deployments.

    Ready once both inference tasks are configured and their prompts load.
    """
    for task in (CLASSIFICATION_TASK, IDENTIFICATION_TASK):
        if not model_manager.has_task(task):
            return {"ready": False, "reason": f"Task '{task}' not configured"}
        prompt_ref = model_manager.task_config(task).prompt_ref
        try:
            model_manager.prompts.load_prompt(prompt_ref or "")
        except (ValueError, FileNotFoundError) as e:
            return {"ready": False, "reason": f"Prompt for '{task}' unavailable: {e}"}

    return {"ready": True, "message": "Service ready to handle requests"}
