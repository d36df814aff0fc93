from __future__ import annotations
from typing import Optional, Dict, Any, List, Union
from pathlib import Path
from dataclasses import dataclass
from enum import Enum
import yaml
import time
import logging
import threading

from .prompts import PromptManager
from .providers.base import ChatRequest, ModelResponse, ModelError, ModelTimeout, EncodedImage
from .providers.ollama import OllamaProvider
from .providers.openai_sdk import OpenAIProvider

logger = logging.getLogger(__name__)


class Provider(Enum):
    OLLAMA = "ollama"
    OPENAI = "openai"

@dataclass(frozen=True)
class TaskConfig:
    provider: str
    model: str
    params: Dict[str, Any]
    prompt_ref: Optional[str] #e.g. "classification/coarse@v1"


class ModelManager:
    def __init__(self, config_path: Union[Path, str], prompts_dir: Optional[Path] = None):
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self._providers = {}
        self._lock = threading.Lock() #calls arrive from the request threadpool

        #initialize prompt manager
        if prompts_dir:
            self.prompts = PromptManager(prompts_dir)
        else:
            src_root = Path(__file__).parents[1]
            self.prompts = PromptManager(src_root.parent / "prompts")

    def _load_config(self) -> Dict:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")
        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if 'providers' not in config:
            raise ValueError("Config missing 'providers'")
        if 'tasks' not in config:
            raise ValueError("Config missing 'tasks'")

        for task_name, task_cfg in config['tasks'].items():
            if 'provider' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing provider")
            if 'model' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing model")

            provider_name = task_cfg['provider']
            if provider_name not in config['providers']:
                raise ValueError(f"Task '{task_name}' references unknown provider '{provider_name}'")

        return config

    @property
    def preprocessing(self) -> Dict[str, Any]:
        return self.config.get('preprocessing') or {}

    def has_task(self, task: str) -> bool:
        return task in self.config['tasks']

    def task_config(self, task: str) -> TaskConfig:
        if task not in self.config["tasks"]:
            raise ValueError(f"Unknown task: {task}")
        task_cfg = self.config["tasks"][task]
        return TaskConfig(
            provider=task_cfg["provider"],
            model=task_cfg["model"],
            params=dict(task_cfg.get("params") or {}),
            prompt_ref=task_cfg.get("prompt"),
        )

    def _get_provider(self, provider_name: str):
        with self._lock:
            if provider_name not in self._providers:
                self._providers[provider_name] = self._create_provider(provider_name)
            return self._providers[provider_name]

    def _create_provider(self, provider_name: str):
        if provider_name not in self.config['providers']:
            raise ValueError(f"Unknown provider: {provider_name}")

        provider_cfg = self.config["providers"][provider_name]
        provider_type = provider_cfg["type"]
        settings = provider_cfg.get("settings") or {}

        if provider_type == Provider.OLLAMA.value:
            provider_cls = OllamaProvider
        elif provider_type == Provider.OPENAI.value:
            provider_cls = OpenAIProvider
        else:
            raise ValueError(f"Unknown provider type: {provider_type}")

        try:
            provider = provider_cls(**settings)
        except Exception as e:
            # e.g. the OpenAI client refuses to start without an API key
            raise ModelError(f"Failed to initialize provider '{provider_name}': {e}") from e
        logger.info(f"initialized provider: {provider_name}")
        return provider

    def call(self, task: str, variables: Optional[Dict[str, Any]] = None, images: Optional[List[EncodedImage]] = None, prompt_ref: Optional[str] = None, **params_override) -> ModelResponse:
        start_time = time.perf_counter()
        task_cfg = self.task_config(task)

        prompt_ref = prompt_ref or task_cfg.prompt_ref
        if not prompt_ref:
            raise ValueError(f"Task '{task}' has no prompt configured")
        rendered = self.prompts.render(prompt_ref, variables or {})

        request = ChatRequest(
            model=task_cfg.model,
            messages=rendered,
            images=images,
            params={**task_cfg.params, **params_override},
        )

        provider = self._get_provider(task_cfg.provider)
        try:
            response = provider.chat(request)
        except (ModelTimeout, ModelError):
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(f"Task '{task}' failed after {elapsed_ms:.0f}ms")
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"Task '{task}' completed in {elapsed_ms:.0f}ms via {task_cfg.provider}/{task_cfg.model}")
        return response

    def cleanup(self):
        for name, provider in self._providers.items():
            if hasattr(provider, 'cleanup'):
                try:
                    provider.cleanup()
                    logger.info(f"Cleaned up provider: {name}")
                except Exception as e:
                    logger.error(f"Cleanup failed for {name}: {e}")

        self._providers.clear()
