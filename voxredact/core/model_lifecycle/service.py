# File: voxredact/core/model_lifecycle/service.py

import gc
import logging
from threading import Lock
from typing import Any, Callable, Optional

import torch

from voxredact.core.errors import ModelBusyError
from .types import LoadResult, ModelState, ModelType

logger = logging.getLogger(__name__)


class LocalModelService:
    """
    Owns one lazily loaded model handle (weights in RAM/VRAM).

    One instance is created at startup and injected wherever local inference
    is needed. A second load request that arrives while a load is in flight
    gets LoadResult.BUSY back immediately instead of blocking or loading twice.
    """

    def __init__(self, model_type: ModelType, loader: Callable[[], Any]):
        """
        Args:
            model_type: The enum identifier for the model.
            loader: A function that returns the loaded model object.
                    Only called when the model needs to be loaded.
        """
        self.model_type = model_type
        self._loader = loader
        self._load_lock = Lock()
        self._state_lock = Lock()
        self._state = ModelState.UNLOADED
        self._handle: Optional[Any] = None
        self.last_error: Optional[str] = None

    @property
    def state(self) -> ModelState:
        return self._state

    def is_loaded(self) -> bool:
        return self._state == ModelState.LOADED

    def load(self) -> LoadResult:
        # 1. Already loaded? Return immediately.
        if self.is_loaded():
            return LoadResult.ALREADY_LOADED

        # 2. Someone else is loading: report busy, never block.
        if not self._load_lock.acquire(blocking=False):
            self.last_error = "Model is already loading (concurrent load blocked)"
            return LoadResult.BUSY

        try:
            # Re-check: the previous holder may have finished the load.
            if self.is_loaded():
                return LoadResult.ALREADY_LOADED

            with self._state_lock:
                self._state = ModelState.LOADING

            logger.info(f"Loading {self.model_type.value} model...")
            try:
                handle = self._loader()
            except Exception as e:
                self.last_error = f"model load failed: {e}"
                logger.error(f"Failed to load {self.model_type.value}: {e}")
                with self._state_lock:
                    self._state = ModelState.UNLOADED
                    self._handle = None
                raise

            with self._state_lock:
                self._handle = handle
                self._state = ModelState.LOADED
            self.last_error = None
            logger.info(f"{self.model_type.value} model loaded.")
            return LoadResult.LOADED
        finally:
            self._load_lock.release()

    def ensure_loaded(self) -> Any:
        """Loads if needed and returns the handle. Raises ModelBusyError while another load runs."""
        if self.load() == LoadResult.BUSY:
            raise ModelBusyError(f"{self.model_type.value} model is already loading; retry shortly.")
        return self._handle

    def unload(self) -> None:
        """Drops the handle to free memory. No-op when nothing is loaded."""
        with self._load_lock:
            with self._state_lock:
                if self._handle is None:
                    self._state = ModelState.UNLOADED
                    return
                logger.info(f"Unloading {self.model_type.value} model...")
                handle = self._handle
                self._handle = None
                self._state = ModelState.UNLOADED

            release = getattr(handle, "delete", None)
            if callable(release):
                try:
                    release()
                except Exception as e:
                    logger.warning(f"Error releasing {self.model_type.value} model: {e}")
            del handle

        gc.collect()
        if torch.cuda.is_available():
            torch.cuda.empty_cache()
