import threading

import pytest

from voxredact.core.errors import ModelBusyError
from voxredact.core.model_lifecycle.service import LocalModelService
from voxredact.core.model_lifecycle.types import LoadResult, ModelState, ModelType, Supported, Unsupported


class FakeModel:
    def __init__(self):
        self.deleted = False

    def delete(self):
        self.deleted = True


def test_load_is_idempotent():
    calls = []

    def loader():
        calls.append(1)
        return FakeModel()

    service = LocalModelService(ModelType.WHISPER, loader)
    assert service.state == ModelState.UNLOADED

    assert service.load() == LoadResult.LOADED
    assert service.load() == LoadResult.ALREADY_LOADED
    assert service.is_loaded()
    assert len(calls) == 1


def test_concurrent_load_reports_busy_without_blocking():
    started = threading.Event()
    release = threading.Event()
    calls = []

    def slow_loader():
        calls.append(1)
        started.set()
        release.wait(timeout=5)
        return FakeModel()

    service = LocalModelService(ModelType.WHISPER, slow_loader)
    results = []
    worker = threading.Thread(target=lambda: results.append(service.load()))
    worker.start()
    assert started.wait(timeout=5)

    # Second caller sees the load in flight
    assert service.state == ModelState.LOADING
    assert service.load() == LoadResult.BUSY
    with pytest.raises(ModelBusyError):
        service.ensure_loaded()

    release.set()
    worker.join(timeout=5)

    assert results == [LoadResult.LOADED]
    assert service.is_loaded()
    assert len(calls) == 1


def test_loader_failure_resets_state():
    attempts = []

    def flaky_loader():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("out of memory")
        return FakeModel()

    service = LocalModelService(ModelType.WHISPER, flaky_loader)

    with pytest.raises(RuntimeError):
        service.load()
    assert service.state == ModelState.UNLOADED
    assert "out of memory" in service.last_error

    assert service.load() == LoadResult.LOADED
    assert service.last_error is None


def test_unload_releases_handle():
    model = FakeModel()
    service = LocalModelService(ModelType.WHISPER, lambda: model)

    assert service.ensure_loaded() is model
    service.unload()

    assert model.deleted
    assert not service.is_loaded()
    assert service.state == ModelState.UNLOADED

    # Nothing loaded: no-op
    service.unload()
    assert service.state == ModelState.UNLOADED


def test_capability_variants():
    assert Supported("whisper small on cpu").is_supported
    unsupported = Unsupported("disabled")
    assert not unsupported.is_supported
    assert unsupported.reason == "disabled"
