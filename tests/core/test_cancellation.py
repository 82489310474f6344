import pytest

from voxredact.core.cancellation import CancellationToken
from voxredact.core.common.enums import RecordingState
from voxredact.core.errors import PipelineCancelledError


def test_cancel_runs_callbacks_once():
    token = CancellationToken()
    calls = []
    token.on_cancel(lambda: calls.append("closed"))

    assert not token.cancelled
    token.cancel()
    token.cancel()

    assert token.cancelled
    assert calls == ["closed"]


def test_callback_registered_after_cancel_runs_immediately():
    token = CancellationToken()
    token.cancel()
    calls = []
    token.on_cancel(lambda: calls.append(1))
    assert calls == [1]


def test_unregistered_callback_is_not_called():
    token = CancellationToken()
    calls = []
    unregister = token.on_cancel(lambda: calls.append(1))
    unregister()
    token.cancel()
    assert calls == []


def test_failing_callback_does_not_stop_others():
    token = CancellationToken()
    calls = []

    def boom():
        raise RuntimeError("already closed")

    token.on_cancel(boom)
    token.on_cancel(lambda: calls.append(1))
    token.cancel()
    assert calls == [1]


def test_raise_if_cancelled():
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel()
    with pytest.raises(PipelineCancelledError, match="Processing cancelled"):
        token.raise_if_cancelled()


@pytest.mark.parametrize("src, dst, allowed", [
    (RecordingState.PENDING, RecordingState.TRANSCRIBING, True),
    (RecordingState.PENDING, RecordingState.ANONYMIZING, True),
    (RecordingState.TRANSCRIBING, RecordingState.PROCESSING, True),
    (RecordingState.ANONYMIZING, RecordingState.DONE, True),
    (RecordingState.PROCESSING, RecordingState.ERROR, True),
    (RecordingState.PROCESSING, RecordingState.TRANSCRIBING, False),
    (RecordingState.ANONYMIZING, RecordingState.ANONYMIZING, False),
    (RecordingState.DONE, RecordingState.ERROR, False),
    (RecordingState.ERROR, RecordingState.PENDING, False),
])
def test_recording_state_transitions(src, dst, allowed):
    assert RecordingState.can_transition(src, dst) is allowed
