"""Test tool composition through delegates, stage by stage."""
import json

import pytest

from compute_tools.common.errors import CompositionError, ErrorKind
from compute_tools.common.models import TwoPointInput
from compute_tools.composition.delegate import (
    STAGE_CALL,
    STAGE_PARSE_PAYLOAD,
    STAGE_PARSE_RESPONSE,
    STAGE_SERIALIZE,
    Delegate,
    InProcessDelegate,
    RemoteDelegate,
)
from compute_tools.tools import basic_math
from compute_tools.tools.catalog import default_registry


class CannedDelegate(Delegate):
    """Delegate answering every call with a fixed raw response."""

    def __init__(self, raw: str):
        self.raw = raw
        self.sent = []

    def _send(self, body: str) -> str:
        self.sent.append(json.loads(body))
        return self.raw


class BrokenDelegate(Delegate):
    """Delegate whose transport always fails."""

    def _send(self, body: str) -> str:
        raise ConnectionRefusedError("connection refused")


def _envelope(payload, is_error: bool = False) -> str:
    return json.dumps({"content": [{"type": "text", "text": json.dumps(payload)}], "is_error": is_error})


POINTS = TwoPointInput(x1=0, y1=0, x2=3, y2=4)


def test_in_process_delegate_matches_direct_call() -> None:
    """Composing through the delegate gives the same distance as the direct call."""
    delegate = InProcessDelegate(default_registry())
    composed = basic_math.distance_2d(POINTS, delegate=delegate)
    direct = basic_math.distance_2d(POINTS)
    assert composed.distance == direct.distance == 5.0


def test_delegate_receives_absolute_legs() -> None:
    """The nested request carries the absolute deltas as legs."""
    delegate = CannedDelegate(_envelope({"hypotenuse": 5.0}))
    basic_math.distance_2d(TwoPointInput(x1=3, y1=4, x2=0, y2=0), delegate=delegate)
    assert delegate.sent == [{"tool": "pythagorean", "arguments": {"a": 3.0, "b": 4.0}}]


def test_call_returns_payload() -> None:
    """A successful call returns the decoded nested payload."""
    payload = InProcessDelegate(default_registry()).call("add", {"a": 1, "b": 2})
    assert payload["result"] == 3.0


def test_serialize_stage() -> None:
    """Arguments that cannot be encoded fail before anything is sent."""
    delegate = CannedDelegate(_envelope({}))
    with pytest.raises(CompositionError) as exc_info:
        delegate.call("pythagorean", {"a": object()})
    assert exc_info.value.stage == STAGE_SERIALIZE
    assert delegate.sent == []


def test_call_stage_transport_failure() -> None:
    """A transport failure is reported at the call stage."""
    with pytest.raises(CompositionError) as exc_info:
        basic_math.distance_2d(POINTS, delegate=BrokenDelegate())
    assert exc_info.value.stage == STAGE_CALL
    assert exc_info.value.kind is ErrorKind.COMPOSITION_ERROR
    assert exc_info.value.message.startswith("Error calling pythagorean tool")


def test_call_stage_error_payload() -> None:
    """An error payload from the delegate tool surfaces as a composition error."""
    delegate = CannedDelegate(_envelope({"error": "Triangle legs must be non-negative"}, is_error=True))
    with pytest.raises(CompositionError) as exc_info:
        delegate.call("pythagorean", {"a": 1, "b": 1})
    assert exc_info.value.stage == STAGE_CALL
    assert "Triangle legs must be non-negative" in exc_info.value.message


def test_parse_response_stage() -> None:
    """A response that is not an envelope fails at the parse response stage."""
    with pytest.raises(CompositionError) as exc_info:
        basic_math.distance_2d(POINTS, delegate=CannedDelegate("not an envelope"))
    assert exc_info.value.stage == STAGE_PARSE_RESPONSE


@pytest.mark.parametrize(
    "raw",
    [
        json.dumps({"content": [{"type": "text", "text": "{broken"}], "is_error": False}),
        _envelope([1, 2, 3]),
        _envelope({"hypot": 5.0}),
        _envelope({"hypotenuse": "five"}),
    ],
)
def test_parse_payload_stage(raw: str) -> None:
    """A nested payload that is not JSON or lacks the hypotenuse fails at the last stage."""
    with pytest.raises(CompositionError) as exc_info:
        basic_math.distance_2d(POINTS, delegate=CannedDelegate(raw))
    assert exc_info.value.stage == STAGE_PARSE_PAYLOAD


def test_composition_error_through_registry() -> None:
    """Through the registry, a failed composition is an error payload."""
    registry = default_registry(BrokenDelegate())
    response = registry.invoke("distance_2d", {"x1": 0, "y1": 0, "x2": 3, "y2": 4})
    assert response.is_error
    assert response.payload()["error"].startswith("Error calling pythagorean tool")


def test_remote_delegate_unreachable_server() -> None:
    """A RemoteDelegate pointed at a closed port fails at the call stage."""
    delegate = RemoteDelegate(host="127.0.0.1", port=1)
    with pytest.raises(CompositionError) as exc_info:
        delegate.call("pythagorean", {"a": 3, "b": 4})
    assert exc_info.value.stage == STAGE_CALL


def test_remote_delegate_uses_client() -> None:
    """RemoteDelegate sends the serialized request through its client."""
    delegate = RemoteDelegate(host="127.0.0.1", port=9100)

    class FakeClient:
        host, port = "127.0.0.1", 9100

        def __init__(self):
            self.sent = []

        def send_raw(self, body: str) -> str:
            self.sent.append(json.loads(body))
            return _envelope({"hypotenuse": 5.0})

    delegate.client = FakeClient()
    result = basic_math.distance_2d(POINTS, delegate=delegate)
    assert result.distance == 5.0
    assert delegate.client.sent[0]["tool"] == "pythagorean"
    assert "RemoteDelegate" in result.calculation_steps[-1]
