"""Tests for envelope parsing, trace event derivation and filters."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from mcp_trace.exceptions import ValidationError
from mcp_trace.models import (
    Direction,
    EventFilter,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    Protocol,
    RequestResponsePair,
    SessionState,
    create_trace_event,
    message_to_dict,
    parse_message,
)
from rpc_messages import BASE_TIME, error, notification, request, result


# =============================================================================
# Envelope parsing
# =============================================================================


class TestParseMessage:
    """Dispatch and validation of raw JSON-RPC envelopes."""

    def test_method_and_id_is_request(self):
        """method + id parses as a request with params kept."""
        # Act
        message = parse_message(request(7, "tools/call", name="echo"))

        # Assert
        assert isinstance(message, JsonRpcRequest)
        assert message.id == 7
        assert message.method == "tools/call"
        assert message.params == {"name": "echo"}

    def test_method_without_id_is_notification(self):
        """method without id parses as a notification."""
        message = parse_message(notification("notifications/progress"))

        assert isinstance(message, JsonRpcNotification)
        assert message.method == "notifications/progress"

    def test_result_is_response(self):
        """A result member makes a success response."""
        message = parse_message(result(7, {"tools": []}))

        assert isinstance(message, JsonRpcResponse)
        assert message.result == {"tools": []}
        assert message.error is None

    def test_error_is_response(self):
        """An error member makes an error response with ErrorData."""
        message = parse_message(error(7, code=-32602, message="Invalid params"))

        assert isinstance(message, JsonRpcResponse)
        assert message.error is not None
        assert message.error.code == -32602
        assert message.error.message == "Invalid params"

    def test_response_id_may_be_null(self):
        """Responses to unparseable requests carry a null id."""
        message = parse_message(error(None, code=-32700, message="Parse error"))

        assert isinstance(message, JsonRpcResponse)
        assert message.id is None

    def test_string_and_integer_ids_keep_their_type(self):
        """Ids are never coerced between int and str."""
        assert parse_message(request("abc")).id == "abc"
        assert parse_message(request(1)).id == 1
        assert parse_message(request("1")).id == "1"

    def test_explicit_null_result_counts_as_present(self):
        """An explicit null result is a valid success response and survives dumping."""
        message = parse_message({"jsonrpc": "2.0", "id": 1, "result": None})

        assert isinstance(message, JsonRpcResponse)
        assert message_to_dict(message) == {"jsonrpc": "2.0", "id": 1, "result": None}

    def test_already_parsed_message_is_returned_as_is(self):
        """Parsed models pass through without revalidation."""
        message = JsonRpcRequest(jsonrpc="2.0", id=1, method="ping")

        assert parse_message(message) is message

    @pytest.mark.parametrize(
        "raw",
        [
            {"jsonrpc": "2.0", "id": 1},  # neither result nor error
            {"jsonrpc": "2.0", "id": 1, "result": {}, "error": {"code": 1, "message": "x"}},
            {"jsonrpc": "2.0", "id": 1, "result": 1, "error": None},  # error member present
            {"jsonrpc": "2.0", "id": 1, "error": None},
            {"jsonrpc": "1.0", "id": 1, "method": "ping"},  # wrong version
            {"id": 1, "method": "ping"},  # missing version
            {"jsonrpc": "2.0", "id": None, "method": "ping"},  # request id cannot be null
            {"jsonrpc": "2.0", "id": True, "method": "ping"},  # boolean id
            {"jsonrpc": "2.0", "id": 1.5, "method": "ping"},  # float id
            {"jsonrpc": "2.0", "id": False, "result": {}},
            {"jsonrpc": "2.0", "id": 1, "error": {"message": "no code"}},
        ],
    )
    def test_rejects_malformed_envelopes(self, raw):
        """Malformed envelopes raise ValidationError with field details."""
        with pytest.raises(ValidationError) as exc_info:
            parse_message(raw)

        assert exc_info.value.subject == "JSON-RPC message"
        assert exc_info.value.errors


# =============================================================================
# TraceEvent factory
# =============================================================================


class TestCreateTraceEvent:
    """Derivation of method, request_id and size."""

    def test_request_derives_method_and_request_id(self):
        """Requests fill both method and request_id."""
        # Act
        event = create_trace_event("s1", Direction.OUTBOUND, request(1, "tools/list"))

        # Assert
        assert event.session_id == "s1"
        assert event.direction == Direction.OUTBOUND
        assert event.method == "tools/list"
        assert event.request_id == 1
        assert event.protocol == Protocol.MCP

    def test_response_has_request_id_but_no_method(self):
        """Responses carry the id but no method."""
        event = create_trace_event("s1", "inbound", result(1))

        assert event.method is None
        assert event.request_id == 1

    def test_notification_has_method_but_no_request_id(self):
        """Notifications carry a method but no id."""
        event = create_trace_event("s1", "outbound", notification())

        assert event.method == "notifications/initialized"
        assert event.request_id is None

    def test_null_response_id_gives_no_request_id(self):
        """A null response id leaves request_id unset."""
        event = create_trace_event("s1", "inbound", error(None))

        assert event.request_id is None

    def test_boolean_id_is_rejected_not_coerced(self):
        """An id of true never becomes request id 1."""
        with pytest.raises(ValidationError):
            create_trace_event("s1", "outbound", {"jsonrpc": "2.0", "id": True, "method": "x"})

    def test_size_is_compact_utf8_byte_length(self):
        """size counts UTF-8 bytes of the compact JSON form."""
        # Arrange
        raw = {"jsonrpc": "2.0", "id": 1, "method": "echo", "params": {"text": "héllo"}}
        expected = len(json.dumps(raw, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))

        # Act
        event = create_trace_event("s1", "outbound", raw)

        # Assert
        assert event.size == expected

    def test_ids_are_unique(self):
        """Every event gets its own id, even for identical payloads."""
        first = create_trace_event("s1", "outbound", request(1))
        second = create_trace_event("s1", "outbound", request(1))

        assert first.id != second.id

    def test_timestamp_defaults_to_now_utc(self):
        """Omitted timestamp is the current UTC time."""
        before = datetime.now(timezone.utc)
        event = create_trace_event("s1", "outbound", request(1))
        after = datetime.now(timezone.utc)

        assert before <= event.timestamp <= after

    def test_naive_timestamp_is_treated_as_utc(self):
        """Naive timestamps are interpreted as UTC."""
        event = create_trace_event("s1", "outbound", request(1), timestamp=datetime(2025, 1, 1, 12, 0))

        assert event.timestamp == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_rejects_invalid_direction(self):
        """Direction outside inbound/outbound raises ValueError."""
        with pytest.raises(ValueError):
            create_trace_event("s1", "sideways", request(1))

    def test_rejects_invalid_payload(self):
        """Malformed payload raises ValidationError."""
        with pytest.raises(ValidationError):
            create_trace_event("s1", "outbound", {"jsonrpc": "2.0"})

    def test_event_is_immutable(self):
        """Trace events are frozen once created."""
        event = create_trace_event("s1", "outbound", request(1))

        with pytest.raises(PydanticValidationError):
            event.method = "other"

    def test_has_error(self):
        """Only error responses report has_error."""
        assert create_trace_event("s1", "inbound", error(1)).has_error is True
        assert create_trace_event("s1", "inbound", result(1)).has_error is False
        assert create_trace_event("s1", "outbound", request(1)).has_error is False


# =============================================================================
# Read-side shapes
# =============================================================================


class TestRequestResponsePair:
    """Latency computation."""

    def test_latency_is_response_minus_request(self):
        """latency_ms is response.timestamp - request.timestamp."""
        # Arrange
        req = create_trace_event("s1", "outbound", request(1), timestamp=BASE_TIME)
        resp = create_trace_event("s1", "inbound", result(1), timestamp=BASE_TIME + timedelta(milliseconds=42))

        # Act
        pair = RequestResponsePair(request=req, response=resp)

        # Assert
        assert pair.latency_ms == pytest.approx(42.0)

    def test_latency_may_be_negative(self):
        """Out-of-order capture yields negative latency."""
        req = create_trace_event("s1", "outbound", request(1), timestamp=BASE_TIME)
        resp = create_trace_event("s1", "inbound", result(1), timestamp=BASE_TIME - timedelta(milliseconds=3))

        assert RequestResponsePair(request=req, response=resp).latency_ms == pytest.approx(-3.0)

    def test_no_latency_without_response(self):
        """Pending requests have no latency."""
        req = create_trace_event("s1", "outbound", request(1))

        assert RequestResponsePair(request=req).latency_ms is None


class TestEventFilter:
    """Single-event matching; store-level queries are tested with the store."""

    def test_empty_filter_matches_everything(self):
        """No constraints match any event."""
        event = create_trace_event("s1", "outbound", request(1))

        assert EventFilter().matches(event)

    def test_time_bounds_are_inclusive(self):
        """Events exactly at either bound match."""
        event = create_trace_event("s1", "outbound", request(1), timestamp=BASE_TIME)

        assert EventFilter(start_time=BASE_TIME).matches(event)
        assert EventFilter(end_time=BASE_TIME).matches(event)
        assert not EventFilter(start_time=BASE_TIME + timedelta(microseconds=1)).matches(event)
        assert not EventFilter(end_time=BASE_TIME - timedelta(microseconds=1)).matches(event)

    def test_direction_accepts_string(self):
        """direction may be given as its string value."""
        event = create_trace_event("s1", "inbound", result(1))

        assert EventFilter(direction="inbound").matches(event)
        assert not EventFilter(direction="outbound").matches(event)


class TestSessionState:
    """SessionState enum behavior."""

    def test_terminal_states(self):
        """CLOSED and ERROR are the only terminal states."""
        assert {s for s in SessionState if s.is_terminal} == {SessionState.CLOSED, SessionState.ERROR}

    def test_compares_equal_to_wire_value(self):
        """States compare equal to their string values."""
        assert SessionState.ACTIVE == "ACTIVE"
