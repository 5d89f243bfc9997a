"""JSON-RPC 2.0 envelope models.

Only the generic envelope shape is modelled here; method-specific params and
results stay opaque (Any). Three shapes exist:

    Request       {"jsonrpc", "id", "method", "params"?}
    Response      {"jsonrpc", "id" (nullable), "result" | "error"}
    Notification  {"jsonrpc", "method", "params"?}

Unknown top-level members are preserved so that the serialized size of a
parsed message matches what was observed on the wire.
"""

from __future__ import annotations

__all__ = [
    "JsonRpcMessage",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "RequestId",
    "message_to_dict",
    "parse_message",
    "serialized_size",
]

from typing import Annotated, Any, Literal, Mapping, Union

from mcp.types import ErrorData
from pydantic import BaseModel, ConfigDict, Discriminator, StrictInt, StrictStr, Tag, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from mcp_trace.exceptions import ValidationError

# Booleans and floats are rejected, never coerced to an id
RequestId = Union[StrictInt, StrictStr]


class JsonRpcRequest(BaseModel):
    """A call that expects a response carrying the same id."""

    model_config = ConfigDict(frozen=True, extra="allow")

    jsonrpc: Literal["2.0"]
    id: RequestId
    method: str
    params: Any = None


class JsonRpcResponse(BaseModel):
    """Result or error for an earlier request.

    Exactly one of the "result" and "error" members is present. An explicit
    "result": null counts as present; an "error" member must be an error
    object, so "error": null is rejected rather than read as "no error".
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    jsonrpc: Literal["2.0"]
    id: RequestId | None
    result: Any = None
    error: ErrorData | None = None

    @model_validator(mode="after")
    def result_xor_error(self) -> "JsonRpcResponse":
        has_result = "result" in self.model_fields_set
        has_error = "error" in self.model_fields_set
        if has_result == has_error:
            raise ValueError("response must carry exactly one of 'result' or 'error'")
        if has_error and self.error is None:
            raise ValueError("'error' must be an error object, not null")
        return self


class JsonRpcNotification(BaseModel):
    """A one-way message; never answered."""

    model_config = ConfigDict(frozen=True, extra="allow")

    jsonrpc: Literal["2.0"]
    method: str
    params: Any = None


def _message_kind(value: Any) -> str:
    """Pick the envelope shape: method+id is a request, method alone a notification."""
    if isinstance(value, Mapping):
        if "method" in value:
            return "request" if "id" in value else "notification"
        return "response"
    if isinstance(value, JsonRpcRequest):
        return "request"
    if isinstance(value, JsonRpcNotification):
        return "notification"
    return "response"


JsonRpcMessage = Annotated[
    Union[
        Annotated[JsonRpcRequest, Tag("request")],
        Annotated[JsonRpcResponse, Tag("response")],
        Annotated[JsonRpcNotification, Tag("notification")],
    ],
    Discriminator(_message_kind),
]

_message_adapter: TypeAdapter[Any] = TypeAdapter(JsonRpcMessage)


def parse_message(data: Mapping[str, Any] | BaseModel) -> JsonRpcRequest | JsonRpcResponse | JsonRpcNotification:
    """Validate a raw JSON-RPC envelope.

    Args:
        data: Decoded JSON object, or an already-parsed message.

    Returns:
        The matching message model.

    Raises:
        ValidationError: If the envelope is malformed.
    """
    if isinstance(data, (JsonRpcRequest, JsonRpcResponse, JsonRpcNotification)):
        return data
    try:
        return _message_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic("JSON-RPC message", e) from e


def message_to_dict(message: JsonRpcRequest | JsonRpcResponse | JsonRpcNotification) -> dict[str, Any]:
    """JSON-compatible dict of a message, omitting members that were never given."""
    return message.model_dump(mode="json", exclude_unset=True)


def serialized_size(message: JsonRpcRequest | JsonRpcResponse | JsonRpcNotification) -> int:
    """Byte length of the compact UTF-8 JSON serialization of a message."""
    return len(message.model_dump_json(exclude_unset=True).encode("utf-8"))
