"""Wire messages exchanged between the refresh server and its clients."""

from __future__ import annotations

import datetime
import json
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

REFRESH_WATCH = "refreshWatch"
REFRESH_UNWATCH = "refreshUnwatch"
REFRESH_UPDATE = "refreshUpdate"

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

RequestId = Union[int, float, str]


class RefreshParams(BaseModel):
    directory: str


class Request(BaseModel):
    method: str
    params: Any = None
    id: Optional[RequestId] = None


class ErrorObject(BaseModel):
    code: int
    message: str
    data: Any = None


class Response(BaseModel):
    id: Optional[RequestId] = None
    result: Any = None
    error: Optional[ErrorObject] = Field(default=None)


def _default(value: Any) -> Any:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(payload: Any) -> str:
    """Serialize a message, rendering dates and models."""
    return json.dumps(payload, default=_default)


def notification(method: str, directory: str) -> str:
    """A ``refreshWatch``/``refreshUnwatch``/``refreshUpdate`` message."""
    return dumps({"method": method, "params": {"directory": directory}})


def error_response(request_id: Optional[RequestId], code: int, message: str, data: Any = None) -> str:
    return dumps(Response(id=request_id, error=ErrorObject(code=code, message=message, data=data)).model_dump())


def result_response(request_id: Optional[RequestId], result: Any) -> str:
    return dumps({"id": request_id, "result": result})
