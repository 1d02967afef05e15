"""
Uniform response envelope returned by every console action.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ResponseStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class ResponseEnvelope(BaseModel):
    """Outcome of a backend-facing operation.

    ``data`` is only meaningful when ``status`` is SUCCESS; read it through
    ``payload`` when the status is not already known.
    """

    status: ResponseStatus
    message: str = ""
    data: Any = None
    count: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status == ResponseStatus.SUCCESS

    @property
    def payload(self) -> Any:
        return self.data if self.is_success else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the wire, leaving ``count`` out when unset."""
        body = self.model_dump(mode="json")
        if body["count"] is None:
            body.pop("count")
        return body


def parse_server_response(status: ResponseStatus, message: Optional[str] = None,
                          data: Any = None, count: Optional[int] = None) -> ResponseEnvelope:
    """Build an envelope, normalizing a missing message to an empty string."""
    return ResponseEnvelope(status=status, message=message or "", data=data, count=count)


def success(message: Optional[str] = None, data: Any = None, count: Optional[int] = None) -> ResponseEnvelope:
    return parse_server_response(ResponseStatus.SUCCESS, message, data, count)


def error(message: Optional[str] = None, data: Any = None) -> ResponseEnvelope:
    return parse_server_response(ResponseStatus.ERROR, message, data)
