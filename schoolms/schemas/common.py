# schoolms/schemas/common.py
from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar('T')


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "Success"
    data: Optional[T] = None


class RequestContext(BaseModel):
    """Caller details carried into audit records."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def success_response(data: Any = None, message: str = "Success") -> dict:
    return {"success": True, "message": message, "data": data}
