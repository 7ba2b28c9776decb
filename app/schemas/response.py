"""
Response envelope shared by every endpoint:

    {"success": true, "status_code": 200, "message": "...", "data": {...}}
"""

from typing import Any, Optional
from pydantic import BaseModel


class ApiResponse(BaseModel):
    success: bool = True
    status_code: int = 200
    message: str = ""
    data: Optional[Any] = None


def _plain(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_plain(item) for item in data]
    return data


def ok(data: Any = None, message: str = "", status_code: int = 200) -> ApiResponse:
    return ApiResponse(success=True, status_code=status_code, message=message, data=_plain(data))


def error_body(status_code: int, message: str, data: Any = None) -> dict:
    return ApiResponse(success=False, status_code=status_code, message=message, data=data).model_dump(mode="json")
