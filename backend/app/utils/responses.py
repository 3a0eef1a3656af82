"""Success envelopes shared by all endpoints: {success: true, data} or {success: true, message}"""
from typing import Any, Optional, Dict


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if data is None and message is None:
        body["data"] = None
    return body
