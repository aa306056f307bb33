# module backend.utils.responses
"""Enveloppe JSON commune: {success, message, data?}."""
from typing import Any, Dict, Optional

def ok(message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body

def fail(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}
