"""Rendering of service result dictionaries as HTTP responses."""
from typing import Any, Dict

from fastapi.responses import JSONResponse

from sitetasks.core.exceptions import status_code_for


def respond(result: Dict[str, Any], success_status: int = 200) -> JSONResponse:
    """Send a result dict with the status its ``errorType`` implies."""
    if result.get("success"):
        return JSONResponse(status_code=success_status, content=result)
    return JSONResponse(status_code=status_code_for(result.get("errorType")), content=result)
