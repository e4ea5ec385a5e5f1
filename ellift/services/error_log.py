"""Client-side error reporting."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger()

MAX_STACK_CHARS = 500


class ClientErrorReport(BaseModel):
    """Error reported by the browser front end. All fields are optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: Optional[str] = None
    message: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    stack: Optional[str] = None


def log_client_error(report: ClientErrorReport) -> Dict[str, Any]:
    """Record a client error at error level.

    The stack trace is truncated to MAX_STACK_CHARS characters.
    """
    logger.error(
        "client_error_reported",
        reported_at=datetime.now(timezone.utc).isoformat(),
        url=report.url,
        message=report.message,
        user_agent=report.user_agent,
        stack=report.stack[:MAX_STACK_CHARS] if report.stack else None,
    )
    return {"logged": True}
