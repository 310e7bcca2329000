from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class ApiStatus(str, Enum):
    AVAILABLE = "available"
    NO_TOKEN = "no_token"
    UNREACHABLE = "unreachable"
    UNTESTED = "untested"


class StatusResponse(BaseModel):
    api_status: ApiStatus
    status_text: str
    workspace_id: str
    notices: List[str] = []


class TokenUpdate(BaseModel):
    api_token: Optional[str] = None
