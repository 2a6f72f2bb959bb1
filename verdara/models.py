# verdara/models.py
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field
from typing_extensions import Literal


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(
        default_factory=list,
        description="Full conversation so far, oldest first.",
    )
    top_k: int = 3


class ChatReply(BaseModel):
    reply: str
    sources: List[int] = Field(
        default_factory=list,
        description="Catalog item ids used as context for the reply.",
    )


LogLevel = Literal["debug", "info", "warn", "warning", "error"]


class DiagnosticLog(BaseModel):
    level: LogLevel = "error"
    message: str
    stack: Optional[str] = None
    source: str = "frontend"
    metadata: Optional[Dict[str, Any]] = None
    url: Optional[str] = None
    user_agent: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("user_agent", "userAgent")
    )
    device_info: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("device_info", "deviceInfo")
    )
    session_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("session_id", "sessionId")
    )


class DiagnosticEntry(DiagnosticLog):
    id: int
    received_at: str
