"""Notification models shared by delivery sinks."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PermissionStatus(str, Enum):
    """Permission to deliver notifications to the user."""

    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"  # Not asked yet


class NotificationConfig(BaseModel):
    """A single alert to render."""

    title: str
    body: Optional[str] = None
    icon: Optional[str] = None
    tag: Optional[str] = Field(default=None, description="Alerts with the same tag replace each other")
    data: Dict[str, Any] = Field(default_factory=dict)
    require_interaction: bool = False
    silent: bool = False
