"""
Data Models Module

This module defines Pydantic models for request/response validation
and data serialization throughout the gateway service.

Models are organized by functional area:
- Error envelope shared by every gateway-generated failure
- Share snapshot models (create request, stored record, read response)
- Bug report models
- Auth diagnostics and health models
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error envelope returned on 4xx/5xx responses generated by the gateway."""
    error: str = Field(..., description="Short error title")
    message: str = Field(..., description="Human-readable error message")


# ============================================================================
# Share Snapshot Models
# ============================================================================

class ShareRequest(BaseModel):
    """
    Request to snapshot a thread for public sharing.

    Fields are optional at the schema level so that missing values produce
    the gateway's 400 envelope instead of a validation error.
    """
    threadId: Optional[str] = Field(None, description="Thread to snapshot")
    apiUrl: Optional[str] = Field(None, description="Agent server holding the thread")
    assistantId: Optional[str] = Field(None, description="Assistant the thread belongs to")


class ShareRecord(BaseModel):
    """Stored share snapshot. Field names match the shared_threads table."""
    share_id: str = Field(..., description="Public share identifier (UUID4)")
    thread_id: str = Field(..., description="Original thread identifier")
    thread_data: Any = Field(..., description="Thread JSON as returned by the agent server")
    created_at: datetime = Field(..., description="Snapshot creation time (UTC)")
    expires_at: datetime = Field(..., description="Snapshot expiry time (UTC)")

    @classmethod
    def new(
        cls,
        share_id: str,
        thread_id: str,
        thread_data: Any,
        expiry_days: int,
        now: Optional[datetime] = None,
    ) -> "ShareRecord":
        created_at = now or datetime.now(timezone.utc)
        return cls(
            share_id=share_id,
            thread_id=thread_id,
            thread_data=thread_data,
            created_at=created_at,
            expires_at=created_at + timedelta(days=expiry_days),
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at < now


class ShareCreatedResponse(BaseModel):
    """Response returned after a snapshot is stored."""
    shareId: str
    shareUrl: str
    message: str = "Thread shared successfully"


class SharedThreadResponse(BaseModel):
    """Public view of a stored snapshot."""
    thread: Any
    shareId: str
    createdAt: datetime
    expiresAt: datetime


# ============================================================================
# Bug Report Models
# ============================================================================

class AgentMessage(BaseModel):
    """Agent message as sent by the chat client (only the fields we format)."""
    type: Optional[str] = Field(None, description="Message role (human, ai, tool, ...)")
    content: Union[str, List[Any], Dict[str, Any], None] = Field(None, description="Message content")


class BugReportRequest(BaseModel):
    """Bug report submitted from a thread view."""
    threadId: Optional[str] = None
    threadTitle: Optional[str] = None
    messageHistory: Optional[str] = Field(None, description="Pre-formatted message history")
    messages: Optional[List[AgentMessage]] = Field(None, description="Raw messages, formatted server-side")
    userEmail: Optional[str] = None


class BugReportResponse(BaseModel):
    success: bool
    message: str


# ============================================================================
# Auth Diagnostics Models
# ============================================================================

class AuthenticatedUser(BaseModel):
    """Identity returned by the identity provider for a bearer token."""
    id: str = Field(..., description="Identity provider user id")
    email: Optional[str] = Field(None, description="User email address")


class AuthTestResponse(BaseModel):
    success: bool = True
    user: AuthenticatedUser
    message: str = "Authentication successful"


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
