"""
Pydantic schemas for the service endpoints.

These schemas define the API contract. No business logic belongs here.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    maintenance: bool = Field(description="True while maintenance mode is on")
