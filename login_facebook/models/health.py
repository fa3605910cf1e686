"""Models for the service health endpoint."""

from datetime import datetime

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """
    Response model for the health check endpoint.
    """

    status: str = Field(..., description="Status of the server")
    version: str = Field(..., description="Version of the server")
    timestamp: datetime = Field(..., description="Current server timestamp in ISO 8601 format")
    installed: bool = Field(..., description="Whether the login role and identity field exist")
    users: int = Field(..., description="Number of users holding the Facebook login role")
