"""
Pydantic request/response schemas for the Name Screening API

Field names follow the JSON documents the service reads and writes
(camelCase), exposed through aliases.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ProcessRequest(BaseModel):
    """Optional body for POST /process/{user_id}/{request_id}.

    When it carries a full name or a non-empty alias list it replaces the
    request's input.json.
    """
    request_id: Any = Field(
        default=None,
        alias="requestId",
        description="Request identifier reported in the output (defaults to the path id)"
    )
    full_name: Any = Field(
        default=None,
        alias="fullName",
        description="Full name to screen; non-string values screen as an empty name"
    )
    aliases: Optional[List[Any]] = Field(
        default=None,
        max_length=100,
        description="Other names the subject is known by"
    )
    country: Optional[str] = Field(default=None, description="Country (informational)")

    model_config = {"populate_by_name": True}


class BestMatch(BaseModel):
    """Best watchlist match in the consolidated view."""
    id: Any = Field(..., description="Watchlist entry id")
    name: Optional[str] = Field(default=None, description="Watchlist entry name")
    score: float = Field(..., ge=0, le=1, description="Similarity score (0-1, rounded)")


class ConsolidatedResult(BaseModel):
    """Consolidated screening summary."""
    request_id: Any = Field(default=None, alias="requestId")
    screening_result: str = Field(
        ...,
        alias="screeningResult",
        description="EXACT_MATCH, POSSIBLE_MATCH or NO_MATCH"
    )
    best_match: Optional[BestMatch] = Field(default=None, alias="bestMatch")
    timestamp: str = Field(..., description="Generation timestamp (ISO 8601)")

    model_config = {"populate_by_name": True}


class ProcessResponse(BaseModel):
    """Response schema for a processed request."""
    success: bool = Field(default=True)
    output_path: Optional[str] = Field(default=None, alias="outputPath")
    output: Optional[ConsolidatedResult] = Field(
        default=None,
        description="Consolidated result; null when existing output was reused"
    )

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Standardized error response format."""
    success: bool = Field(default=False)
    error: str = Field(..., description="Human-readable error message")


class HealthResponse(BaseModel):
    """Response schema for health check endpoint."""
    status: str = Field(default="healthy", description="Service status")
    watchlist_file: str = Field(..., description="Configured watchlist path")
    watchlist_present: bool = Field(..., description="Whether the watchlist file exists")
    algorithm_version: str = Field(..., description="Algorithm version")
