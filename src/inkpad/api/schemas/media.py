"""Media ingestion DTOs — pure Pydantic, shared by the API and the HTTP client."""
from __future__ import annotations

from pydantic import BaseModel


class IngestResponse(BaseModel):
    url: str
    filename: str
    message: str = "File uploaded successfully"


class ErrorResponse(BaseModel):
    error: str
