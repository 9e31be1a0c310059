"""Shared Pydantic schemas for the DLVRIT backend."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "dlvrit-backend"


class ErrorResponse(BaseModel):
    error: str
