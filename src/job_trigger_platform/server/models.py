"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TriggerJobRequest(BaseModel):
    parameters: dict[str, str] = Field(default_factory=dict)


class ApiJobParameter(BaseModel):
    name: str
    displayName: str
    description: str | None = None
    isRequired: bool
    type: str
    defaultValue: str | None = None
    possibleValues: list[str] | None = None


class ApiJob(BaseModel):
    jobName: str
    description: str | None = None
    parameters: list[ApiJobParameter]


class ApiPlugin(ApiJob):
    requiredRoles: list[str]
