"""
HTTP request bodies.

Field names follow the mobile client's camelCase JSON. Range checks live
in the kitchen core so every entry point (HTTP, voice) shares them.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StartCookingRequest(_CamelModel):
    """Start a cooking session for recipe R (optionally on device D)."""

    recipe_name: str = Field(..., alias="recipeName", min_length=1)
    estimated_minutes: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("estimatedMinutes", "estimatedTime"),
    )
    instructions: Optional[str] = None
    ingredients: list[str] = Field(default_factory=list)
    method: str = ""
    device_id: Optional[str] = Field(None, alias="deviceId")
    session_id: Optional[str] = Field(None, alias="sessionId")


class RecipeStepsRequest(_CamelModel):
    """Start a session from an explicit step list."""

    recipe_name: str = Field("Custom recipe", alias="recipeName")
    steps: Optional[list[Any]] = None
    device_id: Optional[str] = Field(None, alias="deviceId")


class PreheatRequest(_CamelModel):
    temperature: Optional[float] = None
    mode: str = "bake"
    unit: str = "C"


class PressureRequest(_CamelModel):
    pressure: Optional[float] = None
    duration: Optional[float] = None


class VoiceCommandRequest(_CamelModel):
    command: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)
