"""Pydantic models for tool input validation.

The JSON schema of each model is what the language model sees as the tool's
``input_schema``.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TechnologyCategory = Literal["frontend", "backend", "database", "devops", "other", "all"]
ThemeChoice = Literal["light", "dark", "toggle"]


class EmptyInput(BaseModel):
    """Input model for tools that take no parameters."""

    model_config = ConfigDict(extra="ignore")


# ============================================================================
# Server tools
# ============================================================================


class GetExperienceInput(BaseModel):
    """Input model for the work experience lookup."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    query: str | None = Field(
        default=None,
        description="Optional search term to filter experience",
        max_length=200,
    )


class GetTechnologiesInput(BaseModel):
    """Input model for the technology lookup."""

    model_config = ConfigDict(extra="ignore")

    category: TechnologyCategory | None = Field(
        default=None,
        description="Filter by technology category",
    )


# ============================================================================
# Client tools (executed in the browser)
# ============================================================================


class SetThemeInput(BaseModel):
    """Input model for switching the site theme."""

    model_config = ConfigDict(extra="forbid")

    theme: ThemeChoice = Field(
        ...,
        description=(
            "The theme to set: 'light' for light mode, 'dark' for dark mode, "
            "or 'toggle' to switch between them"
        ),
    )


class CopyToClipboardInput(BaseModel):
    """Input model for copying text to the visitor's clipboard."""

    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., description="The text to copy to clipboard")
    label: str | None = Field(
        default=None,
        description="A friendly label for what was copied (e.g., 'email address')",
    )
