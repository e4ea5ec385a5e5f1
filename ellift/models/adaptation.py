"""Adaptation data models.

Defines the request submitted by an educator, the normalized result returned
by any backend, and the dispatch policy/outcome used by the controller.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MaterialType(str, Enum):
    """Kind of classroom material being adapted."""

    DO_NOW = "do-now"
    QUIZ = "quiz"
    CLASSWORK = "classwork"
    HOMEWORK = "homework"


class ProficiencyLevel(str, Enum):
    """WIDA English language proficiency level."""

    ENTERING = "entering"
    EMERGING = "emerging"
    DEVELOPING = "developing"
    EXPANDING = "expanding"
    BRIDGING = "bridging"
    REACHING = "reaching"


class BackendKind(str, Enum):
    """Which model backend a request is routed to."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class AdaptationRequest(BaseModel):
    """One educator adaptation request.

    Frozen once constructed; field aliases match the JSON body sent by the
    browser form so the model can be validated straight from a request.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: str = Field(..., min_length=1)
    material_type: MaterialType = Field(..., alias="materialType")
    subject: str = Field(..., min_length=1, max_length=200)
    grade_level: Optional[str] = Field(default=None, alias="gradeLevel")
    proficiency_level: ProficiencyLevel = Field(..., alias="proficiencyLevel")
    learning_objectives: str = Field(default="", alias="learningObjectives")
    bilingual_support: bool = Field(default=False, alias="bilingualSupport")
    native_language: Optional[str] = Field(default=None, alias="nativeLanguage")
    max_output_tokens: int = Field(
        default=3000, ge=1, le=32768, alias="maxOutputTokens"
    )

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content cannot be blank")
        return v

    @field_validator("grade_level", "native_language")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class AdaptationResult(BaseModel):
    """Normalized generation result, identical in shape for every backend."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    input_tokens: int = Field(default=0, ge=0, alias="inputTokens")
    output_tokens: int = Field(default=0, ge=0, alias="outputTokens")

    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output)."""
        return self.input_tokens + self.output_tokens


# Role-tagged message content is either plain text or a list of content
# blocks (e.g. a base64 document block followed by a text instruction).
MessageContent = Union[str, List[Dict[str, Any]]]


class ChatMessage(BaseModel):
    """A single role-tagged message sent to a backend."""

    role: Literal["user", "assistant"]
    content: MessageContent

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: MessageContent) -> MessageContent:
        if isinstance(v, str) and not v.strip():
            raise ValueError("message content cannot be blank")
        if isinstance(v, list) and not v:
            raise ValueError("message content blocks cannot be empty")
        return v


class BackendPolicy(BaseModel):
    """Routing policy for one dispatch.

    Attributes:
        backend: Explicitly requested backend.
        max_tokens: Requested output-token budget.
        auto_route: Route to the secondary backend when the budget exceeds
            what the primary backend supports.
    """

    backend: BackendKind = BackendKind.PRIMARY
    max_tokens: int = Field(default=4096, ge=1)
    auto_route: bool = False


class DispatchOutcome(BaseModel):
    """Result of a dispatch plus where it came from."""

    result: AdaptationResult
    backend: BackendKind
    model: Optional[str] = None
    cached: bool = False

    def to_response(self) -> Dict[str, Any]:
        """Render the JSON body returned to HTTP callers."""
        return {
            "text": self.result.text,
            "inputTokens": self.result.input_tokens,
            "outputTokens": self.result.output_tokens,
            "backend": self.backend.value,
            "model": self.model,
            "cached": self.cached,
        }
