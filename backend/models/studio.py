from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum

def _strip_required(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value

class StudioMode(str, Enum):
    EDITOR = "editor"
    GENERATOR = "generator"

class StyleVariant(str, Enum):
    FLAT = "2d"        # flat / technical blueprint
    RENDERED = "3d"    # three-dimensional rendered blueprint

class WorkflowStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

class ErrorKind(str, Enum):
    VALIDATION = "validation"
    READ = "read"
    GENERATION = "generation"

class ResultOutcome(str, Enum):
    IMAGE = "image"
    ABSENT = "absent"
    FAILURE = "failure"

class ImagePayload(BaseModel):
    data: str  # Base64 encoded image bytes
    mime_type: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

class EditRequest(BaseModel):
    image: ImagePayload
    instruction: str

    @field_validator("instruction")
    @classmethod
    def instruction_not_blank(cls, value: str) -> str:
        return _strip_required(value, "instruction")

class GenerationRequest(BaseModel):
    description: str
    style: StyleVariant = StyleVariant.FLAT

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        return _strip_required(value, "description")

class OperationResult(BaseModel):
    """Outcome of one remote call: an image, no image, or a failure reason."""
    outcome: ResultOutcome
    image: Optional[ImagePayload] = None
    error: Optional[str] = None

    @classmethod
    def from_image(cls, image: ImagePayload) -> "OperationResult":
        return cls(outcome=ResultOutcome.IMAGE, image=image)

    @classmethod
    def absent(cls) -> "OperationResult":
        return cls(outcome=ResultOutcome.ABSENT)

    @classmethod
    def failure(cls, reason: str) -> "OperationResult":
        return cls(outcome=ResultOutcome.FAILURE, error=reason)

class EditorState(BaseModel):
    source_image: Optional[ImagePayload] = None
    source_filename: Optional[str] = None
    prompt: str = ""
    edited_image: Optional[ImagePayload] = None
    status: WorkflowStatus = WorkflowStatus.IDLE
    last_outcome: Optional[ResultOutcome] = None

class GeneratorState(BaseModel):
    prompt: str = ""
    style: StyleVariant = StyleVariant.FLAT
    generated_image: Optional[ImagePayload] = None
    status: WorkflowStatus = WorkflowStatus.IDLE
    last_outcome: Optional[ResultOutcome] = None

class StudioState(BaseModel):
    session_id: str
    mode: StudioMode = StudioMode.EDITOR
    is_loading: bool = False
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    editor: EditorState = Field(default_factory=EditorState)
    generator: GeneratorState = Field(default_factory=GeneratorState)

class PromptUpdateRequest(BaseModel):
    prompt: str

class StyleUpdateRequest(BaseModel):
    style: StyleVariant

class ModeSwitchRequest(BaseModel):
    mode: StudioMode

class EditSubmitRequest(BaseModel):
    prompt: Optional[str] = None

class BlueprintSubmitRequest(BaseModel):
    prompt: Optional[str] = None
    style: Optional[StyleVariant] = None

class StudioStateResponse(BaseModel):
    success: bool
    state: Optional[StudioState] = None
    error: Optional[str] = None
