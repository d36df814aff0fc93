from dataclasses import dataclass
from typing import Optional, Literal

# Labels produced by the coarse classification stage
Kind = Literal["plant", "fungus"]
Label = Literal["plant", "fungus", "else"]

# Errors
class PipelineError(Exception):
    """Base class for failures of the classification pipeline."""

class ImageValidationError(PipelineError):
    """The request carried no usable image payload."""

class InferenceError(PipelineError):
    """Any failure reported by the external vision-inference capability."""

# Input types
@dataclass
class ImageUpload:
    content: bytes
    media_type: str
    filename: Optional[str] = None

# Stage outputs
@dataclass
class ClassificationResult:
    label: Label
    raw_text: str

    @property
    def kind(self) -> Optional[Kind]:
        return None if self.label == "else" else self.label

    @classmethod
    def from_text(cls, text: str) -> "ClassificationResult":
        lowered = text.lower()
        # "plant" is checked first so it wins when both words appear
        if "plant" in lowered:
            return cls(label="plant", raw_text=text)
        if "fungus" in lowered:
            return cls(label="fungus", raw_text=text)
        return cls(label="else", raw_text=text)

@dataclass
class DetailedIdentification:
    kind: Kind
    raw_text: str

# Final output
@dataclass
class PipelineOutcome:
    initial_classification: str
    detailed_classification: Optional[str] = None
