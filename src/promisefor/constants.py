"""Default context labels and step kinds shared across promisefor."""

from __future__ import annotations

from typing import Final, Literal

StepType = Literal["initialization", "transform", "pipe"]

INITIALIZATION: Final[StepType] = "initialization"
TRANSFORM: Final[StepType] = "transform"
PIPE: Final[StepType] = "pipe"

# Step index used for the producer that seeds a pipeline.
INITIAL_STEP_INDEX: Final[int] = -1

DEFAULT_RESOLVE_CONTEXT: Final[str] = "Error occurred during promise resolution"
DEFAULT_POST_PROCESS_CONTEXT: Final[str] = "Post-processing failed"
DEFAULT_PIPELINE_CONTEXT: Final[str] = "Pipeline initialization"
DEFAULT_NORMALIZE_CONTEXT: Final[str] = "Error occurred"

DEFAULT_STATUS_CODE: Final[int] = 500
