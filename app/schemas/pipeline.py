"""
Pydantic schemas for resolved pipeline state.
"""

from pydantic import BaseModel
from app.services.pipeline import PipelineState


class BadgeResponse(BaseModel):
    label: str
    color_class: str


class StageResponse(BaseModel):
    name: str
    description: str


class PipelineStateResponse(BaseModel):
    """Derived view of a candidate's position in the hiring pipeline."""
    step: int
    stage: StageResponse
    badge: BadgeResponse
    application_submitted: bool
    can_access_training: bool
    is_terminal: bool

    @classmethod
    def from_state(cls, state: PipelineState) -> "PipelineStateResponse":
        return cls(
            step=state.step,
            stage=StageResponse(name=state.stage.name, description=state.stage.description),
            badge=BadgeResponse(label=state.badge.label, color_class=state.badge.color_class),
            application_submitted=state.application_submitted,
            can_access_training=state.can_access_training,
            is_terminal=state.is_terminal,
        )


class WizardStep(BaseModel):
    id: int
    title: str
    state: str  # completed, current, pending, locked
