from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InteractionKind(str, Enum):
    HOVER = "hover"
    FOCUS = "focus"
    CLICK = "click"
    RIGHT_CLICK = "right-click"
    DOUBLE_CLICK = "double-click"
    TYPE_TEXT = "type-text"
    SELECT_OPTION = "select-option"
    DRAG = "drag"
    SCROLL = "scroll"
    WAIT = "wait"


def parse_interaction_kind(raw: str | InteractionKind) -> Optional[InteractionKind]:
    if isinstance(raw, InteractionKind):
        return raw
    try:
        return InteractionKind(str(raw).strip().lower())
    except ValueError:
        return None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectOption(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    value: str
    text: str


class _ScreenItemBase(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int = Field(gt=0)
    x: float
    y: float
    width: float
    height: float
    tag_name: str
    text_content: str = ""
    parent_id: Optional[int] = None


class InfoItem(_ScreenItemBase):
    type: Literal["info"] = "info"
    alt: Optional[str] = None


class ActionItem(_ScreenItemBase):
    type: Literal["action"] = "action"
    placeholder: Optional[str] = None
    href: Optional[str] = None
    possible_interactions: list[InteractionKind] = Field(default_factory=list)
    select_options: list[SelectOption] = Field(default_factory=list)


class ContainerItem(_ScreenItemBase):
    type: Literal["container"] = "container"
    child_ids: list[int] = Field(default_factory=list)


ScreenItem = Annotated[Union[InfoItem, ActionItem, ContainerItem], Field(discriminator="type")]


class InteractionParams(_CamelModel):
    text: Optional[str] = None
    duration_ms: Optional[int] = Field(default=None, ge=0)
    top: float = 0.0
    left: float = 0.0
    value: Optional[str] = None
    drop_target_id: Optional[int] = None
    drop_x: Optional[float] = None
    drop_y: Optional[float] = None


class InteractionRequest(_CamelModel):
    target_id: Optional[int] = None
    kind: str
    params: InteractionParams = Field(default_factory=InteractionParams)


OutcomeStatus = Literal["completed", "aborted", "failed", "cancelled", "ignored"]


class InteractionOutcome(_CamelModel):
    kind: str
    target_id: Optional[int] = None
    status: OutcomeStatus
    error: Optional[str] = None
    snapshot_size: int = 0
    diff_summary: Optional[str] = None
