"""Automation scripts: ordered interaction steps whose targets are matched in the fresh snapshot."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import InteractionParams, InteractionRequest, ScreenItem


class ItemMatch(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Optional[Literal["info", "action", "container"]] = None
    tag_name: Optional[str] = None
    text: Optional[str] = None
    placeholder: Optional[str] = None
    href: Optional[str] = None
    nth: int = Field(default=0, ge=0)

    def matches(self, item: ScreenItem) -> bool:
        if self.type and item.type != self.type:
            return False
        if self.tag_name and item.tag_name.upper() != self.tag_name.upper():
            return False
        if self.text and self.text.lower() not in (item.text_content or "").lower():
            return False
        if self.placeholder and getattr(item, "placeholder", None) != self.placeholder:
            return False
        if self.href and getattr(item, "href", None) != self.href:
            return False
        return True


class ScriptStep(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    match: Optional[ItemMatch] = None
    kind: str
    params: InteractionParams = Field(default_factory=InteractionParams)

    def to_request(self, target_id: Optional[int]) -> InteractionRequest:
        return InteractionRequest(target_id=target_id, kind=self.kind, params=self.params)


def find_item(items: Sequence[ScreenItem], match: ItemMatch) -> Optional[ScreenItem]:
    found = [item for item in items if match.matches(item)]
    if match.nth < len(found):
        return found[match.nth]
    return None


def parse_script(payload: object) -> List[ScriptStep]:
    if isinstance(payload, dict):
        payload = payload.get("steps", [])
    if not isinstance(payload, list):
        raise ValueError("script must be a list of steps or an object with a 'steps' list")
    return [ScriptStep.model_validate(step) for step in payload]


def load_script(path: str | Path) -> List[ScriptStep]:
    with Path(path).open("r", encoding="utf-8") as f:
        return parse_script(json.load(f))
