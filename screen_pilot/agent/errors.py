from __future__ import annotations


class AutomationError(Exception):
    """Base class for interaction failures. None of these are fatal to the engine."""


class TargetNotFound(AutomationError):
    def __init__(self, target_id: int | None, reason: str = "not in latest snapshot") -> None:
        super().__init__(f"target {target_id} not found: {reason}")
        self.target_id = target_id
        self.reason = reason


class InvalidInteractionRequest(AutomationError):
    pass


class UnsupportedInteractionKind(AutomationError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"unsupported interaction kind: {kind!r}")
        self.kind = kind


class EffectDispatchFailure(AutomationError):
    def __init__(self, kind: str, cause: BaseException) -> None:
        super().__init__(f"{kind} effect failed: {cause!r}")
        self.kind = kind
        self.cause = cause


class AutomationBusy(AutomationError):
    pass


class InteractionCancelled(AutomationError):
    pass
