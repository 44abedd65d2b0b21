"""Hooks around each logical API call.

A hook receives the :class:`RequestCall` for the invocation. Before hooks run
once, ahead of the first attempt, and may add outgoing headers; after and
error hooks run once with the final outcome and can read which attempt
produced it.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .codec import body_document
from .params import ApiRequest
from .protocols import AsyncHookMiddleware, SyncHookMiddleware

WILDCARD = "*"


class HookStage(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    ERROR = "error"


_MIDDLEWARE_METHODS = (
    (HookStage.BEFORE, "before"),
    (HookStage.AFTER, "after"),
    (HookStage.ERROR, "on_error"),
)


@dataclass(slots=True)
class RequestCall:
    """One logical call as seen by hooks.

    ``headers`` is sent with every attempt, so entries added by a before hook
    reach the wire. ``attempt`` is 0 until the first send and then tracks the
    attempt in flight.
    """

    request: ApiRequest
    headers: dict[str, str] = field(default_factory=dict)
    attempt: int = 0

    @property
    def operation(self) -> str:
        return self.request.operation

    @property
    def method(self) -> str:
        return self.request.method.value

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def query(self) -> dict[str, Any]:
        return self.request.query.present()

    @property
    def body(self) -> dict[str, Any] | None:
        if self.request.body.is_empty():
            return None
        return body_document(self.request.body)


Hook = Callable[..., Any]


@dataclass(slots=True)
class HookRegistry:
    """Hooks keyed by stage and operation name.

    ``"*"`` hooks run before the hooks registered for the exact operation.
    Plain callables and coroutine functions are both accepted; they run on the
    engine's event loop thread.
    """

    _hooks: dict[tuple[HookStage, str], list[Hook]] = field(default_factory=dict)

    def add(self, stage: HookStage | str, operation: str, hook: Hook) -> None:
        if not callable(hook):
            raise TypeError(f"{HookStage(stage).value} hook must be callable")
        self._hooks.setdefault((HookStage(stage), operation), []).append(hook)

    def add_before(self, operation: str, hook: Callable[[RequestCall], Any]) -> None:
        self.add(HookStage.BEFORE, operation, hook)

    def add_after(self, operation: str, hook: Callable[[RequestCall, Any], Any]) -> None:
        self.add(HookStage.AFTER, operation, hook)

    def add_error(self, operation: str, hook: Callable[[RequestCall, Exception], Any]) -> None:
        self.add(HookStage.ERROR, operation, hook)

    def add_middleware(self, operation: str, middleware: SyncHookMiddleware | AsyncHookMiddleware) -> None:
        # Resolve every method first so a partial middleware registers nothing.
        resolved: list[tuple[HookStage, Hook]] = []
        for stage, attribute in _MIDDLEWARE_METHODS:
            hook = getattr(middleware, attribute, None)
            if not callable(hook):
                raise TypeError(f"hook middleware must provide callable {attribute}()")
            resolved.append((stage, hook))
        for stage, hook in resolved:
            self.add(stage, operation, hook)

    def hooks_for(self, stage: HookStage, operation: str) -> list[Hook]:
        hooks = list(self._hooks.get((stage, WILDCARD), ()))
        if operation != WILDCARD:
            hooks.extend(self._hooks.get((stage, operation), ()))
        return hooks

    async def run(self, stage: HookStage, call: RequestCall, *args: Any) -> None:
        for hook in self.hooks_for(stage, call.operation):
            outcome = hook(call, *args)
            if inspect.isawaitable(outcome):
                await outcome
