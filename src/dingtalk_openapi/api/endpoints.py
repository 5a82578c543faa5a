"""Declarative endpoint wrappers.

Business endpoints are plain request shaping: a path, an HTTP verb and a set
of required fields. Each one is declared as an ``Endpoint`` on an
``EndpointGroup`` subclass and becomes an async method:

```python
class MessageAPI(EndpointGroup):
    recall_message = Endpoint(
        "topapi/message/corpconversation/recall",
        method="POST",
        required=("agent_id", "msg_task_id"),
    )

await client.message.recall_message(agent_id=1, msg_task_id=2)
```
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .models import DingTalkValidationError

if TYPE_CHECKING:
    from .client import DingTalkClient

# A required entry is a field name, or a tuple of alternatives of which one must be set
Requirement = str | tuple[str, ...]


def _is_set(payload: Mapping[str, Any], key: str) -> bool:
    return bool(payload.get(key))


def check_required(payload: Mapping[str, Any], required: tuple[Requirement, ...]) -> None:
    """Raise DingTalkValidationError for the first missing requirement."""
    for requirement in required:
        if isinstance(requirement, str):
            if not _is_set(payload, requirement):
                raise DingTalkValidationError(f"{requirement} required")
        elif not any(_is_set(payload, key) for key in requirement):
            raise DingTalkValidationError(f"{' or '.join(requirement)} required")


@dataclass(frozen=True)
class Endpoint:
    """Descriptor turning an endpoint declaration into an async method.

    Attributes:
        path: API path relative to the host, without a leading ``/``.
        method: ``"GET"`` sends fields as query params, ``"POST"`` as a JSON body.
        required: Fields that must be present; tuples list alternatives.
        positional: Names bound to positional arguments, in order.
        validator: Extra check run after ``required``.
    """

    path: str
    method: str = "GET"
    required: tuple[Requirement, ...] = ()
    positional: tuple[str, ...] = ()
    validator: Callable[[Mapping[str, Any]], None] | None = None
    doc: str = field(default="", compare=False)

    def __set_name__(self, owner: type, name: str) -> None:
        object.__setattr__(self, "name", name)

    def __get__(self, instance: EndpointGroup | None, owner: type) -> Any:
        if instance is None:
            return self

        async def call(*args: Any, **kwargs: Any) -> Any:
            return await self.invoke(instance.client, *args, **kwargs)

        call.__name__ = getattr(self, "name", self.path)
        call.__doc__ = self.doc or f"{self.method} {self.path}"
        return call

    def build_payload(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        """Merge positional args, an optional leading mapping and keywords."""
        payload: dict[str, Any] = {}
        values = list(args)
        if values and isinstance(values[0], Mapping) and not self.positional:
            payload.update(values.pop(0))
        if len(values) > len(self.positional):
            raise TypeError(
                f"{getattr(self, 'name', self.path)}() takes {len(self.positional)} "
                f"positional arguments but {len(values)} were given"
            )
        payload.update(zip(self.positional, values))
        payload.update(kwargs)
        return payload

    def validate(self, payload: Mapping[str, Any]) -> None:
        check_required(payload, self.required)
        if self.validator is not None:
            self.validator(payload)

    async def invoke(self, client: DingTalkClient, *args: Any, **kwargs: Any) -> Any:
        payload = self.build_payload(*args, **kwargs)
        self.validate(payload)
        if self.method == "GET":
            return await client.get(self.path, payload)
        return await client.post(self.path, payload)


class EndpointGroup:
    """Namespace of endpoints sharing one client (``client.message``, ...)."""

    def __init__(self, client: DingTalkClient):
        self.client = client

    @classmethod
    def endpoints(cls) -> dict[str, Endpoint]:
        """Return every declared endpoint by method name."""
        found: dict[str, Endpoint] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Endpoint):
                    found[name] = value
        return found
