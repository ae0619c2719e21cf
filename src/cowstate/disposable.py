"""DisposableGroup — releases a set of owned resources together.

A resource is either a Disposer (zero-argument callable) or any object
with a dispose() method. Resources are released in reverse order of
addition, each exactly once.
"""

from __future__ import annotations

from typing import TypeVar

R = TypeVar("R")


class DisposableGroup:
    """Owns resources and releases them on dispose_all()."""

    __slots__ = ("_resources", "_disposed")

    def __init__(self) -> None:
        self._resources: list = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add(self, resource: R) -> R:
        """Track resource for later release. Returns it unchanged.

        Adding to an already-disposed group releases the resource at once.
        """
        if not (hasattr(resource, "dispose") or callable(resource)):
            raise TypeError(
                f"DisposableGroup.add expects a callable or an object with dispose(), "
                f"got {type(resource).__name__}"
            )
        if self._disposed:
            _release(resource)
        else:
            self._resources.append(resource)
        return resource

    def dispose_all(self) -> None:
        """Release every tracked resource, newest first. Safe to call twice."""
        if self._disposed:
            return
        self._disposed = True
        while self._resources:
            _release(self._resources.pop())

    def __len__(self) -> int:
        return len(self._resources)


def _release(resource) -> None:
    dispose = getattr(resource, "dispose", None)
    if dispose is not None:
        dispose()
    else:
        resource()
