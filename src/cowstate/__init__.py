"""cowstate: copy-on-write reactive keyed containers for Python."""

from importlib.metadata import version as _version

__version__ = _version("cowstate")

from cowstate.exceptions import CowStateError, DisposedError
from cowstate.observable import Observable, Disposer
from cowstate.channel import EventChannel
from cowstate.disposable import DisposableGroup
from cowstate.reactive_map import ReactiveMap, same_value
# textual NOT auto-imported — opt-in only

__all__ = [
    "CowStateError",
    "DisposedError",
    "Observable",
    "Disposer",
    "EventChannel",
    "DisposableGroup",
    "ReactiveMap",
    "same_value",
]
