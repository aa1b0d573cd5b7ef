"""In-process change listener registry.

Listeners are plain callables that receive a ``FileChangeEvent`` after each
mutation of a tenant tree.  Ephemeral -- empty on process restart; plugins
register at startup.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

from codeyard.workspace_runtime.errors import ListenerError

if TYPE_CHECKING:
    from codeyard.workspace_runtime.models.events import FileChangeEvent

ChangeListener = Callable[["FileChangeEvent"], object]


def _listener_name(listener: ChangeListener) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


class ChangeListenerRegistry:
    """Observer registry for file change notifications.

    Listeners run synchronously, in registration order, on the caller's task.
    A failing listener never interrupts the others nor the mutation that
    triggered it: the failure is logged and returned from ``notify``.
    """

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    # -- Mutation --------------------------------------------------------------

    def register(self, listener: ChangeListener) -> ChangeListener:
        """Add a listener.  Returns it so this can be used as a decorator."""
        logger.debug("Registry: register change listener {}", _listener_name(listener))
        self._listeners.append(listener)
        return listener

    def unregister(self, listener: ChangeListener) -> bool:
        """Remove a listener.  Returns ``False`` if it was not registered."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        logger.debug("Registry: unregister change listener {}", _listener_name(listener))
        return True

    # -- Query -----------------------------------------------------------------

    def listeners(self) -> list[ChangeListener]:
        """Return a snapshot of the registered listeners."""
        return list(self._listeners)

    @property
    def count(self) -> int:
        return len(self._listeners)

    # -- Dispatch --------------------------------------------------------------

    def notify(self, event: FileChangeEvent) -> list[ListenerError]:
        """Invoke every listener with ``event``.  Returns the failures, if any."""
        errors: list[ListenerError] = []
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                error = ListenerError(_listener_name(listener), exc)
                logger.opt(exception=exc).warning(
                    "Change listener {} failed for {} {} ({})",
                    error.listener_name,
                    event.tenant,
                    event.relative_path,
                    event.change_type,
                )
                errors.append(error)
        return errors
