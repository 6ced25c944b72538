"""Handle table owning every live parser and database."""

import threading
from typing import Any, Optional

from ..config import get_logger
from ..core.errors import InvalidHandleError

logger = get_logger(__name__)

NULL_HANDLE = 0


class HandleRegistry:
    """Maps opaque integer handles to owned objects.

    Handles come from one monotonically increasing counter shared by all
    object types and are never reused, so a destroyed handle stays
    detectably invalid. One lock guards the table and the counter.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._objects: dict[int, Any] = {}
        self._next_handle = 1

    def register(self, obj: Any) -> int:
        """Take ownership of ``obj`` and return its new handle."""
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._objects[handle] = obj
        logger.debug(f"Registered {type(obj).__name__} as handle {handle}")
        return handle

    def resolve(self, handle: Optional[int], expected_type: Optional[type] = None) -> Any:
        """Look up the object behind ``handle``.

        Args:
            handle: Handle to resolve
            expected_type: Required type of the object, if any

        Returns:
            The owned object

        Raises:
            InvalidHandleError: Null, unknown, destroyed, or wrong-typed handle
        """
        if not handle:
            raise InvalidHandleError("Null handle")
        with self._lock:
            obj = self._objects.get(handle)
        if obj is None:
            raise InvalidHandleError(f"Unknown or destroyed handle {handle}")
        if expected_type is not None and not isinstance(obj, expected_type):
            raise InvalidHandleError(
                f"Handle {handle} refers to a {type(obj).__name__}, "
                f"not a {expected_type.__name__}"
            )
        return obj

    def destroy(self, handle: Optional[int], expected_type: Optional[type] = None) -> bool:
        """Release the object behind ``handle``.

        Unknown, null and already destroyed handles are ignored, as are
        handles whose object is not an ``expected_type``.

        Returns:
            True if an object was released
        """
        if not handle:
            return False
        with self._lock:
            obj = self._objects.get(handle)
            if obj is None or (expected_type is not None and not isinstance(obj, expected_type)):
                return False
            del self._objects[handle]
        _release(obj)
        logger.debug(f"Destroyed handle {handle}")
        return True

    def clear(self) -> int:
        """Release every live object. The handle counter is left untouched.

        Returns:
            Number of objects released
        """
        with self._lock:
            objects = list(self._objects.values())
            self._objects.clear()
        for obj in objects:
            _release(obj)
        return len(objects)

    def live_handles(self, of_type: Optional[type] = None) -> list[int]:
        with self._lock:
            return [
                handle for handle, obj in self._objects.items()
                if of_type is None or isinstance(obj, of_type)
            ]

    def live_objects(self, of_type: Optional[type] = None) -> list[Any]:
        with self._lock:
            return [
                obj for obj in self._objects.values()
                if of_type is None or isinstance(obj, of_type)
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    def __contains__(self, handle: int) -> bool:
        with self._lock:
            return handle in self._objects


def _release(obj: Any) -> None:
    close = getattr(obj, "close", None)
    if callable(close):
        close()
