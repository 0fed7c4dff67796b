"""Runtime coordination primitives."""

from swingbuddy.runtime.mutex import UserMutex

__all__ = ["UserMutex"]
