"""
Controller package exports.

Qt-facing controllers live here; everything below `domain` and `services`
stays importable without a QApplication.
"""

from .tick_controller import TickController  # noqa: F401

__all__ = [
    "TickController",
]
