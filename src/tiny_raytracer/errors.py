"""Exceptions raised by the renderer.

Shading itself never fails: misses, empty scenes and an exhausted depth
budget all resolve to the background color. Errors only surface from the
Python-scope collaborators around the core.
"""


class RenderError(Exception):
    """Base class for renderer errors."""


class EncodeError(RenderError):
    """Raised when a framebuffer cannot be encoded or written as an image."""
