"""Framebuffer holding the rendered image and its PNG encoding.

The framebuffer is a flat Taichi vector field of ``width * height`` RGB
pixels in row-major order, ``index = col + row * width``. Stored values are
linear and unclamped; they are clamped to [0, 1] and quantized to 8 bits
only when the image is converted or encoded.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.core.framebuffer import Framebuffer
    >>> framebuffer = Framebuffer(1024, 768)
    >>> # ... render into framebuffer ...
    >>> framebuffer.write_png("output.png")
"""

from __future__ import annotations

from typing import IO, Any

import numpy as np
import numpy.typing as npt
import taichi as ti
from PIL import Image as PILImage

from tiny_raytracer.errors import EncodeError


class Framebuffer:
    """A fixed-size grid of float RGB pixels.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Allocate a black framebuffer.

        Args:
            width: Image width in pixels (> 0).
            height: Image height in pixels (> 0).

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Framebuffer dimensions must be positive, got {width}x{height}")

        self._width = width
        self._height = height
        self._pixels = ti.Vector.field(3, dtype=ti.f32, shape=width * height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def pixels(self) -> Any:
        """Get the underlying Taichi vector field (flat, row-major)."""
        return self._pixels

    def index(self, row: int, col: int) -> int:
        """Get the flat index of the pixel at (row, col)."""
        return col + row * self._width

    def get_pixel(self, row: int, col: int) -> tuple[float, float, float]:
        """Get the stored (unclamped) color of a pixel."""
        color = self._pixels[self.index(row, col)]
        return (float(color[0]), float(color[1]), float(color[2]))

    def set_pixel(self, row: int, col: int, color: tuple[float, float, float]) -> None:
        """Store a color for a pixel."""
        self._pixels[self.index(row, col)] = [color[0], color[1], color[2]]

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Get the stored image as a NumPy array.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32.
        """
        return self._pixels.to_numpy().reshape(self._height, self._width, 3).astype(np.float32)

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the image as 8-bit truecolor.

        Each channel is clamped to [0, 1] and mapped with ``int(255 * v)``.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        image = np.clip(self.to_numpy(), 0.0, 1.0)
        return (image * 255.0).astype(np.uint8)

    def write_png(self, target: str | IO[bytes]) -> None:
        """Encode the image as an 8-bit RGB PNG.

        Args:
            target: Output file path or a writable binary file object.

        Raises:
            EncodeError: If the image cannot be encoded or written.
        """
        pil_image = PILImage.fromarray(self.to_uint8())
        try:
            pil_image.save(target, format="PNG")
        except (OSError, ValueError) as exc:
            raise EncodeError(f"encode error: {exc}") from exc

    def __repr__(self) -> str:
        return f"Framebuffer(width={self._width}, height={self._height})"
