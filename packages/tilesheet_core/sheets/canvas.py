"""Growable sheet rasters, one per (cell size, depth layer)."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path

from PIL import Image

from ..imaging.color import LinearImage, encode_srgb
from ..imaging.resample import resize

logger = getLogger("tilesheet_core.sheets.canvas")

TRANSPARENT = (0, 0, 0, 0)


class SheetCanvas:
    """An sRGB RGBA raster whose dimensions are multiples of ``size``."""

    def __init__(self, size: int, layer: int, image: Image.Image | None = None) -> None:
        if size < 1:
            raise ValueError("Cell size must be >= 1")
        self.size = size
        self.layer = layer
        self.image: Image.Image | None = None
        if image is not None:
            self._adopt(image)

    def _adopt(self, image: Image.Image) -> None:
        rgba = image.convert("RGBA")
        width, height = rgba.size
        if width % self.size or height % self.size:
            logger.warning(
                "[CANVAS] Sheet %dpx layer %d is %dx%d, not a multiple of the cell size; padding",
                self.size, self.layer, width, height,
            )
        self.image = rgba
        self._grow(-(-width // self.size) * self.size, -(-height // self.size) * self.size)

    @property
    def width(self) -> int:
        return self.image.width if self.image is not None else 0

    @property
    def height(self) -> int:
        return self.image.height if self.image is not None else 0

    @property
    def cells(self) -> tuple[int, int]:
        return self.width // self.size, self.height // self.size

    def _grow(self, width: int, height: int) -> None:
        width = max(self.width, width)
        height = max(self.height, height)
        if self.image is not None and (width, height) == self.image.size:
            return
        grown = Image.new("RGBA", (width, height), TRANSPARENT)
        if self.image is not None:
            grown.paste(self.image, (0, 0))
        logger.debug(
            "[CANVAS] Grew %dpx layer %d from %dx%d to %dx%d",
            self.size, self.layer, self.width, self.height, width, height,
        )
        self.image = grown

    def ensure_cell(self, x: int, y: int) -> None:
        self._grow((x + 1) * self.size, (y + 1) * self.size)

    def insert(self, x: int, y: int, tile: LinearImage) -> None:
        """Resize ``tile`` to the cell size, encode it and write it at cell ``(x, y)``."""
        self.ensure_cell(x, y)
        encoded = encode_srgb(resize(tile, self.size, self.size))
        self.image.paste(encoded, (x * self.size, y * self.size))

    def clear(self, x: int, y: int) -> None:
        if self.image is None or x >= self.cells[0] or y >= self.cells[1]:
            return
        left, top = x * self.size, y * self.size
        self.image.paste(TRANSPARENT, (left, top, left + self.size, top + self.size))

    def cell_image(self, x: int, y: int) -> Image.Image:
        if self.image is None:
            raise IndexError("Canvas is empty")
        left, top = x * self.size, y * self.size
        return self.image.crop((left, top, left + self.size, top + self.size))

    def save(self, path: Path) -> Path:
        if self.image is None:
            raise ValueError(f"Nothing to save for {self.size}px layer {self.layer}")
        path.parent.mkdir(parents=True, exist_ok=True)
        self.image.save(path, format="PNG")
        return path


class SheetSet:
    """All canvases of a namespace, keyed by ``(size, layer)``."""

    def __init__(self, sizes: list[int]) -> None:
        self.sizes = sorted(set(int(s) for s in sizes))
        self._canvases: dict[tuple[int, int], SheetCanvas] = {}

    def __len__(self) -> int:
        return len(self._canvases)

    def canvas(self, size: int, layer: int) -> SheetCanvas:
        key = (size, layer)
        canvas = self._canvases.get(key)
        if canvas is None:
            canvas = SheetCanvas(size, layer)
            self._canvases[key] = canvas
        return canvas

    def seed(self, size: int, layer: int, image: Image.Image) -> SheetCanvas:
        canvas = SheetCanvas(size, layer, image)
        self._canvases[(size, layer)] = canvas
        return canvas

    def layers(self) -> list[int]:
        return sorted({layer for _, layer in self._canvases})

    def insert(self, x: int, y: int, z: int, tile: LinearImage) -> None:
        for size in self.sizes:
            self.canvas(size, z).insert(x, y, tile)

    def clear(self, x: int, y: int, z: int) -> None:
        for size in self.sizes:
            canvas = self._canvases.get((size, z))
            if canvas is not None:
                canvas.clear(x, y)

    def canvases(self) -> list[SheetCanvas]:
        return [self._canvases[key] for key in sorted(self._canvases)]

    def fill_gaps(self) -> None:
        """Make sure every size has a canvas for every layer up to the deepest one."""
        if not self._canvases:
            return
        deepest = max(layer for _, layer in self._canvases)
        for size in self.sizes:
            for layer in range(deepest + 1):
                canvas = self.canvas(size, layer)
                if canvas.image is None:
                    canvas.ensure_cell(0, 0)
