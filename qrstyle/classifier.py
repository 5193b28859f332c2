"""Dark/light module classification by single-point sampling, memoized per render pass."""

import numpy as np

DARK_THRESHOLD = 128


class ModuleClassifier:
    """Classify raster regions as dark or light.

    One instance belongs to exactly one render pass. Results are cached by
    ``(x, y, module_size)``; call ``clear()`` before reusing an instance on
    different raster content.
    """

    def __init__(self):
        self._cache: dict[tuple[int, int, int], bool] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    def is_dark(self, pixels: np.ndarray, x: int, y: int, width: int, height: int, module_size: int) -> bool:
        key = (x, y, module_size)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        # One sample at the module's visual center; a rendered module is a solid block.
        cx = min(x + int(module_size * 0.5), width - 1)
        cy = min(y + int(module_size * 0.5), height - 1)
        r, g, b = (int(v) for v in pixels[cy, cx, :3])
        dark = 0.299 * r + 0.587 * g + 0.114 * b < DARK_THRESHOLD

        self._cache[key] = dark
        return dark
