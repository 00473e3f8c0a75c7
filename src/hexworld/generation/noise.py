"""Layered (fBm) OpenSimplex noise sampled at hex coordinates."""

import numpy as np
from numpy.typing import NDArray
from opensimplex import OpenSimplex

from ..types import AxialCoord
from .config import NoiseConfig


class LayeredNoise:
    """Fractal Brownian motion over OpenSimplex noise.

    Sums ``octaves`` layers of noise at increasing frequencies and
    decreasing amplitudes, normalized by the total amplitude so the raw
    value stays roughly in [-1, 1].
    """

    def __init__(self, seed: int, config: NoiseConfig):
        self.seed = seed
        self.config = config
        self._simplex = OpenSimplex(seed=seed)

    def sample(self, x: float, y: float) -> float:
        """Raw fBm value at (x, y), roughly in [-1, 1]."""
        config = self.config
        frequency = config.frequency
        amplitude = 1.0
        total = 0.0
        max_amplitude = 0.0

        sx = x + config.offset_x
        sy = y + config.offset_y
        for _ in range(config.octaves):
            total += amplitude * self._simplex.noise2(sx * frequency, sy * frequency)
            max_amplitude += amplitude
            frequency *= config.lacunarity
            amplitude *= config.persistence

        return total / max_amplitude

    def sample_normalized(self, x: float, y: float) -> float:
        """fBm value mapped from [-1, 1] to [0, 1] and clamped."""
        return min(1.0, max(0.0, (self.sample(x, y) + 1.0) * 0.5))


def sample_field(
    coords: list[AxialCoord],
    seed: int,
    config: NoiseConfig,
    precision: int,
) -> NDArray[np.float64]:
    """Sample a normalized noise field at every coordinate.

    Values are sampled at the axial (q, r) position, mapped to [0, 1],
    optionally stretched so the map spans the full range, then rounded to
    ``precision`` decimals.

    Args:
        coords: Coordinates to sample, in grid order.
        seed: Noise seed.
        config: Field parameters.
        precision: Decimal places kept.

    Returns:
        1D array aligned with ``coords``.
    """
    noise = LayeredNoise(seed, config)
    values = np.array(
        [noise.sample_normalized(c.q, c.r) for c in coords], dtype=np.float64
    )

    if config.stretch and values.size > 1:
        values = stretch(values)

    return np.round(values, precision)


def stretch(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """Linearly rescale values so min maps to 0 and max to 1.

    A constant field is returned unchanged.
    """
    low = float(values.min())
    high = float(values.max())
    if high - low <= 0:
        return values
    return (values - low) / (high - low)
