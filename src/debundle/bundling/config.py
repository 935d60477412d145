"""Bundling options and the per-pass schedule derived from them."""

from __future__ import annotations

__all__ = ["BundleConfig", "PassSchedule"]

import math
import numbers
from dataclasses import dataclass, fields
from typing import Any, Callable, Union

from debundle.bundling.constants import (
    ATTRACTION_RADIUS,
    COMPATIBILITY_THRESHOLD,
    INITIAL_SUBDIVISIONS,
    ITERATION_DECAY,
    ITERATIONS,
    LANE_WIDTH,
    MAX_NEIGHBORS,
    PASSES,
    SPRING_CONSTANT,
    STEP_DECAY,
    STEP_SIZE,
    SUBDIVISION_GROWTH,
)
from debundle.errors import ConfigurationError

Growth = Union[float, Callable[[int], int]]

# Name/value option names accepted alongside the snake_case field names.
_CAMEL_ALIASES = {
    "initialSubdivisions": "initial_subdivisions",
    "subdivisionGrowth": "subdivision_growth",
    "stepSize": "step_size",
    "stepDecay": "step_decay",
    "iterationDecay": "iteration_decay",
    "compatibilityThreshold": "compatibility_threshold",
    "maxNeighbors": "max_neighbors",
    "springConstant": "spring_constant",
    "attractionRadius": "attraction_radius",
    "laneWidth": "lane_width",
}


@dataclass(frozen=True)
class PassSchedule:
    """Resolution and step settings for one relaxation pass."""

    index: int
    subdivisions: int
    step: float
    iterations: int


@dataclass(frozen=True)
class BundleConfig:
    """Options for a divided edge bundling run.

    Lengths (step_size, attraction_radius, lane_width) are fractions of
    the mean edge length, so the defaults work at any coordinate scale.
    """

    passes: int = PASSES
    initial_subdivisions: int = INITIAL_SUBDIVISIONS
    subdivision_growth: Growth = SUBDIVISION_GROWTH
    step_size: float = STEP_SIZE
    step_decay: float = STEP_DECAY
    iterations: int = ITERATIONS
    iteration_decay: float = ITERATION_DECAY
    compatibility_threshold: float = COMPATIBILITY_THRESHOLD
    max_neighbors: int | None = MAX_NEIGHBORS
    spring_constant: float = SPRING_CONSTANT
    attraction_radius: float = ATTRACTION_RADIUS
    lane_width: float = LANE_WIDTH

    @classmethod
    def from_options(cls, **options: Any) -> BundleConfig:
        """Build a validated config from snake_case or camelCase names."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, value in options.items():
            field_name = _CAMEL_ALIASES.get(name, name)
            if field_name not in known:
                raise ConfigurationError(f"Unknown bundling option {name!r}")
            if field_name in kwargs:
                raise ConfigurationError(
                    f"Bundling option {field_name!r} given more than once"
                )
            kwargs[field_name] = value
        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self) -> None:
        """Raise ConfigurationError for the first out-of-range option."""
        _require_int(self.passes, "passes", minimum=0)
        _require_int(self.initial_subdivisions, "initial_subdivisions", minimum=1)
        _require_int(self.iterations, "iterations", minimum=1)
        if self.max_neighbors is not None:
            _require_int(self.max_neighbors, "max_neighbors", minimum=1)

        if callable(self.subdivision_growth):
            # Run the growth callable over every pass now
            self.schedule()
        else:
            _require_real(self.subdivision_growth, "subdivision_growth")
            if self.subdivision_growth < 1:
                raise ConfigurationError(
                    f"subdivision_growth must be >= 1, got {self.subdivision_growth}"
                )

        _require_real(self.step_size, "step_size")
        if self.step_size <= 0:
            raise ConfigurationError(f"step_size must be > 0, got {self.step_size}")
        for name in ("step_decay", "iteration_decay"):
            value = getattr(self, name)
            _require_real(value, name)
            if not 0 < value <= 1:
                raise ConfigurationError(f"{name} must be in (0, 1], got {value}")

        _require_real(self.compatibility_threshold, "compatibility_threshold")
        if not 0 <= self.compatibility_threshold <= 1:
            raise ConfigurationError(
                "compatibility_threshold must be in [0, 1], "
                f"got {self.compatibility_threshold}"
            )

        for name in ("spring_constant", "lane_width"):
            value = getattr(self, name)
            _require_real(value, name)
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")
        _require_real(self.attraction_radius, "attraction_radius")
        if self.attraction_radius <= 0:
            raise ConfigurationError(
                f"attraction_radius must be > 0, got {self.attraction_radius}"
            )

    def grow(self, subdivisions: int) -> int:
        """Interior point count for the pass after one with ``subdivisions``."""
        growth = self.subdivision_growth
        if callable(growth):
            grown = growth(subdivisions)
            if isinstance(grown, bool) or not isinstance(grown, numbers.Integral):
                raise ConfigurationError(
                    f"subdivision_growth returned non-integer {grown!r}"
                )
            if grown < subdivisions:
                raise ConfigurationError(
                    f"subdivision_growth shrank subdivisions from {subdivisions} "
                    f"to {grown}"
                )
            return int(grown)
        return max(subdivisions, int(round(subdivisions * growth)))

    def schedule(self, mean_length: float = 1.0) -> list[PassSchedule]:
        """Per-pass subdivision count, absolute step and iteration count."""
        passes: list[PassSchedule] = []
        subdivisions = self.initial_subdivisions
        for i in range(self.passes):
            if i > 0:
                subdivisions = self.grow(subdivisions)
            passes.append(
                PassSchedule(
                    index=i,
                    subdivisions=subdivisions,
                    step=self.step_size * self.step_decay**i * mean_length,
                    iterations=max(
                        1, int(round(self.iterations * self.iteration_decay**i))
                    ),
                )
            )
        return passes


def _require_int(value: Any, name: str, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def _require_real(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value!r}")
