"""Main map generation orchestration with validation-driven retries."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog

from ..grid import WorldGrid
from .config import MapConfig
from .locations import Location, LocationPlacer
from .rivers import River, RiverGenerator
from .terrain import TerrainGenerator
from .validation import MapValidator, ValidationResult

logger = structlog.get_logger()

ProgressCallback = Callable[[float], None]

# Seed step between retry attempts
RETRY_SEED_STRIDE = 10000


class GenerationState(str, Enum):
    """Orchestrator states."""

    IDLE = "idle"
    GENERATING_TERRAIN = "generating_terrain"
    GENERATING_RIVERS = "generating_rivers"
    PLACING_LOCATIONS = "placing_locations"
    VALIDATING = "validating"
    RETRYING = "retrying"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass
class MapAttempt:
    """Everything produced by one generation attempt."""

    seed: int
    grid: WorldGrid
    rivers: list[River]
    locations: list[Location]
    result: ValidationResult


def attempt_seed(seed: int, attempt: int) -> int:
    """Seed for a 1-based attempt number: the original first, then strided."""
    if attempt <= 1:
        return seed
    return seed + attempt * RETRY_SEED_STRIDE


class MapGenerator:
    """Runs terrain, rivers, locations and validation, retrying bad maps.

    The generator exclusively owns the grid of the current attempt. Stage
    methods may also be driven one at a time by callers that want to
    inspect intermediate results.
    """

    def __init__(
        self,
        config: MapConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.config = config or MapConfig()
        self.on_progress = on_progress

        self.terrain_generator = TerrainGenerator(
            self.config.terrain, precision=self.config.precision
        )
        self.river_generator = RiverGenerator(self.config.rivers, self.config.terrain)
        self.location_placer = LocationPlacer(self.config.locations, self.config.terrain)
        self.validator = MapValidator(self.config)

        self.state = GenerationState.IDLE
        self.grid: WorldGrid | None = None
        self.rivers: list[River] = []
        self.locations: list[Location] = []
        self.last_result: ValidationResult | None = None
        self.seed_used: int | None = None
        self.attempts_used = 0
        self._cancel_requested = False

    # --- Full pipeline ---

    def generate_complete_map(self, seed: int, max_attempts: int = 3) -> bool:
        """Generate maps until one validates or the attempt budget runs out.

        Attempt 1 uses ``seed``; attempt k >= 2 uses ``seed + k * 10000``.
        When no attempt validates, the attempt with the fewest errors is
        restored as the current map and False is returned.

        Args:
            seed: Original seed.
            max_attempts: Maximum number of attempts.

        Returns:
            True if the current map passed validation.
        """
        self._cancel_requested = False
        self.attempts_used = 0
        best: MapAttempt | None = None
        stages_per_attempt = 4
        total_stages = max(1, max_attempts) * stages_per_attempt

        logger.info("map_generation_started", seed=seed, max_attempts=max_attempts)

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                self.state = GenerationState.RETRYING
            current_seed = attempt_seed(seed, attempt)
            self.attempts_used = attempt
            done = (attempt - 1) * stages_per_attempt

            stages = (
                self.generate_terrain,
                self.generate_rivers,
                self.place_all_locations,
            )
            for offset, stage in enumerate(stages):
                if self._cancel_requested:
                    return self._cancel()
                stage(current_seed)
                self._report(done + offset + 1, total_stages)

            if self._cancel_requested:
                return self._cancel()
            result = self.validate()
            self._report(done + stages_per_attempt, total_stages)

            current = MapAttempt(
                seed=current_seed,
                grid=self.grid,
                rivers=self.rivers,
                locations=self.locations,
                result=result,
            )

            if result.valid:
                self.state = GenerationState.ACCEPTED
                self._report(total_stages, total_stages)
                logger.info(
                    "map_generation_accepted",
                    seed=current_seed,
                    attempt=attempt,
                    warnings=len(result.warnings),
                )
                return True

            logger.info(
                "map_attempt_rejected",
                seed=current_seed,
                attempt=attempt,
                errors=result.errors,
            )
            if best is None or len(result.errors) < len(best.result.errors):
                best = current

        self.state = GenerationState.EXHAUSTED
        if best is not None:
            self._restore(best)
        logger.warning(
            "map_generation_exhausted",
            seed=seed,
            attempts=max_attempts,
            best_seed=self.seed_used,
            errors=len(self.last_result.errors) if self.last_result else None,
        )
        return False

    def cancel(self) -> None:
        """Stop a running generate_complete_map at the next stage boundary."""
        self._cancel_requested = True

    # --- Individual stages ---

    def generate_terrain(self, seed: int) -> WorldGrid:
        """Build a fresh grid and generate its terrain.

        Rivers and locations of any previous attempt are discarded.
        """
        self.state = GenerationState.GENERATING_TERRAIN
        config = self.config
        self.grid = WorldGrid.create(
            config.width,
            config.height,
            hex_size=config.hex_size,
            default_terrain=config.terrain.default_terrain,
        )
        self.rivers = []
        self.locations = []
        self.last_result = None
        self.seed_used = seed

        self.terrain_generator.generate(self.grid, seed)
        logger.debug("terrain_stage_done", seed=seed, terrain=self.grid.terrain_statistics())
        return self.grid

    def generate_rivers(self, seed: int) -> int:
        """Trace rivers on the current grid; returns the number accepted.

        Rivers from an earlier call are wiped from the grid first.
        """
        self.state = GenerationState.GENERATING_RIVERS
        grid = self._require_grid()
        grid.clear_rivers()
        self.rivers = self.river_generator.generate(grid, seed)
        return len(self.rivers)

    def place_all_locations(self, seed: int) -> bool:
        """Place every location type; True iff all minimum counts were met.

        Locations from an earlier call are wiped from the grid first.
        """
        self.state = GenerationState.PLACING_LOCATIONS
        grid = self._require_grid()
        grid.clear_locations()
        self.locations = self.location_placer.place_all(grid, self.rivers, seed)
        return self.location_placer.meets_minimums(self.locations)

    def validate(self) -> ValidationResult:
        """Validate the current map and remember the result."""
        self.state = GenerationState.VALIDATING
        grid = self._require_grid()
        self.last_result = self.validator.validate(grid, self.rivers, self.locations)
        return self.last_result

    def load(
        self,
        grid: WorldGrid,
        rivers: list[River],
        locations: list[Location],
        seed: int | None = None,
    ) -> None:
        """Adopt an externally loaded map as the current one."""
        self.grid = grid
        self.rivers = list(rivers)
        self.locations = list(locations)
        self.last_result = None
        self.seed_used = seed
        self.state = GenerationState.IDLE

    # --- Internals ---

    def _require_grid(self) -> WorldGrid:
        if self.grid is None:
            # Stages after terrain need a grid; build an empty default one
            self.grid = WorldGrid.create(
                self.config.width,
                self.config.height,
                hex_size=self.config.hex_size,
                default_terrain=self.config.terrain.default_terrain,
            )
        return self.grid

    def _restore(self, attempt: MapAttempt) -> None:
        self.grid = attempt.grid
        self.rivers = attempt.rivers
        self.locations = attempt.locations
        self.last_result = attempt.result
        self.seed_used = attempt.seed

    def _cancel(self) -> bool:
        self.state = GenerationState.CANCELLED
        logger.info("map_generation_cancelled", attempt=self.attempts_used)
        return False

    def _report(self, done: int, total: int) -> None:
        if self.on_progress is not None:
            self.on_progress(min(1.0, done / total))
