"""Map generation configuration models."""

from pydantic import BaseModel, Field, model_validator

from ..terrain_types import (
    IMPASSABLE_TERRAINS,
    LOWLAND_TERRAINS,
    MOUNTAIN_TERRAINS,
    WATER_TERRAINS,
    TerrainType,
)

# Location types are placed in this order; later types depend on earlier ones
PLACEMENT_ORDER: tuple[str, ...] = (
    "town",
    "fort",
    "trading_post",
    "mission",
    "roadhouse",
    "cave",
    "caravan_camp",
)


class NoiseConfig(BaseModel):
    """Layered noise parameters for a single field."""

    frequency: float = Field(default=0.2, gt=0, description="Base sampling frequency")
    octaves: int = Field(default=4, ge=1, description="Number of octaves for fBm")
    persistence: float = Field(default=0.6, description="Amplitude multiplier per octave")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    offset_x: float = Field(default=0.0, description="Sampling offset along q")
    offset_y: float = Field(default=0.0, description="Sampling offset along r")
    stretch: bool = Field(
        default=False, description="Rescale the field to span [0, 1] over the map"
    )


class TerrainRule(BaseModel):
    """Elevation/moisture box mapped to a terrain type."""

    name: str
    elevation_min: float = Field(default=0.0, ge=0.0, le=1.0)
    elevation_max: float = Field(default=1.0, ge=0.0, le=1.0)
    moisture_min: float = Field(default=0.0, ge=0.0, le=1.0)
    moisture_max: float = Field(default=1.0, ge=0.0, le=1.0)
    priority: int = Field(default=0, description="Higher wins when rules overlap")

    @model_validator(mode="after")
    def _check_ranges(self) -> "TerrainRule":
        if self.elevation_min > self.elevation_max:
            raise ValueError(f"Rule '{self.name}': elevation_min > elevation_max")
        if self.moisture_min > self.moisture_max:
            raise ValueError(f"Rule '{self.name}': moisture_min > moisture_max")
        return self

    def matches(self, elevation: float, moisture: float) -> bool:
        """Whether both values fall inside this rule's ranges."""
        return (
            self.elevation_min <= elevation <= self.elevation_max
            and self.moisture_min <= moisture <= self.moisture_max
        )


def default_terrain_rules() -> list[TerrainRule]:
    # Bands sit around 0.5, where unstretched fBm clusters
    return [
        TerrainRule(name=TerrainType.DEEP_WATER.value, elevation_max=0.4, priority=10),
        TerrainRule(name=TerrainType.WATER.value, elevation_max=0.47, priority=9),
        TerrainRule(
            name=TerrainType.DESERT.value,
            elevation_min=0.47,
            elevation_max=0.58,
            moisture_max=0.45,
            priority=3,
        ),
        TerrainRule(
            name=TerrainType.PLAINS.value,
            elevation_min=0.47,
            elevation_max=0.58,
            moisture_min=0.45,
            moisture_max=0.5,
            priority=2,
        ),
        TerrainRule(
            name=TerrainType.GRASSLAND.value,
            elevation_min=0.47,
            elevation_max=0.58,
            moisture_min=0.5,
            moisture_max=0.55,
            priority=2,
        ),
        TerrainRule(
            name=TerrainType.FOREST.value,
            elevation_min=0.47,
            elevation_max=0.58,
            moisture_min=0.55,
            priority=3,
        ),
        TerrainRule(
            name=TerrainType.HILLS.value, elevation_min=0.58, elevation_max=0.64, priority=5
        ),
        TerrainRule(
            name=TerrainType.MOUNTAIN.value,
            elevation_min=0.64,
            elevation_max=0.7,
            priority=6,
        ),
        TerrainRule(name=TerrainType.PEAK.value, elevation_min=0.7, priority=7),
    ]


class SmoothingConfig(BaseModel):
    """Majority-neighbour smoothing parameters."""

    neighbor_threshold: int = Field(
        default=4, ge=1, le=6, description="Neighbours needed to flip a cell"
    )
    iterations: int = Field(default=2, ge=0, description="Number of smoothing passes")
    protect_water: bool = Field(default=True, description="Never smooth water cells")
    protect_mountains: bool = Field(
        default=True, description="Never smooth mountain cells"
    )
    elevation_tolerance: float = Field(
        default=0.1, description="Slack on the new type's elevation range"
    )


class TerrainConfig(BaseModel):
    """Terrain sampling, classification and smoothing parameters."""

    elevation_noise: NoiseConfig = Field(default_factory=NoiseConfig)
    moisture_noise: NoiseConfig = Field(
        default_factory=lambda: NoiseConfig(
            frequency=0.12, octaves=3, offset_x=10000.0, offset_y=10000.0
        )
    )
    moisture_seed_offset: int = Field(
        default=1, description="Added to the seed for the moisture field"
    )
    rules: list[TerrainRule] = Field(default_factory=default_terrain_rules)
    default_terrain: str = Field(
        default=TerrainType.PLAINS.value, description="Terrain when no rule matches"
    )
    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)
    water_terrains: list[str] = Field(default_factory=lambda: list(WATER_TERRAINS))
    mountain_terrains: list[str] = Field(default_factory=lambda: list(MOUNTAIN_TERRAINS))

    @model_validator(mode="after")
    def _check_rules(self) -> "TerrainConfig":
        names = [rule.name for rule in self.rules]
        if len(names) != len(set(names)):
            raise ValueError(f"Terrain rule names must be unique: {names}")
        return self

    def rule_for(self, name: str) -> TerrainRule | None:
        """Rule with the given terrain name, if any."""
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    def is_water(self, terrain_type: str) -> bool:
        return terrain_type in self.water_terrains

    def is_mountain(self, terrain_type: str) -> bool:
        return terrain_type in self.mountain_terrains


class RiverConfig(BaseModel):
    """River source selection and tracing parameters."""

    source_elevation_min: float = Field(
        default=0.53,
        ge=0.0,
        le=1.0,
        description="Minimum elevation for a river source",
    )
    target_elevation_max: float = Field(
        default=0.47,
        ge=0.0,
        le=1.0,
        description="Tracing stops below this elevation",
    )
    min_river_length: int = Field(default=3, ge=1, description="Minimum path length in cells")
    min_rivers: int = Field(default=1, ge=0, description="Minimum number of rivers")
    max_rivers: int = Field(default=3, ge=0, description="Maximum number of rivers")
    max_attempts_per_river: int = Field(
        default=10, ge=1, description="Source attempts allowed per wanted river"
    )
    max_steps: int = Field(default=200, ge=1, description="Safety limit on trace length")
    near_tie_tolerance: float = Field(
        default=0.05, description="Elevation band treated as a tie when descending"
    )
    seed_offset: int = Field(default=99999, description="Added to the seed for river RNG")

    @model_validator(mode="after")
    def _check_counts(self) -> "RiverConfig":
        if self.min_rivers > self.max_rivers:
            raise ValueError("min_rivers must not exceed max_rivers")
        return self


class LocationTypeConfig(BaseModel):
    """Placement rules for one location type."""

    terrain: list[str] = Field(default_factory=list, description="Allowed terrain types")
    elevation_min: float = Field(default=0.0, ge=0.0, le=1.0)
    elevation_max: float = Field(default=1.0, ge=0.0, le=1.0)
    requires_water: bool = Field(
        default=False, description="Needs a water neighbour or a river on/next to it"
    )
    min_count: int = Field(default=0, ge=0)
    max_count: int = Field(default=1, ge=0)
    min_distance_same_type: int = Field(default=3, ge=0)
    min_distance_any_location: int = Field(default=2, ge=0)
    town_distance: tuple[int, int] | None = Field(
        default=None, description="Allowed [min, max] distance to the nearest town"
    )
    strategic: bool = False
    along_routes: bool = False
    prefer_rivers: bool = False
    near_settlements: bool = False
    between_settlements: bool = False
    names: list[str] = Field(default_factory=list)
    int_properties: dict[str, tuple[int, int]] = Field(default_factory=dict)
    choice_properties: dict[str, list[str]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_ranges(self) -> "LocationTypeConfig":
        if self.min_count > self.max_count:
            raise ValueError("min_count must not exceed max_count")
        if self.elevation_min > self.elevation_max:
            raise ValueError("elevation_min must not exceed elevation_max")
        if self.town_distance is not None and self.town_distance[0] > self.town_distance[1]:
            raise ValueError("town_distance must be [min, max]")
        for key, (low, high) in self.int_properties.items():
            if low > high:
                raise ValueError(f"int_properties['{key}'] must be [low, high]")
        return self


class PlacementTuning(BaseModel):
    """Heuristic thresholds and scoring weights for location placement."""

    route_detour_ratio: float = Field(
        default=0.3, description="Allowed detour over the straight town-to-town distance"
    )
    commanding_view_neighbors: int = Field(
        default=4, description="Lower neighbours needed for a commanding view"
    )
    pass_elevation_min: float = Field(
        default=0.62,
        ge=0.0,
        le=1.0,
        description="Elevation of the flanks of a mountain pass",
    )
    crossing_elevation_min: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum elevation of a defensible river crossing",
    )
    near_settlement_distance: tuple[int, int] = Field(default=(2, 5))
    between_settlement_distance: tuple[int, int] = Field(default=(2, 10))
    river_bonus: float = 3.0
    water_bonus: float = 1.5
    strategic_bonus: float = 2.0
    between_bonus: float = 4.0
    jitter: float = Field(default=0.5, description="Upper bound of the random tie-breaker")


def _town() -> LocationTypeConfig:
    return LocationTypeConfig(
        terrain=["plains", "grassland", "forest", "desert"],
        elevation_min=0.47,
        elevation_max=0.58,
        requires_water=True,
        min_count=1,
        max_count=3,
        min_distance_same_type=4,
        prefer_rivers=True,
        names=[
            "Dry Gulch", "Red Bluff", "Cottonwood", "Silver Springs", "Dusty Flats",
            "Copper Creek", "Tombstone Ridge", "Mesa Verde", "Willow Bend",
            "Coyote Wells", "Sweetwater", "Lone Pine",
        ],
        int_properties={"population": (80, 600)},
        choice_properties={"economy": ["cattle", "mining", "farming", "timber", "trade"]},
    )


def _fort() -> LocationTypeConfig:
    return LocationTypeConfig(
        terrain=["plains", "grassland", "desert", "hills"],
        elevation_min=0.49,
        elevation_max=0.64,
        max_count=2,
        min_distance_same_type=5,
        town_distance=(2, 8),
        strategic=True,
        names=[
            "Fort Bridger", "Fort Defiance", "Fort Laramie", "Fort Union",
            "Fort Sumner", "Fort Bowie", "Fort Hall", "Fort Kearny",
        ],
        int_properties={"garrison": (20, 120)},
        choice_properties={"condition": ["well kept", "undermanned", "crumbling"]},
    )


def _trading_post() -> LocationTypeConfig:
    return LocationTypeConfig(
        terrain=["plains", "grassland", "forest", "desert"],
        elevation_min=0.47,
        elevation_max=0.58,
        max_count=2,
        min_distance_same_type=4,
        prefer_rivers=True,
        between_settlements=True,
        names=[
            "Bent's Post", "Hudson Exchange", "Crossroads Trading", "Miller's Post",
            "Redstone Exchange", "Beaver Lodge Post",
        ],
        choice_properties={"goods": ["furs", "tools", "salt", "cloth", "ammunition"]},
        int_properties={"prices": (80, 140)},
    )


def _mission() -> LocationTypeConfig:
    return LocationTypeConfig(
        terrain=["plains", "grassland", "desert", "hills"],
        elevation_min=0.47,
        elevation_max=0.62,
        max_count=2,
        min_distance_same_type=5,
        near_settlements=True,
        names=[
            "San Miguel", "Santa Clara", "San Xavier", "Santa Ines", "San Rafael",
            "San Gabriel",
        ],
        int_properties={"residents": (5, 40)},
        choice_properties={"offers": ["shelter", "healing", "supplies"]},
    )


def _roadhouse() -> LocationTypeConfig:
    return LocationTypeConfig(
        terrain=["plains", "grassland", "desert", "forest"],
        elevation_min=0.47,
        elevation_max=0.6,
        max_count=3,
        min_distance_same_type=3,
        along_routes=True,
        names=[
            "The Rusty Spur", "Halfway House", "The Last Chance", "Stage Stop",
            "The Thirsty Mule", "Drover's Rest",
        ],
        int_properties={"rooms": (2, 10)},
        choice_properties={"service": ["meals", "fresh horses", "beds", "whiskey"]},
    )


def _cave() -> LocationTypeConfig:
    return LocationTypeConfig(
        terrain=["hills", "mountain"],
        elevation_min=0.58,
        elevation_max=0.7,
        max_count=3,
        min_distance_same_type=3,
        names=[
            "Bat Cave", "Outlaw's Hollow", "Echo Cavern", "Miner's Folly",
            "Bear Den", "Crystal Grotto",
        ],
        int_properties={"depth": (1, 5)},
        choice_properties={"danger": ["low", "moderate", "high"]},
    )


def _caravan_camp() -> LocationTypeConfig:
    return LocationTypeConfig(
        terrain=["desert", "plains", "grassland"],
        elevation_min=0.47,
        elevation_max=0.58,
        max_count=2,
        min_distance_same_type=4,
        along_routes=True,
        prefer_rivers=True,
        names=[
            "Wagon Circle", "Dust Camp", "Oxbow Camp", "Sutter's Camp",
            "Prairie Rest",
        ],
        int_properties={"wagons": (3, 15)},
        choice_properties={"heading": ["west", "south", "east", "north"]},
    )


def default_location_types() -> dict[str, LocationTypeConfig]:
    return {
        "town": _town(),
        "fort": _fort(),
        "trading_post": _trading_post(),
        "mission": _mission(),
        "roadhouse": _roadhouse(),
        "cave": _cave(),
        "caravan_camp": _caravan_camp(),
    }


class LocationConfig(BaseModel):
    """Per-type placement rules and shared tuning."""

    types: dict[str, LocationTypeConfig] = Field(default_factory=default_location_types)
    tuning: PlacementTuning = Field(default_factory=PlacementTuning)
    seed_offset: int = Field(default=77777, description="Added to the seed for placement RNG")

    def placement_order(self) -> list[str]:
        """Configured types in dependency order, unknown types last."""
        ordered = [name for name in PLACEMENT_ORDER if name in self.types]
        ordered.extend(name for name in self.types if name not in PLACEMENT_ORDER)
        return ordered


class ValidationConfig(BaseModel):
    """Thresholds for map validation."""

    water_min_fraction: float = Field(default=0.05, ge=0.0, le=1.0)
    water_max_fraction: float = Field(default=0.5, ge=0.0, le=1.0)
    high_elevation_threshold: float = Field(default=0.58, ge=0.0, le=1.0)
    min_high_elevation_fraction: float = Field(default=0.05, ge=0.0, le=1.0)
    lowland_terrains: list[str] = Field(default_factory=lambda: list(LOWLAND_TERRAINS))
    min_lowland_fraction: float = Field(default=0.1, ge=0.0, le=1.0)
    flow_tolerance: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Allowed elevation rise between river steps",
    )
    impassable_terrains: list[str] = Field(
        default_factory=lambda: list(IMPASSABLE_TERRAINS)
    )


class MapConfig(BaseModel):
    """Complete map generation configuration."""

    width: int = Field(default=40, ge=1, description="Map width in hexes (columns)")
    height: int = Field(default=30, ge=1, description="Map height in hexes (rows)")
    hex_size: float = Field(default=32.0, gt=0, description="Hex radius in pixels")
    precision: int = Field(
        default=4, ge=0, description="Decimal places for elevation and moisture"
    )

    terrain: TerrainConfig = Field(default_factory=TerrainConfig)
    rivers: RiverConfig = Field(default_factory=RiverConfig)
    locations: LocationConfig = Field(default_factory=LocationConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
