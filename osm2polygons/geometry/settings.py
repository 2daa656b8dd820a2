import dataclasses
import logging
import math
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class GeometrySettings:
    """
    Tunables for trimming and polygon construction.

    Lengths use the unit of the projected coordinates (meters). The trim cap
    is min(trim_cap_fraction * road length, trim_cap_length); it keeps short
    roads from being consumed by wide neighbours.
    """

    min_trim: float = 2.5
    trim_cap_fraction: float = 0.9
    trim_cap_length: float = 50.0
    dead_end_length: float = 2.5
    angle_tolerance: float = 1e-6  # radians
    corner_extension_factor: float = 3.0
    mitre_limit: float = 5.0
    dedupe_tolerance: float = 1e-6

    def __post_init__(self):
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) \
                    or not math.isfinite(value):
                raise ValueError(f"Geometry setting '{field.name}' must be a finite number, "
                                 f"got {value!r}")
            if value < 0:
                raise ValueError(f"Geometry setting '{field.name}' must not be negative")
        if not 0 < self.trim_cap_fraction < 1:
            raise ValueError("trim_cap_fraction must be strictly between 0 and 1")
        if self.trim_cap_length <= 0:
            raise ValueError("trim_cap_length must be positive")
        if self.mitre_limit < 1:
            raise ValueError("mitre_limit must be at least 1")

    @classmethod
    def from_config(cls, params: Optional[Dict[str, Any]] = None) -> "GeometrySettings":
        """
        Build settings from the ``geometry`` section of the configuration.

        Unknown keys are logged and ignored; missing keys keep their defaults.
        """
        params = dict(params or {})
        known = {field.name for field in dataclasses.fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            logger.warning("Ignoring unknown geometry settings: %s", ", ".join(unknown))
        return cls(**{key: value for key, value in params.items() if key in known})

    def trim_cap(self, length: float) -> float:
        """Largest distance a road of ``length`` may be trimmed at one end."""
        return min(self.trim_cap_fraction * length, self.trim_cap_length)
