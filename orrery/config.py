"""
Animation settings using Pydantic models.

Settings can be read from a JSON file; any field left out keeps its default.
"""
import logging
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class CameraConfig(BaseModel):
    """Camera follow offset and distance limits, in visualization units."""
    offset: Tuple[float, float, float] = Field(
        (300.0, 400.0, 500.0),
        description="Camera position relative to the followed target"
    )
    min_distance: float = Field(100.0, gt=0.0, description="Closest the camera may get to its target")
    max_distance: float = Field(4000.0, gt=0.0, description="Farthest the camera may get from its target")
    follow: Optional[int] = Field(
        10,
        description="Body ID the camera follows; None leaves the camera where the user put it"
    )

    @model_validator(mode='after')
    def validate_distances(self):
        if self.min_distance > self.max_distance:
            raise ValueError(
                f"min_distance ({self.min_distance}) must not exceed max_distance ({self.max_distance})"
            )
        return self


class TailConfig(BaseModel):
    """Comet tail particle layout."""
    length: float = Field(0.1, ge=0.0, description="Tail length in AU")
    particle_count: int = Field(333, ge=0, description="Particles per comet tail")
    jitter: float = Field(0.002, ge=0.0, description="Half-width of the per-particle random offset, AU")
    base_scale: float = Field(20.0, gt=0.0, description="Marker size of the particle at the comet head")
    max_opacity: float = Field(0.3, ge=0.0, le=1.0, description="Opacity of the particle at the comet head")


class AnimationConfig(BaseModel):
    """
    Settings for the animated orrery.

    Distances handed to the renderer are heliocentric AU multiplied by
    ``scale``; camera settings are in those scaled units.
    """
    scale: float = Field(100.0, gt=0.0, description="Visualization units per AU")
    segment_count: int = Field(256, ge=3, description="Points per orbit polyline")
    orbit_sampling: str = Field('true', description="Anomaly used to space orbit points: 'true' or 'mean'")
    fps: int = Field(30, gt=0, description="Frames per second")
    days_per_frame: float = Field(1.0, description="Simulated days advanced per frame")
    frames: int = Field(3600, gt=0, description="Number of frames in the animation")
    seed: Optional[int] = Field(None, description="Seed for the comet tail jitter")
    camera: CameraConfig = Field(default_factory=CameraConfig)
    tail: TailConfig = Field(default_factory=TailConfig)

    @field_validator('orbit_sampling')
    @classmethod
    def validate_sampling(cls, v):
        if v not in ('true', 'mean'):
            raise ValueError("orbit_sampling must be 'true' or 'mean'")
        return v


def load_config(path: Optional[Path] = None) -> AnimationConfig:
    """
    Read animation settings from a JSON file.

    Args:
        path: Path to a JSON file, or None for the defaults

    Raises:
        pydantic.ValidationError: if the file holds invalid settings
    """
    if path is None:
        return AnimationConfig()

    path = Path(path)
    config = AnimationConfig.model_validate_json(path.read_text(encoding='utf-8'))
    logger.info("Loaded animation config from %s", path)
    return config
