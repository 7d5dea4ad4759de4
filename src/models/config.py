"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class AnnotationConfig:
    """Annotation style."""
    colour: List[int] = field(default_factory=lambda: [255, 0, 255])  # BGR
    font_scale: float = 0.5
    font_thickness: int = 1
    box_thickness: int = 2
    include_duration: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnnotationConfig":
        return cls(
            colour=list(d.get("colour", [255, 0, 255])),
            font_scale=d.get("font_scale", 0.5),
            font_thickness=d.get("font_thickness", 1),
            box_thickness=d.get("box_thickness", 2),
            include_duration=d.get("include_duration", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "colour": list(self.colour),
            "font_scale": self.font_scale,
            "font_thickness": self.font_thickness,
            "box_thickness": self.box_thickness,
            "include_duration": self.include_duration,
        }


@dataclass
class DetectorConfig:
    """Darknet network files and thresholds."""
    config_path: str = ""
    weights_path: str = ""
    names_path: str = ""
    threshold: float = 0.5
    hierarchy_threshold: float = 0.5
    nms_threshold: float = 0.45
    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            config_path=d.get("config_path", ""),
            weights_path=d.get("weights_path", ""),
            names_path=d.get("names_path", "") or "",
            threshold=d.get("threshold", 0.5),
            hierarchy_threshold=d.get("hierarchy_threshold", 0.5),
            nms_threshold=d.get("nms_threshold", 0.45),
            annotation=AnnotationConfig.from_dict(d.get("annotation", {}) or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config_path": self.config_path,
            "weights_path": self.weights_path,
            "names_path": self.names_path,
            "threshold": self.threshold,
            "hierarchy_threshold": self.hierarchy_threshold,
            "nms_threshold": self.nms_threshold,
            "annotation": self.annotation.to_dict(),
        }


@dataclass
class OutputConfig:
    """Where annotated images go."""
    output_dir: str = "output/annotated"
    display: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OutputConfig":
        return cls(
            output_dir=d.get("output_dir", "output/annotated"),
            display=d.get("display", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_dir": self.output_dir,
            "display": self.display,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_path: str = "logs/darknet_helper.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            detector=DetectorConfig.from_dict(d.get("detector", {})),
            output=OutputConfig.from_dict(d.get("output", {}) or {}),
            log_path=d.get("log_path", "logs/darknet_helper.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or re-validating)."""
        return {
            "detector": self.detector.to_dict(),
            "output": self.output.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
