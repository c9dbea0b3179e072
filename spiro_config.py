from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import math
import os
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QStandardPaths

from nested_math import Stage

CONFIG_VERSION = 1
CONFIG_FILE_NAME = "nestedspiro_config.json"

_LOGGER = logging.getLogger(__name__)


@dataclass
class TraceSettings:
    max_pixel_step: float = 1.0     # longueur max d'un sous-segment (px)
    max_substeps: int = 256         # garde-fou par image
    stroke_width: float = 2.0
    pixels_per_cycle: float = 600.0  # longueur de tracé pour un tour de teinte
    hue_offset: float = 0.0
    alpha: int = 230


def default_chain(
    base_radius: float = 200.0,
    *,
    count: int = 10,
    radius_div: float = 3.0,
    base_speed: float = -4.0,
    pen_ratio: float = 0.75,
    phase: float = -math.pi / 2.0,
) -> List[Stage]:
    """
    Chaîne de démonstration : chaque étage fait 1/``radius_div`` du précédent
    et tourne à ``base_speed ** i`` rad/s ; seul le dernier porte un stylo.
    """
    stages: List[Stage] = []
    radius = float(base_radius)
    for i in range(count):
        radius /= radius_div
        stages.append(
            Stage(
                radius=radius,
                pen_offset=0.0,
                rolls_outside=True,
                angular_velocity=base_speed ** i,
                phase=phase,
            )
        )
    if stages:
        stages[-1].pen_offset = stages[-1].radius * pen_ratio
    return stages


@dataclass
class AppConfig:
    width: int = 1280
    height: int = 900
    fps: int = 120
    base_radius: float = 200.0
    min_base_radius: float = 20.0
    base_radius_step: float = 5.0
    speed_step: float = 0.1
    language: str = "en"
    show_mechanism: bool = True
    trace: TraceSettings = field(default_factory=TraceSettings)
    stages: List[Stage] = field(default_factory=default_chain)


def stage_to_dict(stage: Stage) -> Dict[str, Any]:
    return {
        "radius": stage.radius,
        "pen_offset": stage.pen_offset,
        "rolls_outside": stage.rolls_outside,
        "angular_velocity": stage.angular_velocity,
        "phase": stage.phase,
    }


def stage_from_dict(data: Dict[str, Any]) -> Stage:
    return Stage(
        radius=float(data["radius"]),
        pen_offset=float(data.get("pen_offset", 0.0)),
        rolls_outside=bool(data.get("rolls_outside", False)),
        angular_velocity=float(data.get("angular_velocity", 0.0)),
        phase=float(data.get("phase", 0.0)),
    )


def config_to_dict(config: AppConfig) -> Dict[str, Any]:
    trace = config.trace
    return {
        "version": CONFIG_VERSION,
        "width": config.width,
        "height": config.height,
        "fps": config.fps,
        "base_radius": config.base_radius,
        "min_base_radius": config.min_base_radius,
        "base_radius_step": config.base_radius_step,
        "speed_step": config.speed_step,
        "language": config.language,
        "show_mechanism": config.show_mechanism,
        "trace": {
            "max_pixel_step": trace.max_pixel_step,
            "max_substeps": trace.max_substeps,
            "stroke_width": trace.stroke_width,
            "pixels_per_cycle": trace.pixels_per_cycle,
            "hue_offset": trace.hue_offset,
            "alpha": trace.alpha,
        },
        "stages": [stage_to_dict(s) for s in config.stages],
    }


def _positive(value: float) -> float:
    if not (math.isfinite(value) and value > 0.0):
        raise ValueError("must be positive")
    return value


def _read(data: Dict[str, Any], key: str, default, convert, check=None):
    value = data.get(key)
    if value is None:
        return default
    try:
        converted = convert(value)
        return check(converted) if check is not None else converted
    except (TypeError, ValueError):
        _LOGGER.warning("Ignoring invalid config value %s=%r", key, value)
        return default


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    """Construit une configuration ; les champs invalides gardent leur défaut."""
    config = AppConfig()
    config.width = _read(data, "width", config.width, int)
    config.height = _read(data, "height", config.height, int)
    config.fps = _read(data, "fps", config.fps, int)
    config.base_radius = _read(data, "base_radius", config.base_radius, float)
    config.min_base_radius = _read(data, "min_base_radius", config.min_base_radius, float)
    config.base_radius_step = _read(data, "base_radius_step", config.base_radius_step, float)
    config.speed_step = _read(data, "speed_step", config.speed_step, float)
    config.language = _read(data, "language", config.language, str)
    config.show_mechanism = _read(data, "show_mechanism", config.show_mechanism, bool)

    trace_data = data.get("trace") or {}
    trace = config.trace
    trace.max_pixel_step = _read(
        trace_data, "max_pixel_step", trace.max_pixel_step, float, _positive
    )
    trace.max_substeps = _read(trace_data, "max_substeps", trace.max_substeps, int)
    trace.stroke_width = _read(trace_data, "stroke_width", trace.stroke_width, float, _positive)
    trace.pixels_per_cycle = _read(
        trace_data, "pixels_per_cycle", trace.pixels_per_cycle, float, _positive
    )
    trace.hue_offset = _read(trace_data, "hue_offset", trace.hue_offset, float)
    trace.alpha = min(255, max(0, _read(trace_data, "alpha", trace.alpha, int)))

    stages_data = data.get("stages")
    if stages_data is not None:
        try:
            config.stages = [stage_from_dict(sd) for sd in stages_data]
        except (KeyError, TypeError, ValueError):
            _LOGGER.warning("Ignoring invalid stage list in config, using default chain")
            config.stages = default_chain(config.base_radius)
    return config


def config_file_path() -> str:
    base_dir = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppConfigLocation)
    if not base_dir:
        base_dir = os.path.expanduser("~")
    return os.path.join(base_dir, CONFIG_FILE_NAME)


def load_config(path: Optional[str] = None) -> AppConfig:
    cfg_path = path or config_file_path()
    if not os.path.exists(cfg_path):
        return AppConfig()

    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        _LOGGER.warning("Could not read config %s: %s", cfg_path, exc)
        return AppConfig()
    if not isinstance(data, dict):
        _LOGGER.warning("Config %s is not a JSON object, using defaults", cfg_path)
        return AppConfig()
    return config_from_dict(data)


def save_config(config: AppConfig, path: Optional[str] = None) -> bool:
    cfg_path = path or config_file_path()
    try:
        os.makedirs(os.path.dirname(cfg_path) or ".", exist_ok=True)
        with open(cfg_path, "w", encoding="utf-8") as f:
            json.dump(config_to_dict(config), f, indent=2, ensure_ascii=False)
    except OSError as exc:
        _LOGGER.warning("Could not save config %s: %s", cfg_path, exc)
        return False
    return True
