from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ROOFMAP_")

    app_name: str = "RoofMap Roof Outline Measurement"
    debug: bool = True
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    log_level: str = "INFO"

    # Drawing
    snap_threshold_px: float = 15.0
    min_label_length_m: float = 0.1  # edges shorter than this get no label
    min_edge_m: float = 0.1  # shorter committed edges are reported as MICRO_EDGE
    measurement_epsilon: float = 0.001
    length_unit: str = "m"
    rotate_labels: bool = True  # False = camera-locked labels without bearing

    # Imagery visibility (default region: North Rhine-Westphalia)
    imagery_min_zoom: float = 15.0
    region_name: str = "North Rhine-Westphalia"
    region_north: float = 52.5314
    region_south: float = 50.3230
    region_east: float = 9.4623
    region_west: float = 5.8663


settings = Settings()
