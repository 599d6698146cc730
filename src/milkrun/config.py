"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="MILKRUN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Milk Run Dispatch API"
    api_prefix: str = "/api"

    depot_code: str = "MAIN"
    depot_latitude: float = Field(default=9.033, ge=-90.0, le=90.0)
    depot_longitude: float = Field(default=38.750, ge=-180.0, le=180.0)

    default_clustering_radius_km: float = Field(default=3.0, gt=0.0)
    default_vehicle_capacity: int = Field(default=5, ge=1)
    vehicle_capacities: dict[str, int] = Field(
        default={"motorbike": 3, "car": 5, "van": 10, "truck": 20},
        description="Maximum stops per trip keyed by vehicle type.",
    )
    minutes_per_km: float = Field(default=5.0, ge=0.0, description="Duration estimate used for planned clusters.")
    pending_order_statuses: tuple[str, ...] = Field(
        default=(
            "confirmed",
            "processing",
            "ready_for_dispatch",
            "paid",
            "pending",
            "payment_received",
            "ready",
        ),
        description="Order statuses eligible for milk-run planning.",
    )

    clustering_weight: float = Field(default=0.3, ge=0.0)
    distance_weight: float = Field(default=0.5, ge=0.0)
    time_weight: float = Field(default=0.2, ge=0.0)
    time_scaling_factor: float = Field(default=0.9, ge=0.0)

    segment_proximity_km: float = Field(default=2.0, gt=0.0)
    bottleneck_threshold_minutes: float = Field(default=5.0, ge=0.0)
    default_speed_kmh: float = Field(default=30.0, gt=0.0)
    bottleneck_penalty: float = Field(default=15.0, ge=0.0)
    max_potential_improvement: float = Field(default=40.0, ge=0.0, le=100.0)
    min_improvement_to_reroute: float = Field(default=10.0, ge=0.0, le=100.0)
    reversal_speed_kmh: float = Field(default=25.0, gt=0.0)
    reversal_confidence: float = Field(default=75.0, ge=0.0, le=100.0)
    reroute_alternatives: tuple[str, ...] = Field(
        default=("traffic_aware",),
        description="Alternative route generators, any of 'reversal' and 'traffic_aware'.",
    )

    traffic_feed_url: Optional[str] = Field(
        default=None,
        description="Base URL of a live traffic service. The mock feed is used when unset.",
    )
    traffic_fluctuation_kmh: float = Field(default=5.0, ge=0.0)
    traffic_timeout_seconds: float = Field(default=10.0, gt=0.0)
    traffic_max_retries: int = Field(default=2, ge=0)
    traffic_backoff_seconds: float = Field(default=0.5, ge=0.0)

    active_statuses: tuple[str, ...] = Field(default=("assigned", "accepted", "picked_up", "in_transit"))
    sweep_max_workers: int = Field(default=4, ge=1)
    sweep_cluster_timeout_seconds: float = Field(default=30.0, gt=0.0)
    auto_apply_reroutes: bool = True

    solver_first_solution_strategy: str = Field(default="PATH_CHEAPEST_ARC")
    solver_local_search_metaheuristic: str = Field(default="GREEDY_DESCENT")
    solver_time_limit_seconds: int = Field(default=2, ge=0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator(
        "frontend_allowed_origins",
        "pending_order_statuses",
        "active_statuses",
        "reroute_alternatives",
        mode="before",
    )
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("reroute_alternatives")
    @classmethod
    def _check_alternatives(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [name for name in value if name not in {"reversal", "traffic_aware"}]
        if unknown:
            raise ValueError(f"Unknown alternative route generators: {unknown}")
        return value

    @field_validator("vehicle_capacities", mode="before")
    @classmethod
    def _parse_capacities_from_env(cls, value: Any) -> dict[str, int]:
        """Accept a JSON object or 'type:capacity' pairs separated by commas."""
        if isinstance(value, dict):
            return {str(key).lower(): int(cap) for key, cap in value.items()}
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, dict):
                    return {str(key).lower(): int(cap) for key, cap in parsed.items()}
            except (json.JSONDecodeError, TypeError, ValueError):
                pass
            capacities: dict[str, int] = {}
            for pair in value.split(","):
                if ":" not in pair:
                    continue
                name, _, capacity = pair.partition(":")
                capacities[name.strip().lower()] = int(capacity.strip())
            return capacities
        return {}


settings = Settings()
