"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No simulation logic
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import OBSERVER_QUEUE_MAX, TICK_INTERVAL_S


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory and the kitchen context.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str
    api_version: str

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------

    host: str
    port: int
    cors_origins: tuple[str, ...]

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    # Seconds of wall time per simulated tick; lower it to fast-forward demos
    tick_interval_s: float

    # ------------------------------------------------------------------
    # Push channel
    # ------------------------------------------------------------------

    observer_queue_max: int

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable cannot be parsed or is not positive.
        """
        tick_interval_s = float(os.environ.get("TICK_INTERVAL_S", str(TICK_INTERVAL_S)))
        observer_queue_max = int(os.environ.get("OBSERVER_QUEUE_MAX", str(OBSERVER_QUEUE_MAX)))
        if tick_interval_s <= 0:
            raise ValueError("TICK_INTERVAL_S must be > 0")
        if observer_queue_max <= 0:
            raise ValueError("OBSERVER_QUEUE_MAX must be > 0")

        origins = os.environ.get("CORS_ORIGINS", "*")

        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            api_version=os.environ.get("API_VERSION", "2.0"),

            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3000")),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),

            tick_interval_s=tick_interval_s,
            observer_queue_max=observer_queue_max,
        )
