from pydantic_settings import BaseSettings
from pydantic import field_validator

from app.core import constants
from app.tracking.models import FilterConfig


class Settings(BaseSettings):
    database_url: str = "sqlite+pysqlite:///./runpulse.db"
    log_level: str = "INFO"

    # Split length used when a session is started without one
    default_segment_size_m: int = constants.DEFAULT_SEGMENT_SIZE_M

    # GPS filter thresholds (see app.core.constants for meaning)
    max_accuracy_m: float = constants.MAX_ACCURACY_M
    gps_warmup_acc_m: float = constants.GPS_WARMUP_ACC_M
    min_delta_m: float = constants.MIN_DELTA_M
    max_speed_mps: float = constants.MAX_SPEED_MPS
    process_noise: float = constants.PROCESS_NOISE
    measurement_variance_scale: float = constants.MEASUREMENT_VARIANCE_SCALE

    min_save_duration_s: float = constants.MIN_SAVE_DURATION_S
    pace_window: int = constants.PACE_WINDOW
    pace_stale_after_s: float = constants.PACE_STALE_AFTER_S
    history_limit: int = constants.HISTORY_LIMIT
    session_idle_timeout_s: float = constants.SESSION_IDLE_TIMEOUT_S

    # GPX replay: accuracy = hdop * uere, or the default when hdop is missing
    replay_default_accuracy_m: float = 5.0
    replay_uere_m: float = 5.0

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v):
        if v in ("", None, "null", "None"):
            return "INFO"
        return str(v).upper()

    @field_validator("default_segment_size_m")
    @classmethod
    def _positive_segment(cls, v):
        if v <= 0:
            raise ValueError("default_segment_size_m must be > 0")
        return v

    def filter_config(self) -> FilterConfig:
        """Build the core's plain filter configuration from these settings."""
        return FilterConfig(
            max_accuracy_m=self.max_accuracy_m,
            warmup_accuracy_m=self.gps_warmup_acc_m,
            min_delta_m=self.min_delta_m,
            max_speed_mps=self.max_speed_mps,
            process_noise=self.process_noise,
            measurement_variance_scale=self.measurement_variance_scale,
            min_save_duration_s=self.min_save_duration_s,
            pace_window=self.pace_window,
            pace_stale_after_s=self.pace_stale_after_s,
        )

    class Config:
        env_file = ".env"


settings = Settings()
