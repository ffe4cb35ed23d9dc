"""API configuration settings."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_BANDS, Level, PerformanceRating


class AppSettings(BaseSettings):
    """Configuration for the WagePlan API server and compensation engine."""

    model_config = SettingsConfigDict(env_prefix="WAGEPLAN_", env_file=".env")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # CORS (for the dashboard dev server)
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Data sources
    data_dir: Path = Field(default_factory=lambda: Path("data"))
    upload_filename: str = "current_data.xlsx"
    default_data_file: Optional[Path] = None
    extra_data_files: List[Path] = Field(default_factory=list)

    # Uploads
    max_upload_bytes: int = 50 * 1024 * 1024
    supported_extensions: List[str] = [".xlsx", ".xls"]

    # Benchmarks and defaults used when the workbook omits them
    default_competitor_rate: float = 4.2
    industry_average_rate: float = 4.5
    default_base_up_percentage: float = 3.2
    default_merit_increase_percentage: float = 2.5
    default_min_range: float = 5.7
    default_max_range: float = 5.9

    # Merit multiplier per performance rating
    performance_weights: Dict[PerformanceRating, float] = Field(
        default_factory=lambda: {
            PerformanceRating.S: 1.5,
            PerformanceRating.A: 1.2,
            PerformanceRating.B: 1.0,
            PerformanceRating.C: 0.8,
        }
    )

    # Pay band benchmarking
    bands: List[str] = Field(default_factory=lambda: list(DEFAULT_BANDS))
    market_medians: Dict[Level, float] = Field(
        default_factory=lambda: {
            Level.LV1: 56_000_000,
            Level.LV2: 72_000_000,
            Level.LV3: 92_000_000,
            Level.LV4: 115_000_000,
        }
    )
    ca_index_factor: float = 1.05

    # Default pay band constraints (percent values, gap as a ratio)
    slider_min: float = -5.0
    slider_max: float = 10.0
    level_gap_min: float = 0.05
    budget_cap: Optional[float] = None
    constraints_file: Optional[Path] = None

    @property
    def upload_path(self) -> Path:
        """Where the last successful upload is persisted."""
        return self.data_dir / "temp" / self.upload_filename

    def upload_path_for(self, suffix: str) -> Path:
        """Persisted upload path keeping the uploaded file's format suffix."""
        return self.upload_path.with_suffix(suffix.lower())

    def uploaded_files(self) -> List[Path]:
        """Every path a persisted upload may live at, .xlsx first."""
        return [self.upload_path_for(ext) for ext in self.supported_extensions]

    @property
    def default_data_path(self) -> Path:
        """Bundled roster used when nothing has been uploaded."""
        return self.default_data_file or self.data_dir / "default_employee_data.xlsx"

    def data_source_candidates(self) -> List[Path]:
        """Candidate roster files in priority order."""
        candidates = [*self.uploaded_files(), self.default_data_path, *self.extra_data_files]
        unique: List[Path] = []
        for path in candidates:
            if path not in unique:
                unique.append(path)
        return unique


# Global settings instance
settings = AppSettings()


def get_settings() -> AppSettings:
    """Get the global settings instance."""
    return settings
