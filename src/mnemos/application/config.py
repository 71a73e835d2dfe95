from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemos.domain import constants as c

CONFIG_FILES = (
    Path(".config/mnemos/config.toml"),
    Path(".mnemos.toml"),
)


class PerformanceWeights(BaseModel):
    """Weights of the five Performance Index terms. Must sum to 1."""

    precision: float = Field(default=c.WEIGHT_PRECISION, ge=0, le=1)
    consistency: float = Field(default=c.WEIGHT_CONSISTENCY, ge=0, le=1)
    efficiency: float = Field(default=c.WEIGHT_EFFICIENCY, ge=0, le=1)
    speed: float = Field(default=c.WEIGHT_SPEED, ge=0, le=1)
    difficulty: float = Field(default=c.WEIGHT_DIFFICULTY, ge=0, le=1)

    @model_validator(mode="after")
    def check_total(self) -> "PerformanceWeights":
        total = self.precision + self.consistency + self.efficiency + self.speed + self.difficulty
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"performance weights must sum to 1.0, got {total:.3f}")
        return self


class MilestoneRule(BaseModel):
    """A named accuracy level a projection can reach within its horizon."""

    threshold: int = Field(ge=0, le=100)
    name: str
    fraction: float = Field(gt=0, le=1)  # share of the horizon before it is reached
    probability: int = Field(ge=0, le=100)


class InsightThresholds(BaseModel):
    """Metric levels reported as strengths or as areas to improve."""

    strong_accuracy: int = c.STRONG_ACCURACY
    strong_consistency: int = c.STRONG_CONSISTENCY
    strong_hint_efficiency: int = c.STRONG_HINT_EFFICIENCY
    strong_speed: int = c.STRONG_SPEED
    weak_accuracy: int = c.WEAK_ACCURACY
    weak_consistency: int = c.WEAK_CONSISTENCY
    weak_hint_efficiency: int = c.WEAK_HINT_EFFICIENCY
    weak_speed: int = c.WEAK_SPEED

    # Performance Index tiers of the headline recommendation
    outstanding_index: int = c.OUTSTANDING_INDEX
    great_index: int = c.GREAT_INDEX
    good_index: int = c.GOOD_INDEX


class AnalyticsConfig(BaseSettings):
    """
    Formula parameters for the analytics engine.
    Supports loading from:
    1. Environment variables (MNEMOS_*, nested with __)
    2. Config file (~/.config/mnemos/config.toml or ~/.mnemos.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMOS_",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    # Performance Index
    weights: PerformanceWeights = Field(default_factory=PerformanceWeights)
    speed_steps: list[tuple[float, int]] = Field(default_factory=lambda: list(c.SPEED_STEPS))
    speed_floor_score: int = c.SPEED_FLOOR_SCORE
    speed_empty_score: int = c.SPEED_EMPTY_SCORE
    streak_threshold: float = c.STREAK_THRESHOLD
    large_session_words: int = c.LARGE_SESSION_WORDS
    difficulty_bonus: float = c.DIFFICULTY_BONUS
    default_difficulty_score: int = c.DEFAULT_DIFFICULTY_SCORE

    # Timelines
    timeline_window: int = Field(default=c.TIMELINE_WINDOW, ge=1)
    chart_window: int = Field(default=c.CHART_WINDOW, ge=1)
    baseline_seconds_per_word: float = c.BASELINE_SECONDS_PER_WORD
    hint_share_threshold: float = Field(default=c.HINT_SHARE_THRESHOLD, gt=0, le=1)

    # Trend analysis
    wma_weights: list[float] = Field(default_factory=lambda: list(c.WMA_WEIGHTS))
    stability_window: int = Field(default=c.STABILITY_WINDOW, ge=2)
    direction_threshold: float = c.DIRECTION_THRESHOLD
    min_sessions_for_velocity: int = c.MIN_SESSIONS_FOR_VELOCITY
    min_words_for_patterns: int = c.MIN_WORDS_FOR_PATTERNS
    recent_days: int = c.RECENT_DAYS

    # Word status
    recent_attempts_window: int = Field(default=c.RECENT_ATTEMPTS_WINDOW, ge=1)
    min_attempts_for_status: int = c.MIN_ATTEMPTS_FOR_STATUS
    min_attempts_for_trend: int = Field(default=c.MIN_ATTEMPTS_FOR_TREND, ge=2)
    word_trend_delta: float = c.WORD_TREND_DELTA

    # Patterns and profile
    min_tests_per_bucket: int = Field(default=c.MIN_TESTS_PER_BUCKET, ge=1)
    default_session_minutes: int = c.DEFAULT_SESSION_MINUTES
    min_session_minutes: int = c.MIN_SESSION_MINUTES
    max_session_minutes: int = c.MAX_SESSION_MINUTES

    # Insights
    insight_thresholds: InsightThresholds = Field(default_factory=InsightThresholds)

    # Projections
    projection_horizons: list[int] = Field(default_factory=lambda: list(c.PROJECTION_HORIZONS))
    min_points_for_projection: int = Field(default=c.MIN_POINTS_FOR_PROJECTION, ge=2)
    milestones: list[MilestoneRule] = Field(
        default_factory=lambda: [
            MilestoneRule(threshold=t, name=n, fraction=f, probability=p) for t, n, f, p in c.MILESTONES
        ]
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = None
        for rel in CONFIG_FILES:
            candidate = Path.home() / rel
            if candidate.exists():
                toml_file = candidate
                break

        # Earlier sources take precedence: overrides > env > file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("speed_steps")
    @classmethod
    def sort_speed_steps(cls, v: list[tuple[float, int]]) -> list[tuple[float, int]]:
        if not v:
            raise ValueError("speed_steps must not be empty")
        steps = sorted(v, key=lambda step: step[0])
        scores = [score for _, score in steps]
        if scores != sorted(scores, reverse=True):
            raise ValueError("speed_steps scores must decrease as seconds per word increase")
        return steps

    @field_validator("wma_weights")
    @classmethod
    def check_wma_weights(cls, v: list[float]) -> list[float]:
        if not v or any(w <= 0 for w in v):
            raise ValueError("wma_weights must be a non-empty list of positive numbers")
        return v

    @field_validator("projection_horizons")
    @classmethod
    def check_horizons(cls, v: list[int]) -> list[int]:
        if not v or any(days <= 0 for days in v):
            raise ValueError("projection_horizons must be positive day counts")
        return sorted(set(v))

    @field_validator("milestones")
    @classmethod
    def sort_milestones(cls, v: list[MilestoneRule]) -> list[MilestoneRule]:
        return sorted(v, key=lambda m: m.threshold)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AnalyticsConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AnalyticsConfig
    2. ~/.config/mnemos/config.toml (if exists)
    3. Environment variables (MNEMOS_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AnalyticsConfig(**overrides)
