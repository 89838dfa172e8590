"""Application settings and configuration.

This module defines all configuration options for the Mint Scores service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mint_scores.services.anti_cheat import AntiCheatPolicy, LinearScoreEnvelope
from mint_scores.services.tiers import TierThresholds


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Mint Scores service.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Mint Scores", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./mint_scores.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Anti-cheat tolerances
    max_session_seconds: int = Field(default=30 * 60, alias="MAX_SESSION_SECONDS")
    network_delay_tolerance_seconds: float = Field(
        default=35.0,
        alias="NETWORK_DELAY_TOLERANCE_SECONDS",
    )
    clock_skew_tolerance_seconds: float = Field(
        default=5.0,
        alias="CLOCK_SKEW_TOLERANCE_SECONDS",
    )
    # Points-per-second band used by the score plausibility envelope
    score_rate_min: float = Field(default=0.1, alias="SCORE_RATE_MIN")
    score_rate_max: float = Field(default=2.0, alias="SCORE_RATE_MAX")

    # Discount tier thresholds (inclusive lower bounds)
    tier_s_min_score: int = Field(default=300, alias="TIER_S_MIN_SCORE")
    tier_a_min_score: int = Field(default=100, alias="TIER_A_MIN_SCORE")
    tier_b_min_score: int = Field(default=50, alias="TIER_B_MIN_SCORE")

    # Request validation and listing
    max_submitted_score: int = Field(default=10_000, alias="MAX_SUBMITTED_SCORE")
    leaderboard_limit: int = Field(default=100, alias="LEADERBOARD_LIMIT")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def anti_cheat_policy(self) -> AntiCheatPolicy:
        """Return the validator tolerances as an immutable policy record."""
        return AntiCheatPolicy(
            max_session_ms=self.max_session_seconds * 1000,
            network_delay_tolerance_ms=self.network_delay_tolerance_seconds * 1000,
            clock_skew_tolerance_ms=self.clock_skew_tolerance_seconds * 1000,
            envelope=LinearScoreEnvelope(
                min_points_per_second=self.score_rate_min,
                max_points_per_second=self.score_rate_max,
            ),
        )

    @property
    def tier_thresholds(self) -> TierThresholds:
        """Return the discount tier thresholds as an immutable record."""
        return TierThresholds(
            s_tier=self.tier_s_min_score,
            a_tier=self.tier_a_min_score,
            b_tier=self.tier_b_min_score,
        )


settings = Settings()
