"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "insight-engine"
    log_level: str = "INFO"

    # Spending analysis
    trend_change_threshold: float = 0.10  # Relative change between half means
    trend_min_points: int = 3
    outlier_std_multiplier: float = 2.0
    large_transaction_threshold: float = 1000.0
    frequent_spending_per_week: float = 2.0
    budget_warning_ratio: float = 0.8

    # Duplicate detection
    duplicate_threshold: float = 0.8
    duplicate_scan_threshold: float = 0.7
    duplicate_amount_tolerance_ratio: float = 0.01
    duplicate_amount_tolerance_abs: float = 0.01
    duplicate_date_window_days: int = 3

    # Notifications
    notification_cleanup_interval_seconds: float = 60.0
    notification_large_transaction_threshold: float = 500.0
    notification_weekly_category_threshold: float = 200.0
    notification_low_balance_threshold: float = 100.0
    notification_budget_progress_ratio: float = 0.7
    notification_weekly_change_percent: float = 20.0
    daily_summary_ttl_hours: int = 24
    insight_notification_ttl_hours: int = 168

    # Hosted categorization oracle (optional)
    categorization_oracle_url: str | None = None
    http_timeout_seconds: float = 5.0


settings = Settings()
