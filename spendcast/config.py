"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "spendcast"
    log_level: str = "INFO"

    # Anomaly detection
    anomaly_medium_z: float = 1.5
    anomaly_high_z: float = 3.0
    anomaly_zero_variance_sentinel: float = 4.0
    anomaly_min_merchant_points: int = 3
    anomaly_budget_share: float = 0.5  # share of remaining budget that escalates to medium
    anomaly_duplicate_window_hours: float = 2.0
    anomaly_frequent_visit_count: int = 5
    anomaly_frequent_visit_days: int = 7
    anomaly_unusual_hour_start: int = 0
    anomaly_unusual_hour_end: int = 5
    anomaly_new_merchant_multiple: float = 3.0
    anomaly_dormant_category_days: int = 30
    history_max_visits: int = 50
    history_lookback_days: int = 180

    # Budget forecasting
    forecast_trend_band: float = 0.1
    forecast_confidence_floor: float = 0.7

    # Financial weather
    weather_stormy_ratio: float = 1.5
    weather_stormy_with_bills_ratio: float = 1.2
    weather_rainy_ratio: float = 1.2
    weather_rainy_fixed_cost_count: int = 2
    weather_cloudy_ratio: float = 0.9
    weather_weekend_cloudy_ratio: float = 0.7
    weather_partly_cloudy_ratio: float = 0.5
    weather_risk_high_ratio: float = 1.2
    weather_risk_medium_ratio: float = 0.8
    weather_max_upcoming: int = 3
    weather_half_life_days: float = 7.0
    weather_lookback_days: int = 30
    weather_seasonality_min_days: int = 28

    # Insights
    insight_horizon_days: int = 10
    insight_urgent_days: int = 3
    insight_max_items: int = 5


settings = Settings()
