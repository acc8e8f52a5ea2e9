"""
Application settings module.

Manages all configuration via environment variables using pydantic-settings.
"""

from functools import lru_cache
from urllib.parse import urlencode

from pydantic_settings import BaseSettings, SettingsConfigDict

REPORT_COLUMNS = (
    "flag,shipname,imo,mmsi,ship_type,time_of_latest_position:desc,area,area_local,"
    "lat_of_latest_position,lon_of_latest_position,status,eni,speed,course,"
    "draught_max,draught_min,specific_ship_type,year_of_build,"
    "commercial_manager,commercial_manager_email,commercial_manager_city,commercial_manager_country,"
    "registered_owner,registered_owner_email,registered_owner_city,registered_owner_country,"
    "beneficial_owner,beneficial_owner_email,beneficial_owner_city,beneficial_owner_country,"
    "technical_manager,technical_manager_email,technical_manager_city,technical_manager_country,"
    "p_i_club,p_i_club_email,p_i_club_city,p_i_club_country,"
    "ship_builder,ship_builder_email,ship_builder_city,ship_builder_country,"
    "class_society,class_society_email,class_society_city,class_society_country,"
    "engine_builder,engine_builder_email,engine_builder_city,engine_builder_country,"
    "ism_manager,ism_manager_email,ism_manager_city,ism_manager_country,"
    "operator,operator_email,operator_city,operator_country,"
    "length,width,gross_tonnage,dwt,teu,liquid_gas_capacity,pax,launch_date,"
    "length_between_perpendiculars,length_registered,depth,breadth_moulded,breadth_extreme,"
    "liquid_oil_capacity,callsign,market,vessel_class,first_ais_pos_date"
)


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DB_", extra="ignore")

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = ""
    name: str = "vessels"
    pool_max: int = 5
    table: str = "vessels_mt"


class MarineTrafficSettings(BaseSettings):
    """MarineTraffic account and page settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="MT_", extra="ignore")

    username: str = ""
    password: str = ""

    base_url: str = "https://www.marinetraffic.com"
    login_path: str = "/en/users/login"
    data_path: str = "/en/data/?asset_type=vessels"
    reports_path: str = "/en/reports/"

    report_columns: str = REPORT_COLUMNS
    ship_type_in: str = "8"  # Tankers

    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/91.0.4472.124 Safari/537.36"
    )

    @property
    def login_url(self) -> str:
        return f"{self.base_url}{self.login_path}"

    @property
    def data_url(self) -> str:
        return f"{self.base_url}{self.data_path}"

    @property
    def reports_url(self) -> str:
        """Build the detailed reports URL with column list and filter."""
        params = {
            "asset_type": "vessels",
            "columns": self.report_columns,
            "ship_type_in": self.ship_type_in,
        }
        return f"{self.base_url}{self.reports_path}?{urlencode(params, safe=',:')}"


class ScraperSettings(BaseSettings):
    """Scraper scheduling and timeout settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SCRAPER_", extra="ignore")

    interval_minutes: int = 3
    headless: bool = True

    # Whole run, in seconds
    run_timeout: float = 120.0

    # Browser waits, in milliseconds
    navigation_timeout: int = 60000
    reports_timeout: int = 90000
    step_timeout: int = 3000
    login_form_timeout: int = 10000
    login_complete_timeout: int = 30000
    main_section_timeout: int = 30000

    # Grace period after network idle before inspecting the page
    settle_delay: float = 5.0


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    postgres: PostgresSettings = PostgresSettings()
    marinetraffic: MarineTrafficSettings = MarineTrafficSettings()
    scraper: ScraperSettings = ScraperSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
