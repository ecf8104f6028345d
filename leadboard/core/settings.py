import os

TRACKING_MODES = ("row", "joined")


class Settings:
    def __init__(self):
        self.app_name = "Leadboard"
        self.api_version = "1.0.0"
        self.environment = os.getenv("LEADBOARD_ENV", "development")
        self.secret_key = os.getenv("LEADBOARD_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("LEADBOARD_ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("LEADBOARD_DATABASE_URL", "sqlite:///./leadboard.db")
        self.log_level = os.getenv("LEADBOARD_LOG_LEVEL", "INFO").upper()
        # "row" keeps tracking state on the leads row, "joined" uses leads_tracking per user
        self.tracking_mode = os.getenv("LEADBOARD_TRACKING_MODE", "row").lower()
        if self.tracking_mode not in TRACKING_MODES:
            raise ValueError(f"Unsupported tracking mode: {self.tracking_mode}")
        origins = os.getenv("LEADBOARD_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
        self.cors_origins = [origin.strip() for origin in origins.split(",") if origin.strip()]


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
