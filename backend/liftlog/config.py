from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    sheets_api_base_url: str = "https://sheets.googleapis.com/v4/spreadsheets"
    sheets_timeout_seconds: float = 30.0
    # Default sheet connection; can be overridden at runtime via PUT /api/v1/sheets/config
    google_sheets_api_key: str = ""
    google_sheets_spreadsheet_id: str = ""
    google_sheets_sheet_name: str = "WorkoutLogs"
    # Directory for the local durable store (one JSON file per key). Empty = in-memory only.
    storage_dir: str = "data"
    max_api_events: int = 100
    cors_origins: str = "http://localhost:5173,http://localhost:8080"

    @property
    def uses_memory_store(self) -> bool:
        """True if no storage directory is configured (nothing survives a restart)."""
        return not self.storage_dir.strip()


settings = Settings()
