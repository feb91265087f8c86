from pydantic_settings import BaseSettings

from annotab.errors import ConfigError


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    debug: bool = False
    cors_origins: list[str] = ["*"]
    # Lark / Feishu Bitable deployment; empty values are reported per request, not at startup
    lark_app_id: str = ""
    lark_app_secret: str = ""
    lark_base_token: str = ""  # Bitable app token, the "base" holding both tables
    lark_table_projects: str = ""
    lark_table_comments: str = ""
    lark_api_base: str = "https://open.feishu.cn/open-apis"
    search_page_size: int = 500  # Bitable maximum
    search_max_pages: int = 1  # Pages followed per search; 1 keeps the single-page behaviour
    request_timeout: float = 30.0

    model_config = {
        "env_file": [".env"],
        "env_prefix": "ANNOTAB_",
        "extra": "ignore",
    }

    def missing_lark_settings(self) -> list[str]:
        """Names of required Lark settings that are empty."""
        required = {
            "lark_app_id": self.lark_app_id,
            "lark_app_secret": self.lark_app_secret,
            "lark_base_token": self.lark_base_token,
            "lark_table_projects": self.lark_table_projects,
            "lark_table_comments": self.lark_table_comments,
        }
        return [name for name, value in required.items() if not value]

    def ensure_lark_configured(self) -> None:
        missing = self.missing_lark_settings()
        if missing:
            raise ConfigError(f"Server Config Error: Missing Envs ({', '.join(missing)})")
