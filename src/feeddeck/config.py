"""应用配置管理."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase 配置
    supabase_url: str = ""
    supabase_anon_key: str = ""
    persist_session: bool = True
    auto_refresh_token: bool = True

    # 站点地址（用于拼接认证回调地址）
    site_origin: str = "http://localhost:8000"

    # 本地存储
    local_storage_url: str = "sqlite+aiosqlite:///./feeddeck.db"

    # 缓存与刷新
    freshness_window_ms: int = 5000
    sidebar_refresh_seconds: int = 30
    toast_duration_ms: int = 4000

    # 可以查看待审核推荐数的账号（留空表示禁用）
    suggestions_admin_email: str = ""

    log_level: str = "INFO"

    @property
    def supabase_configured(self) -> bool:
        """是否已配置 Supabase."""
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()
