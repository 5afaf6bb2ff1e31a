from .app_config import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
