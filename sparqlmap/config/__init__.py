from .settings import AppConfig, RuntimeConfig, StoreConfig

__all__ = ["AppConfig", "RuntimeConfig", "StoreConfig"]
