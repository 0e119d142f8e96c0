from speechable.utils.config.env import Settings, settings

__all__ = ["Settings", "settings"]
