from config.settings import INSECURE_SESSION_SECRET, Settings, get_settings

__all__ = ["INSECURE_SESSION_SECRET", "Settings", "get_settings"]
