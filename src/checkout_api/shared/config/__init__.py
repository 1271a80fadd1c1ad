from checkout_api.shared.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
