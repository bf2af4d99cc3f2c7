from regionpipe.shared.config import Settings, get_catalog_path, get_config, reload_config

__all__ = [
    "get_config",
    "reload_config",
    "get_catalog_path",
    "Settings",
]
