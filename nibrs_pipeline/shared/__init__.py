from nibrs_pipeline.shared.config import Settings, get_config, reload_config
from nibrs_pipeline.shared.logging_config import configure_logging

__all__ = [
    "get_config",
    "reload_config",
    "Settings",
    "configure_logging",
]
