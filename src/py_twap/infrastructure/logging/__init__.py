from .config import bind_observation_context, configure_logging, get_logger

__all__ = ["bind_observation_context", "configure_logging", "get_logger"]
