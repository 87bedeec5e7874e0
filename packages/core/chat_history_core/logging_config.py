"""
Logging configuration for applications using chat history storage.
"""
import logging

from chat_history_core.config import get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Azure SDK loggers that log every HTTP request at INFO
_NOISY_AZURE_LOGGERS = (
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.cosmos._cosmos_http_logging_policy",
)


def configure_logging(level: int | str | None = None) -> None:
    """
    Configure the root logger and suppress verbose Azure SDK HTTP logging.

    Without an explicit level, log_level from the loaded configuration is
    used, or INFO if initialize_config() has not been called.
    """
    if level is None:
        try:
            level = get_config().log_level
        except RuntimeError:
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)

    for name in _NOISY_AZURE_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
