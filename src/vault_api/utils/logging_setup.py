import logging

from vault_api.config.settings import Settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(settings: Settings) -> None:
    """Configure root logging once per process from settings."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(settings.log_level)
    # boto3 is chatty at DEBUG
    logging.getLogger('botocore').setLevel(logging.WARNING)
