import logging
from config import config

def setup_logging():
    """
    Configure logging level based on debug mode setting.
    Non-debug mode uses WARNING level so only stall recoveries and
    feedback-service failures reach the console.
    """
    if config.debug_mode == "non_debug":
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    return logging.getLogger("form_coach")


def set_level_from_config():
    """Re-apply the level after the runner has parsed command line flags"""
    logger.setLevel(logging.WARNING if config.debug_mode == "non_debug" else logging.INFO)


# Global logger instance - import this in other modules
logger = setup_logging()
