import os
import logging
from logging.handlers import RotatingFileHandler

PAYOUT_LEVEL_NUM = 38
DEFAULT_LOG_BACKUP_COUNT = 10
PAYOUT_LOG_FILENAME = "payouts.log"


def setup_payout_logger(full_path, retention_size, schedule_name=None):
    """
    Setup the payout audit logger.

    Every payout attempt is written as one line at the PAYOUT level to a
    rotating file, independent of the console log level.

    Args:
        full_path: Directory for the audit files
        retention_size: Maximum size of a log file before rotation
        schedule_name: Optional schedule name to include in the filename
    """
    logging.addLevelName(PAYOUT_LEVEL_NUM, "PAYOUT")

    logger = logging.getLogger("payout")
    logger.setLevel(PAYOUT_LEVEL_NUM)

    def payout(self, message, *args, **kws):
        if self.isEnabledFor(PAYOUT_LEVEL_NUM):
            self._log(PAYOUT_LEVEL_NUM, message, args, **kws)

    logging.Logger.payout = payout

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    log_filename = f"payouts_{schedule_name}.log" if schedule_name else PAYOUT_LOG_FILENAME
    log_path = os.path.abspath(os.path.join(full_path, log_filename))
    os.makedirs(full_path, exist_ok=True)

    # Repeated setup in one process must not duplicate audit lines
    if not any(getattr(handler, "baseFilename", None) == log_path for handler in logger.handlers):
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=retention_size,
            backupCount=DEFAULT_LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(PAYOUT_LEVEL_NUM)
        logger.addHandler(file_handler)

    return logger
