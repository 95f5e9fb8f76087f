# src/imgaudit/utils/configure_logging.py
import logging
import sys
from tqdm import tqdm


class LogWithTqdm(logging.Handler):
    """
    A logging handler that redirects output to `tqdm.write()`,
    so log messages do not break an active progress bar.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            # Write to stderr for consistency with tqdm's default stream.
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level, fallback):
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level if level is not None else fallback


def configure_logger(general_level='INFO', module_specific_levels=None, silenced_loggers=None):
    """
    Configures the root logger and specific module loggers with a
    TQDM-friendly handler.
    """
    handler = LogWithTqdm()
    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))

    # Replace any existing handlers
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if module_specific_levels:
        for name, level in module_specific_levels.items():
            logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    # Muzzle noisy loggers by setting their level high.
    if silenced_loggers:
        for name, level in silenced_loggers.items():
            logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))
