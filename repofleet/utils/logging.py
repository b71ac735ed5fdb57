import logging
import os
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, List, Optional

from rich.logging import RichHandler

from repofleet.constants import DEBUG_LOG_FILE, DEBUG_LOG_MAX_BYTES

if TYPE_CHECKING:
    from repofleet.classes import Repository

DEFAULT_LOG_BACKUP_COUNT = 3
ROOT_LOGGER_NAME = 'repofleet'


def setup_logging(verbose: bool = False, log_file: Optional[str] = DEBUG_LOG_FILE) -> logging.Logger:
    """Configure the package logger: Rich console output plus a rotating debug file.

    Console output stays at WARNING unless ``verbose`` is set so the live
    progress spinner is not interleaved with chatter. The debug file always
    receives everything from DEBUG up.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(show_path=False, markup=False, rich_tracebacks=verbose)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.addHandler(console_handler)

    if log_file:
        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        )
        file_handler = RotatingFileHandler(
            os.path.abspath(log_file),
            maxBytes=DEBUG_LOG_MAX_BYTES,
            backupCount=DEFAULT_LOG_BACKUP_COUNT,
            delay=True,
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


def log_repository_sources(counts: List[tuple], total: int, repositories: List['Repository']) -> None:
    """Log how many repositories each source contributed, and the de-duplicated total."""
    logger = logging.getLogger(f'{ROOT_LOGGER_NAME}.fleet.repository_source')

    for source, count in counts:
        logger.info(f'  ├─ {source}: {count} repositories')
    logger.info(f'  └─ Total after de-duplication: {total}')

    if repositories and logger.isEnabledFor(logging.DEBUG):
        width = max(len(repo.key) for repo in repositories)
        for repo in repositories:
            logger.debug(f'      {repo.key:<{width}}  base={repo.base_branch}')
