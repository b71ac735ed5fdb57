# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
Fleet iterator: scan many repositories for pull requests or issues, filter
them, and run a bulk action over the matches.

Pipeline:
    list_repositories  -> Scanner.scan -> filter_results -> BatchProcessor.process
"""

from .batch import BatchOutcome, BatchProcessor, ItemAction
from .cache import CacheEntry, CacheStore
from .filters import FilterSpec, filter_results
from .iterator import FleetReport, IteratorOptions, iterate_fleet
from .progress import NullProgressReporter, ProgressReporter, RichProgressReporter, make_reporter
from .repository_source import list_repositories
from .retry import BackoffSchedule, retry_boolean, retry_exception
from .scanner import ScanReport, Scanner

__all__ = [
    'BackoffSchedule',
    'BatchOutcome',
    'BatchProcessor',
    'CacheEntry',
    'CacheStore',
    'FilterSpec',
    'FleetReport',
    'ItemAction',
    'IteratorOptions',
    'NullProgressReporter',
    'ProgressReporter',
    'RichProgressReporter',
    'ScanReport',
    'Scanner',
    'filter_results',
    'iterate_fleet',
    'list_repositories',
    'make_reporter',
    'retry_boolean',
    'retry_exception',
]
