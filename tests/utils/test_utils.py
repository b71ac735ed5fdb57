#!/usr/bin/env python3
# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
Unit tests for small helpers: secret masking, cache file names and logging setup.
"""

import logging

from rich.logging import RichHandler

from repofleet.utils.logging import setup_logging
from repofleet.utils.utils import mask_secret, safe_filename


class TestMaskSecret:
    def test_secret_is_not_leaked(self):
        masked = mask_secret('ghp_supersecret')
        assert 'ghp_supersecret' not in masked
        assert masked.startswith('<masked:')

    def test_masking_is_stable(self):
        assert mask_secret('abc') == mask_secret('abc')
        assert mask_secret('abc') != mask_secret('abd')


class TestSafeFilename:
    def test_non_word_characters_replaced(self):
        assert safe_filename('googleapis-nodejs.foo') == 'googleapis-nodejs-foo'
        assert safe_filename('a/b c') == 'a-b-c'

    def test_word_characters_kept(self):
        assert safe_filename('repo_name123') == 'repo_name123'


class TestSetupLogging:
    def test_console_level_follows_verbose(self, tmp_path):
        quiet = setup_logging(verbose=False, log_file=str(tmp_path / 'debug.log'))
        console_handler = next(h for h in quiet.handlers if isinstance(h, RichHandler))
        assert console_handler.level == logging.WARNING

        loud = setup_logging(verbose=True, log_file=None)
        console_handlers = [h for h in loud.handlers if isinstance(h, RichHandler)]
        assert len(console_handlers) == 1
        assert console_handlers[0].level == logging.DEBUG
        assert len(loud.handlers) == 1

    def test_debug_file_receives_debug_records(self, tmp_path):
        log_file = tmp_path / 'debug.log'
        logger = setup_logging(verbose=False, log_file=str(log_file))

        logging.getLogger('repofleet.fleet.scanner').debug('scanning googleapis/foo')
        for handler in logger.handlers:
            handler.flush()

        assert 'scanning googleapis/foo' in log_file.read_text()
        setup_logging(verbose=False, log_file=None)
