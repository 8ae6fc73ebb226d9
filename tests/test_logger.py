import dataclasses
import logging
import os
import sys
import tempfile
import unittest
from unittest import mock

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils import logger as logger_module  # noqa: E402
from utils.config import settings  # noqa: E402
from utils.logger import CenteredFormatter, get_logger  # noqa: E402


class LoggerTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.log_path = os.path.join(self.temp_dir.name, "logs", "nested", "store.log")
        self.loggers = []

    def tearDown(self):
        for logger in self.loggers:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
        self.temp_dir.cleanup()

    def _logger(self, name):
        file_settings = dataclasses.replace(settings, log_file=self.log_path)
        with mock.patch.object(logger_module, "settings", file_settings):
            logger = get_logger(name)
        self.loggers.append(logger)
        return logger

    def test_file_handler_creates_missing_directory(self):
        self._logger("tests.logger.dir")
        self.assertTrue(os.path.isdir(os.path.dirname(self.log_path)))

    def test_file_handler_gets_unpadded_name(self):
        logger = self._logger("tests.logger.name")
        # rich writes to the terminal, only the file output is checked
        console = logger.handlers[0]
        with mock.patch.object(console, "emit", side_effect=console.format):
            logger.info("order placed")

        with open(self.log_path, encoding="utf-8") as f:
            content = f.read()
        self.assertIn("[tests.logger.name] order placed", content)

    def test_centered_formatter_leaves_record_untouched(self):
        formatter = CenteredFormatter("[%(name)s] %(message)s", initial_width=20)
        record = logging.makeLogRecord({"name": "db", "msg": "ready"})
        self.assertEqual(formatter.format(record), f"[{'db'.center(20)}] ready")
        self.assertEqual(record.name, "db")


if __name__ == "__main__":
    unittest.main()
