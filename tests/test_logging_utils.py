import logging
import unittest

from cubetriggers.utils.logger import Logger, funclogger, get_logger, set_level


class LoggingUtilsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logger = logging.getLogger("cubetriggers")
        self.original_handlers = list(self.logger.handlers)
        self.original_level = self.logger.level
        self.original_tenacity_level = logging.getLogger("tenacity").level

    def tearDown(self) -> None:
        self.logger.handlers = list(self.original_handlers)
        self.logger.setLevel(self.original_level)
        logging.getLogger("tenacity").setLevel(self.original_tenacity_level)

    def test_get_logger_reuses_existing_handlers(self) -> None:
        handler = logging.StreamHandler()
        self.logger.handlers = [handler]

        logger = get_logger("cubetriggers")

        self.assertIs(logger, self.logger)
        self.assertEqual(len(logger.handlers), 1)
        self.assertFalse(logger.propagate)

    def test_set_level_updates_known_loggers(self) -> None:
        set_level(logging.WARNING)

        self.assertEqual(logging.getLogger("cubetriggers").level, logging.WARNING)
        self.assertEqual(logging.getLogger("tenacity").level, logging.WARNING)

    def test_logger_class_attaches_default_handler(self) -> None:
        logger = Logger("cubetriggers.parser")

        self.assertEqual(logger.level, logging.INFO)
        self.assertEqual(len(logger.handlers), 1)

    def test_funclogger_returns_wrapped_result(self) -> None:
        @funclogger
        def add(left: int, right: int) -> int:
            return left + right

        self.assertEqual(add(2, right=3), 5)
        self.assertEqual(add.__name__, "add")


if __name__ == "__main__":
    unittest.main()
