import os
import unittest
from pathlib import Path
from unittest.mock import patch

from cubetriggers import config


class ConfigEnvTests(unittest.TestCase):
    def test_get_settings_reads_env(self) -> None:
        env = {
            "CUBETRIGGERS_DATA_DIR": "/tmp/cubetriggers-env",
            "CUBETRIGGERS_NGRAM_MIN_LENGTH": "3",
            "CUBETRIGGERS_NGRAM_MAX_LENGTH": "5",
            "CUBETRIGGERS_NGRAM_POSITIONS": "all",
            "CUBETRIGGERS_IMPORT_MAX_ATTEMPTS": "5",
            "CUBETRIGGERS_AGGREGATE_DELAY_S": "0.5",
        }
        with patch.dict(os.environ, env, clear=True):
            with patch("cubetriggers.config.load_dotenv") as load_dotenv:
                with patch.object(config.Settings, "ensure_dirs"):
                    settings = config.get_settings()

        load_dotenv.assert_called_once()
        self.assertEqual(settings.data_dir, Path("/tmp/cubetriggers-env"))
        self.assertEqual(
            settings.duckdb_path, Path("/tmp/cubetriggers-env") / "cubetriggers.duckdb"
        )
        self.assertEqual((settings.ngram_min_length, settings.ngram_max_length), (3, 5))
        self.assertEqual(settings.ngram_positions, "all")
        self.assertEqual(settings.jobs.import_max_attempts, 5)
        self.assertEqual(settings.jobs.aggregate_delay_s, 0.5)

    def test_defaults_without_env(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = config.Settings()

        self.assertEqual((settings.ngram_min_length, settings.ngram_max_length), (4, 6))
        self.assertEqual(settings.ngram_positions, "first_match")
        self.assertEqual(settings.progress_batch_size, 10)
        self.assertEqual(settings.jobs.import_max_attempts, 3)
        self.assertEqual(settings.jobs.aggregate_max_attempts, 2)
        self.assertFalse(settings.postgres.is_configured)

    def test_postgres_is_configured_from_dsn_or_host(self) -> None:
        with patch.dict(os.environ, {"CUBETRIGGERS_POSTGRES_DSN": "postgresql://db"}, clear=True):
            self.assertTrue(config.PostgresSettings().is_configured)
        env = {"CUBETRIGGERS_POSTGRES_HOST": "db", "CUBETRIGGERS_POSTGRES_DB": "triggers"}
        with patch.dict(os.environ, env, clear=True):
            self.assertTrue(config.PostgresSettings().is_configured)
        with patch.dict(os.environ, {"CUBETRIGGERS_POSTGRES_HOST": "db"}, clear=True):
            self.assertFalse(config.PostgresSettings().is_configured)

    def test_validate_rejects_inconsistent_lengths(self) -> None:
        settings = config.Settings(ngram_min_length=5, ngram_max_length=4)
        with self.assertRaisesRegex(ValueError, "ngram_max_length"):
            settings.validate()

    def test_validate_rejects_unknown_position_mode(self) -> None:
        settings = config.Settings(ngram_positions="every")
        with self.assertRaisesRegex(ValueError, "ngram_positions"):
            settings.validate()

    def test_get_settings_rejects_unknown_override(self) -> None:
        with patch("cubetriggers.config.load_dotenv"):
            with self.assertRaises(TypeError):
                config.get_settings(unknown_option=1)

    def test_get_settings_applies_overrides(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with patch("cubetriggers.config.load_dotenv"):
                with patch.object(config.Settings, "ensure_dirs"):
                    settings = config.get_settings(progress_batch_size=25)

        self.assertEqual(settings.progress_batch_size, 25)


if __name__ == "__main__":
    unittest.main()
