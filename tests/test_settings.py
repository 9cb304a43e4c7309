"""
Tests for settings and logging setup.
"""

import logging
from datetime import timedelta

import pytest

from src.models.enums import Trend
from src.models.rewards import TokenReward
from src.rewards.leaderboard import AgentLeaderboardAggregator
from src.rewards.resolver import TokenRewardResolver
from src.scoring.card_builder import build_card, card_share_metadata
from src.utils.clock import utc_now
from src.utils.logging import PACKAGE_LOGGER, get_logger, setup_logging
from src.utils.settings import DEFAULT_TAXONOMY_PATH, Settings


ENV_NAMES = (
    "LOG_LEVEL",
    "LOG_FILE",
    "ORTHOIQ_TAXONOMY_PATH",
    "ORTHOIQ_TRACKING_BASE_URL",
    "ORTHOIQ_TRAILING_WINDOW_DAYS",
    "ORTHOIQ_LEADERBOARD_SIZE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Clear engine variables; anything set during the test is undone afterwards."""
    for name in ENV_NAMES:
        # Registers the name so values loaded from .env are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def package_logger():
    """Restore the package logger after a test reconfigures it."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self, clean_env, tmp_path):
        """Test defaults when nothing is set."""
        settings = Settings.from_env(str(tmp_path / "missing.env"))

        assert settings.log_level == "INFO"
        assert settings.log_file is None
        assert settings.taxonomy_path == DEFAULT_TAXONOMY_PATH
        assert settings.trailing_window_days == 7
        assert settings.leaderboard_size == 5

    def test_environment_overrides(self, clean_env, tmp_path):
        """Test values are read from the environment."""
        clean_env.setenv("LOG_LEVEL", "DEBUG")
        clean_env.setenv("ORTHOIQ_TRACKING_BASE_URL", "https://example.com/track/")
        clean_env.setenv("ORTHOIQ_LEADERBOARD_SIZE", "10")

        settings = Settings.from_env(str(tmp_path / "missing.env"))

        assert settings.log_level == "DEBUG"
        assert settings.tracking_base_url == "https://example.com/track"
        assert settings.leaderboard_size == 10

    def test_bad_integer_uses_default(self, clean_env, tmp_path):
        """Test a non-integer window falls back to the default."""
        clean_env.setenv("ORTHOIQ_TRAILING_WINDOW_DAYS", "a week")

        assert Settings.from_env(str(tmp_path / "missing.env")).trailing_window_days == 7

    def test_dotenv_file(self, clean_env, tmp_path):
        """Test values can come from a .env file."""
        env_file = tmp_path / "custom.env"
        env_file.write_text("ORTHOIQ_LEADERBOARD_SIZE=3\n")

        assert Settings.from_env(str(env_file)).leaderboard_size == 3



class TestSettingsWiring:
    """Tests that components pick up their settings from the environment."""

    def test_trailing_window_from_environment(self, clean_env, tmp_path, taxonomy):
        """Test ORTHOIQ_TRAILING_WINDOW_DAYS widens the recent-accuracy window."""
        clean_env.setenv("ORTHOIQ_TRAILING_WINDOW_DAYS", "30")
        settings = Settings.from_env(str(tmp_path / "missing.env"))
        ledger = [
            TokenReward(
                agent_id="painWhisperer",
                reward=10,
                accuracy=accuracy,
                consultation_id=f"c{days_ago}",
                milestone_day=14,
                awarded_at=utc_now() - timedelta(days=days_ago),
            )
            for accuracy, days_ago in ((0.5, 60), (0.9, 20))
        ]

        resolver = TokenRewardResolver.from_settings(settings, taxonomy)
        default = TokenRewardResolver(taxonomy)

        assert resolver.trailing_window_days == 30
        assert resolver.performance("painWhisperer", ledger).trend == Trend.IMPROVING
        assert default.performance("painWhisperer", ledger).trend == Trend.STABLE

    def test_leaderboard_size_from_environment(self, clean_env, tmp_path, taxonomy):
        """Test ORTHOIQ_LEADERBOARD_SIZE caps the ranked entries."""
        clean_env.setenv("ORTHOIQ_LEADERBOARD_SIZE", "2")
        settings = Settings.from_env(str(tmp_path / "missing.env"))
        records = [
            {"agentId": "triage", "accuracy": 0.9},
            {"agentId": "painWhisperer", "accuracy": 0.8},
            {"agentId": "mindMender", "accuracy": 0.7},
        ]

        board = AgentLeaderboardAggregator.from_settings(settings, taxonomy).build(records)

        assert [e.agent_id for e in board.entries] == ["triage", "painWhisperer"]

    def test_tracking_url_from_environment(self, clean_env):
        """Test share metadata links to the configured tracking page."""
        clean_env.setenv("ORTHOIQ_TRACKING_BASE_URL", "https://example.com/cases/")

        metadata = card_share_metadata(build_card({"consultationId": "case-009"}))

        assert metadata["properties"]["trackingUrl"] == "https://example.com/cases/case-009"


class TestLogging:
    """Tests for logging setup."""

    def test_setup_configures_package_logger(self, package_logger):
        """Test level and handler on the package logger."""
        logger = setup_logging(level="DEBUG", settings=Settings())

        assert logger is package_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_log_file_handler(self, package_logger, tmp_path):
        """Test a file handler is added for a log file."""
        log_file = tmp_path / "logs" / "engine.log"

        logger = setup_logging(level="INFO", log_file=str(log_file), settings=Settings())
        logger.info("hello")

        assert len(logger.handlers) == 2
        assert log_file.exists()

    def test_level_from_settings(self, package_logger):
        """Test the settings level is used when none is given."""
        logger = setup_logging(settings=Settings(log_level="WARNING"))

        assert logger.level == logging.WARNING

    def test_get_logger_names(self):
        """Test logger names land under the package logger."""
        assert get_logger().name == "src"
        assert get_logger("scoring.stake").name == "src.scoring.stake"
        assert get_logger("src.rewards.resolver").name == "src.rewards.resolver"
