"""Configuration settings for the exercise engine."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)

# Exercise shape
OPTIONS_PER_EXERCISE = 4
MIN_WORDS_PER_MODULE = OPTIONS_PER_EXERCISE  # one correct answer plus three distractors

REGENERATION_POLICIES = ("append", "skip")

ENGLISH_QUESTION_TEMPLATE = "What is the translation of: {word}?"
RUSSIAN_QUESTION_TEMPLATE = "Как переводится: {word}?"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///vocabquiz.db"))
    echo: bool = field(default_factory=lambda: _env_bool("DATABASE_ECHO"))


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))


@dataclass
class GenerationSettings:
    """Exercise generation settings."""
    regeneration_policy: str = field(default_factory=lambda: os.getenv("REGENERATION_POLICY", "append"))
    seed: Optional[int] = field(default_factory=lambda: _env_optional_int("GENERATION_SEED"))
    english_question_template: str = ENGLISH_QUESTION_TEMPLATE
    russian_question_template: str = RUSSIAN_QUESTION_TEMPLATE


@dataclass
class StatsSettings:
    """Reporting settings."""
    strict_module_completion: bool = field(default_factory=lambda: _env_bool("STRICT_MODULE_COMPLETION"))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    enabled: bool = field(default_factory=lambda: _env_bool("MONITORING_ENABLED"))
    port: int = field(default_factory=lambda: int(os.getenv("MONITORING_PORT", "9090")))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_generation_settings() -> GenerationSettings:
    """Get generation settings."""
    return GenerationSettings()


def get_stats_settings() -> StatsSettings:
    """Get stats settings."""
    return StatsSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    generation: GenerationSettings = field(default_factory=get_generation_settings)
    stats: StatsSettings = field(default_factory=get_stats_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.generation.regeneration_policy not in REGENERATION_POLICIES:
            raise ValueError(
                f"REGENERATION_POLICY must be one of {', '.join(REGENERATION_POLICIES)}"
            )

        if self.monitoring.port < 1:
            raise ValueError("MONITORING_PORT must be positive")

        if self.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {self.logging.level}")


# Create global settings instance
settings = Settings()
settings.validate()
