"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

MINIMUM_STAKE = 1_000_000  # 0.01 ELF
MAXIMUM_STAKE = 1_000_000_000  # 10 ELF


class GameConfig(BaseModel):
    """Wager parameters."""

    token_symbol: str = "ELF"
    min_stake: int = MINIMUM_STAKE
    max_stake: int = MAXIMUM_STAKE

    @model_validator(mode="after")
    def check_bounds(self) -> "GameConfig":
        if self.min_stake <= 0:
            raise ValueError("min_stake must be positive")
        if self.min_stake > self.max_stake:
            raise ValueError("min_stake must not exceed max_stake")
        return self


class OracleConfig(BaseModel):
    """Randomness oracle wiring and the local signing key set."""

    address: str = "oracle"
    signing_keys: list[str] = Field(
        default_factory=lambda: [
            "b2f1a3c0d4e5f60718293a4b5c6d7e8f9011223344556677889900aabbccddee"
        ]
    )


class LedgerConfig(BaseModel):
    """Token ledger used by the local runtime."""

    address: str = "token"
    engine_address: str = "dicemaster"
    owner_address: str = "owner"
    treasury_seed: int = 50_00000000
    initial_balances: dict[str, int] = Field(
        default_factory=lambda: {"owner": 100_00000000}
    )


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    logfire_token: str = ""

    # Nested configuration sections
    game: GameConfig = Field(default_factory=GameConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)

    model_config = SettingsConfigDict(
        env_prefix="DICEMASTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m dicemaster init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["game", "oracle", "ledger"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name]

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
