"""
Environment-based engine configuration using pydantic-settings.

``EngineSettings`` reads ``BLOCKPOLY_*`` variables (and a ``.env`` file)
and turns them into a ``GameConfig`` for new games. It also carries the
log level used by ``configure_logging``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blockpoly.config import GameConfig


class EngineSettings(BaseSettings):
    """
    Rule overrides and runtime options.

    Environment variables (prefix: BLOCKPOLY_):
        BLOCKPOLY_LOG_LEVEL                 - DEBUG | INFO | WARNING | ERROR (default: INFO)
        BLOCKPOLY_STARTING_BALANCE          - Balance paid to each joining player (default: 1500)
        BLOCKPOLY_GENESIS_SALARY            - Salary for landing on or passing Genesis (default: 200)
        BLOCKPOLY_RUGPULL_BAIL              - Bail to leave the Rug Pull Zone (default: 50)
        BLOCKPOLY_RUGPULL_MAX_TURNS         - Escape attempts before bail is forced (default: 3)
        BLOCKPOLY_MAX_PLAYERS               - Upper bound for max_players (default: 8)
        BLOCKPOLY_AUCTION_DURATION_TURNS    - Auction deadline extension per bid (default: 3)
        BLOCKPOLY_TRADE_EXPIRY_TURNS        - Turns an offer stays open (default: 10)
        BLOCKPOLY_MONOPOLY_DOUBLES_BASE_RENT- Double base rent on a full color set (default: false)
        BLOCKPOLY_PAY_SALARY_ON_PASS        - Pay salary when passing Genesis (default: true)
        BLOCKPOLY_PEER_TO_PEER_CARD_TRANSFERS - Peer cards move money between players (default: false)
        BLOCKPOLY_CARD_PROPERTY_LOSS        - Property-loss cards take a property (default: false)
        BLOCKPOLY_ENTRY_FEE                 - Prize pool recorded for new games (default: 0)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="BLOCKPOLY_",
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for the blockpoly loggers.",
    )
    starting_balance: int = Field(default=1500, ge=0, description="Balance paid to each joining player.")
    genesis_salary: int = Field(default=200, ge=0, description="Salary for landing on or passing Genesis.")
    rugpull_bail: int = Field(default=50, ge=0, description="Bail to leave the Rug Pull Zone.")
    rugpull_max_turns: int = Field(default=3, gt=0, description="Escape attempts before bail is forced.")
    max_players: int = Field(default=8, ge=2, le=8, description="Upper bound for a game's max_players.")
    auction_duration_turns: int = Field(default=3, gt=0, description="Auction deadline extension per bid.")
    trade_expiry_turns: int = Field(default=10, gt=0, description="Turns an offer stays open.")
    monopoly_doubles_base_rent: bool = Field(
        default=False,
        description="Double unimproved rent when the owner holds the whole color group.",
    )
    pay_salary_on_pass: bool = Field(default=True, description="Pay salary when passing Genesis.")
    peer_to_peer_card_transfers: bool = Field(
        default=False,
        description="Peer cards move money between players instead of the bank.",
    )
    card_property_loss: bool = Field(
        default=False,
        description="Protocol Hack, Whale Dump and Bridge Exploited take a property.",
    )
    entry_fee: int = Field(default=0, ge=0, description="Prize pool recorded for new games.")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Optional[str]) -> str:
        """Accept any case and fall back to INFO for empty values."""
        if not value:
            return "INFO"
        value = str(value).upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

    def to_game_config(self) -> GameConfig:
        """Build the rule constants for a new game."""
        return GameConfig(
            starting_balance=self.starting_balance,
            genesis_salary=self.genesis_salary,
            rugpull_bail=self.rugpull_bail,
            rugpull_max_turns=self.rugpull_max_turns,
            max_players=self.max_players,
            auction_duration_turns=self.auction_duration_turns,
            trade_expiry_turns=self.trade_expiry_turns,
            monopoly_doubles_base_rent=self.monopoly_doubles_base_rent,
            pay_salary_on_pass=self.pay_salary_on_pass,
            peer_to_peer_card_transfers=self.peer_to_peer_card_transfers,
            card_property_loss=self.card_property_loss,
            entry_fee=self.entry_fee,
        )


@lru_cache
def get_settings() -> EngineSettings:
    """Return cached engine settings instance."""
    return EngineSettings()


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """Set up root logging at the configured level."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("blockpoly").setLevel(settings.log_level)
