"""Shared test fixtures for Blockpoly tests."""

import pytest

from blockpoly import GameConfig
from blockpoly.services import InMemoryLedger

from helpers import WALLETS, make_game


@pytest.fixture
def game_config():
    """Default rule constants."""
    return GameConfig()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def two_player_game(game_config, ledger):
    """Started game with alice (host, first to move) and bob."""
    return make_game(game_config, WALLETS[:2], ledger=ledger)


@pytest.fixture
def four_player_game(game_config, ledger):
    """Started game with alice, bob, carol and dave."""
    return make_game(game_config, WALLETS, ledger=ledger)
