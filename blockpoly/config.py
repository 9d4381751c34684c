"""
Game configuration settings.
"""

from dataclasses import dataclass


# Ledger amounts are unsigned 64-bit quantities.
MAX_AMOUNT = 2**64 - 1

BOARD_SIZE = 40
DECK_SIZE = 16
SEED_SIZE = 32


@dataclass
class GameConfig:
    """Rule constants for a Blockpoly game."""

    starting_balance: int = 1500
    genesis_salary: int = 200
    rugpull_bail: int = 50
    rugpull_max_turns: int = 3

    min_players: int = 2
    max_players: int = 8

    auction_duration_turns: int = 3
    trade_expiry_turns: int = 10

    flash_loan_amount: int = 200
    flash_loan_repay: int = 210
    flash_loan_penalty: int = 50

    utility_unit: int = 1
    mev_unit: int = 4
    lp_levy_unit: int = 40
    protocol_levy_unit: int = 115
    mining_reward_unit: int = 25
    royalty_unit: int = 20
    peer_grant_unit: int = 10
    peer_charge_unit: int = 150
    peer_bonus_unit: int = 50

    # Observed behaviour: a full color set without improvements charges base rent.
    monopoly_doubles_base_rent: bool = False
    pay_salary_on_pass: bool = True
    # Peer card amounts move between players instead of coming from the bank.
    peer_to_peer_card_transfers: bool = False
    # Protocol Hack, Whale Dump and Bridge Exploited actually take a property.
    card_property_loss: bool = False

    entry_fee: int = 0
