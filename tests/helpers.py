"""Helpers shared by the Blockpoly tests."""

from blockpoly import initialize_game
from blockpoly.config import BOARD_SIZE, DECK_SIZE
from blockpoly.services import InMemoryLedger

SEED = bytes(range(32))
WALLETS = ["alice", "bob", "carol", "dave"]


def dice_bytes(die1, die2):
    """Random payload that derives to the given dice."""
    return bytes([die1 - 1, die2 - 1])


def roll(game, wallet, die1, die2):
    game.request_dice_roll(wallet)
    return game.fulfill_randomness(wallet, dice_bytes(die1, die2))


def land_on(game, wallet, target):
    """Move ``wallet`` onto ``target`` with a roll of 1 + 2 and resolve the landing."""
    game.players[wallet].position = (target - 3) % BOARD_SIZE
    roll(game, wallet, 1, 2)
    return game.resolve_landing(wallet)


def give(game, wallet, position, **fields):
    """Hand a space to ``wallet`` as if bought, optionally setting record fields."""
    game._acquire(wallet, position)
    prop = game.properties[position]
    for name, value in fields.items():
        setattr(prop, name, value)
    return prop


def stack_deck(deck, card_id):
    """Put ``card_id`` on top of ``deck``."""
    deck.order = [card_id] + [i for i in range(DECK_SIZE) if i != card_id]
    deck.cursor = 0


def drain(game, wallet, leave):
    """Send all but ``leave`` of a player's balance to the bank."""
    game.transfer(wallet, "bank", game.ledger.balance_of(wallet) - leave)


def make_game(config, wallets, ledger=None, **kwargs):
    """Create, fill and start a game hosted by the first wallet."""
    game = initialize_game(
        "game-1",
        wallets[0],
        max_players=kwargs.pop("max_players", None),
        config=config,
        ledger=ledger if ledger is not None else InMemoryLedger(),
        **kwargs,
    )
    for wallet in wallets:
        game.join_game(wallet)
    game.start_game(wallets[0], SEED)
    return game
