# -*- coding: utf-8 -*-
"""
Play 2048 in a terminal.
"""
import argparse
import logging
from pathlib import Path

from game2048.engine import GameEngine, GameConfig, GameEvent, EventKind, Phase
from game2048.storage import JsonFileStorage

# ##: Keyboard layout.
KEYS = {
    'w': 'up',
    'a': 'left',
    's': 'down',
    'd': 'right',
    'up': 'up',
    'left': 'left',
    'down': 'down',
    'right': 'right',
}

MESSAGES = {Phase.WON: 'You win!', Phase.STUCK: 'Game over! Press left to undo the last move.'}


def redraw(engine: GameEngine, message: str = ''):
    """
    Redraw the game board.

    Parameters
    ----------
    engine: GameEngine
        The game engine

    message: str
        Optional line printed under the board
    """
    state = engine.state
    print(f'score={state.score}  best={state.best_score}  undo penalty={engine.undo_penalty()}')
    print(engine.render())
    if message:
        print(message)


def on_event(event: GameEvent):
    """
    Print feedback for an engine event.

    Parameters
    ----------
    event: GameEvent
        Event sent by the engine
    """
    if event.kind is EventKind.UNDO:
        print(f'-{event.penalty}')
    elif event.kind is EventKind.MOVE and event.score_delta:
        print(f'+{event.score_delta}')

    if event.phase_change and event.phase_change[1] in MESSAGES:
        print(MESSAGES[event.phase_change[1]])


def key_handler(engine: GameEngine, key: str) -> bool:
    """
    Handle one key.

    Parameters
    ----------
    engine: GameEngine
        The game engine

    key: str
        Key typed by the player

    Returns
    -------
    bool
        False when the player quits
    """
    key = key.strip().lower()

    if key in ('q', 'quit', 'escape'):
        return False

    if key in ('n', 'new'):
        engine.new_game()
    elif key in ('u', 'undo'):
        result = engine.undo()
        if not result.success:
            print(result.error)
    elif key in KEYS:
        result = engine.move(KEYS[key])
        if not result.success:
            print('no move')
    else:
        print(f'unknown key {key!r}: use w/a/s/d to move, u to undo, n for a new game, q to quit')
    return True


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Play 2048 in a terminal.')
    parser.add_argument('--save-dir', type=Path, default=Path.home() / '.local' / 'share', help='saved games directory')
    parser.add_argument('--size', type=int, default=4, help='grid side')
    parser.add_argument('--verbose', action='store_true', help='show engine logs')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    game = GameEngine(config=GameConfig(size=args.size), storage=JsonFileStorage(args.save_dir))
    game.subscribe(on_event)
    game.resume()
    redraw(game, MESSAGES.get(game.phase, ''))

    # Blocking input loop
    while key_handler(game, input('> ')):
        redraw(game)
