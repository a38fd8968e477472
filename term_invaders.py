#!/usr/bin/env python3
"""
Terminal Invaders
A curses-based Space Invaders game played inside a bordered arena.

Features:
- Fixed 50 ms tick loop (update + draw)
- Keyboard listener thread sharing the game under a single lock
- 8x3 enemy grid that marches, bounces off the walls and descends
- Enemy return fire at most once per second
- Arena capped at 80x24 and centered in the terminal

Logging goes to the "term_invaders" logger, which only carries a
NullHandler while curses owns the terminal. Attach a handler to that
logger to collect game events.

License: MIT
"""

import argparse
import curses
import logging
import os
import random
import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# ============================================================================
# CONSTANTS
# ============================================================================

MAX_ARENA_WIDTH = 80
MAX_ARENA_HEIGHT = 24
TICK_INTERVAL = 0.05  # seconds per tick
ENEMY_FIRE_INTERVAL = 1.0  # minimum seconds between enemy shots
LISTENER_JOIN_TIMEOUT = 0.2  # seconds to wait for the listener on shutdown

# Enemy grid configuration
ENEMY_COLS = 8
ENEMY_ROWS = 3
ENEMY_START_X = 10
ENEMY_START_Y = 3
ENEMY_SPACING_X = 5
ENEMY_SPACING_Y = 2
ENEMY_POINTS = 100

PLAYER_WIDTH = 3

# Key codes
KEY_ESCAPE = 27
KEY_SPACE = ord(' ')

# Visual characters
PLAYER_CHAR = '^'
PLAYER_WING_CHAR = '-'
ENEMY_CHAR = 'M'
PROJECTILE_PLAYER = '|'
PROJECTILE_ENEMY = '*'
BORDER_HORIZONTAL = '-'
BORDER_VERTICAL = '|'
BORDER_CORNER = '+'

# Color pairs (0 is the terminal default)
COLOR_DEFAULT = 0
COLOR_PLAYER = 1
COLOR_ENEMY = 2
COLOR_PROJECTILE = 3
COLOR_BORDER = 4
COLOR_GAME_OVER = 5

USAGE = """
Space Invaders CLI Game

Usage:
  term-invaders [options]

Options:
  -h, --help     Show this help message

Controls:
  Left, Right   Move left/right
  Space         Shoot
  ESC           Quit game

Game Rules:
  - Destroy all invaders to advance
  - Each invader destroyed gives 100 points
  - Game over if invaders reach your position
  - Game over if you get hit by invader's bullet
  - Press Space to restart after game over
"""


# ============================================================================
# ENUMS
# ============================================================================

class GameState(Enum):
    """Game state machine states."""
    RUNNING = auto()
    GAME_OVER = auto()


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class Player:
    """Player ship. x is the center column of the three-cell sprite."""
    x: int
    y: int
    width: int = PLAYER_WIDTH

    def move_left(self) -> None:
        """Move one cell left, stopping at the arena's left edge."""
        if self.x > 0:
            self.x -= 1

    def move_right(self) -> None:
        """Move one cell right. The arena width is not enforced here."""
        self.x += 1

    def shoot(self) -> 'Bullet':
        """Create a player bullet one row above the ship."""
        return Bullet(x=self.x + self.width // 2, y=self.y - 1, is_player=True)

    def covers(self, x: int, y: int) -> bool:
        """Return True if (x, y) lies on the ship's footprint."""
        return self.x - 1 <= x <= self.x + 1 and y == self.y

    def draw(self, view: 'ArenaView') -> None:
        view.set_content(self.x, self.y, PLAYER_CHAR, COLOR_PLAYER)
        view.set_content(self.x - 1, self.y, PLAYER_WING_CHAR, COLOR_PLAYER)
        view.set_content(self.x + 1, self.y, PLAYER_WING_CHAR, COLOR_PLAYER)


@dataclass
class Enemy:
    """Single invader. Dead invaders keep their slot and last position."""
    x: int
    y: int
    dx: int = 1
    alive: bool = True

    def update(self) -> None:
        if not self.alive:
            return
        self.x += self.dx

    def reverse_direction(self) -> None:
        """Turn around and step one row down."""
        self.dx = -self.dx
        self.y += 1

    def draw(self, view: 'ArenaView') -> None:
        if not self.alive:
            return
        view.set_content(self.x, self.y, ENEMY_CHAR, COLOR_ENEMY)


@dataclass
class Bullet:
    """Projectile fired by the player (travels up) or an enemy (travels down)."""
    x: int
    y: int
    is_player: bool

    def update(self) -> None:
        if self.is_player:
            self.y -= 1
        else:
            self.y += 1

    def draw(self, view: 'ArenaView') -> None:
        char = PROJECTILE_PLAYER if self.is_player else PROJECTILE_ENEMY
        view.set_content(self.x, self.y, char, COLOR_PROJECTILE)


def create_enemy_grid() -> List[Enemy]:
    """Build the full enemy grid, column by column."""
    return [
        Enemy(x=ENEMY_START_X + col * ENEMY_SPACING_X,
              y=ENEMY_START_Y + row * ENEMY_SPACING_Y)
        for col in range(ENEMY_COLS)
        for row in range(ENEMY_ROWS)
    ]


# ============================================================================
# DISPLAY SURFACE
# ============================================================================

class Display:
    """
    Curses-backed display surface.

    Places colored characters in screen coordinates, presents frames,
    hands out key presses and restores the terminal on close.
    """

    def __init__(self):
        self.screen = None
        self.input_window = None
        self.has_colors = False
        self._closed = False

    def open(self) -> None:
        """
        Take over the terminal.

        Setup and teardown are split out instead of using curses.wrapper so
        an init failure can be reported apart from errors during play.

        Raises:
            curses.error: If the terminal cannot be initialized. Any partial
                setup is undone before the error propagates.
        """
        os.environ.setdefault('ESCDELAY', '25')
        self.screen = curses.initscr()
        try:
            curses.noecho()
            curses.cbreak()
            self.screen.keypad(True)
            try:
                curses.curs_set(0)  # Hide cursor
            except curses.error:
                logger.debug("Terminal cannot hide the cursor")
            self._init_colors()

            # Keys are read from a separate window so the listener
            # never refreshes the frame being drawn
            self.input_window = curses.newwin(1, 1, 0, 0)
            self.input_window.keypad(True)
        except curses.error:
            self.close()
            raise

    def _init_colors(self) -> None:
        if not curses.has_colors():
            return
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(COLOR_PLAYER, curses.COLOR_GREEN, -1)
        curses.init_pair(COLOR_ENEMY, curses.COLOR_RED, -1)
        curses.init_pair(COLOR_PROJECTILE, curses.COLOR_YELLOW, -1)
        curses.init_pair(COLOR_BORDER, curses.COLOR_WHITE, -1)
        curses.init_pair(COLOR_GAME_OVER, curses.COLOR_RED, -1)
        self.has_colors = True

    def size(self) -> Tuple[int, int]:
        """Return (width, height) of the terminal."""
        height, width = self.screen.getmaxyx()
        return width, height

    def set_content(self, x: int, y: int, char: str,
                    color: int = COLOR_DEFAULT) -> None:
        """Place a character; cells off the physical screen are ignored."""
        height, width = self.screen.getmaxyx()
        if not (0 <= x < width and 0 <= y < height):
            return
        attr = curses.color_pair(color) if self.has_colors else 0
        try:
            self.screen.addch(y, x, char, attr)
        except curses.error:
            pass  # Writing the bottom-right cell moves the cursor off screen

    def clear(self) -> None:
        self.screen.erase()

    def show(self) -> None:
        self.screen.refresh()

    def poll_key(self) -> int:
        """Block until the next key press and return its code."""
        return self.input_window.getch()

    def close(self) -> None:
        """Restore the terminal. Safe to call more than once."""
        if self._closed or self.screen is None:
            return
        self._closed = True
        self.screen.keypad(False)
        curses.nocbreak()
        curses.echo()
        curses.endwin()


# ============================================================================
# ARENA VIEW
# ============================================================================

class ArenaView:
    """
    Maps arena cells onto a centered region of the display.

    The arena is the display size capped at MAX_ARENA_WIDTH x
    MAX_ARENA_HEIGHT. Size and offsets are computed once here and never
    change afterwards.
    """

    def __init__(self, display):
        self.display = display
        screen_width, screen_height = display.size()
        self.width = min(screen_width, MAX_ARENA_WIDTH)
        self.height = min(screen_height, MAX_ARENA_HEIGHT)
        self.offset_x = (screen_width - self.width) // 2
        self.offset_y = (screen_height - self.height) // 2

    def translate(self, x: int, y: int) -> Tuple[int, int]:
        """Convert arena coordinates to screen coordinates."""
        return x + self.offset_x, y + self.offset_y

    def set_content(self, x: int, y: int, char: str,
                    color: int = COLOR_DEFAULT) -> None:
        """Place a character inside the arena; outside cells are dropped."""
        if 0 <= x < self.width and 0 <= y < self.height:
            self._put(x, y, char, color)

    def _put(self, x: int, y: int, char: str, color: int) -> None:
        screen_x, screen_y = self.translate(x, y)
        self.display.set_content(screen_x, screen_y, char, color)

    def draw_text(self, x: int, y: int, text: str,
                  color: int = COLOR_DEFAULT) -> None:
        for i, char in enumerate(text):
            self.set_content(x + i, y, char, color)

    def draw_centered(self, y: int, text: str,
                      color: int = COLOR_DEFAULT) -> None:
        self.draw_text(self.width // 2 - len(text) // 2, y, text, color)

    def draw_border(self) -> None:
        """Draw a one-cell frame just outside the arena."""
        for x in range(-1, self.width + 1):
            self._put(x, -1, BORDER_HORIZONTAL, COLOR_BORDER)
            self._put(x, self.height, BORDER_HORIZONTAL, COLOR_BORDER)

        for y in range(-1, self.height + 1):
            self._put(-1, y, BORDER_VERTICAL, COLOR_BORDER)
            self._put(self.width, y, BORDER_VERTICAL, COLOR_BORDER)

        for x, y in ((-1, -1), (self.width, -1),
                     (-1, self.height), (self.width, self.height)):
            self._put(x, y, BORDER_CORNER, COLOR_BORDER)

    def clear(self) -> None:
        self.display.clear()

    def present(self) -> None:
        self.display.show()


# ============================================================================
# MAIN GAME CLASS
# ============================================================================

class Game:
    """
    Main game controller and sole owner of all entities.

    Handles:
    - Game state machine
    - Enemy movement and return fire
    - Collision detection and scoring
    - Drawing through the arena view
    - Keyboard input from the listener thread

    The tick loop and the input listener share this object; every access
    to its fields from either side happens while holding ``lock``.
    """

    def __init__(self, display, rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize game.

        Args:
            display: Display surface providing size(), set_content(),
                clear(), show() and poll_key().
            rng: Random source for choosing enemy shooters.
            clock: Returns the current time in seconds; gates enemy fire.
        """
        self.view = ArenaView(display)
        self.width = self.view.width
        self.height = self.view.height
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock
        self.lock = threading.Lock()
        self.listener: Optional[threading.Thread] = None

        self.running = True
        self.state = GameState.RUNNING
        self.score = 0
        self.player = self._new_player()
        self.enemies: List[Enemy] = create_enemy_grid()
        self.bullets: List[Bullet] = []
        self.last_enemy_shot = clock()

    def _new_player(self) -> Player:
        return Player(x=self.width // 2, y=self.height - 2)

    def reset_game(self) -> None:
        """
        Start over: new player, fresh enemy grid, no bullets, zero score.
        Used both for the restart key and after a full clear.
        """
        self.player = self._new_player()
        self.bullets = []
        self.enemies = create_enemy_grid()
        self.score = 0
        self.state = GameState.RUNNING

    # ------------------------------------------------------------------
    # Update pass
    # ------------------------------------------------------------------

    def update(self) -> None:
        """Advance the simulation by one tick."""
        self._move_enemies()

        if self.clock() - self.last_enemy_shot > ENEMY_FIRE_INTERVAL:
            self.enemy_shoot()
            self.last_enemy_shot = self.clock()

        self._update_bullets()
        self.check_collisions()
        self.check_game_over()

    def _move_enemies(self) -> None:
        move_down = False
        for enemy in self.enemies:
            enemy.update()
            if enemy.alive and (enemy.x <= 0 or enemy.x >= self.width - 1):
                move_down = True

        # Whole formation turns, dead slots included
        if move_down:
            for enemy in self.enemies:
                enemy.reverse_direction()

    def enemy_shoot(self) -> None:
        """Fire one bullet from a randomly chosen live enemy, if any."""
        alive = [enemy for enemy in self.enemies if enemy.alive]
        if not alive:
            return

        shooter = self.rng.choice(alive)
        self.bullets.append(Bullet(x=shooter.x, y=shooter.y + 1, is_player=False))
        logger.debug("Enemy at (%d, %d) fired", shooter.x, shooter.y)

    def _update_bullets(self) -> None:
        for bullet in self.bullets:
            bullet.update()
        self.bullets = [b for b in self.bullets if 0 <= b.y <= self.height]

    def check_collisions(self) -> None:
        """Resolve bullet hits on enemies and on the player."""
        for i in range(len(self.bullets) - 1, -1, -1):
            bullet = self.bullets[i]
            if bullet.is_player:
                for enemy in self.enemies:
                    if enemy.alive and enemy.x == bullet.x and enemy.y == bullet.y:
                        enemy.alive = False
                        del self.bullets[i]
                        self.score += ENEMY_POINTS
                        break
            elif self.player.covers(bullet.x, bullet.y):
                self.state = GameState.GAME_OVER
                logger.info("Player hit at (%d, %d), final score %d",
                            bullet.x, bullet.y, self.score)
                break

    def check_game_over(self) -> None:
        """
        Check whether the invaders reached the player's row, or whether
        every invader is dead, in which case the game starts over.
        """
        for enemy in self.enemies:
            if enemy.alive and enemy.y >= self.player.y:
                self.state = GameState.GAME_OVER
                logger.info("Invaders reached row %d, final score %d",
                            self.player.y, self.score)
                return

        if not any(enemy.alive for enemy in self.enemies):
            logger.info("All invaders destroyed with score %d, starting over",
                        self.score)
            self.reset_game()

    # ------------------------------------------------------------------
    # Draw pass
    # ------------------------------------------------------------------

    def draw(self) -> None:
        """Compose and present one frame."""
        view = self.view
        view.clear()
        view.draw_border()

        if self.state == GameState.RUNNING:
            self.player.draw(view)
            for enemy in self.enemies:
                enemy.draw(view)
            for bullet in self.bullets:
                bullet.draw(view)
            view.draw_text(0, 0, f"Score: {self.score}")
        elif self.state == GameState.GAME_OVER:
            self._draw_game_over()

        view.present()

    def _draw_game_over(self) -> None:
        center_y = self.height // 2
        self.view.draw_centered(center_y - 1, "GAME OVER", COLOR_GAME_OVER)
        self.view.draw_centered(center_y + 1, f"Final Score: {self.score}",
                                COLOR_GAME_OVER)
        self.view.draw_centered(center_y + 3, "Press SPACE to restart",
                                COLOR_GAME_OVER)

    # ------------------------------------------------------------------
    # Input and loops
    # ------------------------------------------------------------------

    def handle_input(self, key: int) -> bool:
        """
        Handle keyboard input.

        Returns:
            False if game should quit, True otherwise.
        """
        with self.lock:
            if key == KEY_ESCAPE:
                self.running = False
                logger.info("Quit requested")
                return False

            if self.state == GameState.RUNNING:
                if key == curses.KEY_LEFT:
                    self.player.move_left()
                elif key == curses.KEY_RIGHT:
                    self.player.move_right()
                elif key == KEY_SPACE:
                    self.bullets.append(self.player.shoot())

            elif self.state == GameState.GAME_OVER:
                if key == KEY_SPACE:
                    logger.info("Restarting after game over")
                    self.reset_game()

        return True

    def listen(self) -> None:
        """Input listener: block on key presses until the game stops."""
        while self.running:
            key = self.view.display.poll_key()
            if not self.handle_input(key):
                return

    def tick(self) -> None:
        """One tick: update while running, then draw."""
        with self.lock:
            if self.state == GameState.RUNNING:
                self.update()
            self.draw()

    def run(self) -> None:
        """Start the input listener and drive the tick loop until quit."""
        self.listener = threading.Thread(target=self.listen,
                                         name='input-listener', daemon=True)
        self.listener.start()
        logger.info("Game started: arena %dx%d at offset (%d, %d)",
                    self.width, self.height,
                    self.view.offset_x, self.view.offset_y)

        try:
            while self.running:
                frame_start = time.monotonic()
                self.tick()

                # Frame rate limiting
                elapsed = time.monotonic() - frame_start
                sleep_time = TICK_INTERVAL - elapsed
                if sleep_time > 0:
                    time.sleep(sleep_time)
        finally:
            with self.lock:
                self.running = False
            # A listener still blocked on a key is left to the daemon flag
            self.listener.join(timeout=LISTENER_JOIN_TIMEOUT)


# ============================================================================
# ENTRY POINT
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='term-invaders', add_help=False)
    parser.add_argument('-h', '--help', action='store_true',
                        help='Show usage information')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the game. Returns the process exit code."""
    args = parse_args(argv)
    if args.help:
        sys.stderr.write(USAGE)
        return 0

    display = Display()
    try:
        display.open()
    except curses.error as exc:
        print(f"Error initializing game: {exc}", file=sys.stderr)
        return 1

    try:
        game = Game(display)
        game.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        display.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
