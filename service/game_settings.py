import os
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

ALLOWED_TILES = frozenset([0] + [2 ** power for power in range(1, 17)])

# Layouts offered by the training menu, row-major on a 4x4 board.
TRAINING_LAYOUTS = {
    "clear": [0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    "snake-32k": [16384, 8192, 4096, 256, 2048, 1024, 512, 128, 2, 0, 0, 0, 0, 0, 0, 0],
    "snake-64k": [32768, 16384, 8192, 512, 4096, 2048, 1024, 256, 2, 0, 0, 0, 0, 0, 0, 0],
    "pdf-32k": [16384, 8192, 4096, 2, 2048, 1024, 512, 2, 256, 128, 4, 2, 2, 2, 2, 2],
    "pdf-64k": [32768, 16384, 8192, 2, 4096, 2048, 1024, 2, 512, 256, 4, 2, 2, 2, 2, 2],
    "dpdf-32k": [16384, 8192, 4096, 4, 2048, 1024, 512, 2, 2, 0, 0, 0, 0, 0, 0, 0],
    "dpdf-64k": [32768, 16384, 8192, 4, 4096, 2048, 1024, 2, 2, 0, 0, 0, 0, 0, 0, 0],
}
DEFAULT_TRAINING_LAYOUT = "snake-32k"


@dataclass(frozen=True)
class GameSettings:
    size: int = 4
    start_tiles: int = 2
    winning_value: int = 2048
    initial_tiles: Optional[Tuple[int, ...]] = None
    seed: Optional[int] = None
    move_log_path: Optional[str] = None


def validate_tiles(values, size: int) -> List[int]:
    tiles = []
    for raw in values:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid tile: {raw!r}") from None
        if value not in ALLOWED_TILES:
            raise ValueError(f"Invalid tile: {raw!r}")
        tiles.append(value)
    if len(tiles) != size * size:
        raise ValueError(f"Expected {size * size} tiles, received {len(tiles)}")
    return tiles


def parse_initial_tiles(text: str, size: int) -> Tuple[int, ...]:
    """Parse a training layout name or a comma separated row-major layout."""
    name = text.strip()
    if name in TRAINING_LAYOUTS:
        return tuple(validate_tiles(TRAINING_LAYOUTS[name], size))
    return tuple(validate_tiles([part.strip() for part in name.split(",")], size))


def _int_setting(environ: Mapping[str, str], key: str, default: Optional[int]) -> Optional[int]:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, received {raw!r}") from None


def resolve_settings(environ: Optional[Mapping[str, str]] = None) -> GameSettings:
    if environ is None:
        environ = os.environ

    size = _int_setting(environ, "GAME_SIZE", 4)
    if size < 2:
        raise ValueError(f"GAME_SIZE must be at least 2, received {size}")

    winning_value = _int_setting(environ, "GAME_WINNING_VALUE", 2048)
    if winning_value not in ALLOWED_TILES or winning_value < 4:
        raise ValueError(f"GAME_WINNING_VALUE must be a tile value, received {winning_value}")

    initial_tiles = None
    layout = environ.get("GAME_INITIAL_TILES")
    if layout:
        initial_tiles = parse_initial_tiles(layout, size)

    seed = _int_setting(environ, "GAME_SEED", None)

    return GameSettings(
        size=size,
        start_tiles=_int_setting(environ, "GAME_START_TILES", 2),
        winning_value=winning_value,
        initial_tiles=initial_tiles,
        seed=seed,
        move_log_path=environ.get("MOVE_LOG_PATH") or None,
    )


__all__ = [
    "ALLOWED_TILES",
    "DEFAULT_TRAINING_LAYOUT",
    "GameSettings",
    "TRAINING_LAYOUTS",
    "parse_initial_tiles",
    "resolve_settings",
    "validate_tiles",
]
