"""Color theme for gcrootctl output.

The bundled ``data/theme.toml`` defines every color. A user file at
``~/.config/gcrootctl/theme.toml`` may override any subset of them.
"""

import logging
import re
import tomllib
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError
from rich.theme import Theme

from gcrootctl.core.paths import get_config_dir

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")


def _hex_color(value: str) -> str:
    color = value.strip()
    if _HEX_COLOR.fullmatch(color) is None:
        msg = f"{value!r} is not a #RGB or #RRGGBB hex color"
        raise ValueError(msg)
    return color


HexColor = Annotated[str, AfterValidator(_hex_color)]


class ThemeColors(BaseModel):
    """Colors used by the CLI tables and messages."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"

    success: HexColor = "#03b971"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    removed: HexColor = "#f53263"
    kept: HexColor = "#c1ff62"
    skipped: HexColor = "#0e8ac8"
    policy: HexColor = "#69B9A1"
    age: HexColor = "#faf870"


def get_user_theme_path() -> Path:
    """Path of the optional user theme file."""
    return get_config_dir() / "theme.toml"


def _read_colors(path: Path) -> dict[str, object]:
    """Return the ``[colors]`` table of a theme file, or {} if unusable."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignore theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignore theme file %s: [colors] is not a table", path)
        return {}
    return colors


def load_theme() -> ThemeColors:
    """Merge the bundled and user colors.

    Invalid user colors are reported and the bundled colors are used.
    """
    bundled = _read_colors(Path(str(resources.files("gcrootctl.data") / "theme.toml")))
    user_path = get_user_theme_path()
    overrides = _read_colors(user_path)
    if overrides:
        logger.debug("Loaded theme overrides from %s", user_path)

    try:
        return ThemeColors.model_validate({**bundled, **overrides})
    except ValidationError as e:
        logger.warning("Invalid theme in %s, using defaults: %s", user_path, e)
        return ThemeColors.model_validate(bundled)


def build_theme(colors: ThemeColors) -> Theme:
    """Map theme colors to the Rich style names used in markup."""
    return Theme(
        {
            "muted": colors.muted,
            "border": colors.border,
            "bold_header": f"bold {colors.header}",
            "success": colors.success,
            "error": f"bold {colors.error}",
            "info": colors.info,
            "removed": colors.removed,
            "kept": colors.kept,
            "skipped": colors.skipped,
            "policy": f"bold {colors.policy}",
            "age": f"bold {colors.age}",
        }
    )


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    """Rich theme for the shared consoles, loaded once per process."""
    return build_theme(load_theme())
