"""Store membership test shared by the scanner and the touch engine."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def resolve_store_path(store: Path, target: Path) -> Path | None:
    """Fully resolve ``target`` and check that it lies inside ``store``.

    The store itself is resolved as well, so a store reached through a
    symlink still matches.

    Args:
        store: Store directory.
        target: Path to resolve.

    Returns:
        The resolved path if it is inside the store, None otherwise
        (including when the path cannot be resolved).
    """
    try:
        resolved = Path(os.path.realpath(target, strict=True))
    except OSError as e:
        logger.debug("Failed to resolve %s for store validation: %s", target, e)
        return None

    store_root = Path(os.path.realpath(store))
    if resolved == store_root or not resolved.is_relative_to(store_root):
        return None
    return resolved
