"""External filter programs for temporary root policies.

A filter receives one JSON object describing a root on standard input
and approves the root by exiting with status 0. Any other status
rejects it. Nothing is read back from the program's output.
"""

import json
import logging
import subprocess
from collections.abc import Callable, Collection
from pathlib import Path
from typing import Protocol

from gcrootctl.core.config import FilterSpec
from gcrootctl.roots.models import AnchorRecord
from gcrootctl.utils.shell import run_command

logger = logging.getLogger(__name__)


class FilterSpawnError(RuntimeError):
    """Raised when a filter program cannot be started.

    This indicates a broken policy definition and aborts the run.
    """


class RootFilter(Protocol):
    """Decides whether a matched root stays under its policy."""

    def approve(self, record: AnchorRecord) -> bool:
        """Return True to keep monitoring the root, False to exclude it."""
        ...


def filter_input(record: AnchorRecord) -> dict[str, object]:
    """Build the JSON document passed to a filter program.

    Args:
        record: Root being filtered.

    Returns:
        Mapping with the referent (``path``), the anchor (``gc_root``),
        the resolved store path, the referent mtime and the owner uid.
    """
    return {
        "path": str(record.referent),
        "gc_root": str(record.anchor),
        "store_path": str(record.store_path),
        "mtime": record.mtime.isoformat(),
        "owner_uid": record.owner_uid,
    }


class SubprocessFilter:
    """Runs a filter program once per root.

    Args:
        spec: Program, arguments and optional time limit.
    """

    def __init__(self, spec: FilterSpec) -> None:
        self._spec = spec
        self._timeout = spec.timeout.total_seconds() if spec.timeout is not None else None

    def approve(self, record: AnchorRecord) -> bool:
        """Run the filter for ``record``.

        Args:
            record: Root to filter.

        Returns:
            True if the program exited with status 0.

        Raises:
            FilterSpawnError: If the program cannot be started, or does not
                finish within the configured timeout.
        """
        args = [self._spec.program, *self._spec.arguments]
        payload = json.dumps(filter_input(record))
        logger.debug("Starting filter %s with input %s", args, payload)

        try:
            result = run_command(args, input_text=payload, timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            msg = f"External filter {self._spec.program!r} timed out on {record.referent}"
            raise FilterSpawnError(msg) from e
        except OSError as e:
            msg = (
                f"Failed to invoke external filter {self._spec.program!r} "
                f"with arguments {self._spec.arguments}: {e}"
            )
            raise FilterSpawnError(msg) from e

        if result.stdout:
            logger.debug("External filter stdout: %s", result.stdout.strip())
        if result.stderr:
            logger.warning("External filter stderr: %s", result.stderr.strip())
        return result.success


class StaticFilter:
    """In-memory filter approving a fixed set of referents.

    Args:
        approved: Referent paths to approve, or a predicate over records.
    """

    def __init__(self, approved: Collection[Path] | Callable[[AnchorRecord], bool]) -> None:
        if callable(approved):
            self._predicate = approved
        else:
            allowed = frozenset(approved)
            self._predicate = lambda record: record.referent in allowed
        self.calls: list[AnchorRecord] = []

    def approve(self, record: AnchorRecord) -> bool:
        """Approve ``record`` if it is in the allowed set."""
        self.calls.append(record)
        return self._predicate(record)
