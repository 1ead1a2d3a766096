"""Retention configuration models and file I/O.

This module defines the Pydantic models for config.toml and the
functions that load, merge, validate and serialize it. Keys are
kebab-case in TOML; Python attribute names may be used as well.
"""

from __future__ import annotations

import logging
import re
import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Annotated, Any

import tomli_w
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationError,
    field_validator,
    model_validator,
)

from gcrootctl.core.paths import (
    BOOTED_SYSTEM_PATH,
    get_global_config_path,
    get_user_config_path,
)
from gcrootctl.core.users import OwnedOnly, OwnershipSource, is_home_relative
from gcrootctl.utils.duration import format_duration, parse_duration

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path("/nix/store")
DEFAULT_ANCHOR_DIRECTORIES: tuple[Path, ...] = (Path("/nix/var/nix/gcroots/auto"),)
DEFAULT_PRIORITY = 100

# Profiles are handled by profile policies, not by age.
DEFAULT_IGNORE_PREFIXES: tuple[Path, ...] = (Path("/nix/var/nix/profiles"),)
DEFAULT_IGNORE_PREFIXES_IN_HOME: tuple[Path, ...] = (
    Path(".local/state/nix/profiles"),
    Path(".local/state/home-manager/gcroots"),
    Path(".cache/nix/flake-registry.json"),
)
DEFAULT_PROJECT_GLOBS: tuple[str, ...] = ("!.git",)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when an explicitly requested config file does not exist."""


class ConfigParseError(ConfigError):
    """Raised when a config file is not valid TOML."""


class ConfigValidationError(ConfigError):
    """Raised when config content does not match the schema."""


def _kebab(name: str) -> str:
    return name.replace("_", "-")


def _to_timedelta(value: object) -> object:
    """Accept humantime strings and plain seconds for duration fields."""
    if isinstance(value, str):
        return parse_duration(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timedelta(seconds=value)
    return value


def _to_owned_only(value: object) -> object:
    """Accept TOML booleans for the owned-only mode."""
    if isinstance(value, bool):
        return OwnedOnly.TRUE if value else OwnedOnly.FALSE
    return value


Duration = Annotated[
    timedelta,
    BeforeValidator(_to_timedelta),
    PlainSerializer(format_duration, return_type=str),
]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=_kebab,
        populate_by_name=True,
    )


class FilterSpec(_ConfigModel):
    """External program deciding whether a matched root is monitored.

    Attributes:
        program: Executable name or path.
        arguments: Extra command-line arguments.
        timeout: Optional limit on one invocation; without it the program
            runs to completion.
    """

    program: Annotated[str, Field(min_length=1, description="Filter executable")]
    arguments: Annotated[
        list[str],
        Field(default_factory=list, description="Arguments passed to the filter"),
    ]
    timeout: Annotated[Duration | None, Field(description="Per-invocation time limit")] = None


class TemporaryRootPolicyConfig(_ConfigModel):
    """Age-based policy for ad-hoc roots such as build results.

    Attributes:
        enable: Whether the policy takes part in the run.
        priority: Lower number wins when several policies match.
        path_regex: Searched in the referent path.
        period: Retention period; without it matched roots are never removed.
        filter: Optional external filter applied to the winning match.
        ignore_prefixes: Absolute referent prefixes that are never matched.
        ignore_prefixes_in_home: Prefixes relative to the owner's home.
    """

    enable: Annotated[bool, Field(description="Enable this policy")] = True
    priority: Annotated[int, Field(description="Lower number means higher priority")] = (
        DEFAULT_PRIORITY
    )
    path_regex: Annotated[re.Pattern[str], Field(description="Regex matched against the path")]
    period: Annotated[Duration | None, Field(description="Retention period")] = None
    filter: Annotated[FilterSpec | None, Field(description="External filter program")] = None
    ignore_prefixes: Annotated[
        list[Path],
        Field(
            default_factory=lambda: list(DEFAULT_IGNORE_PREFIXES),
            description="Path prefixes to ignore",
        ),
    ]
    ignore_prefixes_in_home: Annotated[
        list[Path],
        Field(
            default_factory=lambda: list(DEFAULT_IGNORE_PREFIXES_IN_HOME),
            description="Path prefixes to ignore under the owner's home",
        ),
    ]

    @field_validator("ignore_prefixes")
    @classmethod
    def validate_absolute_prefixes(cls, v: list[Path]) -> list[Path]:
        """Ignore prefixes must be absolute paths."""
        for prefix in v:
            if not prefix.is_absolute():
                msg = f"ignore prefix {str(prefix)!r} must be absolute"
                raise ValueError(msg)
        return v

    @field_validator("ignore_prefixes_in_home")
    @classmethod
    def validate_relative_prefixes(cls, v: list[Path]) -> list[Path]:
        """Home prefixes must be relative to the home directory."""
        for prefix in v:
            if prefix.is_absolute():
                msg = f"ignore prefix in home {str(prefix)!r} must be relative"
                raise ValueError(msg)
        return v


class ProfilePolicyConfig(_ConfigModel):
    """Generation-retention policy for one or more profiles.

    Attributes:
        enable: Whether the policy takes part in the run.
        profile_paths: Profile links, absolute or ``~``-prefixed.
        keep_since: Keep generations younger than this.
        keep_latest_n: Keep the N highest-numbered generations.
        keep_current_system: Keep the generation the profile points at.
        keep_booted_system: Keep the generation the machine booted into.
    """

    enable: Annotated[bool, Field(description="Enable this policy")] = True
    profile_paths: Annotated[list[str], Field(description="Profile paths")]
    keep_since: Annotated[Duration | None, Field(description="Keep newer generations")] = None
    keep_latest_n: Annotated[
        int | None, Field(ge=0, description="Keep the latest N generations")
    ] = None
    keep_current_system: Annotated[bool, Field(description="Keep the current generation")] = True
    keep_booted_system: Annotated[bool, Field(description="Keep the booted generation")] = True

    @field_validator("profile_paths")
    @classmethod
    def validate_profile_paths(cls, v: list[str]) -> list[str]:
        """Profile paths must be absolute or start with ``~``."""
        for path in v:
            if not (is_home_relative(path) or Path(path).is_absolute()):
                msg = f"profile path {path!r} must be absolute or start with '~'"
                raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_keep_rule(self) -> ProfilePolicyConfig:
        """An enabled policy needs keep-since or keep-latest-n."""
        if self.enable and self.keep_since is None and self.keep_latest_n is None:
            msg = "at least one of keep-since and keep-latest-n must be set"
            raise ValueError(msg)
        return self


class TouchConfig(_ConfigModel):
    """Settings for the touch command.

    Attributes:
        project_globs: Override globs applied in project mode.
    """

    project_globs: Annotated[
        list[str],
        Field(
            default_factory=lambda: list(DEFAULT_PROJECT_GLOBS),
            description="Globs applied when touching a project",
        ),
    ]


class RunConfig(_ConfigModel):
    """Complete gcrootctl configuration.

    Attributes:
        store: Store directory; only roots resolving inside it are considered.
        owned_only: Ownership restriction mode.
        ownership: Link whose owner decides anchor ownership.
        remove_root: Remove the anchor instead of the referent.
        directory: Directories holding anchors.
        booted_system: Link naming the booted system generation.
        temporary_root_policies: Age-based policies keyed by name.
        profile_policies: Profile policies keyed by name.
        touch: Touch command settings.
    """

    store: Annotated[Path, Field(description="Store path")] = DEFAULT_STORE_PATH
    owned_only: Annotated[
        OwnedOnly,
        BeforeValidator(_to_owned_only),
        Field(description="Only monitor roots owned by the current user"),
    ] = OwnedOnly.AUTO
    ownership: Annotated[
        OwnershipSource, Field(description="Link whose owner owns the root")
    ] = OwnershipSource.REFERENT
    remove_root: Annotated[bool, Field(description="Remove the anchor itself")] = False
    directory: Annotated[
        list[Path],
        Field(
            default_factory=lambda: list(DEFAULT_ANCHOR_DIRECTORIES),
            description="Directories containing anchors",
        ),
    ]
    booted_system: Annotated[Path, Field(description="Booted system link")] = BOOTED_SYSTEM_PATH
    temporary_root_policies: Annotated[
        dict[str, TemporaryRootPolicyConfig],
        Field(default_factory=dict, description="Temporary root policies"),
    ]
    profile_policies: Annotated[
        dict[str, ProfilePolicyConfig],
        Field(default_factory=dict, description="Profile policies"),
    ]
    touch: Annotated[TouchConfig, Field(default_factory=TouchConfig, description="Touch settings")]

    @field_validator("store")
    @classmethod
    def validate_store(cls, v: Path) -> Path:
        """The store path must be absolute."""
        if not v.is_absolute():
            msg = f"store path {str(v)!r} must be absolute"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_unique_profiles(self) -> RunConfig:
        """Two profile policies may not manage the same profile paths."""
        seen: dict[tuple[str, ...], str] = {}
        for name, policy in sorted(self.profile_policies.items()):
            key = tuple(policy.profile_paths)
            if key in seen:
                msg = (
                    f"profile policies {seen[key]!r} and {name!r} "
                    f"share profile paths {list(key)}"
                )
                raise ValueError(msg)
            seen[key] = name
        return self

    def enabled_temporary_root_policies(self) -> list[tuple[str, TemporaryRootPolicyConfig]]:
        """Return enabled temporary root policies ordered by (priority, name)."""
        enabled = [(name, p) for name, p in self.temporary_root_policies.items() if p.enable]
        return sorted(enabled, key=lambda item: (item[1].priority, item[0]))

    def enabled_profile_policies(self) -> list[tuple[str, ProfilePolicyConfig]]:
        """Return enabled profile policies ordered by name."""
        return sorted((name, p) for name, p in self.profile_policies.items() if p.enable)

    def with_ignore_overrides(
        self,
        ignore_prefixes: list[Path] | None = None,
        ignore_prefixes_in_home: list[Path] | None = None,
    ) -> RunConfig:
        """Return a copy whose temporary root policies use the given prefixes.

        Args:
            ignore_prefixes: Replaces every policy's absolute prefixes.
            ignore_prefixes_in_home: Replaces every policy's home prefixes.

        Returns:
            New validated RunConfig.

        Raises:
            ConfigValidationError: If a prefix has the wrong form.
        """
        update: dict[str, list[Path]] = {}
        if ignore_prefixes is not None:
            update["ignore_prefixes"] = ignore_prefixes
        if ignore_prefixes_in_home is not None:
            update["ignore_prefixes_in_home"] = ignore_prefixes_in_home
        if not update:
            return self

        data = self.model_dump()
        for policy in data["temporary_root_policies"].values():
            policy.update(update)
        try:
            return RunConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid ignore prefix override: {e}") from e


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {path}: {e}") from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base``; tables merge, other values replace."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: Path | None = None,
    *,
    global_path: Path | None = None,
    user_path: Path | None = None,
) -> RunConfig:
    """Load, merge and validate configuration.

    Files are merged in order: global, user, then ``path``. The global
    and user files are optional; ``path`` must exist when given.

    Args:
        path: Explicit config file (e.g. from --config).
        global_path: Override for the global config location.
        user_path: Override for the per-user config location.

    Returns:
        Validated RunConfig. Defaults are used when no file exists.

    Raises:
        ConfigNotFoundError: If ``path`` does not exist.
        ConfigParseError: If a file is not valid TOML.
        ConfigValidationError: If the merged content is invalid.
    """
    data: dict[str, Any] = {}
    loaded: list[Path] = []

    for candidate in (global_path or get_global_config_path(), user_path or get_user_config_path()):
        if candidate.is_file():
            data = _deep_merge(data, _read_toml(candidate))
            loaded.append(candidate)

    if path is not None:
        if not path.exists():
            raise ConfigNotFoundError(f"Config file not found: {path}")
        data = _deep_merge(data, _read_toml(path))
        loaded.append(path)

    if loaded:
        logger.debug("Loaded configuration from %s", ", ".join(str(p) for p in loaded))
    else:
        logger.info("No configuration file found, using defaults")

    try:
        return RunConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def dump_config(config: RunConfig) -> str:
    """Serialize a configuration to TOML with kebab-case keys."""
    data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    return tomli_w.dumps(data)


def example_config() -> RunConfig:
    """Build the canonical example configuration."""
    return RunConfig.model_validate(
        {
            "temporary-root-policies": {
                "direnv": {"path-regex": r"/\.direnv/", "period": "14d"},
                "result": {"path-regex": "/result[^/]*$", "period": "3d"},
            },
            "profile-policies": {
                "system": {
                    "profile-paths": ["/nix/var/nix/profiles/system"],
                    "keep-since": "14d",
                    "keep-latest-n": 5,
                    "keep-booted-system": True,
                    "keep-current-system": True,
                },
                "user": {
                    "enable": False,
                    "profile-paths": [
                        "~/.local/state/nix/profiles/profile",
                        "/nix/var/nix/profiles/per-user/root/profile",
                    ],
                    "keep-since": "1d",
                    "keep-latest-n": 1,
                    "keep-booted-system": False,
                    "keep-current-system": False,
                },
            },
        }
    )


def require_config(path: Path | None = None) -> RunConfig:
    """Load configuration or exit with a helpful error message.

    Args:
        path: Optional explicit config file.

    Returns:
        Loaded and validated RunConfig.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    import typer

    from gcrootctl.utils.formatting import print_error, print_info

    try:
        return load_config(path)
    except ConfigNotFoundError as e:
        print_error(str(e))
        print_info("Run 'gcrootctl example-config' to see a sample configuration.")
        raise typer.Exit(code=1) from e
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
