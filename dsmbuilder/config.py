"""
dsmbuilder/config.py -- Pipeline configuration.

Settings come from four places, later ones winning:

    1. built-in defaults
    2. ``dsmbuilder.json`` in the project root
    3. environment variables (a ``.env`` file in the project root is loaded
       first, without overriding variables that are already set)
    4. explicit overrides, normally from the command line

Environment variables::

    DSM_INPUT_DIR / DSM_OUTPUT_DIR / DSM_BUILD_DIR   stage directories
    SPREADSHEET_ID                                   default sheet source
    SPREADNAME_OPTION<n> / SPREADSHEET_OPTION<n>     named sheet sources (n=1..5)
    CPY_CSV_LOCATION / CPY_JSON_LOCATION / CPY_DSM_LOCATION   copy targets
    OVERWRITE_DSM                                    "true" to overwrite archives
"""

from __future__ import annotations

import logging
import os
import platform
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from dotenv import dotenv_values

from dsmbuilder.errors import ConfigError
from dsmbuilder.models.categories import Category
from dsmbuilder.utils import safe_read_json

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "dsmbuilder.json"
MAX_SPREADSHEET_OPTIONS = 5

DEFAULT_SHEET_NAMES = (
    "manifest", "daemons", "archetypes", "subtypes", "roles", "items",
    "weapons", "tags", "spells", "afflictions", "restoratives", "techniques",
    "tactics", "statuses", "specialabilities", "transformations", "scars",
    "arbitrations",
)

_COPY_ENV = {
    "csv": "CPY_CSV_LOCATION",
    "json": "CPY_JSON_LOCATION",
    "dsm": "CPY_DSM_LOCATION",
}

_WINDOWS_PATH_RE = re.compile(r"^[A-Za-z]:\\")


@dataclass(frozen=True)
class SpreadsheetOption:
    """A named Google spreadsheet the pipeline can download from."""

    name: str
    id: str


@dataclass(frozen=True)
class PipelineConfig:
    """Resolved settings for one pipeline run."""

    root: Path
    input_dir: Path
    output_dir: Path
    build_dir: Path
    composite_file: str = "daemons.csv"
    manifest_file: str = "manifest.json"
    required_categories: tuple[str, ...] = tuple(c.table for c in Category)
    sheet_names: tuple[str, ...] = DEFAULT_SHEET_NAMES
    spreadsheet_id: str = ""
    spreadsheets: tuple[SpreadsheetOption, ...] = ()
    copy_targets: Mapping[str, str] = field(default_factory=dict)
    overwrite_archives: bool = False
    workers: int = 1

    @property
    def composite_output(self) -> Path:
        """Where resolved daemon records are written."""
        return self.output_dir / f"{Path(self.composite_file).stem}.json"

    @property
    def composite_input(self) -> Path:
        return self.input_dir / self.composite_file

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for key in ("input_dir", "output_dir", "build_dir"):
            if key in changes:
                changes[key] = _resolve(self.root, changes[key])
        return replace(self, **changes)


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------

def load_config(root=None, environ: Mapping[str, str] | None = None, **overrides: Any) -> PipelineConfig:
    """Build a :class:`PipelineConfig` for the project at *root*.

    Parameters
    ----------
    root : str or Path, optional
        Project root; defaults to the current directory.
    environ : mapping, optional
        Environment to read instead of ``os.environ`` (the ``.env`` file is
        only consulted when this is omitted).
    **overrides
        Field values that win over every other source; ``None`` is ignored.
    """
    root = Path(root or os.getcwd()).resolve()

    if environ is None:
        env: dict[str, str] = {}
        env_file = root / ".env"
        if env_file.is_file():
            env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        env.update(os.environ)
    else:
        env = dict(environ)

    file_data = safe_read_json(root / CONFIG_FILENAME, default={})
    if not isinstance(file_data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a JSON object")

    def pick(key: str, env_key: str | None, default: Any) -> Any:
        if env_key and env.get(env_key):
            return env[env_key]
        return file_data.get(key, default)

    copy_targets = dict(file_data.get("copy_targets") or {})
    for key, env_key in _COPY_ENV.items():
        if env.get(env_key):
            copy_targets[key] = env[env_key]

    overwrite = pick("overwrite_archives", "OVERWRITE_DSM", False)
    if isinstance(overwrite, str):
        overwrite = overwrite.strip().lower() == "true"

    config = PipelineConfig(
        root=root,
        input_dir=_resolve(root, pick("input_dir", "DSM_INPUT_DIR", "input")),
        output_dir=_resolve(root, pick("output_dir", "DSM_OUTPUT_DIR", "output")),
        build_dir=_resolve(root, pick("build_dir", "DSM_BUILD_DIR", "build")),
        composite_file=file_data.get("composite_file", "daemons.csv"),
        manifest_file=file_data.get("manifest_file", "manifest.json"),
        required_categories=_list_setting(file_data, "required_categories", [c.table for c in Category]),
        sheet_names=_list_setting(file_data, "sheet_names", DEFAULT_SHEET_NAMES),
        spreadsheet_id=pick("spreadsheet_id", "SPREADSHEET_ID", ""),
        spreadsheets=tuple(load_spreadsheet_options(env)),
        copy_targets=copy_targets,
        overwrite_archives=bool(overwrite),
        workers=_int_setting(file_data, "workers", 1),
    )
    for name in config.required_categories:
        try:
            Category.from_table(name)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
    return config.with_overrides(**overrides)


def _list_setting(file_data: Mapping[str, Any], key: str, default) -> tuple[str, ...]:
    value = file_data.get(key, default)
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{CONFIG_FILENAME}: '{key}' must be a list of names, got {value!r}")
    return tuple(value)


def _int_setting(file_data: Mapping[str, Any], key: str, default: int) -> int:
    value = file_data.get(key, default)
    try:
        if isinstance(value, bool):
            raise ValueError(value)
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{CONFIG_FILENAME}: '{key}' must be an integer, got {value!r}") from exc


def _resolve(root: Path, value) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path


# ------------------------------------------------------------------
# Spreadsheet options
# ------------------------------------------------------------------

def load_spreadsheet_options(env: Mapping[str, str]) -> list[SpreadsheetOption]:
    """Read ``SPREADNAME_OPTION<n>`` / ``SPREADSHEET_OPTION<n>`` pairs in order.

    Options without a name are skipped; options with a name but no id are
    kept so that selecting them can report the missing id.
    """
    options: list[SpreadsheetOption] = []
    for n in range(1, MAX_SPREADSHEET_OPTIONS + 1):
        name = (env.get(f"SPREADNAME_OPTION{n}") or "").strip()
        sheet_id = (env.get(f"SPREADSHEET_OPTION{n}") or "").strip()
        if name:
            options.append(SpreadsheetOption(name=name, id=sheet_id))
    return options


def select_spreadsheets(name: str, options: list[SpreadsheetOption] | tuple[SpreadsheetOption, ...]) -> list[SpreadsheetOption]:
    """Pick the spreadsheet(s) called *name* (case-insensitive).

    ``"all"`` selects every option that has an id, in configuration order.

    Raises
    ------
    ConfigError
        If nothing matches or the match has no id.
    """
    wanted = name.strip().lower()
    if wanted == "all":
        selected = [o for o in options if o.id and o.name.lower() != "all"]
        if not selected:
            raise ConfigError("No valid spreadsheets found in the environment configuration")
        return selected

    for option in options:
        if option.name.lower() == wanted:
            if not option.id:
                raise ConfigError(f"Spreadsheet ID missing for '{option.name}'")
            return [option]

    available = ", ".join(o.name for o in options) or "(none configured)"
    raise ConfigError(f"No spreadsheet found matching name '{name}'. Available names: {available}")


# ------------------------------------------------------------------
# WSL path handling
# ------------------------------------------------------------------

def is_wsl() -> bool:
    """Return True when running under Windows Subsystem for Linux."""
    return platform.system() == "Linux" and "microsoft" in platform.release().lower()


def to_wsl_path(path: str) -> str:
    """Translate ``C:\\Users\\me`` to ``/mnt/c/Users/me``; other paths pass through."""
    if not path or not _WINDOWS_PATH_RE.match(path):
        return path
    drive = path[0].lower()
    rest = path[2:].replace("\\", "/")
    return f"/mnt/{drive}{rest}"
