"""
dsmbuilder/deploy.py -- Copy pipeline artifacts to their deployment folders.

Three artifact sets can be copied: the downloaded CSVs (``csv``), the JSON
tables (``json``) and the built archives (``dsm``).  CSV and JSON copies
always overwrite; archives only overwrite when ``overwrite_archives`` is set,
so a published ``.dsm`` is not replaced by accident.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from dsmbuilder.config import PipelineConfig, is_wsl, to_wsl_path
from dsmbuilder.errors import ConfigError

logger = logging.getLogger(__name__)


def copy_directory(source, destination, overwrite: bool, label: str) -> list[Path]:
    """Copy the files of *source* into *destination*.

    Existing files are skipped (with a warning) unless *overwrite* is set.
    Returns the paths that were written.
    """
    source = Path(source)
    destination = Path(destination)
    written: list[Path] = []
    if not source.is_dir():
        logger.warning("Nothing to copy for %s: %s does not exist", label, source)
        return written

    for path in sorted(p for p in source.rglob("*") if p.is_file()):
        target = destination / path.relative_to(source)
        if target.exists() and not overwrite:
            logger.warning("Skipping existing %s file %s (overwrite disabled)", label, target)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.copy2(path, target)
        except PermissionError as exc:
            logger.warning("Permission denied copying %s to %s: %s", path.name, target, exc)
            continue
        written.append(target)

    logger.info("Copied %s -> %s (%d file(s))%s", label, destination, len(written),
                " (overwrite: true)" if overwrite else "")
    return written


def deploy(config: PipelineConfig) -> dict[str, list[Path]]:
    """Copy input, output and build directories to the configured targets.

    Raises
    ------
    ConfigError
        If any of the three targets is not configured.
    """
    missing = [key for key in ("csv", "json", "dsm") if not config.copy_targets.get(key)]
    if missing:
        raise ConfigError(f"Missing copy target(s): {', '.join(missing)}")

    def target(key: str) -> str:
        path = config.copy_targets[key]
        return to_wsl_path(path) if is_wsl() else path

    return {
        "csv": copy_directory(config.input_dir, target("csv"), True, "input"),
        "json": copy_directory(config.output_dir, target("json"), True, "output"),
        "dsm": copy_directory(config.build_dir, target("dsm"), config.overwrite_archives, "build"),
    }
