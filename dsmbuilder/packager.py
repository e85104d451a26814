"""
dsmbuilder/packager.py -- Build the distributable ``.dsm`` archive.

A ``.dsm`` file is a ZIP of the output directory, named after the first
record of ``manifest.json``: ``<id>-<version>.dsm``.
"""

from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from pathlib import Path

from dsmbuilder.errors import MissingInputError, PipelineError
from dsmbuilder.utils import safe_read_json

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".dsm"


def read_manifest(manifest_path) -> tuple[str, str]:
    """Return ``(id, version)`` from the first manifest record.

    Raises
    ------
    MissingInputError
        If the manifest file does not exist.
    PipelineError
        If it is unreadable or lacks an id or version.
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        raise MissingInputError(manifest_path, "manifest")

    data = safe_read_json(manifest_path)
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        raise PipelineError(f"{manifest_path.name} has no manifest record")

    manifest_id = _text(data.get("id"))
    version = _text(data.get("version"))
    if not manifest_id or not version:
        raise PipelineError(f"{manifest_path.name} must define both 'id' and 'version'")
    return manifest_id, version


def _text(value) -> str:
    # the flat converter stores "1.0" as 1.0 and "2" as 2.0
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return "" if value is None else str(value).strip()


def build_archive(output_dir, build_dir, manifest_file: str = "manifest.json") -> Path:
    """Zip every file in *output_dir* into ``build_dir/<id>-<version>.dsm``.

    Entries are stored with paths relative to *output_dir* in sorted order.
    The archive is written to a temp file and moved into place.
    """
    output_dir = Path(output_dir)
    build_dir = Path(build_dir)
    if not output_dir.is_dir():
        raise MissingInputError(output_dir, "output directory")

    manifest_id, version = read_manifest(output_dir / manifest_file)
    build_dir.mkdir(parents=True, exist_ok=True)
    archive_path = build_dir / f"{manifest_id}-{version}{ARCHIVE_SUFFIX}"
    logger.info("Saving archive to: %s", archive_path)

    files = sorted(p for p in output_dir.rglob("*") if p.is_file())
    fd, tmp_path = tempfile.mkstemp(dir=str(build_dir), suffix=".tmp")
    os.close(fd)
    try:
        with zipfile.ZipFile(tmp_path, "w", zipfile.ZIP_DEFLATED) as zf:
            for path in files:
                zf.write(path, path.relative_to(output_dir).as_posix())
        os.replace(tmp_path, archive_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise

    logger.info("Done archiving %d file(s)", len(files))
    return archive_path
