"""
dsmbuilder/pipeline.py -- Stage orchestration.

Runs the build stages in dependency order:

    download -> convert -> validate -> resolve -> validate -> build -> copy

Each stage is also callable on its own.  Fatal problems raise a
``PipelineError`` subclass; row-level problems are only logged.

Usage::

    from dsmbuilder.config import load_config
    from dsmbuilder.pipeline import Pipeline

    pipeline = Pipeline(load_config("."))
    archive = pipeline.run(download=False, copy=False)
"""

from __future__ import annotations

import logging
from pathlib import Path

from dsmbuilder.config import PipelineConfig
from dsmbuilder.deploy import deploy
from dsmbuilder.download import download_sheets
from dsmbuilder.errors import ConfigError, InvalidJsonError, MissingInputError
from dsmbuilder.flat_converter import convert_directory
from dsmbuilder.lookups import LookupContext, build_lookups, load_tables, require_categories
from dsmbuilder.packager import build_archive
from dsmbuilder.resolver import DaemonResolver, ResolutionResult
from dsmbuilder.validation import validate_json_directory

logger = logging.getLogger(__name__)


class Pipeline:
    """Runs build stages against one :class:`PipelineConfig`."""

    def __init__(self, config: PipelineConfig):
        self.config = config

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def download(self, spreadsheet_id: str | None = None) -> list[Path]:
        """Download every configured sheet into the input directory."""
        sheet_id = spreadsheet_id or self.config.spreadsheet_id
        if not sheet_id:
            raise ConfigError("No spreadsheet id configured (set SPREADSHEET_ID or pick a named option)")
        return download_sheets(sheet_id, self.config.sheet_names, self.config.input_dir)

    def convert(self) -> list[Path]:
        """Convert every flat CSV (everything but the composite file)."""
        return convert_directory(
            self.config.input_dir,
            self.config.output_dir,
            exclude=(self.config.composite_file,),
        )

    def validate(self, check_daemons: bool = False) -> None:
        """Fail if any output JSON is unparseable (or daemons break the schema)."""
        if not self.config.output_dir.is_dir():
            raise MissingInputError(self.config.output_dir, "output directory")
        daemon_file = self.config.composite_output.name if check_daemons else None
        problems = validate_json_directory(self.config.output_dir, daemon_file=daemon_file)
        if problems:
            raise InvalidJsonError(problems)
        logger.info("All JSON files in %s are valid", self.config.output_dir)

    def load_lookups(self) -> LookupContext:
        """Build the lookup context from the converted tables.

        Raises ``MissingLookupError`` if a required category has no entities.
        """
        context = build_lookups(load_tables(self.config.output_dir))
        logger.debug("Lookup sizes: %s", context.counts())
        require_categories(context, self.config.required_categories)
        return context

    def resolve(self, lookups: LookupContext | None = None) -> ResolutionResult:
        """Resolve the composite CSV into the daemon JSON table."""
        csv_path = self.config.composite_input
        if not csv_path.is_file():
            raise MissingInputError(csv_path, "composite CSV")
        if lookups is None:
            lookups = self.load_lookups()
        resolver = DaemonResolver(lookups, workers=self.config.workers)
        return resolver.resolve_file(csv_path, self.config.composite_output)

    def build(self) -> Path:
        """Package the output directory into a ``.dsm`` archive."""
        return build_archive(self.config.output_dir, self.config.build_dir, self.config.manifest_file)

    def copy(self) -> dict[str, list[Path]]:
        """Copy artifacts to the configured deployment folders."""
        return deploy(self.config)

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run(self, spreadsheet_id: str | None = None, download: bool = True, copy: bool = True) -> Path:
        """Run every stage in order and return the archive path."""
        if download:
            self.download(spreadsheet_id)
        self.convert()
        self.validate()
        self.resolve()
        self.validate(check_daemons=True)
        archive = self.build()
        if copy:
            self.copy()
        logger.info("Pipeline finished; output written to %s", self.config.output_dir)
        return archive
