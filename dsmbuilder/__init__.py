"""
dsmbuilder -- Spreadsheet-to-dataset build pipeline.

Converts CSV exports of game data into cross-referenced JSON tables and
packages them as a ``.dsm`` archive.

Submodules:
    coercion        cell-level type coercion
    flat_converter  CSV -> JSON for leaf tables
    lookups         id -> entity tables for reference resolution
    daemon_builder  daemon draft construction
    resolver        reference resolution
    validation      row findings and output checks
    packager        .dsm archive creation
    pipeline        stage orchestration
"""

__version__ = "1.0.0"
