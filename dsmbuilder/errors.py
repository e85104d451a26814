"""
dsmbuilder/errors.py -- Fatal pipeline errors.

Anything raised from here aborts the run.  Row-level and field-level
problems never raise; they are reported as validation findings or coerced
to documented defaults instead.
"""


class PipelineError(RuntimeError):
    """Base class for errors that stop a pipeline run."""


class MissingInputError(PipelineError):
    """A required input file or directory does not exist."""

    def __init__(self, path, what: str = "input file"):
        self.path = str(path)
        super().__init__(f"Missing required {what}: {self.path}")


class MissingLookupError(PipelineError):
    """One or more required lookup categories are missing or empty."""

    def __init__(self, categories):
        self.categories = list(categories)
        names = ", ".join(self.categories)
        super().__init__(
            f"Required lookup categor{'y' if len(self.categories) == 1 else 'ies'} "
            f"missing or empty: {names}"
        )


class CsvParseError(PipelineError):
    """A CSV file could not be parsed."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        super().__init__(f"Could not parse CSV file {self.path}: {reason}")


class InvalidJsonError(PipelineError):
    """One or more output JSON files failed validation."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__(
            "One or more JSON files are invalid:\n  - " + "\n  - ".join(self.problems)
        )


class ConfigError(PipelineError):
    """Configuration is incomplete or refers to an unknown option."""
