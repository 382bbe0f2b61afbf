"""Registry of schema options, one per supported template version."""

from importlib import resources
from pathlib import Path

from avalanche_report.spreadsheet.cells import Workbook
from avalanche_report.spreadsheet.errors import SpreadsheetError
from avalanche_report.spreadsheet.errors import UnsupportedTemplateVersionError
from avalanche_report.spreadsheet.options import SchemaOptions
from avalanche_report.spreadsheet.parser import parse_workbook
from avalanche_report.spreadsheet.parser import read_template_version
from avalanche_report.spreadsheet.types import Forecast
from avalanche_report.spreadsheet.version import Version
from avalanche_report.utils.logging_utils import LoggerMixin


class ForecastSchemas(LoggerMixin):
    """Schema options keyed by schema version.

    Loaded once at startup and read-only afterwards. A workbook is parsed
    with the options whose schema version shares major and minor numbers
    with the workbook's template version.
    """

    def __init__(self, options: list[SchemaOptions]):
        super().__init__()
        self._options = {option.schema_version: option for option in options}
        # newest first
        self._ordered = sorted(self._options.values(), key=lambda o: o.schema_version, reverse=True)

    @classmethod
    def load_packaged(cls) -> "ForecastSchemas":
        """Load the schema options shipped with the package."""
        directory = resources.files("avalanche_report") / "schemas"
        options = [
            SchemaOptions.from_json(entry.read_text(encoding="utf-8"))
            for entry in sorted(directory.iterdir(), key=lambda entry: entry.name)
            if entry.name.endswith(".json")
        ]
        schemas = cls(options)
        schemas.info("Loaded forecast schemas", versions=", ".join(schemas.versions))
        return schemas

    @classmethod
    def load_directory(cls, directory: str | Path) -> "ForecastSchemas":
        paths = sorted(Path(directory).glob("*.json"))
        return cls([SchemaOptions.from_file(path) for path in paths])

    @property
    def versions(self) -> list[str]:
        return [str(option.schema_version) for option in self._ordered]

    def get(self, schema_version: Version) -> SchemaOptions | None:
        return self._options.get(schema_version)

    def for_template(self, template_version: Version) -> SchemaOptions | None:
        """Options able to parse the given template version."""
        for option in self._ordered:
            if option.schema_version.is_compatible(template_version):
                return option
        return None

    def select(self, workbook: Workbook) -> SchemaOptions:
        """Pick the options matching the template version in ``workbook``."""
        found: Version | None = None
        for option in self._ordered:
            try:
                template_version = read_template_version(workbook, option)
            except SpreadsheetError:
                continue
            found = found or template_version
            if option.schema_version.is_compatible(template_version):
                return option
        raise UnsupportedTemplateVersionError(str(found) if found else "unknown", self.versions)

    def parse(self, data: bytes) -> tuple[Forecast, SchemaOptions]:
        """Parse workbook bytes, returning the forecast and the options used."""
        workbook = Workbook.from_bytes(data)
        options = self.select(workbook)
        self.logger.debug("Parsing workbook with schema %s", options.schema_version)
        return parse_workbook(workbook, options), options
