"""Exception classes for the consumption dashboard."""


class ConsumptionError(Exception):
    """Base exception for the consumption dashboard."""
    pass


class ConsumptionDataError(ConsumptionError, ValueError):
    """Fatal input errors: the whole upload is rejected."""
    pass


class SheetsNotIdentifiedError(ConsumptionDataError):
    """The energy and water sheets could not be told apart."""
    pass


class NoValidDataError(ConsumptionDataError):
    """No usable record was found."""
    pass


class UnsupportedFileError(ConsumptionDataError):
    """The uploaded file is not a spreadsheet we can read."""
    pass


class ManualEntryError(ConsumptionError, ValueError):
    """A manually entered record failed validation."""
    pass


class ConfigError(ConsumptionError):
    """Malformed settings file."""
    pass
