"""Error taxonomy shared by the extraction core, the store and the routes."""


class TasksheetError(Exception):
    """Base class for every error raised by tasksheet."""


class WorkbookReadError(TasksheetError):
    """The uploaded bytes could not be parsed as a supported spreadsheet."""


class EmptyExtractionError(TasksheetError):
    """No usable task rows were found in any sheet of the workbook."""

    def __init__(self, message: str = "No valid tasks were found in the file"):
        super().__init__(message)


class InvalidStatusError(TasksheetError, ValueError):
    """A status value outside the fixed lifecycle enumeration."""


class ConnectivityError(TasksheetError):
    """The database is unreachable or misconfigured. Retryable by the user."""


class PersistencePartialFailure(TasksheetError):
    """The file record was created but its tasks could not be stored.

    The file record has already been removed again when this is raised.
    """

    def __init__(self, message: str, file_name: str):
        super().__init__(message)
        self.file_name = file_name


class MutationError(TasksheetError):
    """A status update or delete failed; stored data is unchanged."""


class RecordNotFoundError(MutationError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id
