"""Exception types for every failure kind the CLI distinguishes."""

from __future__ import annotations

from typing import Optional


class LectioError(Exception):
    """Base exception for all lectio-diei errors"""


class InvalidDateError(LectioError, ValueError):
    """A date string is not a valid MMDDYY calendar date"""


# ---- page shape ----


class ExtractionError(LectioError):
    """The fetched page does not have the shape of a readings page."""

    def __init__(self, message: str, key) -> None:
        super().__init__(f"{message} ({key})")
        self.key = key


class NoContainerError(ExtractionError):
    def __init__(self, key) -> None:
        super().__init__("No main readings container found", key)


class NoDayNameError(ExtractionError):
    def __init__(self, key) -> None:
        super().__init__("No day name element found", key)


class MissingReadingError(ExtractionError):
    def __init__(self, slot, key) -> None:
        super().__init__(f"Missing required reading: {slot.heading}", key)
        self.slot = slot


# ---- network ----


class FetchError(LectioError):
    """Base class for failures retrieving an entry from the web"""


class FetchClientError(FetchError):
    """The GET request could not be sent or completed"""


class FetchStatusError(FetchError):
    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"Error status code on GET request: {status} ({url})")
        self.status = status
        self.url = url


class FetchResponseError(FetchError):
    """The response body could not be read"""


class FetchParseError(FetchError):
    """The response body did not contain a usable entry"""


# ---- storage ----


class StoreError(LectioError):
    """Base class for database failures"""


class StoreInitError(StoreError):
    """The store could not be opened; nothing else can proceed"""


class StoragePathError(StoreInitError):
    """Cannot resolve or create the storage path"""


class DatabaseOpenError(StoreInitError):
    """Cannot create or open the database"""


class ForeignKeysError(StoreInitError):
    """Cannot enable foreign key enforcement"""


class MigrationError(StoreInitError):
    """A schema migration failed"""


class EntryNotFoundError(StoreError):
    def __init__(self, key) -> None:
        super().__init__(f"No entry stored for {key}")
        self.key = key


class StoreQueryError(StoreError):
    """A query failed or returned inconsistent rows"""


class StoreWriteError(StoreError):
    """An insert or delete failed"""


# ---- orchestration ----


class RetrievalError(LectioError):
    """An entry could not be obtained from the store or the web."""

    def __init__(
        self,
        key,
        store_error: Optional[StoreError] = None,
        fetch_error: Optional[FetchError] = None,
    ) -> None:
        self.key = key
        self.store_error = store_error
        self.fetch_error = fetch_error
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.store_error and self.fetch_error:
            return (
                f"Failed to retrieve {self.key} from db ({self.store_error}) "
                f"and from web ({self.fetch_error})"
            )
        if self.fetch_error:
            return f"Failed to retrieve {self.key} from web ({self.fetch_error})"
        if self.store_error:
            return f"Failed to retrieve {self.key} from db ({self.store_error})"
        return f"Failed to retrieve {self.key} (undetermined cause)"


class BackfillError(LectioError):
    """One key of a backfill could not be fetched or stored."""

    def __init__(self, key, cause: LectioError) -> None:
        super().__init__(f"Could not store entry {key}: {cause}")
        self.key = key
        self.cause = cause
