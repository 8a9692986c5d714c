"""
Google Sheets Blob Store

DESIGN DECISION: Google Sheets is offered as a backend because:
1. Non-technical users can look at their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- One cell holds a whole collection, capped at 50,000 characters
- No transactions (the ledger compensates instead)
- Every read fetches the full key column (fine for a handful of keys)

Layout: a single worksheet with a `key | value` header and one row per key.
"""

from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from moneyflow.config import GoogleSheetsSettings, get_settings
from moneyflow.services.storage.interface import (
    BackendConnectionError,
    BackendError,
    BlobStoreInterface,
    QuotaExceededError,
)


STORE_COLUMNS = ["key", "value"]

# Google Sheets rejects cells longer than this
MAX_CELL_CHARS = 50_000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise BackendConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise BackendConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise BackendConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.store_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.store_sheet_name,
                rows=100,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsBlobStore(BlobStoreInterface):
    """
    Google Sheets implementation of the blob store.

    Each key is one row; the value column holds the serialized collection.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _find_row(self, rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row index of a key, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _all_rows(self) -> list[list[str]]:
        try:
            return self._client.get_store_sheet().get_all_values()
        except BackendConnectionError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to read store sheet: {e}")

    async def read(self, key: str) -> Optional[str]:
        rows = self._all_rows()
        idx = self._find_row(rows, key)
        if idx is None:
            return None
        row = rows[idx - 1]
        return row[1] if len(row) > 1 else ""

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_row(self, key: str, value: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is None:
                sheet.append_row([key, value], value_input_option="RAW")
            else:
                sheet.update_cell(idx, 2, value)
        except BackendConnectionError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to write {key}: {e}")

    async def write(self, key: str, value: str) -> None:
        if len(value) > MAX_CELL_CHARS:
            raise QuotaExceededError(
                f"Value for {key} is {len(value)} characters; "
                f"Google Sheets cells hold at most {MAX_CELL_CHARS}"
            )
        self._write_row(key, value)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _delete_row(self, key: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is not None:
                sheet.delete_rows(idx)
        except BackendConnectionError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to remove {key}: {e}")

    async def remove(self, key: str) -> None:
        self._delete_row(key)

    async def keys(self) -> list[str]:
        return [row[0] for row in self._all_rows()[1:] if row and row[0]]
