"""
Google Sheets Remote Storage

DESIGN DECISION: A spreadsheet is the remote data store for signed-in users:
1. No database server to run for a personal tracker
2. The user can inspect their rows directly in Sheets
3. Built-in backup (Google's infrastructure)

One worksheet per collection (`txs`, `accounts`), header row first, one row
per record. Every row carries `user_id` and every query filters on it, so
several identities can share one spreadsheet.

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (upsert/delete scan then write row by row)
- Filtering and ordering happen in Python
"""

from typing import Any, Optional, Sequence

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from monetyz.config import get_settings
from monetyz.config.settings import GoogleSheetsSettings
from monetyz.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    RemoteError,
    Row,
    RowCollection,
    row_matches,
    sort_rows,
)
from monetyz.services.storage.rows import ACCOUNT_COLUMNS, TX_COLUMNS


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.
    
    Handles authentication and retries connection setup. Data operations
    are not retried here; failures surface to the caller.
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
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")
        
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
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet
    
    def get_worksheet(self, title: str, columns: Sequence[str]) -> gspread.Worksheet:
        """Get or create a worksheet whose first row is `columns`."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(list(columns))
        return sheet
    
    def transactions_collection(self) -> "GoogleSheetsRowCollection":
        return GoogleSheetsRowCollection(
            self,
            self._settings.transactions_sheet_name,
            TX_COLUMNS,
            numeric=("amount",),
        )
    
    def accounts_collection(self) -> "GoogleSheetsRowCollection":
        return GoogleSheetsRowCollection(
            self,
            self._settings.accounts_sheet_name,
            ACCOUNT_COLUMNS,
            numeric=("sort_order",),
            boolean=("is_primary",),
        )


class GoogleSheetsRowCollection(RowCollection):
    """
    RowCollection backed by one worksheet.
    
    Cells are strings in Sheets: None is written as "" and read back as
    None; numeric and boolean columns are converted on read.
    """
    
    def __init__(
        self,
        client: GoogleSheetsClient,
        sheet_name: str,
        columns: Sequence[str],
        numeric: Sequence[str] = (),
        boolean: Sequence[str] = (),
    ):
        self._client = client
        self._sheet_name = sheet_name
        self._columns = list(columns)
        self._numeric = set(numeric)
        self._boolean = set(boolean)
    
    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._sheet_name, self._columns)
    
    def _to_cells(self, row: Row) -> list:
        cells = []
        for column in self._columns:
            value = row.get(column)
            if value is None:
                cells.append("")
            elif isinstance(value, bool):
                cells.append("TRUE" if value else "FALSE")
            else:
                cells.append(value)
        return cells
    
    def _from_cells(self, cells: list) -> Row:
        row: Row = {}
        for idx, column in enumerate(self._columns):
            value: Any = cells[idx] if idx < len(cells) else ""
            if value == "":
                row[column] = None
            elif column in self._numeric:
                number = float(value)
                row[column] = int(number) if number.is_integer() and column != "amount" else number
            elif column in self._boolean:
                row[column] = str(value).strip().upper() == "TRUE"
            else:
                row[column] = value
        return row
    
    def _read(self) -> tuple[gspread.Worksheet, list[tuple[int, Row]]]:
        """All data rows with their 1-based sheet row numbers."""
        sheet = self._sheet()
        values = sheet.get_all_values()[1:]  # Skip header
        rows = []
        for idx, cells in enumerate(values, start=2):
            if not cells or not cells[0]:  # Skip empty rows
                continue
            rows.append((idx, self._from_cells(cells)))
        return sheet, rows
    
    async def select(
        self,
        filters: Optional[Row] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Row]:
        try:
            _, rows = self._read()
        except RemoteError:
            raise
        except Exception as e:
            raise RemoteError(f"Failed to read {self._sheet_name}: {e}")
        
        matched = [row for _, row in rows if row_matches(row, filters)]
        return sort_rows(matched, order_by, descending)
    
    async def insert(self, rows: Sequence[Row]) -> None:
        try:
            sheet, existing = self._read()
            ids = {row.get("id") for _, row in existing}
            for row in rows:
                if row.get("id") in ids:
                    raise DuplicateError(f"Row already exists: {row.get('id')}")
            sheet.append_rows([self._to_cells(r) for r in rows], value_input_option="RAW")
        except RemoteError:
            raise
        except Exception as e:
            raise RemoteError(f"Failed to insert into {self._sheet_name}: {e}")
    
    async def upsert(self, rows: Sequence[Row], key: Sequence[str] = ("id",)) -> None:
        try:
            sheet, existing = self._read()
            appended = []
            for row in rows:
                match = {column: row.get(column) for column in key}
                found = next((idx for idx, cur in existing if row_matches(cur, match)), None)
                if found is None:
                    appended.append(self._to_cells(row))
                else:
                    current = dict(next(cur for idx, cur in existing if idx == found))
                    current.update(row)
                    sheet.update(
                        range_name=f"A{found}",
                        values=[self._to_cells(current)],
                        value_input_option="RAW",
                    )
            if appended:
                sheet.append_rows(appended, value_input_option="RAW")
        except RemoteError:
            raise
        except Exception as e:
            raise RemoteError(f"Failed to upsert into {self._sheet_name}: {e}")
    
    async def update(self, values: Row, filters: Row) -> int:
        try:
            sheet, existing = self._read()
            count = 0
            for idx, current in existing:
                if row_matches(current, filters):
                    current.update(values)
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._to_cells(current)],
                        value_input_option="RAW",
                    )
                    count += 1
            return count
        except RemoteError:
            raise
        except Exception as e:
            raise RemoteError(f"Failed to update {self._sheet_name}: {e}")
    
    async def delete(self, filters: Row) -> int:
        try:
            sheet, existing = self._read()
            matched = [idx for idx, row in existing if row_matches(row, filters)]
            # Bottom-up so earlier row numbers stay valid
            for idx in sorted(matched, reverse=True):
                sheet.delete_rows(idx)
            return len(matched)
        except RemoteError:
            raise
        except Exception as e:
            raise RemoteError(f"Failed to delete from {self._sheet_name}: {e}")
