"""
Tabular Processor Module.

Parses CSV, TSV and XLSX statements into plain row dictionaries with
every cell kept as text. Interpretation of the cells is left to the
record normalizer.
"""

import io
import zipfile
from typing import Dict, List

import pandas as pd

from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.exceptions import CorruptedFileError

# Initialize module logger
logger = get_logger(__name__)


class TabularProcessor:
    """
    Processor for tabular statement files.

    Example:
        >>> rows = TabularProcessor().read_rows(csv_bytes, ".csv", "statement.csv")
        >>> rows[0]
        {'platform': 'Spotify', 'streams': '1000', 'revenue': '40.00', 'date': '2024-01-01'}
    """

    EXTENSIONS = {'.csv', '.tsv', '.xlsx'}

    def read_rows(self, content: bytes, extension: str, filename: str = "") -> List[Dict[str, str]]:
        """
        Parse a table with a header row.

        Args:
            content: Raw file bytes.
            extension: Lower-case extension including the dot.
            filename: Name used in log and error messages.

        Returns:
            One dict per data row (column name -> cell text).

        Raises:
            CorruptedFileError: If the table cannot be parsed.
        """
        try:
            frame = self._read_frame(content, extension)
        except pd.errors.EmptyDataError:
            logger.warning(f"Tabular file has no data: {filename}")
            return []
        except (pd.errors.ParserError, zipfile.BadZipFile, UnicodeDecodeError, ValueError, OSError) as e:
            raise CorruptedFileError(filename, str(e))

        rows = frame.to_dict(orient='records')

        logger.info(f"Parsed {len(rows)} rows from {filename or 'table'}")
        return rows

    @staticmethod
    def _read_frame(content: bytes, extension: str) -> pd.DataFrame:
        buffer = io.BytesIO(content)

        if extension == '.xlsx':
            return pd.read_excel(buffer, dtype=str, engine='openpyxl').dropna(how='all').fillna('')

        return pd.read_csv(
            buffer,
            sep='\t' if extension == '.tsv' else ',',
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding='utf-8-sig',
        )
