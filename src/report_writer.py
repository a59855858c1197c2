import csv
import logging
from typing import Iterable, List

from src.missing_translations import ReportRow

logger = logging.getLogger(__name__)

BASE_COLUMNS = ["contentTypeId", "entryId", "field", "englishContent", "frenchContent"]
SUGGESTION_COLUMN = "suggestedFrenchContent"
LINK_COLUMN = "linkToContent"


def report_columns(include_suggestions: bool, include_links: bool) -> List[str]:
    """Return the ordered CSV header for the report variant in use."""
    columns = list(BASE_COLUMNS)
    if include_suggestions:
        columns.append(SUGGESTION_COLUMN)
    if include_links:
        columns.append(LINK_COLUMN)
    return columns


def write_report(rows: Iterable[ReportRow], path: str,
                 include_suggestions: bool = False, include_links: bool = False) -> int:
    """
    Write report rows to a CSV file, replacing any existing file.

    Values containing commas, quotes or line breaks are quoted by the csv
    module. Absent values are written as empty cells.

    Returns:
        int: The number of rows written.
    """
    columns = report_columns(include_suggestions, include_links)
    count = 0
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction='ignore')
        writer.writeheader()
        for row in rows:
            writer.writerow({key: ("" if value is None else value) for key, value in row.as_dict().items()})
            count += 1
    logger.info(f"Wrote {count} rows to '{path}'.")
    return count
