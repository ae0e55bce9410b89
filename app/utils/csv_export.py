"""
CSV export utilities
"""
import csv
import io
from typing import Iterable, Dict, List


def render_csv(headers: List[str], rows: Iterable[Dict]) -> str:
    """
    Render rows as CSV text

    Args:
        headers: List of column headers
        rows: Iterable of dictionaries with data rows

    Returns:
        CSV document including the header line
    """
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=headers, quoting=csv.QUOTE_MINIMAL)
    writer.writeheader()
    for row in rows:
        # Ensure all headers are present in row (fill missing with empty string)
        writer.writerow({
            header: "" if row.get(header) is None else str(row.get(header))
            for header in headers
        })
    return output.getvalue()
