import csv
import re
from datetime import date, datetime
from io import StringIO
from typing import Optional, Sequence

from entities import DataRow
from lookup import CategoryLookup


def sanitize_csv_value(value: str) -> str:
    """
    Sanitize CSV values to prevent formula injection by prefixing dangerous patterns with tab.
    """
    if not value or value.strip() == "":
        return ""

    value = value.strip()

    # "$-12.50" is how negative amounts are rendered and is left alone
    if re.fullmatch(r"\$-?\d+(\.\d+)?", value):
        return value

    formula_triggers = ("=", "+", "-", "@", "\t", "\r")

    if value.startswith(formula_triggers):
        return "\t" + value

    dangerous_patterns = [
        r"^cmd\s*",
        r"^powershell\s*",
        r"^bash\s*",
        r"^sh\s*",
        r"^http[s]?://",
    ]

    for pattern in dangerous_patterns:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def parse_date(value: str) -> date:
    value = value.strip()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return datetime.strptime(value, "%d.%m.%Y").date()


def export_table(
    headers: Sequence[str],
    rows: Sequence[DataRow],
    lookup: Optional[CategoryLookup] = None,
) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(
            [sanitize_csv_value(cell) for cell in row.spread_to_strings(lookup)]
        )
    return output.getvalue()
