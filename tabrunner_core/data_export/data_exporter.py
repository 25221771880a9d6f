import csv
import io
import json
from typing import Any, Dict, List, Optional, Sequence


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class DataExporter:
    """
    Render collected rows as text payloads

    Usage:
        exporter = DataExporter([record.to_row() for record in records])
        payload = exporter.to_csv()
        listing = exporter.to_text()
    """

    def __init__(self, data: Sequence[Dict[str, Any]]):
        self.data = list(data)

    @property
    def columns(self) -> List[str]:
        return list(self.data[0].keys()) if self.data else []

    def to_csv(self, columns: Optional[List[str]] = None) -> str:
        """
        Export to CSV

        Header comes from the first row's keys; every field is wrapped in
        double quotes with embedded quotes doubled. Nested values are written
        as JSON text.

        Returns:
            CSV string ('' when there is no data)
        """
        if not self.data:
            return ""
        columns = columns or self.columns

        output = io.StringIO()
        writer = csv.DictWriter(
            output,
            fieldnames=columns,
            quoting=csv.QUOTE_ALL,
            lineterminator='\n',
            extrasaction='ignore'
        )
        writer.writeheader()
        for row in self.data:
            writer.writerow({col: _cell(row.get(col)) for col in columns})
        return output.getvalue()

    def to_text(self) -> str:
        """Numbered plain-text listing, one block per row"""
        lines = []
        for i, row in enumerate(self.data, 1):
            name = _cell(row.get("Name")) or f"Item {i}"
            lines.append(f"{i}. {name}")
            for key, value in row.items():
                if key in ("Name", "Rank") or value in (None, ""):
                    continue
                lines.append(f"   {key}: {_cell(value)}")
        return "\n".join(lines)


def render_csv(rows: Sequence[Dict[str, Any]]) -> str:
    """Quick CSV rendering"""
    return DataExporter(rows).to_csv()
