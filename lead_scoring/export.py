"""
CSV export of qualified leads.
"""

import csv
import io
from typing import Iterable, List, TextIO

from .conversation import Lead

EXPORT_COLUMNS = [
    "Name", "Phone", "Source", "Classification", "Score",
    "Created At", "Location", "Budget", "Timeline",
]


def lead_row(lead: Lead) -> List[str]:
    meta = lead.metadata or {}
    return [
        lead.name,
        lead.phone,
        lead.source,
        lead.classification.value,
        "" if lead.score is None else str(lead.score),
        lead.created_at,
        meta.get("location") or "",
        meta.get("budget") or "",
        meta.get("timeline") or "",
    ]


def write_leads_csv(leads: Iterable[Lead], stream: TextIO) -> int:
    """Write leads as CSV rows to stream; returns the number of rows."""
    writer = csv.writer(stream)
    writer.writerow(EXPORT_COLUMNS)
    count = 0
    for lead in leads:
        writer.writerow(lead_row(lead))
        count += 1
    return count


def leads_to_csv(leads: Iterable[Lead]) -> str:
    output = io.StringIO()
    write_leads_csv(leads, output)
    return output.getvalue()
