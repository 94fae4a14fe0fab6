"""Downloadable example CSV for bulk user import."""

from __future__ import annotations

from pathlib import Path

TEMPLATE_FILENAME = "user_import_template.csv"
TEMPLATE_MEDIA_TYPE = "text/csv"

TEMPLATE_CSV = (
    "name,email,department,role,expertise\n"
    'John Smith,john.smith@company.com,Marketing,employee,"Social Media, Content Creation"\n'
    'Sarah Chen,sarah.chen@company.com,Data Analytics,expert,"Excel, Power BI, SQL"\n'
    "Mike Johnson,mike.johnson@company.com,Operations,management,"
    '"Leadership, Process Optimization"\n'
    "Lisa Thompson,lisa.thompson@company.com,Finance,expert,"
    '"Financial Analysis, Budget Planning"\n'
    "David Park,david.park@company.com,Human Resources,management,"
    '"Career Development, Performance Reviews"\n'
)


def render_template_bytes() -> bytes:
    """Return the template encoded for download."""

    return TEMPLATE_CSV.encode("utf-8")


def write_template(directory: Path) -> Path:
    """Write the template file into `directory` and return its path."""

    directory.mkdir(parents=True, exist_ok=True)
    target = directory / TEMPLATE_FILENAME
    target.write_bytes(render_template_bytes())
    return target
