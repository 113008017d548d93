"""Renderer für die Terminal-Anzeige des Buchungsrasters.

Wird von cmd_grid (Rich-Tabelle) verwendet.
"""

from typing import TYPE_CHECKING, Optional

from engine.quota import QuotaReason
from engine.restrictions import RestrictionReason

if TYPE_CHECKING:
    from analysis.grid_report import CellFinding, GridReport


CELL_GLYPHS: dict[str, str] = {
    "selected": "[bold green]■[/bold green]",
    "free": "[green]·[/green]",
    "mine": "[cyan]●[/cyan]",
    RestrictionReason.PAST_SLOT.value: "[dim]‥[/dim]",
    RestrictionReason.ADMIN_RESTRICTED.value: "[magenta]R[/magenta]",
    RestrictionReason.PLANNED_CLOSURE.value: "[magenta]C[/magenta]",
    RestrictionReason.RESERVED_FOR_OTHER_WORKSHOP.value: "[yellow]W[/yellow]",
    RestrictionReason.ALREADY_BOOKED.value: "[red]✗[/red]",
    RestrictionReason.UNAVAILABLE.value: "[dim]–[/dim]",
    QuotaReason.DAILY_QUOTA_EXCEEDED.value: "[yellow]d[/yellow]",
    QuotaReason.WEEKLY_QUOTA_EXCEEDED.value: "[yellow]w[/yellow]",
}

LEGEND: list[tuple[str, str]] = [
    ("selected", "ausgewählt"),
    ("free", "frei"),
    ("mine", "eigene Buchung"),
    (RestrictionReason.ALREADY_BOOKED.value, "gebucht"),
    (RestrictionReason.RESERVED_FOR_OTHER_WORKSHOP.value, "Workshop"),
    (RestrictionReason.ADMIN_RESTRICTED.value, "gesperrt (Rolle)"),
    (RestrictionReason.PLANNED_CLOSURE.value, "Schließung"),
    (RestrictionReason.PAST_SLOT.value, "vergangen"),
    (RestrictionReason.UNAVAILABLE.value, "nicht verfügbar"),
    (QuotaReason.DAILY_QUOTA_EXCEEDED.value, "Tageslimit"),
    (QuotaReason.WEEKLY_QUOTA_EXCEEDED.value, "7-Tage-Limit"),
]


def cell_glyph(finding: Optional["CellFinding"]) -> str:
    """Ein Zeichen pro Zelle; maßgeblich ist der primäre Grund."""
    if finding is None:
        return CELL_GLYPHS[RestrictionReason.UNAVAILABLE.value]
    if finding.selected:
        return CELL_GLYPHS["selected"]
    if finding.booked_by_me:
        return CELL_GLYPHS["mine"]
    if finding.primary_reason is None:
        return CELL_GLYPHS["free"]
    return CELL_GLYPHS[finding.primary_reason.value]


def render_grid_rows(report: "GridReport", full_hours_only_labels: bool = True) -> list[list[str]]:
    """Gibt Tabellenzeilen für das Raster zurück.

    Jede Zeile: [time_label, <Tag 1>, <Tag 2>, ...]
    Bei full_hours_only_labels wird das Zeitlabel nur zur vollen Stunde gezeigt.
    """
    lookup = {(f.day_label, f.time_label): f for f in report.findings}
    rows: list[list[str]] = []
    for time_label in report.time_labels:
        label = time_label
        if full_hours_only_labels and not time_label.endswith(":00"):
            label = ""
        cells = [label]
        for day_label in report.day_labels:
            cells.append(cell_glyph(lookup.get((day_label, time_label))))
        rows.append(cells)
    return rows


def render_legend() -> str:
    return "  ".join(f"{CELL_GLYPHS[key]} {text}" for key, text in LEGEND)
