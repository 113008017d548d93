"""Auswertung des gesamten Buchungsrasters.

Prüft jede sichtbare Zelle auf ALLE Einschränkungen (nicht nur die erste),
damit die Oberfläche vollständige Tooltips anzeigen kann, und ergänzt für
zulässige Zellen die Kontingentprüfung.
"""

from collections import Counter
from datetime import datetime
from typing import Optional, Sequence, Union

from pydantic import BaseModel

from engine.quota import QuotaReason
from engine.restrictions import RestrictionReason, evaluate_all
from engine.selection import SlotSelector
from models.slot import Slot


class CellFinding(BaseModel):
    """Ergebnis für eine einzelne Rasterzelle."""

    day_label: str
    time_label: str
    selected: bool = False
    selectable: bool
    reasons: list[Union[RestrictionReason, QuotaReason]] = []
    messages: list[str] = []
    booked_by_me: bool = False

    @property
    def primary_reason(self) -> Optional[Union[RestrictionReason, QuotaReason]]:
        return self.reasons[0] if self.reasons else None


class GridReport(BaseModel):
    """Auswertung aller Zellen eines Rasters."""

    day_labels: list[str]
    time_labels: list[str]
    findings: list[CellFinding]

    def finding_at(self, day_label: str, time_label: str) -> Optional[CellFinding]:
        for f in self.findings:
            if f.day_label == day_label and f.time_label == time_label:
                return f
        return None

    @property
    def selectable_count(self) -> int:
        return sum(1 for f in self.findings if f.selectable)

    @property
    def selected_count(self) -> int:
        return sum(1 for f in self.findings if f.selected)

    def reason_counts(self) -> dict[str, int]:
        """Anzahl Zellen pro primärem Ablehnungsgrund."""
        counts = Counter(
            f.primary_reason.value for f in self.findings
            if f.primary_reason is not None
        )
        return dict(sorted(counts.items()))

    def print_rich(self) -> None:
        """Gibt die Zusammenfassung formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        lines = [
            f"Zellen: {len(self.findings)}",
            f"[green]Auswählbar: {self.selectable_count}[/green] | "
            f"[cyan]Ausgewählt: {self.selected_count}[/cyan]",
        ]
        console.print(Panel("\n".join(lines), title="Raster-Auswertung", border_style="cyan"))

        counts = self.reason_counts()
        if not counts:
            console.print("[dim]Keine Einschränkungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED)
        table.add_column("Grund", width=30)
        table.add_column("Zellen", justify="right")
        for reason, n in counts.items():
            table.add_row(reason, str(n))
        console.print(table)


class GridReportBuilder:
    """Erstellt einen GridReport aus dem aktuellen Zustand eines SlotSelectors."""

    def __init__(self, selector: SlotSelector) -> None:
        self.selector = selector

    def build(self, time_labels: Sequence[str], now: datetime,
              day_labels: Optional[Sequence[str]] = None) -> GridReport:
        sel = self.selector
        days = list(day_labels) if day_labels is not None else sel.snapshot.day_labels
        findings: list[CellFinding] = []

        for day_label in days:
            for time_label in time_labels:
                findings.append(self._evaluate_cell(day_label, time_label, now))

        return GridReport(day_labels=days, time_labels=list(time_labels), findings=findings)

    def _evaluate_cell(self, day_label: str, time_label: str, now: datetime) -> CellFinding:
        sel = self.selector
        entry = sel.calendar.entry_for(day_label, time_label)
        if entry in sel.selected_entries:
            return CellFinding(day_label=day_label, time_label=time_label,
                               selected=True, selectable=True)

        slot = sel.snapshot.slot_at(day_label, time_label) or Slot(is_available=False)
        failures = evaluate_all(
            day_label, time_label,
            role=sel.snapshot.role,
            restrictions=sel.restrictions,
            now=now,
            calendar=sel.calendar,
            slot=slot,
            workshop=sel.snapshot.workshop,
        )
        reasons = [f.reason for f in failures]
        messages = [f.message for f in failures]
        booked_by_me = any(f.booked_by_me for f in failures)

        if not failures:
            decision = sel.quota.can_add(entry, sel.selected_entries)
            if not decision.allowed:
                reasons.append(decision.reason)
                messages.append(decision.message)

        return CellFinding(
            day_label=day_label,
            time_label=time_label,
            selectable=not reasons,
            reasons=reasons,
            messages=messages,
            booked_by_me=booked_by_me,
        )
