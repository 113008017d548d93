"""Gerätebuchung: Haupt-CLI.

Verwendung:
  python main.py setup                          Default-Konfiguration anlegen
  python main.py config show                    Konfiguration anzeigen
  python main.py config edit                    Konfiguration bearbeiten
  python main.py closures list                  Geplante Schließungen anzeigen
  python main.py closures add <start> <ende>    Schließung hinzufügen (ISO-Datum)
  python main.py closures remove <id>           Schließung entfernen
  python main.py generate                       Demo-Snapshot erzeugen
  python main.py grid                           Buchungsraster anzeigen
  python main.py check "Thu 8" 10:00            Einzelne Zelle prüfen
  python main.py select -c "Thu 8" 10:00 ...    Toggle-Folge ausführen
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Pfad für den gespeicherten Snapshot
DEFAULT_SNAPSHOT_JSON = Path("output/snapshot.json")


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except ValueError as e:
        console.print(f"[red bold]Konfiguration fehlerhaft:[/red bold]\n{e}")
        sys.exit(1)


def _load_snapshot_or_abort(path: str):
    from models.booking_snapshot import BookingSnapshot

    p = Path(path)
    if not p.exists():
        console.print(
            f"[red]Kein Snapshot gefunden: {p}[/red]\n"
            "Verwenden Sie [bold]python main.py generate[/bold]."
        )
        sys.exit(1)
    try:
        return BookingSnapshot.load_json(p)
    except ValueError as e:
        console.print(f"[red bold]Snapshot fehlerhaft:[/red bold]\n{e}")
        sys.exit(1)


def _build_selector(config, snapshot):
    from engine.calendar import BookingCalendar
    from engine.selection import SlotSelector

    calendar = BookingCalendar.for_now(config.tz)
    return SlotSelector(calendar, snapshot, config.restrictions, config.limits)


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Default-Konfiguration anlegen."""
    from config.defaults import default_booking_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Verwenden Sie [bold]python main.py config edit[/bold] zum Bearbeiten."
        )
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    mgr.save(default_booking_config())
    console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
    console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder bearbeiten."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config_or_abort()
    from config.schema import WEEKDAY_NAMES
    from engine.quota import format_slot_duration

    lim = config.limits
    console.print(Panel(
        f"[bold]{config.facility_name}[/bold]  |  {config.timezone}\n"
        f"Pro Tag: {format_slot_duration(lim.max_slots_per_day)} "
        f"({lim.max_slots_per_day} Slots)  |  "
        f"Pro 7 Tage: {format_slot_duration(lim.max_slots_per_week)} "
        f"({lim.max_slots_per_week} Slots)  |  "
        f"Sichtbar: {lim.visibility_days} Tage",
        title="Buchungskonfiguration",
        border_style="cyan",
    ))

    table = Table(title="Öffnungszeiten Rolle 3", box=box.ROUNDED)
    table.add_column("Tag")
    table.add_column("Zeiten")
    for name in WEEKDAY_NAMES:
        hours = config.restrictions.level3.days.get(name)
        if hours is None:
            table.add_row(name, "[dim]keine Einschränkung[/dim]")
        elif hours.closed:
            table.add_row(name, "[red]geschlossen[/red]")
        else:
            table.add_row(name, f"{hours.start_hour:02d}:00 – {hours.end_hour:02d}:00")
    console.print(table)

    l4 = config.restrictions.level4
    if l4.is_unrestricted:
        console.print("[bold]Rolle 4:[/bold] keine Sperrzeit")
    else:
        console.print(
            f"[bold]Rolle 4:[/bold] gesperrt {l4.start_hour:02d}:00 – {l4.end_hour:02d}:00"
            + (" (über Mitternacht)" if l4.is_overnight else "")
        )
    console.print(
        f"[bold]Geplante Schließungen:[/bold] "
        f"{len(config.restrictions.planned_closures)}"
    )


@cmd_config.command("edit")
def config_edit():
    """Bearbeitet die Konfiguration interaktiv."""
    mgr, config = _load_config_or_abort()
    mgr.edit_interactive(config)


# ─── CLOSURES ─────────────────────────────────────────────────────────────────

@click.group("closures")
def cmd_closures():
    """Geplante Schließungen verwalten (gelten nur für Rolle 3)."""


@cmd_closures.command("list")
def closures_list():
    """Listet alle geplanten Schließungen auf."""
    mgr, config = _load_config_or_abort()
    closures = config.restrictions.planned_closures
    if not closures:
        console.print("[dim]Keine Schließungen geplant.[/dim]")
        return

    table = Table(title="Geplante Schließungen", box=box.ROUNDED)
    table.add_column("ID", style="bold")
    table.add_column("Beginn")
    table.add_column("Ende (exklusiv)")
    for c in closures:
        table.add_row(str(c.id), c.start_date.isoformat(), c.end_date.isoformat())
    console.print(table)


@cmd_closures.command("add")
@click.argument("start", type=click.DateTime(["%Y-%m-%d", "%Y-%m-%dT%H:%M"]))
@click.argument("end", type=click.DateTime(["%Y-%m-%d", "%Y-%m-%dT%H:%M"]))
def closures_add(start: datetime, end: datetime):
    """Fügt eine Schließung [START, END) hinzu (Ortszeit der Konfiguration)."""
    mgr, config = _load_config_or_abort()
    tz = config.tz
    try:
        config, closure = mgr.add_closure(
            config, start.replace(tzinfo=tz), end.replace(tzinfo=tz))
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    mgr.save(config)
    console.print(f"[green]✓[/green] Schließung #{closure.id} hinzugefügt.")


@cmd_closures.command("remove")
@click.argument("closure_id", type=int)
def closures_remove(closure_id: int):
    """Entfernt eine Schließung anhand ihrer ID."""
    mgr, config = _load_config_or_abort()
    config, removed = mgr.remove_closure(config, closure_id)
    if not removed:
        console.print(f"[yellow]Keine Schließung mit ID {closure_id}.[/yellow]")
        sys.exit(1)
    mgr.save(config)
    console.print(f"[green]✓[/green] Schließung #{closure_id} entfernt.")


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--role", default=2, type=click.IntRange(1, 4), help="Rolle des Nutzers.")
@click.option("--json-path", default=str(DEFAULT_SNAPSHOT_JSON),
              help="Pfad für den Snapshot.")
def cmd_generate(seed: int, role: int, json_path: str):
    """Erzeugt einen Demo-Snapshot (Belegung, Workshops, eigene Buchungen)."""
    mgr, config = _load_config_or_abort()
    from data.fake_data import FakeSnapshotGenerator
    from engine.calendar import BookingCalendar

    console.print("[bold]Testdaten werden generiert...[/bold]")
    gen = FakeSnapshotGenerator(config, BookingCalendar.for_now(config.tz),
                                role=role, seed=seed)
    snapshot = gen.generate()
    gen.print_summary(snapshot)

    out_path = Path(json_path)
    snapshot.save_json(out_path)
    console.print(f"[green]✓[/green] Snapshot gespeichert: {out_path}")


# ─── GRID ─────────────────────────────────────────────────────────────────────

@click.command("grid")
@click.option("--json-path", default=str(DEFAULT_SNAPSHOT_JSON),
              help="Pfad zum Snapshot.")
@click.option("--week", default=0, type=int, help="Welcher 7-Tage-Block (0-basiert).")
def cmd_grid(json_path: str, week: int):
    """Zeigt das Buchungsraster mit allen Einschränkungen."""
    mgr, config = _load_config_or_abort()
    snapshot = _load_snapshot_or_abort(json_path)
    from analysis.grid_report import GridReportBuilder
    from engine.calendar import generate_time_labels, partition_into_weeks
    from export.grid_renderer import render_grid_rows, render_legend

    selector = _build_selector(config, snapshot)
    weeks = partition_into_weeks(snapshot.day_labels)
    if not weeks:
        console.print("[yellow]Snapshot enthält keine Tage.[/yellow]")
        return
    if not 0 <= week < len(weeks):
        console.print(f"[red]Woche {week} existiert nicht (0–{len(weeks) - 1}).[/red]")
        sys.exit(1)

    time_labels = generate_time_labels(*config.grid_hours_for_role(snapshot.role))
    report = GridReportBuilder(selector).build(
        time_labels, now=datetime.now(config.tz), day_labels=weeks[week])

    table = Table(title=snapshot.equipment_name or "Buchungsraster", box=box.SIMPLE_HEAD)
    table.add_column("Zeit", justify="right")
    for day_label in report.day_labels:
        table.add_column(day_label, justify="center")
    for row in render_grid_rows(report):
        table.add_row(*row)
    console.print(table)
    console.print(render_legend())
    report.print_rich()


# ─── CHECK ────────────────────────────────────────────────────────────────────

@click.command("check")
@click.argument("day_label")
@click.argument("time_label")
@click.option("--json-path", default=str(DEFAULT_SNAPSHOT_JSON),
              help="Pfad zum Snapshot.")
def cmd_check(day_label: str, time_label: str, json_path: str):
    """Prüft eine einzelne Zelle und zeigt alle Gründe."""
    mgr, config = _load_config_or_abort()
    snapshot = _load_snapshot_or_abort(json_path)
    from analysis.grid_report import GridReportBuilder
    from models.timeslot import MalformedCoordinate

    selector = _build_selector(config, snapshot)
    try:
        report = GridReportBuilder(selector).build(
            [time_label], now=datetime.now(config.tz), day_labels=[day_label])
    except MalformedCoordinate as e:
        console.print(f"[red bold]Ungültige Koordinate:[/red bold] {e}")
        sys.exit(1)

    finding = report.findings[0]
    if finding.selectable:
        console.print(f"[bold green]✓ {day_label} {time_label} ist auswählbar[/bold green]")
        return
    console.print(f"[bold red]✗ {day_label} {time_label} ist nicht auswählbar[/bold red]")
    for reason, message in zip(finding.reasons, finding.messages):
        console.print(f"  [red]• {reason.value}[/red]: {message}")
    sys.exit(1)


# ─── SELECT ───────────────────────────────────────────────────────────────────

@click.command("select")
@click.option("--cell", "-c", "cells", nargs=2, multiple=True, required=True,
              help='Zelle als Tageslabel + Zeit, z.B. -c "Thu 8" 10:00 (mehrfach).')
@click.option("--json-path", default=str(DEFAULT_SNAPSHOT_JSON),
              help="Pfad zum Snapshot.")
def cmd_select(cells: tuple[tuple[str, str], ...], json_path: str):
    """Führt eine Folge von Toggles aus und zeigt die resultierende Auswahl."""
    mgr, config = _load_config_or_abort()
    snapshot = _load_snapshot_or_abort(json_path)
    from models.timeslot import MalformedCoordinate

    selector = _build_selector(config, snapshot)
    for day_label, time_label in cells:
        try:
            result = selector.toggle(day_label, time_label)
        except MalformedCoordinate as e:
            console.print(f"[red bold]Ungültige Koordinate:[/red bold] {e}")
            sys.exit(1)
        if result.accepted:
            console.print(f"[green]✓[/green] {day_label} {time_label} → {result.state.value}")
        else:
            console.print(f"[red]✗[/red] {day_label} {time_label}: {result.message}")

    table = Table(title="Auswahl", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Slot")
    for i, key in enumerate(selector.selected_keys, 1):
        table.add_row(str(i), key)
    console.print(table)
    if selector.error_message:
        console.print(f"[yellow]Letzte Meldung:[/yellow] {selector.error_message}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Ausführliches Logging.")
def cli(verbose: bool):
    """Gerätebuchung: Zulässigkeit und Kontingente für Slot-Buchungen.

    Starten Sie mit: python main.py setup
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf die Default-Konfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen bei der Gerätebuchung![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Die Einrichtung wird jetzt gestartet...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_closures)
cli.add_command(cmd_generate)
cli.add_command(cmd_grid)
cli.add_command(cmd_check)
cli.add_command(cmd_select)


if __name__ == "__main__":
    main()
