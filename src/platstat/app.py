"""platstat - Textual viewer for platform information."""

import sys

from textual.app import App, ComposeResult
from textual.css.query import NoMatches
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from platstat import title
from platstat.host import PlatformSnapshot, collect_snapshot
from platstat.models import InterfaceAddress


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{int(size):5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_uptime(uptime: float) -> str:
    """Format seconds as "N days, HH:MM:SS"."""
    if uptime < 0:
        return "unavailable"
    days = int(uptime // 86400)
    hours = int((uptime % 86400) // 3600)
    minutes = int((uptime % 3600) // 60)
    seconds = int(uptime % 60)
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class HeaderStats(Static):
    """Header widget showing CPU, memory and process statistics."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._snapshot: PlatformSnapshot | None = None

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_cpu_info(), id="cpu-info"),
            Static(self._get_mem_info(), id="mem-info"),
        )

    def update_stats(self, snapshot: PlatformSnapshot) -> None:
        """Update the statistics from a platform snapshot."""
        self._snapshot = snapshot
        self._refresh_display()

    def _refresh_display(self) -> None:
        """Refresh the display with current data."""
        try:
            cpu_info = self.query_one("#cpu-info", Static)
            mem_info = self.query_one("#mem-info", Static)
        except NoMatches:
            return  # Widget not mounted yet
        cpu_info.update(self._get_cpu_info())
        mem_info.update(self._get_mem_info())

    def _get_cpu_info(self) -> str:
        """Get CPU info display."""
        if self._snapshot is None:
            return "Loading CPU info..."
        cpus = self._snapshot.cpus
        if not cpus:
            return "No CPU information"
        lines = [f"{cpus[0].model} ({len(cpus)} logical)"]
        for i, record in enumerate(cpus):
            times = record.times
            total = times.user + times.nice + times.sys + times.idle + times.irq
            busy = 100.0 * (total - times.idle) / total if total else 0.0
            lines.append(f"CPU{i:<2} {record.speed_mhz:5d}MHz busy {busy:5.1f}%")
        return "\n".join(lines)

    def _get_mem_info(self) -> str:
        """Get memory info display."""
        snapshot = self._snapshot
        if snapshot is None:
            return "Loading memory info..."

        if snapshot.total_memory is not None and snapshot.free_memory is not None:
            mem_line = (
                f"Mem {format_bytes(snapshot.total_memory - snapshot.free_memory)}"
                f"/{format_bytes(snapshot.total_memory)}"
            )
        else:
            mem_line = "Mem unavailable"

        if snapshot.process_memory is not None:
            proc_line = (
                f"RES {format_bytes(snapshot.process_memory.resident_bytes)} "
                f"VIRT {format_bytes(snapshot.process_memory.virtual_bytes)}"
            )
        else:
            proc_line = "RES unavailable"

        if snapshot.load_average is not None:
            load1, load5, load15 = snapshot.load_average
            load_line = f"Load average: {load1:.2f} {load5:.2f} {load15:.2f}"
        else:
            load_line = "Load average: unavailable"

        return (
            f"{mem_line}\n"
            f"{proc_line}\n"
            f"{load_line}\n"
            f"Uptime: {format_uptime(snapshot.uptime_seconds)}\n"
            f"Title: {snapshot.title or '-'}  Exe: {snapshot.executable_path or '-'}"
        )


class InterfaceTable(Container):
    """Container for the interface address table."""

    DEFAULT_CSS = """
    InterfaceTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize InterfaceTable."""
        super().__init__(*args, **kwargs)
        self._row_keys: list[str] = []

    def compose(self) -> ComposeResult:
        """Compose the interface table."""
        yield DataTable(id="interface-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#interface-table", DataTable)
        table.cursor_type = "row"
        self._ensure_columns(table)

    def _ensure_columns(self, table: DataTable) -> None:
        """Add the columns once; the app may deliver data before on_mount runs."""
        if table.columns:
            return
        table.add_column("Interface", key="name", width=16)
        table.add_column("Family", key="family", width=10)
        table.add_column("Internal", key="internal", width=9)
        table.add_column("Address", key="address")

    def update_interfaces(self, interfaces: dict[str, list[InterfaceAddress]]) -> None:
        """Replace the table rows with the given interface addresses."""
        table = self.query_one("#interface-table", DataTable)
        self._ensure_columns(table)
        table.clear()
        self._row_keys = []
        for name, addresses in interfaces.items():
            for index, address in enumerate(addresses):
                row_key = f"{name}/{index}"
                table.add_row(
                    name,
                    address.family.value,
                    "yes" if address.internal else "no",
                    address.address,
                    key=row_key,
                )
                self._row_keys.append(row_key)


class PlatstatApp(App):
    """Main platstat application."""

    TITLE = "platstat"
    SUB_TITLE = "Platform Information"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #mem-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "reload", "Reload"),
    ]

    def __init__(self) -> None:
        """Initialize the PlatstatApp."""
        super().__init__()
        self._snapshot: PlatformSnapshot | None = None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield InterfaceTable()
        yield Footer()

    def on_mount(self) -> None:
        """Take the first snapshot when the app is mounted."""
        self.action_reload()

    def action_reload(self) -> None:
        """Collect a new snapshot and refresh the UI."""
        self._snapshot = collect_snapshot()
        self._update_ui(self._snapshot)
        if self._snapshot.errors:
            self.notify(
                "Unavailable: " + ", ".join(sorted(self._snapshot.errors)),
                severity="warning",
            )

    def _update_ui(self, snapshot: PlatformSnapshot) -> None:
        """Update the UI with the new platform snapshot."""
        self.query_one("#header-stats", HeaderStats).update_stats(snapshot)
        self.query_one(InterfaceTable).update_interfaces(snapshot.interfaces)

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()


def main() -> None:
    """Entry point for platstat application."""
    title.setup(sys.argv[0])
    app = PlatstatApp()
    app.run()


if __name__ == "__main__":
    main()
