"""Rich styles and themes for CLI output."""

from rich.theme import Theme

# Custom theme for the propflow CLI
PROPFLOW_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "property": "magenta",
    "status.approved": "green",
    "status.succeeded": "green",
    "status.pending": "yellow",
    "status.waiting": "yellow",
    "status.draft": "cyan",
    "status.running": "blue",
    "status.declined": "red",
    "status.failed": "red",
    "status.new": "white",
})

STATUS_STYLES = {
    "approved": "status.approved",
    "succeeded": "status.succeeded",
    "pending": "status.pending",
    "waiting": "status.waiting",
    "draft": "status.draft",
    "running": "status.running",
    "declined": "status.declined",
    "failed": "status.failed",
    "new": "status.new",
}
