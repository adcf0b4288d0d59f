import logging

from ..utils.logger_instance import TRACE, logger
from rich import print as rprint
from rich.panel import Panel

PANEL_STYLES = {
    logging.INFO: ("INFO", "green"),
    logging.WARNING: ("WARNING", "yellow"),
    logging.ERROR: ("ERROR", "red"),
    logging.CRITICAL: ("CRITICAL", "magenta"),
}


def log_trace(msg, *args, **kwargs):
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, msg, *args, **kwargs)


def log_with_panel(level, msg, context=None):
    """Log `msg`; when `context` is given, also echo both in a rich panel for the operator."""
    logger.log(level, msg)
    if context:
        label, style = PANEL_STYLES.get(level, ("NOTE", "cyan"))
        rprint(Panel(f"[bold {style}]{label}:[/bold {style}] {msg}\n[dim]{context}[/dim]", style=style))


def log_warning(msg, context=None):
    log_with_panel(logging.WARNING, msg, context)


def log_critical(msg, context=None):
    log_with_panel(logging.CRITICAL, msg, context)
