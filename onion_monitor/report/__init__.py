"""Static status page rendering."""

from onion_monitor.report.html import StatusCounts, render_report, summarize, write_report

__all__ = ["StatusCounts", "render_report", "summarize", "write_report"]
