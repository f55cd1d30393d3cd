"""Static HTML status page for the monitored services.

``render_report`` is a pure function of its inputs; ``write_report`` puts the
result on disk. All interpolated values are HTML-escaped.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from string import Template
from typing import Iterable, List, Sequence

from onion_monitor.models import (
    STATUS_OFFLINE,
    STATUS_ONLINE,
    STATUS_UNKNOWN,
    ProbeOutcome,
    is_error_status,
)
from onion_monitor.persistence import write_text_atomic

LOGGER = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%b %d, %Y %H:%M UTC"
SOURCE_URL = "https://github.com/igor53627/tor-ethereum-ecosystem"

_BADGES = {
    STATUS_ONLINE: ("status-online", "Online"),
    STATUS_OFFLINE: ("status-offline", "Offline"),
    STATUS_UNKNOWN: ("status-unknown", "Unknown"),
}
_ERROR_BADGE = ("status-error", "Error")

_ONION_ICON = """<svg class="$css_class" xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <circle cx="50" cy="50" r="45" fill="#7d33b8"/>
  <circle cx="50" cy="50" r="35" fill="none" stroke="white" stroke-width="3" opacity="0.8"/>
  <circle cx="50" cy="50" r="25" fill="none" stroke="white" stroke-width="3" opacity="0.6"/>
  <circle cx="50" cy="50" r="15" fill="none" stroke="white" stroke-width="3" opacity="0.4"/>
  <circle cx="50" cy="50" r="6" fill="white"/>
</svg>"""

CARD_TEMPLATE = Template(
    """        <div class="card">
          <div class="card-content">
            <div class="card-header">
              <h3 class="card-title">$title</h3>
              <span class="status-badge $status_class">$status_text</span>
            </div>
$description            <div class="onion-url-box">
              <div class="onion-url-content">
                <div class="onion-url-left">
                  $icon
                  <span class="onion-label">.onion</span>
                </div>
              </div>
              <div class="onion-url">$address</div>
            </div>
            <div class="card-meta">
              <div class="meta-item">
                <span class="meta-label">Response:</span>
                <span class="meta-value">$response_time</span>
              </div>
              <div class="meta-item">
                <span class="meta-label">Checked:</span>
                <span class="meta-value">$last_checked</span>
              </div>
            </div>
          </div>
        </div>
"""
)

PAGE_TEMPLATE = Template(
    """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Onion Service Monitor</title>
  <link rel="preconnect" href="https://fonts.googleapis.com">
  <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
  <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }

    :root {
      --tor-purple-200: #c59be8;
      --tor-purple-500: #7d33b8;
      --tor-purple-600: #61278f;
      --tor-purple-800: #2b1040;
      --bg-body: #F7FAFC;
      --bg-card: #FFFFFF;
      --text-primary: #212335;
      --text-secondary: #718096;
      --border-color: #E2E8F0;
    }

    body {
      font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
      background: var(--bg-body);
      color: var(--text-primary);
      line-height: 1.6;
      min-height: 100vh;
      display: flex;
      flex-direction: column;
    }

    .page-wrapper { display: flex; flex-direction: column; min-height: 100vh; width: 100%; }
    .content-wrapper { flex: 1; }

    header {
      display: flex;
      align-items: center;
      padding: 24px 32px;
      border-bottom: 1px solid var(--border-color);
      background: var(--bg-card);
    }

    .header-content { display: flex; align-items: center; gap: 16px; }
    .tor-logo { width: 40px; height: 40px; flex-shrink: 0; }
    .header-text { display: flex; flex-direction: column; gap: 4px; }
    h1 { font-size: 1.125rem; font-weight: 600; }
    .subtitle { color: var(--text-secondary); font-size: 0.875rem; }

    .container { margin: 0 auto; padding: 0 32px 48px 32px; }
    .section-header { margin: 48px 0 16px 0; }
    .section-title { font-size: 1.25rem; font-weight: 600; }

    .status-summary { display: flex; flex-wrap: wrap; gap: 8px; margin-bottom: 32px; }
    .summary-item {
      border: 1px solid var(--border-color);
      border-radius: 12px;
      padding: 2px 12px;
      font-size: 0.875rem;
      background: var(--bg-card);
    }

    .cards-grid {
      display: grid;
      grid-template-columns: repeat(auto-fill, minmax(350px, 1fr));
      gap: 24px;
      margin-bottom: 48px;
    }

    .card {
      background: var(--bg-card);
      border: 1px solid var(--border-color);
      border-radius: 8px;
      box-shadow: 0 1px 3px 0 rgba(0, 0, 0, 0.1), 0 1px 2px 0 rgba(0, 0, 0, 0.06);
      overflow: hidden;
    }

    .card-content { padding: 16px; display: flex; flex-direction: column; gap: 12px; }
    .card-header { display: flex; justify-content: space-between; align-items: flex-start; gap: 8px; }
    .card-title { font-size: 1rem; font-weight: 600; flex: 1; }
    .card-description { font-size: 0.875rem; color: var(--text-secondary); }

    .onion-url-box {
      background: var(--tor-purple-800);
      border: 1px solid var(--tor-purple-600);
      border-radius: 6px;
      padding: 12px;
    }

    .onion-url-left { display: flex; align-items: center; gap: 8px; }
    .onion-icon { width: 16px; height: 16px; flex-shrink: 0; }
    .onion-label {
      font-size: 0.75rem;
      color: var(--tor-purple-200);
      text-transform: uppercase;
      letter-spacing: 0.5px;
      font-weight: 600;
    }

    .onion-url {
      font-family: 'Space Mono', monospace;
      font-size: 0.75rem;
      color: var(--tor-purple-200);
      word-break: break-all;
      margin-top: 8px;
    }

    .card-meta {
      display: flex;
      justify-content: space-between;
      font-size: 0.875rem;
      color: var(--text-secondary);
      gap: 8px;
    }

    .meta-value { color: var(--text-primary); font-weight: 500; }

    .status-badge {
      padding: 2px 8px;
      border-radius: 12px;
      font-size: 0.75rem;
      font-weight: 600;
      text-transform: uppercase;
    }

    .status-online { background: rgba(72, 187, 120, 0.2); color: #48BB78; }
    .status-offline { background: rgba(245, 101, 101, 0.2); color: #F56565; }
    .status-unknown { background: rgba(160, 174, 192, 0.2); color: #A0AEC0; }
    .status-error { background: rgba(237, 137, 54, 0.2); color: #ED8936; }

    footer { background: var(--bg-card); border-top: 1px solid var(--border-color); margin-top: auto; }
    .footer-content {
      display: flex;
      justify-content: center;
      flex-wrap: wrap;
      gap: 16px;
      padding: 32px;
      font-size: 0.875rem;
      color: var(--text-secondary);
    }
    .footer-content a { color: var(--text-secondary); }
    .footer-divider { opacity: 0.4; }

    @media (max-width: 768px) {
      .cards-grid { grid-template-columns: 1fr; gap: 16px; }
      header { padding: 16px; }
      .container { padding: 0 16px 48px 16px; }
    }
  </style>
</head>
<body>
  <div class="page-wrapper">
    <header>
      <div class="header-content">
        $logo
        <div class="header-text">
          <h1>Onion Service Monitor</h1>
          <p class="subtitle">Monitoring Tor Hidden Services through a SOCKS proxy</p>
        </div>
      </div>
    </header>

    <div class="content-wrapper">
      <div class="container">
        <div class="section-header">
          <h2 class="section-title">Monitored Services</h2>
        </div>

        <div class="status-summary">
$summary
        </div>

        <div class="cards-grid">
$cards
        </div>
      </div>
    </div>

    <footer>
      <div class="footer-content">
        <span>Last updated: $generated_at</span>
        <span class="footer-divider">&bull;</span>
        <a href="$source_url" target="_blank">Tor in Ethereum Ecosystem</a>
      </div>
    </footer>
  </div>
</body>
</html>
"""
)


@dataclass(frozen=True)
class StatusCounts:
    total: int
    online: int
    offline: int
    unknown: int
    error: int


def summarize(outcomes: Iterable[ProbeOutcome]) -> StatusCounts:
    """Count outcomes per status bucket; every ``error-<code>`` lands in ``error``."""
    statuses = [outcome.site.status for outcome in outcomes]
    return StatusCounts(
        total=len(statuses),
        online=sum(1 for s in statuses if s == STATUS_ONLINE),
        offline=sum(1 for s in statuses if s == STATUS_OFFLINE),
        unknown=sum(1 for s in statuses if s == STATUS_UNKNOWN),
        error=sum(1 for s in statuses if is_error_status(s)),
    )


def status_badge(status: str):
    """Return the ``(css class, label)`` pair for ``status``."""
    return _BADGES.get(status, _ERROR_BADGE)


def format_checked(value) -> str:
    if value is None:
        return "Never"
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def format_response_time(response_time_ms) -> str:
    if response_time_ms is None:
        return "N/A"
    return f"{response_time_ms}ms"


def render_card(outcome: ProbeOutcome) -> str:
    site = outcome.site
    status_class, status_text = status_badge(site.status)
    description = ""
    if site.description:
        description = (
            f'            <p class="card-description">{html.escape(site.description)}</p>\n'
        )
    return CARD_TEMPLATE.substitute(
        title=html.escape(site.title),
        status_class=status_class,
        status_text=status_text,
        description=description,
        icon=Template(_ONION_ICON).substitute(css_class="onion-icon"),
        address=html.escape(site.address),
        response_time=format_response_time(outcome.response_time_ms),
        last_checked=format_checked(site.last_checked),
    )


def _render_summary(counts: StatusCounts) -> str:
    items: List[str] = []
    for label, value in (
        ("All", counts.total),
        ("Online", counts.online),
        ("Offline", counts.offline),
        ("Unknown", counts.unknown),
        ("Error", counts.error),
    ):
        items.append(f'          <span class="summary-item">{label} ({value})</span>')
    return "\n".join(items)


def render_report(outcomes: Sequence[ProbeOutcome], generated_at: datetime) -> str:
    """Render the status page for ``outcomes`` in the given order."""
    return PAGE_TEMPLATE.substitute(
        logo=Template(_ONION_ICON).substitute(css_class="tor-logo"),
        summary=_render_summary(summarize(outcomes)),
        cards="".join(render_card(outcome) for outcome in outcomes),
        generated_at=format_checked(generated_at),
        source_url=SOURCE_URL,
    )


def write_report(path: Path, document: str) -> None:
    """Write the rendered page, creating the parent directory.

    Raises:
        PersistenceError: If the page cannot be written.
    """
    write_text_atomic(path, document, operation="write report")
    LOGGER.info("Generated %s", path)


__all__ = [
    "StatusCounts",
    "render_card",
    "render_report",
    "status_badge",
    "summarize",
    "write_report",
]
