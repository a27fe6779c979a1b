"""In-page debug overlay showing the last form-fill result."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

OVERLAY_ELEMENT_ID = "qa-agent-overlay"
DEFAULT_TITLE = "Form Detection Results"

# Runs in the page. Removing any existing overlay first keeps a single instance per page.
_SHOW_OVERLAY_JS = """
({ id, title, body }) => {
  const existing = document.getElementById(id);
  if (existing) {
    existing.remove();
  }

  const overlay = document.createElement("div");
  overlay.id = id;
  overlay.style.cssText = [
    "position: fixed", "top: 20px", "left: 20px", "z-index: 999998",
    "max-width: 500px", "max-height: 80vh", "overflow-y: auto",
    "background-color: white", "border: 2px solid #007bff", "border-radius: 8px",
    "padding: 20px", "box-shadow: 0 4px 12px rgba(0, 0, 0, 0.15)",
    "font-family: monospace", "font-size: 12px",
  ].join(";");

  const close = document.createElement("button");
  close.textContent = "\\u00d7";
  close.setAttribute("aria-label", "Dismiss");
  close.style.cssText = [
    "position: absolute", "top: 10px", "right: 10px", "background: none",
    "border: none", "font-size: 24px", "cursor: pointer", "color: #666", "line-height: 1",
  ].join(";");
  close.addEventListener("click", () => overlay.remove());
  overlay.appendChild(close);

  const heading = document.createElement("h3");
  heading.textContent = title;
  heading.style.cssText = "margin: 0 0 15px 0; font-size: 16px; font-weight: bold; color: #333";
  overlay.appendChild(heading);

  const pre = document.createElement("pre");
  pre.textContent = body;
  pre.style.cssText = "margin: 0; white-space: pre-wrap; word-wrap: break-word; color: #333";
  overlay.appendChild(pre);

  document.body.appendChild(overlay);
}
"""


def format_payload(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def show_results(page, data: Any, title: str = DEFAULT_TITLE) -> None:
    """Render ``data`` in a dismissible overlay on ``page``, replacing any previous one.

    ``page`` is a Playwright page (anything with ``evaluate(expression, arg)``).
    Rendering is best-effort: a failure is logged and never interrupts the
    automation run that triggered it.
    """
    try:
        page.evaluate(_SHOW_OVERLAY_JS, {"id": OVERLAY_ELEMENT_ID, "title": title, "body": format_payload(data)})
    except Exception as e:
        logger.warning("Could not render debug overlay (%s): %s", type(e).__name__, e)
