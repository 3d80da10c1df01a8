"""SummaryRenderer — Jinja2 renderer for the clinician-facing summary text.

Loads templates from the ``template/`` directory and renders a
:class:`FollowUpSummary` into the plain-text block a doctor reads in the
case inbox.  The summary model itself stays the canonical payload; the
rendered text is a convenience view of it.
"""

from __future__ import annotations

import json
from pathlib import Path

import jinja2

from followup_rules.models.summary import FollowUpSummary

_SUMMARY_TEMPLATE = "summary.jinja2"


class SummaryRenderer:
    """Renders follow-up summaries as text.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["tojson"] = lambda v: json.dumps(v, ensure_ascii=False)

    def render_summary(self, summary: FollowUpSummary) -> str:
        """Render ``summary`` with the default summary template."""
        return self.render(_SUMMARY_TEMPLATE, summary=summary).strip() + "\n"

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)
