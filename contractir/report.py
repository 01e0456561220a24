"""Summary report of an encoding pass, rendered from a Jinja2 template."""

import os
from typing import Any

import jinja2

from .assembler import EncodingReport

_TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")
_ENV = jinja2.Environment(
    loader=jinja2.FileSystemLoader(_TEMPLATE_DIR),
    autoescape=False,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


def render(template_name: str, **kwargs: Any) -> str:
    return _ENV.get_template(template_name).render(**kwargs)


def format_report(report: EncodingReport, *, source: str = "") -> str:
    """Human-readable pass summary for terminal output."""
    return render(
        "report.txt.j2",
        source=source,
        encoded=len(report.encoded),
        total=len(report.encoded) + len(report.diagnostics),
        diagnostics=report.diagnostics,
    )


def report_json(report: EncodingReport) -> dict[str, Any]:
    return {
        "encoded": [str(k) for k in report.encoded],
        "diagnostics": [
            {
                "check": d.check,
                "decl": str(d.decl),
                "name": d.name,
                "block": d.block,
                "message": d.message,
            }
            for d in report.diagnostics
        ],
    }
