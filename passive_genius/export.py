"""Plan export (PDF via WeasyPrint and Jinja2, markdown) and share text."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, FileSystemLoader

from .schemas import DetailedPlan

TEMPLATE_DIR = Path(__file__).parent / "templates"


def format_money(value: float) -> str:
    """Render an amount the way the projection table shows it."""

    if float(value).is_integer():
        return f"${int(value)}"
    return f"${value:.2f}"


def plan_heading(plan: DetailedPlan, idea_title: str | None) -> str:
    return idea_title or plan.idea_id


class PDFExporter:
    """Export a plan as a single-page-style A4 document.

    Jinja2 builds the HTML; WeasyPrint renders it in a worker thread so the
    event loop stays responsive.
    """

    def __init__(self) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=True,
        )
        self.env.filters["money"] = format_money

    def render_html(self, plan: DetailedPlan, idea_title: str | None = None) -> str:
        template = self.env.get_template("plan.html")
        return template.render(plan=plan, heading=plan_heading(plan, idea_title))

    async def export_pdf(self, plan: DetailedPlan, idea_title: str | None = None) -> bytes:
        """Return PDF bytes for *plan*."""

        html_content = self.render_html(plan, idea_title)

        try:
            from weasyprint import HTML
        except ImportError as e:
            raise ImportError("WeasyPrint not installed. Install with: pip install weasyprint") from e

        return await asyncio.to_thread(
            lambda: HTML(string=html_content, base_url=str(TEMPLATE_DIR)).write_pdf()
        )


def _bullet_list(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items if item)


def format_plan_markdown(plan: DetailedPlan, idea_title: str | None = None) -> str:
    roadmap_sections = []
    for step in plan.steps:
        lines = [f"**{step.phase}**"]
        if step.tasks:
            lines.append(_bullet_list(step.tasks))
        roadmap_sections.append("\n".join(lines))

    table_lines = []
    if plan.projections:
        table_lines = ["| Month | Revenue | Expenses | Net Profit |", "| --- | --- | --- | --- |"]
        table_lines.extend(
            f"| {row.month} | {format_money(row.revenue)} | {format_money(row.expenses)} | {format_money(row.profit)} |"
            for row in plan.projections
        )

    roadmap = "\n\n".join(roadmap_sections)
    table = "\n".join(table_lines)

    return "\n\n".join(
        section
        for section in [
            f"# Passive Genius Strategy: {plan_heading(plan, idea_title)}",
            f"## Executive Overview\n\n{plan.overview}" if plan.overview else "",
            f"## Marketing Strategy\n\n{plan.marketing_strategy}" if plan.marketing_strategy else "",
            f"## Implementation Roadmap\n\n{roadmap}" if roadmap_sections else "",
            f"## Financial Projections\n\n{table}" if table_lines else "",
        ]
        if section
    )


def build_share_text(title: str, description: str) -> str:
    return f"Check out this business idea: {title}\n\n{description}\n\nGenerated by PassiveGenius."
