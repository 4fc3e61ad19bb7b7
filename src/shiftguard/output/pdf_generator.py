"""PDF generation for conflict reports.

This module creates printable PDF reports showing:
- The job window being staffed
- One row per candidate worker with a color-coded classification badge
- Every conflict reason and informational certification note
- A summary page with counts per classification
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from shiftguard.conflicts.evaluator import ConflictClassification, ConflictResult
from shiftguard.domain.models import JobWindow, Worker

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    ConflictClassification.MANDATORY_BLOCK: (0.75, 0.2, 0.2),  # Dark red
    ConflictClassification.TIME_OFF_CONFLICT: (0.9, 0.4, 0.3),  # Red/orange
    ConflictClassification.DIRECT_OVERLAP: (0.85, 0.3, 0.5),  # Rose
    ConflictClassification.GAP_VIOLATION: (0.95, 0.7, 0.2),  # Amber
    ConflictClassification.NOT_PREFERRED: (0.95, 0.85, 0.4),  # Yellow
    ConflictClassification.WORKER_CONFLICT: (0.8, 0.6, 0.9),  # Lavender
    ConflictClassification.CLEAR: (0.4, 0.7, 0.4),  # Green
    "note": (0.45, 0.45, 0.45),  # Gray
    "row_shade": (0.96, 0.96, 0.96),
}

RankedWorkers = list[tuple[Worker, ConflictResult]]


def _reportlab_canvas():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError as exc:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        ) from exc
    return canvas, landscape(letter)


def describe_job(job: Optional[JobWindow]) -> str:
    """One-line description of a job window for report headers."""
    if job is None or not job.is_complete:
        return "No job window (all workers evaluate clear)"
    where = " / ".join(
        name for name in (job.client_name, job.site_name) if name
    )
    when = (
        f"{job.start.strftime('%a %b %d, %Y %H:%M')} - "
        f"{job.end.strftime('%a %b %d, %Y %H:%M')}"
    )
    parts = [f"Job {job.job_id}" if job.job_id else "Job", when]
    if where:
        parts.append(where)
    if job.position:
        parts.append(f"Position: {job.position.upper()}")
    return " | ".join(parts)


class PDFGenerator:
    """Generates printable PDF conflict reports.

    Example:
        >>> ranked = ConflictEvaluator().rank_workers(workers, job, **records)
        >>> PDFGenerator().generate(job, ranked, "conflicts.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        job: Optional[JobWindow],
        ranked: RankedWorkers,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate a PDF report and save to file.

        Args:
            job: The job window the workers were evaluated against.
            ranked: (worker, result) pairs in display order.
            output_path: Path to save the PDF.
            include_summary: Whether to include the summary page.
        """
        canvas, pagesize = _reportlab_canvas()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._draw(c, job, ranked, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        job: Optional[JobWindow],
        ranked: RankedWorkers,
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate a PDF report and return it as a bytes buffer.

        Returns:
            BytesIO buffer containing PDF data.
        """
        canvas, pagesize = _reportlab_canvas()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._draw(c, job, ranked, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, job, ranked: RankedWorkers, include_summary: bool) -> None:
        self._draw_worker_pages(c, job, ranked)
        if include_summary:
            self._draw_summary_page(c, job, ranked)

    def _draw_worker_pages(self, c, job: Optional[JobWindow], ranked: RankedWorkers) -> None:
        """Draw one row per worker, starting new pages as needed."""
        from reportlab.lib.utils import simpleSplit

        header_height = 60
        footer_height = 40
        line_height = 11
        text_left = self.margin + 270
        text_width = self.page_width - self.margin - text_left
        bottom = self.margin + footer_height

        page_num = 1
        self._draw_header(c, job, len(ranked), header_height)
        y = self.page_height - self.margin - header_height - 10

        if not ranked:
            c.setFont("Helvetica", 10)
            c.drawString(self.margin, y - 15, "No workers to evaluate.")

        for index, (worker, result) in enumerate(ranked):
            lines = []
            for reason in result.reasons:
                for part in reason.split("\n"):
                    wrapped = simpleSplit(part, "Helvetica", 8, text_width)
                    lines.extend(("reason", text) for text in wrapped)
            for note in result.notes:
                wrapped = simpleSplit(note, "Helvetica-Oblique", 8, text_width)
                lines.extend(("note", text) for text in wrapped)
            if not lines:
                lines.append(("note", "No conflicts"))

            row_height = max(24, line_height * len(lines) + 8)
            if y - row_height < bottom:
                self._draw_footer(c, page_num)
                c.showPage()
                page_num += 1
                self._draw_header(c, job, len(ranked), header_height)
                y = self.page_height - self.margin - header_height - 10

            y -= row_height
            self._draw_worker_row(
                c, worker, result, lines, y, row_height, text_left, shade=index % 2 == 0
            )

        self._draw_footer(c, page_num)
        c.showPage()

    def _draw_header(self, c, job: Optional[JobWindow], worker_count: int, header_height: float) -> None:
        """Draw page header with the job window."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, "Worker Conflict Report")

        c.setFont("Helvetica", 10)
        c.drawString(self.margin, self.page_height - self.margin - 35, describe_job(job))
        c.drawString(
            self.margin,
            self.page_height - self.margin - 48,
            f"Workers Evaluated: {worker_count}",
        )

        c.setStrokeColorRGB(0.7, 0.7, 0.7)
        c.line(
            self.margin,
            self.page_height - self.margin - header_height + 5,
            self.page_width - self.margin,
            self.page_height - self.margin - header_height + 5,
        )

    def _draw_worker_row(
        self,
        c,
        worker: Worker,
        result: ConflictResult,
        lines: list[tuple[str, str]],
        y: float,
        height: float,
        text_left: float,
        shade: bool,
    ) -> None:
        """Draw a single worker's row: name, badge, then reasons and notes."""
        if shade:
            c.setFillColorRGB(*COLORS["row_shade"])
            c.rect(self.margin, y, self.page_width - 2 * self.margin, height, fill=1, stroke=0)

        top = y + height - 13

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(self.margin + 4, top, worker.display_name[:30])
        if result.preferred_count:
            c.setFont("Helvetica", 7)
            c.drawString(self.margin + 4, top - 10, f"Preferred x{result.preferred_count}")

        # Classification badge
        badge_x = self.margin + 150
        c.setFillColorRGB(*COLORS[result.classification])
        c.roundRect(badge_x, top - 4, 110, 14, 3, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 7)
        c.drawCentredString(badge_x + 55, top, result.classification.label.upper())

        line_y = top
        for kind, text in lines:
            if kind == "note":
                c.setFillColorRGB(*COLORS["note"])
                c.setFont("Helvetica-Oblique", 8)
            else:
                c.setFillColorRGB(0, 0, 0)
                c.setFont("Helvetica", 8)
            c.drawString(text_left, line_y, text)
            line_y -= 11
        c.setFillColorRGB(0, 0, 0)

    def _draw_footer(self, c, page_num: int) -> None:
        self._draw_legend(c, self.margin, self.margin + 10)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawCentredString(self.page_width / 2, self.margin - 10, f"Page {page_num}")

    def _draw_legend(self, c, x: float, y: float) -> None:
        """Draw legend for classification colors."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for classification in ConflictClassification:
            c.setFillColorRGB(*COLORS[classification])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, classification.label)
            current_x += 95

    def _draw_summary_page(self, c, job: Optional[JobWindow], ranked: RankedWorkers) -> None:
        """Draw summary page with counts per classification."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, "Conflict Summary")
        c.setFont("Helvetica", 10)
        c.drawString(self.margin, self.page_height - self.margin - 35, describe_job(job))

        y = self.page_height - self.margin - 70
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Overview")
        y -= 20

        results = [result for _, result in ranked]
        blocked = sum(1 for r in results if r.is_blocking)
        warned = sum(1 for r in results if r.is_warning)

        c.setFont("Helvetica", 10)
        stats = [
            f"Workers Evaluated: {len(results)}",
            f"Blocked: {blocked}",
            f"Warnings: {warned}",
            f"Clear: {len(results) - blocked - warned}",
            f"Preferred: {sum(1 for r in results if r.preferred_count > 0)}",
        ]
        for stat in stats:
            c.drawString(self.margin + 20, y, stat)
            y -= 15

        y -= 20
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "By Classification")
        y -= 20

        counts = summarize(results)
        max_count = max(counts.values()) or 1
        bar_max_width = 300

        c.setFont("Helvetica", 9)
        for classification, count in counts.items():
            c.setFillColorRGB(*COLORS[classification])
            c.rect(self.margin + 140, y - 2, bar_max_width * count / max_count, 10, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(self.margin + 20, y, classification.label)
            c.drawString(self.margin + 150 + bar_max_width, y, str(count))
            y -= 16

        c.showPage()


def summarize(results: list[ConflictResult]) -> dict[ConflictClassification, int]:
    """Count results per classification, in priority order."""
    counts = {classification: 0 for classification in ConflictClassification}
    for result in results:
        counts[result.classification] += 1
    return counts
