"""Plain-text conflict reports.

Renders the same content as the PDF report for terminals and log files:
- The job window
- Ranked workers with classification, reasons and notes
- Counts per classification
"""

from pathlib import Path
from typing import Optional, Union

from shiftguard.conflicts.evaluator import ConflictResult
from shiftguard.domain.models import JobWindow, Worker
from shiftguard.output.pdf_generator import describe_job, summarize


class TextReportGenerator:
    """Generates text conflict reports."""

    def generate(
        self,
        job: Optional[JobWindow],
        ranked: list[tuple[Worker, ConflictResult]],
        output_path: Union[str, Path],
    ) -> str:
        """Generate a text report and save to file.

        Args:
            job: The job window the workers were evaluated against.
            ranked: (worker, result) pairs in display order.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(job, ranked)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(
        self,
        job: Optional[JobWindow],
        ranked: list[tuple[Worker, ConflictResult]],
    ) -> str:
        """Generate a text report and return it as a string."""
        lines = []

        lines.append("=" * 80)
        lines.append("WORKER CONFLICT REPORT")
        lines.append(describe_job(job))
        lines.append("=" * 80)
        lines.append("")

        lines.append(f"{'#':>3} {'Worker':<24} {'Classification':<20} {'Priority':>8}")
        lines.append("-" * 80)

        for i, (worker, result) in enumerate(ranked, 1):
            lines.append(
                f"{i:>3} {worker.display_name[:24]:<24} "
                f"{result.classification.value:<20} {result.sort_priority:>8}"
            )
            for reason in result.reasons:
                reason_lines = reason.split("\n")
                lines.append(f"      - {reason_lines[0]}")
                lines.extend(f"        {extra}" for extra in reason_lines[1:])
            for note in result.notes:
                lines.append(f"      * {note}")

        if not ranked:
            lines.append("    No workers to evaluate.")

        lines.append("")
        lines.append("-" * 80)
        lines.append("SUMMARY")
        lines.append("-" * 80)
        for classification, count in summarize([r for _, r in ranked]).items():
            bar = "#" * count
            lines.append(f"{classification.label:<20} {count:>3} {bar}")

        lines.append("=" * 80)
        return "\n".join(lines)
