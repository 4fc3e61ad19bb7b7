"""Command-line interface for the shiftguard conflict and OCR tools."""

import argparse
import dataclasses
import logging
import sys
from datetime import date, datetime, time, timedelta
from typing import Optional

from shiftguard.config import Settings, load_env, load_settings
from shiftguard.conflicts.evaluator import ConflictEvaluator, ConflictResult
from shiftguard.domain.models import (
    AssignmentStatus,
    Certification,
    CertificationKind,
    JobWindow,
    PreferenceRecord,
    PreferenceScope,
    PreferenceType,
    TimeOffRequest,
    TimeOffStatus,
    UnavailablePeriod,
    Worker,
    WorkerAssignment,
    WorkerPreference,
)
from shiftguard.io.loader import EvaluationRequest, InputError, load_request
from shiftguard.ocr.dates import extract_expiration_date
from shiftguard.ocr.engine import OCRExtractionError, analyze_document
from shiftguard.output.pdf_generator import PDFGenerator
from shiftguard.output.text_report import TextReportGenerator

logger = logging.getLogger(__name__)


def create_sample_request(job_day: Optional[date] = None) -> EvaluationRequest:
    """Create a sample request where each worker hits a different rule.

    Args:
        job_day: Day of the sample job. If None, uses tomorrow.
    """
    if job_day is None:
        job_day = date.today() + timedelta(days=1)

    def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
        return datetime.combine(job_day + timedelta(days=day_offset), time(hour, minute))

    job = JobWindow(
        start=at(0, 7),
        end=at(0, 15),
        job_id="JOB-2041",
        company_id="C1",
        site_id="S1",
        client_id="CL1",
        company_name="Northside Traffic",
        site_name="Harbour Bridge",
        client_name="City Works",
        position="lct",
    )

    names = ["Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry"]
    workers = [
        Worker(
            id=f"W{i + 1:03d}",
            name=name,
            certifications={
                CertificationKind.TCP: Certification(
                    CertificationKind.TCP, job_day + timedelta(days=20 + 60 * i)
                ),
            },
        )
        for i, name in enumerate(names)
    ]
    workers[0].certifications[CertificationKind.DRIVER_LICENSE] = Certification(
        CertificationKind.DRIVER_LICENSE, job_day + timedelta(days=400)
    )

    assignments = [
        # Bob: overlaps the job directly
        WorkerAssignment(
            "W002", "JOB-2030", at(0, 12), at(0, 20),
            job_number="2030", site_name="Ridge Road", client_name="Metro Gas",
        ),
        # Carol: night shift ending four hours before the job
        WorkerAssignment(
            "W003", "JOB-2025", at(-1, 19), at(0, 3),
            job_number="2025", site_name="Port Lane", client_name="City Works",
        ),
        # Cancelled assignments never conflict
        WorkerAssignment(
            "W004", "JOB-2019", at(0, 8), at(0, 12), status=AssignmentStatus.CANCELLED,
        ),
        WorkerAssignment("W008", "JOB-2041", at(0, 7), at(0, 15)),
    ]

    return EvaluationRequest(
        job=job,
        workers=workers,
        assignments=assignments,
        unavailable_periods=[
            UnavailablePeriod("W004", at(0, 13), at(0, 17), reason="Medical appointment"),
        ],
        time_off_requests=[
            TimeOffRequest(
                "W005", job_day, job_day + timedelta(days=2),
                status=TimeOffStatus.APPROVED, type="vacation",
            ),
            TimeOffRequest(
                "W001", job_day, job_day, status=TimeOffStatus.REJECTED,
            ),
        ],
        preferences=[
            PreferenceRecord(
                "W006", PreferenceScope.SITE, "S1", is_mandatory=True,
                reason="Removed from site after incident",
            ),
            PreferenceRecord("W007", PreferenceScope.CLIENT, "CL1", reason="Client feedback"),
            PreferenceRecord(
                "W001", PreferenceScope.COMPANY, "C1",
                preference_type=PreferenceType.PREFERRED,
            ),
        ],
        worker_preferences=[
            WorkerPreference("W008", "W001", reason="Prefers not to pair"),
        ],
        assigned_worker_ids=["W008"],
    )


def non_negative_hours(value: str) -> float:
    """argparse type for an hour count that must not be negative."""
    try:
        hours = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be a number, got {value!r}") from None
    if hours < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value!r}")
    return hours


def format_result_line(worker: Worker, result: ConflictResult) -> str:
    """One-line summary of a worker's evaluation."""
    line = f"{worker.display_name} ({worker.id}): {result.classification.value}"
    if result.reasons:
        line += " - " + "; ".join(r.replace("\n", " ") for r in result.reasons)
    return line


def _evaluate_request(
    request: EvaluationRequest,
    settings: Settings,
    worker_id: Optional[str] = None,
) -> list[tuple[Worker, ConflictResult]]:
    workers = request.workers
    if worker_id is not None:
        worker = request.get_worker(worker_id)
        if worker is None:
            raise InputError("--worker", f"no worker with id {worker_id!r}")
        workers = [worker]

    evaluator = ConflictEvaluator(
        rest_gap_policy=settings.rest_gap_policy(),
        certification_policy=settings.certification_policy(),
    )
    return evaluator.rank_workers(workers, request.job, **request.records())


def _write_reports(
    request: EvaluationRequest,
    ranked: list[tuple[Worker, ConflictResult]],
    output_path: Optional[str],
    as_text: bool,
) -> None:
    if as_text:
        print(TextReportGenerator().generate_to_string(request.job, ranked))
    else:
        for worker, result in ranked:
            print(format_result_line(worker, result))
            for note in result.notes:
                print(f"    note: {note}")

    if output_path:
        print(f"\nGenerating PDF: {output_path}")
        PDFGenerator().generate(request.job, ranked, output_path)
        print("  PDF created successfully!")


def run_evaluate(args, settings: Settings) -> int:
    if args.min_rest_hours is not None:
        settings = dataclasses.replace(settings, min_rest_hours=args.min_rest_hours)
    request = load_request(args.input)
    ranked = _evaluate_request(request, settings, args.worker)
    _write_reports(request, ranked, args.output, args.text)
    return 0


def run_rank(args, settings: Settings) -> int:
    request = load_request(args.input)
    ranked = _evaluate_request(request, settings)
    for position, (worker, result) in enumerate(ranked, 1):
        print(
            f"{position:>3}. {worker.display_name:<20} "
            f"{result.classification.value:<18} (priority {result.sort_priority})"
        )
    return 0


def run_ocr(args, settings: Settings) -> int:
    if args.lang:
        settings = dataclasses.replace(settings, ocr_lang=args.lang)
    result = analyze_document(args.image, settings)
    print(result.text)
    print(f"\nConfidence: {result.confidence:.1f}")
    print(f"Expiration date: {result.expiration_date or 'none'}")
    return 0


def run_parse_date(args) -> int:
    text = sys.stdin.read() if args.text == "-" else args.text
    print(extract_expiration_date(text) or "none")
    return 0


def run_demo(args, settings: Settings) -> int:
    print("Evaluating sample workers against a sample job...\n")
    request = create_sample_request()
    ranked = _evaluate_request(request, settings)
    _write_reports(request, ranked, args.output, as_text=True)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shiftguard",
        description="Worker conflict evaluation and document expiration OCR",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    evaluate_parser = subparsers.add_parser(
        "evaluate",
        help="Evaluate workers against a job from a JSON file",
    )
    evaluate_parser.add_argument("input", help="Input JSON file")
    evaluate_parser.add_argument(
        "--worker", "-w",
        type=str,
        help="Only evaluate the worker with this ID",
    )
    evaluate_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )
    evaluate_parser.add_argument(
        "--text",
        action="store_true",
        help="Print the full text report instead of one line per worker",
    )
    evaluate_parser.add_argument(
        "--min-rest-hours",
        type=non_negative_hours,
        help="Minimum rest between shifts in hours (default: from environment, or 8)",
    )

    rank_parser = subparsers.add_parser("rank", help="Rank workers for a job")
    rank_parser.add_argument("input", help="Input JSON file")

    ocr_parser = subparsers.add_parser(
        "ocr",
        help="Read a document image and extract its expiration date",
    )
    ocr_parser.add_argument("image", help="Image file (JPEG, PNG, ...)")
    ocr_parser.add_argument(
        "--lang", "-l",
        type=str,
        help="Tesseract language (default: from environment, or eng)",
    )

    parse_parser = subparsers.add_parser(
        "parse-date",
        help="Extract an expiration date from text ('-' reads stdin)",
    )
    parse_parser.add_argument("text", help="OCR text, or '-' for stdin")

    demo_parser = subparsers.add_parser("demo", help="Evaluate a built-in sample")
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    load_env()
    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Running %s with %s", args.command, settings)

    try:
        if args.command == "evaluate":
            return run_evaluate(args, settings)
        elif args.command == "rank":
            return run_rank(args, settings)
        elif args.command == "ocr":
            return run_ocr(args, settings)
        elif args.command == "parse-date":
            return run_parse_date(args)
        elif args.command == "demo":
            return run_demo(args, settings)
        else:
            parser.print_help()
            return 1
    except InputError as exc:
        print(f"Input error: {exc}", file=sys.stderr)
        return 1
    except OCRExtractionError as exc:
        print(f"OCR error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
