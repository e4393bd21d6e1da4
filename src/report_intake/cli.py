"""Command line entry point for the report intake core.

Usage:
    report-intake submit --company 1 --report-type 2 --primary report.xlsx --field year=1402
    report-intake submit --company 1 --report-type 1 --year 1401 --year 1402 \\
        --file 1401:primary:fs-1401.pdf --file 1402:primary:fs-1402.pdf --field period=سالانه
    report-intake list --company 1 --from 1402/01/01 --to 1402/12/29 --sort fileName --asc
    report-intake download 64b7f0c2 --out ./downloads

Exit codes for ``submit``: 0 when every file was uploaded, 1 on partial
failure, 2 when nothing was uploaded or the wizard refused a step.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from report_intake.core import (
    configure_logging,
    get_logger,
    IntakeSettings,
    ReportIntakeError,
    ValidationError,
)
from report_intake.models.catalog import ReferenceCatalog
from report_intake.registry.query import FileRegistryQuery, SortDirection, SortKey
from report_intake.registry.store import FileRegistry, format_file_size, status_label
from report_intake.upload.client import DEFAULT_DOWNLOAD_NAME, FileApiClient
from report_intake.upload.models import AnalysisStatus, BundleSlot, FileAttachment, UploadOutcome
from report_intake.upload.orchestrator import UploadOrchestrator
from report_intake.wizard.controller import GuardResult, WizardController
from report_intake.wizard.years import MAX_YEARS

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FAILED = 2


def parse_field(text: str) -> tuple[str, str]:
    """Parse ``id=value``."""
    field_id, sep, value = text.partition("=")
    if not sep or not field_id.strip():
        raise ValidationError(
            f"Invalid field {text!r}, expected id=value",
            failed_checks=["format"],
        )
    return field_id.strip(), value.strip()


def parse_file_spec(text: str) -> tuple[str, BundleSlot, str]:
    """Parse ``YEAR:SLOT:PATH``."""
    parts = text.split(":", 2)
    if len(parts) != 3 or not parts[0].strip() or not parts[2]:
        raise ValidationError(
            f"Invalid file {text!r}, expected YEAR:SLOT:PATH",
            failed_checks=["format"],
        )
    year, slot, path = parts
    try:
        bundle_slot = BundleSlot(slot.strip().lower())
    except ValueError as e:
        raise ValidationError(
            f"Unknown slot {slot!r}, expected one of: {', '.join(s.value for s in BundleSlot)}",
            failed_checks=["slot"],
        ) from e
    return year.strip(), bundle_slot, path


def _print_refusal(step: str, guard: GuardResult, controller: WizardController) -> None:
    print(f"✗ Cannot leave step '{step}': {', '.join(guard.unmet)}", file=sys.stderr)
    for field_id, message in controller.field_errors.items():
        print(f"  - {field_id}: {message}", file=sys.stderr)


def _print_outcome(outcome: UploadOutcome) -> None:
    tags = " ".join(tag for tag in (outcome.year, outcome.slot_label) if tag)
    prefix = f"[{tags}] " if tags else ""
    if outcome.succeeded:
        synced = "" if outcome.status_synced else " (status not updated)"
        print(f"✓ {prefix}{outcome.file_name} -> {outcome.file_id}{synced}")
    else:
        print(f"✗ {prefix}{outcome.file_name}: {outcome.error}")


def _attach(
    controller: WizardController,
    slot: BundleSlot,
    path: str,
    year: Optional[str] = None,
) -> bool:
    validation = controller.attach_file(slot, FileAttachment.from_path(path), year=year)
    if not validation.valid:
        print(f"✗ {path}: {validation.error_message}", file=sys.stderr)
    return validation.valid


async def run_submit(args: argparse.Namespace, settings: IntakeSettings, catalog: ReferenceCatalog) -> int:
    client = FileApiClient.from_settings(settings)
    controller = WizardController(catalog=catalog, orchestrator=UploadOrchestrator(client))

    controller.select_company(args.company)
    controller.select_report_type(args.report_type)
    guard = controller.advance()
    if not guard:
        _print_refusal("select", guard, controller)
        return EXIT_FAILED

    draft = controller.draft
    if draft.is_multi_year:
        file_specs = [parse_file_spec(spec) for spec in args.file or []]
        years = list(args.year or [])
        for year, _, _ in file_specs:
            if year not in years:
                years.append(year)
        if len(years) > MAX_YEARS:
            print(f"✗ At most {MAX_YEARS} years can be submitted at once", file=sys.stderr)
            return EXIT_FAILED
        controller.set_year_count(len(years))
        for index, label in enumerate(years):
            controller.rename_year(index, label)
        for year, slot, path in file_specs:
            if not _attach(controller, slot, path, year=year):
                return EXIT_FAILED
    else:
        for slot, path in (
            (BundleSlot.PRIMARY, args.primary),
            (BundleSlot.SECONDARY, args.secondary),
            (BundleSlot.TERTIARY, args.tertiary),
        ):
            if path and not _attach(controller, slot, path):
                return EXIT_FAILED

    guard = controller.advance()
    if not guard:
        _print_refusal("attach", guard, controller)
        return EXIT_FAILED

    for text in args.field or []:
        field_id, value = parse_field(text)
        controller.set_field(field_id, value)

    guard = controller.advance()
    if not guard:
        _print_refusal("describe", guard, controller)
        return EXIT_FAILED
    for field_id, message in controller.field_errors.items():
        print(f"! {field_id}: {message}")

    guard = await controller.submit(on_outcome=_print_outcome)
    if not guard:
        _print_refusal("review", guard, controller)
        return EXIT_FAILED

    result = controller.result
    print(result.summary())
    if result.fully_succeeded:
        return EXIT_OK
    if result.partially_failed:
        return EXIT_PARTIAL
    return EXIT_FAILED


async def run_list(args: argparse.Namespace, settings: IntakeSettings, catalog: ReferenceCatalog) -> int:
    client = FileApiClient.from_settings(settings)
    query_engine = FileRegistryQuery(catalog=catalog, tz=settings.timezone)
    registry = FileRegistry(query_engine=query_engine)
    await registry.load(client)

    direction = SortDirection.ASC if args.asc else SortDirection.DESC
    registry.update_query(
        name_contains=args.name or "",
        company_id=args.company,
        report_type_id=args.report_type,
        status=args.status,
        date_from=args.date_from,
        date_to=args.date_to,
        sort_key=args.sort,
        sort_direction=direction,
    )

    records = registry.view()
    for record in records:
        report_type = catalog.find_report_type(record.report_type_id)
        print(
            f"{query_engine.persian_date(record)}  "
            f"{record.file_name:<40} "
            f"{catalog.company_name(record.company_id):<30} "
            f"{report_type.name if report_type else '':<30} "
            f"{status_label(record.analysis_status):<14} "
            f"{format_file_size(record.file_size)}"
        )
    print(f"\nTotal: {len(records)} of {len(registry)}")
    return EXIT_OK


async def run_download(args: argparse.Namespace, settings: IntakeSettings, catalog: ReferenceCatalog) -> int:
    client = FileApiClient.from_settings(settings)
    filename, content = await client.download_file(args.file_id)

    out_dir = Path(args.out or ".")
    out_dir.mkdir(parents=True, exist_ok=True)
    # Base name only, never a path from the server
    target = out_dir / (Path(filename).name or DEFAULT_DOWNLOAD_NAME)
    target.write_bytes(content)

    print(f"✓ {target} ({format_file_size(len(content))})")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="report-intake",
        description="Submit financial reports and browse uploaded files",
    )
    parser.add_argument("--api-url", help="Backend API base URL (default: REPORT_INTAKE_API_URL)")
    parser.add_argument("--catalog", help="Reference catalog JSON file (default: built-in)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    submit = subparsers.add_parser("submit", help="Submit a report")
    submit.add_argument("--company", required=True, help="Company id")
    submit.add_argument("--report-type", required=True, help="Report type id")
    submit.add_argument("--year", action="append", help="Year label (multi-year report types, repeatable)")
    submit.add_argument("--primary", help="Primary file (financial statement)")
    submit.add_argument("--secondary", help="Secondary file (expenses)")
    submit.add_argument("--tertiary", help="Tertiary file (budget)")
    submit.add_argument(
        "--file",
        action="append",
        metavar="YEAR:SLOT:PATH",
        help="File for one year and slot (multi-year report types, repeatable)",
    )
    submit.add_argument("--field", action="append", metavar="ID=VALUE", help="Metadata value (repeatable)")

    listing = subparsers.add_parser("list", help="List uploaded files")
    listing.add_argument("--name", help="File name contains (case-insensitive)")
    listing.add_argument("--company", help="Company id")
    listing.add_argument("--report-type", help="Report type id")
    listing.add_argument("--status", choices=[s.value for s in AnalysisStatus], help="Analysis status")
    listing.add_argument("--from", dest="date_from", metavar="YYYY/MM/DD", help="Persian date lower bound")
    listing.add_argument("--to", dest="date_to", metavar="YYYY/MM/DD", help="Persian date upper bound")
    listing.add_argument(
        "--sort",
        choices=[k.value for k in SortKey],
        default=SortKey.UPLOAD_DATE.value,
        help="Sort column (default: uploadDate)",
    )
    direction = listing.add_mutually_exclusive_group()
    direction.add_argument("--desc", action="store_true", help="Descending order (default)")
    direction.add_argument("--asc", action="store_true", help="Ascending order")

    download = subparsers.add_parser("download", help="Download an uploaded file")
    download.add_argument("file_id", metavar="ID", help="File id")
    download.add_argument("--out", metavar="DIR", help="Output directory (default: current directory)")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the command line."""
    args = build_parser().parse_args(argv)

    settings = IntakeSettings.from_env()
    if args.api_url:
        settings.api_url = args.api_url
    if args.catalog:
        settings.catalog_path = args.catalog
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    try:
        if settings.catalog_path:
            catalog = ReferenceCatalog.from_json(settings.catalog_path)
        else:
            catalog = ReferenceCatalog()

        commands = {
            "submit": run_submit,
            "list": run_list,
            "download": run_download,
        }
        return asyncio.run(commands[args.command](args, settings, catalog))
    except ReportIntakeError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_FAILED
    except OSError as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
