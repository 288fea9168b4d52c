#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Almlah - Place Submission
Main entry point for the command line

    python main.py submit draft.json --image cover.jpg --image inside.png

The draft is a JSON object with the form fields (name_ar, name_en,
parent_category_id, category_ids, governate_id, wilayah_id, ...).
Content sections may list their own image files under "images".
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from app.config import Config, WizardSteps
from models.image import LocalImageFile
from services.api_client import ApiConfig, PlacesApiClient
from services.results import Ok
from services.storage_client import ObjectStorageClient
from utils.logger import setup_logger
from wizards.place_submission import PlaceSubmissionWizard


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="almlah", description=Config.APP_TITLE)
    subparsers = parser.add_subparsers(dest="command", required=True)

    submit = subparsers.add_parser("submit", help="Submit a place draft")
    submit.add_argument("draft", type=Path, help="JSON file with the form fields")
    submit.add_argument("--image", dest="images", action="append", default=[], type=Path,
                        help="Place image (repeatable; the first one is the cover)")
    submit.add_argument("--token", default=None, help="Bearer token (defaults to API_TOKEN)")
    submit.add_argument("--api-url", default=None, help="Metadata API base URL")
    submit.add_argument("--no-log-file", action="store_true", help="Log to the console only")
    return parser


def _print_errors(title: str, errors: dict):
    print(f"[ERROR] {title}")
    for field, message in errors.items():
        print(f"  - {field}: {message}")


def load_draft(wizard: PlaceSubmissionWizard, draft: dict, base_dir: Path) -> list:
    """Fill the wizard from a draft dict; returns staging rejections."""
    draft = dict(draft)
    rejected = []

    sections = draft.pop("content_sections", None) or []
    place_images = draft.pop("images", None) or []
    wizard.update(draft)

    for section_data in sections:
        section_data = dict(section_data)
        image_paths = section_data.pop("images", None) or []
        section_data.pop("sort_order", None)
        section_data.pop("key", None)
        section = wizard.add_content_section(**section_data)
        files = [LocalImageFile.from_path(base_dir / p) for p in image_paths]
        rejected.extend(wizard.add_section_images(section.key, files).rejected)

    files = [LocalImageFile.from_path(base_dir / p) for p in place_images]
    rejected.extend(wizard.add_images(files).rejected)
    return rejected


async def run_submit(args, logger) -> int:
    draft = json.loads(args.draft.read_text(encoding="utf-8"))

    api_client = PlacesApiClient(ApiConfig(base_url=args.api_url, token=args.token))
    storage = ObjectStorageClient()
    wizard = PlaceSubmissionWizard(api_client, storage)
    wizard.on_step_changed(
        lambda old, new: logger.info(f"Step {old} -> {new} ({WizardSteps.get_title(new)})")
    )
    wizard.on_upload_progress(
        lambda p: logger.info(f"[{p.collection}] {p.resolved}/{p.total} ({p.percentage}%)")
    )

    rejected = load_draft(wizard, draft, args.draft.parent)
    rejected.extend(wizard.add_images(LocalImageFile.from_path(p) for p in args.images).rejected)
    for rejection in rejected:
        print(f"[WARN] {rejection.file_name}: {rejection.message}")

    while wizard.current_step < WizardSteps.REVIEW:
        step = wizard.current_step
        errors = wizard.advance()
        if errors:
            _print_errors(f"Step {step} ({WizardSteps.get_title(step)})", errors)
            return 1

    result = await wizard.submit()
    if not isinstance(result, Ok):
        _print_errors(result.message, getattr(result, "field_errors", {}) or {})
        return 1

    outcome = result.value
    print(f"[OK] Place created: {outcome.place.id} ({outcome.place.name_en})")
    for warning in outcome.warnings:
        print(f"[WARN] {warning.file_name} ({warning.collection}, {warning.phase}): {warning.message}")
    return 0


def main(argv=None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    # Initialize logging
    logger = setup_logger(log_to_file=not args.no_log_file)

    try:
        if args.command == "submit":
            return asyncio.run(run_submit(args, logger))
        return 1

    except (OSError, ValueError) as e:
        error_msg = f"Could not read draft: {e}"
        print(f"\n[ERROR] {error_msg}")
        logger.exception(error_msg)
        return 1


if __name__ == "__main__":
    sys.exit(main())
