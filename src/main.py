"""
HTTP entry point for the missing-translation report.

Scans a content space for localized values without a French translation,
writes them to a CSV file and emails the file to the distribution list.
"""
import argparse
import functools
import logging
import sys
from typing import Any, Dict, Optional

import functions_framework
import jsonschema
from google.cloud import translate_v3

from src.app_config import AppConfig, load_app_config
from src.content_scanner import ContentfulClient, scan_space
from src.errors import ValidationError
from src.missing_translations import find_missing_translations
from src.notifier import send_report_email
from src.report_writer import write_report
from src.secret_accessor import SecretAccessor, SecretType
from src.translation_service import create_translation_client

# Named explicitly so `python -m src.main` still logs through the package logger.
logger = logging.getLogger("src.main")

REQUEST_SCHEMA = {
    "type": "object",
    "properties": {
        "spaceId": {"type": "string", "minLength": 1},
        "scanAllEntries": {"type": "boolean"},
    },
    "required": ["spaceId", "scanAllEntries"],
}

SUCCESS_MESSAGE = "Missing translations sent!"
INVALID_REQUEST_MESSAGE = "Invalid Request!"


@functools.lru_cache(maxsize=None)
def get_app_config() -> AppConfig:
    """Configuration is resolved once per process."""
    return load_app_config()


@functools.lru_cache(maxsize=None)
def get_translation_client() -> translate_v3.TranslationServiceClient:
    """One translation client per process, shared by every invocation."""
    return create_translation_client()


def parse_request_body(body: Optional[Dict[str, Any]]) -> str:
    """
    Validate the trigger payload and return the space id to scan.

    Raises:
        ValidationError: If the body is malformed or `scanAllEntries` is not true.
    """
    try:
        jsonschema.validate(instance=body, schema=REQUEST_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValidationError(f"Invalid request body: {e.message}") from e
    if not body["scanAllEntries"]:
        raise ValidationError("scanAllEntries must be true")
    return body["spaceId"]


def run_missing_translation_report(
        config: AppConfig,
        space_id: str,
        translate_client: translate_v3.TranslationServiceClient,
        secrets: SecretAccessor,
        send_email: bool = True
) -> int:
    """
    Scan the space, write the CSV report and email it.

    Returns:
        int: The number of report rows.
    """
    logger.info(f"Scanning space '{space_id}' ({config.contentful_environment}) for missing "
                f"{config.target_locale} translations.")
    contentful_client = ContentfulClient(
        secrets.get(SecretType.CONTENTFUL_ACCESS_TOKEN),
        api_url=config.contentful_api_url,
        timeout=config.http_timeout,
    )
    leaf_pairs = scan_space(contentful_client, space_id, config.contentful_environment, config)
    rows = find_missing_translations(leaf_pairs, translate_client, config, space_id)

    write_report(rows, config.report_file_path, config.include_suggestions, config.include_links)

    if send_email:
        send_report_email(
            config,
            config.report_file_path,
            secrets.get(SecretType.EMAIL_TOKEN_CLIENT_ID),
            secrets.get(SecretType.EMAIL_TOKEN_CLIENT_SECRET),
        )
    else:
        logger.info(f"Email disabled; report left at '{config.report_file_path}'.")
    return len(rows)


@functions_framework.http
def app(request):
    """
    HTTP Cloud Function.

    Expects a JSON body `{"spaceId": str, "scanAllEntries": true}`. Responds
    200 once the report is sent, 400 for an invalid body, 500 with the error
    message on any other failure.
    """
    body = request.get_json(silent=True)
    try:
        space_id = parse_request_body(body)
    except ValidationError as e:
        logger.warning(f"Rejected request: {e}")
        return INVALID_REQUEST_MESSAGE, 400

    try:
        config = get_app_config()
        secrets = SecretAccessor(config)
        row_count = run_missing_translation_report(config, space_id, get_translation_client(), secrets)
    except Exception as e:
        logger.error(f"Missing translation report failed: {e}", exc_info=True)
        return str(e), 500

    logger.info(f"Report with {row_count} rows sent for space '{space_id}'.")
    return SUCCESS_MESSAGE, 200


def main(argv=None) -> int:
    """Run the report from the command line, e.g. in development mode."""
    parser = argparse.ArgumentParser(description="Report content missing a French translation.")
    parser.add_argument("--space-id", required=True, help="Content space to scan.")
    parser.add_argument("--no-email", action="store_true", help="Write the CSV report without emailing it.")
    args = parser.parse_args(argv)

    config = get_app_config()
    row_count = run_missing_translation_report(
        config,
        args.space_id,
        get_translation_client(),
        SecretAccessor(config),
        send_email=not args.no_email,
    )
    print(f"{row_count} missing translations written to {config.report_file_path}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as main_exc:
        logger.error(f"An unexpected error occurred during execution: {main_exc}")
        sys.exit(1)
