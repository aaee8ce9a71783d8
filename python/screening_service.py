#!/usr/bin/env python3
"""
File-backed Screening Service

Resolves a screening subject and the watchlist, runs the name screener
and persists both result views for a (user, request) pair.

Layout (relative to the configured data directory):
    <user_id>/<request_id>/input/input.json
    <user_id>/<request_id>/output/detailed.json
    <user_id>/<request_id>/output/consolidated.json

Usage:
    python screening_service.py USER_ID REQUEST_ID [--config config.yaml]
"""

import sys
import json
import re
import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

from config_manager import ConfigManager, get_config
from log_utils import get_request_logger, sanitize_for_logging, setup_logging
from screener import NameScreener, ScreeningSubject, get_names_to_screen

logger = logging.getLogger(__name__)

PATH_SEGMENT_PATTERN = re.compile(r'^[A-Za-z0-9._-]{1,128}$')


class InvalidRequestError(ValueError):
    """Raised when a request identifier cannot be used

    Attributes:
        field: The field that failed validation
        code: Error code for programmatic handling
    """
    def __init__(self, message: str, field: str = "unknown", code: str = "INVALID_REQUEST"):
        self.field = field
        self.code = code
        super().__init__(message)


@dataclass
class ProcessOutcome:
    """Result of processing one request"""
    output_dir: Optional[Path] = None
    consolidated: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate_path_segment(value: str, field: str) -> str:
    """Reject ids that could escape the data directory"""
    if not isinstance(value, str) or not PATH_SEGMENT_PATTERN.match(value) or value in ('.', '..'):
        raise InvalidRequestError(
            f"Invalid {field}: only letters, digits, '.', '-' and '_' are allowed",
            field=field,
            code="INVALID_PATH_SEGMENT"
        )
    return value


def has_body_input(body: Optional[Dict[str, Any]]) -> bool:
    """Body counts as input when it carries a full name or a non-empty alias list"""
    if not body:
        return False
    aliases = body.get('aliases')
    return body.get('fullName') is not None or (isinstance(aliases, list) and len(aliases) > 0)


class ScreeningService:
    """Processes screening requests against the configured watchlist"""

    def __init__(self, config: Optional[ConfigManager] = None, base_dir: Optional[Path] = None):
        """Initialize service

        Args:
            config: Configuration manager instance
            base_dir: Directory relative data paths resolve against (defaults to cwd)
        """
        self.config = config or get_config()
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.screener = NameScreener(self.config.matching)

    @property
    def data_root(self) -> Path:
        return self.base_dir / self.config.data.data_directory

    @property
    def watchlist_path(self) -> Path:
        return self.base_dir / self.config.data.watchlist_file

    def input_path(self, user_id: str, request_id: str) -> Path:
        return self.data_root / user_id / request_id / 'input' / 'input.json'

    def output_dir(self, user_id: str, request_id: str) -> Path:
        return self.data_root / user_id / request_id / 'output'

    def process_request(self,
                        user_id: str,
                        request_id: str,
                        log_prefix: Any = None,
                        body_input: Optional[Dict[str, Any]] = None) -> ProcessOutcome:
        """Run screening for one request and write its output files

        Input comes from the request body when it carries names, otherwise
        from the request's input.json. Existing output is not recomputed
        for file input.

        Raises:
            InvalidRequestError: If user_id or request_id is not a safe path segment
        """
        validate_path_segment(user_id, 'user_id')
        validate_path_segment(request_id, 'request_id')

        log = get_request_logger(__name__, log_prefix or request_id)

        input_path = self.input_path(user_id, request_id)
        output_dir = self.output_dir(user_id, request_id)
        detailed_path = output_dir / 'detailed.json'
        consolidated_path = output_dir / 'consolidated.json'
        watchlist_path = self.watchlist_path

        try:
            log.info("Starting screening")

            use_body_input = has_body_input(body_input)
            detailed_exists = detailed_path.exists()

            if not watchlist_path.exists():
                log.warning("Watchlist file missing: path=%s", watchlist_path)
                return ProcessOutcome(error="Watchlist file missing")
            if not use_body_input and not input_path.exists():
                log.warning("Input file missing and no body input: path=%s", input_path)
                return ProcessOutcome(error="Input file missing")
            if not use_body_input and detailed_exists:
                log.info("Output already exists, skipping reprocessing: output_dir=%s", output_dir)
                return ProcessOutcome(output_dir=output_dir)

            if use_body_input:
                log.info("Using input from request body")
                subject = ScreeningSubject.from_dict(
                    {
                        'requestId': body_input.get('requestId') or request_id,
                        'fullName': body_input.get('fullName') or '',
                        'aliases': body_input.get('aliases'),
                        'country': body_input.get('country'),
                    }
                )
            else:
                log.info("Reading input and watchlist")
                try:
                    input_text = input_path.read_text(encoding='utf-8')
                except OSError as e:
                    log.error("Failed to read input file: error=%s", e)
                    return ProcessOutcome(error="Failed to read input file")
                try:
                    input_data = json.loads(input_text)
                except json.JSONDecodeError as e:
                    log.error("Invalid JSON in input file: error=%s", e)
                    return ProcessOutcome(error="Invalid JSON in input file")
                if not isinstance(input_data, dict):
                    log.error("Input must be a JSON object")
                    return ProcessOutcome(error="Input must be a JSON object")
                subject = ScreeningSubject.from_dict(input_data)

            try:
                watchlist_text = watchlist_path.read_text(encoding='utf-8')
            except OSError as e:
                log.error("Failed to read watchlist file: error=%s", e)
                return ProcessOutcome(error="Failed to read watchlist file")
            try:
                watchlist = json.loads(watchlist_text)
            except json.JSONDecodeError as e:
                log.error("Invalid JSON in watchlist file: error=%s", e)
                return ProcessOutcome(error="Invalid JSON in watchlist file")

            if not isinstance(watchlist, list):
                log.error("Watchlist must be a JSON array")
                return ProcessOutcome(error="Watchlist must be a JSON array")

            if detailed_exists and use_body_input:
                log.info("Reprocessing with body input (overwriting existing output)")

            names = get_names_to_screen(subject)
            log.info("Names to screen: count=%d names=%s",
                     len(names), [sanitize_for_logging(n) for n in names])

            result = self.screener.screen_subject(subject, watchlist, request_id=request_id)

            best = result.detailed['bestMatch']
            log.info("Best match: watchlist_id=%s score=%s match_type=%s",
                     best['id'], best['score'], best['matchType'])

            output_dir.mkdir(parents=True, exist_ok=True)
            detailed_path.write_text(
                json.dumps(result.detailed, indent=2, ensure_ascii=False), encoding='utf-8'
            )
            consolidated_path.write_text(
                json.dumps(result.consolidated, indent=2, ensure_ascii=False), encoding='utf-8'
            )

            log.info("Screening complete: output_dir=%s", output_dir)
            return ProcessOutcome(output_dir=output_dir, consolidated=result.consolidated)

        except Exception as e:
            log.exception("Unexpected error: error=%s", sanitize_for_logging(str(e)))
            return ProcessOutcome(error=str(e) or "Processing failed")


def main():
    parser = argparse.ArgumentParser(description="Screen one request against the watchlist")
    parser.add_argument("user_id", help="User directory under the data directory")
    parser.add_argument("request_id", help="Request directory under the user directory")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args()

    config = ConfigManager.get_instance(args.config)
    setup_logging(config)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    service = ScreeningService(config=config)
    try:
        outcome = service.process_request(args.user_id, args.request_id)
    except InvalidRequestError as e:
        logger.error("Invalid request: %s", e)
        return 2

    if not outcome.ok:
        logger.error("Screening failed: %s", outcome.error)
        return 1

    if outcome.consolidated is not None:
        print(json.dumps(outcome.consolidated, indent=2, ensure_ascii=False))
    else:
        print(f"Output already exists: {outcome.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
