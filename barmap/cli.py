"""CLI entrypoint for the Stockholm bar map enrichment pipeline."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Mapping

from barmap.common.config_loader import PipelineConfig, build_http_client, load_config
from barmap.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS
from barmap.common.errors import PipelineError
from barmap.common.fs import write_json
from barmap.common.ids import generate_run_id
from barmap.common.logging import build_logger, log_event
from barmap.pipeline.driver import (
    RunContext,
    RunCounters,
    load_existing_store,
    run_geocode_pass,
    run_mood_pass,
    run_places_pass,
    run_tags_pass,
)
from barmap.pipeline.identity import reconcile_with_store
from barmap.pipeline.matcher import match_bars
from barmap.pipeline.reports import write_run_summary
from barmap.pipeline.writer import write_review_csv, write_store
from barmap.sources.google_places import PlacesClient
from barmap.sources.openai_chat import ChatClient
from barmap.sources.photon import PhotonGeocoder
from barmap.sources.reader import read_records, read_rows


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("path", nargs="?", default=None, help="input file; defaults per command from config")
    parser.add_argument("--message", "-m", default=None, help="free-text request for the match command")
    parser.add_argument("--output", default=None)
    parser.add_argument("--config", default="config/pipeline.yml")
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--secrets-file", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def _input_path(args: argparse.Namespace, config: PipelineConfig, default_key: str) -> Path:
    return Path(args.path) if args.path else config.path(default_key)


def _output_path(args: argparse.Namespace, config: PipelineConfig, default_key: str) -> Path:
    return Path(args.output) if args.output else config.path(default_key)


def execute_command(args: argparse.Namespace, config: PipelineConfig, ctx: RunContext) -> tuple[RunCounters, list[Path]]:
    command = args.command
    threshold = float(config.section("tags")["high_rating_threshold"])

    if command == "geocode":
        input_path = _input_path(args, config, "csv_input")
        store_path = _output_path(args, config, "store")
        records = read_records(input_path)
        reconcile_with_store(records, load_existing_store(store_path))
        with build_http_client(config) as http_client:
            geocoder = PhotonGeocoder(http_client, config.section("geocoder"), config.section("region"))
            counters = run_geocode_pass(records, geocoder, config.section("region"), ctx)
        return counters, [write_store(store_path, records)]

    if command == "places":
        api_key = config.credentials.require("google_places_api_key")
        input_path = _input_path(args, config, "csv_input")
        store_path = _output_path(args, config, "store")
        records = read_records(input_path)
        reconcile_with_store(records, load_existing_store(store_path))
        with build_http_client(config) as http_client:
            places = PlacesClient(http_client, config.section("places"), api_key)
            counters = run_places_pass(
                records,
                places,
                config.section("region"),
                ctx,
                high_rating_threshold=threshold,
            )
        return counters, [
            write_store(store_path, records),
            write_review_csv(config.path("places_review_csv"), records),
        ]

    if command == "moods":
        places_key = config.credentials.require("google_places_api_key")
        openai_key = config.credentials.require("openai_api_key")
        input_path = _input_path(args, config, "store")
        output_path = Path(args.output) if args.output else input_path
        records = read_records(input_path)
        classifier_cfg = config.section("classifier")
        with build_http_client(config) as http_client:
            places = PlacesClient(http_client, config.section("places"), places_key)
            chat = ChatClient(http_client, classifier_cfg["endpoint"], openai_key)
            counters = run_mood_pass(records, places, chat, classifier_cfg, ctx)
        return counters, [write_store(output_path, records)]

    if command == "tags":
        input_path = _input_path(args, config, "store")
        output_path = Path(args.output) if args.output else input_path
        records = read_records(input_path)
        counters = run_tags_pass(records, ctx, high_rating_threshold=threshold)
        return counters, [write_store(output_path, records)]

    if command == "export-csv":
        records = read_records(_input_path(args, config, "store"))
        counters = RunCounters(processed=len(records))
        return counters, [write_review_csv(_output_path(args, config, "review_csv"), records)]

    if command == "extract-embedded":
        rows = read_rows(_input_path(args, config, "embedded_html"))
        output_path = _output_path(args, config, "embedded_output")
        write_json(output_path, rows, sort_keys=False)
        return RunCounters(processed=len(rows)), [output_path]

    if command == "match":
        openai_key = config.credentials.require("openai_api_key")
        records = read_records(_input_path(args, config, "store"))
        with build_http_client(config) as http_client:
            chat = ChatClient(http_client, config.section("classifier")["endpoint"], openai_key)
            result = match_bars(args.message or "", records, chat, config.section("matcher"))
        print(json.dumps(result.to_dict(), ensure_ascii=False))
        return RunCounters(processed=len(records)), []

    raise ValueError(f"Unknown command: {command}")


def run_command(args: argparse.Namespace, env: Mapping[str, str] | None = None) -> int:
    run_id = args.run_id or generate_run_id()
    logger = build_logger(run_id, level=args.log_level)

    try:
        config = load_config(
            Path(args.config),
            overlay_path=Path(args.overlay_config) if args.overlay_config else None,
            env=os.environ if env is None else env,
            secrets_path=Path(args.secrets_file) if args.secrets_file else None,
        )
        run_meta_dir = Path(args.log_dir) if args.log_dir else config.path("run_meta_dir")
        logger = build_logger(run_id, log_dir=run_meta_dir, level=args.log_level)
        log_event(logger, "run start", run_id=run_id, command=args.command, event="RUN_START", status="ok")

        ctx = RunContext(
            run_id=run_id,
            command=args.command,
            logger=logger,
            progress_every=int(config.section("progress")["every"]),
        )
        counters, outputs = execute_command(args, config, ctx)
    except PipelineError as exc:
        logger.error(
            str(exc),
            extra={
                "run_id": run_id,
                "command": args.command,
                "event": "RUN_FAIL",
                "status": "error",
                "error_code": exc.error_code,
            },
        )
        return EXIT_HARD_FAIL
    except Exception:
        logger.exception(
            "unexpected failure",
            extra={
                "run_id": run_id,
                "command": args.command,
                "event": "RUN_FAIL",
                "status": "error",
                "error_code": "UNEXPECTED_ERROR",
            },
        )
        return EXIT_HARD_FAIL

    write_run_summary(
        run_meta_dir,
        run_id=run_id,
        command=args.command,
        counters=counters.as_dict(),
        outputs=outputs,
    )
    log_event(
        logger,
        "run end: " + ", ".join(f"{key}={value}" for key, value in counters.as_dict().items()),
        run_id=run_id,
        command=args.command,
        event="RUN_END",
        status="ok",
        processed=counters.processed,
        updated=counters.updated,
        failed=counters.failed,
    )
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
