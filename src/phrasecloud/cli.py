"""Command line interface for the phrasecloud pipeline."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Callable, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from .aggregation.threshold import analyze_data, calculate_auto_min_occurrence, explain_threshold
from .nlp.spam import is_spam
from .processor import DENSITY_PROFILES, ProcessorOptions, WordCloudProcessor, build_pipeline
from .submissions import load_submissions
from .utils.text import utcnow_iso

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _validate_input_file(path: Path, description: str) -> None:
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"{description} '{path}' does not exist or is not a file")


def _atomic_write(path: Path, write_fn: Callable[[NamedTemporaryFile], None], *, newline: str | None = "\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile(mode="w", delete=False, dir=str(path.parent), encoding="utf-8", newline=newline) as tmp:
        write_fn(tmp)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def _write_json(path: Path, payload: dict[str, object]) -> None:
    def writer(tmp: NamedTemporaryFile) -> None:
        json.dump(payload, tmp, indent=2, ensure_ascii=False)
        tmp.write("\n")

    _atomic_write(path, writer)


def _options_from_args(args: argparse.Namespace) -> ProcessorOptions:
    manual = getattr(args, "manual_min", None)
    return ProcessorOptions(
        display_density=args.density,
        show_full_phrases=not getattr(args, "canonical_only", False),
        min_occurrence_mode="manual" if manual is not None else "auto",
        manual_min_occurrence=manual if manual is not None else 1,
        enable_spam_filter=not getattr(args, "no_spam_filter", False),
        enable_semantic_grouping=not getattr(args, "no_grouping", False),
        spam_sensitivity=args.spam_sensitivity,
        filler_policy="strip" if getattr(args, "strip_fillers", False) else "keep_all",
        progress=getattr(args, "progress", False),
    )


def _run_process(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    _validate_input_file(input_path, "Submissions file")

    options = _options_from_args(args)
    submissions = load_submissions(input_path)
    logger.info(
        "Running word-cloud processing",
        extra={"input": str(input_path), "entries": len(submissions), "density": options.display_density},
    )

    processor = WordCloudProcessor(build_pipeline(filler_policy=options.filler_policy), options)
    result = processor.process(submissions)

    payload: dict[str, object] = {
        "generated_at": utcnow_iso(),
        "min_occurrence": result.min_occurrence,
        "groups": [group.to_dict() for group in result.groups],
    }
    if args.stats:
        payload["stats"] = result.stats.to_dict()

    if args.output:
        output_path = Path(args.output)
        _write_json(output_path, payload)
        print(
            "[{}] Wrote {} groups (min occurrence = {}) to {}".format(
                payload["generated_at"],
                len(result.groups),
                result.min_occurrence,
                output_path,
            )
        )
        return

    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def _run_threshold(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    _validate_input_file(input_path, "Submissions file")

    submissions = load_submissions(input_path)
    profile = DENSITY_PROFILES[args.density]
    threshold = calculate_auto_min_occurrence(
        submissions,
        preferred_visible_count=profile.preferred_visible,
        spam_sensitivity=args.spam_sensitivity,
    )
    analysis = analyze_data(submissions)

    print(f"Min occurrence: {threshold}")
    print(explain_threshold(submissions, threshold))
    print(
        "entries={} unique={} diversity={:.3f} dominance={:.3f} spam={:.3f} median={:.1f}".format(
            analysis.total_entries,
            analysis.unique_words,
            analysis.diversity,
            analysis.dominance_ratio,
            analysis.spam_ratio,
            analysis.median_frequency,
        )
    )


def _run_detect(args: argparse.Namespace) -> None:
    tokenizer = build_pipeline()
    header = f"{'Lang':<6} | {'Spam':<5} | {'Key phrase':<20} | Text"
    print(header)
    print("-" * len(header))
    for text in args.texts:
        language = tokenizer.detector.detect(text)
        spam = is_spam(text)
        key_phrase = "" if spam else tokenizer.tokenize(text).key_phrase
        print(f"{language:<6} | {str(spam):<5} | {key_phrase:<20} | {text}")


def _add_tuning_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--density",
        choices=sorted(DENSITY_PROFILES),
        default="medium",
        help="Display density; sets the preferred and maximum number of groups",
    )
    parser.add_argument(
        "--spam-sensitivity",
        choices=["low", "medium", "high"],
        default="medium",
        help="How strongly a spam-heavy snapshot raises the auto threshold",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phrasecloud",
        description="Multilingual word-cloud text processing",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser("process", help="Build display groups from a submissions snapshot")
    process_parser.add_argument("input", help="JSON array, {\"entries\": [...]} object or JSON-lines file")
    _add_tuning_arguments(process_parser)
    process_parser.add_argument(
        "--manual-min",
        type=int,
        choices=range(1, 11),
        metavar="N",
        help="Use a fixed minimum occurrence (1-10) instead of the auto threshold",
    )
    process_parser.add_argument("--no-spam-filter", action="store_true", help="Keep entries that look like gibberish")
    process_parser.add_argument("--no-grouping", action="store_true", help="One group per distinct text")
    process_parser.add_argument("--canonical-only", action="store_true", help="Label groups by key phrase only")
    process_parser.add_argument("--strip-fillers", action="store_true", help="Drop filler words from normalized text")
    process_parser.add_argument("--progress", action="store_true", help="Show a tokenization progress bar")
    process_parser.add_argument("--output", help="Write the groups JSON here instead of stdout")
    process_parser.add_argument("--stats", action="store_true", help="Include processing diagnostics")
    process_parser.set_defaults(handler=_run_process)

    threshold_parser = subparsers.add_parser("threshold", help="Explain the auto minimum occurrence")
    threshold_parser.add_argument("input", help="Submissions file")
    _add_tuning_arguments(threshold_parser)
    threshold_parser.set_defaults(handler=_run_threshold)

    detect_parser = subparsers.add_parser("detect", help="Detect language, spam and key phrase for texts")
    detect_parser.add_argument("texts", nargs="+", metavar="TEXT")
    detect_parser.set_defaults(handler=_run_detect)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - delegated to argparse
        return exc.code

    _configure_logging(args.verbose)
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)

    try:
        args.handler(args)
    except (FileNotFoundError, OSError, ValueError) as error:
        logger.error(f"Command failed. Reason: {str(error)}", exc_info=False, extra={"error": str(error)})
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
