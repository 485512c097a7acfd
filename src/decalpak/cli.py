"""Command line interface for decalpak."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .api import build_entry, BuildOptions
from .config import ConfigDefaults, load_config
from .errors import ValidationError
from .logging import configure_logging
from .reporting import (
    get_reporter,
    set_reporter,
    PlainReporter,
    SilentReporter,
    RichReporter,
    set_verbosity,
)


def build_parser(defaults: ConfigDefaults | None = None) -> argparse.ArgumentParser:
    d = defaults or ConfigDefaults()
    p = argparse.ArgumentParser(
        prog="decalpak",
        description="Build a decal pak entry from a source image",
    )
    p.add_argument(
        "-i",
        "--index",
        default=d.identifier,
        help=f"Decal index, 0-999 (default {d.identifier})",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=d.verbose,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "silent"],
        default=d.reporter,
        help="Select reporter backend: plain (default), rich, silent",
    )
    p.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=d.jobs,
        help="Parallel mip resize/compress workers",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="YAML or JSON file with option defaults",
    )
    p.add_argument(
        "--template-dir",
        dest="template_dir",
        type=Path,
        default=Path(d.template_dir) if d.template_dir else None,
        help="Alternate template set directory",
    )
    p.add_argument(
        "--emit-manifest",
        dest="emit_manifest",
        type=Path,
        help="Optional path to write manifest JSON (opt-in)",
    )
    p.add_argument(
        "--verify",
        action="store_true",
        help="Re-read the written entry and check its digests",
    )
    p.add_argument("input", type=Path)
    p.add_argument("output", type=Path, nargs="?")
    return p


def _select_reporter(requested: str) -> None:
    if requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        # rich falls back to plain without a TTY
        set_reporter(PlainReporter())


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    # --config supplies defaults, so it is read before the full parse.
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path)
    known, _ = pre.parse_known_args(argv)
    defaults = load_config(known.config) if known.config else ConfigDefaults()

    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    _select_reporter(args.reporter)
    set_verbosity(args.verbose)
    configure_logging(args.verbose)

    opts = BuildOptions(
        input_image=args.input,
        output_path=args.output,
        identifier=args.index,
        jobs=max(1, args.jobs),
        manifest_path=args.emit_manifest,
        verify=args.verify,
        template_dir=args.template_dir,
        output_prefix=defaults.output_prefix,
        output_suffix=defaults.output_suffix,
    )
    try:
        build_entry(opts)
    except ValidationError as exc:
        get_reporter().error(exc.message)
        return 1
    finally:
        get_reporter().flush()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
