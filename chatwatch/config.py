"""Configuration module — frozen dataclass loaded from env vars, CLI flags and YAML files."""

import argparse
import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

OVERFLOW_POLICIES = ("drop-oldest", "drop-newest", "block")


@dataclass(frozen=True)
class Config:
    categories_file: str = "categories.yml"
    subjects_file: str = "subjects.yml"
    exclusions_file: str = "exclusions.yml"
    transcript_file: str | None = None
    edits_file: str | None = None    # edit log of the session, loaded and saved
    max_continuations: int = 4
    queue_max_size: int = 0          # 0 = unbounded
    overflow_policy: str = "drop-oldest"
    tick_interval: float = 0.05
    metrics_file: str = "chatwatch_metrics.json"
    server: str = ""
    dimension: int = 0
    accepted_actors: tuple = ()
    log_level: str = "INFO"

    def __post_init__(self):
        if self.overflow_policy not in OVERFLOW_POLICIES:
            raise ValueError(f"unknown overflow policy: {self.overflow_policy}")
        if self.max_continuations < 1:
            raise ValueError("max_continuations must be at least 1")
        if self.queue_max_size < 0:
            raise ValueError("queue_max_size cannot be negative")


def load_yaml(path: str | None) -> dict:
    """Load a YAML document. Returns empty dict if no path or the file is missing."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("YAML file %s not found, using defaults", path)
        return {}


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chat line classifier and edit log")
    parser.add_argument("--transcript", default=None,
                        help="Chat transcript file to tail (default: read stdin)")
    parser.add_argument("--categories", default=None, help="Category table YAML")
    parser.add_argument("--subjects", default=None, help="Subject type registry YAML")
    parser.add_argument("--exclusions", default=None, help="Excluded tags YAML")
    parser.add_argument("--edits", default=None, help="Edit log file to load at startup and save on exit")
    parser.add_argument("--max-continuations", type=int, default=None)
    parser.add_argument("--queue-max-size", type=int, default=None)
    parser.add_argument("--overflow-policy", choices=OVERFLOW_POLICIES, default=None)
    parser.add_argument("--server", default=None, help="Server identity of the session")
    parser.add_argument("--dimension", type=int, default=None)
    parser.add_argument("--accept", nargs="*", default=None,
                        help="Only record edits by these actors")
    parser.add_argument("--log-level", default=None)
    return parser


def load_config(argv=None) -> Config:
    """Build Config from environment variables, then override with CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    env = os.environ
    args = build_cli_parser().parse_args(argv)

    def pick(cli_value, env_name, default, cast=str):
        if cli_value is not None:
            return cli_value
        if env_name in env:
            return cast(env[env_name])
        return default

    return Config(
        categories_file=pick(args.categories, "CHATWATCH_CATEGORIES", Config.categories_file),
        subjects_file=pick(args.subjects, "CHATWATCH_SUBJECTS", Config.subjects_file),
        exclusions_file=pick(args.exclusions, "CHATWATCH_EXCLUSIONS", Config.exclusions_file),
        transcript_file=args.transcript,
        edits_file=pick(args.edits, "CHATWATCH_EDITS", Config.edits_file),
        max_continuations=pick(args.max_continuations, "MAX_CONTINUATIONS",
                               Config.max_continuations, int),
        queue_max_size=pick(args.queue_max_size, "QUEUE_MAX_SIZE", Config.queue_max_size, int),
        overflow_policy=pick(args.overflow_policy, "OVERFLOW_POLICY", Config.overflow_policy),
        tick_interval=float(env.get("TICK_INTERVAL", Config.tick_interval)),
        metrics_file=env.get("METRICS_FILE", Config.metrics_file),
        server=pick(args.server, "CHATWATCH_SERVER", Config.server),
        dimension=pick(args.dimension, "CHATWATCH_DIMENSION", Config.dimension, int),
        accepted_actors=tuple(args.accept or ()),
        log_level=pick(args.log_level, "LOG_LEVEL", Config.log_level).upper(),
    )
