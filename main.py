#!/usr/bin/env python3
"""chatwatch — Entry Point.

Classifies chat lines from a transcript file (or stdin), echoes them to the
console and records the block edits reported by logging plugins.
"""

import os
import sys
import time
import signal
import logging
import threading

from watchdog.observers import Observer

from chatwatch.categories import load_category_table
from chatwatch.config import load_config
from chatwatch.coreprotect import CoreProtectExtractor
from chatwatch.edit_store import load_edits, save_edits
from chatwatch.edits import EditExtractor
from chatwatch.errors import QueueOverflowError
from chatwatch.exclusion import ConsoleDisplay, load_excluded_tags, save_excluded_tags
from chatwatch.harvester import TranscriptTailer
from chatwatch.logblock import LogBlockPaging, ToolBlockExtractor
from chatwatch.metrics import Metrics
from chatwatch.pipeline import IngestQueue, PipelineContext, Processor
from chatwatch.prism import PrismExtractor
from chatwatch.ratio import RatioExtractor
from chatwatch.subjects import load_subject_registry
from chatwatch.teleport import TeleportExtractor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [CHATWATCH] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, frame):
    global _running
    logger.info("Shutdown signal received, stopping...")
    _running = False


def _read_stdin(ingest: IngestQueue, done: threading.Event):
    for line in sys.stdin:
        line = line.rstrip("\r\n")
        if not line:
            continue
        try:
            ingest.put(line)
        except QueueOverflowError as e:
            logger.error("Input line lost: %s", e)
    done.set()


def build_context(config) -> PipelineContext:
    table = load_category_table(config.categories_file)
    subjects = load_subject_registry(config.subjects_file)
    excluded = load_excluded_tags(config.exclusions_file)

    context = PipelineContext(
        table,
        subjects=subjects,
        display=ConsoleDisplay(colour=sys.stdout.isatty()),
        excluded=excluded,
        max_continuations=config.max_continuations,
    )
    context.set_session(config.server, config.dimension)
    for actor in config.accepted_actors:
        context.actors.add(actor)
    context.install(
        EditExtractor(),
        ToolBlockExtractor(),
        LogBlockPaging(),
        CoreProtectExtractor(),
        PrismExtractor(),
        TeleportExtractor(),
        RatioExtractor(),
    )
    return context


def main():
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    config = load_config()
    logging.getLogger().setLevel(config.log_level)
    logger.info("Config: max_continuations=%d, queue_max_size=%d, overflow_policy=%s",
                config.max_continuations, config.queue_max_size, config.overflow_policy)

    context = build_context(config)
    if config.edits_file and os.path.exists(config.edits_file):
        load_edits(context.edit_log(), config.edits_file, context.subjects)

    ingest = IngestQueue(config.queue_max_size, config.overflow_policy)
    processor = Processor(context, ingest, Metrics(config.metrics_file))

    observer = None
    tailer = None
    stdin_done = threading.Event()
    if config.transcript_file:
        tailer = TranscriptTailer(config.transcript_file, ingest)
        tailer.startup_read()
        observer = Observer()
        os.makedirs(tailer.watched_dir, exist_ok=True)
        observer.schedule(tailer, tailer.watched_dir, recursive=False)
        observer.start()
        logger.info("Watching transcript: %s", tailer.path)
    else:
        threading.Thread(target=_read_stdin, args=(ingest, stdin_done), daemon=True).start()
        logger.info("Reading chat lines from stdin")

    try:
        while _running:
            processor.run_cycle()
            if stdin_done.is_set() and len(ingest) == 0:
                break
            time.sleep(config.tick_interval)
    except KeyboardInterrupt:
        pass

    logger.info("Shutting down...")
    if observer is not None:
        observer.stop()
        observer.join(timeout=5)
    if tailer is not None:
        tailer.close()

    processor.run_cycle()
    processor.finish()
    save_excluded_tags(config.exclusions_file, context.exclusion.excluded_tags)
    if config.edits_file:
        save_edits(context.edit_log(), config.edits_file)
    processor.metrics.save()

    counters = processor.metrics.get_all()["counters"]
    logger.info("Stats: %d lines, %d classified, %d revised, %d edits recorded, %d failures",
                counters["lines_ingested"], counters["lines_classified"],
                counters["lines_revised"], counters["edits_recorded"], counters["line_failures"])
    logger.info("chatwatch stopped.")


if __name__ == "__main__":
    main()
