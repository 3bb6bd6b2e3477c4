from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from datetime import datetime, timezone

from text_refinery.adapters.items import load_items
from text_refinery.changelog import write_json, write_txt, write_text
from text_refinery.config.load_config import MEMORY_MODES, OUTPUT_FORMATS, load_config
from text_refinery.errors import ConfigError
from text_refinery.llm.client import ClaudeClient, LLMConfig
from text_refinery.pipeline import batch_payload, build_memory_store, run_pipeline
from text_refinery.refinery.chunker import SPLIT_METHODS


def _output_name(source: str, index: int, output_format: str, taken: set) -> str:
    # JSON sources carry "#<n>" suffixes; keep names unique per item
    stem = Path(source.split("#", 1)[0]).stem or f"item_{index:04d}"
    if "#" in source:
        stem = f"{stem}_{source.rsplit('#', 1)[1]}"
    name = f"{stem}.refined.{output_format}"
    if name in taken:
        # Same stem from another directory
        name = f"{stem}_{index:04d}.refined.{output_format}"
    taken.add(name)
    return name


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog="text-refine",
        description="Multi-stage, memory-aware refinement of long documents"
    )
    ap.add_argument("inputs", nargs="+", help="Input files (.txt, .md, .json items, .docx)")
    ap.add_argument("--config", help="Pipeline YAML (default: bundled default_pipeline.yml)")
    ap.add_argument("--out", default="./refinery_out", help="Output directory")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    llm_group = ap.add_argument_group("LLM Options")
    llm_group.add_argument(
        "--anthropic-api-key",
        default=os.environ.get("ANTHROPIC_API_KEY"),
        help="Anthropic API key (or set ANTHROPIC_API_KEY env var)"
    )
    llm_group.add_argument("--model", help="Default model for stages without an override")
    llm_group.add_argument("--temperature", type=float, help="Default temperature")
    llm_group.add_argument("--max-retries", type=int, default=2, help="Transport retries per call")
    llm_group.add_argument("--timeout", type=float, help="Transport timeout per call, in seconds")

    chunk_group = ap.add_argument_group("Chunking")
    chunk_group.add_argument("--chunk-size", type=int, help="Maximum chunk size in characters")
    chunk_group.add_argument("--overlap", type=int, help="Characters shared between neighboring chunks")
    chunk_group.add_argument("--split-method", choices=SPLIT_METHODS)

    memory_group = ap.add_argument_group("Memory")
    memory_group.add_argument("--memory-mode", choices=MEMORY_MODES)
    memory_group.add_argument("--memory-key", help="Memory record key")
    memory_group.add_argument("--memory-dir", help="Directory for persistent-local memory files")
    memory_group.add_argument("--google-credentials", help="Google credentials JSON (persistent-remote)")
    memory_group.add_argument("--google-folder-id", help="Drive folder for memory files (optional)")

    output_group = ap.add_argument_group("Output")
    output_group.add_argument("--output-format", choices=OUTPUT_FORMATS)
    output_group.add_argument("--verbose", action="store_true", default=None, help="Keep every stage output")
    output_group.add_argument("--max-concurrent", type=int, help="Documents processed in parallel")

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.anthropic_api_key:
        ap.error("--anthropic-api-key or ANTHROPIC_API_KEY environment variable is required")

    try:
        config = load_config(
            args.config,
            default_model=args.model,
            default_temperature=args.temperature,
            chunk_size=args.chunk_size,
            overlap_chars=args.overlap,
            split_method=args.split_method,
            memory_mode=args.memory_mode,
            memory_key=args.memory_key,
            memory_dir=args.memory_dir,
            google_credentials=args.google_credentials,
            google_folder_id=args.google_folder_id,
            output_format=args.output_format,
            verbose=args.verbose,
            max_concurrent=args.max_concurrent,
        )
    except ConfigError as e:
        ap.error(str(e))

    items = []
    for path in args.inputs:
        items.extend(load_items(path, config.input_field))

    client = ClaudeClient(LLMConfig(
        api_key=args.anthropic_api_key,
        max_retries=args.max_retries,
        timeout=args.timeout,
    ))
    store = build_memory_store(config)

    def progress(completed, total):
        print(f"  documents: {completed}/{total}", file=sys.stderr)

    batch = run_pipeline(items, config, client, store=store, progress_callback=progress)

    # Create output directory
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
    bundle_dir = Path(args.out) / f"run_{timestamp}"
    bundle_dir.mkdir(parents=True, exist_ok=True)

    payload = batch_payload(batch, config)
    payload["timestamp_utc"] = timestamp
    payload["config"] = {
        "default_model": config.default_model,
        "split_method": config.split_method,
        "chunk_size": config.chunk_size,
        "overlap_chars": config.overlap_chars,
        "memory_mode": config.memory_mode,
        "memory_key": config.memory_key,
        "stages": [s.name for s in config.stages if s.enabled],
    }

    taken = set()
    for i, (entry, doc) in enumerate(zip(payload["documents"], batch.documents)):
        dest = bundle_dir / _output_name(entry["source"], i, config.output_format, taken)
        if config.output_format == "json":
            write_json(str(dest), doc.to_dict(config.preview_chars))
        else:
            write_text(str(dest), doc.final_text)
        entry["output"] = str(dest)

    write_json(str(bundle_dir / "run_report.json"), payload)
    write_txt(str(bundle_dir / "run_report.txt"), payload)

    output = {
        "bundle_dir": str(bundle_dir),
        "documents_ok": payload["stats"]["documents_ok"],
        "documents_failed": payload["stats"]["documents_failed"],
        "chunks_total": payload["stats"]["chunks_total"],
        "stage_calls": payload["stats"]["stage_calls"],
        "outputs": [d["output"] for d in payload["documents"]],
    }
    print(json.dumps(output, indent=2))
    return 0 if batch.ok else 1


if __name__ == "__main__":
    sys.exit(main())
