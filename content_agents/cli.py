"""Command-line interface for running Content Agents against local files."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from .agents import register_all_agents
from .agents.base import AgentRegistry
from .memory.storage import JsonFileStorage
from .models.core import (
    AgentId,
    AgentStatus,
    ContentItem,
    PipelineId,
    SchedulerInput,
    Settings,
    WriterConstraints,
    WriterInput,
)
from .orchestration.run_manager import RunManager
from .scheduling.analysis import analyze_schedule
from .utils.config import SystemConfig, load_config, set_config
from .utils.logging import configure_logging


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="content-agents",
        description="Run content agents and pipelines from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Assign optimal posting times to a week of content
  content-agents schedule week.json --output scheduled.json

  # Generate and schedule a new batch (needs CLAUDE_API_KEY)
  content-agents pipeline --platform tiktok --platform reels

  # Show or clear the run history
  content-agents history
  content-agents history --clear
        """
    )
    parser.add_argument("--config", type=Path, help="Path to a JSON configuration file")
    parser.add_argument("--storage", help="Directory for persisted history")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)

    schedule = subparsers.add_parser("schedule", help="Run the scheduler agent on a content file")
    schedule.add_argument("items", type=Path, help="JSON file holding a list of content items")
    schedule.add_argument("--output", "-o", type=Path, help="Write scheduled items to this file")

    pipeline = subparsers.add_parser("pipeline", help="Run the full-content pipeline")
    pipeline.add_argument("--count", type=int, help="Number of items to request")
    pipeline.add_argument("--platform", action="append", dest="platforms", help="Restrict to a platform")
    pipeline.add_argument("--subject", action="append", dest="subjects", help="Restrict to a subject")
    pipeline.add_argument("--output", "-o", type=Path, help="Write scheduled drafts to this file")

    history = subparsers.add_parser("history", help="Show persisted run history")
    history.add_argument("--clear", action="store_true", help="Delete the run history")

    analyze = subparsers.add_parser("analyze", help="Score a schedule against optimal posting times")
    analyze.add_argument("items", type=Path, help="JSON file holding a list of content items")

    return parser.parse_args(argv)


def load_items(path: Path) -> List[ContentItem]:
    """Read content items, giving id-less entries a positional id."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict):
        raw = raw.get("content_items") or raw.get("contentItems") or []
    if not isinstance(raw, list):
        raise ValueError(f"{path} does not contain a list of content items")

    items = []
    for index, entry in enumerate(raw):
        data = dict(entry)
        data.setdefault("id", f"item-{index + 1}")
        items.append(ContentItem.model_validate(data))
    return items


def write_items(path: Path, items: List[Any]) -> None:
    payload = [item.model_dump(mode="json") for item in items]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    print(f"\nItems saved to: {path}")


def print_items(items: List[Any]) -> None:
    for item in items:
        print(f"  {item.day:10} {item.time:>8}  {item.platform:9} {item.hook[:50]}")


def print_run(manager: RunManager) -> bool:
    run = manager.current_run
    if run is None:
        print("No run was started.", file=sys.stderr)
        return False

    print(f"\nRun {run.id}: {run.status.value.upper()}")
    for agent_run in run.agent_runs:
        print(f"  [{agent_run.status.value}] {agent_run.agent_id} ({agent_run.duration_ms or 0} ms)")
        for step in agent_run.steps:
            print(f"      - {step.label}: {step.status.value}" + (f" ({step.error})" if step.error else ""))
        if agent_run.error:
            print(f"      error: {agent_run.error}")
    return run.status == AgentStatus.COMPLETED


def build_manager(config: SystemConfig, registry: AgentRegistry) -> RunManager:
    return RunManager(registry=registry, storage=JsonFileStorage(config.storage_path), config=config)


async def run_schedule(args, config: SystemConfig) -> int:
    items = load_items(args.items)
    manager = build_manager(config, register_all_agents(AgentRegistry()))
    await manager.initialize()
    manager.update_state(content_items=items)

    manager.start_agent(AgentId.SCHEDULER, SchedulerInput(content_items=items))
    await manager.wait()

    ok = print_run(manager)
    output = manager.last_output
    if ok and output is not None:
        print(f"\n{output.summary}\n")
        print_items(output.scheduled_items)
        if args.output:
            write_items(args.output, output.scheduled_items)
    return 0 if ok else 1


async def run_pipeline(args, config: SystemConfig) -> int:
    if not config.claude.api_key:
        print("Error: CLAUDE_API_KEY is required for the content pipeline", file=sys.stderr)
        return 2

    manager = build_manager(config, register_all_agents(AgentRegistry()))
    await manager.initialize()
    manager.update_state(settings=Settings(claude_api_key=config.claude.api_key))

    writer_input = WriterInput(
        count=args.count,
        constraints=WriterConstraints(platforms=args.platforms, subjects=args.subjects),
    )
    manager.start_pipeline(PipelineId.FULL_CONTENT, writer_input)
    await manager.wait()

    ok = print_run(manager)
    output = manager.last_output
    if ok and output is not None:
        print(f"\n{output.summary}\n")
        print_items(output.scheduled_items)
        if args.output:
            write_items(args.output, output.scheduled_items)
    return 0 if ok else 1


async def run_history(args, config: SystemConfig) -> int:
    manager = build_manager(config, AgentRegistry())
    await manager.initialize()

    if args.clear:
        await manager.clear_history()
        print("Run history cleared.")
        return 0

    entries = manager.history
    if not entries:
        print("No runs recorded.")
        return 0

    for entry in entries:
        flag = " (proactive)" if entry.proactive else ""
        print(f"{entry.timestamp.isoformat()}  {entry.agent_id:10} {entry.status:9} {entry.duration_ms:>7} ms{flag}")
        if entry.error:
            print(f"    error: {entry.error}")
    return 0


def run_analyze(args, config: SystemConfig) -> int:
    analysis = analyze_schedule(load_items(args.items))

    print(f"Schedule score: {analysis.overall_score}/100")
    if not analysis.suggestions:
        print("No changes suggested.")
        return 0

    print(f"\nSuggestions ({len(analysis.suggestions)}):")
    for suggestion in analysis.suggestions:
        target = suggestion.suggested_time
        if suggestion.suggested_day:
            target = f"{suggestion.suggested_day} {target}"
        print(f"  {suggestion.item_id}: {suggestion.current_day} {suggestion.current_time} -> {target} "
              f"[{suggestion.confidence}%] {suggestion.reasoning}")
    return 0


async def dispatch(args, config: SystemConfig) -> int:
    try:
        if args.command == "schedule":
            return await run_schedule(args, config)
        if args.command == "pipeline":
            return await run_pipeline(args, config)
        if args.command == "history":
            return await run_history(args, config)
        return run_analyze(args, config)
    except (OSError, ValueError, ValidationError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    args = parse_arguments(argv)

    config = load_config(args.config)
    if args.storage:
        config = config.model_copy(update={"storage_path": args.storage})
    set_config(config)

    level = "DEBUG" if args.verbose else config.log_level
    configure_logging(level=level, json_format=args.json_logs or config.json_logging)

    exit_code = asyncio.run(dispatch(args, config))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
