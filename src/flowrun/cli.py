"""
CLI tool for running and checking workflows.

Provides terminal access to:
- Workflow execution with live per-node progress
- Structural and configuration validation
- The catalog of registered node types
"""

import sys
import json
import asyncio
import argparse
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from workflow_engine.errors import GraphValidationError
from workflow_engine.graph import CompiledGraph, NodeOutput
from workflow_engine.models import WorkflowDefinition, parse_workflow

from flowrun.observability import setup_logging
from flowrun.runtime import build_executor, build_registry


class ProgressPrinter:
    """Observer printing one line per node event."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def _print(self, line: str) -> None:
        print(line, file=self.stream, flush=True)

    def on_node_start(self, node_id: str) -> None:
        self._print(f"▶ {node_id}")

    def on_node_complete(self, node_id: str, output: NodeOutput) -> None:
        self._print(f"✓ {node_id} ({output.duration_ms:.1f}ms)")

    def on_node_error(self, node_id: str, error: str) -> None:
        self._print(f"✗ {node_id}: {error}")

    def on_node_skipped(self, node_id: str) -> None:
        self._print(f"- {node_id} (skipped)")


def load_workflow(path: str) -> WorkflowDefinition:
    """
    Load a workflow JSON file.

    Raises:
        ValueError: If the file cannot be read or is not a workflow
    """
    file_path = Path(path)
    if not file_path.exists():
        raise ValueError(f"File not found: {path}")

    try:
        data = json.loads(file_path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    try:
        return parse_workflow(data)
    except ValidationError as e:
        raise ValueError(f"Invalid workflow in {path}: {e}") from e


def cmd_run(args: argparse.Namespace) -> int:
    """Execute a workflow file."""
    try:
        definition = load_workflow(args.file)
        trigger_input = json.loads(args.input) if args.input else None
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    executor = build_executor(node_timeout_s=args.timeout)
    observer = None if args.json else ProgressPrinter()

    result = asyncio.run(
        executor.execute_definition(definition, observer, trigger_input=trigger_input)
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    elif result.success:
        print(f"\nRun {result.run_id} succeeded in {result.duration_ms:.1f}ms")
    else:
        location = f" at node {result.error.node_id}" if result.error.node_id else ""
        print(
            f"\nRun {result.run_id} failed{location} "
            f"[{result.error.kind.value}]: {result.error.message}"
        )

    return 0 if result.success else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Check a workflow file without running it."""
    try:
        definition = load_workflow(args.file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        graph = CompiledGraph(definition.nodes, definition.edges)
    except GraphValidationError as e:
        print(f"Structural error: {e}")
        return 1

    errors = build_registry().check_workflow(definition)
    if errors:
        print(f"CONFIGURATION ERRORS ({len(errors)}):")
        for node_id, message in errors.items():
            print(f"  - {node_id}: {message}")
        return 1

    print("Execution order:")
    for position, node_id in enumerate(graph.execution_order, start=1):
        print(f"  {position}. {node_id} ({graph.get_node(node_id).type})")
    return 0


def cmd_nodes(args: argparse.Namespace) -> int:
    """List registered node types."""
    registry = build_registry()
    definitions = registry.list_definitions(category=args.category)

    if args.json:
        payload: list[dict[str, Any]] = [d.model_dump() for d in definitions]
        print(json.dumps(payload, indent=2))
        return 0

    for definition in definitions:
        marker = " [branching]" if definition.branching else ""
        print(f"{definition.node_type:<18} {definition.category:<8} {definition.display_name}{marker}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowrun",
        description="Run and validate node-graph workflows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (logs go to stderr)")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # run command
    run_parser = subparsers.add_parser("run", help="Execute a workflow file")
    run_parser.add_argument("file", help="Workflow JSON file")
    run_parser.add_argument("--input", help="Trigger input as a JSON object")
    run_parser.add_argument("--timeout", type=float, help="Default node timeout in seconds")
    run_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Check a workflow file")
    validate_parser.add_argument("file", help="Workflow JSON file")

    # nodes command
    nodes_parser = subparsers.add_parser("nodes", help="List registered node types")
    nodes_parser.add_argument("--category", help="Only list one category")
    nodes_parser.add_argument("--json", action="store_true", help="Print definitions as JSON")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level, stream=sys.stderr)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "validate":
        return cmd_validate(args)
    elif args.command == "nodes":
        return cmd_nodes(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
