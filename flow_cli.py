#!/usr/bin/env python3
"""
Flow CLI

Inspect, validate and replay saved flows from the command line.

Usage:
    python flow_cli.py list
    python flow_cli.py show <flow_id>
    python flow_cli.py schema <flow_id_or_name>
    python flow_cli.py validate <flow_id> --params '{"count": 3}'
    python flow_cli.py delete <flow_id>
    python flow_cli.py run <flow_name> [--params '{"count": 3, "color": "red"}'] [--url <canvas_url>] [--headed]
"""

import argparse
import asyncio
import json
import logging
import sys

import yaml

from flow_manager import FlowManager
from persistence import JSONFlowStore

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def _parse_params(raw):
    if not raw:
        return {}
    params = json.loads(raw)
    if not isinstance(params, dict):
        raise ValueError("--params must be a JSON object")
    return params


def _resolve(manager, ref):
    """Accept either a flow id or a (loose) flow name."""
    return manager.get_flow(ref) or manager.find_flow_by_name(ref)


def cmd_list(manager, args):
    flows = manager.list_flows()
    if not flows:
        logger.info("No flows saved")
        return 0
    for flow in flows:
        published = " [published]" if flow.is_published else ""
        logger.info(f"{flow.id}  {flow.name}  ({len(flow.steps)} step(s)){published}")
    return 0


def cmd_show(manager, args):
    flow = _resolve(manager, args.flow)
    if flow is None:
        logger.error(f"Flow not found: {args.flow}")
        return 1
    print(flow.model_dump_json(indent=2))
    return 0


def cmd_schema(manager, args):
    flow = _resolve(manager, args.flow)
    if flow is None:
        logger.error(f"Flow not found: {args.flow}")
        return 1
    schema = manager.get_flow_parameter_schema(flow.id)
    logger.info(f"Parameters of '{schema.flow_name}':")
    for param in schema.parameters:
        extra = f" one of {', '.join(param.enum_values)}" if param.enum_values else ""
        logger.info(f"  - {param.name} ({param.type}, {param.domain}){extra}: {param.description}")
    logger.info("Examples:")
    for example in schema.examples:
        logger.info(f"  {example}")
    return 0


def cmd_validate(manager, args):
    result = manager.validate_flow_parameters(args.flow, _parse_params(args.params))
    if result.valid:
        logger.info("✓ Parameters are valid")
        return 0
    for error in result.errors:
        logger.warning(f"  - {error}")
    return 1


def cmd_delete(manager, args):
    if not manager.delete_flow(args.flow):
        logger.error(f"Flow not found: {args.flow}")
        return 1
    logger.info(f"Deleted {args.flow}")
    return 0


async def _run(manager, flow, params, url, headless):
    from canvas_tools import CanvasToolSurface

    async with CanvasToolSurface(url=url, headless=headless) as canvas:
        canvas.register_all(manager.tools)
        return await manager.execute_flow(flow, params)


def cmd_run(manager, args):
    flow = _resolve(manager, args.flow)
    if flow is None:
        logger.error(f"Flow not found: {args.flow}")
        return 1
    params = _parse_params(args.params)

    result = manager.validate_flow_parameters(flow.id, params)
    for error in result.errors:
        logger.warning(f"  - {error}")

    report = asyncio.run(_run(manager, flow, params, args.url, not args.headed))
    logger.info(f"Flow {report.flow_name} {report.status}: "
                f"{report.instances} instance(s), {report.invocations} tool call(s)")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="Inspect and replay saved canvas flows")
    parser.add_argument("--data-dir", help="Directory of the flow store")
    parser.add_argument("--tool-schemas", help="YAML file with extra tool schemas")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List saved flows").set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Print a flow as JSON")
    p.add_argument("flow")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("schema", help="Show the parameters a flow accepts")
    p.add_argument("flow")
    p.set_defaults(func=cmd_schema)

    p = sub.add_parser("validate", help="Validate replay parameters")
    p.add_argument("flow")
    p.add_argument("--params", default="{}")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("delete", help="Delete a flow")
    p.add_argument("flow")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("run", help="Replay a flow on the canvas")
    p.add_argument("flow")
    p.add_argument("--params", default="{}")
    p.add_argument("--url", help="Canvas URL")
    p.add_argument("--headed", action="store_true", help="Show the browser window")
    p.set_defaults(func=cmd_run)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        manager = FlowManager(
            store=JSONFlowStore(args.data_dir),
            tool_schemas_file=args.tool_schemas,
        )
        return args.func(manager, args)
    except (ValueError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
