"""
Command-line interface for screenflow.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

from .authoring.variables import collect_flow_variables
from .config import load_config
from .errors import ScreenflowError
from .flows.session import FlowSession
from .patching.merge import merge_elements
from .streaming.repair import extract_json_candidate, repair_truncated_json
from .version import __version__


def build_cli_parser() -> argparse.ArgumentParser:
    cli = argparse.ArgumentParser(prog="screenflow", description="screenflow CLI")
    cli.add_argument(
        "--version",
        action="version",
        version=f"screenflow {__version__} (Python {sys.version.split()[0]})",
    )
    sub = cli.add_subparsers(dest="command", required=True)

    serve_cmd = sub.add_parser("serve", help="Start the reference FastAPI service")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--store", type=Path, help="Project store JSON file (defaults to SCREENFLOW_STORE_PATH)")
    serve_cmd.add_argument("--dry-run", action="store_true", help="Build app but do not start server")

    merge_cmd = sub.add_parser("merge", help="Apply a change list to an element tree")
    merge_cmd.add_argument("tree", type=Path, help="JSON element list (or an object with 'elements')")
    merge_cmd.add_argument("changes", type=Path, help="JSON change list (or an object with 'changes')")
    merge_cmd.add_argument("--out", type=Path, help="Path to write the merged tree (stdout if omitted)")

    repair_cmd = sub.add_parser("repair", help="Repair a truncated assistant document")
    repair_cmd.add_argument("file", type=Path)

    variables_cmd = sub.add_parser("variables", help="List the variables a flow reads and writes")
    variables_cmd.add_argument("flow", type=Path, help="JSON screen list, config, or get-config response")

    simulate_cmd = sub.add_parser("simulate", help="Drive a flow through a scripted session")
    simulate_cmd.add_argument("flow", type=Path)
    simulate_cmd.add_argument("--script", type=Path, required=True, help="JSON list of steps, e.g. [{\"tap\": \"cta\"}]")
    simulate_cmd.add_argument("--var", action="append", default=[], metavar="NAME=VALUE", help="Initial variable")
    return cli


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Could not read {path}: {exc}") from exc


def _screens_from(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("config"), dict):
            return data["config"].get("screens") or []
        return data.get("screens") or []
    return []


def _parse_vars(pairs: List[str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep:
            raise SystemExit(f"Invalid --var '{pair}', expected NAME=VALUE")
        try:
            values[name] = json.loads(raw)
        except ValueError:
            values[name] = raw
    return values


_STEPS: Dict[str, Callable[[FlowSession, Any], None]] = {
    "tap": lambda session, arg: session.tap(arg),
    "type": lambda session, arg: session.type_text(arg["id"], arg["text"]),
    "next": lambda session, arg: session.next(arg),
    "back": lambda session, arg: session.back(),
    "skip_screen": lambda session, arg: session.skip_screen(),
    "skip_all": lambda session, arg: session.skip_all(),
    "navigate_to": lambda session, arg: session.navigate_to(arg),
    "update_data": lambda session, arg: session.update_data(arg),
}


def run_script(session: FlowSession, steps: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    trace: List[Dict[str, Any]] = []
    for step in steps:
        if not isinstance(step, dict) or len(step) != 1:
            raise SystemExit(f"Invalid step {step!r}: expected an object with exactly one key")
        (op, arg), = step.items()
        handler = _STEPS.get(op)
        if handler is None:
            raise SystemExit(f"Unknown step '{op}'. Known steps: {', '.join(sorted(_STEPS))}")
        handler(session, arg)
        screen = session.current_screen
        trace.append({"step": op, "status": session.status.value, "screen": screen.id if screen else None})
    return trace


def main(argv: list[str] | None = None) -> None:
    cli = build_cli_parser()
    args = cli.parse_args(argv)
    config = load_config()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.WARNING))

    if args.command == "serve":
        try:
            from .server import ProjectStore, create_app
        except Exception as exc:  # pragma: no cover - load-time guard
            raise SystemExit(f"Failed to import server: {exc}") from exc
        store_path = args.store or config.store_path
        store = ProjectStore.from_file(store_path) if store_path else ProjectStore()
        app = create_app(store, config=config)
        if args.dry_run:
            print(
                json.dumps(
                    {"status": "ready", "host": args.host, "port": args.port, "store": str(store_path) if store_path else None},
                    indent=2,
                )
            )
            return
        try:
            import uvicorn
        except ImportError as exc:  # pragma: no cover - runtime check
            raise SystemExit("uvicorn is required to run the server") from exc
        uvicorn.run(app, host=args.host, port=args.port)
        return

    if args.command == "merge":
        tree = _read_json(args.tree)
        changes = _read_json(args.changes)
        if isinstance(tree, dict):
            tree = tree.get("elements") or []
        if isinstance(changes, dict):
            changes = changes.get("changes") or []
        try:
            merged = merge_elements(tree, changes)
        except ScreenflowError as exc:
            raise SystemExit(str(exc)) from exc
        text = json.dumps(merged, indent=2)
        if args.out:
            args.out.write_text(text + "\n", encoding="utf-8")
            print(f"Wrote {len(merged)} root element(s) to {args.out}")
        else:
            print(text)
        return

    if args.command == "repair":
        try:
            raw = args.file.read_text(encoding="utf-8")
        except OSError as exc:
            raise SystemExit(f"Could not read {args.file}: {exc}") from exc
        repaired = repair_truncated_json(extract_json_candidate(raw))
        print(repaired)
        try:
            json.loads(repaired)
        except ValueError as exc:
            print(f"Repaired document still does not parse: {exc}", file=sys.stderr)
            raise SystemExit(1)
        return

    if args.command == "variables":
        catalogue = collect_flow_variables(_screens_from(_read_json(args.flow)))
        print(json.dumps([info.to_dict() for info in catalogue], indent=2))
        return

    if args.command == "simulate":
        screens = _screens_from(_read_json(args.flow))
        steps = _read_json(args.script)
        if not isinstance(steps, list):
            raise SystemExit("Script must be a JSON list of steps")
        session = FlowSession(screens, initial_variables=_parse_vars(args.var))
        session.load()
        try:
            trace = run_script(session, steps)
        except ScreenflowError as exc:
            raise SystemExit(str(exc)) from exc
        print(
            json.dumps(
                {
                    "status": session.status.value,
                    "error": session.error,
                    "trace": trace,
                    "payload": session.completion_payload,
                },
                indent=2,
            )
        )
        return


if __name__ == "__main__":  # pragma: no cover
    main()
