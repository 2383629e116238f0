#!/usr/bin/env python3
"""
Persistent engine server for an external renderer.

Communicates via stdin/stdout JSON-line protocol.
All debug/logging goes to a log file; stdout is reserved for protocol only.

Protocol:
    Renderer -> Python (stdin):  {"id":"req_1","command":"tick","data":{...}}\n
    Python -> Renderer (stdout): {"id":"req_1","success":true,"result":{...}}\n

Commands:
    update         - Feed history / similarity map / active node
    tick           - Advance one frame, returns the snapshot
    snapshot       - Current nodes, links and transform
    select         - User clicked a node (by instance_id)
    zoom_to_depth  - Auto-zoom for a depth
    move_to        - Smooth move to the center of some nodes
    reset_view     - Back to scale 1 on the root
    pan / zoom     - User drag and wheel
    set_transform  - Transform written by the renderer's own zoom behaviour
    resize         - Container size changed
    inspect        - Node count, max depth, transform, size
    retry          - Leave the error state
    reset          - Discard the tree
    ping           - Health check
    shutdown       - Graceful exit
"""

from typing import Any, Callable, Dict, IO, Optional
from pathlib import Path
import argparse
import json
import logging
import os
import sys

from .config import load_config
from .core.math_utils import Vector2D
from .engine import TreeGraphEngine
from .viewport import Transform

logger = logging.getLogger(__name__)

LOG_FILE = Path.cwd() / "server.log"


def send_response(out: IO[str], request_id, success, result=None, error=None) -> None:
    """Send a JSON-line response."""
    msg = {"id": request_id, "success": success}
    if result is not None:
        msg["result"] = result
    if error is not None:
        msg["error"] = error
    out.write(json.dumps(msg, ensure_ascii=False) + "\n")
    out.flush()


def _inspect(engine: TreeGraphEngine) -> Dict[str, Any]:
    inspector = engine.inspect()
    root = inspector.root
    return {
        'status': inspector.status.value,
        'error': engine.error,
        'node_count': inspector.node_count,
        'link_count': inspector.link_count,
        'max_depth': inspector.max_depth,
        'root': root.to_dict() if root is not None else None,
        'transform': inspector.transform.to_dict(),
        'container_size': list(inspector.container_size),
    }


class CommandHandler:
    """Maps protocol commands onto one engine."""

    def __init__(self, engine: TreeGraphEngine):
        self.engine = engine
        self.selected: list = []
        engine.set_on_node_select(lambda node: self.selected.append(node.instance_id))
        self._commands: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            'ping': self.ping,
            'update': self.update,
            'tick': self.tick,
            'snapshot': lambda data: self.engine.snapshot(),
            'select': self.select,
            'zoom_to_depth': self.zoom_to_depth,
            'move_to': self.move_to,
            'reset_view': self.reset_view,
            'pan': self.pan,
            'zoom': self.zoom,
            'set_transform': self.set_transform,
            'resize': self.resize,
            'inspect': lambda data: _inspect(self.engine),
            'retry': self.retry,
            'reset': self.reset,
        }

    def has(self, command: str) -> bool:
        return command in self._commands

    def handle(self, command: str, data: Dict[str, Any]) -> Any:
        return self._commands[command](data)

    # ------------------------------------------------------------------

    def ping(self, data):
        return {"status": "alive", "pid": os.getpid()}

    def update(self, data):
        created = self.engine.update(
            data.get('history', []),
            data.get('similarity_map', data.get('similar_records', {})),
            data.get('active_node'),
            data.get('now'),
        )
        return {
            'created': [n.instance_id for n in created],
            'status': self.engine.status.value,
            'error': self.engine.error,
        }

    def tick(self, data):
        self.engine.tick(data.get('now'), data.get('wind_time'))
        return self.engine.snapshot()

    def select(self, data):
        self.selected.clear()
        node = self.engine.select_node(data.get('instance_id', ''))
        return {
            'selected': node.to_dict() if node is not None else None,
            'notified': list(self.selected),
        }

    def zoom_to_depth(self, data):
        depth = int(data.get('depth', self.engine.store.max_depth))
        return {'scale': self.engine.inspect().zoom_to_depth(depth, data.get('now'))}

    def move_to(self, data):
        nodes = [self.engine.store.find_by_instance_id(i) for i in data.get('instance_ids', [])]
        nodes = [n for n in nodes if n is not None]
        point = self.engine.viewport.smooth_move_to_center(
            nodes, data.get('delay'), data.get('now'))
        return {'center': list(point.to_tuple()) if point is not None else None}

    def reset_view(self, data):
        return self.engine.viewport.reset_view(data.get('now')).to_dict()

    def pan(self, data):
        return self.engine.viewport.pan(float(data.get('dx', 0)), float(data.get('dy', 0))).to_dict()

    def zoom(self, data):
        focus = None
        if 'x' in data and 'y' in data:
            focus = Vector2D(float(data['x']), float(data['y']))
        return self.engine.viewport.zoom_by(float(data.get('factor', 1.0)), focus).to_dict()

    def set_transform(self, data):
        transform = Transform(float(data['x']), float(data['y']), float(data.get('k', 1.0)))
        return self.engine.viewport.set_transform(transform).to_dict()

    def resize(self, data):
        self.engine.viewport.resize(data.get('width', 0), data.get('height', 0))
        return {'container_size': list(self.engine.viewport.container_size)}

    def retry(self, data):
        return {'ok': self.engine.retry(data.get('now')), 'status': self.engine.status.value}

    def reset(self, data):
        self.engine.reset()
        return {'status': self.engine.status.value}


def serve(engine: TreeGraphEngine, stdin: IO[str], stdout: IO[str]) -> None:
    """Read commands from stdin until EOF or shutdown."""
    handler = CommandHandler(engine)
    send_response(stdout, "__ready__", True, {"pid": os.getpid()})

    for line in stdin:
        line = line.strip()
        if not line:
            continue

        request_id = None
        try:
            msg = json.loads(line)
            if not isinstance(msg, dict):
                send_response(stdout, "unknown", False, error="Request must be a JSON object")
                continue
            request_id = msg.get("id", "unknown")
            command = msg.get("command", "")
            data = msg.get("data") or {}
            if not isinstance(data, dict):
                send_response(stdout, request_id, False, error="Request data must be a JSON object")
                continue

            if command != "tick":
                logger.info("Received command: %s (id: %s)", command, request_id)

            if command == "shutdown":
                logger.info("Shutdown requested")
                send_response(stdout, request_id, True, {"status": "shutting_down"})
                break

            if not handler.has(command):
                send_response(stdout, request_id, False, error=f"Unknown command: {command}")
                continue

            send_response(stdout, request_id, True, handler.handle(command, data))

        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON: %s - line: %s", e, line[:200])
            send_response(stdout, request_id or "unknown", False, error=f"Invalid JSON: {e}")
        except Exception as e:
            error_detail = f"{type(e).__name__}: {e}"
            logger.exception("Error handling command")
            send_response(stdout, request_id or "unknown", False, error=error_detail)

    engine.dispose()
    logger.info("Server exiting")


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Tree graph engine JSON-line server")
    parser.add_argument('--config', help="JSON config file")
    parser.add_argument('--log-file', default=str(LOG_FILE))
    args = parser.parse_args(argv)

    logging.basicConfig(
        filename=args.log_file,
        filemode='w',
        level=logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    logger.info("PID: %d, Python: %s, CWD: %s", os.getpid(), sys.version, os.getcwd())

    engine = TreeGraphEngine(load_config(args.config))
    serve(engine, sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
