from __future__ import annotations
import argparse
import logging
import sys

from . import __version__
from .collectors import DockerRegistry, ProcessInventory, default_socket_table
from .config import CFG, init_cfg_from_args, parse_port
from .errors import StratumCounterError
from .models import ContainerReport, TcpState
from .render import render_json, render_text
from .topology import correlate, take_snapshot

log = logging.getLogger("stratum_counter")

def _port(value: str) -> int:
    try:
        return parse_port(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None

def _state(value: str) -> TcpState:
    try:
        return TcpState.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None

def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        prog='stratum-counter',
        description='Count TCP connections on a port per Docker container',
        epilog='examples:\n'
               '  stratum-counter              # port 3333\n'
               '  stratum-counter 34333        # port 34333\n'
               '  stratum-counter --json 3333  # JSON output',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument('port', nargs='?', type=_port, default=None,
                    help='port to inspect (default: 3333)')
    ap.add_argument('-j', '--json', action='store_true', help='output JSON')
    ap.add_argument('-v', '--version', action='version', version=f'stratum-counter v{__version__}')
    ap.add_argument('--state', type=_state, default=None,
                    help='TCP state to report (default: ESTABLISHED)')
    ap.add_argument('--remote', action='store_true', help='match PORT against the remote end')
    ap.add_argument('--config', type=str, default=None, help='YAML or JSON config file')
    ap.add_argument('--docker-url', type=str, default=None,
                    help='Docker daemon URL (default: DOCKER_HOST or the local socket)')
    ap.add_argument('--debug', action='store_true', help='verbose diagnostics on stderr')
    return ap.parse_args(argv)

def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='[%(levelname)s] %(message)s',
        stream=sys.stderr,
    )
    logging.captureWarnings(True)

def run(cfg: CFG, sockets=None, inventory=None, registry=None) -> list[ContainerReport]:
    sockets = sockets or default_socket_table()
    inventory = inventory or ProcessInventory()
    owned = registry is None
    registry = registry or DockerRegistry(base_url=cfg.docker_url, timeout=cfg.docker_timeout)
    try:
        snap = take_snapshot(sockets, registry)
        return correlate(snap, inventory, registry, cfg.port, cfg.state, cfg.side)
    finally:
        if owned:
            registry.close()

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)
    try:
        cfg = init_cfg_from_args(args)
        if cfg.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        reports = run(cfg)
    except StratumCounterError as e:
        log.error("%s", e)
        return e.exit_code

    if cfg.json_output:
        print(render_json(reports))
    else:
        print(render_text(reports, cfg.port, cfg.state, cfg.side))
    return 0

if __name__ == '__main__':
    sys.exit(main())
