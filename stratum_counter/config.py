from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Optional

import yaml

from .errors import ConfigError
from .models import AddressSide, TcpState
from .utils.path import to_abs_path

log = logging.getLogger(__name__)

DEFAULT_PORT = 3333  # Stratum
DEFAULT_STATE = TcpState.ESTABLISHED
DEFAULT_DOCKER_TIMEOUT = 10.0
CONFIG_ENV = "STRATUM_COUNTER_CONFIG"
DEBUG_ENV = "STRATUM_COUNTER_DEBUG"

@dataclass
class CFG:
    port: int = DEFAULT_PORT
    state: TcpState = DEFAULT_STATE
    side: AddressSide = AddressSide.LOCAL
    json_output: bool = False
    docker_url: Optional[str] = None
    docker_timeout: float = DEFAULT_DOCKER_TIMEOUT
    debug: bool = False

def parse_port(value: Any) -> int:
    try:
        port = int(str(value), 10)
    except ValueError:
        raise ValueError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port out of range (0-65535): {port}")
    return port

def _coerce(key: str, value: Any) -> Any:
    if key == "port":
        return parse_port(value)
    if key == "state":
        return TcpState.parse(value)
    if key == "side":
        return AddressSide(str(value).lower())
    if key in ("json_output", "debug"):
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be true or false")
        return value
    if key == "docker_timeout":
        timeout = float(value)
        if not timeout > 0:
            raise ValueError(f"must be positive, got {value!r}")
        return timeout
    if key == "docker_url":
        return str(value) if value else None
    return value

def load_config(path: Optional[str], cfg: Optional[CFG] = None) -> CFG:
    """Apply a YAML or JSON mapping file on top of cfg (defaults if None)."""
    cfg = cfg or CFG()
    if not path:
        return cfg
    p = to_abs_path(path)
    if not p or not p.exists():
        raise ConfigError(f"config not found: {path}")
    try:
        txt = p.read_text(encoding="utf-8")
        data = yaml.safe_load(txt) if p.suffix in (".yaml", ".yml") else json.loads(txt)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot load config {p}: {e}") from e
    if data is None:
        return cfg
    if not isinstance(data, dict):
        raise ConfigError(f"config {p} must be a mapping")
    known = {f.name for f in fields(CFG)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"unknown config keys in {p}: {', '.join(sorted(unknown))}")
    for key, value in data.items():
        try:
            setattr(cfg, key, _coerce(key, value))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{p}: {key}: {e}") from e
    log.debug("loaded config %s", p)
    return cfg

def init_cfg_from_args(args) -> CFG:
    cfg = load_config(args.config or os.environ.get(CONFIG_ENV))
    if args.port is not None:
        cfg.port = args.port
    if args.state is not None:
        cfg.state = args.state
    if args.remote:
        cfg.side = AddressSide.REMOTE
    if args.json:
        cfg.json_output = True
    if args.docker_url:
        cfg.docker_url = args.docker_url
    if args.debug or os.environ.get(DEBUG_ENV, "") not in ("", "0"):
        cfg.debug = True
    return cfg
