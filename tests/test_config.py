import argparse

import pytest

from stratum_counter.config import CFG, init_cfg_from_args, load_config, parse_port
from stratum_counter.errors import ConfigError
from stratum_counter.models import AddressSide, TcpState

def _args(**kw):
    base = dict(port=None, state=None, remote=False, json=False, config=None,
                docker_url=None, debug=False)
    base.update(kw)
    return argparse.Namespace(**base)

def test_defaults():
    cfg = CFG()
    assert cfg.port == 3333
    assert cfg.state is TcpState.ESTABLISHED
    assert cfg.side is AddressSide.LOCAL

@pytest.mark.parametrize("value,expected", [("0", 0), ("3333", 3333), ("65535", 65535)])
def test_parse_port_accepts_u16(value, expected):
    assert parse_port(value) == expected

@pytest.mark.parametrize("value", ["-1", "65536", "abc", "3.5", ""])
def test_parse_port_rejects(value):
    with pytest.raises(ValueError):
        parse_port(value)

def test_yaml_config(tmp_path):
    p = tmp_path / "counter.yaml"
    p.write_text("port: 4444\nstate: listen\nside: remote\njson_output: true\n")
    cfg = load_config(str(p))
    assert cfg.port == 4444
    assert cfg.state is TcpState.LISTEN
    assert cfg.side is AddressSide.REMOTE
    assert cfg.json_output is True

def test_json_config(tmp_path):
    p = tmp_path / "counter.json"
    p.write_text('{"docker_url": "unix:///run/docker.sock", "docker_timeout": 3}')
    cfg = load_config(str(p))
    assert cfg.docker_url == "unix:///run/docker.sock"
    assert cfg.docker_timeout == 3.0

@pytest.mark.parametrize("body", ["colour: red\n", "port: 70000\n", "state: bogus\n", "- 1\n"])
def test_bad_config(tmp_path, body):
    p = tmp_path / "bad.yaml"
    p.write_text(body)
    with pytest.raises(ConfigError):
        load_config(str(p))

def test_missing_config(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "absent.yaml"))

def test_cli_overrides_file(tmp_path, monkeypatch):
    monkeypatch.delenv("STRATUM_COUNTER_CONFIG", raising=False)
    monkeypatch.delenv("STRATUM_COUNTER_DEBUG", raising=False)
    p = tmp_path / "counter.yaml"
    p.write_text("port: 4444\n")
    cfg = init_cfg_from_args(_args(config=str(p), port=5555, remote=True, json=True))
    assert cfg.port == 5555
    assert cfg.side is AddressSide.REMOTE
    assert cfg.json_output is True

def test_config_from_environment(tmp_path, monkeypatch):
    p = tmp_path / "counter.yaml"
    p.write_text("port: 4444\n")
    monkeypatch.setenv("STRATUM_COUNTER_CONFIG", str(p))
    monkeypatch.setenv("STRATUM_COUNTER_DEBUG", "1")
    cfg = init_cfg_from_args(_args())
    assert cfg.port == 4444
    assert cfg.debug is True

@pytest.mark.parametrize("value", ["0", "-1"])
def test_non_positive_docker_timeout_rejected(tmp_path, value):
    p = tmp_path / "c.yaml"
    p.write_text(f"docker_timeout: {value}\n")
    with pytest.raises(ConfigError):
        load_config(str(p))

def test_fractional_docker_timeout_kept(tmp_path):
    p = tmp_path / "c.yaml"
    p.write_text("docker_timeout: 0.5\n")
    assert load_config(str(p)).docker_timeout == 0.5
