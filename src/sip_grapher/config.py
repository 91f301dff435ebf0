"""Configuration loading and management."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_LOGPATH = "/var/log/asterisk/messages"


@dataclass
class ScanConfig:
    logpath: Path = field(default_factory=lambda: Path(DEFAULT_LOGPATH))
    ignore_alternate_did: bool = False
    verbose: bool = False


@dataclass
class RenderConfig:
    width: int = 650
    local_label: str = "PBX"
    remote_label: str = "EXTERNAL"


@dataclass
class Config:
    scan: ScanConfig = field(default_factory=ScanConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    log_dir: Path = field(default_factory=lambda: Path.home() / "sip-grapher" / "logs")


def expand_path(path_str: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expandvars(os.path.expanduser(path_str)))


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file."""
    if config_path is None:
        # Look for config in standard locations
        search_paths = [
            Path.cwd() / "config.yaml",
            Path.home() / ".config" / "sip-grapher" / "config.yaml",
            Path("/etc/sip-grapher/config.yaml"),
        ]
        for path in search_paths:
            if path.exists():
                config_path = path
                break

    if config_path is None or not config_path.exists():
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    scan_data = data.get("scan", {})
    scan = ScanConfig(
        logpath=expand_path(scan_data.get("logpath", DEFAULT_LOGPATH)),
        ignore_alternate_did=bool(scan_data.get("ignore_alternate_did", False)),
        verbose=bool(scan_data.get("verbose", False)),
    )

    render_data = data.get("render", {})
    render = RenderConfig(
        width=int(render_data.get("width", 650)),
        local_label=render_data.get("local_label", "PBX"),
        remote_label=render_data.get("remote_label", "EXTERNAL"),
    )

    return Config(
        scan=scan,
        render=render,
        log_dir=expand_path(data.get("log_dir", "~/sip-grapher/logs")),
    )
