"""
Runtime configuration for the frp multiuser auth plugin
=======================================================

Command-line flags are the primary surface. Each flag takes its default from
an environment variable read at call time (never at import time), so tests
can monkeypatch the environment without reloading modules.

Listener
--------
- FRP_AUTH_ADDR              : bind address "host:port" (default "[::]:7003")

Credentials
-----------
- FRP_AUTH_FILE              : credential file path (default "./tokens")
- FRP_AUTH_INOTIFY           : "1"/"true"/"yes"/"on" enables live reload
- FRP_AUTH_RELOAD_QUEUE_SIZE : capacity of the reload signal queue (default 5)

Logging
-------
- FRP_AUTH_LOG_LEVEL         : logging level name (default "INFO")
"""

import argparse
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

DEFAULT_ADDR = "[::]:7003"
DEFAULT_AUTH_FILE = "./tokens"
DEFAULT_RELOAD_QUEUE_SIZE = 5

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Validated service configuration consumed by the app factory."""
    bind_address: str = DEFAULT_ADDR
    auth_file: str = DEFAULT_AUTH_FILE
    inotify: bool = False
    reload_queue_size: int = DEFAULT_RELOAD_QUEUE_SIZE
    log_level: str = "INFO"

    @property
    def host(self) -> str:
        return split_host_port(self.bind_address)[0]

    @property
    def port(self) -> int:
        return split_host_port(self.bind_address)[1]


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def split_host_port(addr: str) -> Tuple[str, int]:
    """
    Split a "host:port" bind address.

    Accepts "0.0.0.0:7003", "localhost:7003", "[::]:7003" and ":7003"
    (empty host = all interfaces). Bracketed hosts are returned without
    brackets.

    Raises:
        ValueError: If the address is missing a port, has a non-numeric or
            out-of-range port, or an unbracketed IPv6 host.
    """
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0:
            raise ValueError(f"address {addr}: missing ']' in address")
        host, rest = addr[1:end], addr[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"address {addr}: missing port in address")
        port_raw = rest[1:]
    else:
        host, sep, port_raw = addr.rpartition(":")
        if not sep:
            raise ValueError(f"address {addr}: missing port in address")
        if ":" in host:
            raise ValueError(f"address {addr}: too many colons in address")

    if not port_raw.isdigit():
        raise ValueError(f"address {addr}: invalid port {port_raw!r}")
    port = int(port_raw)
    if port > 65535:
        raise ValueError(f"address {addr}: port {port} out of range")
    return host, port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="frp-multiuser",
        description="frp server plugin that authorizes logins against a credential file",
    )
    parser.add_argument(
        "--addr",
        default=os.getenv("FRP_AUTH_ADDR", DEFAULT_ADDR),
        help="bind address",
    )
    parser.add_argument(
        "--auth-file",
        "--auth_file",
        dest="auth_file",
        default=os.getenv("FRP_AUTH_FILE", DEFAULT_AUTH_FILE),
        help="auth token file",
    )
    parser.add_argument(
        "--inotify",
        action="store_true",
        default=_get_bool("FRP_AUTH_INOTIFY"),
        help="watch the auth file and reload it on change",
    )
    parser.add_argument(
        "--reload-queue-size",
        type=int,
        default=_get_int("FRP_AUTH_RELOAD_QUEUE_SIZE", DEFAULT_RELOAD_QUEUE_SIZE),
        help="pending reload signals before the watcher blocks",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("FRP_AUTH_LOG_LEVEL", "INFO"),
        help="logging level name",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Config:
    """
    Parse command-line flags into a Config.

    Raises:
        ValueError: If the bind address cannot be parsed.
    """
    args = build_parser().parse_args(argv)
    split_host_port(args.addr)
    return Config(
        bind_address=args.addr,
        auth_file=args.auth_file,
        inotify=args.inotify,
        reload_queue_size=max(1, args.reload_queue_size),
        log_level=args.log_level.upper(),
    )
