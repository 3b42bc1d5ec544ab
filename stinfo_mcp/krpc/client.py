from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_RPC_PORT = 50000
DEFAULT_STREAM_PORT = 50001


class KRPCConnectionError(RuntimeError):
    pass


@dataclass(frozen=True)
class ConnectionSettings:
    address: Optional[str] = None
    rpc_port: int = DEFAULT_RPC_PORT
    stream_port: int = DEFAULT_STREAM_PORT
    timeout: float = 5.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ConnectionSettings":
        """
        Connection defaults from STINFO_KRPC_ADDRESS, STINFO_KRPC_RPC_PORT,
        STINFO_KRPC_STREAM_PORT and STINFO_KRPC_TIMEOUT (project .env included).
        """
        if env is None:
            from ..utils.env import load_env_defaults

            load_env_defaults()
            env = os.environ
        try:
            return cls(
                address=env.get("STINFO_KRPC_ADDRESS") or None,
                rpc_port=int(env.get("STINFO_KRPC_RPC_PORT") or DEFAULT_RPC_PORT),
                stream_port=int(env.get("STINFO_KRPC_STREAM_PORT") or DEFAULT_STREAM_PORT),
                timeout=float(env.get("STINFO_KRPC_TIMEOUT") or 5.0),
            )
        except ValueError as e:
            raise KRPCConnectionError(f"Invalid STINFO_KRPC_* setting: {e}") from e


def _check_status(conn, address: str, rpc_port: int, stream_port: int) -> None:
    try:
        _ = conn.krpc.get_status().version
    except Exception as e:
        raise KRPCConnectionError(
            f"Connected to {address}:{rpc_port}/{stream_port} but could not read the server status. "
            "The server must use 'Protobuf over TCP' with matching RPC and stream ports."
        ) from e


def connect_to_game(
    address: str,
    rpc_port: int = DEFAULT_RPC_PORT,
    stream_port: int = DEFAULT_STREAM_PORT,
    *,
    name: Optional[str] = None,
    timeout: float = 5.0,
):
    """
    Open a kRPC connection to the game and check that the server answers.

    Args:
        address: IP or hostname of the PC running KSP+kRPC
        rpc_port: RPC port configured in kRPC
        stream_port: Stream port configured in kRPC
        name: Connection name shown in the kRPC window
        timeout: Socket timeout in seconds for the initial connection

    Returns:
        krpc.client.Client

    Raises:
        KRPCConnectionError: krpc missing, server unreachable, or wrong protocol
    """
    try:
        import krpc  # Lazy import so the snapshot tools work without krpc installed
    except ImportError as e:  # pragma: no cover
        raise KRPCConnectionError("Python package 'krpc' is not installed (pip install krpc)") from e

    prev = socket.getdefaulttimeout()
    socket.setdefaulttimeout(timeout)
    try:
        try:
            conn = krpc.connect(
                name=name or "stinfo",
                address=address,
                rpc_port=rpc_port,
                stream_port=stream_port,
            )
        except Exception as e:
            raise KRPCConnectionError(
                f"Failed to connect to kRPC at {address}:{rpc_port}/{stream_port}: {e}"
            ) from e
        _check_status(conn, address, rpc_port, stream_port)
        return conn
    finally:
        socket.setdefaulttimeout(prev)


def connect_with_settings(settings: ConnectionSettings, *, name: Optional[str] = None):
    if not settings.address:
        raise KRPCConnectionError("No kRPC address given (pass --address or set STINFO_KRPC_ADDRESS)")
    return connect_to_game(
        settings.address,
        rpc_port=settings.rpc_port,
        stream_port=settings.stream_port,
        name=name,
        timeout=settings.timeout,
    )
