"""Discovery of the Antigravity language server process, CSRF token and port.

The language server publishes no discovery contract. Its per-launch CSRF
token is passed on the command line and it listens on a port chosen at
startup, so both are read back from the running process.
"""

import re
import socket
from typing import NamedTuple

import psutil

from agquota.config.core import DiscoverySettings
from agquota.core.logging import get_logger, mask_secret
from agquota.services.language_server.exceptions import (
    CsrfTokenNotFoundError,
    PortNotFoundError,
    ProcessNotFoundError,
)
from agquota.services.language_server.models import ConnectionInfo


logger = get_logger(__name__)

_INET_FAMILIES = (socket.AF_INET, socket.AF_INET6)
_PROCESS_ERRORS = (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess)


class ServerProcess(NamedTuple):
    """A candidate language server process."""

    pid: int
    arguments: str


def csrf_token_pattern(flag: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(flag)}[=\s]+([a-f0-9-]+)")


def extract_csrf_token(arguments: str, flag: str = "--csrf_token") -> str:
    """Extract the hex-with-dashes token following ``flag``.

    Raises:
        CsrfTokenNotFoundError: If the flag/value pair is not present
    """
    match = csrf_token_pattern(flag).search(arguments)
    if match is None:
        raise CsrfTokenNotFoundError()
    return match.group(1)


class ProcessLocator:
    """Finds the language server and assembles a ``ConnectionInfo``.

    Every method here is synchronous and talks to the kernel through psutil;
    async callers run ``discover_connection`` in a worker thread.
    """

    def __init__(self, settings: DiscoverySettings | None = None):
        self.settings = settings or DiscoverySettings()

    def _matches(self, arguments: str) -> bool:
        return self.settings.csrf_flag in arguments and all(
            marker in arguments for marker in self.settings.required_markers
        )

    def find_language_server_process(self) -> ServerProcess:
        """Scan running processes for the Antigravity language server.

        Processes whose executable path does not contain the configured
        process name are skipped without reading their arguments.

        Raises:
            ProcessNotFoundError: If no process qualifies
        """
        candidates = 0
        for proc in psutil.process_iter(["pid", "exe"]):
            exe = proc.info.get("exe") or ""
            if self.settings.process_name not in exe:
                continue

            candidates += 1
            try:
                argv = proc.cmdline()
            except _PROCESS_ERRORS:
                continue

            arguments = " ".join(argv)
            if arguments and self._matches(arguments):
                logger.debug("language_server_process_found", pid=proc.pid, exe=exe)
                return ServerProcess(pid=proc.pid, arguments=arguments)

        logger.debug(
            "language_server_process_not_found",
            process_name=self.settings.process_name,
            candidates=candidates,
        )
        raise ProcessNotFoundError()

    def find_listening_port(self, pid: int) -> int:
        """First TCP socket of ``pid`` in LISTEN state with a non-zero port.

        Raises:
            PortNotFoundError: If the process has no such socket or is gone
        """
        try:
            connections = psutil.Process(pid).net_connections(kind="tcp")
        except _PROCESS_ERRORS as e:
            logger.debug("socket_inspection_failed", pid=pid, error=str(e))
            raise PortNotFoundError() from e

        for conn in connections:
            if conn.family not in _INET_FAMILIES:
                continue
            if conn.status != psutil.CONN_LISTEN:
                continue
            port = conn.laddr.port if conn.laddr else 0
            if port > 0:
                return int(port)

        raise PortNotFoundError()

    def discover_connection(self) -> ConnectionInfo:
        """Run process scan, token extraction and port scan once.

        Raises:
            DiscoveryError: If any of the three steps fails
        """
        process = self.find_language_server_process()
        csrf_token = extract_csrf_token(process.arguments, self.settings.csrf_flag)
        port = self.find_listening_port(process.pid)

        connection = ConnectionInfo(pid=process.pid, csrf_token=csrf_token, port=port)
        logger.info(
            "language_server_discovered",
            pid=connection.pid,
            port=connection.port,
            csrf_token=mask_secret(csrf_token),
        )
        return connection
