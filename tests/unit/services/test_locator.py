"""Tests for language server process and port discovery."""

import socket
from collections import namedtuple
from unittest.mock import MagicMock, patch

import psutil
import pytest

from agquota.config.core import DiscoverySettings
from agquota.services.language_server import (
    CsrfTokenNotFoundError,
    PortNotFoundError,
    ProcessLocator,
    ProcessNotFoundError,
    extract_csrf_token,
)


LANGUAGE_SERVER_EXE = (
    "/Applications/Antigravity.app/Contents/Resources/app/extensions/antigravity"
    "/bin/language_server_macos_arm"
)
ARGV = [
    LANGUAGE_SERVER_EXE,
    "--enable_lsp",
    "--csrf_token",
    "6a1f0c3e-9b2d-4e8f-a7c5-0d3b2e1f4a6c",
    "--extension_server_port",
    "53100",
    "--app_data_dir",
    "antigravity",
]

Addr = namedtuple("Addr", ["ip", "port"])
Conn = namedtuple("Conn", ["fd", "family", "type", "laddr", "raddr", "status"])


def _proc(pid: int, exe: str | None, argv: list[str] | Exception) -> MagicMock:
    proc = MagicMock()
    proc.pid = pid
    proc.info = {"pid": pid, "exe": exe}
    if isinstance(argv, Exception):
        proc.cmdline.side_effect = argv
    else:
        proc.cmdline.return_value = argv
    return proc


def _listen(port: int, family: int = socket.AF_INET) -> Conn:
    return Conn(3, family, socket.SOCK_STREAM, Addr("127.0.0.1", port), (), "LISTEN")


class TestExtractCsrfToken:
    def test_space_separated(self) -> None:
        token = extract_csrf_token(" ".join(ARGV))
        assert token == "6a1f0c3e-9b2d-4e8f-a7c5-0d3b2e1f4a6c"

    def test_equals_separated(self) -> None:
        assert extract_csrf_token("server --csrf_token=abc-123 --x") == "abc-123"

    def test_missing(self) -> None:
        with pytest.raises(CsrfTokenNotFoundError) as exc_info:
            extract_csrf_token("server --app_data_dir antigravity")
        assert str(exc_info.value) == "Could not extract CSRF token"


class TestFindProcess:
    """Test the process scan."""

    def test_finds_matching_process(self) -> None:
        procs = [
            _proc(10, "/usr/bin/zsh", ["zsh"]),
            _proc(4242, LANGUAGE_SERVER_EXE, ARGV),
        ]
        with patch("psutil.process_iter", return_value=procs):
            process = ProcessLocator().find_language_server_process()

        assert process.pid == 4242
        assert "--csrf_token" in process.arguments
        procs[0].cmdline.assert_not_called()

    def test_skips_process_without_markers(self) -> None:
        """A language server launched by another IDE is not ours."""
        exe = "/Applications/Windsurf.app/Contents/Resources/bin/language_server_macos"
        argv = [exe, "--csrf_token", "abc", "--app_data_dir", "windsurf"]
        with patch("psutil.process_iter", return_value=[_proc(7, exe, argv)]):
            with pytest.raises(ProcessNotFoundError):
                ProcessLocator().find_language_server_process()

    def test_skips_inaccessible_processes(self) -> None:
        procs = [
            _proc(5, LANGUAGE_SERVER_EXE, psutil.AccessDenied(5)),
            _proc(6, LANGUAGE_SERVER_EXE, psutil.NoSuchProcess(6)),
            _proc(4242, LANGUAGE_SERVER_EXE, ARGV),
        ]
        with patch("psutil.process_iter", return_value=procs):
            assert ProcessLocator().find_language_server_process().pid == 4242

    def test_not_running(self) -> None:
        with patch("psutil.process_iter", return_value=[_proc(1, None, [])]):
            with pytest.raises(ProcessNotFoundError) as exc_info:
                ProcessLocator().find_language_server_process()
        assert str(exc_info.value) == "Antigravity Language Server not running"

    def test_custom_process_name(self) -> None:
        settings = DiscoverySettings(process_name="language_server_linux")
        exe = "/opt/antigravity/bin/language_server_linux_x64"
        procs = [_proc(9, exe, [exe, *ARGV[1:]])]
        with patch("psutil.process_iter", return_value=procs):
            assert ProcessLocator(settings).find_language_server_process().pid == 9


class TestFindListeningPort:
    """Test the socket scan."""

    def _process_with(self, connections: list[Conn] | Exception) -> MagicMock:
        process = MagicMock()
        if isinstance(connections, Exception):
            process.net_connections.side_effect = connections
        else:
            process.net_connections.return_value = connections
        return process

    def test_first_listening_port(self) -> None:
        connections = [
            Conn(
                1,
                socket.AF_INET,
                socket.SOCK_STREAM,
                Addr("127.0.0.1", 50000),
                Addr("127.0.0.1", 443),
                "ESTABLISHED",
            ),
            _listen(0),
            _listen(53125, socket.AF_INET6),
            _listen(53126),
        ]
        with patch("psutil.Process", return_value=self._process_with(connections)):
            assert ProcessLocator().find_listening_port(4242) == 53125

    def test_ignores_unix_sockets(self) -> None:
        connections = [_listen(53125, socket.AF_UNIX)]
        with patch("psutil.Process", return_value=self._process_with(connections)):
            with pytest.raises(PortNotFoundError):
                ProcessLocator().find_listening_port(4242)

    def test_no_sockets(self) -> None:
        with patch("psutil.Process", return_value=self._process_with([])):
            with pytest.raises(PortNotFoundError) as exc_info:
                ProcessLocator().find_listening_port(4242)
        assert str(exc_info.value) == "Could not find listening port"

    def test_process_gone(self) -> None:
        with patch("psutil.Process", side_effect=psutil.NoSuchProcess(4242)):
            with pytest.raises(PortNotFoundError):
                ProcessLocator().find_listening_port(4242)

    def test_access_denied(self) -> None:
        process = self._process_with(psutil.AccessDenied(4242))
        with patch("psutil.Process", return_value=process):
            with pytest.raises(PortNotFoundError):
                ProcessLocator().find_listening_port(4242)


class TestDiscoverConnection:
    def test_assembles_connection(self) -> None:
        process = MagicMock()
        process.net_connections.return_value = [_listen(53125)]
        with (
            patch(
                "psutil.process_iter",
                return_value=[_proc(4242, LANGUAGE_SERVER_EXE, ARGV)],
            ),
            patch("psutil.Process", return_value=process),
        ):
            connection = ProcessLocator().discover_connection()

        assert connection.pid == 4242
        assert connection.port == 53125
        assert connection.csrf_token == "6a1f0c3e-9b2d-4e8f-a7c5-0d3b2e1f4a6c"
        assert connection.base_url == "https://127.0.0.1:53125"
