"""Provides a TCP server based transport for the network module emulator."""

import logging
import select
import socket
import threading
from collections.abc import Callable
from typing import Any

_LOGGER = logging.getLogger(__name__)

LOGIN_PROMPT = "Login:"
LOGIN_OK = "OK"
LOGIN_FAILED = "FAILED"


class Server:
    """
    Represents a TCP server based transport for the network module emulator.

    Each client must send the password as its first line. Rejected clients
    are sent ``FAILED`` and disconnected; accepted clients are sent ``OK``
    and receive every line written with :py:meth:`write_to_all_clients`.
    """

    _stopflag: bool
    _server_accept_thread: threading.Thread
    _password: str
    _handle_command: Callable[[str], None]
    _on_login: Callable[[], None] | None
    _handle_command_lock: threading.Lock
    _listen_socket: socket.socket
    _clients_lock: threading.Lock
    _clients: list[socket.socket]

    def __init__(
        self,
        password: str,
        handle_command: Callable[[str], None],
        on_login: Callable[[], None] | None = None,
    ) -> None:
        """Create a server."""
        self._password = password
        self._handle_command = handle_command
        self._on_login = on_login
        self._handle_command_lock = threading.Lock()
        self._clients_lock = threading.Lock()
        self._clients = []
        self._stopflag = True
        self._listening = threading.Event()

    def start(self, host: str, port: int) -> None:
        """Start the server loop listening on the specified host+port."""
        self._stopflag = False
        self._listening.clear()
        self._server_accept_thread = threading.Thread(
            target=self._loop, args=(host, port), name="Server accept loop"
        )
        self._server_accept_thread.start()
        self._listening.wait(timeout=5)

    def stop(self) -> None:
        """Stop the server listen loop, and disconnect all clients."""
        _LOGGER.debug("Stopping Server")
        self._stopflag = True
        self._server_accept_thread.join()

    @property
    def client_count(self) -> int:
        """Number of logged-in clients."""
        with self._clients_lock:
            return len(self._clients)

    def disconnect_all_clients(self) -> None:
        """Shutdown all client socket connections."""
        _LOGGER.debug("Server disconnecting all clients")
        with self._clients_lock:
            clients = list(self._clients)
        for conn in clients:
            _close_client(conn)

    def _loop(self, host: str, port: int) -> None:
        """
        Server accept loop.

        In a loop: waits for a socket connection, then starts a thread to service it.
        """
        _LOGGER.debug("Server accept loop running")
        self._listen_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listen_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listen_socket.bind((host, port))
        self._listen_socket.listen(5)
        self._listen_socket.settimeout(0.5)
        self._listening.set()
        threadlist = []

        _LOGGER.info("Server listening on %s:%s", host, port)
        while not self._stopflag:
            try:
                conn, addr = self._listen_socket.accept()
            except TimeoutError:
                continue
            _LOGGER.info("connection %s at %s", conn, addr)
            newthread = threading.Thread(
                target=self._on_client_connected,
                args=(conn, addr),
                name=f"Server thread for client@{addr}",
            )
            threadlist.append(newthread)
            newthread.start()
        _LOGGER.info("Server accept loop ending - closing sockets")
        self._listen_socket.close()
        self.disconnect_all_clients()
        for t in threadlist:
            _LOGGER.info("Server accept loop - waiting for %s to end", t)
            t.join()
        _LOGGER.info("Server accept loop ended")

    def _on_client_connected(self, conn: socket.socket, addr: Any) -> None:
        """
        Service a client connection.

        Prompts for the password, then in a loop:
        * Wait for a line and read it from the socket
        * Call the command handler to process it
        """
        _LOGGER.info("Client thread started for: %s : %s", addr, conn)
        conn.setblocking(False)  # noqa: FBT003 # bool arg dictated by socket api
        lines = _LineReader(conn)
        _send_line(conn, LOGIN_PROMPT)

        password = lines.read_line(lambda: self._stopflag)
        if password is None:
            _LOGGER.info("client %s disconnected before login", addr)
            _close_client(conn)
            return
        if password != self._password:
            _LOGGER.info("client %s sent an incorrect password", addr)
            _send_line(conn, LOGIN_FAILED)
            _close_client(conn)
            return

        _send_line(conn, LOGIN_OK)
        with self._clients_lock:
            self._clients.append(conn)
        if self._on_login is not None:
            self._on_login()

        while not self._stopflag:
            line = lines.read_line(lambda: self._stopflag)
            if line is None:
                break
            _LOGGER.info("server data-received callback for %s : %r", conn, line)
            with self._handle_command_lock:
                self._handle_command(line)

        _LOGGER.info("client %s disconnected %s", addr, conn)
        with self._clients_lock:
            if conn in self._clients:
                self._clients.remove(conn)
        _close_client(conn)
        _LOGGER.info("Client thread ending for: %s : %s", addr, conn)

    def write_to_all_clients(self, line: str) -> None:
        """Send a line to all logged-in clients."""
        _LOGGER.debug("Server writing line %r to all clients", line)
        with self._clients_lock:
            for conn in self._clients:
                _send_line(conn, line)


class _LineReader:
    """Accumulates bytes from a non-blocking socket into CRLF lines."""

    def __init__(self, conn: socket.socket) -> None:
        self._conn = conn
        self._buffer = b""

    def read_line(self, stopped: Callable[[], bool]) -> str | None:
        """Read one line, or return None once the client or server is gone."""
        while b"\n" not in self._buffer:
            if stopped() or self._conn.fileno() == -1:
                return None
            try:
                read_sockets, _, _ = select.select([self._conn], [], [], 0.1)
                if not read_sockets:
                    continue
                data = self._conn.recv(1024)
            except (OSError, ValueError) as e:
                # ValueError: the socket was closed by another thread
                _LOGGER.info("Exception during recv: %s", e)
                return None
            if not data:
                return None
            self._buffer += data

        raw, self._buffer = self._buffer.split(b"\n", 1)
        return raw.rstrip(b"\r").decode("ascii", errors="replace")


def _send_line(conn: socket.socket, line: str) -> None:
    try:
        conn.sendall((line + "\r\n").encode("ascii"))
    except OSError:
        _LOGGER.exception("Connection closed - failed to send line %r", line)


def _close_client(conn: socket.socket) -> None:
    if conn.fileno() == -1:
        return
    _LOGGER.debug("Disconnecting client %s", conn)
    try:
        conn.shutdown(socket.SHUT_RDWR)
    except OSError:
        _LOGGER.debug("Shutdown while already disconnected - ignore")
    conn.close()
