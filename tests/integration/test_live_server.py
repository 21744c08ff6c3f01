"""
End-to-end tests over real sockets against a server in a background thread.
"""

import gzip
import socket
import threading
import time
from pathlib import Path

import pytest

from minihttp import ServerConfig
from minihttp.http.response import HTTPResponse


class TestScenarios:
    """Byte-exact request/response pairs."""

    def test_root(self, live_server):
        response = live_server.request(b"GET / HTTP/1.1\r\nHost: localhost:4221\r\n\r\n")
        assert response == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_echo_plain(self, live_server):
        response = live_server.request(b"GET /echo/abc HTTP/1.1\r\nHost: localhost\r\n\r\n")

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abc"
        )

    def test_echo_gzip(self, live_server):
        response = live_server.request(
            b"GET /echo/abc HTTP/1.1\r\nHost: localhost\r\nAccept-Encoding: gzip\r\n\r\n"
        )
        decoded = HTTPResponse.from_bytes(response)

        assert decoded.status == 200
        assert decoded.headers[0] == ("Content-Type", "text/plain")
        assert decoded.get_header("Content-Encoding") == "gzip"
        assert decoded.get_header("Content-Length") == str(len(decoded.body))
        assert gzip.decompress(decoded.body) == b"abc"

    def test_echo_gzip_among_others(self, live_server):
        response = live_server.request(
            b"GET /echo/abc HTTP/1.1\r\n"
            b"Accept-Encoding: invalid-1, gzip, invalid-2\r\n\r\n"
        )
        assert b"Content-Encoding: gzip\r\n" in response

    def test_echo_unsupported_encoding(self, live_server):
        response = live_server.request(
            b"GET /echo/abc HTTP/1.1\r\nAccept-Encoding: invalid-encoding\r\n\r\n"
        )
        assert b"Content-Encoding" not in response
        assert response.endswith(b"\r\n\r\nabc")

    def test_user_agent(self, live_server):
        response = live_server.request(
            b"GET /user-agent HTTP/1.1\r\nHost: localhost\r\nUser-Agent: foobar/1.2.3\r\n\r\n"
        )

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 12\r\n"
            b"\r\n"
            b"foobar/1.2.3"
        )

    def test_missing_file(self, live_server):
        response = live_server.request(b"GET /files/missing.txt HTTP/1.1\r\nHost: x\r\n\r\n")
        assert response == b"HTTP/1.1 404 Not Found\r\n\r\n"

    def test_post_then_get(self, live_server, files_dir: Path):
        created = live_server.request(
            b"POST /files/new.txt HTTP/1.1\r\n"
            b"Host: x\r\n"
            b"Content-Length: 5\r\n"
            b"Content-Type: application/octet-stream\r\n"
            b"\r\n"
            b"hello"
        )
        fetched = live_server.request(b"GET /files/new.txt HTTP/1.1\r\nHost: x\r\n\r\n")

        assert created == b"HTTP/1.1 201 Created\r\n\r\n"
        assert fetched == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: application/octet-stream\r\n"
            b"Content-Length: 5\r\n"
            b"\r\n"
            b"hello"
        )
        assert (files_dir / "new.txt").read_bytes() == b"hello"

    def test_unknown_path(self, live_server):
        response = live_server.request(b"GET /index.html HTTP/1.1\r\n\r\n")
        assert response == b"HTTP/1.1 404 Not Found\r\n\r\n"


class TestFileSemantics:
    def test_get_twice_identical(self, live_server, files_dir: Path):
        (files_dir / "data.bin").write_bytes(bytes(range(200)))
        request = b"GET /files/data.bin HTTP/1.1\r\n\r\n"

        first = live_server.request(request)
        second = live_server.request(request)

        assert first == second
        assert first.endswith(bytes(range(200)))

    def test_post_existing_conflict(self, live_server, files_dir: Path):
        (files_dir / "taken.txt").write_bytes(b"original")

        response = live_server.request(
            b"POST /files/taken.txt HTTP/1.1\r\nContent-Length: 3\r\n\r\nnew"
        )

        assert response == b"HTTP/1.1 409 Conflict\r\n\r\n"
        assert (files_dir / "taken.txt").read_bytes() == b"original"

    @pytest.mark.parametrize("method", [b"PUT", b"DELETE"])
    def test_other_methods(self, live_server, method: bytes):
        response = live_server.request(method + b" /files/x HTTP/1.1\r\n\r\n")
        assert response == b"HTTP/1.1 405 Method Not Allowed\r\nAllow: GET, POST\r\n\r\n"

    def test_traversal_forbidden(self, live_server):
        response = live_server.request(b"GET /files/../../etc/passwd HTTP/1.1\r\n\r\n")
        assert response == b"HTTP/1.1 403 Forbidden\r\n\r\n"

    def test_body_arrives_late(self, live_server, files_dir: Path):
        """Head and body in separate packets: the reader waits for Content-Length."""
        with socket.create_connection(("127.0.0.1", live_server.port), timeout=5.0) as s:
            s.sendall(b"POST /files/late.txt HTTP/1.1\r\nContent-Length: 5\r\n\r\n")
            time.sleep(0.2)
            s.sendall(b"hello")
            response = s.recv(4096)

        assert response == b"HTTP/1.1 201 Created\r\n\r\n"
        assert (files_dir / "late.txt").read_bytes() == b"hello"


class TestProtocolErrors:
    @pytest.mark.parametrize("raw", [
        b"NONSENSE\r\n\r\n",
        b"PATCH / HTTP/1.1\r\n\r\n",
        b"GET /\r\n\r\n",
    ])
    def test_closed_without_response(self, live_server, raw: bytes):
        assert live_server.request(raw) == b""

    def test_client_sends_nothing(self, live_server):
        with socket.create_connection(("127.0.0.1", live_server.port), timeout=5.0) as s:
            s.shutdown(socket.SHUT_WR)
            assert s.recv(4096) == b""

    def test_server_survives_bad_requests(self, live_server):
        live_server.request(b"garbage\r\n\r\n")
        assert live_server.request(b"GET / HTTP/1.1\r\n\r\n") == b"HTTP/1.1 200 OK\r\n\r\n"


class TestConcurrency:
    def test_parallel_clients(self, live_server):
        results = {}

        def client(i: int):
            results[i] = live_server.request(f"GET /echo/{i} HTTP/1.1\r\n\r\n".encode())

        threads = [threading.Thread(target=client, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert len(results) == 20
        for i, response in results.items():
            assert response.endswith(f"\r\n\r\n{i}".encode())

    def test_slow_client_does_not_block_others(self, live_server):
        with socket.create_connection(("127.0.0.1", live_server.port), timeout=5.0) as slow:
            slow.sendall(b"GET /echo/slow HTTP/1.1\r\n")  # head not finished

            assert live_server.request(b"GET / HTTP/1.1\r\n\r\n") == b"HTTP/1.1 200 OK\r\n\r\n"

            slow.sendall(b"\r\n")
            assert slow.recv(4096).endswith(b"slow")

    def test_full_queue_gets_503(self, files_dir: Path, live_server_factory):
        live = live_server_factory(single_worker_config(files_dir))
        pool = live.server._thread_pool

        with socket.create_connection(("127.0.0.1", live.port), timeout=5.0) as busy:
            wait_for(lambda: pool.busy_workers == 1)

            with socket.create_connection(("127.0.0.1", live.port), timeout=5.0) as queued:
                wait_for(lambda: pool.pending == 1)

                rejected = live.request(b"GET / HTTP/1.1\r\n\r\n")
                assert rejected == b"HTTP/1.1 503 Service Unavailable\r\n\r\n"

                busy.sendall(b"GET / HTTP/1.1\r\n\r\n")
                assert busy.recv(4096) == b"HTTP/1.1 200 OK\r\n\r\n"
                queued.sendall(b"GET /echo/q HTTP/1.1\r\n\r\n")
                assert queued.recv(4096).endswith(b"q")

    def test_trickling_rejected_client_does_not_stall_accept(
        self, files_dir: Path, live_server_factory
    ):
        live = live_server_factory(single_worker_config(files_dir))
        pool = live.server._thread_pool
        stop = threading.Event()

        def trickle(sock: socket.socket):
            while not stop.is_set():
                try:
                    sock.sendall(b"x")
                except OSError:
                    return
                time.sleep(0.1)

        with socket.create_connection(("127.0.0.1", live.port), timeout=5.0) as busy:
            wait_for(lambda: pool.busy_workers == 1)

            with socket.create_connection(("127.0.0.1", live.port), timeout=5.0) as queued:
                wait_for(lambda: pool.pending == 1)

                with socket.create_connection(("127.0.0.1", live.port), timeout=5.0) as slow:
                    sender = threading.Thread(target=trickle, args=(slow,), daemon=True)
                    sender.start()
                    time.sleep(0.2)

                    try:
                        started = time.monotonic()
                        rejected = live.request(b"GET / HTTP/1.1\r\n\r\n")

                        assert rejected == b"HTTP/1.1 503 Service Unavailable\r\n\r\n"
                        assert time.monotonic() - started < 2.0
                    finally:
                        stop.set()
                        sender.join(timeout=5.0)

                busy.sendall(b"GET / HTTP/1.1\r\n\r\n")
                assert busy.recv(4096) == b"HTTP/1.1 200 OK\r\n\r\n"
                queued.sendall(b"GET / HTTP/1.1\r\n\r\n")
                assert queued.recv(4096) == b"HTTP/1.1 200 OK\r\n\r\n"


def single_worker_config(files_dir: Path) -> ServerConfig:
    """One worker and a one-slot queue: the third connection overflows."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        min_workers=1,
        max_workers=1,
        queue_size=1,
        timeout=5.0,
        directory=str(files_dir),
        log_level="WARNING",
    )


def wait_for(condition, timeout: float = 5.0):
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached")
        time.sleep(0.01)


class TestLifecycle:
    def test_binds_requested_port(self, config: ServerConfig, free_port: int, live_server_factory):
        config.port = free_port
        live = live_server_factory(config)

        assert live.port == free_port
        assert live.request(b"GET / HTTP/1.1\r\n\r\n") == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_shutdown_releases_port(self, config: ServerConfig, live_server_factory):
        live = live_server_factory(config)
        port = live.port
        live.stop()

        with pytest.raises(OSError):
            socket.create_connection(("127.0.0.1", port), timeout=1.0).close()
