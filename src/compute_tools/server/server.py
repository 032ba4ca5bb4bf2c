"""TCP server that evaluates tool requests using worker processes."""
from multiprocessing import Pipe, Process, cpu_count
from multiprocessing.connection import Connection
import socket
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress

from compute_tools.common.envelope import error_response
from compute_tools.common.logger import logger
from compute_tools.server.worker import WorkerProcess


class ToolServer(BaseModel):
    """
    TCP socket server answering newline-delimited ToolRequest JSON.

    Features:
        - Spawns one worker process per request line.
        - Runs at most CPU-count workers at once.
        - Ensures each worker is joined as soon as it has answered.
        - Replies with one ToolResponse JSON line per request, in request order.
    """

    # Allow arbitrary types like multiprocessing.Connection
    model_config = ConfigDict(arbitrary_types_allowed=True)

    host: IPvAnyAddress = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=9000, ge=1, le=65535, description="Server TCP port")
    delegate_host: Optional[IPvAnyAddress] = Field(
        default=None, description="Server hosting delegated tools; composite tools stay in process when unset"
    )
    delegate_port: int = Field(default=9000, ge=1, le=65535, description="Port of the delegate server")
    max_connections: Optional[int] = Field(
        default=None, ge=1, description="Stop after this many client connections; serve forever when unset"
    )

    def _receive_data(self, conn: socket.socket) -> List[str]:
        """
        Receive all data from the client connection and return non-empty lines.

        :param socket.socket conn: Connected client socket

        :return: List of non-empty request lines
        :rtype: List[str]
        """
        # Data may arrive in several packets; read until the client half-closes
        chunks: List[bytes] = []
        while True:
            chunk: bytes = conn.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        lines: List[str] = b"".join(chunks).decode().splitlines()
        return [line.strip() for line in lines if line.strip()]

    def _spawn_worker(self, request_line: str, line_number: int) -> Tuple[Process, Connection]:
        """
        Spawn a WorkerProcess for the given request line and return process and pipe.

        :param str request_line: ToolRequest JSON text
        :param int line_number: Position of the request in the stream

        :return: Tuple of (Process, parent end of the pipe)
        :rtype: Tuple[Process, Connection]
        """
        parent_conn, child_conn = Pipe()
        worker = WorkerProcess(
            conn=child_conn,
            request_line=request_line,
            line_number=line_number,
            delegate_host=self.delegate_host,
            delegate_port=self.delegate_port,
        )
        process = Process(target=worker.run)
        process.start()
        # The child owns its end now
        child_conn.close()
        return process, parent_conn

    def _collect_finished_workers(
        self, active_workers: List[Tuple[int, Process, Connection]], responses: Dict[int, str]
    ) -> None:
        """
        Collect responses from all workers that have answered.

        Finished workers are joined and removed from the active_workers list. A worker
        that exits without answering yields an error response for its line.

        :param list active_workers: List of tuples (line number, Process, Connection)
        :param dict responses: Response JSON keyed by line number, filled in place
        """
        # Iterate in reverse to safely remove finished workers while iterating
        for i in reversed(range(len(active_workers))):
            line_number, proc, pipe_conn = active_workers[i]
            if not pipe_conn.poll():
                continue
            try:
                responses[line_number] = pipe_conn.recv()["response"]
            except EOFError:
                logger.error(f"👷❌ Worker for line {line_number} exited without a response")
                responses[line_number] = error_response(
                    RuntimeError(f"Worker for line {line_number} exited without a response")
                ).model_dump_json()
            pipe_conn.close()
            proc.join()
            active_workers.pop(i)

    def process_lines(self, lines: List[str]) -> List[str]:
        """
        Evaluate request lines in worker processes, respecting max CPU cores.

        :param list lines: Non-empty ToolRequest JSON lines

        :return: ToolResponse JSON lines, in request order
        :rtype: List[str]
        """
        if not lines:
            return []
        max_workers: int = min(cpu_count(), len(lines))
        active_workers: List[Tuple[int, Process, Connection]] = []
        responses: Dict[int, str] = {}

        for line_number, line in enumerate(lines, start=1):
            # Wait until a worker slot is available
            while len(active_workers) >= max_workers:
                self._collect_finished_workers(active_workers, responses)
            active_workers.append((line_number, *self._spawn_worker(line, line_number)))

        while active_workers:
            self._collect_finished_workers(active_workers, responses)

        return [responses[line_number] for line_number in range(1, len(lines) + 1)]

    def _serve_connection(self, conn: socket.socket) -> None:
        with conn:
            lines: List[str] = self._receive_data(conn)
            logger.info(f"🖥️ Received {len(lines)} request(s)")
            responses = self.process_lines(lines)
            try:
                conn.sendall("".join(f"{response}\n" for response in responses).encode())
                logger.info("✉️ Responses sent to client")
            except OSError as exc:
                logger.error(f"🔌❌ Client disconnected before receiving responses: {exc}")

    def start(self) -> None:
        """
        Start the TCP server, accept client connections, and answer their requests.

        Steps:
            1. Bind and listen on the specified host and port.
            2. Accept a client connection.
            3. Receive all request lines until the client half-closes.
            4. Evaluate each line in its own worker process.
            5. Send the responses back in request order and close the connection.
            6. Repeat from 2 until ``max_connections`` is reached, if set.

        :return: None
        """
        logger.info(f"🖥️ Starting server on {self.host}:{self.port}")

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((str(self.host), self.port))
            s.listen()
            logger.info("🖥️ Server listening")

            served = 0
            while self.max_connections is None or served < self.max_connections:
                conn, address = s.accept()
                logger.info(f"🔌 Connection from {address[0]}:{address[1]}")
                self._serve_connection(conn)
                served += 1
