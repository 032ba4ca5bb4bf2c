"""
Integration runner used by CI and Docker.

This script:
- Starts the tool server process (and a delegate server when asked)
- Launches a client against it
- Sends a batch of tool requests provided as argument

The goal is to validate:
- Socket communication
- Multiprocessing lifecycle
- End-to-end correctness, including composite tools calling a remote server
"""

from multiprocessing import Process
from pathlib import Path
import time
import argparse
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, FilePath, IPvAnyAddress, ValidationError, model_validator

from compute_tools.client.client import REQUEST_SUFFIXES, ToolClient
from compute_tools.common.logger import logger, set_level
from compute_tools.server.server import ToolServer

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    file_path : FilePath
        Path to the file (or archive) holding one ToolRequest JSON per line.
    host : IPvAnyAddress
        Address the server binds to and the client connects to.
    port : int
        Server TCP port.
    delegate_port : int, optional
        When set, a second server is started on this port and composite tools
        reach it over TCP instead of calling in process.
    log_level : str
        Level of the project logger.
    """

    file_path: FilePath
    host: IPvAnyAddress = "127.0.0.1"
    port: int = Field(default=9000, ge=1, le=65535)
    delegate_port: Optional[int] = Field(default=None, ge=1, le=65535)
    log_level: LogLevel = "INFO"

    @model_validator(mode="after")
    def delegate_port_differs(self) -> "CliArgs":
        """A server delegating to itself would wait on its own answer."""
        if self.delegate_port == self.port:
            raise ValueError("delegate_port must differ from port")
        return self


def run_server(
    host: str,
    port: int,
    log_level: str,
    delegate_port: Optional[int] = None,
    max_connections: Optional[int] = 1,
) -> None:
    """
    Start a tool server.

    The server runs in its own process and listens
    for incoming socket connections.
    """
    set_level(log_level)
    server = ToolServer(
        host=host,
        port=port,
        delegate_host=host if delegate_port is not None else None,
        delegate_port=delegate_port or port,
        max_connections=max_connections,
    )
    server.start()


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param list argv: Arguments to parse; sys.argv when None

    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = argparse.ArgumentParser(
        description="Compute tools client/server integration runner"
    )

    parser.add_argument(
        "file_path",
        help="Path to the .jsonl/.txt request file or a .zip/.tar.xz/.7z archive holding one",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Server address")
    parser.add_argument("--port", type=int, default=9000, help="Server TCP port")
    parser.add_argument(
        "--delegate-port",
        type=int,
        default=None,
        help="Start a delegate server on this port for composite tools",
    )
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING or ERROR")

    args = parser.parse_args(argv)

    try:
        return CliArgs(
            file_path=args.file_path,
            host=args.host,
            port=args.port,
            delegate_port=args.delegate_port,
            log_level=args.log_level.upper(),
        )
    except ValidationError as exc:
        parser.error(str(exc))


def build_output_path(input_path: Path) -> Path:
    """
    Construct the output file path based on the input file.

    - Preserves the original folder
    - Replaces dots in archive extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/requests.jsonl
    output: resources/requests_results.txt

    input: resources/requests.tar.xz
    output: resources/requests_tar_xz_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    suffixes = "".join(input_path.suffixes)
    stem = input_path.name[: -len(suffixes)] if suffixes else input_path.name
    # Plain request files keep only their stem
    suffix_safe = "" if suffixes in REQUEST_SUFFIXES else suffixes.replace(".", "_")
    return input_path.with_name(f"{stem}{suffix_safe}_results.txt")


def main() -> None:
    """
    Main function executed by CI or Docker.
    """
    cli_args = parse_args()
    set_level(cli_args.log_level)
    host = str(cli_args.host)
    input_path: Path = Path(cli_args.file_path)
    output_path: Path = build_output_path(input_path)

    processes: List[Process] = []
    if cli_args.delegate_port is not None:
        # Serves delegated calls until terminated
        processes.append(
            Process(
                target=run_server,
                args=(host, cli_args.delegate_port, cli_args.log_level),
                kwargs={"max_connections": None},
            )
        )
    processes.append(
        Process(
            target=run_server,
            args=(host, cli_args.port, cli_args.log_level, cli_args.delegate_port),
        )
    )
    for process in processes:
        process.start()

    # Give the servers time to start listening
    time.sleep(1)

    try:
        client = ToolClient(host=host, port=cli_args.port)
        client.send_file(input_path, output_path)
    finally:
        # Ensure the servers are always stopped
        for process in processes:
            process.terminate()
            process.join()
        logger.info("🛑 Servers stopped")


if __name__ == "__main__":
    main()
