"""TCP client for a ToolServer."""
from pathlib import Path
import socket
import tarfile
import tempfile
from typing import Any, List, Mapping, Optional
import zipfile

import py7zr
from pydantic import BaseModel, ConfigDict, Field, FilePath, IPvAnyAddress

from compute_tools.common.logger import logger
from compute_tools.common.models import ToolRequest, ToolResponse

# Request files found inside archives, in order of preference
REQUEST_SUFFIXES = (".jsonl", ".txt")


class ToolClient(BaseModel):
    """
    TCP client sending tool requests to a ToolServer and receiving responses.

    The TCP client:
    - sends one request (``call``/``send_raw``) or a whole batch (``send_file``)
    - reads batches from a plain .jsonl/.txt file or from an archive
    - receives one ToolResponse JSON line per request, in request order
    """

    # Immutable: the endpoint must not change while requests are in flight
    model_config = ConfigDict(frozen=True)

    host: IPvAnyAddress = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=9000, ge=1, le=65535, description="Server TCP port")

    def _exchange(self, payload: bytes, sink: Optional[Any] = None) -> str:
        """
        Send a payload, half-close the socket and read until the server closes.

        :param bytes payload: Newline-delimited requests
        :param sink: Optional open text file receiving the response as it arrives

        :return: Full response text (empty when streamed to ``sink``)
        :rtype: str
        :raises OSError: If the connection fails
        """
        chunks = []
        with socket.create_connection((str(self.host), self.port)) as s:
            s.sendall(payload)
            # Signal that no more requests will be sent
            s.shutdown(socket.SHUT_WR)
            while True:
                # recv() returns b"" once the server has closed the connection
                chunk = s.recv(4096)
                if not chunk:
                    break
                if sink is None:
                    chunks.append(chunk)
                else:
                    # Flush per chunk so progress survives an interruption
                    sink.write(chunk.decode())
                    sink.flush()
        return b"".join(chunks).decode()

    def send_raw(self, body: str) -> str:
        """
        Send one serialized ToolRequest and return the serialized ToolResponse.

        :param str body: ToolRequest JSON text (a single line)

        :return: ToolResponse JSON text
        :rtype: str
        :raises OSError: If the connection fails or the server sends nothing back
        """
        response = self._exchange(body.strip().encode() + b"\n").strip()
        if not response:
            raise ConnectionError(f"No response from {self.host}:{self.port}")
        return response.splitlines()[0]

    def call(self, tool: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResponse:
        """
        Invoke one tool on the server.

        :param str tool: Tool name
        :param Mapping arguments: Tool input

        :return: Parsed response envelope
        :rtype: ToolResponse
        """
        request = ToolRequest(tool=tool, arguments=dict(arguments or {}))
        return ToolResponse.model_validate_json(self.send_raw(request.model_dump_json()))

    def send_file(
        self,
        input_file: FilePath,
        output_file: Path,
    ) -> None:
        """
        Send a batch of requests, one JSON object per line, and write the responses to a file.

        :param FilePath input_file: Path to the .jsonl/.txt file or archive
        :param Path output_file: Path where responses will be written

        :return: None
        :raises ValueError: If the archive format is unsupported or holds no request file
        """
        input_file = Path(input_file)
        if input_file.suffix in REQUEST_SUFFIXES:
            content = input_file.read_text()
        else:
            content = self._extract_archive(input_file)

        logger.info(f"📨 Sending {input_file.name} to {self.host}:{self.port}")
        with Path(output_file).open("w", encoding="utf-8") as f_out:
            self._exchange(content.encode(), sink=f_out)
        logger.info(f"📨✅ Responses written to {output_file}")

    @staticmethod
    def _pick(names: List[str], kind: str) -> str:
        for suffix in REQUEST_SUFFIXES:
            matches = [name for name in names if name.endswith(suffix)]
            if matches:
                return matches[0]
        raise ValueError(f"📄❌ No .jsonl or .txt file found in {kind} archive")

    def _extract_archive(self, archive_path: Path) -> str:
        """
        Extract the first request file found in a supported archive and return its content.

        Supported formats:
        - .zip
        - .tar.xz
        - .7z

        :param Path archive_path: Path to the archive file

        :return: Content of the extracted request file
        :rtype: str
        :raises ValueError: If no request file is found or the format is unsupported
        """
        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            if archive_path.suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zf:
                    name = self._pick(zf.namelist(), "zip")
                    zf.extract(name, path=tmpdir_path)
                    return (tmpdir_path / name).read_text()

            elif archive_path.suffixes[-2:] == [".tar", ".xz"]:
                with tarfile.open(archive_path, "r:xz") as tf:
                    name = self._pick(tf.getnames(), "tar.xz")
                    tf.extract(name, path=tmpdir_path, filter="data")
                    return (tmpdir_path / name).read_text()

            elif archive_path.suffix == ".7z":
                with py7zr.SevenZipFile(archive_path, mode="r") as archive:
                    name = self._pick(archive.getnames(), "7z")
                    archive.extract(targets=[name], path=tmpdir_path)
                    return (tmpdir_path / name).read_text()

            else:
                raise ValueError(f"📄❌ Unsupported archive format: {archive_path.suffix}")
