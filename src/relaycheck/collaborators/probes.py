# src/relaycheck/collaborators/probes.py
"""Size probes for completion detection.

FileSizeProbe reads a local (or volume-mounted) file. ComposeFileSizeProbe
asks a running compose service for the size of a file inside its container,
which is how sink outputs are watched when they are not mounted on the host.
"""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path

from relaycheck.contracts.errors import ProbeFailure
from relaycheck.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COMPOSE_COMMAND = "docker compose"


class FileSizeProbe:
    """Byte size of a file on the local filesystem; 0 until it exists."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def __repr__(self) -> str:
        return f"FileSizeProbe({str(self._path)!r})"

    async def read_size(self) -> int:
        try:
            stat = await asyncio.to_thread(self._path.stat)
        except FileNotFoundError:
            return 0
        except OSError as exc:
            raise ProbeFailure(str(self._path), str(exc)) from exc
        return stat.st_size


class ComposeFileSizeProbe:
    """Byte size of a file inside a compose service's container.

    Runs ``<compose> exec -T <service> sh -c "wc -c < <path> 2>/dev/null || echo 0"``.
    A missing file reports 0 through the shell fallback. A non-zero exit of the
    compose command (service not running yet, daemon hiccup) raises ProbeFailure.
    """

    def __init__(
        self,
        service: str,
        path: str,
        *,
        compose_command: str = DEFAULT_COMPOSE_COMMAND,
    ) -> None:
        self._service = service
        self._path = path
        self._compose_command = compose_command

    @property
    def identity(self) -> str:
        return f"{self._service}:{self._path}"

    def __repr__(self) -> str:
        return f"ComposeFileSizeProbe({self._service!r}, {self._path!r})"

    def command(self) -> list[str]:
        """The argv executed for one size read."""
        script = f"wc -c < {shlex.quote(self._path)} 2>/dev/null || echo 0"
        return [*shlex.split(self._compose_command), "exec", "-T", self._service, "sh", "-c", script]

    async def read_size(self) -> int:
        process = await asyncio.create_subprocess_exec(
            *self.command(),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await process.communicate()
        finally:
            # A cancelled poll must not leave the exec running.
            if process.returncode is None:
                process.terminate()
                await process.wait()
        if process.returncode != 0:
            reason = stderr.decode("utf-8", errors="replace").strip() or f"exit status {process.returncode}"
            raise ProbeFailure(self.identity, reason)
        return parse_size_output(stdout.decode("utf-8", errors="replace"), identity=self.identity)


def parse_size_output(output: str, *, identity: str) -> int:
    """Parse ``wc -c`` output; anything that is not an integer counts as 0."""
    text = output.strip()
    try:
        return int(text)
    except ValueError:
        logger.debug("Unparsable size output", identity=identity, output=text)
        return 0
