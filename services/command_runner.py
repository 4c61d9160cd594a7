"""
chip-tool command runner
Runs one chip-tool invocation as a subprocess and collects its output
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from services.command_builder import redact_args
from services.config_service import BridgeConfig
from services.errors import CommandError, CommandTimeoutError, ToolNotFoundError

logger = logging.getLogger(__name__)

# Longest single output line accepted from chip-tool (bytes)
STREAM_LIMIT = 4 * 1024 * 1024


class ChipToolRunner:
    """Executes chip-tool with an argument list (no shell involved)"""

    def __init__(self, config: BridgeConfig):
        self.config = config

    @property
    def executable(self) -> str:
        return str(self.config.chip_tool)

    def is_available(self) -> bool:
        return self.config.chip_tool.is_file()

    async def run(self, args: List[str], timeout: Optional[float] = None,
                  secrets: Iterable[str] = ()) -> str:
        """
        Run chip-tool and return its stdout

        The subprocess is shielded from the caller's cancellation: once started it
        runs to completion or timeout even if the HTTP client goes away.

        Args:
            args: chip-tool arguments (see command_builder.build_command)
            timeout: Seconds before the process is killed (default from config)
            secrets: Values to mask when logging the command line

        Raises:
            ToolNotFoundError: chip-tool binary missing
            CommandTimeoutError: process exceeded the timeout
            CommandError: non-zero exit status or unreadable output
        """
        if timeout is None:
            timeout = self.config.command_timeout
        printable = " ".join(redact_args(args, list(secrets)))
        logger.info(f"Running: {self.executable} {printable}")

        if not self.is_available():
            message = f"chip-tool not found: {self.executable}"
            logger.error(message)
            raise ToolNotFoundError(message)

        task = asyncio.ensure_future(self._execute(args, timeout))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            logger.warning("Request cancelled, chip-tool keeps running in the background")
            task.add_done_callback(_log_detached_result)
            raise

    async def _execute(self, args: List[str], timeout: float) -> str:
        cwd = str(self.config.sdk_path) if self.config.sdk_path.is_dir() else None
        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                limit=STREAM_LIMIT,
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.error(f"Failed to start chip-tool: {e}")
            raise ToolNotFoundError(f"chip-tool could not be started: {e}")

        stdout_lines: List[str] = []
        stderr_lines: List[str] = []

        async def drain(stream: asyncio.StreamReader, sink: List[str], label: str):
            async for raw in stream:
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                sink.append(line)
                logger.debug(f"[{label}] {line}")

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    drain(proc.stdout, stdout_lines, "STDOUT"),
                    drain(proc.stderr, stderr_lines, "STDERR"),
                    proc.wait(),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            await _kill(proc)
            logger.error(f"chip-tool timed out after {timeout:g}s")
            raise CommandTimeoutError(
                f"Timeout: chip-tool did not finish within {timeout:g}s",
                stdout=_join(stdout_lines),
                stderr=_join(stderr_lines),
                returncode=proc.returncode,
            )
        except Exception as e:
            await _kill(proc)
            logger.error(f"Failed to read chip-tool output: {e}")
            raise CommandError(
                f"Failed to read chip-tool output: {e}",
                stdout=_join(stdout_lines),
                stderr=_join(stderr_lines),
                returncode=proc.returncode,
            )

        stdout = _join(stdout_lines)
        stderr = _join(stderr_lines)

        if proc.returncode != 0:
            logger.error(f"chip-tool exited with code {proc.returncode}")
            if stderr:
                logger.error(f"stderr: {stderr.strip()}")
            raise CommandError(
                f"Command failed with exit code {proc.returncode}",
                stdout=stdout,
                stderr=stderr,
                returncode=proc.returncode,
            )

        logger.info(f"chip-tool finished ({len(stdout_lines)} lines of output)")
        return stdout


async def _kill(proc: asyncio.subprocess.Process):
    """Kill the process if it is still running and reap it"""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


def _log_detached_result(task: asyncio.Future):
    """Report the outcome of a run whose caller was cancelled"""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(f"Background chip-tool run failed: {error}")
    else:
        logger.info("Background chip-tool run completed")


def _join(lines: List[str]) -> str:
    return "\n".join(lines) + "\n" if lines else ""
