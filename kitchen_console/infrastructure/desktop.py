import asyncio
import logging
import shlex
from typing import Optional, Sequence

from kitchen_console.application.interfaces import PlatformNotifier, RingPlayer
from kitchen_console.infrastructure.ring_tone import synthesize_ring

logger = logging.getLogger(__name__)


async def _run(command: Sequence[str], stdin: Optional[bytes] = None) -> None:
    process = await asyncio.create_subprocess_exec(
        *command,
        stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        _, stderr = await process.communicate(stdin)
    finally:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
    if process.returncode != 0:
        raise RuntimeError(f"{command[0]} exited with {process.returncode}: {stderr.decode(errors='replace').strip()}")


class CommandRingPlayer(RingPlayer):
    """Pipes the ring WAV into an audio player command such as `aplay -q -`."""

    def __init__(self, command: str):
        self._command = shlex.split(command)
        self._wav: Optional[bytes] = None

    async def play(self) -> None:
        if self._wav is None:
            self._wav = synthesize_ring()
        await _run(self._command, stdin=self._wav)


class CommandDesktopNotifier(PlatformNotifier):
    def __init__(self, command: str):
        self._command = shlex.split(command)

    async def notify(self, title: str, body: str) -> None:
        await _run([*self._command, title, body])
        logger.debug(f"Desktop notification shown: {title}")
