# ABOUTME: Runs external commands for command mappings
# ABOUTME: Drains stdout and stderr on separate threads so a full pipe cannot stall the child

"""Subprocess command runner."""

import logging
import subprocess
import threading
from typing import IO

from .models import CommandResult

logger = logging.getLogger(__name__)


class SubprocessCommandRunner:
    """Executes a command and captures both output streams."""

    def run(self, argv: list[str], env: dict[str, str]) -> CommandResult:
        result = CommandResult()
        stdout: list[str] = []
        stderr: list[str] = []
        if not argv:
            result.errors.append(ValueError("Empty command"))
            return result

        def drain(stream: IO[str], sink: list[str]) -> None:
            try:
                for line in stream:
                    sink.append(line)
            except (OSError, ValueError) as e:
                result.errors.append(e)
            finally:
                stream.close()

        try:
            process = subprocess.Popen(
                argv,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            result.errors.append(e)
            return result

        readers = [
            threading.Thread(target=drain, args=(process.stdout, stdout), daemon=True),
            threading.Thread(target=drain, args=(process.stderr, stderr), daemon=True),
        ]
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join()

        returncode = process.wait()
        logger.debug(f"Command {argv[0]} exited with {returncode}")

        result.stdout = "".join(stdout)
        result.stderr = "".join(stderr)
        if returncode != 0 and not result.stderr:
            result.errors.append(subprocess.CalledProcessError(returncode, argv))
        return result
