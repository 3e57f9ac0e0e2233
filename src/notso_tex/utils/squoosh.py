"""Wrapper for the squoosh-cli image encoder."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from notso_tex.utils.constants import (
    ENV_CI,
    ENV_SQUOOSH_CLI,
    SQUOOSH_COMMAND,
    SQUOOSH_PACKAGE,
)


class SquooshError(RuntimeError):
    """Base class for encoder failures."""


class EncoderNotFoundError(SquooshError):
    """The encoder executable is not installed or not on PATH."""


class CompressionError(SquooshError):
    """The encoder failed to launch, exited non-zero or wrote no output."""


class Encoder(Protocol):
    """Anything that turns one image payload into another."""

    def check(self) -> None:
        """Raise EncoderNotFoundError when the encoder cannot run."""
        ...

    def encode(
        self,
        image: bytes,
        in_extension: str,
        flags: Sequence[str],
        out_extension: str,
    ) -> bytes: ...


def squoosh_command() -> str:
    """Executable name, honoring the NOTSO_TEX_SQUOOSH_CLI override."""
    return os.environ.get(ENV_SQUOOSH_CLI) or SQUOOSH_COMMAND


def find_squoosh() -> str | None:
    """Find squoosh-cli executable in PATH."""
    return shutil.which(squoosh_command())


def _ci_override() -> bool:
    """True when running under CI, where the PATH check is skipped."""
    return bool(os.environ.get(ENV_CI))


def _build_command(
    executable: str,
    flags: Sequence[str],
    out_dir: Path,
    in_path: Path,
) -> list[str]:
    """Build the argv for one squoosh-cli invocation."""
    return [executable, *flags, "--output-dir", str(out_dir), str(in_path)]


class SquooshEncoder:
    """Encodes images by shelling out to squoosh-cli, one file per call."""

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable

    def resolve(self) -> str:
        """
        Resolve the executable to launch.

        Raises:
            EncoderNotFoundError: not on PATH and CI is not set.
        """
        if self.executable:
            return self.executable
        found = find_squoosh()
        if found:
            return found
        command = squoosh_command()
        if _ci_override():
            return command
        raise EncoderNotFoundError(
            f'Command "{command}" not found. '
            f'Please install "{SQUOOSH_PACKAGE}" from NPM.'
        )

    def check(self) -> None:
        """Fail early when squoosh-cli is not installed."""
        self.resolve()

    def encode(
        self,
        image: bytes,
        in_extension: str,
        flags: Sequence[str],
        out_extension: str,
    ) -> bytes:
        """
        Recompress one image.

        Args:
            image: Encoded input image
            in_extension: Input file extension, lets squoosh-cli pick a decoder
            flags: Codec selection tokens, e.g. ["--webp", '{"quality":80}']
            out_extension: Extension squoosh-cli gives the output file

        Returns:
            The encoded output bytes.

        Raises:
            EncoderNotFoundError: squoosh-cli not found (checked before any I/O)
            CompressionError: the process failed to launch or exited non-zero
        """
        executable = self.resolve()
        if not in_extension:
            raise ValueError("Input extension must not be empty")

        with tempfile.TemporaryDirectory(prefix="notso-tex-in-") as in_dir:
            in_path = Path(in_dir) / f"texture.{in_extension}"
            in_path.write_bytes(image)

            with tempfile.TemporaryDirectory(prefix="notso-tex-out-") as out_dir:
                out_path = Path(out_dir) / f"{in_path.stem}.{out_extension}"
                cmd = _build_command(executable, flags, Path(out_dir), in_path)
                _run_squoosh(cmd)

                if not out_path.is_file():
                    raise CompressionError(
                        f"{cmd[0]} completed but output file not found: "
                        f"{out_path.name}"
                    )
                return out_path.read_bytes()


def _run_squoosh(cmd: list[str]) -> None:
    """Execute squoosh-cli, blocking until it exits."""
    try:
        # stderr is inherited so encoder diagnostics reach the terminal
        subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL)
    except subprocess.CalledProcessError as e:
        raise CompressionError(f"{cmd[0]} exited with status {e.returncode}") from e
    except OSError as e:
        raise CompressionError(f"{cmd[0]} failed to launch: {e}") from e
