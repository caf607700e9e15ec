"""Platform clipboard strategies and the fallback chain that runs them.

The table :data:`STRATEGIES` is an ordered list of
``(applies(env), build(output_path))`` entries.  The chain walks it in
order and stops at the first strategy that leaves a non-empty image in the
staging file.  Supporting a new platform is a matter of appending an entry.

========  ===========================================================
Platform  Tool
========  ===========================================================
mac       ``pngpaste -`` (PNG on stdout)
windows   ``powershell`` + ``System.Windows.Forms.Clipboard::GetImage``
posix     ``wl-paste`` (Wayland only), then ``xclip``, then ``xsel``
========  ===========================================================

Tool failures never escape the chain: a spawn error or non-zero exit is
logged and the next strategy runs.  Clipboard tools are not subject to a
timeout.
"""

from __future__ import annotations

import asyncio
import contextlib
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mdpaste.errors import MdPasteClipboardToolError, MdPasteNoImageError
from mdpaste.models import ClipboardCommand, ClipboardEnvironment, Platform
from mdpaste.observability import get_logger, resolve_metrics
from mdpaste.utils.text import truncate

log = get_logger("mdpaste.clipboard")

# PowerShell exits with this code when the clipboard holds no image.
POWERSHELL_NO_IMAGE_EXIT = 2


# ---------------------------------------------------------------------------
# Strategy table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClipboardStrategy:
    """One entry of the fallback chain."""

    name: str
    applies: Callable[[ClipboardEnvironment], bool]
    build: Callable[[Path], ClipboardCommand]


def _powershell_command(output_path: Path) -> ClipboardCommand:
    quoted = str(output_path).replace("'", "''")
    script = " ".join([
        "Add-Type -AssemblyName System.Windows.Forms;",
        "Add-Type -AssemblyName System.Drawing;",
        "$img=[System.Windows.Forms.Clipboard]::GetImage();",
        f"if ($null -eq $img) {{ exit {POWERSHELL_NO_IMAGE_EXIT} }}",
        f"$out='{quoted}';",
        "$img.Save($out, [System.Drawing.Imaging.ImageFormat]::Png);",
    ])
    return ClipboardCommand(
        name="powershell",
        argv=("powershell", "-NoProfile", "-NonInteractive", "-Command", script),
        capture_stdout=False,
        no_image_exit_codes=frozenset({POWERSHELL_NO_IMAGE_EXIT}),
    )


STRATEGIES: tuple[ClipboardStrategy, ...] = (
    ClipboardStrategy(
        name="pngpaste",
        applies=lambda env: env.platform == Platform.MAC,
        build=lambda _: ClipboardCommand("pngpaste", ("pngpaste", "-")),
    ),
    ClipboardStrategy(
        name="powershell",
        applies=lambda env: env.platform == Platform.WINDOWS,
        build=_powershell_command,
    ),
    ClipboardStrategy(
        name="wl-paste",
        applies=lambda env: env.platform == Platform.POSIX and env.has_wayland,
        build=lambda _: ClipboardCommand(
            "wl-paste", ("wl-paste", "--no-newline", "--type", "image/png"),
        ),
    ),
    ClipboardStrategy(
        name="xclip",
        applies=lambda env: env.platform == Platform.POSIX,
        build=lambda _: ClipboardCommand(
            "xclip", ("xclip", "-selection", "clipboard", "-t", "image/png", "-o"),
        ),
    ),
    ClipboardStrategy(
        name="xsel",
        applies=lambda env: env.platform == Platform.POSIX,
        build=lambda _: ClipboardCommand(
            "xsel", ("xsel", "--clipboard", "--output", "--target", "image/png"),
        ),
    ),
)


def applicable_strategies(
    env: ClipboardEnvironment,
    strategies: Sequence[ClipboardStrategy] = STRATEGIES,
) -> list[ClipboardStrategy]:
    """Return the strategies that apply to *env*, in chain order."""
    return [s for s in strategies if s.applies(env)]


# ---------------------------------------------------------------------------
# Running one command
# ---------------------------------------------------------------------------

def _stdout_target(command: ClipboardCommand, output_path: Path) -> Any:
    if command.capture_stdout:
        return open(output_path, "wb")
    return contextlib.nullcontext(subprocess.DEVNULL)


def _spawn_error(command: ClipboardCommand, exc: OSError) -> MdPasteClipboardToolError:
    return MdPasteClipboardToolError(
        message=f"cannot run {command.name}: {exc}",
        context={"tool": command.name},
        cause=exc,
    )


def _check_outcome(
    command: ClipboardCommand,
    returncode: int,
    stderr: bytes | None,
    output_path: Path,
) -> None:
    """Translate a finished process into success or a typed error."""
    if returncode in command.no_image_exit_codes:
        raise MdPasteNoImageError(
            message=f"{command.name}: clipboard holds no image",
            context={"source": command.name, "exit_code": returncode},
        )
    if returncode != 0:
        detail = truncate((stderr or b"").decode("utf-8", "replace").strip(), 200)
        raise MdPasteClipboardToolError(
            message=f"{command.name} exited with code {returncode}",
            context={"tool": command.name, "exit_code": returncode, "stderr": detail},
        )
    if not output_path.is_file() or output_path.stat().st_size == 0:
        raise MdPasteNoImageError(
            message=f"{command.name}: no image data produced",
            context={"source": command.name},
        )


def run_command(command: ClipboardCommand, output_path: Path) -> None:
    """Run *command* so that the clipboard image lands in *output_path*.

    Raises
    ------
    MdPasteClipboardToolError
        If the tool cannot be spawned or exits non-zero.
    MdPasteNoImageError
        If the tool reports an empty clipboard or writes nothing.
    """
    try:
        with _stdout_target(command, output_path) as out:
            proc = subprocess.run(
                command.argv,
                stdin=subprocess.DEVNULL,
                stdout=out,
                stderr=subprocess.PIPE,
                check=False,
            )
    except OSError as exc:
        raise _spawn_error(command, exc) from exc
    _check_outcome(command, proc.returncode, proc.stderr, output_path)


async def async_run_command(command: ClipboardCommand, output_path: Path) -> None:
    """Run *command* as an asyncio subprocess.

    See :func:`run_command` for the error contract.
    """
    try:
        with _stdout_target(command, output_path) as out:
            proc = await asyncio.create_subprocess_exec(
                *command.argv,
                stdin=subprocess.DEVNULL,
                stdout=out,
                stderr=subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
    except OSError as exc:
        raise _spawn_error(command, exc) from exc
    _check_outcome(command, proc.returncode or 0, stderr, output_path)


# ---------------------------------------------------------------------------
# Fallback chain
# ---------------------------------------------------------------------------

def _note_failure(metrics: Any, strategy: ClipboardStrategy, exc: Exception) -> None:
    outcome = "no_image" if isinstance(exc, MdPasteNoImageError) else "error"
    metrics.increment(
        "mdpaste.clipboard_strategy_total",
        tags={"tool": strategy.name, "outcome": outcome},
    )
    log.debug(
        "clipboard strategy failed",
        extra={
            "extra_fields": {
                "op": "clipboard",
                "tool": strategy.name,
                "outcome": outcome,
                "error": str(exc),
            }
        },
    )


def _note_success(metrics: Any, strategy: ClipboardStrategy) -> None:
    metrics.increment(
        "mdpaste.clipboard_strategy_total",
        tags={"tool": strategy.name, "outcome": "ok"},
    )
    log.debug(
        "clipboard image captured",
        extra={"extra_fields": {"op": "clipboard", "tool": strategy.name}},
    )


def write_clipboard_image(
    output_path: Path,
    env: ClipboardEnvironment | None = None,
    strategies: Sequence[ClipboardStrategy] = STRATEGIES,
    metrics: Any | None = None,
) -> bool:
    """Try each applicable strategy until one writes an image to *output_path*.

    Returns ``True`` on the first success, ``False`` once the chain is
    exhausted.  Never raises for tool failures.
    """
    env = env or ClipboardEnvironment.detect()
    metrics = resolve_metrics(metrics)
    for strategy in applicable_strategies(env, strategies):
        try:
            run_command(strategy.build(output_path), output_path)
        except (MdPasteClipboardToolError, MdPasteNoImageError) as exc:
            _note_failure(metrics, strategy, exc)
            continue
        _note_success(metrics, strategy)
        return True
    return False


async def async_write_clipboard_image(
    output_path: Path,
    env: ClipboardEnvironment | None = None,
    strategies: Sequence[ClipboardStrategy] = STRATEGIES,
    metrics: Any | None = None,
) -> bool:
    """Async variant of :func:`write_clipboard_image`."""
    env = env or ClipboardEnvironment.detect()
    metrics = resolve_metrics(metrics)
    for strategy in applicable_strategies(env, strategies):
        try:
            await async_run_command(strategy.build(output_path), output_path)
        except (MdPasteClipboardToolError, MdPasteNoImageError) as exc:
            _note_failure(metrics, strategy, exc)
            continue
        _note_success(metrics, strategy)
        return True
    return False
