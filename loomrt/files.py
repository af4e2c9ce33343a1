"""File operations performed by pipe steps: reading, writing, moving and CSV input."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

from loomrt.atomic import AtomicContext, AtomicTransaction
from loomrt.builtins import max_file_size_limit, max_rows_limit
from loomrt.csvdata import parse_csv, serialize_for_path_output
from loomrt.errors import LoomError
from loomrt.values import PathValue, as_path, as_string

Authorizer = Callable[[str, Path], Path]

READ = "Read"
WRITE = "Write"


@dataclass
class RuntimeLimits:
    """Resource limits applied to file reads and CSV parsing."""

    max_file_size_bytes: int = field(default_factory=max_file_size_limit)
    max_rows: int = field(default_factory=max_rows_limit)


class PipeOp(enum.Enum):
    """How a value is handed to a path destination."""

    SAFE = ">>"
    FORCE = ">>>"
    MOVE = "->"


def _allow_all(capability: str, path: Path) -> Path:
    return path


class FileSystem:
    """File access for a running program, with limits, authorization and rollback.

    *authorizer* is called with a capability name (``"Read"`` or ``"Write"``)
    and a resolved path; it returns the path to use or raises to deny access.
    Relative paths are taken relative to *script_dir* when one is given.
    """

    def __init__(
        self,
        script_dir: Optional[Union[str, os.PathLike]] = None,
        limits: Optional[RuntimeLimits] = None,
        authorizer: Optional[Authorizer] = None,
    ) -> None:
        self.script_dir: Optional[str] = None
        if script_dir is not None:
            try:
                self.script_dir = str(Path(script_dir).resolve(strict=True))
            except (OSError, RuntimeError):
                self.script_dir = os.fspath(script_dir)
        self.limits = limits if limits is not None else RuntimeLimits()
        self.authorizer: Authorizer = authorizer or _allow_all
        self.atomic_active = False
        self.atomic_context: Optional[AtomicContext] = None
        self.atomic_txn: Optional[AtomicTransaction] = None

    # -- path handling -------------------------------------------------

    def _resolve(self, raw: Union[str, os.PathLike]) -> Path:
        path = Path(raw)
        if not path.is_absolute() and self.script_dir is not None:
            return Path(self.script_dir) / path
        return path

    def _authorize(self, capability: str, raw: Union[str, os.PathLike]) -> Path:
        return Path(self.authorizer(capability, self._resolve(raw)))

    def is_directory_target(self, target: str) -> bool:
        """Return True when *target* names a directory (trailing '/' or existing)."""
        return target.endswith("/") or Path(target).is_dir()

    # -- pipe destinations ---------------------------------------------

    def write_or_move_path(self, op: PipeOp, raw_target: str, pipe_val: Any) -> PathValue:
        """Send *pipe_val* to the file *raw_target* according to *op*.

        ``SAFE`` appends (adding a trailing newline), ``FORCE`` overwrites and
        ``MOVE`` moves the source file.  A path value sent to a directory is
        moved into it.
        """
        if op is PipeOp.MOVE:
            return self.move_file(raw_target, pipe_val, op)

        if as_path(pipe_val) is not None and self.is_directory_target(raw_target):
            return self.move_file(raw_target, pipe_val, op)

        if isinstance(pipe_val, PathValue):
            payload = self.read_text_path(pipe_val.path)
        else:
            payload = serialize_for_path_output(pipe_val)

        target = str(self._authorize(WRITE, raw_target))
        self.snapshot_if_atomic(target)
        if op is PipeOp.SAFE:
            if not payload:
                return PathValue(target)
            if not payload.endswith("\n"):
                payload += "\n"
            self.append_path(target, payload)
        else:
            self.write_path(target, payload)
        return PathValue(target)

    def move_file(self, raw_target: str, pipe_val: Any, op: PipeOp) -> PathValue:
        """Move the file named by *pipe_val* to *raw_target*; return the new path."""
        src_path = as_path(pipe_val)
        if src_path is None:
            raise LoomError("Move targets require a file path source")

        file_name = Path(src_path).name
        if not file_name or file_name == "..":
            raise LoomError(f"Source path has no file name: '{src_path}'")

        target_path = self._resolve(raw_target)
        if self.is_directory_target(raw_target):
            self.create_dir_all(target_path)
            target_path = target_path / file_name
        else:
            self.create_dir_all(target_path.parent)

        dest = str(target_path)
        try:
            src_checked = self._authorize(WRITE, src_path)
            dest_checked = self._authorize(WRITE, dest)
        except LoomError as exc:
            raise LoomError(f"Failed to move '{src_path}' to '{dest}': {exc}") from exc
        dest_text = str(dest_checked)

        self.snapshot_if_atomic(src_path)
        self.snapshot_if_atomic(dest_text)

        if op is PipeOp.FORCE and dest_checked.exists():
            try:
                dest_checked.unlink()
            except OSError as exc:
                raise LoomError(f"Failed to replace '{dest_text}': {exc}") from exc

        try:
            os.replace(src_checked, dest_checked)
        except OSError as exc:
            raise LoomError(f"Failed to move '{src_path}' to '{dest_text}': {exc}") from exc
        return PathValue(dest_text)

    # -- atomic transactions -------------------------------------------

    def begin_atomic(self) -> None:
        """Start journalling file changes so they can be rolled back."""
        if self.script_dir is not None:
            base = Path(self.script_dir)
        else:
            try:
                base = Path.cwd()
            except OSError as exc:
                raise LoomError(f"Failed to resolve current directory: {exc}") from exc
        if self.atomic_context is None:
            try:
                self.atomic_context = AtomicContext(base)
            except OSError as exc:
                raise LoomError(f"Failed to initialize atomic journal: {exc}") from exc
        try:
            self.atomic_txn = self.atomic_context.begin()
        except OSError as exc:
            raise LoomError(f"Failed to begin atomic transaction: {exc}") from exc
        self.atomic_active = True

    def snapshot_if_atomic(self, path: str) -> None:
        """Record *path* in the open transaction, if there is one."""
        if not self.atomic_active or self.atomic_txn is None:
            return
        try:
            self.atomic_txn.snapshot_path(path)
        except OSError as exc:
            raise LoomError(
                f"Failed to snapshot '{path}' for atomic rollback: {exc}"
            ) from exc

    def commit_atomic(self) -> None:
        """Keep the changes of the open transaction."""
        txn, self.atomic_txn = self.atomic_txn, None
        if txn is not None:
            try:
                txn.commit()
            except OSError as exc:
                raise LoomError(f"Failed to commit atomic transaction: {exc}") from exc
        self.atomic_active = False

    def rollback_atomic(self) -> None:
        """Undo the changes of the open transaction."""
        txn, self.atomic_txn = self.atomic_txn, None
        if txn is not None:
            try:
                txn.rollback()
            except OSError as exc:
                raise LoomError(f"Failed to roll back atomic transaction: {exc}") from exc
        self.atomic_active = False

    # -- reading and writing -------------------------------------------

    def _checked_read(self, raw_path: str) -> bytes:
        path = self._authorize(READ, raw_path)
        try:
            size = path.stat().st_size
        except OSError as exc:
            raise LoomError(f"Failed to stat '{path}': {exc}") from exc
        limit = self.limits.max_file_size_bytes
        if size > limit:
            raise LoomError(
                f"File '{path}' is {size} bytes, above max_file_size_bytes ({limit})"
            )
        try:
            return path.read_bytes()
        except OSError as exc:
            raise LoomError(f"Failed to read '{path}': {exc}") from exc

    def read_text_path(self, raw_path: str) -> str:
        """Read a UTF-8 text file within the size limit."""
        data = self._checked_read(raw_path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise LoomError(f"Failed to read '{self._resolve(raw_path)}': {exc}") from exc

    def read_bytes_path(self, raw_path: str) -> bytes:
        """Read a file's bytes within the size limit."""
        return self._checked_read(raw_path)

    def _prepare_write(self, raw_path: str) -> Path:
        path = self._authorize(WRITE, raw_path)
        parent = path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LoomError(f"Failed to create directory '{parent}': {exc}") from exc
        return path

    def write_path(self, raw_path: str, content: str) -> None:
        """Replace the contents of a file, creating parent directories."""
        path = self._prepare_write(raw_path)
        try:
            path.write_bytes(content.encode("utf-8"))
        except OSError as exc:
            raise LoomError(f"Failed to write '{path}': {exc}") from exc

    def append_path(self, raw_path: str, content: str) -> None:
        """Append to a file, first adding a newline if it does not end in one."""
        path = self._prepare_write(raw_path)
        try:
            with open(path, "ab+") as handle:
                needs_newline = False
                handle.seek(0, os.SEEK_END)
                if handle.tell() > 0:
                    handle.seek(-1, os.SEEK_END)
                    needs_newline = handle.read(1) != b"\n"
                if needs_newline:
                    handle.write(b"\n")
                handle.write(content.encode("utf-8"))
        except OSError as exc:
            raise LoomError(f"Failed to append '{path}': {exc}") from exc

    def create_dir_all(self, path: Union[str, os.PathLike]) -> None:
        """Create a directory and its parents after authorizing the write."""
        checked = self._authorize(WRITE, path)
        try:
            checked.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LoomError(f"Failed to create directory '{checked}': {exc}") from exc

    # -- CSV input -----------------------------------------------------

    def parse_csv_from_pipe(self, pipe_val: Any) -> dict[str, Any]:
        """Parse the piped value as CSV: a path is read, text is parsed directly."""
        if isinstance(pipe_val, PathValue):
            source, text = pipe_val.path, self.read_text_path(pipe_val.path)
        elif isinstance(pipe_val, str):
            source, text = pipe_val, pipe_val
        elif isinstance(pipe_val, list):
            source, text = "list", "".join(as_string(item) for item in pipe_val)
        elif isinstance(pipe_val, dict):
            path = as_path(pipe_val)
            if path is None:
                raise LoomError("@csv.parse received a record without a file path")
            source, text = path, self.read_text_path(path)
        else:
            source = text = as_string(pipe_val)
        return parse_csv(text, source, self.limits.max_rows)