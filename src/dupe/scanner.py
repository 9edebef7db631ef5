"""Directory walking and size bucketing of candidate files."""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field

import enum
import fnmatch
import logging
import os
import pathlib


logger = logging.getLogger(__name__)


def display_path(path: pathlib.Path | str) -> str:
    """Return path as printable text.

    Bytes that are not valid UTF-8 are shown as backslash escapes instead of
    the lone surrogates the filesystem encoding decodes them to.
    """
    return os.fsencode(path).decode("utf-8", "backslashreplace")


class ScanError(Exception):
    """The root directory could not be opened or listed."""

    def __init__(self, path: pathlib.Path, reason: str) -> None:
        super().__init__(f"Could not open directory '{display_path(path)}': {reason}")
        self.path = path
        self.reason = reason


class EntryKind(enum.Enum):
    """Kind of a directory walk entry."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class WalkEntry:
    """One entry of a directory walk, relative to the walked root."""

    path: pathlib.Path
    kind: EntryKind


@dataclass(frozen=True)
class FileRecord:
    """Metadata of a regular file found during the walk."""

    path: pathlib.Path
    inode: int
    size: int
    device: int = 0

    @property
    def link_key(self) -> tuple[int, int]:
        """(device, inode) pair shared by hardlinks of the same file."""
        return (self.device, self.inode)


@dataclass
class Inventory:
    """Owns every FileRecord of a scan and buckets them by size.

    Buckets and duplicate groups refer to records by their index in
    ``records`` so they never hold copies of the metadata.
    """

    root: pathlib.Path
    records: list[FileRecord] = field(default_factory=list)
    buckets: dict[int, list[int]] = field(default_factory=dict)

    def add(self, record: FileRecord) -> int:
        """Store a record, bucket it by size and return its handle."""
        handle = len(self.records)
        self.records.append(record)
        self.buckets.setdefault(record.size, []).append(handle)
        return handle

    def candidates(self) -> Iterator[tuple[int, list[int]]]:
        """Yield (size, handles) for every bucket that holds more than one file."""
        for size, handles in self.buckets.items():
            if len(handles) > 1:
                yield size, handles

    def resolve(self, handles: Iterable[int]) -> list[FileRecord]:
        """Return the records for the given handles, in order."""
        return [self.records[h] for h in handles]

    def absolute(self, record: FileRecord) -> pathlib.Path:
        return self.root / record.path

    def __len__(self) -> int:
        return len(self.records)


def _matches_any(name: str, patterns: Iterable[str]) -> bool:
    """Check if name matches any of the glob patterns (case-insensitive)."""
    name_lower = name.lower()
    return any(fnmatch.fnmatch(name_lower, p.lower()) for p in patterns)


def _entry_kind(entry: os.DirEntry) -> EntryKind:
    """Classify a scandir entry without following symlinks."""
    if entry.is_symlink():
        return EntryKind.OTHER
    if entry.is_dir(follow_symlinks=False):
        return EntryKind.DIRECTORY
    if entry.is_file(follow_symlinks=False):
        return EntryKind.FILE
    return EntryKind.OTHER


def walk(
    root: pathlib.Path,
    *,
    exclude_file: Iterable[str] = (),
    exclude_dir: Iterable[str] = (),
) -> Iterator[WalkEntry]:
    """Recursively list the entries below root, depth first in name order.

    Symlinks are reported as OTHER and never followed. A subdirectory that
    cannot be listed is skipped with a warning; if the root itself cannot be
    listed, ScanError is raised.
    """
    exclude_file = list(exclude_file)
    exclude_dir = list(exclude_dir)

    try:
        with os.scandir(root) as it:
            top = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise ScanError(root, e.strerror or str(e)) from e

    stack: list[tuple[pathlib.Path, Iterator[os.DirEntry]]] = [(pathlib.Path(), iter(top))]
    while stack:
        rel_dir, entries = stack.pop()
        for entry in entries:
            rel = rel_dir / entry.name
            try:
                kind = _entry_kind(entry)
            except OSError as e:
                logger.warning(f"Could not stat '{display_path(rel)}': {e.strerror or e}")
                continue

            if kind is EntryKind.DIRECTORY:
                if exclude_dir and _matches_any(entry.name, exclude_dir):
                    logger.debug(f"excluding directory {display_path(rel)}")
                    continue
                yield WalkEntry(path=rel, kind=kind)
                try:
                    with os.scandir(entry.path) as it:
                        children = sorted(it, key=lambda e: e.name)
                except OSError as e:
                    logger.warning(f"Could not open directory '{display_path(rel)}': {e.strerror or e}, skipping")
                    continue
                # Descend now; the remaining siblings wait on the stack.
                stack.append((rel_dir, entries))
                stack.append((rel, iter(children)))
                break

            if kind is EntryKind.FILE and exclude_file and _matches_any(entry.name, exclude_file):
                logger.debug(f"excluding file {display_path(rel)}")
                continue
            yield WalkEntry(path=rel, kind=kind)


def build_inventory(
    root: pathlib.Path,
    entries: Iterable[WalkEntry] | None = None,
    *,
    exclude_file: Iterable[str] = (),
    exclude_dir: Iterable[str] = (),
) -> Inventory:
    """Stat every file entry below root and bucket the records by size.

    *entries* defaults to ``walk(root)``. Entries that cannot be stat'ed are
    skipped with a warning.
    """
    if entries is None:
        entries = walk(root, exclude_file=exclude_file, exclude_dir=exclude_dir)

    inventory = Inventory(root=root)
    for entry in entries:
        if entry.kind is not EntryKind.FILE:
            continue
        try:
            st = (root / entry.path).stat(follow_symlinks=False)
        except OSError as e:
            logger.warning(f"Could not stat file '{display_path(entry.path)}': {e.strerror or e}")
            continue
        inventory.add(FileRecord(path=entry.path, inode=st.st_ino, size=st.st_size, device=st.st_dev))

    shared = sum(len(h) for _, h in inventory.candidates())
    logger.debug(
        f"inventory: {len(inventory)} files in {len(inventory.buckets)} size bucket(s), "
        f"{shared} files share a size"
    )
    return inventory
