"""Interactive resolution of duplicate groups."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from dupe.hasher import DuplicateGroup
from dupe.scanner import display_path
from dupe.scanner import FileRecord
from dupe.scanner import Inventory

import logging
import os
import pathlib


logger = logging.getLogger(__name__)

CSI = "\x1b["
CLEAR_SCREEN = CSI + "1J" + CSI + "1;1H"


class SelectionError(ValueError):
    """A selection line contained a token that is not a usable index."""

    def __init__(self, message: str, token: str) -> None:
        super().__init__(message)
        self.token = token


class DeletionError(Exception):
    """A selected file could not be deleted."""

    def __init__(self, path: pathlib.Path, reason: str) -> None:
        super().__init__(f"Error deleting file '{display_path(path)}': {reason}")
        self.path = path
        self.reason = reason


@dataclass
class ResolutionSummary:
    """What happened during one run of the resolution loop."""

    groups_presented: int = 0
    deleted: list[pathlib.Path] = field(default_factory=list)
    bytes_reclaimed: int = 0


def format_size(size_bytes: int) -> str:
    """Format bytes as human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 ** 2:
        return f"{size_bytes / 1024:.1f} KiB"
    elif size_bytes < 1024 ** 3:
        return f"{size_bytes / (1024 ** 2):.1f} MiB"
    else:
        return f"{size_bytes / (1024 ** 3):.1f} GiB"


def render_group(records: list[FileRecord], file_size: int) -> list[str]:
    """Return the menu lines for one duplicate group, prompt last."""
    lines = [
        "",
        f"Found duplicate (Unique size: {format_size(file_size)}, "
        f"Total size: {format_size(file_size * len(records))}):",
    ]
    first_index: dict[tuple[int, int], int] = {}
    for i, record in enumerate(records):
        line = f"{i} -> {display_path(record.path)}"
        if record.inode and record.link_key in first_index:
            line += f" (hardlink of {first_index[record.link_key]})"
        else:
            first_index.setdefault(record.link_key, i)
        lines.append(line)
    lines.append("Select the file or files to delete separated by spaces:")
    return lines


def parse_selection(line: str, count: int) -> list[int]:
    """Parse a whitespace separated list of indices into [0, count).

    Raises SelectionError on the first token that is not an integer or is out
    of range; nothing from such a line should be applied. Repeated indices
    are kept once, at their first position.
    """
    indices: list[int] = []
    for token in line.split():
        # Plain ASCII digits only: no signs, no underscores
        if not (token.isascii() and token.isdigit()):
            raise SelectionError(f"Bad input '{token}'", token)
        index = int(token)
        if index >= count:
            raise SelectionError(f"Provided index '{index}' out of bounds", token)
        if index not in indices:
            indices.append(index)
    return indices


def resolve_duplicates(
    groups: list[DuplicateGroup],
    inventory: Inventory,
    *,
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[..., None] = print,
    delete_fn: Callable[[pathlib.Path], None] = os.remove,
    clear_screen: bool = True,
) -> ResolutionSummary:
    """Present each duplicate group and delete the members the operator picks.

    A malformed or out-of-range selection is logged and the group is left
    alone. A failed deletion raises DeletionError and ends the run. Closing
    the input stream ends the loop early without deleting anything further.
    """
    summary = ResolutionSummary()

    for group in groups:
        if len(group.members) < 2:
            continue
        records = inventory.resolve(group.members)

        if summary.groups_presented == 0 and clear_screen:
            print_fn(CLEAR_SCREEN, end="")
        summary.groups_presented += 1

        for menu_line in render_group(records, group.file_size):
            print_fn(menu_line)
        try:
            line = input_fn(":: ")
        except EOFError:
            logger.info("\nInput closed, stopping.")
            break

        try:
            selection = parse_selection(line, len(records))
        except SelectionError as e:
            logger.warning(f"{e}, skipping...")
            continue

        remaining = set(range(len(records)))
        for index in selection:
            record = records[index]
            path = inventory.absolute(record)
            try:
                delete_fn(path)
            except OSError as e:
                raise DeletionError(record.path, e.strerror or str(e)) from e
            summary.deleted.append(record.path)
            remaining.discard(index)
            # Storage is only freed once no link to the inode is left.
            if not record.inode or all(records[i].link_key != record.link_key for i in remaining):
                summary.bytes_reclaimed += record.size
            print_fn(f"File '{display_path(record.path)}' deleted successfully")

    if summary.groups_presented == 0:
        print_fn("No duplicate files found")

    return summary
