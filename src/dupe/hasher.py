"""Content fingerprinting of same-size files and grouping into duplicate sets."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dupe.scanner import display_path
from dupe.scanner import Inventory
from tqdm import tqdm

import hashlib
import logging
import mmap
import os
import pathlib


logger = logging.getLogger(__name__)


class FileChangedError(OSError):
    """The file size on disk no longer matches the size seen during the scan."""


@dataclass
class DuplicateGroup:
    """Files with identical size and content, referenced by inventory handle."""

    digest: str
    file_size: int
    members: list[int]
    distinct_files: int = 0

    @property
    def total_size(self) -> int:
        return self.file_size * len(self.members)

    @property
    def reclaimable(self) -> int:
        """Bytes freed by keeping a single copy.

        Hardlinks of one inode share their storage and count once.
        """
        copies = self.distinct_files or len(self.members)
        return self.file_size * (copies - 1)


def hash_file(path: pathlib.Path, expected_size: int) -> str:
    """Compute the MD5 digest of the full content of a file.

    The file is mapped read-only and unmapped before returning, so only one
    mapping is alive per call. Raises FileChangedError if the size differs
    from expected_size.
    """
    with path.open("rb") as f:
        size = os.fstat(f.fileno()).st_size
        if size != expected_size:
            raise FileChangedError(f"size changed from {expected_size} to {size} bytes")
        if size == 0:
            # Empty files cannot be mapped
            return hashlib.md5(b"", usedforsecurity=False).hexdigest()
        with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as contents:
            return hashlib.md5(contents, usedforsecurity=False).hexdigest()


def find_duplicates(
    inventory: Inventory,
    *,
    workers: int = 1,
    progress: bool = False,
    hash_fn: Callable[[pathlib.Path, int], str] = hash_file,
) -> list[DuplicateGroup]:
    """Group files of every shared-size bucket by content digest.

    Only files whose size is shared with another file are hashed, and always
    over their full content. Hardlinks of an already-hashed inode reuse its
    digest. Files that vanish or cannot be read are skipped with a warning.
    Groups come out in bucket order, members in walk order.
    """
    candidates = list(inventory.candidates())
    if not candidates:
        logger.debug("no files share a size, nothing to hash")
        return []

    # Pick one representative per inode; its links reuse the digest.
    first_link: dict[tuple[int, int], int] = {}
    link_of: dict[int, int] = {}
    to_hash: list[int] = []
    for _size, handles in candidates:
        for h in handles:
            record = inventory.records[h]
            key = record.link_key
            if record.inode and key in first_link:
                link_of[h] = first_link[key]
                first = inventory.records[first_link[key]]
                logger.debug(f"{display_path(record.path)} is a hardlink of {display_path(first.path)}")
                continue
            first_link[key] = h
            to_hash.append(h)

    def digest_of(handle: int) -> str | None:
        record = inventory.records[handle]
        try:
            return hash_fn(inventory.absolute(record), record.size)
        except OSError as e:
            logger.warning(f"Could not read '{display_path(record.path)}': {e.strerror or e}, skipping")
            return None

    bar = dict(total=len(to_hash), desc="Hashing", unit="file", disable=not progress, leave=False)
    if workers > 1:
        # map() yields in submission order, so the merge below stays serial
        # and the result matches a single-threaded run.
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(tqdm(pool.map(digest_of, to_hash), **bar))
    else:
        results = [digest_of(h) for h in tqdm(to_hash, **bar)]
    digests = dict(zip(to_hash, results))
    for h, first in link_of.items():
        digests[h] = digests[first]

    duplicates: list[DuplicateGroup] = []
    for size, handles in candidates:
        hash_groups: dict[str, list[int]] = {}
        for h in handles:
            digest = digests[h]
            if digest is None:
                continue
            logger.debug(f"  {digest[:12]}.. {display_path(inventory.records[h].path)}")
            hash_groups.setdefault(digest, []).append(h)

        for digest, members in hash_groups.items():
            if len(members) >= 2:
                distinct = {link_of.get(h, h) for h in members}
                duplicates.append(DuplicateGroup(
                    digest=digest, file_size=size, members=members, distinct_files=len(distinct),
                ))

    logger.debug(
        f"hashing: {len(to_hash)} files hashed, {len(link_of)} hardlink(s) reused, "
        f"{len(duplicates)} duplicate group(s)"
    )
    return duplicates
