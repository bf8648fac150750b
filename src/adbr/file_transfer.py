"""File transfer commands: push, pull and sync."""

from __future__ import annotations

import os
from enum import Enum
from typing import Iterable, Union

from .command import AdbCommand, CommandBuilder

PathArg = Union[str, "os.PathLike[str]"]


class CompressionAlgorithm(Enum):
    ANY = "any"
    NONE = "none"
    BROTLI = "brotli"
    LZ4 = "lz4"
    ZSTD = "zstd"


class SyncTarget(Enum):
    ALL = "all"
    DATA = "data"
    ODM = "odm"
    OEM = "oem"
    PRODUCT = "product"
    SYSTEM = "system"
    SYSTEM_EXT = "system_ext"
    VENDOR = "vendor"


def path_args(paths: PathArg | Iterable[PathArg]) -> list[str]:
    if isinstance(paths, (str, os.PathLike)):
        return [os.fspath(paths)]
    return [os.fspath(path) for path in paths]


class _Compressing(AdbCommand):
    def __init__(self, builder: CommandBuilder) -> None:
        super().__init__(builder)
        self._algorithm: CompressionAlgorithm | None = None
        self._no_compression = False

    def compression(self, algorithm: CompressionAlgorithm | str) -> _Compressing:
        """``-z ALGORITHM``: compress with the given algorithm. Clears ``-Z``."""

        self._algorithm = CompressionAlgorithm(algorithm)
        self._no_compression = False
        return self

    def no_compression(self) -> _Compressing:
        """``-Z``: disable compression. Clears ``-z``."""

        self._algorithm = None
        self._no_compression = True
        return self

    def _compression_args(self) -> list[str]:
        if self._algorithm is not None:
            return ["-z", self._algorithm.value]
        if self._no_compression:
            return ["-Z"]
        return []


class Push(_Compressing):
    """``push [--sync] [-n] [-z ALGORITHM|-Z] LOCAL... REMOTE``"""

    def __init__(
        self,
        builder: CommandBuilder,
        local: PathArg | Iterable[PathArg],
        remote: PathArg,
    ) -> None:
        super().__init__(builder)
        self.local = path_args(local)
        self.remote = os.fspath(remote)
        self._sync = False
        self._dry_run = False

    def sync(self) -> Push:
        """``--sync``: only push files that are newer on the host than the device."""

        self._sync = True
        return self

    def dry_run(self) -> Push:
        """``-n``: dry run, push to device without storing to storage."""

        self._dry_run = True
        return self

    def arguments(self) -> list[str]:
        args = ["push"]
        if self._sync:
            args.append("--sync")
        if self._dry_run:
            args.append("-n")
        args.extend(self._compression_args())
        args.extend(self.local)
        args.append(self.remote)
        return args


class Pull(_Compressing):
    """``pull [-a] [-z ALGORITHM|-Z] REMOTE... LOCAL``"""

    def __init__(
        self,
        builder: CommandBuilder,
        remote: PathArg | Iterable[PathArg],
        local: PathArg,
    ) -> None:
        super().__init__(builder)
        self.remote = path_args(remote)
        self.local = os.fspath(local)
        self._preserve = False

    def preserve(self) -> Pull:
        """``-a``: preserve file timestamp and mode."""

        self._preserve = True
        return self

    def arguments(self) -> list[str]:
        args = ["pull"]
        if self._preserve:
            args.append("-a")
        args.extend(self._compression_args())
        args.extend(self.remote)
        args.append(self.local)
        return args


class Sync(_Compressing):
    """``sync [-l] [-n] [-z ALGORITHM|-Z] [TARGET]``: sync a local build from $ANDROID_PRODUCT_OUT."""

    def __init__(self, builder: CommandBuilder, target: SyncTarget | str | None = None) -> None:
        super().__init__(builder)
        self._target = None if target is None else SyncTarget(target)
        self._dry_run = False
        self._list = False

    def target(self, target: SyncTarget | str) -> Sync:
        self._target = SyncTarget(target)
        return self

    def dry_run(self) -> Sync:
        self._dry_run = True
        return self

    def list_only(self) -> Sync:
        """``-l``: list files that would be copied, but don't copy them."""

        self._list = True
        return self

    def arguments(self) -> list[str]:
        args = ["sync"]
        if self._dry_run:
            args.append("-n")
        if self._list:
            args.append("-l")
        args.extend(self._compression_args())
        if self._target is not None:
            args.append(self._target.value)
        return args
