"""
State streams for checkpointing sampling accumulators.

A stream is a flat set of named numpy records, written with numpy.savez
and read back with allow_pickle=False. Every stream starts with a header
(format version, strategy name, features count) so a reader can reject a
stream written for another strategy or dimension before touching any
accumulator.

Record naming:
    header.*             stream header
    context.*            shared sampling context, written once
    sampler.<role>.*     private state of one term sampler (if any)
"""

from __future__ import annotations

import zipfile
from typing import Any, BinaryIO
import numpy as np
from numpy.typing import ArrayLike, NDArray

from linereg.core.exceptions import SerializationError

FORMAT_VERSION = 1

_DECODE_ERRORS = (OSError, ValueError, EOFError, KeyError, zipfile.BadZipFile)


class StateWriter:
    """Collects named records and writes them as one stream."""

    def __init__(self, strategy: str, features_count: int):
        self._records: dict[str, NDArray[Any]] = {}
        self.put('header.format_version', FORMAT_VERSION)
        self.put('header.strategy', strategy)
        self.put('header.features_count', features_count)

    def put(self, key: str, value: ArrayLike | str) -> None:
        if key in self._records:
            raise ValueError(f"duplicate state record: {key!r}")
        self._records[key] = np.asarray(value)

    def write(self, destination: BinaryIO) -> None:
        """Write all records to a binary file object."""
        np.savez(destination, **self._records)


class StateReader:
    """Read access to the records of one stream."""

    def __init__(self, records: dict[str, NDArray[Any]]):
        self._records = records
        self.format_version = int(self.read_scalar('header.format_version'))
        if self.format_version != FORMAT_VERSION:
            raise SerializationError(
                f"unsupported state format version {self.format_version}, "
                f"expected {FORMAT_VERSION}",
                key='header.format_version',
            )
        self.strategy = str(self._get('header.strategy'))
        self.features_count = self.read_count('header.features_count')
        if self.features_count < 1:
            raise SerializationError(
                f"header features_count must be positive, got {self.features_count}",
                key='header.features_count',
            )

    @classmethod
    def read(cls, source: BinaryIO) -> StateReader:
        """
        Load a stream from a binary file object.

        Raises:
            SerializationError: If the stream is malformed or truncated
        """
        try:
            data = np.load(source, allow_pickle=False)
            if not isinstance(data, np.lib.npyio.NpzFile):
                raise SerializationError(
                    f"state stream holds a bare {type(data).__name__}, "
                    f"expected a record archive"
                )
            with data:
                records = {key: data[key] for key in data.files}
        except _DECODE_ERRORS as e:
            raise SerializationError(f"cannot decode state stream: {e}") from e
        if not records:
            raise SerializationError("state stream contains no records")
        return cls(records)

    def expect(self, strategy: str, features_count: int) -> None:
        """
        Verify the header matches the restoring instance.

        Raises:
            SerializationError: If the stream was written by another strategy
                or for another features count
        """
        if self.strategy != strategy:
            raise SerializationError(
                f"state stream written by strategy {self.strategy!r}, "
                f"cannot load into {strategy!r}",
                key='header.strategy',
            )
        if self.features_count != features_count:
            raise SerializationError(
                f"state stream has features_count={self.features_count}, "
                f"target has features_count={features_count}",
                key='header.features_count',
            )

    def _get(self, key: str) -> NDArray[Any]:
        try:
            return self._records[key]
        except KeyError:
            raise SerializationError(
                f"state stream is missing record {key!r}", key=key
            ) from None

    def read_scalar(self, key: str) -> float | int:
        value = self._get(key)
        if value.shape != () or not _is_real(value):
            raise SerializationError(
                f"record {key!r}: expected real scalar, got "
                f"{value.dtype} with shape {value.shape}",
                key=key,
            )
        _check_finite(key, value)
        return value.item()

    def read_count(self, key: str) -> int:
        value = self.read_scalar(key)
        if not float(value).is_integer() or value < 0:
            raise SerializationError(
                f"record {key!r}: expected non-negative integer count, got {value}",
                key=key,
            )
        return int(value)

    def read_array(self, key: str, shape: tuple[int, ...]) -> NDArray[np.floating[Any]]:
        value = self._get(key)
        if value.shape != shape:
            raise SerializationError(
                f"record {key!r}: expected shape {shape}, got {value.shape}",
                key=key,
            )
        if not _is_real(value):
            raise SerializationError(
                f"record {key!r}: expected real dtype, got {value.dtype}", key=key
            )
        _check_finite(key, value)
        return value.astype(np.float64, copy=True)


def _is_real(value: NDArray[Any]) -> bool:
    return (
        np.issubdtype(value.dtype, np.integer)
        or np.issubdtype(value.dtype, np.floating)
    )


def _check_finite(key: str, value: NDArray[Any]) -> None:
    if not np.all(np.isfinite(value)):
        raise SerializationError(
            f"record {key!r}: contains NaN or Inf values", key=key
        )
