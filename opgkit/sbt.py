"""Layout of shader binding tables: fixed-stride records grouped by program kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Union

SBT_RECORD_HEADER_SIZE = 32
SBT_RECORD_ALIGNMENT = 16

BytesLike = Union[bytes, bytearray, memoryview]
HeaderPacker = Callable[[Any], BytesLike]


def _ceil_to_multiple(value: int, multiple: int) -> int:
    return -(-value // multiple) * multiple


def _record_stride(max_data_size: int) -> int:
    return _ceil_to_multiple(SBT_RECORD_HEADER_SIZE + max_data_size, SBT_RECORD_ALIGNMENT)


def _raw_header(prog_group: Any) -> bytes:
    """Default packer: the program group is its own header bytes."""
    return bytes(memoryview(prog_group))


@dataclass(frozen=True)
class SbtTable:
    """One shader binding table, with byte offsets into the shared record buffer.

    A record kind without entries has a base of ``None``, stride 0 and count 0.
    """

    raygen_record: int
    miss_record_base: Optional[int] = None
    miss_record_stride_in_bytes: int = 0
    miss_record_count: int = 0
    hitgroup_record_base: Optional[int] = None
    hitgroup_record_stride_in_bytes: int = 0
    hitgroup_record_count: int = 0
    callables_record_base: Optional[int] = None
    callables_record_stride_in_bytes: int = 0
    callables_record_count: int = 0


@dataclass
class _EntryList:
    entries: List[Tuple[Any, bytes]] = field(default_factory=list)
    max_data_size: int = 0

    def add(self, prog_group: Any, data: Optional[BytesLike]) -> int:
        payload = bytes(memoryview(data)) if data is not None else b""
        index = len(self.entries)
        self.max_data_size = max(self.max_data_size, len(payload))
        self.entries.append((prog_group, payload))
        return index

    @property
    def stride(self) -> int:
        return _record_stride(self.max_data_size)

    def __len__(self) -> int:
        return len(self.entries)


class ShaderBindingTable:
    """Collects program groups with their record data and lays out the records.

    ``header_packer`` turns a program group into its record header of
    ``SBT_RECORD_HEADER_SIZE`` bytes. After :meth:`create_sbt`, ``buffer``
    holds all records: raygen, then miss, hit group and callable records.
    """

    def __init__(self, header_packer: Optional[HeaderPacker] = None) -> None:
        self.header_packer: HeaderPacker = header_packer or _raw_header
        self._raygen = _EntryList()
        self._miss = _EntryList()
        self._hitgroup = _EntryList()
        self._callable = _EntryList()
        self.buffer = b""
        self._tables: List[SbtTable] = []

    def add_raygen_entry(self, prog_group: Any, data: Optional[BytesLike] = None) -> int:
        """Add a raygen record; return its index among raygen records."""
        return self._raygen.add(prog_group, data)

    def add_miss_entry(self, prog_group: Any, data: Optional[BytesLike] = None) -> int:
        """Add a miss record; return its index among miss records."""
        return self._miss.add(prog_group, data)

    def add_hit_entry(self, prog_group: Any, data: Optional[BytesLike] = None) -> int:
        """Add a hit group record; return its index among hit group records."""
        return self._hitgroup.add(prog_group, data)

    def add_callable_entry(self, prog_group: Any, data: Optional[BytesLike] = None) -> int:
        """Add a callable record; return its index among callable records."""
        return self._callable.add(prog_group, data)

    def _pack_records(self, entries: _EntryList) -> bytes:
        stride = entries.stride
        out = bytearray()
        for prog_group, data in entries.entries:
            header = bytes(memoryview(self.header_packer(prog_group)))
            if len(header) != SBT_RECORD_HEADER_SIZE:
                raise ValueError(
                    f"record header must be {SBT_RECORD_HEADER_SIZE} bytes, got {len(header)}"
                )
            record = header + data
            out += record.ljust(stride, b"\0")
        return bytes(out)

    def create_sbt(self) -> None:
        """Build the record buffer and one table per raygen record."""
        kinds = (self._raygen, self._miss, self._hitgroup, self._callable)
        offsets = []
        position = 0
        for entries in kinds:
            offsets.append(position)
            position += entries.stride * len(entries)
        sbt_size = position

        records = b"".join(self._pack_records(entries) for entries in kinds)
        if len(records) != sbt_size:
            raise RuntimeError("Error encountered while computing SBT data!")
        self.buffer = records

        raygen_offset, miss_offset, hitgroup_offset, callable_offset = offsets

        def section(entries: _EntryList, offset: int) -> Tuple[Optional[int], int, int]:
            if not entries.entries:
                return None, 0, 0
            return offset, entries.stride, len(entries)

        miss = section(self._miss, miss_offset)
        hit = section(self._hitgroup, hitgroup_offset)
        call = section(self._callable, callable_offset)

        self._tables = [
            SbtTable(
                raygen_record=raygen_offset + index * self._raygen.stride,
                miss_record_base=miss[0],
                miss_record_stride_in_bytes=miss[1],
                miss_record_count=miss[2],
                hitgroup_record_base=hit[0],
                hitgroup_record_stride_in_bytes=hit[1],
                hitgroup_record_count=hit[2],
                callables_record_base=call[0],
                callables_record_stride_in_bytes=call[1],
                callables_record_count=call[2],
            )
            for index in range(len(self._raygen))
        ]

    def get_sbt(self, raygen_index: int = 0) -> Optional[SbtTable]:
        """Table for the given raygen record, or ``None`` if there is none."""
        if 0 <= raygen_index < len(self._tables):
            return self._tables[raygen_index]
        return None