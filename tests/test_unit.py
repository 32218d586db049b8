#!/usr/bin/env python
# vim: set et sw=4 sts=4 fileencoding=utf-8:
#
# A library for reading Microsoft's OLE Compound Document format
# Copyright (c) 2014 Dave Hughes <dave@waveform.org.uk>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import struct
import itertools
import warnings
import datetime as dt
from array import array

import pytest
from mock import MagicMock

import cfbreader
from cfbreader.const import (
    COMPOUND_MAGIC,
    COMPOUND_HEADER,
    INLINE_DIFAT,
    DIR_HEADER,
    FREE_SECTOR,
    END_OF_CHAIN,
    FAT_SECTOR,
    DIFAT_SECTOR,
    NO_STREAM,
    SectorMarker,
    EntryType,
    decode_sector,
    )
from cfbreader.errors import (
    CfbWarning,
    report_inconsistency,
    FAT_CHAIN_INVALID,
    FAT_CHAIN_TOO_SHORT,
    FAT_CHAIN_LENGTH_MISMATCH,
    FAT_SECTOR_READ_FAILED,
    MINIFAT_CHAIN_INVALID,
    MINIFAT_CHAIN_LENGTH_MISMATCH,
    MINISTREAM_TRUNCATED,
    )
from cfbreader.header import CfbHeader, parse_header
from cfbreader.chain import walk_chain
from cfbreader.fat import build_difat, build_fat, build_mini_fat
from cfbreader.directory import (
    parse_directory,
    read_directory,
    filetime_to_datetime,
    )
from cfbreader.streams import (
    count_sectors,
    read_sector,
    read_from_fat,
    read_from_mini_fat,
    )

from cfbsamples import build


def setup_function(fn):
    warnings.simplefilter('always')


V3_HEADER = (
    COMPOUND_MAGIC,     # 0  magic
    b'\0' * 16,         # 1  clsid
    0x3E,               # 2  minor ver
    3,                  # 3  major ver
    0xFFFE,             # 4  BOM
    9,                  # 5  512 byte sectors
    6,                  # 6  64 byte mini-sectors
    b'\0' * 6,          # 7  reserved
    0,                  # 8  dir sector count
    1,                  # 9  FAT sector count
    0,                  # 10 dir first sector
    0,                  # 11 txn signature
    4096,               # 12 mini stream cutoff
    END_OF_CHAIN,       # 13 mini-FAT first sector
    0,                  # 14 mini-FAT sector count
    END_OF_CHAIN,       # 15 DIFAT first sector
    0,                  # 16 DIFAT sector count
    )

V4_HEADER = (
    COMPOUND_MAGIC,     # 0  magic
    b'\0' * 16,         # 1  clsid
    0x3E,               # 2  minor ver
    4,                  # 3  major ver
    0xFFFE,             # 4  BOM
    12,                 # 5  4096 byte sectors
    6,                  # 6  64 byte mini-sectors
    b'\0' * 6,          # 7  reserved
    1,                  # 8  dir sector count
    1,                  # 9  FAT sector count
    0,                  # 10 dir first sector
    0,                  # 11 txn signature
    4096,               # 12 mini stream cutoff
    END_OF_CHAIN,       # 13 mini-FAT first sector
    0,                  # 14 mini-FAT sector count
    END_OF_CHAIN,       # 15 DIFAT first sector
    0,                  # 16 DIFAT sector count
    )

HEADER = CfbHeader(
    0x3E, 3, 9, 6, 0, 1, 0, 0, 4096, END_OF_CHAIN, 0, END_OF_CHAIN, 0,
    b'\0' * 16)


def pack_header(header=V3_HEADER, inline=None):
    if inline is None:
        inline = [1] + [FREE_SECTOR] * 108
    return COMPOUND_HEADER.pack(*header) + INLINE_DIFAT.pack(*inline)

def sectors(*chunks):
    # A v3 file with the given sector contents following an empty header
    return b'\0' * 512 + b''.join(chunk.ljust(512, b'\0') for chunk in chunks)

def dir_entry(name, entry_type, left=NO_STREAM, right=NO_STREAM,
              child=NO_STREAM, start=0, size_low=0, size_high=0, created=0,
              modified=0, name_len=None):
    name = name.encode('utf-16-le')
    if name_len is None:
        name_len = len(name) + 2 if name else 0
    return DIR_HEADER.pack(
        name, name_len, entry_type, 1, left, right, child, b'\0' * 16, 0,
        created, modified, start, size_low, size_high)


def test_header_too_short():
    with pytest.raises(cfbreader.CfbFormatError):
        parse_header(b'\0' * 100)

def test_header_magic():
    header = list(V3_HEADER)
    header[0] = b'\0' * 8
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        parse_header(pack_header(header))
    assert 'OLE compound document' in str(exc.value)

def test_header_bom():
    header = list(V3_HEADER)
    header[4] = 0xFEFF
    with pytest.raises(cfbreader.CfbFormatError):
        parse_header(pack_header(header))

def test_header_invalid_version():
    header = list(V4_HEADER)
    header[3] = 5
    with pytest.raises(cfbreader.CfbUnsupportedError):
        parse_header(pack_header(header))

def test_header_invalid_sector_shift():
    header = list(V3_HEADER)
    header[5] = 10
    with pytest.raises(cfbreader.CfbFormatError):
        parse_header(pack_header(header))

def test_header_invalid_mini_sector_shift():
    header = list(V3_HEADER)
    header[6] = 7
    with pytest.raises(cfbreader.CfbFormatError):
        parse_header(pack_header(header))

def test_header_v3():
    header, inline = parse_header(pack_header())
    assert header.major_version == 3
    assert header.sector_size == 512
    assert header.mini_sector_size == 64
    assert header.mini_stream_cutoff == 4096
    assert header.fat_sector_count == 1
    assert len(inline) == 109
    assert inline[:2] == (1, FREE_SECTOR)

def test_header_v4():
    header, inline = parse_header(pack_header(V4_HEADER))
    assert header.major_version == 4
    assert header.sector_size == 4096
    assert header.dir_sector_count == 1

def test_header_strange_settings():
    header = list(V3_HEADER)
    header[1] = b'\1' * 16
    header[5] = 12
    header[7] = b'\1' * 6
    header[8] = 1
    header[11] = 1
    header[12] = 2048
    with pytest.warns(cfbreader.CfbHeaderWarning) as record:
        result, inline = parse_header(pack_header(header))
    # None of these are fatal, but all are reported
    assert len(record) == 6
    assert sum(
        1 for w in record
        if issubclass(w.category, cfbreader.CfbSectorSizeWarning)) == 1
    assert result.sector_size == 4096
    assert result.mini_stream_cutoff == 2048


def test_decode_sector():
    assert decode_sector(0) == 0
    assert decode_sector(0xFFFFFFFA) == 0xFFFFFFFA
    assert decode_sector(0xFFFFFFFE) is SectorMarker.END_OF_CHAIN
    assert decode_sector(0xFFFFFFFF) is SectorMarker.FREE
    assert decode_sector(0xFFFFFFFD) is SectorMarker.FAT_SECTOR
    assert decode_sector(0xFFFFFFFC) is SectorMarker.DIFAT_SECTOR


def test_walk_chain():
    table = (1, 3, END_OF_CHAIN, 2)
    assert walk_chain(table, 0, 10) == [0, 1, 3, 2]
    assert walk_chain(table, 3, 2) == [3, 2]
    assert walk_chain(table, END_OF_CHAIN, 0) == []

def test_walk_chain_raw_array():
    table = array('L', [1, 2, 0xFFFFFFFE])
    assert walk_chain(table, 0, 3) == [0, 1, 2]

def test_walk_chain_cyclic():
    table = (1, 2, 0)
    with pytest.raises(cfbreader.CfbChainLimitError):
        walk_chain(table, 0, 100)
    table = (0,)
    with pytest.raises(cfbreader.CfbChainLimitError):
        walk_chain(table, 0, 5)

def test_walk_chain_too_long():
    table = (1, 2, END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbChainLimitError):
        walk_chain(table, 0, 2)

@pytest.mark.parametrize('marker', [FREE_SECTOR, FAT_SECTOR, DIFAT_SECTOR, 0xFFFFFFFB])
def test_walk_chain_invalid_marker(marker):
    table = (1, marker)
    with pytest.raises(cfbreader.CfbInvalidChainError) as exc:
        walk_chain(table, 0, 10)
    assert exc.value.chain == [0, 1]
    assert exc.value.sector == marker

def test_walk_chain_beyond_table():
    table = (1, 7, END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbInvalidChainError) as exc:
        walk_chain(table, 0, 10)
    assert exc.value.chain == [0, 1]
    assert exc.value.sector == 7
    with pytest.raises(cfbreader.CfbInvalidChainError):
        walk_chain(table, 3, 10)

def test_walk_chain_negative_steps():
    with pytest.raises(ValueError):
        walk_chain((END_OF_CHAIN,), 0, -1)

def test_walk_chain_totality():
    # Every table of three entries drawn from a few pointers and markers,
    # from every start, with a range of budgets: the walk must terminate with
    # a chain no longer than its budget, or raise a format error
    values = (0, 1, 2, END_OF_CHAIN, FREE_SECTOR)
    for table in itertools.product(values, repeat=3):
        for start in (0, 1, 2, END_OF_CHAIN):
            for max_steps in range(5):
                try:
                    chain = walk_chain(table, start, max_steps)
                except cfbreader.CfbFormatError:
                    pass
                else:
                    assert len(chain) <= max_steps
                    assert len(set(chain)) == len(chain)
                    if chain:
                        assert chain[0] == start
                        assert table[chain[-1]] == END_OF_CHAIN


def test_difat_inline():
    data = build()
    header, inline = parse_header(data)
    difat = build_difat(data, header, inline, count_sectors(data, header))
    assert difat == (1,)

def test_difat_count_too_large():
    data = build()
    header, inline = parse_header(data)
    header = header._replace(fat_sector_count=1000)
    with pytest.raises(cfbreader.CfbFormatError):
        build_difat(data, header, inline, count_sectors(data, header))

def test_difat_length_mismatch():
    data = build()
    header, inline = parse_header(data)
    header = header._replace(fat_sector_count=2)
    sector_count = count_sectors(data, header)
    with pytest.raises(cfbreader.CfbFormatError):
        build_difat(data, header, inline, sector_count)
    with pytest.warns(cfbreader.CfbDifatWarning) as record:
        assert build_difat(
            data, header, inline, sector_count, strict=False) == (1,)
    assert len(record) == 1

def test_difat_sector_beyond_file():
    data = build()
    header, inline = parse_header(data)
    header = header._replace(
        fat_sector_count=110, first_difat_sector=50, difat_sector_count=1)
    inline = (0,) * 109
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        build_difat(data, header, inline, 200)
    assert exc.value.code == FAT_SECTOR_READ_FAILED

def test_difat_chain_longer_than_declared():
    # DIFAT sector 0 continues to sector 1, but only one is declared
    chunk = struct.pack('<128L', *([2] * 127 + [1]))
    data = sectors(chunk, *([b''] * 120))
    header = HEADER._replace(
        fat_sector_count=115, first_difat_sector=0, difat_sector_count=1)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        build_difat(data, header, (1,) * 109, count_sectors(data, header))
    assert 'continues beyond' in str(exc.value)

@pytest.mark.parametrize('strict', [False, True])
def test_difat_self_loop(strict):
    # A DIFAT sector pointing back at itself, with a count which would
    # otherwise permit billions of reads
    chunk = struct.pack('<128L', *([2] * 127 + [0]))
    data = sectors(chunk, *([b''] * 120))
    header = HEADER._replace(
        fat_sector_count=115, first_difat_sector=0,
        difat_sector_count=0xFFFFFFFF)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        build_difat(
            data, header, (1,) * 109, count_sectors(data, header),
            strict=strict)
    assert 'loop' in str(exc.value)

def test_difat_loop_through_second_sector():
    chunks = [
        struct.pack('<128L', *([2] * 127 + [1])),
        struct.pack('<128L', *([2] * 127 + [0])),
        ]
    data = sectors(*(chunks + [b''] * 300))
    header = HEADER._replace(
        fat_sector_count=300, first_difat_sector=0,
        difat_sector_count=0xFFFFFFFF)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        build_difat(data, header, (1,) * 109, count_sectors(data, header))
    assert 'loop' in str(exc.value)

def test_fat():
    data = build()
    header, inline = parse_header(data)
    sector_count = count_sectors(data, header)
    fat = build_fat(data, header, (1,), sector_count)
    assert len(fat) == sector_count == 2
    assert fat[0] is SectorMarker.END_OF_CHAIN
    assert fat[1] is SectorMarker.FAT_SECTOR

def test_fat_sector_beyond_file():
    data = build()
    header, inline = parse_header(data)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        build_fat(data, header, (1, 20), count_sectors(data, header))
    assert exc.value.code == FAT_SECTOR_READ_FAILED

def test_fat_sector_marked_wrong():
    data = build()
    header, inline = parse_header(data)
    with pytest.warns(cfbreader.CfbFatSectorWarning) as record:
        build_fat(data, header, (1, 0), count_sectors(data, header))
    assert len(record) == 1
    assert 'sector 0' in str(record[0].message)

def test_mini_fat():
    raw = struct.pack('<3L', 1, 0xFFFFFFFE, 0xFFFFFFFF)
    assert build_mini_fat(raw) == (1, END_OF_CHAIN, FREE_SECTOR)


def test_parse_directory():
    raw = (
        dir_entry('Root Entry', EntryType.ROOT, child=1, start=3, size_low=128) +
        dir_entry('Stream', EntryType.STREAM, right=2, start=0, size_low=100) +
        dir_entry('Storage', EntryType.STORAGE) +
        dir_entry('', EntryType.UNKNOWN)
        )
    entries = parse_directory(raw, HEADER)
    assert len(entries) == 4
    root, stream, storage, unused = entries
    assert root.is_root and root.is_storage
    assert root.name == 'Root Entry'
    assert root.start_sector == 3
    assert root.size == 128
    assert root.child_id == 1
    assert stream.index == 1
    assert stream.is_stream and not stream.is_storage
    assert stream.name == 'Stream'
    assert stream.size == 100
    assert stream.right_id == 2
    assert stream.left_id == NO_STREAM
    assert storage.is_storage and not storage.is_root
    assert storage.size == 0
    assert unused.is_unused
    assert not stream.is_unused

def test_parse_directory_empty():
    with pytest.raises(cfbreader.CfbFormatError):
        parse_directory(b'', HEADER)

def test_parse_directory_no_root():
    raw = dir_entry('Stream', EntryType.STREAM)
    with pytest.raises(cfbreader.CfbFormatError):
        parse_directory(raw, HEADER)

def test_parse_directory_extra_root():
    raw = dir_entry('Root Entry', EntryType.ROOT) + dir_entry('Root', EntryType.ROOT)
    entries = parse_directory(raw, HEADER)
    assert entries[1].entry_type == EntryType.UNKNOWN
    assert entries[1].is_unused

def test_parse_directory_other_types():
    raw = dir_entry('Root Entry', EntryType.ROOT) + dir_entry('Bytes', 3)
    entries = parse_directory(raw, HEADER)
    assert entries[1].entry_type == EntryType.UNKNOWN
    assert entries[1].is_unused

def test_parse_directory_invalid_names():
    raw = (
        dir_entry('Root Entry', EntryType.ROOT) +
        dir_entry('Odd', EntryType.STREAM, name_len=7) +
        dir_entry('Long', EntryType.STREAM, name_len=66) +
        dir_entry('Short', EntryType.STREAM, name_len=6)
        )
    entries = parse_directory(raw, HEADER)
    assert entries[1].name == ''
    assert entries[1].is_unused
    assert entries[2].name == ''
    assert entries[3].name == 'Sh'

def test_parse_directory_v3_size_high():
    raw = (
        dir_entry('Root Entry', EntryType.ROOT) +
        dir_entry('Stream', EntryType.STREAM, size_low=10, size_high=1)
        )
    assert parse_directory(raw, HEADER)[1].size == 10

def test_parse_directory_v4_size():
    header = HEADER._replace(major_version=4, sector_shift=12)
    raw = (
        dir_entry('Root Entry', EntryType.ROOT) +
        dir_entry('Stream', EntryType.STREAM, size_low=10, size_high=1)
        )
    assert parse_directory(raw, header)[1].size == (1 << 32) + 10

def test_parse_directory_size_too_large():
    header = HEADER._replace(major_version=4, sector_shift=12)
    raw = (
        dir_entry('Root Entry', EntryType.ROOT) +
        dir_entry('Stream', EntryType.STREAM, size_low=0, size_high=0xFFFFFFFF)
        )
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        parse_directory(raw, header)
    assert 'too large' in str(exc.value)

def test_parse_directory_timestamps():
    raw = (
        dir_entry('Root Entry', EntryType.ROOT, modified=116444736000000000) +
        dir_entry('Storage', EntryType.STORAGE, created=116444736000000000)
        )
    root, storage = parse_directory(raw, HEADER)
    assert root.created is None
    assert root.modified == dt.datetime(1970, 1, 1)
    assert storage.created == dt.datetime(1970, 1, 1)
    assert storage.modified is None

def test_filetime_out_of_range():
    assert filetime_to_datetime(0) is None
    assert filetime_to_datetime(0xFFFFFFFFFFFFFFFF) is None

def test_read_directory_missing():
    header = HEADER._replace(first_dir_sector=END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbFormatError):
        read_directory(sectors(b''), header, (END_OF_CHAIN,))

def test_read_directory_invalid_chain():
    data = sectors(dir_entry('Root Entry', EntryType.ROOT) * 4, b'')
    fat = (1, FREE_SECTOR)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_directory(data, HEADER, fat)
    assert exc.value.code == FAT_CHAIN_INVALID
    on_warning = MagicMock()
    entries = read_directory(data, HEADER, fat, strict=False, on_warning=on_warning)
    assert len(entries) == 8
    assert on_warning.call_count == 1
    assert on_warning.call_args[0][0].code == FAT_CHAIN_INVALID


def test_read_sector():
    data = sectors(b'a', b'b')
    assert count_sectors(data, HEADER) == 2
    assert read_sector(data, HEADER, 1) == b'b'.ljust(512, b'\0')
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_sector(data, HEADER, 2)
    assert exc.value.code == FAT_SECTOR_READ_FAILED

def test_count_sectors_partial():
    assert count_sectors(b'\0' * 1500, HEADER) == 1
    assert count_sectors(b'\0' * 100, HEADER) == 0

DATA = sectors(b'a' * 512, b'b' * 512, b'c' * 512, b'd' * 512)

def test_read_from_fat():
    fat = (1, 3, END_OF_CHAIN, END_OF_CHAIN)
    assert read_from_fat(DATA, HEADER, fat, 0, 1100) == (
        b'a' * 512 + b'b' * 512 + b'd' * 76)
    assert read_from_fat(DATA, HEADER, fat, 2, 1) == b'c'

def test_read_from_fat_empty():
    # A zero size never touches the chain, however bogus
    assert read_from_fat(DATA, HEADER, (), 1000, 0) == b''
    assert read_from_fat(DATA, HEADER, (), END_OF_CHAIN, 0) == b''

def test_read_from_fat_no_sectors():
    with pytest.raises(cfbreader.CfbFormatError):
        read_from_fat(DATA, HEADER, (END_OF_CHAIN,), END_OF_CHAIN, 10)

def test_read_from_fat_exact_sizes():
    for size in (1, 511, 512, 513, 1024, 2047, 2048):
        chain_len = (size + 511) // 512
        fat = tuple(range(1, chain_len)) + (END_OF_CHAIN,)
        assert len(read_from_fat(DATA, HEADER, fat, 0, size)) == size

@pytest.mark.parametrize('strict', [False, True])
def test_read_from_fat_too_short(strict):
    fat = (1, END_OF_CHAIN, END_OF_CHAIN, END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_from_fat(DATA, HEADER, fat, 0, 1100, strict=strict)
    assert exc.value.code == FAT_CHAIN_TOO_SHORT

def test_read_from_fat_table_too_small():
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_from_fat(DATA, HEADER, (END_OF_CHAIN,), 0, 2000, strict=False)
    assert exc.value.code == FAT_CHAIN_TOO_SHORT

def test_read_from_fat_too_long():
    fat = (1, 2, END_OF_CHAIN, END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_from_fat(DATA, HEADER, fat, 0, 1000)
    assert exc.value.code == FAT_CHAIN_LENGTH_MISMATCH
    on_warning = MagicMock()
    assert read_from_fat(
        DATA, HEADER, fat, 0, 1000, strict=False, on_warning=on_warning,
        where='Workbook') == b'a' * 512 + b'b' * 488
    assert on_warning.call_count == 1
    warning = on_warning.call_args[0][0]
    assert isinstance(warning, CfbWarning)
    assert warning.code == FAT_CHAIN_LENGTH_MISMATCH
    assert warning.where == 'Workbook'
    assert warning.meta == {'expected': 2, 'actual': 3}

def test_read_from_fat_lenient_uses_warnings():
    fat = (1, 2, END_OF_CHAIN, END_OF_CHAIN)
    with pytest.warns(CfbWarning):
        assert len(read_from_fat(DATA, HEADER, fat, 0, 1000, strict=False)) == 1000

def test_read_from_fat_invalid_chain():
    fat = (1, 2, FREE_SECTOR, END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_from_fat(DATA, HEADER, fat, 0, 1100)
    assert exc.value.code == FAT_CHAIN_INVALID
    on_warning = MagicMock()
    assert read_from_fat(
        DATA, HEADER, fat, 0, 1100, strict=False,
        on_warning=on_warning) == b'a' * 512 + b'b' * 512 + b'c' * 76
    assert on_warning.call_count == 1
    assert on_warning.call_args[0][0].code == FAT_CHAIN_INVALID

def test_read_from_fat_invalid_beyond_size():
    # The bad pointer follows more sectors than the size needs; that is one
    # inconsistency, reported once
    fat = (1, 2, FREE_SECTOR, END_OF_CHAIN)
    on_warning = MagicMock()
    assert read_from_fat(
        DATA, HEADER, fat, 0, 1000, strict=False,
        on_warning=on_warning) == b'a' * 512 + b'b' * 488
    assert on_warning.call_count == 1
    assert on_warning.call_args[0][0].code == FAT_CHAIN_INVALID

def test_read_from_mini_fat_invalid_beyond_size():
    mini_fat = (1, 2, 7)
    on_warning = MagicMock()
    assert read_from_mini_fat(
        MINI_STREAM, HEADER, mini_fat, 0, 100, strict=False,
        on_warning=on_warning) == MINI_STREAM[:100]
    assert on_warning.call_count == 1
    assert on_warning.call_args[0][0].code == MINIFAT_CHAIN_INVALID

@pytest.mark.parametrize('strict', [False, True])
def test_read_from_fat_cyclic(strict):
    fat = (1, 0, END_OF_CHAIN, END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbChainLimitError):
        read_from_fat(DATA, HEADER, fat, 0, 1000, strict=strict)

MINI_STREAM = bytes(bytearray(range(256)))

def test_read_from_mini_fat():
    mini_fat = (1, 3, END_OF_CHAIN, END_OF_CHAIN)
    assert read_from_mini_fat(MINI_STREAM, HEADER, mini_fat, 0, 150) == (
        MINI_STREAM[0:128] + MINI_STREAM[192:214])
    assert read_from_mini_fat(MINI_STREAM, HEADER, mini_fat, 2, 64) == (
        MINI_STREAM[128:192])
    assert read_from_mini_fat(MINI_STREAM, HEADER, (), 0, 0) == b''

def test_read_from_mini_fat_truncated():
    mini_fat = (1, 2, END_OF_CHAIN)
    for strict in (True, False):
        with pytest.raises(cfbreader.CfbFormatError) as exc:
            read_from_mini_fat(
                MINI_STREAM[:128], HEADER, mini_fat, 0, 150, strict=strict)
        assert exc.value.code == MINISTREAM_TRUNCATED

def test_read_from_mini_fat_partial_last_sector():
    # The final mini-sector need only hold the bytes actually required
    mini_fat = (1, END_OF_CHAIN)
    assert read_from_mini_fat(
        MINI_STREAM[:100], HEADER, mini_fat, 0, 100) == MINI_STREAM[:100]

def test_read_from_mini_fat_too_long():
    mini_fat = (1, 2, END_OF_CHAIN, END_OF_CHAIN)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_from_mini_fat(MINI_STREAM, HEADER, mini_fat, 0, 100)
    assert exc.value.code == MINIFAT_CHAIN_LENGTH_MISMATCH
    on_warning = MagicMock()
    assert read_from_mini_fat(
        MINI_STREAM, HEADER, mini_fat, 0, 100, strict=False,
        on_warning=on_warning) == MINI_STREAM[:100]
    assert on_warning.call_args[0][0].code == MINIFAT_CHAIN_LENGTH_MISMATCH

def test_read_from_mini_fat_invalid():
    mini_fat = (1, 9)
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        read_from_mini_fat(MINI_STREAM, HEADER, mini_fat, 0, 100)
    assert exc.value.code == MINIFAT_CHAIN_INVALID


def test_report_inconsistency():
    with pytest.raises(cfbreader.CfbFormatError) as exc:
        report_inconsistency(True, None, FAT_CHAIN_INVALID, 'here', 'bad')
    assert exc.value.code == FAT_CHAIN_INVALID
    assert exc.value.where == 'here'
    assert str(exc.value) == 'bad'
    on_warning = MagicMock()
    report_inconsistency(
        False, on_warning, MINISTREAM_TRUNCATED, 'here', 'bad', {'a': 1})
    warning = on_warning.call_args[0][0]
    assert (warning.code, warning.where, warning.message, warning.meta) == (
        MINISTREAM_TRUNCATED, 'here', 'bad', {'a': 1})
