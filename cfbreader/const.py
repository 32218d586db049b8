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

import struct as st
from enum import IntEnum


# Magic identifier at the start of the file
COMPOUND_MAGIC = b'\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1'
BYTE_ORDER_MARK = 0xFFFE

MAX_NORMAL_SECTOR = 0xFFFFFFFA # the maximum sector in a file
NO_STREAM         = 0xFFFFFFFF # no sibling / child directory entry

HEADER_SIZE = 512
DIR_ENTRY_SIZE = 128
INLINE_DIFAT_ENTRIES = 109
MINI_STREAM_CUTOFF = 4096
MINI_SECTOR_SHIFT = 6

# Sector shifts permitted by the format: 512 byte sectors (v3) and 4096 byte
# sectors (v4)
SECTOR_SHIFTS = {3: 9, 4: 12}

# Extra sectors a stream's chain may carry beyond what its declared size
# requires before the walk is abandoned
CHAIN_SLACK = 32


class SectorMarker(IntEnum):
    """
    Special values found in the FAT and mini-FAT in place of a next-sector
    pointer.
    """
    FREE         = 0xFFFFFFFF # denotes an unallocated (free) sector
    END_OF_CHAIN = 0xFFFFFFFE # denotes the end of a stream chain
    FAT_SECTOR   = 0xFFFFFFFD # denotes a sector used for the regular FAT
    DIFAT_SECTOR = 0xFFFFFFFC # denotes a sector used for the DIFAT


FREE_SECTOR = SectorMarker.FREE
END_OF_CHAIN = SectorMarker.END_OF_CHAIN
FAT_SECTOR = SectorMarker.FAT_SECTOR
DIFAT_SECTOR = SectorMarker.DIFAT_SECTOR


def decode_sector(value):
    """
    Convert a raw 32-bit table *value* into either a :class:`SectorMarker` or
    a plain :class:`int` holding the next sector number.
    """
    if value >= DIFAT_SECTOR:
        return SectorMarker(value)
    return value


class EntryType(IntEnum):
    UNKNOWN = 0 # unused slot (also ILockBytes and IPropertyStorage)
    STORAGE = 1 # element is a storage (dir) object
    STREAM  = 2 # element is a stream (file) object
    ROOT    = 5 # element is the root storage object


COMPOUND_HEADER = st.Struct(''.join((
    '<',    # little-endian format
    '8s',   # magic string
    '16s',  # file CLSID (must be zero)
    'H',    # minor version
    'H',    # major version
    'H',    # byte order mark
    'H',    # sector size (actual size is 2**sector_shift)
    'H',    # mini sector size (actual size is 2**mini_sector_shift)
    '6s',   # reserved
    'L',    # directory chain sector count (v4 only)
    'L',    # FAT sector count
    'L',    # ID of first sector of the directory
    'L',    # transaction signature (unused)
    'L',    # minimum size of a normal stream
    'L',    # ID of first sector of the mini-FAT
    'L',    # mini-FAT sector count
    'L',    # ID of first sector of the DIFAT
    'L',    # DIFAT sector count
    )))

INLINE_DIFAT = st.Struct('<%dL' % INLINE_DIFAT_ENTRIES)

DIR_HEADER = st.Struct(''.join((
    '<',    # little-endian format
    '64s',  # NULL-terminated filename in UTF-16 little-endian encoding
    'H',    # length of filename in bytes, including the terminator
    'B',    # dir-entry type
    'B',    # red (0) or black (1) entry
    'L',    # ID of left-sibling node
    'L',    # ID of right-sibling node
    'L',    # ID of children's root node
    '16s',  # dir-entry CLSID
    'L',    # user flags (state bits)
    'Q',    # creation timestamp
    'Q',    # modification timestamp
    'L',    # start sector of stream
    'L',    # low 32-bits of stream size
    'L',    # high 32-bits of stream size
    )))

assert COMPOUND_HEADER.size + INLINE_DIFAT.size == HEADER_SIZE
assert DIR_HEADER.size == DIR_ENTRY_SIZE
