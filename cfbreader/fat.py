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
import logging
import warnings

from .errors import (
    CfbFormatError,
    CfbDifatWarning,
    CfbFatSectorWarning,
    FAT_SECTOR_READ_FAILED,
    )
from .const import (
    FREE_SECTOR,
    END_OF_CHAIN,
    FAT_SECTOR,
    decode_sector,
    )
from .streams import read_sector


logger = logging.getLogger(__name__)


# In the interests of trying to keep naming vaguely consistent and sensible
# here's a translation list with the names we'll be using first and the names
# other documents use after:
#
#   FAT = normal-FAT = SAT
#   DIFAT = master-FAT = DIF = MSAT
#   mini-FAT = miniFAT = SSAT
#
# The DIFAT (the first 109 entries of which live in the header) stores which
# sectors are occupied by the FAT. It must be read first in order to read the
# sectors that make up the FAT in order. The FAT in turn stores the chains of
# every other structure in the file, including the mini-FAT.


def _unpack_sector(data, header, sector):
    return st.unpack(
            '<%dL' % (header.sector_size // 4),
            read_sector(data, header, sector))


def build_difat(data, header, inline, sector_count, strict=True):
    """
    Return the DIFAT: the tuple of sectors containing the FAT, in order.

    The entries in the header (*inline*) are used first, terminated by the
    first FREE_SECTOR. If the header declares more than 109 FAT sectors, the
    chain of DIFAT sectors is followed, but never for more than the declared
    DIFAT sector count (or the number of sectors in the file, if smaller),
    and never through the same sector twice.
    """
    if header.fat_sector_count > sector_count:
        raise CfbFormatError(
                'FAT sector count (%d) exceeds sectors in file (%d)' % (
                    header.fat_sector_count, sector_count))
    difat = []
    for value in inline[:header.fat_sector_count]:
        if value == FREE_SECTOR:
            break
        difat.append(value)

    if header.fat_sector_count > len(inline):
        per_sector = header.sector_size // 4 - 1
        sector = header.first_difat_sector
        limit = min(header.difat_sector_count, sector_count)
        visited = set()
        read = 0
        while sector not in (END_OF_CHAIN, FREE_SECTOR):
            if sector in visited:
                raise CfbFormatError(
                        'DIFAT loop encountered (sector %d)' % sector)
            if read >= limit:
                raise CfbFormatError(
                        'DIFAT chain continues beyond %d sectors' % limit)
            if not 0 <= sector < sector_count:
                raise CfbFormatError(
                        'DIFAT sector %d beyond file end' % sector,
                        code=FAT_SECTOR_READ_FAILED)
            visited.add(sector)
            entries = _unpack_sector(data, header, sector)
            for value in entries[:per_sector]:
                if value == FREE_SECTOR or len(difat) == header.fat_sector_count:
                    break
                difat.append(value)
            sector = entries[per_sector]
            read += 1
        if read != header.difat_sector_count:
            message = 'DIFAT chain ended after %d of %d declared sectors' % (
                read, header.difat_sector_count)
            if strict:
                raise CfbFormatError(message)
            warnings.warn(CfbDifatWarning(message))

    if len(difat) != header.fat_sector_count:
        message = 'DIFAT length does not match FAT sector count (%d != %d)' % (
            len(difat), header.fat_sector_count)
        if strict:
            raise CfbFormatError(message)
        warnings.warn(CfbDifatWarning(message))
    return tuple(difat)


def build_fat(data, header, difat, sector_count):
    """
    Return the FAT as a tuple indexed by sector number, built from the sectors
    listed in *difat*.

    Each value is either the next sector in a chain, or a
    :class:`~cfbreader.const.SectorMarker`. The table is limited to the
    *sector_count* sectors that actually exist in the file.
    """
    fat = []
    for sector in difat:
        if not 0 <= sector < sector_count:
            raise CfbFormatError(
                    'FAT sector %d beyond file end' % sector,
                    code=FAT_SECTOR_READ_FAILED)
        fat.extend(_unpack_sector(data, header, sector))
    fat = tuple(decode_sector(value) for value in fat[:sector_count])

    # The following simply verifies that all FAT sectors are marked
    # appropriately in the FAT
    for sector in difat:
        if sector < len(fat) and fat[sector] != FAT_SECTOR:
            warnings.warn(CfbFatSectorWarning(
                    'FAT sector %d marked incorrectly in FAT (0x%08X)' % (
                        sector, fat[sector])))
    logger.debug('FAT covers %d of %d sectors', len(fat), sector_count)
    return fat


def build_mini_fat(raw):
    """
    Return the mini-FAT as a tuple decoded from the *raw* bytes of its
    stream.
    """
    count = len(raw) // 4
    mini_fat = tuple(
        decode_sector(value)
        for value in st.unpack_from('<%dL' % count, raw)
        )
    logger.debug('mini-FAT has %d entries', len(mini_fat))
    return mini_fat
