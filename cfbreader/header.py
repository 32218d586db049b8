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

import logging
import warnings
from collections import namedtuple

from .errors import (
    CfbFormatError,
    CfbUnsupportedError,
    CfbHeaderWarning,
    CfbSectorSizeWarning,
    )
from .const import (
    COMPOUND_MAGIC,
    BYTE_ORDER_MARK,
    COMPOUND_HEADER,
    INLINE_DIFAT,
    HEADER_SIZE,
    SECTOR_SHIFTS,
    MINI_SECTOR_SHIFT,
    MINI_STREAM_CUTOFF,
    )


logger = logging.getLogger(__name__)


class CfbHeader(namedtuple('CfbHeader', (
        'minor_version',
        'major_version',
        'sector_shift',
        'mini_sector_shift',
        'dir_sector_count',
        'fat_sector_count',
        'first_dir_sector',
        'transaction_signature',
        'mini_stream_cutoff',
        'first_mini_fat_sector',
        'mini_fat_sector_count',
        'first_difat_sector',
        'difat_sector_count',
        'clsid',
        ))):
    """
    The decoded fixed header of a compound document.

    .. attribute:: sector_size

        The size of a normal sector in bytes (512 or 4096).

    .. attribute:: mini_sector_size

        The size of a mini-sector in bytes (always 64).
    """
    __slots__ = ()

    @property
    def sector_size(self):
        return 1 << self.sector_shift

    @property
    def mini_sector_size(self):
        return 1 << self.mini_sector_shift


def parse_header(data):
    """
    Decode the 512 byte header at the start of *data*.

    Returns a tuple of the :class:`CfbHeader` and the 109 DIFAT entries stored
    inline at the end of the header. Raises :exc:`CfbFormatError` if *data*
    is not a compound document, or :exc:`CfbUnsupportedError` for a version
    this library doesn't understand.
    """
    if len(data) < HEADER_SIZE:
        raise CfbFormatError(
                'data is too short (%d bytes) to be an OLE compound '
                'document' % len(data))
    (
        magic,
        clsid,
        minor_version,
        major_version,
        bom,
        sector_shift,
        mini_sector_shift,
        reserved,
        dir_sector_count,
        fat_sector_count,
        first_dir_sector,
        txn_signature,
        mini_stream_cutoff,
        first_mini_fat_sector,
        mini_fat_sector_count,
        first_difat_sector,
        difat_sector_count,
    ) = COMPOUND_HEADER.unpack_from(data, 0)

    # Check the header for basic correctness
    if magic != COMPOUND_MAGIC:
        raise CfbFormatError('data does not appear to be an OLE compound document')
    if bom != BYTE_ORDER_MARK:
        raise CfbFormatError(
                'unsupported byte ordering (0x%04X)' % bom)
    if major_version not in SECTOR_SHIFTS:
        raise CfbUnsupportedError(
                'unsupported major version (%d)' % major_version)
    if sector_shift not in SECTOR_SHIFTS.values():
        raise CfbFormatError(
                'invalid sector shift (%d)' % sector_shift)
    if mini_sector_shift != MINI_SECTOR_SHIFT:
        raise CfbFormatError(
                'invalid mini sector shift (%d)' % mini_sector_shift)

    # Everything else is merely suspicious
    if sector_shift != SECTOR_SHIFTS[major_version]:
        warnings.warn(CfbSectorSizeWarning(
                'unexpected sector size in v%d file (%d)' % (
                    major_version, 1 << sector_shift)))
    if major_version == 3 and dir_sector_count != 0:
        warnings.warn(CfbHeaderWarning(
                'directory chain sector count is non-zero (%d)' %
                dir_sector_count))
    if clsid != b'\0' * 16:
        warnings.warn(CfbHeaderWarning(
                'CLSID of compound file is non-zero (%r)' % clsid))
    if txn_signature != 0:
        warnings.warn(CfbHeaderWarning(
                'transaction signature is non-zero (%d)' % txn_signature))
    if reserved != b'\0' * 6:
        warnings.warn(CfbHeaderWarning(
                'reserved header bytes are non-zero (%r)' % reserved))
    if mini_stream_cutoff != MINI_STREAM_CUTOFF:
        warnings.warn(CfbHeaderWarning(
                'unexpected mini stream cutoff size (%d)' %
                mini_stream_cutoff))

    header = CfbHeader(
        minor_version,
        major_version,
        sector_shift,
        mini_sector_shift,
        dir_sector_count,
        fat_sector_count,
        first_dir_sector,
        txn_signature,
        mini_stream_cutoff,
        first_mini_fat_sector,
        mini_fat_sector_count,
        first_difat_sector,
        difat_sector_count,
        clsid,
        )
    logger.debug(
            'v%d.%d header: %d byte sectors, %d FAT sectors, %d DIFAT '
            'sectors, %d mini-FAT sectors', major_version, minor_version,
            header.sector_size, fat_sector_count, difat_sector_count,
            mini_fat_sector_count)
    return header, INLINE_DIFAT.unpack_from(data, COMPOUND_HEADER.size)
