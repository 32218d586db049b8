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
import datetime as dt
from collections import namedtuple

from .chain import walk_chain
from .streams import join_sectors
from .errors import (
    CfbFormatError,
    CfbInvalidChainError,
    CfbDirEntryWarning,
    report_inconsistency,
    FAT_CHAIN_INVALID,
    )
from .const import (
    END_OF_CHAIN,
    FREE_SECTOR,
    MAX_NORMAL_SECTOR,
    DIR_HEADER,
    EntryType,
    )


logger = logging.getLogger(__name__)

FILETIME_EPOCH = dt.datetime(1601, 1, 1)


class DirectoryEntry(namedtuple('DirectoryEntry', (
        'index',
        'name',
        'entry_type',
        'color',
        'left_id',
        'right_id',
        'child_id',
        'clsid',
        'state_bits',
        'created',
        'modified',
        'start_sector',
        'size',
        ))):
    """
    Represents a single entry in the directory of a compound document.

    An entry can be a "stream" (analogous to a file in a file-system) which
    has a :attr:`size` and a :attr:`start_sector`, or a "storage" (analogous
    to a directory) which can contain other streams and storages. Entries
    refer to one another by index: :attr:`left_id` and :attr:`right_id` link
    the siblings within a storage, and :attr:`child_id` gives one of the
    children of a storage. The root entry (always index 0) is a storage
    whose stream content is the mini stream.

    .. attribute:: name

        The name of the entry. This can be up to 31 characters long and may
        contain any character representable in UTF-16 except NULL. Names are
        considered case-insensitive for comparison purposes.

    .. attribute:: created

        The creation time-stamp as a :class:`~datetime.datetime`, or ``None``
        if unset.

    .. attribute:: modified

        The modification time-stamp as a :class:`~datetime.datetime`, or
        ``None`` if unset.
    """
    __slots__ = ()

    @property
    def is_stream(self):
        return self.entry_type == EntryType.STREAM

    @property
    def is_storage(self):
        return self.entry_type in (EntryType.STORAGE, EntryType.ROOT)

    @property
    def is_root(self):
        return self.entry_type == EntryType.ROOT

    @property
    def is_unused(self):
        return self.entry_type == EntryType.UNKNOWN or not self.name

    def __repr__(self):
        return '<DirectoryEntry %d %s name=%r size=%d>' % (
            self.index, self.entry_type.name, self.name, self.size)


def filetime_to_datetime(value):
    """
    Convert a Windows FILETIME (100ns intervals since 1601) to a naive UTC
    :class:`~datetime.datetime`. Returns ``None`` for zero or values beyond
    the range :class:`~datetime.datetime` can represent.
    """
    if value == 0:
        return None
    try:
        return FILETIME_EPOCH + dt.timedelta(microseconds=value // 10)
    except OverflowError:
        return None


def _decode_name(raw, name_len):
    # Name length is in bytes, including NULL terminator ... for a unicode
    # encoded name ... *headdesk*
    if not (2 <= name_len <= len(raw) and name_len % 2 == 0):
        return ''
    try:
        name = raw[:name_len - 2].decode('utf-16-le')
    except UnicodeDecodeError:
        return ''
    return name.split('\0', 1)[0]


def _decode_entry(raw, index, header):
    (
        name,
        name_len,
        entry_type,
        color,
        left_id,
        right_id,
        child_id,
        clsid,
        state_bits,
        created,
        modified,
        start_sector,
        size_low,
        size_high,
    ) = DIR_HEADER.unpack(raw)
    name = _decode_name(name, name_len)
    try:
        entry_type = EntryType(entry_type)
    except ValueError:
        entry_type = EntryType.UNKNOWN
    if index == 0:
        if entry_type != EntryType.ROOT:
            raise CfbFormatError(
                    'first directory entry is not the root entry (type '
                    '%d)' % entry_type)
    elif entry_type == EntryType.ROOT:
        warnings.warn(CfbDirEntryWarning(
                'root type in dir entry %d; ignoring entry' % index))
        entry_type = EntryType.UNKNOWN

    if entry_type in (EntryType.STREAM, EntryType.ROOT):
        if header.major_version == 3:
            # Only the low 32-bits are meaningful in v3 files, and some
            # writers leave garbage in the high bits
            if size_high != 0:
                warnings.warn(CfbDirEntryWarning(
                        'ignoring size high-bits (%d) in dir entry %d' % (
                            size_high, index)))
            size = size_low
        else:
            size = (size_high << 32) | size_low
        if size > (MAX_NORMAL_SECTOR + 1) * header.sector_size:
            raise CfbFormatError(
                    'size of dir entry %d is too large (%d)' % (index, size))
    else:
        size = 0

    return DirectoryEntry(
        index,
        name,
        entry_type,
        color,
        left_id,
        right_id,
        child_id,
        clsid,
        state_bits,
        filetime_to_datetime(created),
        filetime_to_datetime(modified),
        start_sector,
        size,
        )


def parse_directory(raw, header):
    """
    Decode the directory stream *raw* into a tuple of
    :class:`DirectoryEntry` instances, indexed by their directory id.
    """
    # In older compound files we have no idea how many entries are actually
    # in the directory, so we calculate an upper bound from the directory
    # stream's length
    count = len(raw) // DIR_HEADER.size
    if count == 0:
        raise CfbFormatError('directory stream is empty')
    entries = tuple(
        _decode_entry(
            raw[index * DIR_HEADER.size:(index + 1) * DIR_HEADER.size],
            index, header)
        for index in range(count)
        )
    logger.debug(
            'directory has %d entries (%d unused)', count,
            sum(1 for entry in entries if entry.is_unused))
    return entries


def read_directory(data, header, fat, strict=True, on_warning=None):
    """
    Read the directory stream through *fat* and decode it with
    :func:`parse_directory`.

    The directory has no declared size, so its chain is bounded only by the
    size of *fat*.
    """
    if header.first_dir_sector in (END_OF_CHAIN, FREE_SECTOR):
        raise CfbFormatError('compound document has no directory')
    try:
        chain = walk_chain(fat, header.first_dir_sector, len(fat))
    except CfbInvalidChainError as exc:
        report_inconsistency(
                strict, on_warning, FAT_CHAIN_INVALID, 'directory', str(exc),
                {'sector': exc.sector, 'length': len(exc.chain)})
        chain = exc.chain
    return parse_directory(join_sectors(data, header, chain), header)
