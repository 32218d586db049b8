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

import io
import logging
import warnings
from collections import namedtuple

from .header import parse_header
from .fat import build_difat, build_fat, build_mini_fat
from .directory import read_directory
from .streams import count_sectors, read_from_fat, read_from_mini_fat
from .errors import (
    CfbFormatError,
    CfbNotFoundError,
    CfbNotStreamError,
    CfbMiniFatWarning,
    MINISTREAM_TRUNCATED,
    )
from .const import END_OF_CHAIN, FREE_SECTOR, NO_STREAM


logger = logging.getLogger(__name__)


class CfbFile(namedtuple('CfbFile', (
        'data',
        'header',
        'directory',
        'fat',
        'mini_fat',
        'mini_stream',
        'strict',
        'on_warning',
        ))):
    """
    Provides access to the streams within an `OLE Compound Document`_.

    Instances are not constructed directly, but are returned by
    :func:`open_cfb`. A :class:`CfbFile` is an immutable value holding the
    decoded header, FAT, directory and (optionally) mini-FAT of the document
    alongside the original data; it holds no open resources and can simply
    be dropped when no longer required::

        cfb = open_cfb(data)
        try:
            workbook = cfb.read_stream(['Workbook'])
        except CfbNotFoundError:
            workbook = cfb.read_stream(['Book'])

    Paths are given as a sequence of names, or as a single string with ``/``
    separators. Name comparison is case-insensitive.

    .. _OLE Compound Document: https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-cfb/
    """
    __slots__ = ()

    def __repr__(self):
        return '<CfbFile v%d entries=%d sectors=%d>' % (
            self.header.major_version, len(self.directory), len(self.fat))

    @property
    def root(self):
        """
        The root :class:`~cfbreader.directory.DirectoryEntry`.
        """
        return self.directory[0]

    def _find_sibling(self, start, name):
        # The siblings of a storage are nominally a red-black tree sorted by
        # name length then upper-cased name; some writers get this wrong so we
        # simply search every entry reachable from *start*, taking care not to
        # loop in a corrupted tree
        name = name.upper()
        stack = [start]
        visited = set()
        while stack:
            index = stack.pop()
            if index == NO_STREAM or index >= len(self.directory):
                continue
            if index in visited:
                continue
            visited.add(index)
            entry = self.directory[index]
            if not entry.is_unused and entry.name.upper() == name:
                return entry
            stack.append(entry.right_id)
            stack.append(entry.left_id)
        return None

    def find(self, path):
        """
        Return the :class:`~cfbreader.directory.DirectoryEntry` at *path*.

        Raises :exc:`~cfbreader.errors.CfbNotFoundError` if any component of
        the path is missing, or if a component other than the last names a
        stream.
        """
        parts = _split_path(path)
        if not parts:
            raise CfbNotFoundError('empty path in compound file')
        entry = self.root
        for part in parts:
            if not entry.is_storage:
                entry = None
            else:
                entry = self._find_sibling(entry.child_id, part)
            if entry is None:
                raise CfbNotFoundError(
                        'unable to locate %s in compound file' %
                        '/'.join(parts))
        return entry

    def exists(self, path):
        """
        Return ``True`` if *path* refers to a storage or stream.
        """
        try:
            self.find(path)
        except CfbNotFoundError:
            return False
        return True

    def read_stream(self, path):
        """
        Return the content of the stream at *path* as :class:`bytes`.

        Streams smaller than the header's mini stream cutoff are read from
        the mini stream; larger streams are read directly from the file's
        sectors. The result is always exactly the stream's declared size.
        """
        entry = self.find(path)
        where = '/'.join(_split_path(path))
        if not entry.is_stream:
            raise CfbNotStreamError('%s is not a stream' % where)
        if entry.size >= self.header.mini_stream_cutoff:
            return read_from_fat(
                    self.data, self.header, self.fat, entry.start_sector,
                    entry.size, self.strict, self.on_warning, where)
        elif entry.size and self.mini_fat is None:
            raise CfbFormatError(
                    '%s is in the mini stream but the file has no mini '
                    'FAT' % where, code=MINISTREAM_TRUNCATED, where=where)
        else:
            return read_from_mini_fat(
                    self.mini_stream, self.header, self.mini_fat,
                    entry.start_sector, entry.size, self.strict,
                    self.on_warning, where)

    def open(self, path):
        """
        Return a read-only file-like object with the content of the stream
        at *path*.
        """
        return io.BufferedReader(io.BytesIO(self.read_stream(path)))

    def list_entries(self):
        """
        Return a list of ``(path, entry)`` tuples for every storage and stream
        reachable from the root, where *path* is a tuple of names. Siblings
        are listed in directory order (the in-order walk of their tree).
        """
        result = []
        visited = {0}
        storages = [((), self.root)]
        while storages:
            prefix, storage = storages.pop(0)
            for entry in self._siblings(storage.child_id, visited):
                path = prefix + (entry.name,)
                result.append((path, entry))
                if entry.is_storage:
                    storages.append((path, entry))
        return result

    def _siblings(self, start, visited):
        # Iterative in-order walk of a sibling tree; each entry is only ever
        # produced once across the whole directory
        stack = []
        index = start
        while stack or index != NO_STREAM:
            if index != NO_STREAM:
                if index >= len(self.directory) or index in visited:
                    index = NO_STREAM
                    continue
                visited.add(index)
                entry = self.directory[index]
                stack.append(entry)
                index = entry.left_id
            else:
                entry = stack.pop()
                if not entry.is_unused:
                    yield entry
                index = entry.right_id


def _split_path(path):
    if isinstance(path, str):
        return tuple(part for part in path.split('/') if part)
    return tuple(path)


def open_cfb(data, strict=True, on_warning=None):
    """
    Parse the compound document in *data* and return a :class:`CfbFile`.

    *data* must contain the entire file (:class:`bytes`, :class:`bytearray`,
    or anything else supporting the buffer protocol). In *strict* mode (the
    default) any inconsistency between a stream's chain and its declared size
    raises :exc:`~cfbreader.errors.CfbFormatError`; otherwise a
    :class:`~cfbreader.errors.CfbWarning` is passed to *on_warning* (or to
    :func:`warnings.warn` if *on_warning* is ``None``) and a best-effort
    result is returned. Unrecoverable problems raise
    :exc:`~cfbreader.errors.CfbFormatError` or
    :exc:`~cfbreader.errors.CfbUnsupportedError` in either mode.
    """
    if not isinstance(data, bytes):
        data = bytes(data)
    header, inline = parse_header(data)
    sector_count = count_sectors(data, header)
    difat = build_difat(data, header, inline, sector_count, strict)
    fat = build_fat(data, header, difat, sector_count)
    directory = read_directory(data, header, fat, strict, on_warning)

    mini_fat = mini_stream = None
    if header.first_mini_fat_sector not in (END_OF_CHAIN, FREE_SECTOR):
        if header.mini_fat_sector_count == 0:
            message = 'mini FAT sector count is zero'
            if strict:
                raise CfbFormatError(message, where='mini FAT')
            warnings.warn(CfbMiniFatWarning('%s; ignoring mini FAT' % message))
        else:
            mini_fat = build_mini_fat(read_from_fat(
                data, header, fat, header.first_mini_fat_sector,
                header.mini_fat_sector_count * header.sector_size,
                strict, on_warning, 'mini FAT'))
            root = directory[0]
            mini_stream = read_from_fat(
                data, header, fat, root.start_sector, root.size,
                strict, on_warning, 'mini stream')
            logger.debug('mini stream is %d bytes', len(mini_stream))
    return CfbFile(
        data, header, directory, fat, mini_fat, mini_stream, strict,
        on_warning)
