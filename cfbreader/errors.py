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

import warnings


FAT_CHAIN_INVALID             = 'FAT_CHAIN_INVALID'
FAT_CHAIN_TOO_SHORT           = 'FAT_CHAIN_TOO_SHORT'
FAT_CHAIN_LENGTH_MISMATCH     = 'FAT_CHAIN_LENGTH_MISMATCH'
FAT_SECTOR_READ_FAILED        = 'FAT_SECTOR_READ_FAILED'
MINIFAT_CHAIN_INVALID         = 'MINIFAT_CHAIN_INVALID'
MINIFAT_CHAIN_TOO_SHORT       = 'MINIFAT_CHAIN_TOO_SHORT'
MINIFAT_CHAIN_LENGTH_MISMATCH = 'MINIFAT_CHAIN_LENGTH_MISMATCH'
MINISTREAM_TRUNCATED          = 'MINISTREAM_TRUNCATED'

WARNING_CODES = frozenset((
    FAT_CHAIN_INVALID,
    FAT_CHAIN_TOO_SHORT,
    FAT_CHAIN_LENGTH_MISMATCH,
    FAT_SECTOR_READ_FAILED,
    MINIFAT_CHAIN_INVALID,
    MINIFAT_CHAIN_TOO_SHORT,
    MINIFAT_CHAIN_LENGTH_MISMATCH,
    MINISTREAM_TRUNCATED,
    ))


class CfbError(IOError):
    """
    Base class for exceptions arising from reading compound documents.

    The optional *code* keyword names the inconsistency (one of the
    ``*_CHAIN_*`` codes) when the error is the strict-mode form of a
    recoverable problem, and *where* describes the structure being read.
    """
    def __init__(self, *args, **kwargs):
        self.code = kwargs.pop('code', None)
        self.where = kwargs.pop('where', None)
        super(CfbError, self).__init__(*args, **kwargs)


class CfbFormatError(CfbError):
    """
    Raised when the content of the compound document is malformed.
    """


class CfbInvalidChainError(CfbFormatError):
    """
    Raised when a FAT or mini-FAT chain points at a free or special sector,
    or at a sector beyond the end of the table. The sectors visited before
    the bad pointer are available as :attr:`chain`, the bad pointer as
    :attr:`sector`.
    """
    def __init__(self, *args, **kwargs):
        self.chain = kwargs.pop('chain', [])
        self.sector = kwargs.pop('sector', None)
        super(CfbInvalidChainError, self).__init__(*args, **kwargs)


class CfbChainLimitError(CfbFormatError):
    """
    Raised when a chain is longer than the number of steps permitted for it
    (typically the result of a cyclic chain).
    """


class CfbNotFoundError(CfbFormatError):
    """
    Raised when a path cannot be located within the compound document.
    """


class CfbNotStreamError(CfbFormatError):
    """
    Raised when a path refers to a storage instead of a stream.
    """


class CfbUnsupportedError(CfbError):
    """
    Raised when the compound document is structurally valid but uses a
    feature this library does not handle.
    """


class CfbWarning(Warning):
    """
    Emitted for recoverable inconsistencies when reading in lenient mode.

    .. attribute:: code

        One of the codes listed in :data:`WARNING_CODES`.

    .. attribute:: where

        A short description of the structure being read.

    .. attribute:: message

        Human readable explanation.

    .. attribute:: meta

        Optional :class:`dict` of extra values (sector numbers, lengths).
    """
    def __init__(self, code, where, message, meta=None):
        super(CfbWarning, self).__init__(message)
        self.code = code
        self.where = where
        self.message = message
        self.meta = meta

    def __repr__(self):
        return '<CfbWarning code=%s where=%r>' % (self.code, self.where)

    def __str__(self):
        return '%s: %s (%s)' % (self.code, self.message, self.where)


class CfbStructureWarning(CfbWarning):
    """
    Base class of the warnings issued (through :func:`warnings.warn`) for
    suspicious values which have no inconsistency code. These are issued
    regardless of *strict*; :attr:`code` is always ``None``.
    """
    default_where = None

    def __init__(self, message, where=None):
        super(CfbStructureWarning, self).__init__(
            None, where or self.default_where, message)

    def __repr__(self):
        return '<%s where=%r>' % (self.__class__.__name__, self.where)

    def __str__(self):
        return '%s (%s)' % (self.message, self.where)


class CfbHeaderWarning(CfbStructureWarning):
    "Issued for odd but harmless values in the file header."
    default_where = 'header'


class CfbSectorSizeWarning(CfbHeaderWarning):
    "Issued when the sector size doesn't match the major version."


class CfbDifatWarning(CfbStructureWarning):
    "Issued in lenient mode when the DIFAT disagrees with the header."
    default_where = 'DIFAT'


class CfbFatSectorWarning(CfbStructureWarning):
    "Issued when a sector holding the FAT is not marked as such in the FAT."
    default_where = 'FAT'


class CfbMiniFatWarning(CfbStructureWarning):
    "Issued in lenient mode when the mini-FAT is declared inconsistently."
    default_where = 'mini FAT'


class CfbDirEntryWarning(CfbStructureWarning):
    "Issued for directory entries which are repaired or ignored."
    default_where = 'directory'


def report_inconsistency(strict, on_warning, code, where, message, meta=None):
    """
    Raise :exc:`CfbFormatError` for the inconsistency named by *code* in
    *strict* mode; otherwise hand a :class:`CfbWarning` to *on_warning*, or to
    :func:`warnings.warn` when no callback was given.
    """
    assert code in WARNING_CODES
    if strict:
        raise CfbFormatError(message, code=code, where=where)
    warning = CfbWarning(code, where, message, meta)
    if on_warning is None:
        warnings.warn(warning, stacklevel=3)
    else:
        on_warning(warning)
