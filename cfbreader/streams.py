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

from collections import namedtuple

from .chain import walk_chain
from .const import END_OF_CHAIN, CHAIN_SLACK
from .errors import (
    CfbFormatError,
    CfbInvalidChainError,
    report_inconsistency,
    FAT_CHAIN_INVALID,
    FAT_CHAIN_TOO_SHORT,
    FAT_CHAIN_LENGTH_MISMATCH,
    FAT_SECTOR_READ_FAILED,
    MINIFAT_CHAIN_INVALID,
    MINIFAT_CHAIN_TOO_SHORT,
    MINIFAT_CHAIN_LENGTH_MISMATCH,
    MINISTREAM_TRUNCATED,
    )


# The inconsistency codes reported by the shared chain reading algorithm,
# depending on which table is being walked
ChainCodes = namedtuple('ChainCodes', ('invalid', 'too_short', 'mismatch'))

FAT_CODES = ChainCodes(
    FAT_CHAIN_INVALID, FAT_CHAIN_TOO_SHORT, FAT_CHAIN_LENGTH_MISMATCH)
MINIFAT_CODES = ChainCodes(
    MINIFAT_CHAIN_INVALID, MINIFAT_CHAIN_TOO_SHORT,
    MINIFAT_CHAIN_LENGTH_MISMATCH)


def count_sectors(data, header):
    """
    Return the number of whole sectors following the header in *data*.
    """
    # The header occupies the whole of the first sector in v4 files
    return max(0, (len(data) - header.sector_size) // header.sector_size)


def read_sector(data, header, sector):
    """
    Return the content of normal *sector* from *data*.
    """
    if not 0 <= sector < count_sectors(data, header):
        raise CfbFormatError(
                'read from invalid sector (%d)' % sector,
                code=FAT_SECTOR_READ_FAILED)
    offset = (sector + 1) * header.sector_size
    return data[offset:offset + header.sector_size]


def join_sectors(data, header, chain):
    """
    Concatenate the content of the sectors in *chain*, in order.
    """
    return b''.join(read_sector(data, header, sector) for sector in chain)


def _stream_chain(table, start, size, sector_size, codes, strict, on_warning,
                  where):
    # Returns exactly the sectors required to hold *size* bytes starting from
    # *start*, having checked the chain against the declared size
    if start == END_OF_CHAIN:
        raise CfbFormatError(
                'stream of %d bytes has no sectors' % size, where=where)
    required = (size + sector_size - 1) // sector_size
    if required > len(table):
        # Don't bother walking; the table can't possibly hold the stream
        raise CfbFormatError(
                'stream of %d bytes needs %d sectors but only %d exist' % (
                    size, required, len(table)),
                code=codes.too_short, where=where)
    reported = False
    try:
        chain = walk_chain(table, start, required + CHAIN_SLACK)
    except CfbInvalidChainError as exc:
        report_inconsistency(
                strict, on_warning, codes.invalid, where, str(exc),
                {'sector': exc.sector, 'length': len(exc.chain)})
        chain = exc.chain
        reported = True
    if len(chain) < required:
        raise CfbFormatError(
                'chain starting at %d has %d sectors but %d bytes need %d' % (
                    start, len(chain), size, required),
                code=codes.too_short, where=where)
    elif len(chain) > required:
        # A bad pointer beyond the required sectors has already been reported
        if not reported:
            report_inconsistency(
                    strict, on_warning, codes.mismatch, where,
                    'chain starting at %d has %d sectors but %d bytes need '
                    'only %d' % (start, len(chain), size, required),
                    {'expected': required, 'actual': len(chain)})
        del chain[required:]
    return chain


def read_from_fat(data, header, fat, start, size, strict=True,
                  on_warning=None, where=None):
    """
    Return the *size* bytes of the stream beginning at normal sector *start*.

    The chain is followed through *fat* and checked against the declared
    *size*. A chain too short to hold *size* bytes is always an error; a
    chain with extra sectors is an error in *strict* mode, and otherwise the
    extra sectors are reported to *on_warning* and ignored. The result is
    always exactly *size* bytes long.
    """
    if size == 0:
        return b''
    if where is None:
        where = 'stream at sector %d' % start
    chain = _stream_chain(
            fat, start, size, header.sector_size, FAT_CODES, strict,
            on_warning, where)
    return join_sectors(data, header, chain)[:size]


def read_from_mini_fat(mini_stream, header, mini_fat, start, size,
                       strict=True, on_warning=None, where=None):
    """
    Return the *size* bytes of the stream beginning at mini-sector *start*.

    This is identical to :func:`read_from_fat` except that the chain is
    followed through *mini_fat* and the mini-sectors are taken from the
    *mini_stream* buffer (the content of the root entry). A mini-sector which
    lies beyond the end of *mini_stream* is always an error.
    """
    if size == 0:
        return b''
    if where is None:
        where = 'mini stream at mini-sector %d' % start
    sector_size = header.mini_sector_size
    chain = _stream_chain(
            mini_fat, start, size, sector_size, MINIFAT_CODES, strict,
            on_warning, where)
    chunks = []
    remaining = size
    for sector in chain:
        offset = sector * sector_size
        wanted = min(sector_size, remaining)
        if offset + wanted > len(mini_stream):
            raise CfbFormatError(
                    'mini-sector %d lies beyond the end of the mini stream '
                    '(%d bytes)' % (sector, len(mini_stream)),
                    code=MINISTREAM_TRUNCATED, where=where)
        chunks.append(mini_stream[offset:offset + wanted])
        remaining -= wanted
    return b''.join(chunks)
