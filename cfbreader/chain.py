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

from .errors import CfbInvalidChainError, CfbChainLimitError
from .const import END_OF_CHAIN, MAX_NORMAL_SECTOR, SectorMarker


def walk_chain(table, start, max_steps):
    """
    Follow the chain of sectors beginning at *start* through *table* (the
    FAT or mini-FAT) until END_OF_CHAIN, returning the list of sectors
    visited in order.

    The walk is iterative and never visits more than *max_steps* sectors;
    a longer (most likely cyclic) chain raises :exc:`CfbChainLimitError`. A
    pointer to a free or special sector, or beyond the end of *table*, raises
    :exc:`CfbInvalidChainError` with the sectors visited so far in its
    ``chain`` attribute.
    """
    if max_steps < 0:
        raise ValueError('max_steps must be zero or positive')
    chain = []
    sector = start
    size = len(table)
    while sector != END_OF_CHAIN:
        if sector > MAX_NORMAL_SECTOR:
            try:
                name = SectorMarker(sector).name
            except ValueError:
                name = 'reserved value 0x%08X' % sector
            raise CfbInvalidChainError(
                    '%s in chain starting at %d' % (name, start),
                    chain=chain, sector=sector)
        if not 0 <= sector < size:
            raise CfbInvalidChainError(
                    'sector %d beyond end of table (%d entries) in chain '
                    'starting at %d' % (sector, size, start),
                    chain=chain, sector=sector)
        if len(chain) >= max_steps:
            raise CfbChainLimitError(
                    'chain starting at %d exceeds %d sectors (cyclic '
                    'chain?)' % (start, max_steps))
        chain.append(sector)
        sector = table[sector]
    return chain
