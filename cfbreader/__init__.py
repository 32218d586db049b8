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

"""
A read-only reader for Microsoft's Compound File Binary format (MS-CFB), also
known as `OLE Compound Document`_ files: the container underneath legacy
Office files (.doc, .xls, .ppt) among others.

Most of the work in this package was derived from the `MS-CFB`_
specification published by Microsoft, and the specification for `OLE
Compound Document`_ files published by OpenOffice.

.. _MS-CFB: https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-cfb/
.. _OLE Compound Document: http://www.openoffice.org/sc/compdocfileformat.pdf


open_cfb
========

.. autofunction:: open_cfb


CfbFile
=======

.. autoclass:: CfbFile
    :members:


DirectoryEntry
==============

.. autoclass:: DirectoryEntry
    :members:


walk_chain
==========

.. autofunction:: walk_chain


Exceptions
==========

.. autoexception:: CfbError

.. autoexception:: CfbFormatError

.. autoexception:: CfbUnsupportedError

.. autoexception:: CfbNotFoundError

.. autoexception:: CfbWarning

.. autoexception:: CfbStructureWarning

"""

from .errors import (
    CfbError,
    CfbFormatError,
    CfbInvalidChainError,
    CfbChainLimitError,
    CfbNotFoundError,
    CfbNotStreamError,
    CfbUnsupportedError,
    CfbWarning,
    CfbStructureWarning,
    CfbHeaderWarning,
    CfbSectorSizeWarning,
    CfbDifatWarning,
    CfbFatSectorWarning,
    CfbMiniFatWarning,
    CfbDirEntryWarning,
    WARNING_CODES,
    )
from .const import SectorMarker, EntryType
from .header import CfbHeader, parse_header
from .chain import walk_chain
from .directory import DirectoryEntry
from .streams import read_from_fat, read_from_mini_fat
from .reader import CfbFile, open_cfb


__all__ = [
    'CfbError',
    'CfbFormatError',
    'CfbInvalidChainError',
    'CfbChainLimitError',
    'CfbNotFoundError',
    'CfbNotStreamError',
    'CfbUnsupportedError',
    'CfbWarning',
    'CfbStructureWarning',
    'CfbHeaderWarning',
    'CfbSectorSizeWarning',
    'CfbDifatWarning',
    'CfbFatSectorWarning',
    'CfbMiniFatWarning',
    'CfbDirEntryWarning',
    'WARNING_CODES',
    'SectorMarker',
    'EntryType',
    'CfbHeader',
    'parse_header',
    'walk_chain',
    'DirectoryEntry',
    'read_from_fat',
    'read_from_mini_fat',
    'CfbFile',
    'open_cfb',
    ]
