# coding: utf-8
# pylint: disable=C0103,C0301,R0903,W0622

# Copyright 2015 by Leipzig University Library, http://ub.uni-leipzig.de
#                   The Finc Authors, http://finc.info
#                   Martin Czygan, <martin.czygan@uni-leipzig.de>
#
# This file is part of some open source application.
#
# Some open source application is free software: you can redistribute
# it and/or modify it under the terms of the GNU General Public
# License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
#
# Some open source application is distributed in the hope that it will
# be useful, but WITHOUT ANY WARRANTY; without even the implied warranty
# of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Foobar.  If not, see <http://www.gnu.org/licenses/>.
#
# @license GPL-3.0+ <http://spdx.org/licenses/GPL-3.0+>

"""
Filters decide, whether an ISIL should be attached to a given intermediate
schema record. There are four kinds:

* Any, always true
* SourceFilter, true for records of a given source
* ListFilter, true if one of the ISSN of the record is in a given set
* HoldingsFilter, true if a license covers the record and the moving wall allows access

An ISILTagger maps each ISIL to a list of filters. If any of these filters
returns true, the ISIL is attached.

Filters are built once and are only read afterwards, so they can be shared
by all workers.
"""

import datetime
import logging

from span.errors import HoldingsParseErrors
from span.holdings import Licenses, parse_holdings
from span.utils import load_set

logger = logging.getLogger('span')


class Filter(object):
    """
    Wraps the decision, whether a record should be attached or not.
    """
    name = None

    def apply(self, record):
        raise NotImplementedError

    def marshal(self):
        """
        A JSON serializable description of this filter.
        """
        raise NotImplementedError

    def __repr__(self):
        return '<%s>' % self.__class__.__name__


class Any(Filter):
    """ Always true. """
    name = 'any'

    def apply(self, record):
        return True

    def marshal(self):
        return {}


class SourceFilter(Filter):
    """
    Attach ISIL to all records of a given source.
    """
    name = 'source'

    def __init__(self, source_id):
        self.source_id = str(source_id)

    def apply(self, record):
        return record.source_id == self.source_id

    def marshal(self):
        return self.source_id

    def __repr__(self):
        return '<SourceFilter %s>' % self.source_id


class ListFilter(Filter):
    """
    Include records whose ISSN or e-ISSN is contained in a given set.
    """
    name = 'list'

    def __init__(self, values):
        self.values = frozenset(values)

    @classmethod
    def from_file(cls, source):
        """
        Read one value per line from a filename or file object.
        """
        return cls(load_set(source))

    def apply(self, record):
        for issn in record.issns():
            if issn in self.values:
                return True
        return False

    def marshal(self):
        return sorted(self.values)

    def __repr__(self):
        return '<ListFilter %d values>' % len(self.values)


class HoldingsFilter(Filter):
    """
    Compare (year, volume, issue) of a record with license information,
    including moving walls. The `ref` date is the reference for moving wall
    calculations, `table` maps ISSN to licenses.
    """
    name = 'holdings'

    def __init__(self, table, ref=None):
        self.table = table if table is not None else Licenses()
        self.ref = ref or datetime.datetime.now()

    @classmethod
    def from_file(cls, source, ref=None):
        """
        Load licensing information for a single institution. If there were
        errors, they are logged one by one and a single HoldingsParseErrors is
        raised, which carries the filter built from the valid parts.
        """
        licenses, errors = parse_holdings(source)
        f = cls(licenses, ref=ref)
        if errors:
            for err in errors:
                logger.debug('%s: %s', source, err)
            raise HoldingsParseErrors(errors, result=f,
                                      filename=source if isinstance(source, str) else None)
        return f

    def covered_and_valid(self, datum, issn):
        """
        Check coverage and moving wall. If there is no entry for an ISSN, we
        assume there is no valid license.
        """
        for license in self.table.get(issn, ()):
            if not license.covers(datum):
                continue
            if self.ref >= license.wall(self.ref):
                return True
        return False

    def apply(self, record):
        datum = record.datum()
        for issn in record.issns():
            if self.covered_and_valid(datum, issn):
                return True
        return False

    def marshal(self):
        return self.table.marshal()

    def __repr__(self):
        return '<HoldingsFilter %d ISSN>' % len(self.table)


# All filter kinds, by name.
FILTERS = {cls.name: cls for cls in (Any, SourceFilter, ListFilter, HoldingsFilter)}


class ISILTagger(dict):
    """
    Maps an ISIL to one or more filters. If any of these filters returns
    true, the ISIL shall be attached, so the order of filters does not matter.
    """

    def add(self, isil, f):
        self.setdefault(isil, []).append(f)

    def tags(self, record):
        """
        Return the set of ISILs that can be attached to a given record.
        """
        isils = set()
        for isil, filters in self.items():
            for f in filters:
                if f.apply(record):
                    isils.add(isil)
                    break
        return isils

    @classmethod
    def from_isil_issn_holding(cls, iih, ref=None):
        """
        Create a tagger with one holdings filter per ISIL. Returns a tuple
        (tagger, errors), errors are collected over all institutions.
        """
        tagger, errors = cls(), []
        for isil in iih.isils():
            licenses, errs = iih[isil].licenses()
            errors.extend(errs)
            tagger.add(isil, HoldingsFilter(licenses, ref=ref))
        return tagger, errors

    def marshal(self):
        return {isil: [{f.name: f.marshal()} for f in filters]
                for isil, filters in self.items()}
