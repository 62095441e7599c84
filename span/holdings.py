# coding: utf-8
# pylint: disable=C0103,C0301,R0903,E0213

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
Holdings files (OVID format) and licensing information.

A holdings file lists, for a single institution, the serials it has access
to, together with coverage ranges and optional moving walls:

    <holdings>
      <holding ezb_id="1234">
        <title>Journal of Examples</title>
        <publishers>Example Press</publishers>
        <EZBIssns>
          <p-issn>1234-5678</p-issn>
          <e-issn>8765-4321</e-issn>
        </EZBIssns>
        <entitlements>
          <entitlement status="subscribed">
            <url>http://example.com/journal</url>
            <anchor>natlic</anchor>
            <begin><year>2000</year><volume>1</volume><issue>1</issue></begin>
            <end><year>2020</year><volume>50</volume><issue>12</issue></end>
          </entitlement>
        </entitlements>
      </holding>
    </holdings>

Coverage positions (year, volume, issue) are combined into a single string
("datum"), which preserves numeric order as long as year, volume and issue
do not exceed 4, 6 and 6 characters. Range checks are string comparisons.

A moving wall, like "-1Y", restricts access to recent content. A month is 30
days, a year 12 months.
"""

import collections
import datetime
import io
import logging
import re
from typing import List, Optional
from xml.parsers import expat

import xmltodict
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from span.benchmark import timed
from span.errors import DelayMismatch, MalformedDelay, UnknownFormat, UnknownUnit
from span.utils import open_maybe_binary

logger = logging.getLogger('span')

DAY = datetime.timedelta(days=1)
MONTH = 30 * DAY
YEAR = 12 * MONTH

# Lowest and highest datum, used for unspecified start and end dates.
LOW_DATUM = '0000000000000000'
HIGH_DATUM = 'ZZZZZZZZZZZZZZZZ'

# How moving walls are expressed in OVID format.
DELAY_PATTERN = re.compile(r'^(-[0-9]+)(M|Y)$')

# Canonical form of an ISSN.
ISSN_PATTERN = re.compile(r'^[0-9]{4}-[0-9]{4}$')


def parse_delay(s):
    """
    Parse delay strings like '-1M', '-3Y' into a `datetime.timedelta`.
    """
    match = DELAY_PATTERN.match(s or '')
    if match is None:
        raise UnknownFormat('unknown format: %r' % s)
    value, unit = int(match.group(1)), match.group(2)
    if unit == 'Y':
        return value * YEAR
    if unit == 'M':
        return value * MONTH
    raise UnknownUnit('unknown unit: %r' % unit)


def combine_datum(year, volume, issue, empty=''):
    """
    Combine year, volume and issue into a single, comparable value. If all
    values are empty and an `empty` value is given, return that instead.

    >>> combine_datum('2000', '1', '12')
    '2000000001000012'
    >>> combine_datum('', '', '', HIGH_DATUM)
    'ZZZZZZZZZZZZZZZZ'
    """
    year, volume, issue = year or '', volume or '', issue or ''
    if year == '' and volume == '' and issue == '' and empty != '':
        return empty
    return '%s%s%s' % (year.rjust(4, '0'), volume.rjust(6, '0'), issue.rjust(6, '0'))


def is_valid_issn(s):
    return bool(ISSN_PATTERN.match(s))


class License(collections.namedtuple('License', 'lower upper delay expr')):
    """
    A single license range for an ISSN. Two licenses are considered the same,
    if their string representation is the same.
    """
    __slots__ = ()

    def __str__(self):
        return '%s:%s:%s' % (self.lower, self.upper, self.expr)

    def covers(self, datum):
        """
        True, if datum lies within this license range, inclusive.
        """
        return self.lower <= datum <= self.upper

    def wall(self, ref):
        """
        The moving wall as seen from the reference date.
        """
        return ref + self.delay


class Licenses(dict):
    """
    Maps ISSN to a list of License objects.
    """

    def add(self, issn, license):
        """
        Add a license to a given ISSN. Dups are ignored.
        """
        value = str(license)
        for v in self.get(issn, []):
            if str(v) == value:
                return
        self.setdefault(issn, []).append(license)

    def marshal(self):
        return {issn: [str(v) for v in vs] for issn, vs in self.items()}


class Entitlement(BaseModel):
    """
    A single OVID entitlement.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    status: str = ''
    url: str = ''
    anchor: str = ''
    from_year: str = Field(default='', alias='from-year')
    from_volume: str = Field(default='', alias='from-volume')
    from_issue: str = Field(default='', alias='from-issue')
    from_delay: str = Field(default='', alias='from-delay')
    to_year: str = Field(default='', alias='to-year')
    to_volume: str = Field(default='', alias='to-volume')
    to_issue: str = Field(default='', alias='to-issue')
    to_delay: str = Field(default='', alias='to-delay')

    def delay_expression(self):
        """
        Return the delay expression in effect, start delay first.
        """
        if self.from_delay and self.to_delay and self.from_delay != self.to_delay:
            raise DelayMismatch('delay mismatch: %s, %s' % (self.from_delay, self.to_delay))
        return self.from_delay or self.to_delay

    def delay(self):
        """
        Return the specified delay as `datetime.timedelta`, zero if there is
        no delay.
        """
        expr = self.delay_expression()
        if not expr:
            return datetime.timedelta(0)
        return parse_delay(expr)

    def boundary(self, now=None):
        """
        Return the last date before the moving wall restriction becomes
        effective.
        """
        delay = self.delay()
        if now is None:
            now = datetime.datetime.now()
        return now + delay

    def license(self):
        """
        Return the coverage of this entitlement as a License.
        """
        expr = self.delay_expression()
        delay = parse_delay(expr) if expr else datetime.timedelta(0)
        return License(lower=combine_datum(self.from_year, self.from_volume, self.from_issue, LOW_DATUM),
                       upper=combine_datum(self.to_year, self.to_volume, self.to_issue, HIGH_DATUM),
                       delay=delay,
                       expr=expr)


class Holding(BaseModel):
    """
    A single holding with ISSNs and entitlements.
    """
    model_config = ConfigDict(populate_by_name=True)

    ezb_id: Optional[int] = Field(default=None, alias='ezbid')
    title: str = ''
    publishers: str = ''
    pissn: List[str] = Field(default_factory=list)
    eissn: List[str] = Field(default_factory=list)
    entitlements: List[Entitlement] = Field(default_factory=list)

    def issns(self):
        """
        Trimmed and valid ISSNs, electronic first. Invalid values are dropped.
        """
        result = []
        for value in self.eissn + self.pissn:
            value = value.strip()
            if is_valid_issn(value):
                result.append(value)
        return result


class IssnHolding(dict):
    """
    Maps an ISSN to a Holding, ISSN -> Holding -> [Entitlement].
    """

    def licenses(self):
        """
        Derive a license table. Returns a tuple (licenses, errors).
        """
        licenses, errors = Licenses(), []
        for issn, holding in self.items():
            for entitlement in holding.entitlements:
                try:
                    licenses.add(issn, entitlement.license())
                except (MalformedDelay, DelayMismatch) as err:
                    errors.append(err)
        return licenses, errors


class IsilIssnHolding(dict):
    """
    Maps an ISIL to an IssnHolding, ISIL -> ISSN -> Holding -> [Entitlement].
    """

    def isils(self):
        return list(self.keys())


def _text(value):
    """
    Text content of a xmltodict value. Of repeated elements, the last wins.
    """
    if isinstance(value, list):
        value = value[-1] if value else None
    if value is None:
        return ''
    if isinstance(value, dict):
        value = value.get('#text') or ''
    return value.strip()


def _texts(value):
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [_text(v) for v in value]


def _child(value, name):
    if isinstance(value, dict):
        return value.get(name)
    return None


def _decode_entitlement(dd):
    begin, end = _child(dd, 'begin'), _child(dd, 'end')
    return Entitlement(
        status=_text(_child(dd, '@status')),
        url=_text(_child(dd, 'url')),
        anchor=_text(_child(dd, 'anchor')),
        from_year=_text(_child(begin, 'year')),
        from_volume=_text(_child(begin, 'volume')),
        from_issue=_text(_child(begin, 'issue')),
        from_delay=_text(_child(begin, 'delay')),
        to_year=_text(_child(end, 'year')),
        to_volume=_text(_child(end, 'volume')),
        to_issue=_text(_child(end, 'issue')),
        to_delay=_text(_child(end, 'delay')),
    )


def decode_holding(dd, attrs=None):
    """
    Turn the xmltodict value of a holding element into a Holding. Depending
    on the xmltodict version, attributes of streamed items are found in the
    item or in the path only, so these can be passed separately.
    """
    ezb_id = _child(dd, '@ezb_id')
    if ezb_id is None and attrs:
        ezb_id = attrs.get('ezb_id')
    issns = _child(dd, 'EZBIssns')
    entitlements = _child(_child(dd, 'entitlements'), 'entitlement') or []
    if not isinstance(entitlements, list):
        entitlements = [entitlements]
    return Holding(
        ezb_id=_text(ezb_id) or None,
        title=_text(_child(dd, 'title')),
        publishers=_text(_child(dd, 'publishers')),
        pissn=_texts(_child(issns, 'p-issn')),
        eissn=_texts(_child(issns, 'e-issn')),
        entitlements=[_decode_entitlement(e) for e in entitlements if isinstance(e, dict)],
    )


def holding_depth(xml_input, chunk_size=65536):
    """
    Return the depth of the first holding element, two (holding directly
    below the root) if there is none. Reads only up to that element.
    """
    if isinstance(xml_input, str):
        xml_input = xml_input.encode('utf-8')
    if isinstance(xml_input, bytes):
        xml_input = io.BytesIO(xml_input)

    path, found = [], []

    def start(name, attrs):
        path.append(name)
        if name == 'holding' and not found:
            found.append(len(path))

    parser = expat.ParserCreate()
    parser.StartElementHandler = start
    parser.EndElementHandler = lambda name: path.pop()
    try:
        while not found:
            chunk = xml_input.read(chunk_size)
            parser.Parse(chunk, not chunk)
            if not chunk:
                break
    except expat.ExpatError as err:
        # The streaming parse reports this error.
        logger.debug('scanning for holding element: %s', err)
    return found[0] if found else 2


def iterate_holdings(source, callback):
    """
    Stream a holdings file and call `callback` with a Holding or an exception
    for each holding element, in document order. Holding elements may be
    nested at any depth, the depth of the first one is used for all. The
    source can be a filename or a file object. XML syntax errors end the
    stream and are passed to the callback as well.
    """
    handle, should_close = open_maybe_binary(source)
    xml_input = handle
    if isinstance(handle, io.TextIOBase) or not handle.seekable():
        # Expat reads bytes from file objects only, and the input is read twice.
        xml_input = handle.read()
        depth = holding_depth(xml_input)
    else:
        offset = handle.tell()
        depth = holding_depth(handle)
        handle.seek(offset)

    def handle_item(path, item):
        name, attrs = path[-1]
        if name != 'holding':
            return True
        try:
            holding = decode_holding(item, attrs=attrs)
        except (ValidationError, AttributeError, TypeError) as err:
            callback(ValueError('cannot decode holding %s: %s' % (dict(attrs or {}), err)))
            return True
        callback(holding)
        return True

    try:
        xmltodict.parse(xml_input, item_depth=depth, item_callback=handle_item,
                        force_list=('p-issn', 'e-issn', 'entitlement'))
    except expat.ExpatError as err:
        callback(err)
    finally:
        if should_close:
            handle.close()


@timed
def holdings_map(source):
    """
    Create an IssnHolding map from a holdings file. Holdings are registered
    under each valid ISSN, the last holding wins. Malformed ISSNs are ignored.
    """
    h = IssnHolding()

    def register(item):
        if isinstance(item, Exception):
            logger.warning('skipping holding: %s', item)
            return
        for issn in item.issns():
            h[issn] = item

    iterate_holdings(source, register)
    return h


def parse_holdings(source):
    """
    Parse a holdings file into a license table. Returns a tuple (licenses,
    errors), where errors is a list of all problems encountered; these do not
    stop the parsing.
    """
    licenses, errors = Licenses(), []

    def collect(item):
        if isinstance(item, Exception):
            errors.append(item)
            return
        issns = item.issns()
        for entitlement in item.entitlements:
            try:
                license = entitlement.license()
            except (MalformedDelay, DelayMismatch) as err:
                errors.append(err)
                continue
            for issn in issns:
                licenses.add(issn, license)

    iterate_holdings(source, collect)
    return licenses, errors


def parse_holding_spec(s):
    """
    Parse a holdings specification like "DE-15:/tmp/a.xml, DE-14:/tmp/b.xml"
    into a dictionary mapping ISIL to path.
    """
    pathmap = collections.OrderedDict()
    for pair in s.split(','):
        pair = pair.strip()
        if not pair:
            continue
        isil, _, path = pair.partition(':')
        isil, path = isil.strip(), path.strip()
        if not isil or not path:
            raise ValueError('invalid holdings spec, want ISIL:PATH, got %r' % pair)
        pathmap[isil] = path
    return pathmap
