# coding: utf-8
# pylint: disable=C0301,C0330,W0622,E1101

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

CrossRef is an association of scholarly publishers
that develops shared infrastructure to support
more effective scholarly communications.

Input is one work per line, as found in the "message" of the works API
(https://api.crossref.org/works), optionally still wrapped in a response.

Member names
------------

Works only carry a member id. A member name cache can be populated from a
file with one member per line (https://api.crossref.org/members) and is used,
when a work has no publisher.

"""

import base64
import logging
import re

import ujson as json

from span.errors import RecordTransformError, SkipRecord
from span.schema import Author, IntermediateSchema

logger = logging.getLogger('span')

SOURCE_ID = '49'
FORMAT = 'ElectronicArticle'

# Work types, which describe containers and not articles.
SKIP_TYPES = {'journal', 'journal-issue', 'journal-volume', 'book-series', 'book-set', 'proceedings'}

MEMBER_NAMES = {}

member_id_pattern = re.compile(r'([0-9]+)/?$')


def populate_member_name_cache(path):
    """
    Load member names from a file with one JSON document per line.
    Returns the number of names loaded.
    """
    count = 0
    with open(path) as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            doc = json.loads(line)
            doc = doc.get('message', doc)
            if doc.get('id') is None or not doc.get('primary-name'):
                continue
            MEMBER_NAMES[str(doc['id'])] = doc['primary-name']
            count += 1
    logger.debug('loaded %d member names from %s', count, path)
    return count


def set_member_names(names):
    """
    Replace the member name cache, e.g. in a freshly started worker process.
    """
    MEMBER_NAMES.clear()
    MEMBER_NAMES.update(names or {})


def lookup_member_name(member):
    """
    Member can be a number or a URL like http://id.crossref.org/member/78.
    Returns None, if the name is not known.
    """
    if not member:
        return None
    match = member_id_pattern.search(str(member))
    if match is None:
        return None
    return MEMBER_NAMES.get(match.group(1))


def first(values, default=''):
    if not values:
        return default
    return values[0]


def date_string(doc):
    """
    Return the first usable date as YYYY-MM-DD, missing parts default to one.
    """
    for key in ('issued', 'published-print', 'published-online', 'created', 'deposited'):
        parts = (doc.get(key) or {}).get('date-parts') or []
        if not parts or not parts[0] or parts[0][0] is None:
            continue
        ymd = (list(parts[0]) + [1, 1])[:3]
        try:
            return '%04d-%02d-%02d' % tuple(int(v) for v in ymd)
        except (TypeError, ValueError):
            continue
    return ''


def issns(doc):
    """
    Return print and electronic ISSN lists. Without type information, all
    ISSN are considered print ISSN.
    """
    pissn, eissn = [], []
    typed = doc.get('issn-type') or []
    if not typed:
        return list(doc.get('ISSN') or []), eissn
    for item in typed:
        if item.get('type') == 'electronic':
            eissn.append(item.get('value'))
        else:
            pissn.append(item.get('value'))
    return pissn, eissn


def record_id(url):
    encoded = base64.urlsafe_b64encode(url.encode('utf-8')).decode('ascii').rstrip('=')
    return 'ai-%s-%s' % (SOURCE_ID, encoded)


def convert(line):
    """
    Convert a single crossref work into intermediate schema.
    """
    try:
        doc = json.loads(line)
    except ValueError as err:
        raise RecordTransformError('invalid JSON: %s' % err)
    if not isinstance(doc, dict):
        raise RecordTransformError('expected object, got %s' % type(doc).__name__)
    doc = doc.get('message', doc)
    if not isinstance(doc, dict):
        raise RecordTransformError('expected object in message, got %s' % type(doc).__name__)

    doi = doc.get('DOI')
    if not doi:
        raise RecordTransformError('missing DOI')

    # Fields of unexpected type surface as one of these.
    try:
        return build(doc, doi)
    except (ValueError, AttributeError, TypeError, LookupError) as err:
        raise RecordTransformError('%s: %s' % (doi, err))


def build(doc, doi):
    if doc.get('type') in SKIP_TYPES:
        raise SkipRecord('type %s' % doc.get('type'))
    title = first(doc.get('title'))
    if not title:
        raise SkipRecord('NO_TITLE %s' % doi)

    url = doc.get('URL') or 'http://dx.doi.org/%s' % doi
    publisher = doc.get('publisher') or lookup_member_name(doc.get('member')) or ''
    spage, _, epage = (doc.get('page') or '').partition('-')
    pissn, eissn = issns(doc)

    return IntermediateSchema(
        record_id=record_id(url),
        source_id=SOURCE_ID,
        format=FORMAT,
        mega_collection=['%s (CrossRef)' % publisher] if publisher else [],
        article_title=title,
        journal_title=first(doc.get('container-title')),
        issn=pissn,
        eissn=eissn,
        date=date_string(doc),
        volume=str(doc.get('volume') or ''),
        issue=str(doc.get('issue') or ''),
        start_page=spage,
        end_page=epage,
        publishers=[publisher] if publisher else [],
        doi=doi,
        url=[url],
        authors=[Author(first=a.get('given', ''), last=a.get('family', ''))
                 for a in doc.get('author') or [] if a.get('family')],
    )
