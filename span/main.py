# coding: utf-8
# pylint: disable=F0401,C0111,W0232,E1101,E1103,C0301,C0103,W0614,W0401,E0202

# Copyright 2018 by Leipzig University Library, http://ub.uni-leipzig.de
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
Entry points.

Convert crossref works and attach ISILs based on holdings files:

    $ span-convert --hspec DE-15:/tmp/DE-15.xml,DE-14:/tmp/DE-14.xml works.ldj > is.ldj

Attach ISILs to intermediate schema records, using a filter configuration:

    $ span-tag -c filterconfig.json is.ldj > tagged.ldj

Defaults for most flags can be set in span.ini, see span.configuration.
"""

import argparse
import io
import json
import logging
import sys

from span import __version__
from span.configuration import Config
from span.errors import HoldingsParseErrors, RecordTransformError
from span.filterconfig import load_tagger
from span.filters import ISILTagger
from span.holdings import IsilIssnHolding, holdings_map, parse_holding_spec
from span.pipeline import BatchProcessor, Options
from span.sources import SOURCES, crossref
from span.utils import SetEncoder, configure_logging

logger = logging.getLogger('span')


def build_parser(config=None, source='crossref'):
    """
    Flags for both entry points, defaults from config.
    """
    if config is None:
        config = Config.instance()

    parser = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser.add_argument('file', nargs='?', default='-', help='newline delimited JSON, - for stdin')
    parser.add_argument('-b', '--batch-size', dest='batch_size', type=int, default=config.batch_size(), help='batch size')
    parser.add_argument('-w', '--workers', dest='workers', type=int, default=config.workers(), help='workers')
    parser.add_argument('-s', '--source', dest='source', default=source, choices=sorted(SOURCES), help='input format')
    parser.add_argument('-c', '--config', dest='config', help='filter configuration (JSON)')
    parser.add_argument('--hspec', dest='hspec', default=config.hspec(), help='ISIL:PATH pairs, comma separated')
    parser.add_argument('--members', dest='members', default=config.members(), help='path to LDJ file, one member per line')
    parser.add_argument('--ignore', dest='ignore_errors', action='store_true', default=config.ignore_errors(), help='skip broken input records')
    parser.add_argument('--strict', action='store_true', help='treat errors in holdings files as fatal')
    parser.add_argument('--verbose', action='store_true', default=config.verbose(), help='print debug messages')
    parser.add_argument('--dump', action='store_true', help='dump filters as JSON and exit')
    parser.add_argument('-v', '--version', action='version', version='%(prog)s ' + __version__)
    return parser


def build_tagger(args):
    """
    Combine filters from filter configuration and holdings spec.
    """
    tagger = ISILTagger()
    if args.config:
        tagger = load_tagger(args.config, strict=args.strict)

    if args.hspec:
        iih = IsilIssnHolding()
        for isil, path in parse_holding_spec(args.hspec).items():
            iih[isil] = holdings_map(path)
            logger.debug('%s: %d ISSN from %s', isil, len(iih[isil]), path)
        hs, errors = ISILTagger.from_isil_issn_holding(iih)
        if errors:
            if args.strict:
                raise HoldingsParseErrors(errors)
            logger.warning('%d errors in holdings files', len(errors))
        for isil, filters in hs.items():
            for f in filters:
                tagger.add(isil, f)

    return tagger


def run(argv=None, source='crossref'):
    args = build_parser(source=source).parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        tagger = build_tagger(args)
        if args.dump:
            json.dump(tagger.marshal(), sys.stdout, cls=SetEncoder)
            sys.stdout.write('\n')
            return 0

        if args.members:
            crossref.populate_member_name_cache(args.members)

        options = Options(tagger=tagger,
                          source=args.source,
                          ignore_errors=args.ignore_errors,
                          verbose=args.verbose,
                          num_workers=args.workers,
                          batch_size=args.batch_size,
                          members=crossref.MEMBER_NAMES)

        if args.file == '-':
            stats = BatchProcessor(options).run(sys.stdin, sys.stdout)
        else:
            with io.open(args.file, encoding='utf-8') as reader:
                stats = BatchProcessor(options).run(reader, sys.stdout)
    except (RecordTransformError, HoldingsParseErrors, OSError, ValueError, RuntimeError) as err:
        logger.error('%s', err)
        return 1

    logger.debug('%s lines read, %s records written', stats['lines'], stats['written'])
    return 0


def main():
    """ span-convert """
    sys.exit(run())


def tag():
    """ span-tag, input is intermediate schema """
    sys.exit(run(source='is'))
