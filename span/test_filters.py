import datetime
import io

import pytest

from span.errors import HoldingsParseErrors
from span.filters import (FILTERS, Any, HoldingsFilter, ISILTagger, ListFilter, SourceFilter)
from span.holdings import IsilIssnHolding, License, Licenses, holdings_map, parse_delay
from span.schema import IntermediateSchema

REF = datetime.datetime(2020, 6, 1)

HOLDINGS = """<holdings>
  <holding ezb_id="1">
    <EZBIssns><p-issn>1234-5678</p-issn></EZBIssns>
    <entitlements>
      <entitlement status="subscribed">
        <begin><year>2000</year></begin>
        <end><year>2030</year></end>
      </entitlement>
    </entitlements>
  </holding>
  <holding ezb_id="2">
    <EZBIssns><p-issn>2222-3333</p-issn></EZBIssns>
    <entitlements>
      <entitlement status="subscribed">
        <begin><year>2000</year><delay>-XY</delay></begin>
      </entitlement>
      <entitlement status="subscribed">
        <begin><year>2010</year></begin>
      </entitlement>
    </entitlements>
  </holding>
</holdings>
"""


def record(**kwargs):
    return IntermediateSchema(**kwargs)


def licenses(issn, *values):
    result = Licenses()
    for value in values:
        lower, upper, expr = value.split(':')
        delay = parse_delay(expr) if expr else datetime.timedelta(0)
        result.add(issn, License(lower, upper, delay, expr))
    return result


def test_any():
    assert Any().apply(record()) is True
    assert Any().marshal() == {}


def test_source_filter():
    f = SourceFilter('49')
    assert f.apply(record(source_id='49'))
    assert not f.apply(record(source_id='48'))
    assert not f.apply(record())
    assert SourceFilter(49).apply(record(source_id='49'))
    assert f.marshal() == '49'


def test_list_filter():
    f = ListFilter(['1234-5678', '8765-4321'])
    assert f.apply(record(issn=['1234-5678']))
    assert f.apply(record(issn=['0000-0000'], eissn=['8765-4321']))
    assert not f.apply(record(issn=['0000-0000']))
    assert not f.apply(record())
    assert f.marshal() == ['1234-5678', '8765-4321']


def test_list_filter_from_file(tmpdir):
    path = tmpdir.join('issn.list')
    path.write('1234-5678\n\n  8765-4321  \n')
    f = ListFilter.from_file(str(path))
    assert f.values == frozenset(['1234-5678', '8765-4321'])
    assert ListFilter.from_file(io.StringIO('')).values == frozenset()


def test_holdings_filter_coverage():
    f = HoldingsFilter(licenses('1234-5678', '2000000000000000:2010000000000000:'), ref=REF)
    assert f.covered_and_valid('2000000000000000', '1234-5678')
    assert f.covered_and_valid('2005000001000001', '1234-5678')
    assert f.covered_and_valid('2010000000000000', '1234-5678')
    assert not f.covered_and_valid('1999000001000001', '1234-5678')
    assert not f.covered_and_valid('2011000000000000', '1234-5678')
    assert not f.covered_and_valid('2005000000000000', '9999-9999')


def test_holdings_filter_without_license_is_false():
    f = HoldingsFilter(Licenses(), ref=REF)
    assert not f.apply(record(issn=['1234-5678'], date='2005-01-01'))
    assert not f.apply(record())


def test_holdings_filter_moving_wall():
    f = HoldingsFilter(licenses('1234-5678', '2000000000000000:ZZZZZZZZZZZZZZZZ:-1Y'), ref=REF)
    assert f.covered_and_valid('2005000000000000', '1234-5678')
    f = HoldingsFilter(licenses('1234-5678', '2000000000000000:ZZZZZZZZZZZZZZZZ:'), ref=REF)
    assert f.covered_and_valid('2005000000000000', '1234-5678')


def test_holdings_filter_any_license():
    f = HoldingsFilter(licenses('1234-5678', '1990000000000000:1995000000000000:',
                                '2000000000000000:2010000000000000:'), ref=REF)
    assert f.covered_and_valid('1992000000000000', '1234-5678')
    assert f.covered_and_valid('2002000000000000', '1234-5678')
    assert not f.covered_and_valid('1997000000000000', '1234-5678')


def test_holdings_filter_apply():
    f = HoldingsFilter(licenses('1234-5678', '2000000000000000:2010000000000000:'), ref=REF)
    assert f.apply(record(issn=['1234-5678'], date='2005-03-01'))
    assert f.apply(record(issn=['0000-0000'], eissn=['1234-5678'], date='2005-03-01'))
    assert not f.apply(record(issn=['1234-5678'], date='2012-03-01'))
    assert not f.apply(record(issn=['1234-5678'], date='1999-03-01'))


def test_holdings_filter_from_file():
    with pytest.raises(HoldingsParseErrors) as exc:
        HoldingsFilter.from_file(io.BytesIO(HOLDINGS.encode('utf-8')), ref=REF)
    err = exc.value
    assert err.count == 1
    assert isinstance(err.result, HoldingsFilter)
    assert sorted(err.result.table.keys()) == ['1234-5678', '2222-3333']
    assert err.result.covered_and_valid('2015000000000000', '2222-3333')
    assert not err.result.covered_and_valid('2005000000000000', '2222-3333')


def test_holdings_filter_from_file_ok():
    data = HOLDINGS.replace('<delay>-XY</delay>', '')
    f = HoldingsFilter.from_file(io.BytesIO(data.encode('utf-8')), ref=REF)
    assert f.covered_and_valid('2005000000000000', '2222-3333')
    assert f.marshal()['1234-5678'] == ['2000000000000000:2030000000000000:']


def test_filters_registry():
    assert sorted(FILTERS) == ['any', 'holdings', 'list', 'source']


def test_tagger():
    tagger = ISILTagger()
    tagger.add('DE-1', SourceFilter('49'))
    tagger.add('DE-2', ListFilter(['1234-5678']))
    tagger.add('DE-2', SourceFilter('50'))
    tagger.add('DE-3', Any())

    assert tagger.tags(record(source_id='49')) == {'DE-1', 'DE-3'}
    assert tagger.tags(record(source_id='50')) == {'DE-2', 'DE-3'}
    assert tagger.tags(record(source_id='49', issn=['1234-5678'])) == {'DE-1', 'DE-2', 'DE-3'}


def test_tagger_empty():
    assert ISILTagger().tags(record(source_id='49')) == set()
    tagger = ISILTagger()
    tagger['DE-1'] = []
    assert tagger.tags(record(source_id='49')) == set()


def test_tagger_marshal():
    tagger = ISILTagger()
    tagger.add('DE-1', SourceFilter('49'))
    tagger.add('DE-1', ListFilter(['1234-5678']))
    assert tagger.marshal() == {'DE-1': [{'source': '49'}, {'list': ['1234-5678']}]}


def test_tagger_from_isil_issn_holding():
    iih = IsilIssnHolding()
    iih['DE-15'] = holdings_map(io.BytesIO(HOLDINGS.encode('utf-8')))
    iih['DE-14'] = holdings_map(io.BytesIO(b'<holdings></holdings>'))

    tagger, errors = ISILTagger.from_isil_issn_holding(iih, ref=REF)
    assert len(errors) == 1
    assert sorted(tagger.keys()) == ['DE-14', 'DE-15']
    assert tagger.tags(record(issn=['1234-5678'], date='2019')) == {'DE-15'}
    assert tagger.tags(record(issn=['1234-5678'], date='2031')) == set()
    assert tagger.tags(record(issn=['2222-3333'], date='2012-01-01')) == {'DE-15'}


def test_tag_record_with_single_entitlement():
    holdings = """<holdings>
      <holding ezb_id="1">
        <EZBIssns><p-issn>1234-5678</p-issn></EZBIssns>
        <entitlements>
          <entitlement status="subscribed">
            <begin><year>2000</year></begin>
          </entitlement>
        </entitlements>
      </holding>
    </holdings>"""
    iih = IsilIssnHolding()
    iih['ISIL-1'] = holdings_map(io.BytesIO(holdings.encode('utf-8')))
    tagger, errors = ISILTagger.from_isil_issn_holding(iih)
    assert errors == []

    r = record(issn=['1234-5678'], date='2010-05-01', volume='1', issue='1')
    r.set_tags(tagger.tags(r))
    assert r.labels == ['ISIL-1']

    r = record(issn=['1234-5678'], date='1999-05-01')
    r.set_tags(tagger.tags(r))
    assert r.labels == []


def test_tag_isil_by_coverage_range():
    holdings = """<holdings>
      <holding ezb_id="1">
        <EZBIssns><p-issn>1234-5678</p-issn></EZBIssns>
        <entitlements>
          <entitlement status="subscribed">
            <begin><year>2000</year><volume>1</volume><issue>1</issue></begin>
            <end><year>2020</year><volume>50</volume><issue>12</issue></end>
          </entitlement>
        </entitlements>
      </holding>
    </holdings>"""
    iih = IsilIssnHolding()
    iih['ISIL-1'] = holdings_map(io.BytesIO(holdings.encode('utf-8')))
    tagger, _ = ISILTagger.from_isil_issn_holding(iih)

    assert tagger.tags(record(issn=['1234-5678'], date='2010', volume='10', issue='5')) == {'ISIL-1'}
    assert tagger.tags(record(issn=['1234-5678'], date='2021', volume='10', issue='5')) == set()
