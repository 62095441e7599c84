import io
import json

import pytest
from pydantic import ValidationError

from span.errors import HoldingsParseErrors
from span.filterconfig import FilterConfig, load_filterconfig, load_tagger
from span.filters import Any, HoldingsFilter, ListFilter, SourceFilter
from span.schema import IntermediateSchema

HOLDINGS = """<holdings>
  <holding ezb_id="1">
    <EZBIssns><p-issn>1234-5678</p-issn></EZBIssns>
    <entitlements>
      <entitlement status="subscribed"><begin><year>2000</year></begin></entitlement>
      <entitlement status="subscribed"><begin><delay>-1X</delay></begin></entitlement>
    </entitlements>
  </holding>
</holdings>
"""


def test_load_filterconfig():
    fc = load_filterconfig({
        'DE-15': [{'source': '49'}, {'list': ['1234-5678']}],
        'DE-14': [{'any': {}}],
    })
    assert isinstance(fc, FilterConfig)
    assert fc.isils() == ['DE-14', 'DE-15']
    assert fc.root['DE-15'][0].source == '49'
    assert fc.root['DE-15'][1].list_ == ['1234-5678']
    assert fc.root['DE-14'][0].any_ == {}


def test_load_filterconfig_file_object():
    fc = load_filterconfig(io.StringIO(json.dumps({'DE-15': [{'source': 49}]})))
    assert fc.root['DE-15'][0].source == 49


@pytest.mark.parametrize('config', [
    {'DE-15': [{}]},
    {'DE-15': [{'source': '49', 'any': {}}]},
    {'DE-15': [{'unknown': 'x'}]},
    {'DE-15': {'source': '49'}},
])
def test_load_filterconfig_invalid(config):
    with pytest.raises(ValidationError):
        load_filterconfig(config)


def test_load_tagger(tmpdir):
    issns = tmpdir.join('issn.list')
    issns.write('1111-1111\n2222-2222\n')
    holdings = tmpdir.join('holdings.xml')
    holdings.write(HOLDINGS.replace('<delay>-1X</delay>', ''))
    config = tmpdir.join('filterconfig.json')
    config.write(json.dumps({
        'DE-1': [{'source': '49'}],
        'DE-2': [{'list': str(issns)}, {'holdings': str(holdings)}],
        'DE-3': [{'any': {}}],
        'DE-4': [{'holdings': str(holdings)}],
    }))

    tagger = load_tagger(str(config))
    assert sorted(tagger.keys()) == ['DE-1', 'DE-2', 'DE-3', 'DE-4']
    assert isinstance(tagger['DE-1'][0], SourceFilter)
    assert isinstance(tagger['DE-2'][0], ListFilter)
    assert tagger['DE-2'][0].values == frozenset(['1111-1111', '2222-2222'])
    assert isinstance(tagger['DE-2'][1], HoldingsFilter)
    assert isinstance(tagger['DE-3'][0], Any)

    # parsed once, shared
    assert tagger['DE-2'][1] is tagger['DE-4'][0]

    record = IntermediateSchema(source_id='48', issn=['1234-5678'], date='2001-01-01')
    assert tagger.tags(record) == {'DE-2', 'DE-3', 'DE-4'}


def test_load_tagger_holdings_errors(tmpdir):
    holdings = tmpdir.join('holdings.xml')
    holdings.write(HOLDINGS)
    config = {'DE-1': [{'holdings': str(holdings)}]}

    tagger = load_tagger(config)
    record = IntermediateSchema(issn=['1234-5678'], date='2001-01-01')
    assert tagger.tags(record) == {'DE-1'}

    with pytest.raises(HoldingsParseErrors) as exc:
        load_tagger(config, strict=True)
    assert exc.value.count == 1
    assert exc.value.filename == str(holdings)


def test_load_tagger_empty():
    assert load_tagger({}) == {}
    tagger = load_tagger({'DE-1': []})
    assert tagger == {'DE-1': []}
    assert tagger.tags(IntermediateSchema()) == set()
