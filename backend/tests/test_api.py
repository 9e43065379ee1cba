from unittest.mock import Mock, patch

from sqlalchemy.exc import OperationalError

from flagzim import create_app
from flagzim.services.countries import CountryCatalog
from flagzim.models import ScoreRecord
from conftest import SAMPLE_COUNTRIES, TestConfig


def post_score(client, **body):
    return client.post('/score', json=body)


def ranking(client, **params):
    res = client.get('/ranking', query_string=params)
    assert res.status_code == 200
    return res.get_json()


def test_health(client):
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'ok': True}


def test_countries_lists_catalog_pairs(client):
    res = client.get('/countries')
    assert res.status_code == 200
    assert res.get_json() == SAMPLE_COUNTRIES


def test_countries_unavailable_before_catalog_load():
    application = create_app(TestConfig, catalog=CountryCatalog())
    res = application.test_client().get('/countries')
    assert res.status_code == 503
    assert 'error' in res.get_json()


def test_first_submission_is_stored(client):
    res = post_score(client, name='Ana', score=5, time=12.3, mode='classic')
    assert res.status_code == 200
    assert res.get_json() == {'updated': True}
    rows = ranking(client, mode='classic')
    assert len(rows) == 1
    assert rows[0]['name'] == 'Ana'
    assert rows[0]['score'] == 5
    assert rows[0]['time'] == 12.3
    assert rows[0]['date'] is None
    assert rows[0]['key'] == 'ana|classic'
    assert isinstance(rows[0]['createdAt'], int)


def test_same_score_lower_time_wins(client):
    post_score(client, name='Ana', score=5, time=12.3, mode='classic')
    res = post_score(client, name='Ana', score=5, time=9.0, mode='classic')
    assert res.get_json() == {'updated': True}
    rows = ranking(client, mode='classic')
    assert len(rows) == 1
    assert rows[0]['time'] == 9.0


def test_lower_score_never_wins(client):
    post_score(client, name='Ana', score=5, time=12.3, mode='classic')
    post_score(client, name='Ana', score=5, time=9.0, mode='classic')
    res = post_score(client, name='Ana', score=3, time=5.0, mode='classic')
    assert res.get_json() == {'updated': False}
    rows = ranking(client, mode='classic')
    assert [(r['score'], r['time']) for r in rows] == [(5, 9.0)]


def test_identical_score_and_time_keeps_old_record(client):
    post_score(client, name='Ana', score=4, time=8.0, mode='classic')
    first = ranking(client, mode='classic')[0]
    res = post_score(client, name='ANA', score=4, time=8.0, mode='classic')
    assert res.get_json() == {'updated': False}
    rows = ranking(client, mode='classic')
    assert rows[0]['name'] == 'Ana'
    assert rows[0]['createdAt'] == first['createdAt']


def test_higher_score_replaces_even_if_slower(client):
    post_score(client, name='Bo', score=2, time=3.0, mode='classic')
    res = post_score(client, name='bo', score=3, time=40.0, mode='classic')
    assert res.get_json() == {'updated': True}
    rows = ranking(client, mode='classic')
    assert len(rows) == 1
    assert (rows[0]['name'], rows[0]['score'], rows[0]['time']) == ('bo', 3, 40.0)


def test_daily_requires_date(client):
    res = post_score(client, name='Ana', score=5, time=10, mode='daily')
    assert res.status_code == 400
    assert res.get_json() == {'error': 'daily requires date YYYY-MM-DD'}
    assert ranking(client, mode='daily', date='2026-10-19') == []


def test_validation_errors(client):
    cases = [
        ({'name': '   ', 'score': 1, 'time': 1}, 'name required'),
        ({'name': 'Ana', 'score': -1, 'time': 1}, 'invalid score'),
        ({'name': 'Ana', 'score': 'lots', 'time': 1}, 'invalid score'),
        ({'name': 'Ana', 'score': 2.5, 'time': 1}, 'invalid score'),
        ({'name': 'Ana', 'score': True, 'time': 1}, 'invalid score'),
        ({'name': 'Ana', 'score': 10**19, 'time': 1}, 'invalid score'),
        ({'name': 'Ana', 'score': 10**400, 'time': 1}, 'invalid score'),
        ({'name': 'Ana', 'score': 2**31, 'time': 1}, 'invalid score'),
        ({'name': 'Ana', 'score': 1, 'time': -0.5}, 'invalid time'),
        ({'name': 'Ana', 'score': 1, 'time': 'Infinity'}, 'invalid time'),
        ({'name': 'Ana', 'score': 1, 'time': 1, 'mode': 'arcade'}, 'invalid mode'),
        ({'name': 'Ana', 'score': 1, 'time': 1, 'mode': 'daily', 'date': '19/10/2026'}, 'invalid date'),
    ]
    for body, error in cases:
        res = client.post('/score', json=body)
        assert res.status_code == 400, body
        assert res.get_json() == {'error': error}
    assert ranking(client, mode='classic') == []


def test_missing_body_is_rejected(client):
    res = client.post('/score', data='not json', content_type='text/plain')
    assert res.status_code == 400
    assert res.get_json() == {'error': 'name required'}


def test_numeric_strings_are_accepted(client):
    res = post_score(client, name='Cy', score='7', time='21.5')
    assert res.get_json() == {'updated': True}
    row = ranking(client)[0]
    assert (row['mode'], row['score'], row['time']) == ('classic', 7, 21.5)


def test_ranking_daily_without_date_is_empty(client):
    post_score(client, name='Ana', score=5, time=10, mode='daily', date='2026-10-19')
    assert ranking(client, mode='daily') == []
    assert len(ranking(client, mode='daily', date='2026-10-19')) == 1


def test_daily_records_are_per_day_and_separate_from_classic(client):
    post_score(client, name='Ana', score=5, time=10, mode='daily', date='2026-10-18')
    post_score(client, name='Ana', score=3, time=10, mode='daily', date='2026-10-19')
    post_score(client, name='Ana', score=1, time=10, mode='classic', date='2026-10-19')
    assert [r['score'] for r in ranking(client, mode='daily', date='2026-10-18')] == [5]
    assert [r['score'] for r in ranking(client, mode='daily', date='2026-10-19')] == [3]
    classic = ranking(client, mode='classic')
    assert [r['score'] for r in classic] == [1]
    assert classic[0]['date'] is None


def test_ranking_sorted_and_truncated(client):
    results = [
        ('p1', 3, 20.0), ('p2', 7, 30.0), ('p3', 7, 25.0), ('p4', 1, 5.0),
        ('p5', 9, 50.0), ('p6', 2, 2.0), ('p7', 7, 25.0), ('p8', 4, 4.0),
        ('p9', 5, 6.0), ('p10', 6, 7.0), ('p11', 0, 1.0), ('p12', 8, 80.0),
    ]
    for name, score, elapsed in results:
        assert post_score(client, name=name, score=score, time=elapsed).status_code == 200
    rows = ranking(client, mode='classic')
    assert len(rows) == 10
    for x, y in zip(rows, rows[1:]):
        assert x['score'] > y['score'] or (x['score'] == y['score'] and x['time'] <= y['time'])
    # equal score and time: insertion order
    names = [r['name'] for r in rows]
    assert names.index('p3') < names.index('p7')
    assert 'p11' not in names and 'p4' not in names


def test_submit_then_top_n_includes_record(client):
    for i in range(10):
        post_score(client, name=f'p{i}', score=i, time=10)
    post_score(client, name='late', score=6, time=1.0)
    names = [r['name'] for r in ranking(client, mode='classic')]
    assert 'late' in names
    assert 'p0' not in names


def test_unreadable_store_degrades_to_empty_ranking(flask_app, client):
    from flagzim import db
    post_score(client, name='Ana', score=5, time=10)
    db.drop_all()
    assert ranking(client, mode='classic') == []


def test_long_names_are_accepted(client):
    name = 'x' * 200
    assert post_score(client, name=name, score=4, time=3).get_json() == {'updated': True}
    assert [r['name'] for r in ranking(client, mode='classic')] == [name]


def test_failed_lookup_on_submit_counts_as_no_record(client):
    query = Mock()
    query.filter_by.side_effect = OperationalError('SELECT', {}, Exception('disk I/O error'))
    with patch.object(ScoreRecord, 'query', query):
        res = post_score(client, name='Ana', score=5, time=10)
    assert res.status_code == 200
    assert res.get_json() == {'updated': True}
    assert [(r['name'], r['score']) for r in ranking(client, mode='classic')] == [('Ana', 5)]
