import json

import pytest
from fastapi.testclient import TestClient

from app import create_registry_app
from world_registry import WorldRegistry


def test_register_get_delete_flow(client):
    res = client.post('/worlds', json={'worldName': 'Acres', 'seed': 42})
    assert res.status_code == 200
    assert res.json() == {'success': True, 'worldName': 'Acres', 'seed': 42}

    res = client.get('/worlds/Acres')
    assert res.status_code == 200
    assert res.json() == {'worldName': 'Acres', 'seed': 42}

    res = client.delete('/worlds/Acres')
    assert res.status_code == 200
    assert res.json() == {'success': True, 'worldName': 'Acres'}

    res = client.get('/worlds/Acres')
    assert res.status_code == 404
    assert 'error' in res.json()


def test_list_worlds(client):
    assert client.get('/worlds').json() == []
    client.post('/worlds', json={'worldName': 'Acres', 'seed': 42})
    client.post('/worlds', json={'worldName': 'Dunes', 'seed': 7})
    res = client.get('/worlds')
    assert res.status_code == 200
    assert res.json() == [{'name': 'Acres', 'seed': 42}, {'name': 'Dunes', 'seed': 7}]


@pytest.mark.parametrize('body', [
    {'worldName': 'Acres', 'seed': -1},
    {'worldName': 'Acres', 'seed': 2147483648},
    {'worldName': 'Acres', 'seed': 4.2},
    {'worldName': 'Acres', 'seed': '42'},
    {'worldName': 'Acres', 'seed': True},
    {'worldName': 'Acres'},
    {'seed': 42},
    {'worldName': '', 'seed': 42},
    {'worldName': 12, 'seed': 42},
    [1, 2],
])
def test_register_rejects_bad_bodies(client, worlds_path, body):
    res = client.post('/worlds', json=body)
    assert res.status_code == 400
    assert isinstance(res.json()['error'], str)
    assert not worlds_path.exists()


def test_register_rejects_invalid_json(client):
    res = client.post('/worlds', content=b'{worldName: nope', headers={'Content-Type': 'application/json'})
    assert res.status_code == 400
    assert 'error' in res.json()


def test_register_accepts_max_seed(client):
    res = client.post('/worlds', json={'worldName': 'Edge', 'seed': 2147483647})
    assert res.status_code == 200
    assert client.get('/worlds/Edge').json()['seed'] == 2147483647


def test_delete_unknown_world_is_404(client, worlds_path):
    res = client.delete('/worlds/nowhere')
    assert res.status_code == 404
    assert res.json() == {'error': 'World not found'}
    assert not worlds_path.exists()


def test_world_names_are_url_decoded(client, worlds_path):
    client.post('/worlds', json={'worldName': 'Green Hills/North', 'seed': 9})
    res = client.get('/worlds/Green%20Hills%2FNorth')
    assert res.status_code == 200
    assert res.json() == {'worldName': 'Green Hills/North', 'seed': 9}
    assert json.loads(worlds_path.read_text(encoding='utf-8')) == {'Green Hills/North': 9}


def test_cors_headers_on_every_response(client):
    for res in (client.get('/worlds'), client.get('/worlds/missing'), client.post('/worlds', json={})):
        assert res.headers['access-control-allow-origin'] == '*'
        assert 'DELETE' in res.headers['access-control-allow-methods']
        assert res.headers['access-control-allow-headers'] == 'Content-Type'


def test_options_is_empty_200(client):
    for path in ('/worlds', '/worlds/Acres', '/anything'):
        res = client.options(path)
        assert res.status_code == 200
        assert res.content == b''
        assert res.headers['access-control-allow-origin'] == '*'


def test_browser_preflight(client):
    res = client.options('/worlds', headers={
        'Origin': 'http://localhost:5173',
        'Access-Control-Request-Method': 'POST',
        'Access-Control-Request-Headers': 'Authorization, X-Client-Version',
    })
    assert res.status_code == 200
    assert res.content == b''
    assert res.headers['access-control-allow-origin'] == '*'


def test_write_failure_is_500(tmp_path):
    app = create_registry_app(WorldRegistry(str(tmp_path / 'missing' / 'worlds.json')))
    res = TestClient(app).post('/worlds', json={'worldName': 'Acres', 'seed': 42})
    assert res.status_code == 500
    assert res.json() == {'error': 'Failed to save world registry'}
    assert res.headers['access-control-allow-origin'] == '*'


def test_error_bodies_documented(client):
    paths = client.get('/openapi.json').json()['paths']
    error_ref = '#/components/schemas/ErrorResponse'
    assert paths['/worlds/{world_name}']['get']['responses']['404']['content']['application/json']['schema']['$ref'] == error_ref
    assert paths['/worlds']['post']['responses']['400']['content']['application/json']['schema']['$ref'] == error_ref


def test_unknown_route_is_404(client):
    res = client.get('/planets')
    assert res.status_code == 404
    assert res.json() == {'error': 'Not found'}


def test_registry_health(client):
    client.post('/worlds', json={'worldName': 'Acres', 'seed': 42})
    assert client.get('/health').json() == {'status': 'ok', 'worlds': 1}
