def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'Kuzgun' in res.get_json()['message']


def test_health_counts_rooms(client, sio_factory):
    assert client.get('/health').get_json() == {'status': 'ok', 'rooms': 0}
    sio_factory().emit('createRoom', callback=True)
    assert client.get('/health').get_json()['rooms'] == 1


def test_cors_headers(client):
    res = client.get('/health', headers={'Origin': 'http://localhost:5173'})
    assert res.headers.get('Access-Control-Allow-Origin') in ('*', 'http://localhost:5173')
