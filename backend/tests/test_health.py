import re
import time
from types import SimpleNamespace

import psutil


def test_health_reports_uptime_and_memory(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'healthy'
    assert re.fullmatch(r'\d+s', data['uptime'])
    assert re.fullmatch(r'\d+MB', data['memory']['used'])
    assert re.fullmatch(r'\d+MB', data['memory']['total'])
    assert data['environment'] == 'test'
    assert data['timestamp'].endswith('Z')


def test_health_unhealthy_when_stats_fail(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError('no procfs')

    monkeypatch.setattr(psutil, 'Process', boom)
    res = client.get('/api/health')
    assert res.status_code == 500
    data = res.get_json()
    assert data['status'] == 'unhealthy'
    assert data['error'] == 'no procfs'
    assert 'timestamp' in data


def test_socket_placeholder_methods(client):
    for method in (client.get, client.post):
        res = method('/api/socket')
        assert res.status_code == 200
        assert res.get_json() == {'message': 'Socket server initialized'}
    res = client.delete('/api/socket')
    assert res.status_code == 405
    assert res.get_json() == {'error': 'Method not allowed'}


def test_force_https_redirects_but_not_health(flask_app, client):
    flask_app.config['FORCE_HTTPS'] = True

    res = client.get('/')
    assert res.status_code == 301
    assert res.headers['Location'].startswith('https://')
    assert client.get('/api/health').status_code == 200
    assert client.get('/', headers={'X-Forwarded-Proto': 'https'}).status_code == 200


def test_health_memory_rounds_half_up(client, monkeypatch):
    mb = 1024 * 1024

    class FakeProcess:
        def create_time(self):
            return time.time() - 42

        def memory_info(self):
            return SimpleNamespace(rss=int(2.5 * mb), vms=int(3.5 * mb))

    monkeypatch.setattr(psutil, 'Process', FakeProcess)
    data = client.get('/api/health').get_json()
    assert data['memory'] == {'used': '3MB', 'total': '4MB'}
    assert data['uptime'] == '42s'
