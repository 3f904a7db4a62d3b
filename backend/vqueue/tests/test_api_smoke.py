import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from vqueue.core.config import settings
from vqueue.core.deps import get_business
from vqueue.main import app
from vqueue.services.notification_service import get_notification_service


def _super_headers(client):
    r = client.post('/super-admin/login', json={
        'user': settings.super_admin_user,
        'password': settings.super_admin_password,
    })
    assert r.status_code == 200
    return {'Authorization': f"Bearer {r.json()['access_token']}"}


def _admin_headers(client, slug='cafe', password='secret'):
    r = client.post(f'/admin/{slug}/verify-password', json={'password': password, 'set_online': True})
    assert r.status_code == 200
    assert r.json()['valid'] is True
    return {'Authorization': f"Bearer {r.json()['access_token']}"}


def test_health(client):
    assert client.get('/health').json() == {'status': 'healthy'}


def test_customer_and_admin_flow(client):
    sa = _super_headers(client)
    r = client.post('/super-admin/businesses', json={'slug': 'cafe', 'name': 'Cafe', 'password': 'secret'}, headers=sa)
    assert r.status_code == 200
    assert 'password_hash' not in r.json()

    # Customers join
    ids = []
    for name in ('Ana', 'Ben', 'Cy'):
        r = client.post('/queue/cafe/join', json={'name': name})
        assert r.status_code == 200
        ids.append(r.json()['ticket_id'])

    r = client.get('/queue/cafe')
    assert r.json()['last_issued'] == 3
    assert r.json()['active_count'] == 3

    r = client.get(f'/queue/tickets/{ids[2]}')
    assert r.json()['people_ahead'] == 2
    assert r.json()['estimated_wait_minutes'] == 20

    # Admin calls customers
    admin = _admin_headers(client)
    assert client.post('/admin/cafe/next', headers=admin).json()['served_number'] is None
    r = client.post('/admin/cafe/next', headers=admin)
    assert r.json() == {'current_serving': 2, 'served_number': 1, 'notified_number': None}

    r = client.get('/admin/cafe/tickets/2', headers=admin)
    assert r.json()['name'] == 'Ben'
    assert client.get('/admin/cafe/tickets/99', headers=admin).status_code == 404

    # Third customer leaves, twice
    assert client.post('/queue/cafe/leave', json={'ticket_id': ids[2]}).json()['cancelled'] is True
    assert client.post('/queue/cafe/leave', json={'ticket_id': ids[2]}).json()['cancelled'] is False

    # Closing the queue blocks new tickets
    assert client.post('/admin/cafe/toggle', headers=admin).json() == {'is_online': False}
    r = client.post('/queue/cafe/join', json={})
    assert r.status_code == 409

    assert client.post('/admin/cafe/reset', headers=admin).json() == {'cancelled': 1}


def test_advance_past_end_is_conflict(client, business):
    admin = _admin_headers(client)
    assert client.post('/admin/cafe/next', headers=admin).status_code == 200
    r = client.post('/admin/cafe/next', headers=admin)
    assert r.status_code == 409
    assert r.json()['detail'] == 'No customers left to call'


def test_admin_routes_need_matching_token(client, business, make_business):
    make_business(slug='other', password='pw')

    assert client.post('/admin/cafe/next').status_code == 401
    assert client.post('/admin/cafe/next', headers={'Authorization': 'Bearer junk'}).status_code == 401

    other = _admin_headers(client, slug='other', password='pw')
    assert client.post('/admin/cafe/next', headers=other).status_code == 403
    assert client.get('/super-admin/businesses', headers=other).status_code == 403


def test_wrong_password_returns_invalid(client, business):
    r = client.post('/admin/cafe/verify-password', json={'password': 'nope'})
    assert r.status_code == 200
    assert r.json() == {'valid': False, 'access_token': None, 'token_type': 'bearer'}


def test_logout_closes_queue(client, business):
    admin = _admin_headers(client)
    assert client.post('/admin/cafe/logout', headers=admin).json() == {'is_online': False}
    assert client.get('/queue/cafe').json()['is_online'] is False


def test_unknown_business_and_ticket(client):
    assert client.get('/queue/nope').status_code == 404
    assert client.post('/queue/nope/join', json={}).status_code == 404
    assert client.get('/queue/tickets/404').status_code == 404


def test_super_admin_crud_and_maintenance(client, business):
    sa = _super_headers(client)
    assert client.post('/super-admin/login', json={'user': 'x', 'password': 'y'}).status_code == 401

    r = client.put(f'/super-admin/businesses/{business.id}', json={'slug': 'cafe', 'name': 'Renamed', 'password': ''}, headers=sa)
    assert r.json()['name'] == 'Renamed'
    assert client.post('/admin/cafe/verify-password', json={'password': 'secret'}).json()['valid'] is True

    r = client.post('/super-admin/businesses', json={'slug': 'cafe', 'name': 'Dup', 'password': 'x'}, headers=sa)
    assert r.status_code == 409

    r = client.post('/super-admin/maintenance/repair-counts', headers=sa)
    assert r.json() == {'businesses': {'cafe': {'served': 0, 'active_count': 0}}}
    assert client.post('/super-admin/maintenance/rehash-passwords', headers=sa).json() == {'migrated': 0}

    assert [b['slug'] for b in client.get('/super-admin/businesses', headers=sa).json()] == ['cafe']
    assert client.delete(f'/super-admin/businesses/{business.id}', headers=sa).status_code == 200
    assert client.get('/super-admin/businesses', headers=sa).json() == []


def test_business_dependency_resolves_slug(db_session, business):
    assert get_business('cafe', db_session) is business
    with pytest.raises(HTTPException) as exc:
        get_business('nope', db_session)
    assert exc.value.status_code == 404


def test_shutdown_closes_notification_client():
    with TestClient(app):
        http_client = get_notification_service()._get_client()
    assert http_client.is_closed
