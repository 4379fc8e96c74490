import pytest

from conftest import auth_headers
from models.component import Component
from models.log import Log
from models.request import ComponentRequest, RequestStatus
from models.users import UserRole


@pytest.fixture()
def people(make_user):
    return {
        'student': make_user(UserRole.STUDENT, name='Asha'),
        'faculty': make_user(UserRole.FACULTY, name='Prof. Rao'),
        'ta': make_user(UserRole.TA),
        'admin': make_user(UserRole.ADMIN),
    }


def test_request_is_approved_and_fulfilled(client, db_session, people, make_component) -> None:
    arduino = make_component('Arduino Uno', total=10)

    created = client.post('/requests', headers=auth_headers(people['student']), json={
        'items': [{'componentId': arduino.id, 'quantity': 3}],
        'targetFacultyId': people['faculty'].id,
        'projectTitle': 'Line follower',
    })
    assert created.status_code == 201
    request = created.json()['request']
    assert request['status'] == 'PENDING'
    assert request['user']['name'] == 'Asha'
    assert request['targetFaculty']['name'] == 'Prof. Rao'
    assert request['items'][0]['component']['name'] == 'Arduino Uno'

    approved = client.put(f"/requests/{request['id']}", headers=auth_headers(people['faculty']),
                          json={'status': 'APPROVED'})
    assert approved.status_code == 200
    assert approved.json()['request']['status'] == 'APPROVED'

    fulfilled = client.put(f"/requests/{request['id']}", headers=auth_headers(people['ta']),
                           json={'status': 'FULFILLED'})
    assert fulfilled.status_code == 200
    body = fulfilled.json()['request']
    assert body['status'] == 'FULFILLED'
    assert body['items'][0]['component']['availableQuantity'] == 7

    db_session.expire_all()
    assert db_session.get(Component, arduino.id).available_quantity == 7
    assert db_session.query(Log).filter(Log.action == 'REQUEST_STATUS_CHANGE').count() == 2


def test_fulfill_before_approval_is_rejected(client, people, make_component, make_request) -> None:
    request = make_request(people['student'], people['faculty'], [(make_component(), 1)])

    response = client.put(f'/requests/{request.id}', headers=auth_headers(people['admin']),
                          json={'status': 'FULFILLED'})

    assert response.status_code == 400
    assert response.json() == {'error': 'request must be APPROVED before it can be FULFILLED'}


def test_fulfill_with_short_stock_is_logged(client, db_session, people, make_component, make_request) -> None:
    servo = make_component('Servo', total=4, available=1)
    request = make_request(people['student'], people['faculty'], [(servo, 2)], status=RequestStatus.APPROVED)

    response = client.put(f'/requests/{request.id}', headers=auth_headers(people['admin']),
                          json={'status': 'FULFILLED'})

    assert response.status_code == 400
    assert response.json() == {'error': 'insufficient quantity for component "Servo"'}
    db_session.expire_all()
    assert db_session.get(ComponentRequest, request.id).status == RequestStatus.APPROVED
    assert db_session.query(Log).filter(Log.status == 'FAIL').count() == 1


def test_create_request_validation_error(client, people, make_component) -> None:
    response = client.post('/requests', headers=auth_headers(people['student']), json={
        'items': [{'componentId': make_component().id, 'quantity': 1}],
        'targetFacultyId': people['ta'].id,
        'projectTitle': 'Drone',
    })

    assert response.status_code == 400
    assert response.json() == {'error': 'invalid targetFacultyId'}


def test_list_requests_for_student_ignores_user_filter(client, people, make_user, make_component,
                                                      make_request) -> None:
    component = make_component()
    own = make_request(people['student'], people['faculty'], [(component, 1)])
    other = make_user()
    make_request(other, people['faculty'], [(component, 1)])

    response = client.get('/requests', params={'userId': other.id}, headers=auth_headers(people['student']))

    assert response.status_code == 200
    assert [r['id'] for r in response.json()['requests']] == [own.id]


def test_list_requests_for_staff_honours_filters(client, people, make_user, make_component,
                                                make_request) -> None:
    component = make_component()
    make_request(people['student'], people['faculty'], [(component, 1)])
    other = make_user()
    theirs = make_request(other, people['faculty'], [(component, 1)], status=RequestStatus.APPROVED)

    response = client.get('/requests', params={'userId': other.id, 'status': 'APPROVED'},
                          headers=auth_headers(people['admin']))

    assert [r['id'] for r in response.json()['requests']] == [theirs.id]


def test_list_requests_rejects_unknown_status(client, people) -> None:
    response = client.get('/requests', params={'status': 'LOST'}, headers=auth_headers(people['admin']))

    assert response.status_code == 400
    assert response.json() == {'error': 'invalid status'}


def test_delete_request(client, db_session, people, make_component, make_request) -> None:
    request = make_request(people['student'], people['faculty'], [(make_component(), 1)])

    response = client.delete(f'/requests/{request.id}', headers=auth_headers(people['student']))

    assert response.status_code == 204
    assert db_session.query(ComponentRequest).count() == 0


def test_delete_request_of_another_student(client, people, make_user, make_component, make_request) -> None:
    request = make_request(people['student'], people['faculty'], [(make_component(), 1)])

    response = client.delete(f'/requests/{request.id}', headers=auth_headers(make_user()))

    assert response.status_code == 403
    assert response.json() == {'error': 'forbidden: cannot delete this request'}


def test_update_missing_request(client, people) -> None:
    response = client.put('/requests/404', headers=auth_headers(people['admin']), json={'status': 'APPROVED'})

    assert response.status_code == 404
    assert response.json() == {'error': 'request not found'}


def test_list_faculty(client, people, make_user) -> None:
    make_user(UserRole.FACULTY, name='Prof. Iyer')

    response = client.get('/faculty', headers=auth_headers(people['student']))

    assert response.status_code == 200
    assert {f['name'] for f in response.json()['faculty']} == {'Prof. Rao', 'Prof. Iyer'}
    assert all(f['role'] == 'FACULTY' for f in response.json()['faculty'])


def test_audit_log_is_admin_only(client, people) -> None:
    client.post('/auth/login', json={'email': people['student'].email, 'password': 'wrong-password'})

    assert client.get('/logs', headers=auth_headers(people['ta'])).status_code == 403
    response = client.get('/logs', params={'status': 'FAIL'}, headers=auth_headers(people['admin']))
    assert response.status_code == 200
    assert response.json()['total'] == 1
    assert response.json()['items'][0]['action'] == 'LOGIN'


def test_request_history_survives_deletion(client, people, make_component, make_request) -> None:
    request = make_request(people['student'], people['faculty'], [(make_component(), 1)])
    client.delete(f'/requests/{request.id}', headers=auth_headers(people['student']))

    response = client.get('/logs', params={'requestId': request.id}, headers=auth_headers(people['admin']))

    assert response.status_code == 200
    entries = response.json()['items']
    assert [(e['action'], e['user_id'], e['request_id']) for e in entries] == [
        ('REQUEST_DELETE', people['student'].id, request.id)
    ]


@pytest.mark.parametrize(
    ('item', 'target', 'message'),
    [
        ({'quantity': '2'}, None, 'quantity must be a positive number'),
        ({'componentId': 'ARDUINO'}, None, 'componentId must be a number'),
        ({}, 'FACULTY', 'invalid targetFacultyId'),
    ],
)
def test_create_request_rejects_numeric_strings(client, db_session, people, make_component,
                                               item, target, message) -> None:
    component = make_component()
    payload = {
        'items': [{'componentId': component.id, 'quantity': 1, **item}],
        'targetFacultyId': str(people['faculty'].id) if target == 'FACULTY' else people['faculty'].id,
        'projectTitle': 'Weather station',
    }

    response = client.post('/requests', headers=auth_headers(people['student']), json=payload)

    assert response.status_code == 400
    assert response.json() == {'error': message}
    assert db_session.query(ComponentRequest).count() == 0
