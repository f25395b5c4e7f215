import io

import cv2
import numpy as np
import pytest

from faceattend.processing.enrollment import Enrollment
from faceattend.processing.sampling import SamplingLoop
from faceattend.web import create_app

from conftest import FrameSource, MonotonicClock, StubExtractor, unit


def jpeg_bytes():
    ok, buf = cv2.imencode('.jpg', np.full((48, 48, 3), 200, dtype=np.uint8))
    assert ok
    return buf.tobytes()


@pytest.fixture
def extractor():
    return StubExtractor(default=unit(0))


@pytest.fixture
def client(registry, extractor):
    app = create_app(registry, Enrollment(extractor, registry))
    app.config['TESTING'] = True
    return app.test_client()


def test_list_employees_empty(client):
    resp = client.get('/api/employees')
    assert resp.status_code == 200
    assert resp.get_json() == []


def test_register_with_photo(client, registry):
    resp = client.post('/api/employees', data={
        'name': 'Alice',
        'department': 'R&D',
        'image': (io.BytesIO(jpeg_bytes()), 'alice.jpg'),
    }, content_type='multipart/form-data')

    assert resp.status_code == 201
    body = resp.get_json()
    assert body['success'] is True
    assert body['employee']['has_descriptor'] is True
    assert registry.get(body['employee']['id']).descriptor is not None


def test_register_photo_without_face(client, registry, extractor):
    extractor.default = None
    resp = client.post('/api/employees', data={
        'name': 'Alice',
        'department': 'R&D',
        'image': (io.BytesIO(jpeg_bytes()), 'alice.jpg'),
    }, content_type='multipart/form-data')

    assert resp.status_code == 400
    assert 'No face detected' in resp.get_json()['error']
    assert len(registry) == 0


def test_register_unreadable_image(client, registry):
    resp = client.post('/api/employees', data={
        'name': 'Alice',
        'department': 'R&D',
        'image': (io.BytesIO(b'not an image'), 'alice.jpg'),
    }, content_type='multipart/form-data')
    assert resp.status_code == 400
    assert len(registry) == 0


def test_register_without_photo_stores_null_descriptor(client, registry):
    resp = client.post('/api/employees', data={'name': 'Carol', 'department': 'Facilities'})
    assert resp.status_code == 201
    assert resp.get_json()['employee']['has_descriptor'] is False


def test_register_missing_fields(client):
    resp = client.post('/api/employees', data={'name': 'Carol'})
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False


def test_register_disabled_without_enrollment(registry):
    client = create_app(registry).test_client()
    resp = client.post('/api/employees', data={'name': 'A', 'department': 'B'})
    assert resp.status_code == 503


def test_delete_employee_cascades(client, registry):
    alice = registry.add("Alice", "R&D", unit(0))
    bob = registry.add("Bob", "Sales", unit(1))
    registry.record_attendance(alice, 0.6)
    registry.record_attendance(bob, 0.6)

    resp = client.delete(f'/api/employees/{alice.id}')
    assert resp.status_code == 200

    records = client.get('/api/attendance').get_json()
    assert [r['employee_id'] for r in records] == [bob.id]
    assert client.delete(f'/api/employees/{alice.id}').status_code == 404


def test_attendance_and_stats(client, registry):
    alice = registry.add("Alice", "R&D", unit(0))
    registry.add("Carol", "Facilities")
    registry.record_attendance(alice, 0.61)

    records = client.get('/api/attendance?today=1').get_json()
    assert len(records) == 1
    assert records[0]['type'] == 'check-in'
    assert records[0]['employee_name'] == 'Alice'

    stats = client.get('/api/stats').get_json()
    assert stats == {'registered': 2, 'enrolled_biometric': 1,
                     'records_total': 1, 'records_today': 1}

    assert client.delete('/api/attendance').status_code == 200
    assert client.get('/api/attendance').get_json() == []


def test_status_without_loop(client):
    body = client.get('/api/status').get_json()
    assert body == {'running': False, 'source_available': False, 'last_result': None}


def test_status_reports_last_result(registry, extractor):
    alice = registry.add("Alice", "R&D", unit(0))
    loop = SamplingLoop(FrameSource("f"), extractor, registry, clock=MonotonicClock())
    loop.start()
    loop.tick()

    client = create_app(registry, loop=loop).test_client()
    body = client.get('/api/status').get_json()

    assert body['running'] is True
    assert body['source_available'] is True
    assert body['last_result']['detected'] is True
    assert body['last_result']['employee']['id'] == alice.id
    assert body['last_result']['confidence_percent'] == 100
