# faceattend/web/management.py
"""
Management API - enroll/remove employees and read attendance remotely.

Endpoints:
- GET    /api/employees          - enrolled employees
- POST   /api/employees          - enroll (form: name, department, optional image)
- DELETE /api/employees/<id>     - remove employee and their records
- GET    /api/attendance         - records, most recent first (?today=1)
- DELETE /api/attendance         - clear all records
- GET    /api/stats              - counters for the dashboard
- GET    /api/status             - last recognition result
"""
import logging

import cv2
import numpy as np
from flask import Blueprint, current_app, jsonify, request

from ..processing.enrollment import EnrollmentError

logger = logging.getLogger(__name__)

management_bp = Blueprint('management', __name__)


def _context():
    return current_app.extensions['faceattend']


@management_bp.route('/api/employees', methods=['GET'])
def api_get_employees():
    registry = _context()['registry']
    employees = sorted(registry.list(), key=lambda e: e.registered_at)
    return jsonify([e.to_dict() for e in employees])


@management_bp.route('/api/employees', methods=['POST'])
def api_register():
    """
    POST /api/employees

    Form data:
        - name, department
        - image: photo (JPEG/PNG); without it the employee is stored
          without a descriptor and can only be marked manually
    """
    enrollment = _context()['enrollment']
    if enrollment is None:
        return jsonify({'success': False, 'error': 'Enrollment is not available'}), 503

    name = request.form.get('name', '')
    department = request.form.get('department', '')
    image_file = request.files.get('image')

    try:
        if image_file is None or image_file.filename == '':
            identity = enrollment.register_without_capture(name, department)
        else:
            frame = cv2.imdecode(np.frombuffer(image_file.read(), np.uint8), cv2.IMREAD_COLOR)
            if frame is None:
                return jsonify({'success': False, 'error': 'Could not read image file'}), 400
            identity = enrollment.enroll(name, department, frame)
    except EnrollmentError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    return jsonify({'success': True, 'employee': identity.to_dict()}), 201


@management_bp.route('/api/employees/<identity_id>', methods=['DELETE'])
def api_delete_employee(identity_id):
    registry = _context()['registry']
    identity = registry.get(identity_id)
    if identity is None or not registry.remove(identity_id):
        return jsonify({'success': False, 'error': f'Employee "{identity_id}" not found'}), 404
    return jsonify({'success': True, 'message': f'Removed "{identity.name}"'})


@management_bp.route('/api/attendance', methods=['GET'])
def api_attendance():
    registry = _context()['registry']
    if request.args.get('today') in ('1', 'true', 'yes'):
        records = registry.today_records()
    else:
        records = registry.records()
    return jsonify([r.to_dict() for r in records])


@management_bp.route('/api/attendance', methods=['DELETE'])
def api_clear_attendance():
    _context()['registry'].clear_records()
    return jsonify({'success': True})


@management_bp.route('/api/stats', methods=['GET'])
def api_stats():
    return jsonify(_context()['registry'].stats())


@management_bp.route('/api/status', methods=['GET'])
def api_status():
    loop = _context()['loop']
    if loop is None:
        return jsonify({'running': False, 'source_available': False, 'last_result': None})
    result = loop.last_result
    return jsonify({
        'running': loop.running,
        'source_available': loop.source_available,
        'last_result': result.to_dict() if result else None,
    })
