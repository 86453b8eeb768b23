from flask import (Blueprint, current_app, flash, jsonify, redirect,
                   request, url_for)
from sqlalchemy.exc import SQLAlchemyError

from .auth import owner_required
from .models import ContactMessage, db

contact_bp = Blueprint('contact_api', __name__)

SUCCESS_MESSAGE = "Thank you! Your message has been sent successfully. We'll get back to you soon!"

PROJECT_TYPES = (
    ('residential', 'Residential'),
    ('commercial', 'Commercial'),
    ('hospitality', 'Hospitality'),
    ('office', 'Office'),
    ('retail', 'Retail'),
)
BUDGET_RANGES = (
    ('under-10k', 'Under $10,000'),
    ('10k-25k', '$10,000 - $25,000'),
    ('25k-50k', '$25,000 - $50,000'),
    ('50k-100k', '$50,000 - $100,000'),
    ('over-100k', 'Over $100,000'),
)
TIMELINES = (
    ('asap', 'ASAP'),
    ('1-3-months', '1-3 months'),
    ('3-6-months', '3-6 months'),
    ('6-12-months', '6-12 months'),
    ('flexible', 'Flexible'),
)

_CHOICES = {
    'project_type': {k for k, _ in PROJECT_TYPES},
    'budget': {k for k, _ in BUDGET_RANGES},
    'timeline': {k for k, _ in TIMELINES},
}


def validate_contact(data):
    """Trim and check a submitted form. Returns (clean_fields, errors)."""
    clean = {}
    for key in ('name', 'email', 'phone', 'project_type', 'budget', 'timeline', 'message'):
        value = data.get(key)
        if value is None and key == 'project_type':
            value = data.get('projectType')
        clean[key] = str(value).strip() if value is not None else ''

    errors = []
    for key, label in (('name', 'Full name'), ('email', 'Email address'), ('message', 'Project details')):
        if not clean[key]:
            errors.append(f'{label} is required')
    if clean['email'] and '@' not in clean['email']:
        errors.append('Email address is invalid')
    for key, allowed in _CHOICES.items():
        if clean[key] and clean[key] not in allowed:
            errors.append(f'Unknown {key.replace("_", " ")}: {clean[key]}')
    return clean, errors


def save_message(clean):
    msg = ContactMessage(**clean)
    try:
        db.session.add(msg)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Failed to store contact message')
        raise
    current_app.logger.info('Contact message %s from %s', msg.id, msg.email)
    return msg


@contact_bp.route('/contact', methods=['POST'])
def submit_contact_form():
    clean, errors = validate_contact(request.form)
    if errors:
        for e in errors:
            flash(e, 'error')
        return redirect(url_for('index') + '#contact')
    try:
        save_message(clean)
    except SQLAlchemyError:
        flash('Sorry, your message could not be sent. Please try again.', 'error')
        return redirect(url_for('index') + '#contact')
    flash(SUCCESS_MESSAGE, 'success')
    return redirect(url_for('index') + '#contact')


@contact_bp.route('/api/contact', methods=['POST'])
def submit_contact_api():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'JSON body required'}), 400
    clean, errors = validate_contact(data)
    if errors:
        return jsonify({'error': 'Invalid submission', 'errors': errors}), 400
    try:
        msg = save_message(clean)
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to send message'}), 500
    return jsonify({'success': True, 'message': SUCCESS_MESSAGE, 'id': msg.id}), 201


@contact_bp.route('/api/contact', methods=['GET'])
@owner_required
def list_messages():
    rows = ContactMessage.query.order_by(ContactMessage.created_at.desc(),
                                         ContactMessage.id.desc()).all()
    return jsonify([m.to_dict() for m in rows])
