from portfolio.contact_api import SUCCESS_MESSAGE, validate_contact
from portfolio.models import ContactMessage

VALID = {
    'name': 'Ana Lima',
    'email': 'ana@example.com',
    'phone': '+1 555 0100',
    'projectType': 'hospitality',
    'budget': '25k-50k',
    'timeline': '3-6-months',
    'message': 'We are renovating a 12-room boutique hotel.',
}


def test_validate_trims_and_maps_project_type():
    clean, errors = validate_contact(dict(VALID, name='  Ana Lima  '))
    assert errors == []
    assert clean['name'] == 'Ana Lima'
    assert clean['project_type'] == 'hospitality'


def test_validate_required_fields():
    _, errors = validate_contact({'name': ' ', 'email': '', 'message': ''})
    assert errors == ['Full name is required', 'Email address is required',
                      'Project details is required']


def test_validate_choices_and_email():
    _, errors = validate_contact(dict(VALID, email='ana.example.com', budget='a lot'))
    assert 'Email address is invalid' in errors
    assert 'Unknown budget: a lot' in errors


def test_optional_fields_may_be_blank():
    _, errors = validate_contact({'name': 'A', 'email': 'a@b.c', 'message': 'hi',
                                  'budget': '', 'timeline': ''})
    assert errors == []


def test_api_submit(app, client):
    resp = client.post('/api/contact', json=VALID)
    assert resp.status_code == 201
    assert resp.get_json()['message'] == SUCCESS_MESSAGE
    with app.app_context():
        msg = ContactMessage.query.one()
        assert msg.timeline == '3-6-months'


def test_api_rejects_invalid(client):
    resp = client.post('/api/contact', json={'name': 'A'})
    assert resp.status_code == 400
    assert 'Email address is required' in resp.get_json()['errors']
    assert client.post('/api/contact', data='nope').status_code == 400


def test_form_submit_flashes_success(app, guest_client):
    form = dict(VALID)
    form['project_type'] = form.pop('projectType')
    resp = guest_client.post('/contact', data=form, follow_redirects=True)
    assert resp.status_code == 200
    assert b'Thank you! Your message has been sent successfully.' in resp.data
    with app.app_context():
        assert ContactMessage.query.count() == 1


def test_form_submit_shows_errors(app, guest_client):
    resp = guest_client.post('/contact', data={'name': 'A'}, follow_redirects=True)
    assert b'Email address is required' in resp.data
    with app.app_context():
        assert ContactMessage.query.count() == 0


def test_owner_inbox(owner_client):
    owner_client.post('/api/contact', json=VALID)
    owner_client.post('/api/contact', json=dict(VALID, name='Second'))
    messages = owner_client.get('/api/contact').get_json()
    assert [m['name'] for m in messages] == ['Second', 'Ana Lima']


def test_inbox_is_owner_only(guest_client):
    assert guest_client.get('/api/contact').status_code == 401


def test_inbox_forbidden_for_visitor(visitor_client):
    assert visitor_client.get('/api/contact').status_code == 403
