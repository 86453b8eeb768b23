import pytest
from werkzeug.security import generate_password_hash

from portfolio import create_app
from portfolio.models import User, db

OWNER = ('owner', 'owner123')
VISITOR = ('visitor', 'visitor123')


@pytest.fixture
def app(tmp_path):
    """Fresh app against a throwaway SQLite file and upload folder."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'portfolio.db'}",
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'OWNER_USERNAME': OWNER[0],
        'OWNER_PASSWORD': OWNER[1],
        'AUTH_EMAIL_DOMAIN': 'portfolio.local',
    })
    with app.app_context():
        db.session.add(User(username=VISITOR[0], email='visitor@portfolio.local',
                            password_hash=generate_password_hash(VISITOR[1]), role='guest'))
        db.session.commit()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, username, password):
    return client.post('/login', data={'username': username, 'password': password})


@pytest.fixture
def owner_client(client):
    resp = login(client, *OWNER)
    assert resp.status_code == 302
    return client


@pytest.fixture
def visitor_client(client):
    resp = login(client, *VISITOR)
    assert resp.status_code == 302
    return client


@pytest.fixture
def guest_client(client):
    client.post('/guest')
    return client
