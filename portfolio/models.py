from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

PROJECT_CATEGORIES = ('Residential', 'Commercial', 'Hospitality', 'Office', 'Retail')

# Gallery tabs, in display order: (key, label, icon)
IMAGE_CATEGORIES = (
    ('elevation', 'Elevation Designs', '🏠'),
    ('floorPlans', 'Floor Plans', '📐'),
    ('topView', 'Top View/Ceiling', '⬆️'),
    ('twoD', '2D Designs', '📊'),
    ('threeD', '3D Designs', '🎨'),
)
IMAGE_CATEGORY_KEYS = tuple(key for key, _, _ in IMAGE_CATEGORIES)

ROLES = ('owner', 'guest')


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='guest')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def is_owner(self):
        return self.role == 'owner'

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'


class UserProfile(db.Model):
    __tablename__ = 'user_profile'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), default='')
    title = db.Column(db.String(120), default='')
    bio = db.Column(db.Text, default='')
    experience = db.Column(db.String(60), default='')
    projects = db.Column(db.String(60), default='')
    clients = db.Column(db.String(60), default='')
    specializations = db.Column(db.JSON, default=list)
    photo_url = db.Column(db.String(512))
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name or '',
            'title': self.title or '',
            'bio': self.bio or '',
            'experience': self.experience or '',
            'projects': self.projects or '',
            'clients': self.clients or '',
            'specializations': list(self.specializations or []),
            'photo_url': self.photo_url,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Education(db.Model):
    __tablename__ = 'education'

    id = db.Column(db.Integer, primary_key=True)
    period = db.Column(db.String(60), default='')
    degree = db.Column(db.String(160), default='')
    institution = db.Column(db.String(160), default='')
    description = db.Column(db.Text, default='')
    order_index = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            'id': self.id,
            'period': self.period or '',
            'degree': self.degree or '',
            'institution': self.institution or '',
            'description': self.description or '',
            'order_index': self.order_index,
        }


class Project(db.Model):
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, default='')
    description = db.Column(db.Text, default='')
    client = db.Column(db.String(200), default='')
    date = db.Column(db.String(20), default='')
    category = db.Column(db.String(20), nullable=False, default='Residential')
    order_index = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    images = db.relationship(
        'Image', backref='project', lazy=True,
        order_by='Image.id', cascade='all, delete-orphan',
    )

    @property
    def gallery(self):
        """Images grouped into the five named lists, in upload order."""
        grouped = {key: [] for key in IMAGE_CATEGORY_KEYS}
        for img in self.images:
            grouped.setdefault(img.category, []).append(img)
        return grouped

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title or '',
            'description': self.description or '',
            'client': self.client or '',
            'date': self.date or '',
            'category': self.category,
            'order_index': self.order_index,
            'is_active': self.is_active,
            'images': {k: [i.to_dict() for i in v] for k, v in self.gallery.items()},
        }


class Image(db.Model):
    __tablename__ = 'images'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id'), nullable=False)
    url = db.Column(db.String(512), nullable=False)
    name = db.Column(db.String(255), default='')
    description = db.Column(db.Text, default='')
    category = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'url': self.url,
            'name': self.name or '',
            'description': self.description or '',
            'category': self.category,
        }

    def __repr__(self):
        return f'<Image {self.name}>'


class PortfolioData(db.Model):
    __tablename__ = 'portfolio_data'
    __table_args__ = (db.UniqueConstraint('element_type', 'element_id'),)

    id = db.Column(db.Integer, primary_key=True)
    element_type = db.Column(db.String(60), nullable=False)
    element_id = db.Column(db.String(120), nullable=False)
    element_value = db.Column(db.Text)
    json_data = db.Column(db.JSON)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)


class ContactMessage(db.Model):
    __tablename__ = 'contact_messages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(40), default='')
    project_type = db.Column(db.String(40), default='')
    budget = db.Column(db.String(40), default='')
    timeline = db.Column(db.String(40), default='')
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone or '',
            'project_type': self.project_type or '',
            'budget': self.budget or '',
            'timeline': self.timeline or '',
            'message': self.message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
