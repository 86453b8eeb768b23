import os
import secrets
import time
from datetime import datetime

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from .models import (IMAGE_CATEGORY_KEYS, PROJECT_CATEGORIES, Education,
                     Image, PortfolioData, Project, UserProfile, db)

PROFILE_FIELDS = ('name', 'title', 'bio', 'experience', 'projects', 'clients',
                  'specializations', 'photo_url')
PROJECT_FIELDS = ('title', 'description', 'client', 'date', 'category', 'order_index')
EDUCATION_FIELDS = ('period', 'degree', 'institution', 'description')
IMAGE_FIELDS = ('name', 'description')


def _now():
    return datetime.utcnow()


def _rollback():
    try:
        db.session.rollback()
    except SQLAlchemyError:
        current_app.logger.exception('Rollback failed')


def allowed_image(filename):
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    return ext in current_app.config['ALLOWED_IMAGE_EXTENSIONS']


def store_upload(file, folder):
    """Write an uploaded file under UPLOAD_FOLDER/<folder>/ and return (path, public_url)."""
    original = file.filename or ''
    if not allowed_image(original):
        raise ValueError(f'Unsupported image type: {original or "(no name)"}')

    ext = original.rsplit('.', 1)[-1].lower()
    folder = secure_filename(str(folder)) or 'misc'
    rel_path = f'{folder}/{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}'

    target = os.path.join(current_app.config['UPLOAD_FOLDER'], *rel_path.split('/'))
    os.makedirs(os.path.dirname(target), exist_ok=True)
    file.save(target)
    return rel_path, public_url(rel_path)


def public_url(rel_path):
    return f"{current_app.config['UPLOAD_URL_PREFIX'].rstrip('/')}/{rel_path}"


def remove_upload(url):
    """Delete the stored file behind a public URL; foreign URLs are left alone."""
    prefix = current_app.config['UPLOAD_URL_PREFIX'].rstrip('/') + '/'
    if not url or not url.startswith(prefix):
        return False
    rel_path = url[len(prefix):]
    root = os.path.abspath(current_app.config['UPLOAD_FOLDER'])
    target = os.path.abspath(os.path.join(root, *rel_path.split('/')))
    if not target.startswith(root + os.sep) or not os.path.exists(target):
        return False
    os.remove(target)
    return True


class PortfolioDataService:
    """Key-value store for loose editable elements (texts, images, JSON blobs)."""

    @staticmethod
    def save_element(element_type, element_id, value):
        try:
            row = PortfolioData.query.filter_by(
                element_type=element_type, element_id=str(element_id)).first()
            if row is None:
                row = PortfolioData(element_type=element_type, element_id=str(element_id))
                db.session.add(row)
            if isinstance(value, str):
                row.element_value = value
                row.json_data = None
            else:
                row.element_value = None
                row.json_data = value
            row.updated_at = _now()
            db.session.commit()
            return row
        except SQLAlchemyError:
            current_app.logger.exception('Failed to save element %s/%s', element_type, element_id)
            _rollback()
            raise

    @staticmethod
    def load_all_data():
        try:
            rows = PortfolioData.query.all()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to load portfolio data')
            _rollback()
            return {}
        data = {}
        for row in rows:
            value = row.json_data if row.json_data is not None else row.element_value
            data[f'{row.element_type}_{row.element_id}'] = value
        return data

    @classmethod
    def upload_image(cls, file, element_id):
        try:
            _, url = store_upload(file, element_id)
            cls.save_element('image', element_id, url)
            return url
        except (OSError, SQLAlchemyError, ValueError):
            current_app.logger.exception('Failed to upload image for %s', element_id)
            raise


class UserProfileService:

    @staticmethod
    def load_profile():
        try:
            return UserProfile.query.order_by(UserProfile.id).first()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to load user profile')
            _rollback()
            return None

    @classmethod
    def update_profile(cls, updates):
        unknown = set(updates) - set(PROFILE_FIELDS)
        if unknown:
            raise ValueError(f'Unknown profile fields: {", ".join(sorted(unknown))}')
        if 'specializations' in updates:
            updates = dict(updates, specializations=normalize_specializations(updates['specializations']))
        try:
            profile = cls.load_profile()
            if profile is None:
                profile = UserProfile()
                db.session.add(profile)
            for key, value in updates.items():
                setattr(profile, key, value)
            profile.updated_at = _now()
            db.session.commit()
            return profile
        except SQLAlchemyError:
            current_app.logger.exception('Failed to update profile')
            _rollback()
            raise


def normalize_specializations(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        raise ValueError('specializations must be a list of strings')
    return [s.strip() for s in value if s.strip()]


class EducationService:

    @staticmethod
    def load_all():
        return Education.query.order_by(Education.order_index, Education.id).all()

    @staticmethod
    def get(education_id):
        return db.session.get(Education, education_id)

    @staticmethod
    def update(education_id, field, value):
        if field not in EDUCATION_FIELDS:
            raise ValueError(f'Unknown education field: {field}')
        entry = db.session.get(Education, education_id)
        if entry is None:
            return None
        setattr(entry, field, value)
        try:
            db.session.commit()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to update education %s', education_id)
            _rollback()
            raise
        return entry

    @staticmethod
    def add(data):
        next_index = (db.session.query(func.max(Education.order_index)).scalar() or 0) + 1
        entry = Education(order_index=next_index,
                          **{k: data.get(k, '') for k in EDUCATION_FIELDS})
        try:
            db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to add education entry')
            _rollback()
            raise
        return entry

    @staticmethod
    def remove(education_id):
        entry = db.session.get(Education, education_id)
        if entry is None:
            return False
        try:
            db.session.delete(entry)
            db.session.commit()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to remove education %s', education_id)
            _rollback()
            raise
        return True


class ProjectsService:

    @staticmethod
    def load_all_projects():
        try:
            return (Project.query.filter_by(is_active=True)
                    .order_by(Project.order_index, Project.id).all())
        except SQLAlchemyError:
            current_app.logger.exception('Failed to load projects')
            _rollback()
            return []

    @staticmethod
    def get(project_id, include_inactive=False):
        project = db.session.get(Project, project_id)
        if project is None or (not project.is_active and not include_inactive):
            return None
        return project

    @staticmethod
    def _apply(project, data):
        for key in PROJECT_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key == 'category' and value not in PROJECT_CATEGORIES:
                raise ValueError(f'Unknown category: {value}')
            if key == 'order_index':
                if not isinstance(value, int) or isinstance(value, bool):
                    raise ValueError('order_index must be an integer')
            elif not isinstance(value, str):
                raise ValueError(f'{key} must be a string')
            setattr(project, key, value)

    @classmethod
    def save_project(cls, data):
        """Insert or update a project from a dict; ``id`` selects the row to update."""
        try:
            project = None
            if data.get('id') is not None:
                project = db.session.get(Project, data['id'])
            if project is None:
                project = Project(is_active=True)
                if 'order_index' not in data:
                    top = db.session.query(func.max(Project.order_index)).scalar()
                    project.order_index = (top or 0) + 1
                db.session.add(project)
            cls._apply(project, data)
            if 'is_active' in data:
                project.is_active = bool(data['is_active'])
            project.updated_at = _now()
            db.session.commit()
            return project
        except SQLAlchemyError:
            current_app.logger.exception('Failed to save project')
            _rollback()
            raise
        except ValueError:
            _rollback()
            raise

    @classmethod
    def update_project(cls, project_id, updates):
        project = cls.get(project_id)
        if project is None:
            return None
        return cls.save_project(dict(updates, id=project.id))

    @staticmethod
    def delete_project(project_id):
        try:
            project = db.session.get(Project, project_id)
            if project is None:
                return False
            project.is_active = False
            project.updated_at = _now()
            db.session.commit()
            return True
        except SQLAlchemyError:
            current_app.logger.exception('Failed to delete project %s', project_id)
            _rollback()
            raise

    @staticmethod
    def total_image_count(project):
        return sum(len(images) for images in project.gallery.values())

    @classmethod
    def add_image(cls, project_id, category, file, description=''):
        if category not in IMAGE_CATEGORY_KEYS:
            raise ValueError(f'Unknown image category: {category}')
        project = cls.get(project_id)
        if project is None:
            return None
        _, url = store_upload(file, f'project-{project.id}')
        image = Image(project_id=project.id, url=url, category=category,
                      name=secure_filename(file.filename or '') or url.rsplit('/', 1)[-1],
                      description=description or '')
        try:
            db.session.add(image)
            project.updated_at = _now()
            db.session.commit()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to record image for project %s', project_id)
            _rollback()
            remove_upload(url)
            raise
        return image

    @staticmethod
    def update_image(project_id, image_id, updates):
        image = db.session.get(Image, image_id)
        if image is None or image.project_id != project_id:
            return None
        if 'category' in updates and updates['category'] not in IMAGE_CATEGORY_KEYS:
            raise ValueError(f"Unknown image category: {updates['category']}")
        for key in IMAGE_FIELDS:
            if updates.get(key) is not None and not isinstance(updates[key], str):
                raise ValueError(f'{key} must be a string')
        for key in IMAGE_FIELDS + ('category',):
            if key in updates:
                setattr(image, key, updates[key] or '')
        try:
            db.session.commit()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to update image %s', image_id)
            _rollback()
            raise
        return image

    @staticmethod
    def remove_image(project_id, image_id):
        image = db.session.get(Image, image_id)
        if image is None or image.project_id != project_id:
            return False
        url = image.url
        try:
            db.session.delete(image)
            db.session.commit()
        except SQLAlchemyError:
            current_app.logger.exception('Failed to remove image %s', image_id)
            _rollback()
            raise
        try:
            remove_upload(url)
        except OSError:
            current_app.logger.warning('Could not delete stored file %s', url)
        return True
