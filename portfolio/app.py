import logging
import os

from flask import (Flask, flash, jsonify, redirect, render_template, request,
                   send_from_directory, url_for)
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash

from . import editing
from .auth import auth_bp, current_auth, login_required
from .cli import users_cli
from .contact_api import (BUDGET_RANGES, PROJECT_TYPES, TIMELINES,
                          contact_bp)
from .content_api import content_bp
from .models import (IMAGE_CATEGORIES, IMAGE_CATEGORY_KEYS,
                     PROJECT_CATEGORIES, Education, Project, User,
                     UserProfile, db)
from .sections import hero_fields, sections_bp
from .services import (EducationService, PortfolioDataService,
                       ProjectsService, UserProfileService)

DEFAULT_PROFILE = {
    'name': 'Sacha Subois',
    'title': 'Interior Designer',
    'bio': ('With over a decade of experience in creating exceptional interior spaces, '
            'I specialize in transforming ordinary rooms into extraordinary experiences. '
            'My approach combines contemporary aesthetics with functional design, '
            'ensuring every space tells a unique story.'),
    'experience': '10+ Years',
    'projects': '150+ Projects',
    'clients': '200+ Happy Clients',
    'specializations': ['Residential Design', 'Commercial Spaces',
                        'Space Planning', 'Color Consultation'],
}

DEFAULT_EDUCATION = [
    ('2014 - 2018', 'Bachelor of Design', 'Borcelle University',
     'Comprehensive study in interior design principles, space planning, color theory, '
     'and sustainable design practices. Graduated with honors.'),
    ('2015 - 2019', 'Bachelor of Design', 'Salford & Co. University',
     'Advanced coursework in commercial design, project management, and client relations. '
     'Specialized in hospitality and retail design.'),
]

DEFAULT_PROJECTS = [
    ('Project - Pankaj Pandey', 'Mr. Pankaj Pandey',
     'Residential Interior Design - A modern residential space featuring warm tones and contemporary furniture.'),
    ('Project - Naresh Ahirwar', 'Mr. Naresh Ahirwar',
     'Modern Home Design - Contemporary living spaces with clean lines and functional layouts.'),
    ('Project - Mr. Kulkarni', 'Mr. Kulkarni',
     'Family Home - Spacious family residence with traditional elements and modern comfort.'),
    ('Project - Paresh Patel', 'Mr. Paresh Patel',
     'Contemporary Living - Minimalist design approach with emphasis on natural lighting.'),
    ('Project - Mr. Jhaveri', 'Mr. Jhaveri',
     'Luxury Residence - High-end residential project with premium finishes and custom details.'),
    ('Project - Yash', 'Mr. Yash',
     'Minimalist Design - Clean, uncluttered spaces emphasizing form and function.'),
    ('Project - Custom', 'Custom Client',
     'New Project Template - Customizable project template for future designs.'),
]


def _env_flag(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def ensure_owner(app):
    username = app.config['OWNER_USERNAME']
    if User.query.filter_by(username=username).first():
        return
    owner = User(
        username=username,
        email=f"{username}@{app.config['AUTH_EMAIL_DOMAIN']}".lower(),
        password_hash=generate_password_hash(app.config['OWNER_PASSWORD']),
        role='owner',
    )
    db.session.add(owner)
    db.session.commit()
    app.logger.info('Created owner account %s', username)


def seed_content():
    if UserProfile.query.first() is None:
        db.session.add(UserProfile(**DEFAULT_PROFILE))
    if Education.query.first() is None:
        for index, (period, degree, institution, description) in enumerate(DEFAULT_EDUCATION, 1):
            db.session.add(Education(period=period, degree=degree, institution=institution,
                                     description=description, order_index=index))
    if Project.query.first() is None:
        for index, (title, client, description) in enumerate(DEFAULT_PROJECTS, 1):
            db.session.add(Project(title=title, client=client, description=description,
                                   date='2024', category='Residential', order_index=index))
    db.session.commit()


def init_db(app):
    """Create tables, make sure the owner account exists and seed default content."""
    with app.app_context():
        db.create_all()
        try:
            ensure_owner(app)
            if app.config['SEED_DEFAULT_CONTENT']:
                seed_content()
        except SQLAlchemyError:
            db.session.rollback()
            app.logger.exception('Seeding failed')
            raise


def create_app(config=None):
    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    app.config.update(
        SECRET_KEY=os.getenv('SECRET_KEY', 'dev-secret-key-change-me'),
        SQLALCHEMY_DATABASE_URI=os.getenv(
            'DATABASE_URL', 'sqlite:///' + os.path.join(app.instance_path, 'portfolio.db')),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        UPLOAD_FOLDER=os.getenv('UPLOAD_FOLDER', os.path.join(app.instance_path, 'uploads')),
        UPLOAD_URL_PREFIX='/uploads',
        ALLOWED_IMAGE_EXTENSIONS={'png', 'jpg', 'jpeg', 'gif', 'webp'},
        MAX_CONTENT_LENGTH=int(os.getenv('MAX_UPLOAD_MB', '16')) * 1024 * 1024,
        AUTH_EMAIL_DOMAIN=os.getenv('AUTH_EMAIL_DOMAIN', 'portfolio.local'),
        OWNER_USERNAME=os.getenv('OWNER_USERNAME', 'owner'),
        OWNER_PASSWORD=os.getenv('OWNER_PASSWORD', 'owner123'),
        SEED_DEFAULT_CONTENT=_env_flag('SEED_DEFAULT_CONTENT', True),
        LOG_LEVEL=os.getenv('LOG_LEVEL', 'INFO'),
    )
    if config:
        app.config.update(config)

    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    db.init_app(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(sections_bp)
    app.register_blueprint(content_bp)
    app.register_blueprint(contact_bp)
    app.cli.add_command(users_cli)

    init_db(app)

    # Stored images are only served to visitors who passed the login gate
    RESTRICTED_PREFIXES = (app.config['UPLOAD_URL_PREFIX'] + '/',)

    @app.before_request
    def require_access_for_restricted():
        path = request.path or '/'
        if any(path.startswith(p) for p in RESTRICTED_PREFIXES):
            if not current_auth().has_access:
                return redirect(url_for('auth.login', next=path))

    @app.context_processor
    def inject_auth():
        auth = current_auth()
        return {
            'auth': auth,
            'is_owner': auth.is_owner,
            'is_guest': auth.is_guest,
            'edit_sections': editing.active_sections(),
        }

    # ---------------- Routes ----------------
    @app.route('/')
    @login_required
    def index():
        projects = ProjectsService.load_all_projects()
        expand = request.args.get('expand', type=int)
        if expand is None and projects:
            expand = projects[0].id
        tab = request.args.get('tab', 'elevation')
        if tab not in IMAGE_CATEGORY_KEYS:
            tab = 'elevation'

        profile = UserProfileService.load_profile() or UserProfile(**DEFAULT_PROFILE)
        about_on = editing.is_edit_mode(editing.ABOUT)
        about_fields = {
            name: editing.field(getattr(profile, name), section=editing.ABOUT, name=name,
                                multiline=(name == 'bio'), placeholder=placeholder)
            for name, placeholder in (
                ('name', 'Your Name'), ('title', 'Your Title'), ('bio', 'Tell your story...'),
                ('experience', 'Years'), ('projects', 'Projects'), ('clients', 'Clients'))
        }

        education = []
        for entry in EducationService.load_all():
            education.append((entry, {
                name: editing.field(getattr(entry, name), section=editing.EDUCATION, name=name,
                                    multiline=(name == 'description'), placeholder=name.title())
                for name in ('period', 'degree', 'institution', 'description')
            }))

        showcase = []
        for project in projects:
            section = editing.project_section(project.id)
            showcase.append({
                'project': project,
                'edit_mode': editing.is_edit_mode(section),
                'expanded': project.id == expand,
                'gallery': project.gallery,
                'image_count': ProjectsService.total_image_count(project),
                'fields': {
                    name: editing.field(getattr(project, name), section=section, name=name,
                                        multiline=(name == 'description'))
                    for name in ('title', 'description', 'client', 'date')
                },
            })

        data = PortfolioDataService.load_all_data()
        return render_template(
            'index.html',
            hero=hero_fields(data),
            profile=profile,
            photo_url=data.get('image_profile_photo') or profile.photo_url,
            about_fields=about_fields,
            about_edit=about_on,
            education=education,
            education_edit=editing.is_edit_mode(editing.EDUCATION),
            showcase=showcase,
            active_tab=tab,
            image_tabs=IMAGE_CATEGORIES,
            categories=PROJECT_CATEGORIES,
            project_types=PROJECT_TYPES,
            budget_ranges=BUDGET_RANGES,
            timelines=TIMELINES,
        )

    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    @app.errorhandler(413)
    def too_large(_err):
        if request.path.startswith('/api/'):
            return jsonify({'error': 'Upload too large'}), 413
        flash('Upload too large.', 'error')
        anchor = 'about' if request.path.startswith('/about/') else 'projects'
        return redirect(url_for('index') + f'#{anchor}')

    return app
