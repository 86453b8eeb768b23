"""HTML form handlers behind the editable page sections."""
from flask import (Blueprint, current_app, flash, redirect, request,
                   url_for)
from sqlalchemy.exc import SQLAlchemyError

from . import editing
from .auth import owner_required
from .models import IMAGE_CATEGORY_KEYS
from .services import (EducationService, PortfolioDataService,
                       ProjectsService, UserProfileService, allowed_image)

sections_bp = Blueprint('sections', __name__)

HERO = editing.HERO
HERO_DEFAULTS = {
    'title': 'Interior Design Portfolio',
    'tagline': ('Creating beautiful, functional spaces that reflect your unique style and '
                'personality. Explore our collection of residential and commercial design projects.'),
}
ABOUT_FIELDS = ('name', 'title', 'bio', 'experience', 'projects', 'clients', 'specializations')
EDUCATION_FIELDS = ('period', 'degree', 'institution', 'description')
PROJECT_FIELDS = ('title', 'description', 'client', 'date', 'category')
MULTILINE = {'bio', 'description', 'tagline'}
TOGGLEABLE = editing.SECTIONS


def hero_fields(data):
    """Hero texts as EditableFields; stored values override the defaults."""
    return {
        name: editing.field(data.get(f'text_hero_{name}') or default, section=HERO,
                            name=name, multiline=name in MULTILINE)
        for name, default in HERO_DEFAULTS.items()
    }


def _back(anchor, **params):
    return redirect(url_for('index', **params) + f'#{anchor}')


def _commit(section, name, current, on_save):
    """Run one save through an EditableField. Returns False when edit mode is off."""
    fld = editing.field(current, on_save=on_save, section=section, name=name,
                        multiline=name in MULTILINE)
    if not fld.begin():
        return False
    fld.change(request.form.get('value', ''))
    if request.form.get('action') == 'cancel':
        fld.cancel()
    else:
        fld.save()
    return True


def _edit_mode_off():
    return 'Edit mode is not active for this section', 409


@sections_bp.route('/sections/<section>/edit-mode', methods=['POST'])
@owner_required
def toggle_section(section):
    if section not in TOGGLEABLE:
        return 'Unknown section', 404
    if not editing.toggle_edit_mode(section):
        flash('Changes saved.', 'success')
    return _back(section)


@sections_bp.route('/projects/<int:project_id>/edit-mode', methods=['POST'])
@owner_required
def toggle_project(project_id):
    if ProjectsService.get(project_id) is None:
        return 'Project not found', 404
    if not editing.toggle_edit_mode(editing.project_section(project_id)):
        flash('Changes saved.', 'success')
    return _back(f'project-{project_id}', expand=project_id)


@sections_bp.route('/hero/fields/<name>', methods=['POST'])
@owner_required
def save_hero_field(name):
    if name not in HERO_DEFAULTS:
        return 'Unknown field', 404
    current = PortfolioDataService.load_all_data().get(f'text_hero_{name}') or HERO_DEFAULTS[name]
    ok = _commit(HERO, name, current,
                 lambda value: PortfolioDataService.save_element('text', f'hero_{name}', value))
    if not ok:
        return _edit_mode_off()
    return _back(HERO)


@sections_bp.route('/about/fields/<name>', methods=['POST'])
@owner_required
def save_about_field(name):
    if name not in ABOUT_FIELDS:
        return 'Unknown field', 404
    profile = UserProfileService.load_profile()
    current = getattr(profile, name, '') if profile else ''
    if name == 'specializations':
        current = ', '.join(current or [])
    ok = _commit(editing.ABOUT, name, current,
                 lambda value: UserProfileService.update_profile({name: value}))
    if not ok:
        return _edit_mode_off()
    return _back(editing.ABOUT)


@sections_bp.route('/about/photo', methods=['POST'])
@owner_required
def upload_profile_photo():
    if not editing.is_edit_mode(editing.ABOUT):
        return _edit_mode_off()
    file = request.files.get('file')
    if file is None or not file.filename:
        flash('Choose an image to upload.', 'error')
        return _back(editing.ABOUT)
    try:
        url = PortfolioDataService.upload_image(file, 'profile_photo')
        UserProfileService.update_profile({'photo_url': url})
    except ValueError as e:
        flash(str(e), 'error')
    return _back(editing.ABOUT)


@sections_bp.route('/education', methods=['POST'])
@owner_required
def add_education():
    if not editing.is_edit_mode(editing.EDUCATION):
        return _edit_mode_off()
    EducationService.add({})
    return _back(editing.EDUCATION)


@sections_bp.route('/education/<int:education_id>/fields/<name>', methods=['POST'])
@owner_required
def save_education_field(education_id, name):
    if name not in EDUCATION_FIELDS:
        return 'Unknown field', 404
    entry = EducationService.get(education_id)
    if entry is None:
        return 'Education entry not found', 404
    ok = _commit(editing.EDUCATION, name, getattr(entry, name),
                 lambda value: EducationService.update(education_id, name, value))
    if not ok:
        return _edit_mode_off()
    return _back(editing.EDUCATION)


@sections_bp.route('/education/<int:education_id>/delete', methods=['POST'])
@owner_required
def delete_education(education_id):
    if not editing.is_edit_mode(editing.EDUCATION):
        return _edit_mode_off()
    if not EducationService.remove(education_id):
        return 'Education entry not found', 404
    return _back(editing.EDUCATION)


@sections_bp.route('/projects', methods=['POST'])
@owner_required
def add_project():
    project = ProjectsService.save_project({
        'title': request.form.get('title') or 'New Project',
        'description': '',
        'client': '',
        'date': '',
        'category': 'Residential',
    })
    editing.set_edit_mode(editing.project_section(project.id), True)
    return _back(f'project-{project.id}', expand=project.id)


@sections_bp.route('/projects/<int:project_id>/fields/<name>', methods=['POST'])
@owner_required
def save_project_field(project_id, name):
    if name not in PROJECT_FIELDS:
        return 'Unknown field', 404
    project = ProjectsService.get(project_id)
    if project is None:
        return 'Project not found', 404
    try:
        ok = _commit(editing.project_section(project_id), name, getattr(project, name),
                     lambda value: ProjectsService.update_project(project_id, {name: value}))
    except ValueError as e:
        flash(str(e), 'error')
        return _back(f'project-{project_id}', expand=project_id)
    if not ok:
        return _edit_mode_off()
    return _back(f'project-{project_id}', expand=project_id)


@sections_bp.route('/projects/<int:project_id>/delete', methods=['POST'])
@owner_required
def delete_project(project_id):
    if not ProjectsService.delete_project(project_id):
        return 'Project not found', 404
    editing.set_edit_mode(editing.project_section(project_id), False)
    flash('Project removed.', 'info')
    return _back('projects')


@sections_bp.route('/projects/<int:project_id>/images', methods=['POST'])
@owner_required
def upload_project_image(project_id):
    category = request.form.get('category', '')
    if category not in IMAGE_CATEGORY_KEYS:
        return 'Unknown image category', 400
    files = [f for f in request.files.getlist('file') if f and f.filename]
    if not files:
        flash('Choose at least one image.', 'error')
        return _back(f'project-{project_id}', expand=project_id, tab=category)
    rejected = [f.filename for f in files if not allowed_image(f.filename)]
    if rejected:
        flash(f'Unsupported image type: {", ".join(rejected)}', 'error')
        return _back(f'project-{project_id}', expand=project_id, tab=category)
    try:
        for file in files:
            if ProjectsService.add_image(project_id, category, file,
                                         request.form.get('description', '')) is None:
                return 'Project not found', 404
    except ValueError as e:
        flash(str(e), 'error')
        return _back(f'project-{project_id}', expand=project_id, tab=category)
    except (OSError, SQLAlchemyError):
        current_app.logger.exception('Image upload failed for project %s', project_id)
        return 'Failed to store image', 500
    flash(f'{len(files)} image(s) added.', 'success')
    return _back(f'project-{project_id}', expand=project_id, tab=category)


@sections_bp.route('/projects/<int:project_id>/images/<int:image_id>/delete', methods=['POST'])
@owner_required
def delete_project_image(project_id, image_id):
    tab = request.form.get('tab', 'elevation')
    if not ProjectsService.remove_image(project_id, image_id):
        return 'Image not found', 404
    return _back(f'project-{project_id}', expand=project_id, tab=tab)
