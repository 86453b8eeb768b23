from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import editing
from .auth import login_required, owner_required
from .services import (EDUCATION_FIELDS, EducationService,
                       PortfolioDataService, ProjectsService,
                       UserProfileService)

content_bp = Blueprint('content_api', __name__, url_prefix='/api')


def _payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


# ---------------- Portfolio data ----------------
@content_bp.route('/portfolio-data')
@login_required
def get_portfolio_data():
    return jsonify(PortfolioDataService.load_all_data())


@content_bp.route('/portfolio-data/<element_type>/<element_id>', methods=['PUT'])
@owner_required
def put_portfolio_element(element_type, element_id):
    data = _payload()
    if data is None or 'value' not in data:
        return jsonify({'error': 'value required'}), 400
    value = data['value']
    if not isinstance(value, (str, dict, list)):
        return jsonify({'error': 'value must be a string, object or array'}), 400
    try:
        PortfolioDataService.save_element(element_type, element_id, value)
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to save element'}), 500
    return jsonify({'success': True, 'key': f'{element_type}_{element_id}', 'value': value})


@content_bp.route('/images/<element_id>', methods=['POST'])
@owner_required
def upload_element_image(element_id):
    file = request.files.get('file')
    if file is None or not file.filename:
        return jsonify({'error': 'file required'}), 400
    try:
        url = PortfolioDataService.upload_image(file, element_id)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except (OSError, SQLAlchemyError):
        return jsonify({'error': 'Failed to upload image'}), 500
    return jsonify({'success': True, 'url': url}), 201


# ---------------- Edit mode ----------------
@content_bp.route('/edit-mode')
@login_required
def get_edit_mode():
    return jsonify({'sections': editing.active_sections()})


@content_bp.route('/edit-mode/<section>', methods=['POST'])
@owner_required
def toggle_edit_mode(section):
    if not editing.is_known_section(section):
        return jsonify({'error': 'Unknown section'}), 404
    prefix, _, project_id = section.partition(':')
    if prefix == 'project' and ProjectsService.get(int(project_id)) is None:
        return jsonify({'error': 'Project not found'}), 404
    data = _payload() or {}
    if 'enabled' in data:
        enabled = editing.set_edit_mode(section, bool(data['enabled']))
    else:
        enabled = editing.toggle_edit_mode(section)
    return jsonify({'section': section, 'edit_mode': enabled})


# ---------------- Profile ----------------
@content_bp.route('/profile')
@login_required
def get_profile():
    profile = UserProfileService.load_profile()
    if profile is None:
        return jsonify({'error': 'Profile not found'}), 404
    return jsonify(profile.to_dict())


@content_bp.route('/profile', methods=['PATCH'])
@owner_required
def update_profile():
    data = _payload()
    if not data:
        return jsonify({'error': 'JSON body required'}), 400
    try:
        profile = UserProfileService.update_profile(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to update profile'}), 500
    return jsonify(profile.to_dict())


# ---------------- Education ----------------
@content_bp.route('/education')
@login_required
def list_education():
    return jsonify([e.to_dict() for e in EducationService.load_all()])


@content_bp.route('/education', methods=['POST'])
@owner_required
def create_education():
    data = _payload() or {}
    try:
        entry = EducationService.add(data)
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to add education'}), 500
    return jsonify(entry.to_dict()), 201


@content_bp.route('/education/<int:education_id>', methods=['PATCH'])
@owner_required
def update_education(education_id):
    data = _payload()
    if not data:
        return jsonify({'error': 'JSON body required'}), 400
    unknown = set(data) - set(EDUCATION_FIELDS)
    if unknown:
        return jsonify({'error': f'Unknown fields: {", ".join(sorted(unknown))}'}), 400
    if EducationService.get(education_id) is None:
        return jsonify({'error': 'Education entry not found'}), 404
    try:
        for field, value in data.items():
            entry = EducationService.update(education_id, field, value)
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to update education'}), 500
    return jsonify(entry.to_dict())


@content_bp.route('/education/<int:education_id>', methods=['DELETE'])
@owner_required
def delete_education(education_id):
    try:
        removed = EducationService.remove(education_id)
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to remove education'}), 500
    if not removed:
        return jsonify({'error': 'Education entry not found'}), 404
    return jsonify({'success': True})


# ---------------- Projects ----------------
@content_bp.route('/projects')
@login_required
def list_projects():
    projects = ProjectsService.load_all_projects()
    return jsonify([dict(p.to_dict(), image_count=ProjectsService.total_image_count(p))
                    for p in projects])


@content_bp.route('/projects/<int:project_id>')
@login_required
def get_project(project_id):
    project = ProjectsService.get(project_id)
    if project is None:
        return jsonify({'error': 'Project not found'}), 404
    return jsonify(dict(project.to_dict(), image_count=ProjectsService.total_image_count(project)))


@content_bp.route('/projects', methods=['POST'])
@owner_required
def create_project():
    data = _payload()
    if not data or not (data.get('title') or '').strip():
        return jsonify({'error': 'title required'}), 400
    data.pop('id', None)
    try:
        project = ProjectsService.save_project(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to save project'}), 500
    return jsonify(project.to_dict()), 201


@content_bp.route('/projects/<int:project_id>', methods=['PATCH'])
@owner_required
def update_project(project_id):
    data = _payload()
    if not data:
        return jsonify({'error': 'JSON body required'}), 400
    try:
        project = ProjectsService.update_project(project_id, data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to save project'}), 500
    if project is None:
        return jsonify({'error': 'Project not found'}), 404
    return jsonify(project.to_dict())


@content_bp.route('/projects/<int:project_id>', methods=['DELETE'])
@owner_required
def delete_project(project_id):
    try:
        deleted = ProjectsService.delete_project(project_id)
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to delete project'}), 500
    if not deleted:
        return jsonify({'error': 'Project not found'}), 404
    return jsonify({'success': True})


@content_bp.route('/projects/<int:project_id>/images/<category>', methods=['POST'])
@owner_required
def add_project_image(project_id, category):
    file = request.files.get('file')
    if file is None or not file.filename:
        return jsonify({'error': 'file required'}), 400
    try:
        image = ProjectsService.add_image(project_id, category, file,
                                          request.form.get('description', ''))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except (OSError, SQLAlchemyError):
        current_app.logger.exception('Image upload failed for project %s', project_id)
        return jsonify({'error': 'Failed to store image'}), 500
    if image is None:
        return jsonify({'error': 'Project not found'}), 404
    return jsonify(image.to_dict()), 201


@content_bp.route('/projects/<int:project_id>/images/<int:image_id>', methods=['PATCH'])
@owner_required
def update_project_image(project_id, image_id):
    data = _payload()
    if not data:
        return jsonify({'error': 'JSON body required'}), 400
    try:
        image = ProjectsService.update_image(project_id, image_id, data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to update image'}), 500
    if image is None:
        return jsonify({'error': 'Image not found'}), 404
    return jsonify(image.to_dict())


@content_bp.route('/projects/<int:project_id>/images/<int:image_id>', methods=['DELETE'])
@owner_required
def delete_project_image(project_id, image_id):
    try:
        removed = ProjectsService.remove_image(project_id, image_id)
    except SQLAlchemyError:
        return jsonify({'error': 'Failed to remove image'}), 500
    if not removed:
        return jsonify({'error': 'Image not found'}), 404
    return jsonify({'success': True})
