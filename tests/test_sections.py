import io
import os

from portfolio.models import Education, Project, UserProfile, db
from portfolio.services import PortfolioDataService, ProjectsService


def first_project_id(app):
    with app.app_context():
        return ProjectsService.load_all_projects()[0].id


class TestIndexPage:

    def test_guest_sees_read_only_page(self, guest_client):
        resp = guest_client.get('/')
        assert resp.status_code == 200
        assert b'Interior Design Portfolio' in resp.data
        assert b'7 Featured Projects' in resp.data
        assert b'Sacha Subois' in resp.data
        assert b'Borcelle University' in resp.data
        assert b'Edit Profile' not in resp.data
        assert b'name="value"' not in resp.data

    def test_owner_sees_toggles(self, owner_client):
        resp = owner_client.get('/')
        assert b'Edit Profile' in resp.data
        assert b'New project' in resp.data

    def test_first_project_expanded_with_tabs(self, guest_client):
        resp = guest_client.get('/')
        assert resp.data.count(b'Elevation Designs') == 1
        assert b'No images in this category yet.' in resp.data

    def test_tab_and_expand_params(self, app, guest_client):
        with app.app_context():
            last = ProjectsService.load_all_projects()[-1].id
        resp = guest_client.get(f'/?expand={last}&tab=threeD')
        assert resp.status_code == 200
        assert f'id="project-{last}"'.encode() in resp.data
        assert b'class="active"' in resp.data

    def test_bad_tab_falls_back(self, guest_client):
        assert guest_client.get('/?tab=nonsense').status_code == 200

    def test_stored_hero_text_overrides_default(self, app, guest_client):
        with app.app_context():
            PortfolioDataService.save_element('text', 'hero_title', 'Studio Subois')
        resp = guest_client.get('/')
        assert b'Studio Subois' in resp.data


class TestAboutEditing:

    def test_field_save_requires_edit_mode(self, owner_client):
        resp = owner_client.post('/about/fields/name', data={'value': 'Jane'})
        assert resp.status_code == 409

    def test_field_save(self, app, owner_client):
        owner_client.post('/sections/about/edit-mode')
        resp = owner_client.post('/about/fields/name', data={'value': 'Jane Doe'})
        assert resp.status_code == 302
        assert resp.headers['Location'].endswith('#about')
        with app.app_context():
            assert UserProfile.query.first().name == 'Jane Doe'

    def test_cancel_keeps_value(self, app, owner_client):
        owner_client.post('/sections/about/edit-mode')
        owner_client.post('/about/fields/title', data={'value': 'Other', 'action': 'cancel'})
        with app.app_context():
            assert UserProfile.query.first().title == 'Interior Designer'

    def test_specializations_from_text(self, app, owner_client):
        owner_client.post('/sections/about/edit-mode')
        owner_client.post('/about/fields/specializations', data={'value': 'Lighting, Kitchens'})
        with app.app_context():
            assert UserProfile.query.first().specializations == ['Lighting', 'Kitchens']

    def test_unknown_field(self, owner_client):
        owner_client.post('/sections/about/edit-mode')
        assert owner_client.post('/about/fields/salary', data={'value': '1'}).status_code == 404

    def test_toggle_off_flashes_saved(self, owner_client):
        owner_client.post('/sections/about/edit-mode')
        owner_client.post('/sections/about/edit-mode')
        resp = owner_client.get('/')
        assert b'Changes saved.' in resp.data

    def test_photo_upload(self, app, owner_client):
        owner_client.post('/sections/about/edit-mode')
        resp = owner_client.post('/about/photo', data={'file': (io.BytesIO(b'img'), 'me.png')},
                                 content_type='multipart/form-data')
        assert resp.status_code == 302
        with app.app_context():
            url = UserProfile.query.first().photo_url
        assert url.startswith('/uploads/profile_photo/')
        assert owner_client.get(url).data == b'img'

    def test_oversized_photo_flashes(self, app, owner_client):
        app.config['MAX_CONTENT_LENGTH'] = 10
        owner_client.post('/sections/about/edit-mode')
        resp = owner_client.post('/about/photo', data={'file': (io.BytesIO(b'x' * 1024), 'me.png')},
                                 content_type='multipart/form-data')
        assert resp.status_code == 302
        assert resp.headers['Location'].endswith('/#about')
        app.config['MAX_CONTENT_LENGTH'] = None
        assert b'Upload too large.' in owner_client.get('/').data

    def test_guest_is_sent_to_login(self, guest_client):
        resp = guest_client.post('/sections/about/edit-mode')
        assert resp.status_code == 302
        assert '/login' in resp.headers['Location']

    def test_visitor_is_forbidden(self, visitor_client):
        assert visitor_client.post('/sections/about/edit-mode').status_code == 403
        assert visitor_client.post('/about/fields/name', data={'value': 'x'}).status_code == 403

    def test_unknown_section(self, owner_client):
        assert owner_client.post('/sections/footer/edit-mode').status_code == 404


class TestHeroEditing:

    def test_hero_tagline(self, app, owner_client):
        owner_client.post('/sections/hero/edit-mode')
        owner_client.post('/hero/fields/tagline', data={'value': 'Spaces that feel like you.'})
        with app.app_context():
            assert PortfolioDataService.load_all_data()['text_hero_tagline'] == 'Spaces that feel like you.'


class TestEducationEditing:

    def test_update_entry(self, app, owner_client):
        with app.app_context():
            entry_id = Education.query.order_by(Education.order_index).first().id
        assert owner_client.post(f'/education/{entry_id}/fields/degree',
                                 data={'value': 'MA'}).status_code == 409
        owner_client.post('/sections/education/edit-mode')
        owner_client.post(f'/education/{entry_id}/fields/degree', data={'value': 'Master of Arts'})
        with app.app_context():
            assert db.session.get(Education, entry_id).degree == 'Master of Arts'

    def test_add_and_remove(self, app, owner_client):
        owner_client.post('/sections/education/edit-mode')
        owner_client.post('/education')
        with app.app_context():
            assert Education.query.count() == 3
            new_id = Education.query.order_by(Education.order_index.desc()).first().id
        owner_client.post(f'/education/{new_id}/delete')
        with app.app_context():
            assert Education.query.count() == 2

    def test_missing_entry(self, owner_client):
        owner_client.post('/sections/education/edit-mode')
        assert owner_client.post('/education/999/fields/degree', data={'value': 'x'}).status_code == 404


class TestProjectEditing:

    def test_edit_mode_is_per_project(self, app, owner_client):
        pid = first_project_id(app)
        owner_client.post(f'/projects/{pid}/edit-mode')
        with owner_client.session_transaction() as sess:
            assert sess['edit_mode'] == {f'project:{pid}': True}
        assert owner_client.post(f'/projects/{pid + 1}/fields/title',
                                 data={'value': 'x'}).status_code == 409

    def test_save_fields(self, app, owner_client):
        pid = first_project_id(app)
        owner_client.post(f'/projects/{pid}/edit-mode')
        owner_client.post(f'/projects/{pid}/fields/client', data={'value': 'The Pandeys'})
        owner_client.post(f'/projects/{pid}/fields/category', data={'value': 'Hospitality'})
        with app.app_context():
            project = db.session.get(Project, pid)
            assert project.client == 'The Pandeys'
            assert project.category == 'Hospitality'

    def test_bad_category_is_flashed(self, app, owner_client):
        pid = first_project_id(app)
        owner_client.post(f'/projects/{pid}/edit-mode')
        resp = owner_client.post(f'/projects/{pid}/fields/category', data={'value': 'Industrial'})
        assert resp.status_code == 302
        with app.app_context():
            assert db.session.get(Project, pid).category == 'Residential'
        assert b'Unknown category' in owner_client.get('/').data

    def test_add_project_opens_edit_mode(self, app, owner_client):
        resp = owner_client.post('/projects')
        assert resp.status_code == 302
        with app.app_context():
            project = ProjectsService.load_all_projects()[-1]
            assert project.title == 'New Project'
        with owner_client.session_transaction() as sess:
            assert sess['edit_mode'].get(f'project:{project.id}') is True

    def test_delete_project(self, app, owner_client):
        pid = first_project_id(app)
        owner_client.post(f'/projects/{pid}/delete')
        assert b'6 Featured Projects' in owner_client.get('/').data
        assert owner_client.post(f'/projects/{pid}/edit-mode').status_code == 404

    def test_upload_and_remove_images(self, app, owner_client):
        pid = first_project_id(app)
        resp = owner_client.post(
            f'/projects/{pid}/images',
            data={'category': 'floorPlans', 'description': 'Ground floor',
                  'file': [(io.BytesIO(b'one'), 'a.png'), (io.BytesIO(b'two'), 'b.jpg')]},
            content_type='multipart/form-data')
        assert resp.status_code == 302
        assert 'tab=floorPlans' in resp.headers['Location']
        with app.app_context():
            project = ProjectsService.get(pid)
            images = project.gallery['floorPlans']
            assert len(images) == 2
            image_id = images[0].id
        page = owner_client.get(f'/?expand={pid}&tab=floorPlans')
        assert b'2 images total' in page.data
        assert b'Ground floor' in page.data

        owner_client.post(f'/projects/{pid}/images/{image_id}/delete', data={'tab': 'floorPlans'})
        with app.app_context():
            assert ProjectsService.total_image_count(ProjectsService.get(pid)) == 1

    def test_upload_rejects_bad_type(self, app, owner_client):
        pid = first_project_id(app)
        owner_client.post(f'/projects/{pid}/images',
                          data={'category': 'twoD', 'file': (io.BytesIO(b'x'), 'notes.txt')},
                          content_type='multipart/form-data')
        with app.app_context():
            assert ProjectsService.total_image_count(ProjectsService.get(pid)) == 0

    def test_mixed_batch_stores_nothing(self, app, owner_client):
        pid = first_project_id(app)
        resp = owner_client.post(f'/projects/{pid}/images',
                                 data={'category': 'twoD',
                                       'file': [(io.BytesIO(b'a'), 'plan.png'),
                                                (io.BytesIO(b'b'), 'notes.txt')]},
                                 content_type='multipart/form-data')
        assert resp.status_code == 302
        with app.app_context():
            assert ProjectsService.total_image_count(ProjectsService.get(pid)) == 0
        assert os.listdir(app.config['UPLOAD_FOLDER']) == []
        assert b'Unsupported image type: notes.txt' in owner_client.get(f'/?expand={pid}').data

    def test_upload_bad_category(self, app, owner_client):
        pid = first_project_id(app)
        resp = owner_client.post(f'/projects/{pid}/images',
                                 data={'category': 'side', 'file': (io.BytesIO(b'x'), 'a.png')},
                                 content_type='multipart/form-data')
        assert resp.status_code == 400
