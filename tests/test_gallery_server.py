"""Tests for the gallery site HTTP routes."""
import pytest
from fastapi.testclient import TestClient

from gallery_core.config import Settings
from gallery_core.exceptions import StatsPersistenceError
from gallery_server import create_app


@pytest.fixture
def settings(site_root):
    return Settings(root=site_root)


@pytest.fixture
def client(settings):
    app = create_app(settings, start_scheduler=False)
    with TestClient(app) as c:
        yield c


def counts(client):
    return client.app.state.hit_counter.counts()


class TestPages:
    """Test page rendering and hit counting."""

    def test_index_counts_and_lists_galleries(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert '/gallery/landscapes' in response.text
        assert '/galleries/portraits/preview.jpg' in response.text
        assert 'About this site.' in response.text
        assert counts(client) == {'index': 1, 'total': 1}

    def test_gallery_page(self, client):
        response = client.get('/gallery/landscapes')
        assert response.status_code == 200
        assert '/galleries/landscapes/a.jpg' in response.text
        assert 'preview.jpg' not in response.text
        assert '<p>Hills and valleys.</p>' in response.text
        assert counts(client) == {'landscapes': 1, 'total': 1}

    def test_trailing_slash_counts_same_gallery(self, client):
        client.get('/gallery/landscapes')
        client.get('/gallery/landscapes/')
        assert counts(client)['landscapes'] == 2

    @pytest.mark.parametrize('path', ['/gallery/nope', '/gallery/', '/gallery/stray.jpg'])
    def test_invalid_gallery_redirects_without_counting(self, client, path):
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers['location'] == '/'
        assert counts(client) == {}

    def test_gallery_linked_outside_root_redirects(self, client, settings):
        outside = settings.root / 'elsewhere'
        outside.mkdir()
        (outside / 'secret.jpg').write_bytes(b'jpeg')
        (settings.galleries_root / 'linked').symlink_to(outside, target_is_directory=True)

        response = client.get('/gallery/linked', follow_redirects=False)
        assert response.status_code == 302
        assert counts(client) == {}

    def test_bio_counts(self, client):
        response = client.get('/bio')
        assert response.status_code == 200
        assert 'Photographer bio.' in response.text
        assert counts(client) == {'bio': 1, 'total': 1}

    def test_stats_does_not_count(self, client):
        client.get('/')
        client.get('/gallery/portraits')
        response = client.get('/stats')
        assert response.status_code == 200
        assert '<td>portraits</td><td>1</td>' in response.text
        assert counts(client) == {'index': 1, 'portraits': 1, 'total': 2}

    def test_every_view_is_persisted(self, client, settings):
        client.get('/')
        assert settings.stats_path.read_text().splitlines() == ['index,1', 'total,1']

    def test_favicon_not_found(self, client):
        assert client.get('/favicon.ico').status_code == 404


class TestStatsEndpoints:
    """Test the stats log and JSON endpoints."""

    def test_stats_log_missing(self, client):
        assert client.get('/stats-log').status_code == 404

    def test_stats_log_served_after_tick(self, client):
        client.get('/')
        client.app.state.stats_log.tick()
        response = client.get('/stats-log')
        assert response.status_code == 200
        assert response.headers['content-type'].startswith('text/csv')
        assert response.text.splitlines()[0] == 'Date,index,total'

    def test_api_stats(self, client):
        client.get('/gallery/landscapes')
        client.get('/gallery/landscapes')
        client.get('/')
        assert client.get('/api/stats').json() == {'pages': [
            {'page': 'total', 'hit_count': 3},
            {'page': 'landscapes', 'hit_count': 2},
            {'page': 'index', 'hit_count': 1},
        ]}

    def test_health_degraded_without_scheduler(self, client):
        body = client.get('/api/health').json()
        assert body['status'] == 'degraded'
        assert body['galleries_root_exists'] is True
        assert body['scheduler_running'] is False


class TestStaticFiles:
    """Test static asset mounts."""

    def test_gallery_image(self, client):
        response = client.get('/galleries/landscapes/a.jpg')
        assert response.status_code == 200
        assert response.content == b'jpeg'

    def test_css(self, client):
        assert client.get('/css/site.css').text == 'body { margin: 0; }'

    def test_missing_static_dir_is_not_mounted(self, site_root):
        (site_root / 'js').rmdir()
        app = create_app(Settings(root=site_root), start_scheduler=False)
        with TestClient(app) as c:
            assert c.get('/js/site.js').status_code == 404


class TestLifecycle:
    """Test startup restore, scheduling and shutdown save."""

    def test_startup_restores_counts(self, settings):
        settings.stats_path.write_text('index,4\ntotal,4\n')
        app = create_app(settings, start_scheduler=False)
        with TestClient(app) as c:
            c.get('/')
            assert counts(c) == {'index': 5, 'total': 5}

    def test_malformed_snapshot_fails_startup(self, settings):
        settings.stats_path.write_text('index,abc\n')
        app = create_app(settings, start_scheduler=False)
        with pytest.raises(StatsPersistenceError):
            with TestClient(app):
                pass

    def test_scheduler_runs_and_stops(self, settings):
        app = create_app(settings)
        with TestClient(app) as c:
            assert c.get('/api/health').json() == {
                'status': 'healthy',
                'galleries_root_exists': True,
                'stats_exists': False,
                'stats_log_exists': False,
                'scheduler_running': True,
            }
            job = app.state.scheduler.get_job('stats_log_update')
            assert job is not None
        assert app.state.scheduler is None

    def test_shutdown_saves_counts(self, settings):
        app = create_app(settings, start_scheduler=False)
        with TestClient(app):
            pass
        assert settings.stats_path.exists()
