from fastapi.testclient import TestClient
from sqlalchemy import text

from virtual_shop.db.session import Base
from virtual_shop.main import create_app

from fakes import memory_database


def build_scene(client, spaces=(0, 2)):
    """Scene with one space per entry, each holding that many placements with one image each."""
    scene = client.post('/api/scenes', json={'name': 'Hall', 'type': 'home', 'image_key': 'scenes/1/bg.png'}).json()['data']
    for n, count in enumerate(spaces):
        space = client.post('/api/spaces', json={'scene_id': scene['id'], 'name': f'Space {n}', 'image_key': f'spaces/{n}.png'}).json()['data']
        for i in range(count):
            placement = client.post('/api/placements', json={'space_id': space['id'], 'name': f'P{n}.{i}'}).json()['data']
            res = client.post('/api/placement-images', json={'placement_id': placement['id'], 'name': f'Image {n}.{i}', 'image_key': f'images/{n}-{i}.png'})
            assert res.status_code == 201, res.text
    return scene


def test_scene_tree(client, urls):
    scene = build_scene(client)
    res = client.get(f"/api/scenes/{scene['id']}/tree")
    assert res.status_code == 200
    tree = res.json()['data']
    assert tree['image_url'] == urls.key_to_url('scenes/1/bg.png')
    assert [len(s['placements']) for s in tree['spaces']] == [0, 2]
    for placement in tree['spaces'][1]['placements']:
        (image,) = placement['placement_images']
        assert image['position'] == {}
        assert (image['width'], image['height'], image['x'], image['y']) == (100, 100, 0, 0)


def test_scene_tree_not_found(client):
    res = client.get('/api/scenes/42/tree')
    assert res.status_code == 404
    assert res.json()['error'] == 'Scene not found'


def test_scene_filters(client):
    client.post('/api/scenes', json={'name': 'Home', 'type': 'home'})
    client.post('/api/scenes', json={'name': 'Street', 'type': 'street'})
    body = client.get('/api/scenes', params={'type': 'street'}).json()
    assert [s['name'] for s in body['data']] == ['Street']


def test_invalid_theme_reference(client):
    res = client.post('/api/scenes', json={'name': 'Hall', 'theme_id': 77})
    assert res.status_code == 400
    assert res.json()['error'] == 'Invalid theme_id: theme does not exist'


def test_deleting_scene_cascades_and_purges(client, fake_minio):
    scene = build_scene(client, spaces=(1, 1))
    res = client.delete(f"/api/scenes/{scene['id']}")
    assert res.status_code == 200
    assert res.json()['data'] == {'id': scene['id'], 'name': 'Hall'}

    for path in ('/api/spaces', '/api/placements', '/api/placement-images'):
        assert client.get(path).json()['count'] == 0
    assert set(fake_minio.removed) == {
        'scenes/1/bg.png', 'spaces/0.png', 'spaces/1.png', 'images/0-0.png', 'images/1-0.png',
    }


def test_legacy_url_values_are_not_purged(client, fake_minio, urls):
    legacy = urls.key_to_url('scenes/old.png')
    scene = client.post('/api/scenes', json={'name': 'Old', 'image_key': legacy}).json()['data']
    assert scene['image_url'] == legacy
    client.delete(f"/api/scenes/{scene['id']}")
    assert fake_minio.removed == []


def test_tree_without_art_story_column(settings, storage):
    """Databases migrated before art stories existed still serve scene trees."""
    import virtual_shop.db.models  # noqa

    database = memory_database()
    with database.engine.begin() as conn:
        conn.execute(text(
            'CREATE TABLE placements (id INTEGER PRIMARY KEY, '
            'space_id INTEGER NOT NULL REFERENCES spaces(id) ON DELETE CASCADE, name TEXT, '
            'created_at DATETIME DEFAULT CURRENT_TIMESTAMP, updated_at DATETIME DEFAULT CURRENT_TIMESTAMP)'
        ))
    tables = [t for name, t in Base.metadata.tables.items() if name != 'placements']
    Base.metadata.create_all(database.engine, tables=tables)

    app = create_app(settings, database=database, storage=storage)
    with TestClient(app) as client:
        scene = client.post('/api/scenes', json={'name': 'Hall'}).json()['data']
        space = client.post('/api/spaces', json={'scene_id': scene['id'], 'name': 'Shelf'}).json()['data']
        with database.engine.begin() as conn:
            conn.execute(text("INSERT INTO placements (id, space_id, name) VALUES (1, :space, 'Left')"), {'space': space['id']})
        client.post('/api/placement-images', json={'placement_id': 1, 'name': 'Lamp', 'image_key': 'images/lamp.png'})

        res = client.get(f"/api/scenes/{scene['id']}/tree")
        assert res.status_code == 200, res.text
        (placement,) = res.json()['data']['spaces'][0]['placements']
        assert placement['art_story_id'] is None
        assert placement['art_story_title'] is None
        assert len(placement['placement_images']) == 1

        res = client.get(f"/api/spaces/{space['id']}")
        assert res.status_code == 200, res.text
        (placement,) = res.json()['data']['placements']
        assert placement['art_story_id'] is None
