from virtual_shop.services.storage import PUBLIC_READ


def test_scene_background_upload(client, fake_minio, urls):
    res = client.post(
        '/api/uploads/scene-background',
        files={'file': ('hall view.png', b'\x89PNG', 'image/png')},
        data={'sceneId': '4'},
    )
    assert res.status_code == 201, res.text
    data = res.json()['data']
    assert data['key'].startswith('scenes/4/backgrounds/')
    assert data['key'].endswith('-hall_view.png')
    assert data['url'] == urls.key_to_url(data['key'])
    assert (data['filename'], data['size'], data['type']) == ('hall view.png', 4, 'image/png')
    assert fake_minio.objects[data['key']]['metadata'] == PUBLIC_READ


def test_svg_allowed_for_theme_but_not_products(client, fake_minio):
    svg = ('icon.svg', b'<svg/>', 'image/svg+xml')
    assert client.post('/api/uploads/theme-image', files={'file': svg}).status_code == 201
    res = client.post('/api/uploads/product-image', files={'file': svg})
    assert res.status_code == 400
    assert res.json()['error'].startswith('Invalid file type')
    assert len(fake_minio.objects) == 1


def test_oversized_video_is_rejected_before_storage(client, fake_minio):
    res = client.post(
        '/api/art-stories/upload-media',
        files={'file': ('clip.mp4', b'\0' * (60 * 1024 * 1024), 'video/mp4')},
        data={'storyId': '3', 'itemId': 'item-1'},
    )
    assert res.status_code == 400
    assert res.json()['error'] == 'File too large. Maximum size is 50MB.'
    assert fake_minio.objects == {}


def test_story_media_goes_to_kind_folder(client):
    res = client.post(
        '/api/art-stories/upload-media',
        files={'file': ('clip.webm', b'video', 'video/webm')},
        data={'storyId': '3', 'itemId': 'item 1'},
    )
    assert res.status_code == 201
    assert res.json()['data']['key'].startswith('art-stories/3/videos/item_1/')


def test_placement_upload_requires_ids(client):
    res = client.post('/api/uploads/placement-image', files={'file': ('a.png', b'x', 'image/png')}, data={'sceneId': '1'})
    assert res.status_code == 400
    assert 'placementId' in res.json()['error']


def test_delete_object(client, fake_minio):
    res = client.delete('/api/uploads', params={'key': 'products/1-a.png'})
    assert res.status_code == 200
    assert fake_minio.removed == ['products/1-a.png']
    assert client.delete('/api/uploads').status_code == 400


def put_objects(storage, *keys):
    for key in keys:
        storage.put(key, b'data', 'image/png')


def test_list_assets_by_prefix_with_paging(client, storage, urls):
    put_objects(storage, 'scenes/1/backgrounds/a.png', 'scenes/1/backgrounds/b.png', 'scenes/1/backgrounds/c.png', 'themes/t.svg')

    res = client.get('/api/uploads/assets', params={'prefix': 'scenes/1/', 'maxKeys': 2})
    assert res.status_code == 200
    page = res.json()['data']
    assert [a['key'] for a in page['assets']] == ['scenes/1/backgrounds/a.png', 'scenes/1/backgrounds/b.png']
    assert page['isTruncated'] is True
    assert page['totalCount'] == 2
    first = page['assets'][0]
    assert first['url'] == urls.key_to_url('scenes/1/backgrounds/a.png')
    assert (first['filename'], first['type'], first['size']) == ('a.png', 'image/png', 4)
    assert first['placement'] == 'scenes/1/backgrounds'
    assert first['lastModified'].startswith('2026-01-01')

    res = client.get('/api/uploads/assets', params={'prefix': 'scenes/1/', 'maxKeys': 2, 'continuationToken': page['nextContinuationToken']})
    page = res.json()['data']
    assert [a['key'] for a in page['assets']] == ['scenes/1/backgrounds/c.png']
    assert page['isTruncated'] is False
    assert page['nextContinuationToken'] is None


def test_batch_delete_reports_failures(client, storage, fake_minio):
    put_objects(storage, 'a.png', 'b.png', 'locked.png')
    fake_minio.fail_on.add('locked.png')

    res = client.post('/api/uploads/batch', json={'action': 'delete', 'keys': ['a.png', 'b.png', 'locked.png']})
    assert res.status_code == 200
    data = res.json()['data']
    assert (data['totalProcessed'], data['totalDeleted']) == (3, 2)
    assert data['errors'] == [{'key': 'locked.png', 'error': 'Access Denied'}]
    assert set(fake_minio.objects) == {'locked.png'}


def test_batch_copy_to_prefix(client, storage, fake_minio, urls):
    put_objects(storage, 'products/1-lamp.png')

    res = client.post('/api/uploads/batch', json={'action': 'copy', 'keys': ['products/1-lamp.png', 'missing.png'], 'targetPrefix': 'themes/'})
    assert res.status_code == 200
    data = res.json()['data']
    assert (data['totalProcessed'], data['totalCopied']) == (2, 1)
    (copied,) = data['copied']
    assert copied['originalKey'] == 'products/1-lamp.png'
    assert copied['newKey'].startswith('themes/') and copied['newKey'].endswith('-1-lamp.png')
    assert copied['url'] == urls.key_to_url(copied['newKey'])
    assert fake_minio.objects[copied['newKey']]['metadata'] == PUBLIC_READ
    assert [e['key'] for e in data['errors']] == ['missing.png']


def test_batch_rejects_bad_requests(client):
    res = client.post('/api/uploads/batch', json={'action': 'copy', 'keys': ['a.png']})
    assert res.status_code == 400
    assert res.json()['error'] == 'Target prefix required for copy operation'
    assert client.post('/api/uploads/batch', json={'action': 'move', 'keys': ['a.png']}).status_code == 400
    assert client.post('/api/uploads/batch', json={'action': 'delete', 'keys': []}).status_code == 400
