def test_unknown_scene_is_rejected(client):
    res = client.post('/api/spaces', json={'scene_id': 999, 'name': 'Shelf'})
    assert res.status_code == 400
    assert res.json() == {'success': False, 'error': 'Invalid scene_id: scene does not exist'}
    assert client.get('/api/spaces').json()['count'] == 0


def test_space_tree_includes_background(client, urls):
    scene = client.post('/api/scenes', json={'name': 'Hall', 'image_key': 'scenes/1/bg.png'}).json()['data']
    space = client.post('/api/spaces', json={'scene_id': scene['id'], 'name': 'Shelf'}).json()['data']
    client.post('/api/placements', json={'space_id': space['id'], 'name': 'Left'})

    tree = client.get(f"/api/spaces/{space['id']}").json()['data']
    assert tree['scene_id'] == scene['id']
    assert tree['background_image_url'] == urls.key_to_url('scenes/1/bg.png')
    assert [p['name'] for p in tree['placements']] == ['Left']


def test_space_update_and_list(client):
    scene = client.post('/api/scenes', json={'name': 'Hall'}).json()['data']
    space = client.post('/api/spaces', json={'scene_id': scene['id'], 'name': 'Shelf'}).json()['data']
    res = client.put(f"/api/spaces/{space['id']}", json={'name': 'Counter'})
    assert res.status_code == 200
    assert res.json()['data']['name'] == 'Counter'

    body = client.get('/api/spaces', params={'scene_id': scene['id']}).json()
    assert [s['name'] for s in body['data']] == ['Counter']
    assert client.get('/api/spaces', params={'scene_id': scene['id'] + 1}).json()['count'] == 0


def test_missing_space_is_404(client):
    assert client.get('/api/spaces/5').status_code == 404
    assert client.delete('/api/spaces/5').status_code == 404


def test_space_tree_shows_art_story(client):
    story = client.post('/api/art-stories', json={'title': 'Warli'}).json()['data']
    scene = client.post('/api/scenes', json={'name': 'Hall'}).json()['data']
    space = client.post('/api/spaces', json={'scene_id': scene['id'], 'name': 'Shelf'}).json()['data']
    client.post('/api/placements', json={'space_id': space['id'], 'name': 'Left', 'art_story_id': story['id']})
    client.post('/api/placements', json={'space_id': space['id'], 'name': 'Right'})

    placements = client.get(f"/api/spaces/{space['id']}").json()['data']['placements']
    assert [(p['art_story_id'], p['art_story_title']) for p in placements] == [(story['id'], 'Warli'), (None, None)]
