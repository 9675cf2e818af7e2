import pytest

from virtual_shop.core.errors import ObjectStoreFailure
from virtual_shop.services.storage import ObjectStore, PUBLIC_READ
from fakes import FakeMinio


def test_put_creates_bucket_and_marks_public(storage, fake_minio):
    assert storage.put('products/1-a.png', b'abc', 'image/png') == 'products/1-a.png'
    assert 'o1-virtual-shop' in fake_minio.buckets
    stored = fake_minio.objects['products/1-a.png']
    assert stored['data'] == b'abc'
    assert stored['metadata'] == PUBLIC_READ


def test_delete_many_settles_every_key():
    client = FakeMinio(fail_on={'b'})
    store = ObjectStore(client, 'bucket')
    failed = store.delete_many(['a', 'b', 'c', 'a', None])
    assert failed == ['b']
    assert sorted(client.removed) == ['a', 'c']


def test_delete_many_with_nothing_to_do(storage):
    assert storage.delete_many([]) == []


def test_delete_wraps_client_errors():
    store = ObjectStore(FakeMinio(fail_on={'x'}), 'bucket')
    with pytest.raises(ObjectStoreFailure) as exc:
        store.delete('x')
    assert 'cannot remove x' in exc.value.details['reason']


def test_list_stops_after_max_keys(storage):
    for key in ('a', 'b', 'c'):
        storage.put(key, b'x', 'image/png')
    objects, more = storage.list('', max_keys=2)
    assert [o.object_name for o in objects] == ['a', 'b']
    assert more
    objects, more = storage.list('', max_keys=2, start_after='b')
    assert [o.object_name for o in objects] == ['c']
    assert not more


def test_copy_wraps_client_errors(storage):
    with pytest.raises(ObjectStoreFailure, match='Failed to copy object'):
        storage.copy('missing', 'elsewhere')
