import logging, mimetypes
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from typing import Callable, Optional, Sequence
from virtual_shop.api.deps import get_storage, get_urls
from virtual_shop.core.errors import ObjectStoreFailure, UploadRejected, ValidationFailed
from virtual_shop.schemas import BatchAssets
from virtual_shop.services import uploads
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

logger = logging.getLogger(__name__)

router = APIRouter()

async def store_upload(file: UploadFile, classes: Sequence[uploads.MediaClass], make_key: Callable[[uploads.MediaClass, str], str], storage: ObjectStore, urls: StorageUrls) -> dict:
    """Validate type and size, then write the object; nothing is stored on rejection."""
    if file is None or not file.filename:
        raise UploadRejected('No file provided')
    content = await file.read()
    media = uploads.check_upload(file.content_type, len(content), classes)
    key = storage.put(make_key(media, file.filename), content, file.content_type)
    return {'key': key, 'url': urls.key_to_url(key), 'filename': file.filename, 'size': len(content), 'type': file.content_type, 'mediaType': media.kind}

def _ok(data):
    return {'success': True, 'data': data}

@router.post('/scene-background', status_code=201)
async def upload_scene_background(file: UploadFile = File(...), sceneId: int = Form(...), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    return _ok(await store_upload(file, [uploads.IMAGE], lambda m, name: uploads.scene_background_key(sceneId, name), storage, urls))

@router.post('/space-image', status_code=201)
async def upload_space_image(file: UploadFile = File(...), spaceId: int = Form(...), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    return _ok(await store_upload(file, [uploads.LARGE_ICON], lambda m, name: uploads.space_image_key(spaceId, name), storage, urls))

@router.post('/placement-image', status_code=201)
async def upload_placement_image(file: UploadFile = File(...), sceneId: int = Form(...), placementId: int = Form(...), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    return _ok(await store_upload(file, [uploads.IMAGE], lambda m, name: uploads.placement_image_key(sceneId, placementId, name), storage, urls))

@router.post('/product-image', status_code=201)
async def upload_product_image(file: UploadFile = File(...), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    return _ok(await store_upload(file, [uploads.IMAGE], lambda m, name: uploads.product_image_key(name), storage, urls))

@router.post('/theme-image', status_code=201)
async def upload_theme_image(file: UploadFile = File(...), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    return _ok(await store_upload(file, [uploads.ICON], lambda m, name: uploads.theme_image_key(name), storage, urls))

@router.post('/art-story-image', status_code=201)
async def upload_art_story_image(file: UploadFile = File(...), storyId: int = Form(...), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    return _ok(await store_upload(file, [uploads.ICON], lambda m, name: uploads.art_story_icon_key(storyId, name), storage, urls))

@router.delete('')
def delete_object(key: str = Query(..., min_length=1), storage: ObjectStore = Depends(get_storage)):
    storage.delete(key)
    return {'success': True, 'message': 'Image deleted successfully', 'data': {'key': key}}

def _asset(obj, urls: StorageUrls) -> dict:
    key = obj.object_name
    return {
        'key': key,
        'size': obj.size,
        'lastModified': obj.last_modified,
        'url': urls.key_to_url(key),
        'filename': key.rsplit('/', 1)[-1],
        'type': mimetypes.guess_type(key)[0] or 'unknown',
        'placement': key.rsplit('/', 1)[0] if '/' in key else '',
    }

@router.get('/assets')
def list_assets(prefix: str = '', maxKeys: int = Query(100, ge=1, le=1000), continuationToken: Optional[str] = None, storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    objects, truncated = storage.list(prefix, maxKeys, continuationToken)
    assets = [_asset(o, urls) for o in objects]
    return {'success': True, 'data': {
        'assets': assets,
        'totalCount': len(assets),
        'isTruncated': truncated,
        # next page starts after the last key returned
        'nextContinuationToken': assets[-1]['key'] if truncated else None,
    }}

@router.post('/batch')
def batch_assets(payload: BatchAssets, storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    if payload.action == 'delete':
        errors = storage.remove_many(payload.keys)
        return {'success': True, 'data': {'totalProcessed': len(payload.keys), 'totalDeleted': len(payload.keys) - len(errors), 'errors': errors}}

    prefix = (payload.targetPrefix or '').strip().strip('/')
    if not prefix:
        raise ValidationFailed('Target prefix required for copy operation')
    copied, errors = [], []
    for key in payload.keys:
        target = f"{prefix}/{uploads.timestamped(key.rsplit('/', 1)[-1])}"
        try:
            storage.copy(key, target)
        except ObjectStoreFailure as exc:
            logger.warning('Could not copy %s: %s', key, exc.details)
            errors.append({'key': key, 'error': exc.details['reason']})
            continue
        copied.append({'originalKey': key, 'newKey': target, 'url': urls.key_to_url(target)})
    return {'success': True, 'data': {'totalProcessed': len(payload.keys), 'totalCopied': len(copied), 'copied': copied, 'errors': errors}}
