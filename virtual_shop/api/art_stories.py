from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from virtual_shop.api.deps import ctx, get_db, get_storage, get_urls, purge
from virtual_shop.api.uploads import store_upload
from virtual_shop.db.repositories import ArtStoryRepository
from virtual_shop.schemas import ArtStoryCreate, ArtStoryRead, ArtStoryUpdate
from virtual_shop.services import uploads
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

router = APIRouter()

def _values(payload):
    values = payload.model_dump(exclude_unset=True, exclude={'stories'})
    if payload.stories is not None:
        # keep the stored shape: {id, title, description, media: {type, s3Key}}
        values['stories'] = [item.model_dump(exclude_none=True, exclude={'media': {'url'}}) for item in payload.stories]
    return values

@router.get('')
def list_art_stories(db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    stories = [ArtStoryRead.model_validate(s, context=ctx(urls)) for s in ArtStoryRepository(db).list()]
    return {'success': True, 'data': stories, 'count': len(stories)}

@router.post('', status_code=201)
def create_art_story(payload: ArtStoryCreate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    values = _values(payload)
    values.setdefault('stories', [])
    story = ArtStoryRepository(db).create(values)
    return {'success': True, 'data': ArtStoryRead.model_validate(story, context=ctx(urls)), 'message': 'Art story created successfully'}

@router.post('/upload-media', status_code=201)
async def upload_art_story_media(file: UploadFile = File(...), storyId: int = Form(...), itemId: str = Form(...), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    item = uploads.sanitize_filename(itemId)
    data = await store_upload(file, [uploads.IMAGE, uploads.VIDEO], lambda m, name: uploads.art_story_media_key(storyId, item, m, name), storage, urls)
    return {'success': True, 'data': data}

@router.get('/{story_id}')
def get_art_story(story_id: int, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    return {'success': True, 'data': ArtStoryRead.model_validate(ArtStoryRepository(db).get(story_id), context=ctx(urls))}

@router.put('/{story_id}')
def update_art_story(story_id: int, payload: ArtStoryUpdate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    story = ArtStoryRepository(db).update(story_id, _values(payload))
    return {'success': True, 'data': ArtStoryRead.model_validate(story, context=ctx(urls)), 'message': 'Art story updated successfully'}

@router.delete('/{story_id}')
def delete_art_story(story_id: int, db: Session = Depends(get_db), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    summary, keys = ArtStoryRepository(db).delete(story_id)
    purge(storage, urls, keys)
    return {'success': True, 'data': summary, 'message': f'Art story "{summary["name"]}" deleted successfully'}
