from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from virtual_shop.api.deps import ctx, get_db, get_storage, get_urls, purge
from virtual_shop.db.models import SceneType
from virtual_shop.db.repositories import SceneRepository
from virtual_shop.schemas import SceneCreate, SceneRead, SceneUpdate
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

router = APIRouter()

@router.get('')
def list_scenes(theme_id: Optional[int] = None, type: Optional[SceneType] = None, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    scenes = [SceneRead.model_validate(s, context=ctx(urls)) for s in SceneRepository(db).list(theme_id, type)]
    return {'success': True, 'data': scenes, 'count': len(scenes)}

@router.post('', status_code=201)
def create_scene(payload: SceneCreate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    scene = SceneRepository(db).create(payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': SceneRead.model_validate(scene, context=ctx(urls)), 'message': 'Scene created successfully'}

@router.get('/{scene_id}')
def get_scene(scene_id: int, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    return {'success': True, 'data': SceneRead.model_validate(SceneRepository(db).get(scene_id), context=ctx(urls))}

@router.get('/{scene_id}/tree')
def get_scene_tree(scene_id: int, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    return {'success': True, 'data': SceneRepository(db).get_tree(scene_id, urls)}

@router.put('/{scene_id}')
def update_scene(scene_id: int, payload: SceneUpdate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    scene = SceneRepository(db).update(scene_id, payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': SceneRead.model_validate(scene, context=ctx(urls)), 'message': 'Scene updated successfully'}

@router.delete('/{scene_id}')
def delete_scene(scene_id: int, db: Session = Depends(get_db), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    # spaces, placements and placement images go with it via ON DELETE CASCADE
    summary, keys = SceneRepository(db).delete(scene_id)
    purge(storage, urls, keys)
    return {'success': True, 'data': summary, 'message': f'Scene "{summary["name"]}" deleted successfully'}
