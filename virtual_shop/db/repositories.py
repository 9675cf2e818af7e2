"""Per-entity data access.

Repositories hide the SQL behind ``get/list/create/update/delete`` and raise
the error kinds from :mod:`virtual_shop.core.errors` instead of leaking driver
exceptions to the routers.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, null, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from virtual_shop.core.errors import ForeignKeyViolation, InUse, NotFound, ValidationFailed
from virtual_shop.db import assembly
from virtual_shop.db.models import (
    ArtStory, Placement, PlacementImage, Product, Scene, Space, Theme,
)
from virtual_shop.services.urls import StorageUrls

logger = logging.getLogger(__name__)

# foreign key field -> (referenced model, name used in error messages)
REFERENCES = {
    'theme_id': (Theme, 'theme'),
    'scene_id': (Scene, 'scene'),
    'space_id': (Space, 'space'),
    'art_story_id': (ArtStory, 'art story'),
    'placement_id': (Placement, 'placement'),
    'product_id': (Product, 'product'),
}


def _missing_column(exc: DBAPIError, column: str) -> bool:
    message = str(exc.orig)
    if column not in message:
        return False
    # 42703 is undefined_column on Postgres
    return getattr(exc.orig, 'sqlstate', None) == '42703' or 'no such column' in message


class Repository:
    model: Any = None
    label = 'Record'

    def __init__(self, db: Session):
        self.db = db

    def get(self, obj_id: int):
        obj = self.db.get(self.model, obj_id)
        if obj is None:
            raise NotFound(f'{self.label} not found')
        return obj

    def create(self, values: Dict[str, Any]):
        obj = self.model(**values)
        self.db.add(obj)
        self._commit(values)
        self.db.refresh(obj)
        return obj

    def update(self, obj_id: int, changes: Dict[str, Any]):
        if not changes:
            raise ValidationFailed('No fields to update')
        obj = self.get(obj_id)
        for k, v in changes.items(): setattr(obj, k, v)
        self.db.add(obj)
        self._commit(changes)
        self.db.refresh(obj)
        return obj

    def delete(self, obj_id: int) -> Tuple[Dict[str, Any], List[str]]:
        """Delete the row; returns a summary of it and the object keys it referenced."""
        obj = self.get(obj_id)
        summary = {'id': obj.id, 'name': self._display_name(obj)}
        keys = list(self._object_keys(obj))
        self.db.delete(obj)
        self.db.commit()
        return summary, keys

    def _display_name(self, obj) -> Optional[str]:
        return getattr(obj, 'name', None)

    def _object_keys(self, obj) -> Iterable[Optional[str]]:
        return [obj.image_key]

    def _commit(self, values: Dict[str, Any]) -> None:
        """Commit, turning a foreign key failure into ForeignKeyViolation.

        The offending field is found by probing each reference that was
        supplied in ``values``.
        """
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            for field, value in values.items():
                if field not in REFERENCES or value is None:
                    continue
                model, entity = REFERENCES[field]
                if self.db.get(model, value) is None:
                    raise ForeignKeyViolation(field, entity) from exc
            raise


class ThemeRepository(Repository):
    model = Theme
    label = 'Theme'

    def list(self, theme_type=None) -> List[Theme]:
        stmt = select(Theme)
        if theme_type is not None: stmt = stmt.where(Theme.theme_type == theme_type)
        stmt = stmt.order_by(Theme.created_at.desc(), Theme.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def scene_count(self, theme_id: int) -> int:
        return self.db.execute(select(func.count(Scene.id)).where(Scene.theme_id == theme_id)).scalar_one()

    def delete(self, obj_id: int):
        theme = self.get(obj_id)
        used_by = self.scene_count(obj_id)
        if used_by > 0:
            raise InUse(
                f'Cannot delete theme "{theme.name}". It is being used by {used_by} scene(s).',
                details={'usedByScenes': used_by},
            )
        return super().delete(obj_id)


class SceneRepository(Repository):
    model = Scene
    label = 'Scene'

    def list(self, theme_id=None, scene_type=None) -> List[Scene]:
        stmt = select(Scene)
        if theme_id is not None: stmt = stmt.where(Scene.theme_id == theme_id)
        if scene_type is not None: stmt = stmt.where(Scene.type == scene_type)
        return list(self.db.execute(stmt.order_by(Scene.created_at.desc(), Scene.id.desc())).scalars().all())

    def _object_keys(self, scene: Scene):
        keys = [scene.image_key]
        keys += self.db.execute(select(Space.image_key).where(Space.scene_id == scene.id)).scalars().all()
        keys += self.db.execute(
            select(PlacementImage.image_key)
            .join(Placement, PlacementImage.placement_id == Placement.id)
            .join(Space, Placement.space_id == Space.id)
            .where(Space.scene_id == scene.id)
        ).scalars().all()
        return keys

    def _tree_query(self, scene_id: int, with_art_stories: bool = True):
        columns = [
            Scene.id.label('scene_id'),
            Scene.name.label('scene_name'),
            Scene.type.label('scene_type'),
            Scene.image_key.label('scene_image'),
            Scene.created_at.label('scene_created_at'),
            Scene.updated_at.label('scene_updated_at'),
            Theme.id.label('theme_id'),
            Theme.theme_type,
            Theme.name.label('theme_name'),
            Theme.slug.label('theme_slug'),
            Theme.image_key.label('theme_image'),
            Theme.metadata_.label('theme_metadata'),
            Space.id.label('space_id'),
            Space.name.label('space_name'),
            Space.image_key.label('space_image'),
            Space.created_at.label('space_created_at'),
            Space.updated_at.label('space_updated_at'),
            Placement.id.label('placement_id'),
            Placement.name.label('placement_name'),
            Placement.created_at.label('placement_created_at'),
            Placement.updated_at.label('placement_updated_at'),
        ]
        columns += _art_story_columns(with_art_stories) + _image_columns()
        stmt = (
            select(*columns)
            .select_from(Scene)
            .outerjoin(Theme, Scene.theme_id == Theme.id)
            .outerjoin(Space, Space.scene_id == Scene.id)
            .outerjoin(Placement, Placement.space_id == Space.id)
        )
        if with_art_stories:
            stmt = stmt.outerjoin(ArtStory, Placement.art_story_id == ArtStory.id)
        stmt = (
            stmt.outerjoin(PlacementImage, PlacementImage.placement_id == Placement.id)
            .outerjoin(Product, PlacementImage.product_id == Product.id)
            .where(Scene.id == scene_id)
            .order_by(Space.id, Placement.id, PlacementImage.id)
        )
        return stmt

    def tree_rows(self, scene_id: int):
        return _rows_with_art_stories(self.db, lambda with_art_stories: self._tree_query(scene_id, with_art_stories), f'scene {scene_id}')

    def get_tree(self, scene_id: int, urls: StorageUrls) -> Dict[str, Any]:
        tree = assembly.assemble_scene(self.tree_rows(scene_id), urls)
        if tree is None:
            raise NotFound('Scene not found')
        return tree


def _art_story_columns(with_art_stories: bool):
    if with_art_stories:
        return [Placement.art_story_id.label('art_story_id'), ArtStory.title.label('art_story_title')]
    return [null().label('art_story_id'), null().label('art_story_title')]


def _rows_with_art_stories(db: Session, build, what: str):
    """Run ``build(True)``; on databases that predate placements.art_story_id
    roll back and run ``build(False)`` instead."""
    try:
        return db.execute(build(True)).mappings().all()
    except DBAPIError as exc:
        if not _missing_column(exc, 'art_story_id'):
            raise
        db.rollback()
        logger.warning('placements.art_story_id is missing; loading %s without art stories', what)
        return db.execute(build(False)).mappings().all()


def _image_columns():
    return [
        PlacementImage.id.label('placement_image_id'),
        PlacementImage.name.label('placement_image_name'),
        PlacementImage.image_key.label('placement_image'),
        PlacementImage.is_visible,
        PlacementImage.anchor_position,
        PlacementImage.position,
        PlacementImage.created_at.label('placement_image_created_at'),
        PlacementImage.updated_at.label('placement_image_updated_at'),
        Product.id.label('product_id'),
        Product.name.label('product_name'),
        Product.original_price,
        Product.discount_percentage,
        Product.image_key.label('product_image'),
        Product.created_at.label('product_created_at'),
        Product.updated_at.label('product_updated_at'),
    ]


class SpaceRepository(Repository):
    model = Space
    label = 'Space'

    def list(self, scene_id=None) -> List[Space]:
        stmt = select(Space)
        if scene_id is not None: stmt = stmt.where(Space.scene_id == scene_id)
        return list(self.db.execute(stmt.order_by(Space.created_at.desc(), Space.id.desc())).scalars().all())

    def _object_keys(self, space: Space):
        keys = [space.image_key]
        keys += self.db.execute(
            select(PlacementImage.image_key)
            .join(Placement, PlacementImage.placement_id == Placement.id)
            .where(Placement.space_id == space.id)
        ).scalars().all()
        return keys

    def _tree_query(self, space_id: int, with_art_stories: bool = True):
        stmt = (
            select(
                Space.id.label('space_id'),
                Space.name.label('space_name'),
                Space.image_key.label('space_image'),
                Space.created_at.label('space_created_at'),
                Space.updated_at.label('space_updated_at'),
                Scene.id.label('scene_id'),
                Scene.image_key.label('scene_image'),
                Placement.id.label('placement_id'),
                Placement.name.label('placement_name'),
                Placement.created_at.label('placement_created_at'),
                Placement.updated_at.label('placement_updated_at'),
                *_art_story_columns(with_art_stories),
                *_image_columns(),
            )
            .select_from(Space)
            .outerjoin(Scene, Space.scene_id == Scene.id)
            .outerjoin(Placement, Placement.space_id == Space.id)
        )
        if with_art_stories:
            stmt = stmt.outerjoin(ArtStory, Placement.art_story_id == ArtStory.id)
        return (
            stmt.outerjoin(PlacementImage, PlacementImage.placement_id == Placement.id)
            .outerjoin(Product, PlacementImage.product_id == Product.id)
            .where(Space.id == space_id)
            .order_by(Placement.id, PlacementImage.id)
        )

    def get_tree(self, space_id: int, urls: StorageUrls) -> Dict[str, Any]:
        rows = _rows_with_art_stories(self.db, lambda with_art_stories: self._tree_query(space_id, with_art_stories), f'space {space_id}')
        tree = assembly.assemble_space(rows, urls)
        if tree is None:
            raise NotFound('Space not found')
        return tree


class PlacementRepository(Repository):
    model = Placement
    label = 'Placement'

    def list(self, space_id=None) -> List[Tuple[Placement, Optional[str]]]:
        stmt = select(Placement, ArtStory.title).outerjoin(ArtStory, Placement.art_story_id == ArtStory.id)
        if space_id is not None: stmt = stmt.where(Placement.space_id == space_id)
        stmt = stmt.order_by(Placement.created_at.desc(), Placement.id.desc())
        return [(p, title) for p, title in self.db.execute(stmt).all()]

    def _object_keys(self, placement: Placement):
        return self.db.execute(
            select(PlacementImage.image_key).where(PlacementImage.placement_id == placement.id)
        ).scalars().all()


class PlacementImageRepository(Repository):
    model = PlacementImage
    label = 'Placement image'

    def list(self, placement_id=None) -> List[PlacementImage]:
        stmt = select(PlacementImage)
        if placement_id is not None: stmt = stmt.where(PlacementImage.placement_id == placement_id)
        return list(self.db.execute(stmt.order_by(PlacementImage.created_at.desc(), PlacementImage.id.desc())).scalars().all())

    def _clear_visible(self, placement_id: int) -> None:
        self.db.execute(
            update(PlacementImage)
            .where(PlacementImage.placement_id == placement_id)
            .values(is_visible=False)
            .execution_options(synchronize_session=False)
        )

    def create(self, values: Dict[str, Any]) -> PlacementImage:
        if values.get('is_visible'):
            self._clear_visible(values['placement_id'])
        return super().create(values)

    def update(self, obj_id: int, changes: Dict[str, Any]) -> PlacementImage:
        if changes.get('is_visible'):
            image = self.get(obj_id)
            self._clear_visible(image.placement_id)
            # the bulk UPDATE bypassed the session; expire so setting the flag is flushed
            self.db.expire(image, ['is_visible'])
        return super().update(obj_id, changes)

    def set_active(self, placement_id: int, image_id: int) -> PlacementImage:
        """Make ``image_id`` the only visible image of ``placement_id``.

        Everything under the placement is hidden first and the chosen image is
        shown second, in one transaction. If the image is missing or belongs to
        another placement the transaction is rolled back and NotFound is raised.
        """
        try:
            self._clear_visible(placement_id)
            result = self.db.execute(
                update(PlacementImage)
                .where(PlacementImage.id == image_id, PlacementImage.placement_id == placement_id)
                .values(is_visible=True, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                raise NotFound('Placement image not found or does not belong to the specified placement')
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        image = self.get(image_id)
        self.db.refresh(image)
        return image


class ProductRepository(Repository):
    model = Product
    label = 'Product'

    def list(self) -> List[Product]:
        return list(self.db.execute(select(Product).order_by(Product.created_at.desc(), Product.id.desc())).scalars().all())


class ArtStoryRepository(Repository):
    model = ArtStory
    label = 'Art story'

    def list(self) -> List[ArtStory]:
        return list(self.db.execute(select(ArtStory).order_by(ArtStory.id.desc())).scalars().all())

    def _display_name(self, story: ArtStory):
        return story.title

    def _object_keys(self, story: ArtStory):
        keys = [story.image_key]
        for item in story.stories or []:
            media = item.get('media') if isinstance(item, dict) else None
            if isinstance(media, dict):
                keys.append(media.get('s3Key'))
        return keys

