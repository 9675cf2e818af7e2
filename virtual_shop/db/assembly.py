"""Folding flat LEFT JOIN rows into nested scene/space trees.

A LEFT JOIN repeats every parent once per child and emits a single
null-filled row for a parent without children. :func:`fold_rows` walks the
rows once, materialising each parent the first time its id is seen and
stopping descent at the first null id.
"""
from collections import namedtuple
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from virtual_shop.services.urls import StorageUrls

Row = Mapping[str, Any]

Level = namedtuple('Level', 'id_column build children')
Level.__doc__ = """One nesting level: the row column holding the node id, a
``build(row) -> dict`` callable, and the key its child list lives under
(None for leaves)."""


def fold_rows(rows: Sequence[Row], levels: Sequence[Level]) -> List[Dict[str, Any]]:
    roots: List[Dict[str, Any]] = []
    seen: Dict[tuple, Dict[str, Any]] = {}
    for row in rows:
        siblings = roots
        path: tuple = ()
        for level in levels:
            node_id = row[level.id_column]
            if node_id is None or siblings is None:
                break
            path += (node_id,)
            node = seen.get(path)
            if node is None:
                node = level.build(row)
                if level.children:
                    node[level.children] = []
                seen[path] = node
                siblings.append(node)
            siblings = node[level.children] if level.children else None
    return roots


def _number(payload: Mapping[str, Any], key: str, default: float):
    value = payload.get(key)
    return default if value is None else value


def _product_node(row: Row, urls: StorageUrls) -> Optional[Dict[str, Any]]:
    if row['product_id'] is None:
        return None
    return {
        'id': row['product_id'],
        'name': row['product_name'],
        'original_price': row['original_price'],
        'discount_percentage': row['discount_percentage'],
        'image_key': row['product_image'],
        'image_url': urls.resolve(row['product_image']),
        'created_at': row['product_created_at'],
        'updated_at': row['product_updated_at'],
    }


def placement_image_node(row: Row, urls: StorageUrls) -> Dict[str, Any]:
    position = row['position'] or {}
    anchor = row['anchor_position'] or {}
    return {
        'id': row['placement_image_id'],
        'name': row['placement_image_name'] or row['product_name'] or 'Unnamed Product',
        'image_key': row['placement_image'],
        'image_url': urls.resolve(row['placement_image']),
        'is_visible': bool(row['is_visible']),
        'anchor_position': anchor,
        'position': position,
        'width': _number(position, 'width', 100),
        'height': _number(position, 'height', 100),
        'x': _number(position, 'x', 0),
        'y': _number(position, 'y', 0),
        'product': _product_node(row, urls),
        'created_at': row['placement_image_created_at'],
        'updated_at': row['placement_image_updated_at'],
    }


def placement_node(row: Row) -> Dict[str, Any]:
    return {
        'id': row['placement_id'],
        'name': row['placement_name'],
        'art_story_id': row.get('art_story_id'),
        'art_story_title': row.get('art_story_title'),
        'created_at': row['placement_created_at'],
        'updated_at': row['placement_updated_at'],
    }


def space_node(row: Row, urls: StorageUrls) -> Dict[str, Any]:
    return {
        'id': row['space_id'],
        'name': row['space_name'],
        'image_key': row['space_image'],
        'image_url': urls.resolve(row['space_image']),
        'created_at': row['space_created_at'],
        'updated_at': row['space_updated_at'],
    }


def scene_node(row: Row, urls: StorageUrls) -> Dict[str, Any]:
    theme = None
    if row['theme_id'] is not None:
        theme = {
            'id': row['theme_id'],
            'theme_type': row['theme_type'],
            'name': row['theme_name'],
            'slug': row['theme_slug'],
            'image_key': row['theme_image'],
            'image_url': urls.resolve(row['theme_image']),
            'metadata': row['theme_metadata'] or {},
        }
    return {
        'id': row['scene_id'],
        'name': row['scene_name'],
        'type': row['scene_type'],
        'image_key': row['scene_image'],
        'image_url': urls.resolve(row['scene_image']),
        'theme': theme,
        'created_at': row['scene_created_at'],
        'updated_at': row['scene_updated_at'],
    }


def _image_levels(urls: StorageUrls) -> List[Level]:
    return [
        Level('placement_id', placement_node, 'placement_images'),
        Level('placement_image_id', lambda row: placement_image_node(row, urls), None),
    ]


def assemble_scene(rows: Sequence[Row], urls: StorageUrls) -> Optional[Dict[str, Any]]:
    """scene -> spaces -> placements -> placement_images (-> product)."""
    levels = [
        Level('scene_id', lambda row: scene_node(row, urls), 'spaces'),
        Level('space_id', lambda row: space_node(row, urls), 'placements'),
    ] + _image_levels(urls)
    scenes = fold_rows(rows, levels)
    return scenes[0] if scenes else None


def assemble_space(rows: Sequence[Row], urls: StorageUrls) -> Optional[Dict[str, Any]]:
    """space (with its scene background) -> placements -> placement_images."""
    def build(row: Row) -> Dict[str, Any]:
        node = space_node(row, urls)
        node['scene_id'] = row['scene_id']
        node['background_image_key'] = row['scene_image']
        node['background_image_url'] = urls.resolve(row['scene_image'])
        return node

    spaces = fold_rows(rows, [Level('space_id', build, 'placements')] + _image_levels(urls))
    return spaces[0] if spaces else None
