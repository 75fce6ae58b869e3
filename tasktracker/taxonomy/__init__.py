from .codec import add_tag, decode, decoded_name, encode, remove_tag, split_tags, tag_names
from .colors import DEFAULT_CATEGORIES, NO_CATEGORY_COLOR, PALETTE, hash_color
from .registry import Category, Tag, TaskSource, TaxonomyRegistry

__all__ = [
    "Category",
    "DEFAULT_CATEGORIES",
    "NO_CATEGORY_COLOR",
    "PALETTE",
    "Tag",
    "TaskSource",
    "TaxonomyRegistry",
    "add_tag",
    "decode",
    "decoded_name",
    "encode",
    "hash_color",
    "remove_tag",
    "split_tags",
    "tag_names",
]
