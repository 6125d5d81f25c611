"""Mock builders for Motor collections and cursors."""

from unittest.mock import AsyncMock, MagicMock

from bson import ObjectId


def make_cursor(docs=None):
    """Motor cursor stand-in: sort() chains, to_list() resolves to docs."""
    cursor = MagicMock()
    cursor.sort = MagicMock(return_value=cursor)
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


def make_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock(return_value=make_cursor())
    collection.find_one.return_value = None
    collection.find_one_and_update.return_value = None
    collection.count_documents.return_value = 0
    collection.insert_one.side_effect = lambda *a, **kw: MagicMock(inserted_id=ObjectId())
    collection.update_one.return_value = MagicMock(matched_count=1, modified_count=1)
    collection.delete_one.return_value = MagicMock(deleted_count=1)
    collection.delete_many.return_value = MagicMock(deleted_count=0)
    return collection
