"""Tests for the CatalogService."""

import pytest

from meta_catalog.services import (
    CatalogService,
    DirectoryNotFoundError,
    FileEntryNotFoundError,
    ForeignKeyViolation,
    InvalidHashError,
    InvalidPathError,
    UniqueConstraintViolation,
)

from conftest import make_hash


@pytest.mark.asyncio
async def test_upsert_directory_is_idempotent(catalog_service: CatalogService):
    first = await catalog_service.upsert_directory("/a")
    second = await catalog_service.upsert_directory("/a")
    assert first == second

    directories = await catalog_service.list_directories()
    assert [d.path for d in directories] == ["/", "/a"]


@pytest.mark.asyncio
async def test_upsert_directory_normalizes_path(catalog_service: CatalogService):
    first = await catalog_service.upsert_directory("/a/")
    assert await catalog_service.upsert_directory("/a") == first

    root = await catalog_service.get_directory_by_path("/")
    assert await catalog_service.upsert_directory("///") == root.id


@pytest.mark.asyncio
async def test_upsert_directory_rejects_empty_path(catalog_service: CatalogService):
    with pytest.raises(InvalidPathError):
        await catalog_service.upsert_directory("")


@pytest.mark.asyncio
async def test_upsert_directory_keeps_whitespace(catalog_service: CatalogService):
    padded = await catalog_service.upsert_directory(" /a")
    plain = await catalog_service.upsert_directory("/a")
    assert padded != plain
    assert (await catalog_service.get_directory(padded)).path == " /a"
    assert await catalog_service.upsert_directory("   ") != plain


@pytest.mark.asyncio
async def test_upsert_directory_tree(catalog_service: CatalogService):
    leaf = await catalog_service.upsert_directory_tree("/a/b/c")

    paths = [d.path for d in await catalog_service.list_directories()]
    assert paths == ["/", "/a", "/a/b", "/a/b/c"]

    found = await catalog_service.get_directory_by_path("/a/b/c")
    assert found.id == leaf

    # existing ancestors are reused
    assert await catalog_service.upsert_directory_tree("/a/b/c") == leaf
    assert len(await catalog_service.list_directories()) == 4


@pytest.mark.asyncio
async def test_directory_lookups(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/docs")

    assert (await catalog_service.get_directory(directory_id)).path == "/docs"
    assert (await catalog_service.find_directory_by_path("/docs/")).id == directory_id
    assert await catalog_service.find_directory_by_path("/nope") is None

    with pytest.raises(DirectoryNotFoundError):
        await catalog_service.get_directory(9999)
    with pytest.raises(DirectoryNotFoundError):
        await catalog_service.get_directory_by_path("/nope")


@pytest.mark.asyncio
async def test_directory_subtree(catalog_service: CatalogService):
    top = await catalog_service.upsert_directory_tree("/m/x/y")
    await catalog_service.upsert_directory("/mm")
    m = await catalog_service.get_directory_by_path("/m")

    subtree = await catalog_service.directory_subtree(m.id)
    assert [d.path for d in subtree] == ["/m", "/m/x", "/m/x/y"]
    assert subtree[-1].id == top


@pytest.mark.asyncio
async def test_upsert_file(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")
    file_id = await catalog_service.upsert_file(directory_id, "x.txt", make_hash(1))

    file = await catalog_service.get_file(file_id)
    assert file.filename == "x.txt"
    assert file.hash == make_hash(1)
    assert (await catalog_service.file_directory(file_id)).path == "/a"
    assert (await catalog_service.get_file_by_name("x.txt")).id == file_id


@pytest.mark.asyncio
async def test_filename_is_unique_across_directories(catalog_service: CatalogService):
    first = await catalog_service.upsert_directory("/a")
    second = await catalog_service.upsert_directory("/b")
    await catalog_service.upsert_file(first, "x.txt", make_hash(1))

    with pytest.raises(UniqueConstraintViolation):
        await catalog_service.upsert_file(second, "x.txt", make_hash(2))

    assert len(await catalog_service.list_files()) == 1


@pytest.mark.asyncio
async def test_upsert_file_requires_directory(catalog_service: CatalogService):
    with pytest.raises(ForeignKeyViolation):
        await catalog_service.upsert_file(9999, "orphan.txt", make_hash(1))
    assert await catalog_service.list_files() == []


@pytest.mark.asyncio
async def test_upsert_file_validates_hash(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")

    with pytest.raises(InvalidHashError):
        await catalog_service.upsert_file(directory_id, "short.txt", b"\x01\x02")
    with pytest.raises(InvalidHashError):
        await catalog_service.upsert_file(directory_id, "empty.txt", b"")
    with pytest.raises(InvalidHashError):
        await catalog_service.upsert_file(directory_id, "text.txt", "ab" * 32)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_hash_length_can_be_disabled(catalog_service: CatalogService):
    catalog_service.app_config.hash_length = None
    directory_id = await catalog_service.upsert_directory("/a")
    file_id = await catalog_service.upsert_file(directory_id, "md5.txt", b"\x00" * 16)
    assert await catalog_service.find_files_by_hash(b"\x00" * 16) == [file_id]


@pytest.mark.asyncio
async def test_find_files_by_hash(catalog_service: CatalogService):
    a = await catalog_service.upsert_directory("/a")
    b = await catalog_service.upsert_directory("/b")
    first = await catalog_service.upsert_file(a, "one.txt", make_hash(1))
    second = await catalog_service.upsert_file(b, "two.txt", make_hash(1))
    await catalog_service.upsert_file(b, "three.txt", make_hash(3))

    assert await catalog_service.find_files_by_hash(make_hash(1)) == [first, second]
    assert await catalog_service.find_files_by_hash(make_hash(42)) == []


@pytest.mark.asyncio
async def test_find_duplicate_hashes(catalog_service: CatalogService):
    a = await catalog_service.upsert_directory("/a")
    first = await catalog_service.upsert_file(a, "one.txt", make_hash(1))
    second = await catalog_service.upsert_file(a, "two.txt", make_hash(1))
    await catalog_service.upsert_file(a, "three.txt", make_hash(3))

    assert await catalog_service.find_duplicate_hashes() == [(make_hash(1), [first, second])]


@pytest.mark.asyncio
async def test_directory_files(catalog_service: CatalogService):
    a = await catalog_service.upsert_directory("/a")
    b = await catalog_service.upsert_directory("/b")
    await catalog_service.upsert_file(a, "one.txt", make_hash(1))
    await catalog_service.upsert_file(b, "two.txt", make_hash(2))

    assert [f.filename for f in await catalog_service.directory_files(a)] == ["one.txt"]
    assert (await catalog_service.directory_file(b, "two.txt")).filename == "two.txt"
    assert await catalog_service.directory_file(a, "two.txt") is None

    with pytest.raises(DirectoryNotFoundError):
        await catalog_service.directory_files(9999)


@pytest.mark.asyncio
async def test_set_directory_metadata_returns_previous(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")

    assert await catalog_service.set_directory_metadata(directory_id, "owner", "sam") is None
    assert await catalog_service.set_directory_metadata(directory_id, "owner", "alex") == "sam"
    assert await catalog_service.get_directory_metadata(directory_id, "owner") == "alex"
    assert await catalog_service.directory_metadata(directory_id) == {"owner": "alex"}


@pytest.mark.asyncio
async def test_set_metadata_requires_owner(catalog_service: CatalogService):
    with pytest.raises(ForeignKeyViolation):
        await catalog_service.set_directory_metadata(9999, "k", "v")
    with pytest.raises(ForeignKeyViolation):
        await catalog_service.set_file_metadata(9999, "k", "v")


@pytest.mark.asyncio
async def test_file_metadata(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")
    file_id = await catalog_service.upsert_file(directory_id, "x.txt", make_hash(1))

    assert await catalog_service.set_file_metadata(file_id, "genre", "jazz") is None
    assert await catalog_service.set_file_metadata(file_id, "genre", "bop") == "jazz"
    await catalog_service.set_file_metadata(file_id, "year", "1957")

    assert await catalog_service.file_metadata(file_id) == {"genre": "bop", "year": "1957"}
    assert await catalog_service.remove_file_metadata(file_id, "genre") == "bop"
    assert await catalog_service.remove_file_metadata(file_id, "genre") is None
    assert await catalog_service.clear_file_metadata(file_id) == 1
    assert await catalog_service.file_metadata(file_id) == {}


@pytest.mark.asyncio
async def test_metadata_reads_on_missing_owner(catalog_service: CatalogService):
    with pytest.raises(DirectoryNotFoundError):
        await catalog_service.directory_metadata(9999)
    with pytest.raises(DirectoryNotFoundError):
        await catalog_service.remove_directory_metadata(9999, "k")
    with pytest.raises(FileEntryNotFoundError):
        await catalog_service.get_file_metadata(9999, "k")
    with pytest.raises(FileEntryNotFoundError):
        await catalog_service.clear_file_metadata(9999)


@pytest.mark.asyncio
async def test_find_with_key(catalog_service: CatalogService):
    a = await catalog_service.upsert_directory("/a")
    b = await catalog_service.upsert_directory("/b")
    await catalog_service.set_directory_metadata(a, "tag", "x")
    await catalog_service.set_directory_metadata(b, "tag", "y")
    file_id = await catalog_service.upsert_file(a, "f.txt", make_hash(1))
    await catalog_service.set_file_metadata(file_id, "tag", "x")

    assert [d.id for d in await catalog_service.find_directories_with_key("tag")] == [a, b]
    assert [d.id for d in await catalog_service.find_directories_with_key("tag", "y")] == [b]
    assert [f.id for f in await catalog_service.find_files_with_key("tag", "x")] == [file_id]
    assert await catalog_service.find_files_with_key("tag", "y") == []


@pytest.mark.asyncio
async def test_delete_directory_cascades(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")
    file_id = await catalog_service.upsert_file(directory_id, "x.txt", make_hash(1))
    await catalog_service.set_directory_metadata(directory_id, "k", "v")
    await catalog_service.set_file_metadata(file_id, "k", "v")

    await catalog_service.delete_directory(directory_id)

    assert await catalog_service.find_directory_by_path("/a") is None
    assert await catalog_service.find_files_by_hash(make_hash(1)) == []
    with pytest.raises(FileEntryNotFoundError):
        await catalog_service.file_metadata(file_id)

    # the filename is free again
    other = await catalog_service.upsert_directory("/b")
    await catalog_service.upsert_file(other, "x.txt", make_hash(1))


@pytest.mark.asyncio
async def test_strict_delete_directory(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")
    file_id = await catalog_service.upsert_file(directory_id, "x.txt", make_hash(1))

    with pytest.raises(ForeignKeyViolation):
        await catalog_service.delete_directory(directory_id, cascade=False)

    # nothing was removed
    assert (await catalog_service.get_directory(directory_id)).path == "/a"
    assert (await catalog_service.get_file(file_id)).filename == "x.txt"

    await catalog_service.delete_file(file_id, cascade=False)
    await catalog_service.delete_directory(directory_id, cascade=False)
    assert await catalog_service.find_directory_by_path("/a") is None


@pytest.mark.asyncio
async def test_strict_delete_directory_with_metadata(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")
    await catalog_service.set_directory_metadata(directory_id, "k", "v")

    with pytest.raises(ForeignKeyViolation):
        await catalog_service.delete_directory(directory_id, cascade=False)
    assert await catalog_service.directory_metadata(directory_id) == {"k": "v"}


@pytest.mark.asyncio
async def test_strict_delete_from_config(catalog_service: CatalogService):
    catalog_service.app_config.cascade_deletes = False
    directory_id = await catalog_service.upsert_directory("/a")
    file_id = await catalog_service.upsert_file(directory_id, "x.txt", make_hash(1))
    await catalog_service.set_file_metadata(file_id, "k", "v")

    with pytest.raises(ForeignKeyViolation):
        await catalog_service.delete_file(file_id)
    with pytest.raises(ForeignKeyViolation):
        await catalog_service.delete_directory(directory_id)

    # an explicit cascade still wins
    await catalog_service.delete_file(file_id, cascade=True)
    assert await catalog_service.directory_files(directory_id) == []


@pytest.mark.asyncio
async def test_delete_file_cascades_to_metadata(catalog_service: CatalogService):
    directory_id = await catalog_service.upsert_directory("/a")
    file_id = await catalog_service.upsert_file(directory_id, "x.txt", make_hash(1))
    await catalog_service.set_file_metadata(file_id, "k", "v")

    await catalog_service.delete_file(file_id)

    with pytest.raises(FileEntryNotFoundError):
        await catalog_service.get_file(file_id)
    # the directory itself is untouched
    assert (await catalog_service.get_directory(directory_id)).path == "/a"


@pytest.mark.asyncio
async def test_delete_missing_rows(catalog_service: CatalogService):
    with pytest.raises(DirectoryNotFoundError):
        await catalog_service.delete_directory(9999)
    with pytest.raises(DirectoryNotFoundError):
        await catalog_service.delete_directory(9999, cascade=False)
    with pytest.raises(FileEntryNotFoundError):
        await catalog_service.delete_file(9999)
    with pytest.raises(FileEntryNotFoundError):
        await catalog_service.delete_file(9999, cascade=False)


@pytest.mark.asyncio
async def test_fresh_catalog(catalog_service: CatalogService):
    directories = await catalog_service.list_directories()
    assert [d.path for d in directories] == ["/"]
    assert await catalog_service.list_files() == []
    assert await catalog_service.find_duplicate_hashes() == []
