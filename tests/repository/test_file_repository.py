"""Tests for the FileRepository."""

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import make_hash


@pytest.mark.asyncio
async def test_create_file(file_repository, sample_directory):
    file = await file_repository.create(
        {
            "directory_id": sample_directory.id,
            "filename": "cover.jpg",
            "hash": make_hash(7),
            "not_a_column": "ignored",
        }
    )
    assert file.id is not None
    assert file.hash == make_hash(7)
    assert file.hex_hash == "07" * 32

    found = await file_repository.find_by_filename("cover.jpg")
    assert found is not None
    assert found.id == file.id
    assert found.directory_id == sample_directory.id


@pytest.mark.asyncio
async def test_filename_unique_across_directories(
    file_repository, directory_repository, sample_file
):
    other = await directory_repository.upsert("/other")
    with pytest.raises(IntegrityError, match="UNIQUE constraint failed"):
        await file_repository.create(
            {"directory_id": other, "filename": sample_file.filename, "hash": make_hash(2)}
        )


@pytest.mark.asyncio
async def test_directory_must_exist(file_repository):
    with pytest.raises(IntegrityError, match="FOREIGN KEY constraint failed"):
        await file_repository.create(
            {"directory_id": 9999, "filename": "orphan.txt", "hash": make_hash(3)}
        )


@pytest.mark.asyncio
async def test_find_ids_by_hash(file_repository, sample_directory, sample_file):
    second = await file_repository.create(
        {"directory_id": sample_directory.id, "filename": "copy.flac", "hash": sample_file.hash}
    )
    await file_repository.create(
        {"directory_id": sample_directory.id, "filename": "other.flac", "hash": make_hash(9)}
    )

    assert await file_repository.find_ids_by_hash(sample_file.hash) == [sample_file.id, second.id]
    assert await file_repository.find_ids_by_hash(make_hash(200)) == []


@pytest.mark.asyncio
async def test_find_in_directory(file_repository, directory_repository, sample_directory, sample_file):
    found = await file_repository.find_in_directory(sample_directory.id, "track01.flac")
    assert found is not None and found.id == sample_file.id

    other = await directory_repository.upsert("/other")
    assert await file_repository.find_in_directory(other, "track01.flac") is None
    assert await file_repository.find_by_directory(other) == []


@pytest.mark.asyncio
async def test_find_with_key(file_repository, file_metadata_repository, sample_directory, sample_file):
    other = await file_repository.create(
        {"directory_id": sample_directory.id, "filename": "b.flac", "hash": make_hash(2)}
    )
    await file_metadata_repository.set(sample_file.id, "genre", "jazz")
    await file_metadata_repository.set(other.id, "genre", "rock")

    assert [f.id for f in await file_repository.find_with_key("genre")] == [sample_file.id, other.id]
    assert [f.id for f in await file_repository.find_with_key("genre", "rock")] == [other.id]


@pytest.mark.asyncio
async def test_find_duplicate_hashes(file_repository, sample_directory, sample_file):
    copy = await file_repository.create(
        {"directory_id": sample_directory.id, "filename": "copy.flac", "hash": sample_file.hash}
    )
    await file_repository.create(
        {"directory_id": sample_directory.id, "filename": "unique.flac", "hash": make_hash(5)}
    )

    duplicates = await file_repository.find_duplicate_hashes()
    assert duplicates == [(sample_file.hash, [sample_file.id, copy.id])]


@pytest.mark.asyncio
async def test_delete_unreferenced(file_repository, file_metadata_repository, sample_file):
    await file_metadata_repository.set(sample_file.id, "k", "v")
    assert await file_repository.has_dependents(sample_file.id) is True
    assert await file_repository.delete_unreferenced(sample_file.id) is False

    await file_metadata_repository.clear(sample_file.id)
    assert await file_repository.has_dependents(sample_file.id) is False
    assert await file_repository.delete_unreferenced(sample_file.id) is True
    assert await file_repository.find_by_id(sample_file.id) is None
