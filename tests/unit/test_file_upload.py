import asyncio
import re

import pytest
from pydantic import ValidationError
from pytest import MonkeyPatch

from app.core.config import settings
from app.core.exceptions import UploadInternalError
from app.models.upload_models import StorageOptions
from app.upload_logic import file_upload
from app.upload_logic.file_upload import collect_batch
from app.upload_logic.file_upload import upload_files

UUID_RE = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


def _stored_files(root) -> list:
    return sorted(p for p in root.rglob("*") if p.is_file())


# ---------------------------------------------------------------------------
# Batch normalisation
# ---------------------------------------------------------------------------


def test_collect_batch_handles_missing_container_and_key(make_record):
    assert collect_batch(None) == []
    assert collect_batch({}) == []
    assert collect_batch({"other": make_record("a.png", "image/png")}) == []
    assert collect_batch({"file": []}) == []


def test_collect_batch_wraps_single_record(make_record):
    record = make_record("a.png", "image/png")
    assert collect_batch({"file": record}) == [record]


def test_collect_batch_keeps_list_order(make_record):
    records = [make_record(f"{i}.png", "image/png") for i in range(3)]
    assert collect_batch({"file": records}) == records


# ---------------------------------------------------------------------------
# NO_FILE
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("batch", [None, []])
async def test_empty_batch_reports_no_file(batch, isolated_storage):
    result = await upload_files(batch)

    assert result.success is False
    assert result.code == "NO_FILE"
    assert result.message == "No file uploaded"
    assert result.body is None
    assert _stored_files(isolated_storage) == []


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_single_pdf_is_stored_and_returned_as_string(make_record, isolated_storage):
    data = b"%" * 1024
    record = make_record("report.pdf", "application/pdf", data=data)

    result = await upload_files(record)

    assert result.success is True
    assert result.message == "All files uploaded successfully"
    assert result.code is None
    uploaded = result.body.uploaded_files
    assert isinstance(uploaded, str)
    assert re.fullmatch(rf"pdf/{UUID_RE}-report\.pdf", uploaded)

    stored = isolated_storage / uploaded
    assert stored.read_bytes() == data
    assert stored.stat().st_size == 1024


@pytest.mark.asyncio
async def test_single_record_in_list_is_returned_as_string(make_record):
    result = await upload_files([make_record("a.mp3", "audio/mpeg")])

    assert isinstance(result.body.uploaded_files, str)
    assert result.body.uploaded_files.startswith("audio/")


@pytest.mark.asyncio
async def test_two_images_return_ordered_list(make_record, isolated_storage):
    first = make_record("first.png", "image/png", data=b"first")
    second = make_record("second.jpg", "image/jpeg", data=b"second")

    result = await upload_files([first, second])

    assert result.success is True
    uploaded = result.body.uploaded_files
    assert isinstance(uploaded, list) and len(uploaded) == 2
    assert re.fullmatch(rf"Image/{UUID_RE}-first\.png", uploaded[0])
    assert re.fullmatch(rf"Image/{UUID_RE}-second\.jpg", uploaded[1])
    assert (isolated_storage / uploaded[0]).read_bytes() == b"first"
    assert (isolated_storage / uploaded[1]).read_bytes() == b"second"


@pytest.mark.asyncio
async def test_output_order_follows_input_not_completion(make_record, monkeypatch: MonkeyPatch):
    real_place = file_upload.place

    async def _slow_first_place(base_dir, category, unique_name, data, public_base_url=None):
        if unique_name.endswith("-slow.pdf"):
            await asyncio.sleep(0.05)
        return await real_place(base_dir, category, unique_name, data, public_base_url)

    monkeypatch.setattr(file_upload, "place", _slow_first_place)

    records = [
        make_record("slow.pdf", "application/pdf"),
        make_record("fast.mp4", "video/mp4"),
        make_record("fast.doc", "application/msword"),
    ]
    result = await upload_files(records)

    uploaded = result.body.uploaded_files
    assert uploaded[0].endswith("-slow.pdf")
    assert uploaded[1].startswith("video/")
    assert uploaded[2].startswith("docs/")


@pytest.mark.asyncio
async def test_same_file_twice_gets_two_paths(make_record, isolated_storage):
    record = make_record("dup.pdf", "application/pdf", data=b"same")

    first = await upload_files(record)
    second = await upload_files(record)

    assert first.body.uploaded_files != second.body.uploaded_files
    assert len(_stored_files(isolated_storage / "pdf")) == 2


@pytest.mark.asyncio
async def test_options_override_base_dir_and_limit(make_record, tmp_path, isolated_storage):
    custom_root = tmp_path / "custom"
    options = StorageOptions(upload_base_dir=custom_root, max_file_size=4)

    ok = await upload_files(make_record("a.png", "image/png", data=b"1234"), options)
    too_big = await upload_files(make_record("b.png", "image/png", data=b"12345"), options)

    assert ok.success is True
    assert (custom_root / ok.body.uploaded_files).exists()
    assert too_big.code == "FILE_TOO_LARGE"
    assert "4 bytes" in too_big.message


@pytest.mark.asyncio
async def test_camel_case_options_are_honoured(make_record, tmp_path):
    custom_root = tmp_path / "camel"
    options = StorageOptions(uploadBaseDir=custom_root, maxFileSize=4)

    assert options.upload_base_dir == custom_root
    assert options.max_file_size == 4

    ok = await upload_files(make_record("a.png", "image/png", data=b"1234"), options)
    too_big = await upload_files(make_record("b.png", "image/png", data=b"12345"), options)

    assert (custom_root / ok.body.uploaded_files).exists()
    assert too_big.code == "FILE_TOO_LARGE"


def test_unknown_option_is_rejected():
    with pytest.raises(ValidationError):
        StorageOptions(maxFilesize=4)


# ---------------------------------------------------------------------------
# Keyed request container
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_request_container_with_single_record(make_record, isolated_storage):
    result = await upload_files({"file": make_record("report.pdf", "application/pdf", data=b"pdf")})

    assert result.success is True
    assert re.fullmatch(rf"pdf/{UUID_RE}-report\.pdf", result.body.uploaded_files)
    assert (isolated_storage / result.body.uploaded_files).read_bytes() == b"pdf"


@pytest.mark.asyncio
async def test_request_container_with_record_list(make_record):
    records = [make_record("one.png", "image/png"), make_record("two.mp4", "video/mp4")]

    result = await upload_files({"file": records})

    uploaded = result.body.uploaded_files
    assert uploaded[0].endswith("-one.png")
    assert uploaded[1].startswith("video/")


@pytest.mark.asyncio
@pytest.mark.parametrize("container", [{}, {"file": None}, {"file": []}, {"other": "x"}])
async def test_request_container_without_files_reports_no_file(container):
    result = await upload_files(container)

    assert result.code == "NO_FILE"


@pytest.mark.asyncio
async def test_public_base_url_produces_absolute_urls(make_record, monkeypatch: MonkeyPatch, isolated_storage):
    monkeypatch.setattr(settings, "public_base_url", "https://files.example.com/static")

    result = await upload_files(make_record("photo.png", "image/png"))

    url = result.body.uploaded_files
    assert re.fullmatch(rf"https://files\.example\.com/static/Image/{UUID_RE}-photo\.png", url)
    stored_name = url.rsplit("/", 1)[-1]
    assert (isolated_storage / "Image" / stored_name).exists()


@pytest.mark.asyncio
async def test_traversal_in_filename_stays_inside_category(make_record, isolated_storage):
    result = await upload_files(make_record("../../escape.pdf", "application/pdf"))

    assert re.fullmatch(rf"pdf/{UUID_RE}-escape\.pdf", result.body.uploaded_files)
    assert [p.parent for p in _stored_files(isolated_storage)] == [isolated_storage / "pdf"]


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_invalid_type_writes_nothing(make_record, isolated_storage):
    result = await upload_files(make_record("archive.zip", "application/zip"))

    assert result.success is False
    assert result.code == "INVALID_FILE_TYPE"
    assert result.body is None
    assert _stored_files(isolated_storage) == []


@pytest.mark.asyncio
async def test_file_one_byte_over_limit_is_rejected(make_record):
    record = make_record("big.pdf", "application/pdf", data=b"", size=settings.max_file_size + 1)

    result = await upload_files(record)

    assert result.success is False
    assert result.code == "FILE_TOO_LARGE"
    assert f"({settings.max_file_size} bytes)" in result.message


@pytest.mark.asyncio
async def test_oversized_unsupported_file_reports_too_large(make_record):
    record = make_record("big.zip", "application/zip", data=b"", size=settings.max_file_size + 1)

    result = await upload_files(record)

    assert result.code == "FILE_TOO_LARGE"


@pytest.mark.asyncio
async def test_one_bad_file_fails_batch_and_rolls_back_siblings(make_record, isolated_storage):
    records = [
        make_record("good.png", "image/png"),
        make_record("bad.zip", "application/zip"),
        make_record("good.pdf", "application/pdf"),
    ]

    result = await upload_files(records)

    assert result.success is False
    assert result.code == "INVALID_FILE_TYPE"
    assert _stored_files(isolated_storage) == []


@pytest.mark.asyncio
async def test_first_failure_in_input_order_is_reported(make_record):
    records = [
        make_record("ok.png", "image/png"),
        make_record("bad.zip", "application/zip"),
        make_record("huge.pdf", "application/pdf", data=b"", size=settings.max_file_size + 1),
    ]

    result = await upload_files(records)

    assert result.code == "INVALID_FILE_TYPE"


# ---------------------------------------------------------------------------
# Unexpected failures
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_storage_error_becomes_generic_internal_error(make_record, monkeypatch: MonkeyPatch):
    async def _broken_place(*_args, **_kwargs):
        raise PermissionError("/secret/path is read-only")

    monkeypatch.setattr(file_upload, "place", _broken_place)

    with pytest.raises(UploadInternalError) as exc_info:
        await upload_files(make_record("a.pdf", "application/pdf"))

    assert str(exc_info.value) == "Internal server error"
    assert "/secret/path" not in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, PermissionError)


@pytest.mark.asyncio
async def test_storage_error_rolls_back_written_siblings(make_record, monkeypatch: MonkeyPatch, isolated_storage):
    real_place = file_upload.place

    async def _place_or_fail(base_dir, category, unique_name, data, public_base_url=None):
        if unique_name.endswith("-fails.pdf"):
            raise OSError("disk full")
        return await real_place(base_dir, category, unique_name, data, public_base_url)

    monkeypatch.setattr(file_upload, "place", _place_or_fail)

    with pytest.raises(UploadInternalError):
        await upload_files([make_record("kept.png", "image/png"), make_record("fails.pdf", "application/pdf")])

    assert _stored_files(isolated_storage) == []
