"""
tests/test_uploads.py
=====================

Data-URL helpers and the single-slot upload reader.
"""

import asyncio

import pytest

from auditkit.uploads import (
    SingleSlotReader,
    decode_data_url,
    encode_data_url,
    guess_mime,
    read_file_as_data_url,
)


def test_encode_then_decode():
    url = encode_data_url(b"hello", "text/plain")
    assert url == "data:text/plain;base64,aGVsbG8="
    assert decode_data_url(url) == ("text/plain", b"hello")


@pytest.mark.parametrize("bad", [
    "https://example.com/logo.png",
    "data:image/png,rawtext",
    "data:image/png;base64,@@@",
    "",
])
def test_decode_rejects_non_base64_urls(bad):
    with pytest.raises(ValueError):
        decode_data_url(bad)


def test_guess_mime():
    assert guess_mime("logo.png") == "image/png"
    assert guess_mime("blob.unknownext") == "application/octet-stream"


def test_read_file_as_data_url(tmp_path):
    f = tmp_path / "evidence.txt"
    f.write_bytes(b"hi")
    name, url = asyncio.run(read_file_as_data_url(f))
    assert name == "evidence.txt"
    assert url == "data:text/plain;base64,aGk="


def test_latest_issued_read_wins_even_if_it_finishes_first():
    applied = []

    async def scenario():
        reader = SingleSlotReader()
        first_done, second_done = asyncio.Event(), asyncio.Event()

        async def first():
            await first_done.wait()
            return "first"

        async def second():
            await second_done.wait()
            return "second"

        t1 = reader.issue(first, applied.append)
        t2 = reader.issue(second, applied.append)
        second_done.set()
        assert await t2 is True
        first_done.set()
        return await t1

    assert asyncio.run(scenario()) is False
    assert applied == ["second"]


def test_sequential_reads_both_apply():
    applied = []

    async def scenario():
        reader = SingleSlotReader()
        assert await reader.wait() is None

        async def value(v):
            return v

        reader.issue(lambda: value(1), applied.append)
        await reader.wait()
        reader.issue(lambda: value(2), applied.append)
        await reader.wait()

    asyncio.run(scenario())
    assert applied == [1, 2]


def test_upload_feeds_session(ready_session, tmp_path):
    f = tmp_path / "policy.pdf"
    f.write_bytes(b"%PDF-1.4")
    cid = ready_session.controls[0].id

    async def scenario():
        reader = SingleSlotReader()
        reader.issue(lambda: read_file_as_data_url(f),
                     lambda res: ready_session.attach_file(cid, *res))
        await reader.wait()

    asyncio.run(scenario())
    control = ready_session.controls[0]
    assert control.attachment_name == "policy.pdf"
    assert control.attachment_url.startswith("data:application/pdf;base64,")
