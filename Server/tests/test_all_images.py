"""
Tests for list=allimages: ordering, bounds, pagination, filters and output
"""

import hashlib

import pytest
from fastapi import HTTPException

from all_images import AllImagesParams, RunAllImages
from api_errors import ApiWarnings
from file_storage import GetHashPath, Sha1HexToBase36


def _Names(response):
    return [record["name"] for record in response.json()["query"]["allimages"]]


def _ListAll(client, **params):
    """Follow continuation until the listing is exhausted"""
    names = []
    while True:
        response = client.get("/api/query/allimages", params=params)
        assert response.status_code == 200
        names.extend(_Names(response))
        if "continue" not in response.json():
            return names
        params["continue"] = response.json()["continue"]["aicontinue"]


@pytest.fixture
def files(wiki):
    for name in ("Cat.png", "Apple.png", "Ba.png", "BA.png", "Bb.png", "Dog.jpg"):
        wiki.AddImage(name, mime="image/jpeg" if name.endswith(".jpg") else "image/png")


def test_sort_by_name_ascending_and_descending(client, files):
    """Test name order in both directions"""
    response = client.get("/api/query/allimages")
    assert response.status_code == 200
    assert response.json()["batchcomplete"] is True
    assert _Names(response) == ["Apple.png", "BA.png", "Ba.png", "Bb.png", "Cat.png", "Dog.jpg"]

    response = client.get("/api/query/allimages", params={"dir": "descending"})
    assert _Names(response) == ["Dog.jpg", "Cat.png", "Bb.png", "Ba.png", "BA.png", "Apple.png"]


def test_name_pagination_has_no_overlap(client, files):
    """Test that continuing from each cursor yields the next records exactly once"""
    response = client.get("/api/query/allimages", params={"limit": "2"})
    assert _Names(response) == ["Apple.png", "BA.png"]
    assert response.json()["continue"] == {"aicontinue": "Ba.png"}

    assert _ListAll(client, limit="2") == ["Apple.png", "BA.png", "Ba.png", "Bb.png", "Cat.png", "Dog.jpg"]
    assert _ListAll(client, limit="4", dir="descending") == [
        "Dog.jpg", "Cat.png", "Bb.png", "Ba.png", "BA.png", "Apple.png"
    ]


def test_from_to_bounds(client, files):
    response = client.get("/api/query/allimages", params={"from": "b", "to": "Bb.png"})
    assert _Names(response) == ["BA.png", "Ba.png", "Bb.png"]

    # In descending order 'from' is the upper bound
    response = client.get("/api/query/allimages", params={"from": "Bb.png", "to": "B", "dir": "descending"})
    assert _Names(response) == ["Bb.png", "Ba.png", "BA.png"]


def test_prefix_is_case_sensitive(client, files):
    response = client.get("/api/query/allimages", params={"prefix": "Ba"})
    assert _Names(response) == ["Ba.png"]

    # First letter is uppercased like any title
    response = client.get("/api/query/allimages", params={"prefix": "b"})
    assert _Names(response) == ["BA.png", "Ba.png", "Bb.png"]


def test_sort_by_timestamp_breaks_ties_by_name(client, wiki):
    """Test (timestamp, name) order and pagination across equal timestamps"""
    wiki.AddImage("Zeta.png", timestamp="20240301000000")
    wiki.AddImage("Beta.png", timestamp="20240301000000")
    wiki.AddImage("Alpha.png", timestamp="20240301000000")
    wiki.AddImage("Early.png", timestamp="20240201000000")
    wiki.AddImage("Late.png", timestamp="20240401000000")

    expected = ["Early.png", "Alpha.png", "Beta.png", "Zeta.png", "Late.png"]
    response = client.get("/api/query/allimages", params={"sort": "timestamp", "limit": "2"})
    assert _Names(response) == expected[:2]
    assert response.json()["continue"]["aicontinue"] == "20240301000000|Beta.png"

    assert _ListAll(client, sort="timestamp", limit="2") == expected
    assert _ListAll(client, sort="timestamp", dir="older", limit="1") == list(reversed(expected))


def test_timestamp_range(client, wiki):
    wiki.AddImage("Jan.png", timestamp="20240115000000")
    wiki.AddImage("Feb.png", timestamp="20240215000000")
    wiki.AddImage("Mar.png", timestamp="20240315000000")

    response = client.get("/api/query/allimages", params={
        "sort": "timestamp", "start": "2024-02-01T00:00:00Z", "end": "20240401000000"
    })
    assert _Names(response) == ["Feb.png", "Mar.png"]

    # Descending: start is the newer bound
    response = client.get("/api/query/allimages", params={
        "sort": "timestamp", "dir": "older", "start": "2024-02-20T00:00:00Z"
    })
    assert _Names(response) == ["Feb.png", "Jan.png"]


@pytest.mark.parametrize("params", [
    {"sort": "name", "start": "2024-01-01T00:00:00Z"},
    {"sort": "name", "end": "2024-01-01T00:00:00Z"},
    {"sort": "name", "user": "Alice"},
    {"sort": "name", "filterbots": "bots"},
    {"sort": "timestamp", "from": "A"},
    {"sort": "timestamp", "to": "B"},
    {"sort": "timestamp", "prefix": "A"},
    {"sort": "timestamp", "user": "Alice", "filterbots": "nobots"},
])
def test_invalid_parameter_combinations(client, params):
    response = client.get("/api/query/allimages", params=params)
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalidparammix"


@pytest.mark.parametrize("params,code", [
    ({"sha1": "abc"}, "invalidsha1hash"),
    ({"sha1": "g" * 40}, "invalidsha1hash"),
    ({"sha1base36": "0" * 30}, "invalidsha1base36hash"),
    ({"sort": "timestamp", "start": "last week"}, "badtimestamp"),
    ({"sort": "timestamp", "continue": "Apple.png"}, "badcontinue"),
    ({"limit": "lots"}, "badinteger"),
    ({"sort": "size"}, "badvalue"),
])
def test_validation_errors(client, params, code):
    response = client.get("/api/query/allimages", params=params)
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == code


def test_malformed_hash_rejected_before_database_access():
    """Test that hash validation needs neither a database manager nor a session"""
    with pytest.raises(HTTPException) as exc_info:
        RunAllImages(None, None, AllImagesParams(sha1="not-a-hash"), ApiWarnings())
    assert exc_info.value.detail["code"] == "invalidsha1hash"


def test_sha1_filters(client, wiki):
    wiki.AddImage("One.png", content=b"one")
    wiki.AddImage("Two.png", content=b"two")
    wiki.AddImage("Copy.png", content=b"two")
    sha1_hex = hashlib.sha1(b"two").hexdigest()

    response = client.get("/api/query/allimages", params={"sha1": sha1_hex.upper(), "prop": "sha1"})
    records = response.json()["query"]["allimages"]
    assert [r["name"] for r in records] == ["Copy.png", "Two.png"]
    assert all(r["sha1"] == sha1_hex for r in records)

    response = client.get("/api/query/allimages", params={"sha1base36": Sha1HexToBase36(sha1_hex)})
    assert _Names(response) == ["Copy.png", "Two.png"]


def test_mime_filter(client, files, wiki):
    response = client.get("/api/query/allimages", params={"mime": "image/jpeg"})
    assert _Names(response) == ["Dog.jpg"]

    response = client.get("/api/query/allimages", params={"mime": "image/jpeg|image/png", "limit": "max"})
    assert len(_Names(response)) == 6

    # No MIME types, no files
    response = client.get("/api/query/allimages", params={"mime": ""})
    assert response.status_code == 200
    assert _Names(response) == []
    assert "continue" not in response.json()

    wiki.SetSetting("miser_mode", "true")
    response = client.get("/api/query/allimages", params={"mime": "image/png"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "mimesearchdisabled"


def test_size_filters(client, wiki):
    wiki.AddImage("Small.png", size=10)
    wiki.AddImage("Medium.png", size=500)
    wiki.AddImage("Large.png", size=5000)

    response = client.get("/api/query/allimages", params={"minsize": 100, "maxsize": 1000})
    assert _Names(response) == ["Medium.png"]
    response = client.get("/api/query/allimages", params={"minsize": 500})
    assert _Names(response) == ["Large.png", "Medium.png"]


def test_user_and_bot_filters(client, wiki):
    """Test uploader filtering and the bot filter based on unexpired bot memberships"""
    alice = wiki.CreateUser("Alice")
    robot = wiki.CreateUser("Robot", groups=("user", "bot"))
    former_bot = wiki.CreateUser("Former bot", groups=("bot",), expiry="20200101000000")

    wiki.AddImage("By_alice.png", user=alice)
    wiki.AddImage("By_robot.png", user=robot)
    wiki.AddImage("By_former_bot.png", user=former_bot)
    wiki.AddImage("By_ip.png", user_text="192.0.2.1")

    response = client.get("/api/query/allimages", params={"sort": "timestamp", "user": "alice"})
    assert _Names(response) == ["By_alice.png"]
    response = client.get("/api/query/allimages", params={"sort": "timestamp", "user": f"#{robot.user_id}"})
    assert _Names(response) == ["By_robot.png"]

    response = client.get("/api/query/allimages", params={"sort": "timestamp", "filterbots": "bots"})
    assert _Names(response) == ["By_robot.png"]
    response = client.get("/api/query/allimages", params={"sort": "timestamp", "filterbots": "nobots"})
    assert _Names(response) == ["By_alice.png", "By_former_bot.png", "By_ip.png"]


def test_properties(client, wiki):
    """Test the requested properties of each record"""
    wiki.AddImage("Pic.png", timestamp="20240102030405", user_text="Alice", content=b"pixels",
                  width=640, height=480, description="A picture")

    response = client.get("/api/query/allimages", params={
        "prop": "timestamp|user|userid|comment|url|size|sha1|mime|mediatype|metadata|bitdepth|canonicaltitle"
    })
    record = response.json()["query"]["allimages"][0]
    assert record["name"] == "Pic.png"
    assert record["ns"] == 6
    assert record["title"] == "File:Pic.png"
    assert record["timestamp"] == "2024-01-02T03:04:05Z"
    assert record["user"] == "Alice"
    assert record["userid"] == 0
    assert record["comment"] == "A picture"
    assert record["url"] == f"/images/{GetHashPath('Pic.png')}Pic.png"
    assert record["descriptionurl"] == "/wiki/File:Pic.png"
    assert (record["size"], record["width"], record["height"]) == (6, 640, 480)
    assert record["sha1"] == hashlib.sha1(b"pixels").hexdigest()
    assert record["mime"] == "image/png"
    assert record["mediatype"] == "BITMAP"
    assert record["metadata"] == [{"name": "Software", "value": "test"}]
    assert record["bitdepth"] == 8
    assert record["canonicaltitle"] == "File:Pic.png"


def test_default_and_unknown_properties(client, wiki):
    wiki.AddImage("Pic.png")

    record = client.get("/api/query/allimages").json()["query"]["allimages"][0]
    assert set(record) == {"name", "timestamp", "url", "descriptionurl", "ns", "title"}

    response = client.get("/api/query/allimages", params={"prop": "size|archivename|thumbmime|uploadwarning"})
    record = response.json()["query"]["allimages"][0]
    assert "size" in record
    assert not {"archivename", "thumbmime", "uploadwarning"} & set(record)
    assert response.json()["warnings"][0]["code"] == "unrecognizedvalues"


def test_limit_clamped_for_anonymous_callers(client, wiki):
    wiki.AddImage("Pic.png")
    response = client.get("/api/query/allimages", params={"limit": "600"})
    assert response.status_code == 200
    assert response.json()["warnings"][0]["code"] == "integeroutofrange"


def test_result_size_limit_truncates(client, wiki):
    """Test that output stops at the size cap and resumes from the first record left out"""
    for name in ("A.png", "B.png", "C.png"):
        wiki.AddImage(name)
    wiki.SetSetting("api_max_result_size", "250")

    response = client.get("/api/query/allimages")
    assert _Names(response) == ["A.png"]
    assert response.json()["continue"] == {"aicontinue": "B.png"}
    assert response.json()["warnings"][0]["code"] == "truncatedresult"

    assert _ListAll(client) == ["A.png", "B.png", "C.png"]


def test_generator_mode(client, wiki):
    """Test that generator mode yields File pages, existing or missing"""
    wiki.AddImage("With_page.png")
    wiki.AddImage("Without_page.png")
    page = wiki.CreatePage(6, "With_page.png")

    response = client.get("/api/query/generator/allimages")
    assert response.status_code == 200
    assert response.json()["query"]["pages"] == [
        {"pageid": page.page_id, "ns": 6, "title": "File:With page.png"},
        {"ns": 6, "title": "File:Without page.png", "missing": True},
    ]

    response = client.get("/api/query/generator/allimages", params={"limit": "1"})
    assert response.json()["continue"] == {"gaicontinue": "Without_page.png"}


def test_generator_rejects_redirect_resolution(client, wiki):
    wiki.AddImage("Pic.png")
    response = client.get("/api/query/generator/allimages", params={"redirects": "true"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalidparammix"
