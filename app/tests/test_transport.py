"""Tests for the base64url result transport and the display summary"""

import base64

import pytest

from roaster.errors import ErrorCategory, TransportDecodeError
from roaster.schemas.profile import ListeningProfile, NormalizedArtist, NormalizedPlaylist, NormalizedTrack
from roaster.schemas.roast import DataSummary, RoastResult
from roaster.services import transport


def _result(text: str, **summary) -> RoastResult:
    return RoastResult(text=text, summary=DataSummary(**summary))


@pytest.mark.parametrize("result", [
    _result("Bhai, tera taste 😂🔥", artists=["Arijit Singh"], totals={"followed_artists": 1}),
    _result("line one\nline two \"quoted\" & <tagged>", tracks=["Yellow - Coldplay"], playlists=["sad hours"]),
    _result("", service="apple"),
    _result("x" * 5000, artists=[f"Artist {i}" for i in range(10)]),
])
def test_round_trip_is_lossless(result):
    """decode(encode(result)) reproduces the original result exactly"""
    assert transport.decode(transport.encode(result)) == result


def test_encoding_is_url_safe():
    """Encoded tokens contain only the base64url alphabet and no padding"""
    # '?>' style bytes produce '+' and '/' in standard base64
    token = transport.encode(_result("??>>~~" * 20))
    assert "+" not in token and "/" not in token and "=" not in token


def test_serialized_form_uses_wire_keys():
    token = transport.encode(_result("hi"))
    raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
    assert raw.startswith(b'{"roast":"hi","dataSummary":')


@pytest.mark.parametrize("token", ["", "not base64 at all!!", base64.urlsafe_b64encode(b"[1, 2]").decode(), "ü"])
def test_decode_rejects_garbage(token):
    with pytest.raises(TransportDecodeError) as exc:
        transport.decode(token)
    assert exc.value.category == ErrorCategory.TRANSPORT_DECODE_FAILED


def test_summary_is_capped_and_deduplicated():
    profile = ListeningProfile(
        followed_artists=[NormalizedArtist(name=f"Artist {i}") for i in range(15)],
        top_artists_short_term=[NormalizedArtist(name="Artist 0")],
        top_tracks_short_term=[NormalizedTrack(name=f"Song {i}", primary_artist="X") for i in range(12)],
        playlists=[NormalizedPlaylist(name=f"List {i}", track_count=i) for i in range(8)],
    )

    summary = transport.build_summary(profile)

    assert summary.service == "spotify"
    assert summary.artists == [f"Artist {i}" for i in range(10)]
    assert summary.tracks == [f"Song {i} - X" for i in range(10)]
    assert summary.playlists == [f"List {i}" for i in range(5)]
    assert summary.totals == {
        "followed_artists": 15,
        "top_artists_short_term": 1,
        "top_tracks_short_term": 12,
        "playlists": 8,
    }


def test_to_response_shape():
    body = transport.to_response(_result("roasted", artists=["A"]))
    assert body["roast"] == "roasted"
    assert body["dataSummary"]["artists"] == ["A"]
