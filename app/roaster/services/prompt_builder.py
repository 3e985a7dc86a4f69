"""
Roast prompt builder.

Renders a ListeningProfile into the single instruction string sent to the
generation model. Output is deterministic: same profile, same prompt.
"""

from collections import namedtuple
from typing import List, Sequence

from roaster.schemas.profile import (
    ListeningProfile,
    NormalizedArtist,
    NormalizedPlaylist,
    NormalizedTrack,
)

EMPTY_SECTION = "No data available for this section."

ATTRIBUTION = "Roasted by Music Taste Roaster 🔥"

Section = namedtuple("Section", ["title", "collection", "limit"])

SPOTIFY_SECTIONS = (
    Section("ARTISTS I FOLLOW", "followed_artists", 20),
    Section("MY TOP ARTISTS (LAST 4 WEEKS)", "top_artists_short_term", 10),
    Section("MY TOP ARTISTS (LAST 6 MONTHS)", "top_artists_medium_term", 10),
    Section("MY TOP ARTISTS (ALL TIME)", "top_artists_long_term", 10),
    Section("MY TOP TRACKS (LAST 4 WEEKS)", "top_tracks_short_term", 10),
    Section("MY TOP TRACKS (LAST 6 MONTHS)", "top_tracks_medium_term", 10),
    Section("MY TOP TRACKS (ALL TIME)", "top_tracks_long_term", 10),
    Section("RECENTLY PLAYED", "recently_played", 15),
    Section("MY PLAYLISTS", "playlists", 15),
    Section("SAVED TRACKS", "saved_tracks", 15),
)

APPLE_SECTIONS = (
    Section("RECENTLY PLAYED", "recently_played", 15),
    Section("HEAVY ROTATION", "heavy_rotation", 15),
    Section("MY PLAYLISTS", "playlists", 15),
    Section("MY LIBRARY SONGS", "saved_tracks", 15),
)

SERVICE_NAMES = {"spotify": "Spotify", "apple": "Apple Music"}


def format_artist(index: int, artist: NormalizedArtist) -> str:
    genres = ", ".join(artist.genres) or "Unknown"
    return f"{index}. {artist.name} (Genres: {genres}, Popularity: {artist.popularity})"


def format_track(index: int, track: NormalizedTrack) -> str:
    line = f"{index}. {track.name} by {track.primary_artist}"
    if track.popularity is not None:
        line += f" (Popularity: {track.popularity})"
    return line


def format_playlist(index: int, playlist: NormalizedPlaylist) -> str:
    visibility = "public" if playlist.is_public else "private"
    return f"{index}. {playlist.name} ({playlist.track_count} tracks, {visibility})"


def _format_entry(index: int, entry) -> str:
    if isinstance(entry, NormalizedArtist):
        return format_artist(index, entry)
    if isinstance(entry, NormalizedTrack):
        return format_track(index, entry)
    return format_playlist(index, entry)


def render_section(title: str, entries: Sequence, limit: int) -> str:
    """One labeled block; an empty collection renders the placeholder sentence."""
    if not entries:
        body = EMPTY_SECTION
    else:
        body = "\n".join(_format_entry(i, e) for i, e in enumerate(entries[:limit], start=1))
    return f"{title}:\n{body}"


def sections_for(service: str) -> Sequence[Section]:
    return APPLE_SECTIONS if service == "apple" else SPOTIFY_SECTIONS


def build_prompt(profile: ListeningProfile) -> str:
    service_name = SERVICE_NAMES.get(profile.service, profile.service)
    blocks: List[str] = [
        render_section(s.title, profile.collection(s.collection), s.limit)
        for s in sections_for(profile.service)
    ]
    data_text = "\n\n".join(blocks)

    prompt = f"""Roast my music taste brutally. Be sarcastic. No compliments. Use Hindi as well as English; it should feel very desi.

Here is my {service_name} listening data:

{data_text}

RULES:
1. Mix Hindi and English (Hinglish) throughout
2. Pick on specific artists, tracks and playlist names from the data above
3. Keep it between 150 and 250 words
4. End with this exact line: "{ATTRIBUTION}"

Give me a brutal roast in a mix of Hindi and English."""

    return prompt
