"""
Goal: Turn the host's structured search request into SoundCloud /tracks parameters.

SoundCloud only has one free-text `q`, so artist/track/album are glued together
(in that order). A genre-only request is sent as both `q` and the `genres` filter.
"""

from __future__ import annotations

from soundbridge.models.schemas import SearchParams, SearchQuery


def build_search_query(query: SearchQuery) -> SearchParams:
    if query.artist or query.track or query.album:
        q = ""
        if query.artist:
            q += " " + query.artist
        if query.track:
            q += " " + query.track
        if query.album:
            q += " " + query.album

        fc = query.fuzzy_category
        if (fc.artist or fc.album or fc.track) and query.fuzzy:
            q += " " + query.fuzzy
        return SearchParams(q=q)

    if query.genre:
        return SearchParams(q=query.genre, genres=query.genre)

    return SearchParams(q=query.query or "")
