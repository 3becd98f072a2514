"""YouTube collector — recent uploads of the tracked channel.

Pipeline:
  1. Resolve the channel's "uploads" playlist id
  2. Page through playlistItems (50 per page, newest first)
  3. Stop at the first item older than the cutoff, or when pages run out

Only metadata is collected (id, title, thumbnail, publish time); the
classifier works on titles alone.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from honeybot.config import settings
from honeybot.models.video import Video
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import parse_iso, utc_now


class YouTubeAPIError(RuntimeError):
    """The YouTube Data API rejected a request."""


class YouTubeCollector:
    """Fetches a channel's uploads from the YouTube Data API v3."""

    PAGE_SIZE = 50

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        api_key: str | None = None,
        channel_id: str | None = None,
    ) -> None:
        self._client = client
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY
        self.channel_id = channel_id or settings.YOUTUBE_CHANNEL_ID
        self.base_url = settings.YOUTUBE_API_URL.rstrip("/")

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict) -> dict:
        resp = await client.get(
            f"{self.base_url}/{path}", params={**params, "key": self.api_key},
        )
        if resp.status_code >= 400:
            raise YouTubeAPIError(
                f"YouTube API {path} returned {resp.status_code}: {resp.text[:300]}"
            )
        return resp.json()

    async def get_uploads_playlist_id(self, client: httpx.AsyncClient) -> str:
        data = await self._get(
            client, "channels", {"part": "contentDetails", "id": self.channel_id},
        )
        items = data.get("items") or []
        if not items:
            raise YouTubeAPIError(f"Channel not found: {self.channel_id}")
        return items[0]["contentDetails"]["relatedPlaylists"]["uploads"]

    async def fetch_recent_videos(
        self, days: int | None = None, *, now: datetime | None = None,
    ) -> list[Video]:
        """Videos published within the trailing *days* window, newest first."""
        days = settings.COLLECT_DAYS if days is None else days
        cutoff = (now or utc_now()) - timedelta(days=days)

        if self._client is not None:
            return await self._fetch(self._client, cutoff, days)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await self._fetch(client, cutoff, days)

    async def _fetch(
        self, client: httpx.AsyncClient, cutoff: datetime, days: int,
    ) -> list[Video]:
        playlist_id = await self.get_uploads_playlist_id(client)
        logger.info(
            "[YouTube] uploads playlist %s, fetching last %d days (since %s)",
            playlist_id, days, cutoff.date().isoformat(),
        )

        videos: list[Video] = []
        page_token = ""

        while True:
            params = {
                "part": "snippet",
                "playlistId": playlist_id,
                "maxResults": str(self.PAGE_SIZE),
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self._get(client, "playlistItems", params)

            found_older = False
            for item in data.get("items") or []:
                snippet = item.get("snippet") or {}
                resource = snippet.get("resourceId") or {}
                if resource.get("kind") != "youtube#video":
                    continue

                published_at = parse_iso(snippet["publishedAt"])
                if published_at < cutoff:
                    found_older = True
                    break

                thumbs = snippet.get("thumbnails") or {}
                thumbnail = (thumbs.get("high") or thumbs.get("medium") or {}).get("url", "")
                videos.append(
                    Video(
                        id=resource["videoId"],
                        title=snippet.get("title", ""),
                        thumbnail=thumbnail,
                        published_at=published_at,
                    )
                )

            logger.info("[YouTube] fetched %d videos so far", len(videos))

            page_token = data.get("nextPageToken") or ""
            if found_older or not page_token:
                break

        return videos
