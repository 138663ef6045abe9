"""Playlist resolver for turning a station address into a playback plan.

Handles HLS master and media manifests, single-redirect ``.m3u`` lists and
direct continuous streams.
"""

import logging
from typing import Optional, Set, Tuple
from urllib.parse import urljoin, urlparse

import httpx
import m3u8

from .config import USER_AGENT
from .errors import NotAPlaylist, PlaylistEmpty, PlaylistParseError, TransportFailure
from .models import ContinuousPlan, PlaybackPlan, SegmentedPlan

logger = logging.getLogger(__name__)

HLS_SUFFIX = ".m3u8"
REDIRECT_SUFFIX = ".m3u"

# Manifests are small; anything larger is a stream served under a playlist name.
MAX_PLAYLIST_BYTES = 1024 * 1024


def address_kind(address: str) -> str:
    """Classify an address as ``hls``, ``redirect`` or ``direct`` by its path suffix."""
    path = urlparse(address).path.lower()
    if path.endswith(HLS_SUFFIX):
        return "hls"
    if path.endswith(REDIRECT_SUFFIX):
        return "redirect"
    return "direct"


def is_manifest_address(address: str) -> bool:
    """Whether the address must be re-resolved every iteration."""
    return address_kind(address) != "direct"


class PlaylistResolver:
    """Resolves station addresses to playback plans.

    Every call fetches manifests afresh; leaf URIs are never cached because HLS
    media playlists rotate their segments.
    """

    def __init__(
        self,
        interval: float,
        request_timeout: float = 30.0,
        max_depth: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize playlist resolver.

        Args:
            interval: Configured capture interval used for continuous plans.
            request_timeout: Per-request timeout in seconds.
            max_depth: Maximum number of manifests followed for one address.
            transport: Optional httpx transport, mainly for tests.
        """
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.interval = interval
        self.request_timeout = request_timeout
        self.max_depth = max_depth
        self._transport = transport

    async def resolve(self, address: str) -> PlaybackPlan:
        """Resolve an address into a playback plan.

        Args:
            address: Station address as configured.

        Returns:
            PlaybackPlan: Segmented plan for HLS, continuous plan otherwise.

        Raises:
            PlaylistParseError: Manifest is malformed or the chain is invalid.
            PlaylistEmpty: Manifest or list has no entries.
            NotAPlaylist: Body is not a playlist.
            TransportFailure: Fetching a manifest failed.
        """
        if address_kind(address) == "direct":
            return ContinuousPlan(stream_uri=address, interval=self.interval)

        async with httpx.AsyncClient(
            timeout=self.request_timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        ) as client:
            plan = await self._resolve_address(client, address, depth=0, seen=set())

        logger.info(f"Resolved {address} -> {plan}")
        return plan

    async def _resolve_address(
        self,
        client: httpx.AsyncClient,
        url: str,
        depth: int,
        seen: Set[str],
        kind: Optional[str] = None,
    ) -> PlaybackPlan:
        if depth >= self.max_depth:
            raise PlaylistParseError(f"Playlist chain deeper than {self.max_depth} at {url}")
        if url in seen:
            raise PlaylistParseError(f"Playlist chain loops back to {url}")
        seen.add(url)

        kind = kind or address_kind(url)
        if kind == "direct":
            return ContinuousPlan(stream_uri=url, interval=self.interval)

        body, final_url = await self._fetch(client, url)

        if kind == "redirect":
            target = self._first_redirect_entry(body, final_url)
            logger.debug(f"Redirect list {url} points to {target}")
            return await self._resolve_address(client, target, depth + 1, seen)

        playlist = self._parse_manifest(body, final_url)

        if playlist.is_variant:
            variants = [p for p in playlist.playlists if p.uri]
            if not variants:
                raise PlaylistEmpty(f"Master playlist has no variants: {url}")
            variant_url = urljoin(final_url, variants[0].uri)
            logger.debug(f"Master playlist {url} -> variant {variant_url}")
            # Variant URIs are manifests whatever their suffix.
            return await self._resolve_address(
                client, variant_url, depth + 1, seen, kind="hls"
            )

        return self._segment_plan(playlist, final_url)

    def _segment_plan(self, playlist: m3u8.M3U8, base_url: str) -> SegmentedPlan:
        segments = [s for s in playlist.segments if s.uri]
        if not segments:
            raise PlaylistEmpty(f"Media playlist has no segments: {base_url}")

        first = segments[0]
        if first.duration is None or first.duration <= 0:
            raise PlaylistParseError(
                f"Invalid segment duration {first.duration!r} in {base_url}"
            )

        return SegmentedPlan(
            leaf_uri=urljoin(base_url, first.uri),
            segment_duration=float(first.duration),
        )

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> Tuple[bytes, str]:
        """Fetch a playlist body, refusing anything larger than a manifest."""
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > MAX_PLAYLIST_BYTES:
                        raise NotAPlaylist(
                            f"Body of {url} exceeds {MAX_PLAYLIST_BYTES} bytes"
                        )
                return bytes(body), str(response.url)
        except httpx.HTTPStatusError as e:
            raise TransportFailure(
                f"Playlist request failed: HTTP {e.response.status_code} for {url}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Playlist request failed for {url}: {e}") from e

    def _decode(self, body: bytes, url: str) -> str:
        if b"\x00" in body[:1024]:
            raise NotAPlaylist(f"Binary body at {url}")
        try:
            return body.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise NotAPlaylist(f"Body at {url} is not text") from e

    def _parse_manifest(self, body: bytes, url: str) -> m3u8.M3U8:
        text = self._decode(body, url)
        if not text.lstrip().startswith("#EXTM3U"):
            raise NotAPlaylist(f"Missing #EXTM3U header at {url}")
        try:
            return m3u8.loads(text, uri=url)
        except Exception as e:
            raise PlaylistParseError(f"Malformed manifest at {url}: {e}") from e

    def _first_redirect_entry(self, body: bytes, url: str) -> str:
        text = self._decode(body, url)
        for line in text.splitlines():
            entry = line.strip()
            if not entry or entry.startswith("#"):
                continue
            target = urljoin(url, entry)
            if urlparse(target).scheme not in ("http", "https"):
                raise PlaylistParseError(f"Unsupported redirect target {entry!r} in {url}")
            return target
        raise PlaylistEmpty(f"Redirect list has no entries: {url}")
