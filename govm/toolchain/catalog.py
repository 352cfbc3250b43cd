"""
Remote Go release catalog.

Reads the JSON listing published at https://go.dev/dl/?mode=json&include=all
and answers "which archive (and digest) do I download for version X on this
platform". The catalog is read-only; the installer uses it to validate a
requested version before downloading anything.

Catalog entry format:
    {
        "version": "go1.22.0",
        "stable": true,
        "files": [
            {"filename": "go1.22.0.linux-amd64.tar.gz", "os": "linux",
             "arch": "amd64", "sha256": "f6c8...", "size": 68988925,
             "kind": "archive"},
            ...
        ]
    }
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests

from govm.core import version as versions
from govm.core.config import GovmConfig
from govm.core.download import USER_AGENT, with_retries
from govm.core.exceptions import DownloadError, VersionNotAvailableError
from govm.core.platform import PlatformInfo

logger = logging.getLogger(__name__)


@dataclass
class GoFile:
    """A downloadable file belonging to one Go release."""

    filename: str
    os: str
    arch: str
    sha256: str
    size: int
    kind: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GoFile":
        return cls(
            filename=data["filename"],
            os=data.get("os", ""),
            arch=data.get("arch", ""),
            sha256=data.get("sha256", ""),
            size=int(data.get("size", 0)),
            kind=data.get("kind", ""),
        )


@dataclass
class GoRelease:
    """One Go release as listed in the catalog."""

    version: str
    """Normalized version (``1.22.0``, without the ``go`` prefix)"""

    stable: bool
    files: List[GoFile] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GoRelease":
        return cls(
            version=versions.normalize(data["version"]),
            stable=bool(data.get("stable", False)),
            files=[GoFile.from_dict(f) for f in data.get("files", [])],
        )

    def archive_for(self, platform: PlatformInfo) -> Optional[GoFile]:
        """Binary archive for a platform, if published."""
        for go_file in self.files:
            if (
                go_file.kind == "archive"
                and go_file.os == platform.os
                and go_file.arch == platform.arch
            ):
                return go_file
        return None


class ReleaseCatalog:
    """
    Client for the remote release catalog.

    The listing is fetched lazily and kept for the lifetime of the instance
    (one CLI invocation).

    Example:
        >>> catalog = ReleaseCatalog(config)
        >>> release, archive = catalog.artifact_for("1.22.0", detect_platform())
        >>> catalog.download_url(archive)
        'https://go.dev/dl/go1.22.0.linux-amd64.tar.gz'
    """

    def __init__(
        self,
        config: GovmConfig,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.session = session or requests.Session()
        self._sleep = sleep
        self._releases: Optional[List[GoRelease]] = None

    def fetch(self) -> List[GoRelease]:
        """
        Fetch the release listing, newest first as published.

        Raises:
            DownloadError: If the catalog cannot be fetched or parsed
        """
        if self._releases is not None:
            return self._releases

        url = self.config.catalog_url
        logger.debug(f"Fetching release catalog from {url}")

        def _get():
            response = self.session.get(
                url,
                timeout=self.config.request_timeout,
                headers={"User-Agent": USER_AGENT},
            )
            response.raise_for_status()
            return response.json()

        data = with_retries(
            _get,
            description="Fetching release catalog",
            url=url,
            max_retries=self.config.max_retries,
            sleep=self._sleep,
        )

        try:
            self._releases = [GoRelease.from_dict(entry) for entry in data]
        except (KeyError, TypeError, ValueError) as e:
            raise DownloadError(f"Malformed release catalog from {url}: {e}", url=url) from e

        logger.debug(f"Catalog lists {len(self._releases)} releases")
        return self._releases

    def find(self, version: str) -> Optional[GoRelease]:
        """Release matching a normalized version, if listed."""
        for release in self.fetch():
            if release.version == version:
                return release
        return None

    def artifact_for(self, version: str, platform: PlatformInfo):
        """
        Locate the archive to download for a version.

        Returns:
            Tuple of (GoRelease, GoFile)

        Raises:
            VersionNotAvailableError: If the version or its archive is not listed
        """
        release = self.find(version)
        if release is None:
            raise VersionNotAvailableError(version)

        archive = release.archive_for(platform)
        if archive is None:
            raise VersionNotAvailableError(version, platform.platform_string())

        return release, archive

    def download_url(self, go_file: GoFile) -> str:
        base = self.config.download_base
        if not base.endswith("/"):
            base += "/"
        return f"{base}{go_file.filename}"
