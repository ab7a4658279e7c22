"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/repository.py
HTTP client for the remote signature repository.

Wire protocol: GET <root_uri><HEXDIGEST>, expecting a JSON array of flat objects.
Single attempt per request; retries are out of scope.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from filesig.core.config import SignatureConfig
from filesig.core.errors import RepositoryRequestError
from filesig.core.interfaces import RepositoryLookup

logger = logging.getLogger(__name__)


class RepositoryClient(RepositoryLookup):
    """
    Looks up digests against a repository endpoint.
    A requests.Session may be injected (connection reuse, testing).
    """

    def __init__(
            self,
            root_uri: str = SignatureConfig.DEFAULT_REPOSITORY_URI,
            session: Optional[requests.Session] = None,
            timeout: float = SignatureConfig.REQUEST_TIMEOUT
    ):
        self.root_uri = root_uri
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_url(self, digest: str) -> str:
        return f"{self.root_uri}{digest}"

    def lookup(self, digest: str) -> List[Dict[str, Any]]:
        """
        Query one digest. Returns the match objects of a 200 response.

        Raises:
            RepositoryRequestError: Transport error, non-200 status, or a body that is
                                    not a JSON array.
        """
        url = self.build_url(digest)
        try:
            response = self.session.get(url, timeout=self.timeout, headers={"Accept": "application/json"})
        except requests.RequestException as e:
            raise RepositoryRequestError(url, str(e)) from e

        if response.status_code != 200:
            raise RepositoryRequestError(url, f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise RepositoryRequestError(url, f"invalid JSON body: {e}", status_code=200) from e

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RepositoryRequestError(
                url, f"expected a JSON array, got {type(payload).__name__}", status_code=200)

        matches = []
        for item in payload:
            if isinstance(item, dict):
                matches.append(item)
            else:
                logger.warning(f"Ignoring non-object repository entry from {url}: {item!r}")

        logger.debug(f"{url} returned {len(matches)} match(es)")
        return matches

    def close(self) -> None:
        self.session.close()
