"""Feed source that pulls Atom feeds from an HTTP feed service."""

import threading
import time
from urllib.parse import quote

from requests import RequestException, Session
from urllib3.util import parse_url

from pollster.config.settings import (
    FEED_SERVICE_URL,
    HTTP_HEADER_FROM,
    HTTP_HEADER_USER_AGENT,
    HTTP_TIMEOUT_SECONDS,
)
from pollster.models.query import Query
from pollster.sources.atom_document import AtomDocument
from pollster.utils.custom_exceptions.scheduler_exceptions import FeedFetchError
from pollster.utils.logger import logger

HTTP_CLIENT_ERROR = 400
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500


class HttpFeedSource:
    """Fetch `{base_url}/{feedId}?after=..&count=..` and parse the Atom response."""

    def __init__(self, base_url: str = FEED_SERVICE_URL, *, max_retries: int = 3,
        retry_backoff: float = 0.5, timeout: float = HTTP_TIMEOUT_SECONDS) -> None:
        """Initialize the source with the feed service base url."""
        if not parse_url(base_url).host:
            msg = f"Feed service url has no host: {base_url!r}"
            raise ValueError(msg)
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.timeout = timeout
        self.lock = threading.Lock()
        self.session = self.create_session()
        self.session_counter = 0

    def create_session(self) -> Session:
        session = Session()
        session.headers.update({
            "User-Agent": HTTP_HEADER_USER_AGENT,
            "Accept": "application/atom+xml, application/xml;q=0.9",
        })
        if HTTP_HEADER_FROM:
            session.headers["From"] = HTTP_HEADER_FROM
        return session

    def increment_session(self) -> Session:
        """Replace the session every 100 requests and return the one to use."""
        with self.lock:
            self.session_counter += 1
            if self.session_counter % 100 == 0:
                self.session.close()
                self.session = self.create_session()
            return self.session

    def build_request(self, query: Query) -> tuple[str, dict]:
        params = query.to_params()
        feed_id = params.pop("feedId")
        return f"{self.base_url}/{quote(feed_id, safe=':')}", params

    def pull(self, query: Query) -> AtomDocument | None:
        """
        Fetch the feed for query, None if the service has no such feed or rejects the request.

        Server errors and connection failures are retried with a linear backoff.
        """
        session = self.increment_session()
        url, params = self.build_request(query)
        last_exc = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = session.get(url, params=params, timeout=self.timeout)
                if response.status_code == HTTP_NOT_FOUND:
                    logger.info(f"[FEED_SOURCE]: Feed not found: {url} {params}")
                    return None
                if HTTP_CLIENT_ERROR <= response.status_code < HTTP_SERVER_ERROR:
                    logger.warning(
                        f"[FEED_SOURCE]: Feed rejected with {response.status_code}: {url} {params}",
                    )
                    return None
                response.raise_for_status()

            except RequestException as e:
                last_exc = e

                if attempt < self.max_retries:
                    sleep_for = self.retry_backoff * attempt
                    logger.warning(
                        f"[FEED_SOURCE] Failed to fetch {url} "
                        f"(attempt {attempt}/{self.max_retries}): {e} "
                        f"- retrying in {sleep_for:.2f}s",
                    )
                    time.sleep(sleep_for)
                else:
                    message = f"Failed to fetch feed {url} after {self.max_retries} attempts: {e}"
                    logger.error(message)
                    raise FeedFetchError(message) from e
            else:
                return AtomDocument.from_text(response.text)

        msg = f"Unknown error while fetching {url}"
        raise FeedFetchError(msg) from last_exc
