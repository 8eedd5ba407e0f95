"""
Remote SPARQL endpoint store.

Speaks the SPARQL 1.1 protocol over httpx: queries and updates are sent as
form-encoded POST bodies, SELECT results are requested as SPARQL JSON and
parsed with rdflib. The client timeout is the only deadline on a request;
retries are left to the caller.
"""

from __future__ import annotations

import io
import logging

import httpx
from rdflib.query import Result

from sparqlmap.errors import StoreError
from sparqlmap.storage.graph_store import GraphStore, SolutionRow, result_rows

LOG = logging.getLogger("storage.endpoint_store")

RESULTS_JSON = "application/sparql-results+json"


class SparqlEndpointStore(GraphStore):
    """
    Store backed by a SPARQL 1.1 query/update endpoint pair.

    Args:
        query_url: Query endpoint (e.g. http://localhost:3030/bikes/query)
        update_url: Update endpoint (defaults to query_url, as Fuseki's dataset URL accepts both)
        timeout: Per-request deadline in seconds
        client: Preconfigured httpx.Client (auth, transport); owned by the caller
    """

    def __init__(
        self,
        query_url: str,
        update_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.query_url = query_url
        self.update_url = update_url or query_url
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._timeout = timeout

    def execute_update(self, update: str) -> None:
        LOG.debug("POST update to %s (%d bytes)", self.update_url, len(update))
        self._post(self.update_url, {"update": update}, accept="*/*")

    def execute_query(self, query: str) -> list[SolutionRow]:
        LOG.debug("POST query to %s", self.query_url)
        response = self._post(self.query_url, {"query": query}, accept=RESULTS_JSON)
        try:
            result = Result.parse(io.BytesIO(response.content), format="json")
        except Exception as exc:
            raise StoreError(f"Malformed query result from {self.query_url}: {exc}") from exc
        return result_rows(result)

    def _post(self, url: str, form: dict[str, str], accept: str) -> httpx.Response:
        try:
            response = self._client.post(url, data=form, headers={"Accept": accept}, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StoreError(
                f"{url} answered {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Request to {url} failed: {exc}") from exc
        return response

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
