from __future__ import annotations

import requests

from closewatch.errors import ChainLookupError
from closewatch.log import getLogger

DEFAULT_TIMEOUT = 30


class EsploraClient:
    """
    Reads transactions from the http api of an esplora instance (electrs,
    blockstream.info, mempool.space).
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._logger = getLogger(self.__module__)

    def _get(self, path: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        self._logger.trace(f"GET {url}")

        try:
            resp = self._session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise ChainLookupError(f"timeout requesting {url}") from e
        except requests.exceptions.HTTPError as e:
            raise ChainLookupError(
                f"http error requesting {url}: {e.response.status_code}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise ChainLookupError(f"error requesting {url}: {e}") from e

        return resp

    def get_transaction(self, txid: str) -> bytes:
        resp = self._get(f"/tx/{txid}/hex")

        try:
            return bytes.fromhex(resp.text.strip())
        except ValueError as e:
            raise ChainLookupError(f"invalid transaction hex for {txid}") from e

    def get_spending_transaction(self, txid: str, vout: int) -> bytes | None:
        resp = self._get(f"/tx/{txid}/outspend/{vout}")

        try:
            outspend = resp.json()
        except ValueError as e:
            raise ChainLookupError(
                f"invalid outspend response for {txid}:{vout}"
            ) from e

        if not isinstance(outspend, dict):
            raise ChainLookupError(f"unexpected outspend response for {txid}:{vout}")

        if not outspend.get("spent"):
            return None

        if not (spend_txid := outspend.get("txid")):
            raise ChainLookupError(f"spend of {txid}:{vout} without txid")

        self._logger.debug(f"{txid}:{vout} spent by {spend_txid}")
        return self.get_transaction(spend_txid)
