from __future__ import annotations

from dataclasses import dataclass

from .errors import SessionError
from .utils import first_some, read_config_file

DEFAULT_LIMIT = 20
DEFAULT_NETWORK = "mainnet"
DEFAULT_ESPLORA_TIMEOUT = 30

# Public esplora instances used if the config has no url for the network.
DEFAULT_ESPLORA_URLS = {
    "mainnet": "https://blockstream.info/api",
    "testnet": "https://blockstream.info/testnet/api",
    "signet": "https://mempool.space/signet/api",
}


def _is_int(value) -> bool:
    # TOML booleans are parsed as bool, which is a subclass of int.
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class LndCredentials:
    node: str | None
    ip_address: str
    cert_filepath: str
    macaroon_filepath: str | None
    network: str
    esplora_url: str
    esplora_timeout: int


class ClosewatchConfig:
    def __init__(self, config_dict: dict):
        self.config_dict = config_dict

        config_closewatch = config_dict.get("closewatch") or {}

        self.limit = config_closewatch.get("limit", DEFAULT_LIMIT)
        if not _is_int(self.limit) or self.limit <= 0:
            raise ValueError(
                f"'closewatch.limit' must be a positive integer; got {self.limit!r}"
            )

        self.log_file: str | None = None
        self.log_level: str | None = None
        if (logging := config_dict.get("logging")) is not None:
            if (logfile := logging.get("logfile")) is not None:
                self.log_file = str(logfile)

            if (loglevel := logging.get("level")) is not None:
                self.log_level = str(loglevel)

        self._esplora: dict = config_dict.get("esplora") or {}

    @classmethod
    def from_config_file(cls, file_name: str) -> ClosewatchConfig:
        return cls(read_config_file(file_name))

    def credentials(self, node: str | None = None) -> LndCredentials:
        """
        Returns the credentials of the given node. The default node is configured
        in the 'lnd' section, named nodes in 'nodes.<name>'.
        """

        if node is None:
            if not (section := self.config_dict.get("lnd")):
                raise SessionError("'lnd' section missing in configuration")
        else:
            nodes = self.config_dict.get("nodes") or {}
            if not (section := nodes.get(node)):
                raise SessionError(f"'nodes.{node}' section missing in configuration")

        name = "lnd" if node is None else f"nodes.{node}"
        for key in ["ip_address", "cert_filepath"]:
            if not section.get(key):
                raise SessionError(f"'{name}.{key}' missing in configuration")

        network = str(section.get("network", DEFAULT_NETWORK))

        return LndCredentials(
            node=node,
            ip_address=str(section["ip_address"]),
            cert_filepath=str(section["cert_filepath"]),
            macaroon_filepath=section.get("macaroon_filepath"),
            network=network,
            esplora_url=self._esplora_url(network, section.get("esplora_url")),
            esplora_timeout=self._esplora_timeout(),
        )

    def _esplora_timeout(self) -> int:
        timeout = self._esplora.get("timeout", DEFAULT_ESPLORA_TIMEOUT)
        if not _is_int(timeout) or timeout <= 0:
            raise SessionError(
                f"'esplora.timeout' must be a positive integer; got {timeout!r}"
            )

        return timeout

    def _esplora_url(self, network: str, node_url: str | None) -> str:
        """
        Looks up the esplora url for the network. A url configured for the node
        wins over the '<network>_url' of the 'esplora' section. The plain 'url'
        is used for mainnet only.
        """

        url = first_some(node_url, self._esplora.get(f"{network}_url"))
        if url is None and network == DEFAULT_NETWORK:
            url = self._esplora.get("url")

        if url is None and (url := DEFAULT_ESPLORA_URLS.get(network)) is None:
            raise SessionError(f"no esplora url configured for network '{network}'")

        return str(url).rstrip("/")
