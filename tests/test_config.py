from __future__ import annotations

import os
import tempfile
import unittest

from closewatch.config import DEFAULT_ESPLORA_URLS, ClosewatchConfig, LndCredentials
from closewatch.errors import SessionError
from closewatch.utils import first_some, split_outpoint

CONFIG_TOML = b"""
[closewatch]
limit = 5

[lnd]
ip_address = "127.0.0.1:10009"
cert_filepath = "~/.lnd/tls.cert"
macaroon_filepath = "~/.lnd/readonly.macaroon"

[nodes.bob]
ip_address = "10.0.0.2:10009"
cert_filepath = "/bob/tls.cert"
network = "testnet"

[esplora]
url = "http://127.0.0.1:3002/"
timeout = 10

[logging]
logfile = "/tmp/closewatch.log"
level = "debug"
"""


class TestClosewatchConfig(unittest.TestCase):

    def setUp(self):
        self.config_dict = {
            "lnd": {
                "ip_address": "127.0.0.1:10009",
                "cert_filepath": "~/.lnd/tls.cert",
                "macaroon_filepath": "~/.lnd/readonly.macaroon",
            },
            "nodes": {
                "bob": {
                    "ip_address": "10.0.0.2:10009",
                    "cert_filepath": "/bob/tls.cert",
                    "network": "testnet",
                },
            },
        }

    def test_from_config_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            file_name = os.path.join(tmpdir, "closewatch.toml")
            with open(file_name, "wb") as f:
                f.write(CONFIG_TOML)

            config = ClosewatchConfig.from_config_file(file_name)

        self.assertEqual(config.limit, 5)
        self.assertEqual(config.log_file, "/tmp/closewatch.log")
        self.assertEqual(config.log_level, "debug")
        self.assertEqual(
            config.credentials(),
            LndCredentials(
                node=None,
                ip_address="127.0.0.1:10009",
                cert_filepath="~/.lnd/tls.cert",
                macaroon_filepath="~/.lnd/readonly.macaroon",
                network="mainnet",
                esplora_url="http://127.0.0.1:3002",
                esplora_timeout=10,
            ),
        )

    def test_missing_config_file(self):
        with self.assertRaises(FileExistsError):
            ClosewatchConfig.from_config_file("/nonexistent/closewatch.toml")

    def test_defaults(self):
        config = ClosewatchConfig(self.config_dict)

        self.assertEqual(config.limit, 20)
        self.assertIsNone(config.log_file)
        self.assertIsNone(config.log_level)

        creds = config.credentials()
        self.assertEqual(creds.network, "mainnet")
        self.assertEqual(creds.esplora_url, DEFAULT_ESPLORA_URLS["mainnet"])
        self.assertEqual(creds.esplora_timeout, 30)

    def test_invalid_limit(self):
        for limit in [0, -3, True, 2.7, "5"]:
            with self.subTest(limit=limit):
                with self.assertRaises(ValueError):
                    ClosewatchConfig({"closewatch": {"limit": limit}})

    def test_invalid_esplora_timeout(self):
        for timeout in ["30", 2.5, False, 0]:
            with self.subTest(timeout=timeout):
                self.config_dict["esplora"] = {"timeout": timeout}
                config = ClosewatchConfig(self.config_dict)

                with self.assertRaises(SessionError):
                    config.credentials()

    def test_named_node(self):
        creds = ClosewatchConfig(self.config_dict).credentials("bob")

        self.assertEqual(creds.node, "bob")
        self.assertEqual(creds.ip_address, "10.0.0.2:10009")
        self.assertIsNone(creds.macaroon_filepath)
        self.assertEqual(creds.network, "testnet")
        self.assertEqual(creds.esplora_url, DEFAULT_ESPLORA_URLS["testnet"])

    def test_missing_sections(self):
        with self.assertRaises(SessionError):
            ClosewatchConfig({}).credentials()

        with self.assertRaises(SessionError):
            ClosewatchConfig(self.config_dict).credentials("carol")

    def test_missing_keys(self):
        for key in ["ip_address", "cert_filepath"]:
            with self.subTest(key=key):
                del_key = dict(self.config_dict["lnd"])
                del del_key[key]

                with self.assertRaises(SessionError) as cm:
                    ClosewatchConfig({"lnd": del_key}).credentials()

                self.assertIn(key, str(cm.exception))

    def test_esplora_url(self):
        self.config_dict["esplora"] = {
            "url": "http://mainnet:3002",
            "testnet_url": "http://testnet:3002/",
        }
        self.config_dict["nodes"]["carol"] = {
            "ip_address": "10.0.0.3:10009",
            "cert_filepath": "/carol/tls.cert",
            "network": "testnet",
            "esplora_url": "http://carol:3002",
        }
        config = ClosewatchConfig(self.config_dict)

        self.assertEqual(config.credentials().esplora_url, "http://mainnet:3002")
        self.assertEqual(config.credentials("bob").esplora_url, "http://testnet:3002")
        self.assertEqual(config.credentials("carol").esplora_url, "http://carol:3002")

    def test_unknown_network(self):
        self.config_dict["nodes"]["bob"]["network"] = "regtest"
        config = ClosewatchConfig(self.config_dict)

        with self.assertRaises(SessionError):
            config.credentials("bob")

        config = ClosewatchConfig(
            self.config_dict | {"esplora": {"regtest_url": "http://regtest:3002"}}
        )
        self.assertEqual(config.credentials("bob").esplora_url, "http://regtest:3002")


class TestUtils(unittest.TestCase):

    def test_first_some(self):
        self.assertEqual(first_some(None, 3), 3)
        self.assertEqual(first_some(0, 3), 0)

    def test_split_outpoint(self):
        self.assertEqual(split_outpoint("ab" * 32 + ":1"), ("ab" * 32, 1))


if __name__ == "__main__":
    unittest.main()
