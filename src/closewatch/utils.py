from __future__ import annotations

import os
from typing import TypeVar

import tomli

U = TypeVar("U")


def read_config_file(file_name: str) -> dict:
    config_path = os.path.expanduser(file_name)

    if not os.path.exists(config_path):
        raise FileExistsError(f"Config file '{file_name}' does not exist")

    with open(config_path, "rb") as config_file:
        res = tomli.load(config_file)

    return res


def first_some(value1: U | None, value2: U) -> U:
    """Returns the first value which is not None"""

    return value1 if value1 is not None else value2


def split_outpoint(outpoint: str) -> tuple[str, int]:
    """Splits an outpoint string 'txid:vout' into txid and output index."""

    txid, vout = outpoint.split(":")
    return txid, int(vout)
