"""
Project configuration.

sui-config.yaml::

    dotenv: .env
    networks:
      sui-testnet:
        node_url: https://fullnode.testnet.sui.io:443
        timeout: 30
        gas_budget: 100000000
    sui_wallets:
      from_mnemonic:
        Relayer: ${RELAYER}

Wallet values come from the dotenv file: a 0x-prefixed hex private key, a
base64 keystore entry, or a mnemonic.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Union

import yaml
from dotenv import dotenv_values

from .account import Account
from .errors import ValidationError
from .sui_client import SuiClient

logger = logging.getLogger(__name__)

CONFIG_FILE = "sui-config.yaml"
DEFAULT_TIMEOUT = 30
DEFAULT_GAS_BUDGET = 500000000


def _load_account(value: str) -> Account:
    value = value.strip()
    if value[:2] == "0x":
        return Account(private_key=value)
    if " " in value:
        return Account(mnemonic=value)
    return Account.load_key(value)


class SuiConfig:

    def __init__(self,
                 project_path: Union[Path, str] = None,
                 network: str = "sui-testnet"):
        self.project_path = Path(project_path) if project_path is not None else Path.cwd()
        self.network = network
        self.config: dict = {}
        self.network_config: dict = {}
        self.accounts: Dict[str, Account] = {}

    @classmethod
    def load(cls, project_path: Union[Path, str] = None, network: str = "sui-testnet") -> SuiConfig:
        config = cls(project_path, network)
        config.load_config()
        return config

    def load_config(self):
        config_file = self.project_path.joinpath(CONFIG_FILE)
        if not config_file.exists():
            raise ValidationError(f"Project not found {CONFIG_FILE} for {self.project_path.absolute()}")

        with config_file.open() as fp:
            self.config = yaml.safe_load(fp) or {}
        if self.network not in self.config.get("networks", {}):
            raise ValidationError(f"{self.network} not found in {CONFIG_FILE}")
        self.network_config = self.config["networks"][self.network] or {}
        if "node_url" not in self.network_config:
            raise ValidationError(f"node_url not configured for {self.network}")

        env_file = self.config.get("dotenv", ".env")
        env = dotenv_values(self.project_path.joinpath(env_file))
        wallets = (self.config.get("sui_wallets") or {}).get("from_mnemonic") or {}
        for account_name, env_name in wallets.items():
            env_name = env_name.replace("$", "").replace("{", "").replace("}", "")
            if not env.get(env_name):
                raise ValidationError(f"{env_name} env not exist")
            self.accounts[account_name] = _load_account(env[env_name])
        logger.info(f"Loaded {self.network} config with {len(self.accounts)} accounts")

    @property
    def node_url(self) -> str:
        return self.network_config["node_url"]

    @property
    def timeout(self) -> float:
        return self.network_config.get("timeout", DEFAULT_TIMEOUT)

    @property
    def gas_budget(self) -> int:
        return int(self.network_config.get("gas_budget", DEFAULT_GAS_BUDGET))

    def account(self, account_name: str) -> Account:
        if account_name not in self.accounts:
            raise ValidationError(f"{account_name} not found in {list(self.accounts.keys())}")
        return self.accounts[account_name]

    def client(self, **kwargs) -> SuiClient:
        return SuiClient(base_url=self.node_url, timeout=self.timeout, **kwargs)
