import json
import os
from pathlib import Path
from typing import Optional, Dict

from solana_node.config import DEFAULT_RPC_URL

CONFIG_DIR = Path.home() / ".solana-node"
CONFIG_FILE = CONFIG_DIR / "config.json"

# The private key is only ever read from the environment, never stored
PRIVATE_KEY_ENV = "SOLANA_PRIVATE_KEY"
RPC_URL_ENV = "SOLANA_RPC_URL"


class ConfigManager:
    def __init__(self):
        self._ensure_config_dir()
        self.config = self._load_config()

    def _ensure_config_dir(self):
        if not CONFIG_DIR.exists():
            CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    def _load_config(self) -> Dict:
        if not CONFIG_FILE.exists():
            return {}
        try:
            with open(CONFIG_FILE, "r") as f:
                return json.load(f)
        except json.JSONDecodeError:
            return {}

    def save_config(self):
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.config, f, indent=2)

    def set_rpc_url(self, url: str):
        self.config["rpc_url"] = url
        self.save_config()

    def get_rpc_url(self) -> str:
        """SOLANA_RPC_URL, then the saved value, then mainnet-beta."""
        return os.getenv(RPC_URL_ENV) or self.config.get("rpc_url", DEFAULT_RPC_URL)

    def set_continue_on_fail(self, enabled: bool):
        self.config["continue_on_fail"] = enabled
        self.save_config()

    def get_continue_on_fail(self) -> bool:
        return bool(self.config.get("continue_on_fail", False))

    def get_private_key(self) -> Optional[str]:
        return os.getenv(PRIVATE_KEY_ENV)

    def get_credentials(self, rpc_url: Optional[str] = None) -> Optional[Dict[str, str]]:
        """The solanaApi credential record, or None when no key is configured."""
        private_key = self.get_private_key()
        if not private_key:
            return None
        return {"privateKey": private_key, "rpcUrl": rpc_url or self.get_rpc_url()}
