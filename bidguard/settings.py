from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
import tomllib
import os
import random

from bidguard.core import Credentials


class PollingCfg(BaseModel):
    interval_seconds: int = 60
    jitter_seconds: int = 0


class NetworkCfg(BaseModel):
    timeout_seconds: float = 30
    rotate_user_agents: bool = True


class TradingCfg(BaseModel):
    endpoint: str = "https://api.ebay.com/ws/api.dll"
    namespace: str = "urn:ebay:apis:eBLBaseComponents"
    compatibility_level: str = "859"
    site_id: str = "77"


class ConsoleCfg(BaseModel):
    base_url: str = "https://offer.ebay.de/ws/eBayISAPI.dll"
    signin_url: str = "https://www.ebay.de/signin/s"
    signin_pattern: str = r"^https://signin\.ebay\.de/ws/eBayISAPI\.dll"
    cancel_reason: str = "Artikelbeschreibung nicht gelesen oder nicht verstanden"


class EvaluationCfg(BaseModel):
    lookback_months: int = Field(default=1, ge=0)


class Settings(BaseModel):
    polling: PollingCfg = PollingCfg()
    network: NetworkCfg = NetworkCfg()
    trading: TradingCfg = TradingCfg()
    console: ConsoleCfg = ConsoleCfg()
    evaluation: EvaluationCfg = EvaluationCfg()
    credentials_file: str = "credentials.toml"
    whitelist_file: str = "whitelist.txt"
    database_url: str = "sqlite:///bidguard.sqlite"

    # ---- helpers -----------------------------------------------------
    _UA_POOL = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    ]

    def browser_headers(self) -> dict[str, str]:
        ua = random.choice(self._UA_POOL) if self.network.rotate_user_agents else self._UA_POOL[0]
        return {
            "User-Agent": ua,
            "Accept-Language": "de-DE,de;q=0.9,en;q=0.8",
        }


class CredentialsFile(BaseModel):
    token: str
    userid: str
    password: str = Field(alias="pass")


def load_settings(path: Optional[Path] = None) -> Settings:
    cfg_path = path or Path(os.getenv("BIDGUARD_CONFIG", "bidguard.toml"))
    raw = tomllib.loads(cfg_path.read_text()) if cfg_path.exists() else {}
    return Settings.model_validate(raw)


def load_credentials(settings: Settings) -> Credentials:
    """Read the token and console login once; they never change afterwards."""
    raw = tomllib.loads(Path(settings.credentials_file).read_text())
    cfg = CredentialsFile.model_validate(raw)
    return Credentials(token=cfg.token, userid=cfg.userid, password=cfg.password)
