# certfactory_core/config.py

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os

from .annotations import ANNOTATION_KEY_LIMIT, check_key_limit
from .crypto import CERT_VALIDITY_DAYS, generate_ca, load_ca
from .factory import TLS, FilterFunc
from .logger import add_log_file, get_logger

log = get_logger("config")


@dataclass
class TLSConfig:
    cn: str = "certfactory"
    organization: List[str] = field(default_factory=lambda: ["certfactory"])
    expiration_days_check: int = 90
    cert_validity_days: int = CERT_VALIDITY_DAYS
    annotation_key_limit: int = ANNOTATION_KEY_LIMIT
    ca_cert_path: Optional[str] = None
    ca_key_path: Optional[str] = None
    log_file: Optional[str] = None


def _int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _setting(config: dict, key: str, env: str, default):
    # an explicit key wins even when its value is empty
    if key in config:
        return config[key]
    return os.getenv(env, default)


def load_tls_config(config: dict | None = None) -> TLSConfig:
    """
    Resolve factory settings.

    Precedence: explicit `config` keys, then CERTFACTORY_* environment
    variables, then TLSConfig defaults.
    """
    config = config or {}
    defaults = TLSConfig()

    if "organization" in config:
        org = list(config["organization"] or [])
    else:
        env_org = os.getenv("CERTFACTORY_ORGANIZATION")
        org = [o.strip() for o in env_org.split(",") if o.strip()] if env_org else defaults.organization

    def number(key: str, env: str) -> int:
        return _int(_setting(config, key, env, getattr(defaults, key)), key)

    return TLSConfig(
        cn=_setting(config, "cn", "CERTFACTORY_CN", defaults.cn),
        organization=org,
        expiration_days_check=number("expiration_days_check", "CERTFACTORY_EXPIRATION_DAYS_CHECK"),
        cert_validity_days=number("cert_validity_days", "CERTFACTORY_CERT_VALIDITY_DAYS"),
        annotation_key_limit=check_key_limit(
            number("annotation_key_limit", "CERTFACTORY_ANNOTATION_KEY_LIMIT")
        ),
        ca_cert_path=_setting(config, "ca_cert_path", "CERTFACTORY_CA_CERT", None) or None,
        ca_key_path=_setting(config, "ca_key_path", "CERTFACTORY_CA_KEY", None) or None,
        log_file=_setting(config, "log_file", "CERTFACTORY_LOG_FILE", None) or None,
    )


def tls_factory(config: dict | TLSConfig | None = None, filter_cn: Optional[FilterFunc] = None) -> TLS:
    """
    Build a TLS factory from configuration.

    The CA is read from PEM files when both paths are set. Otherwise a
    throwaway CA is generated in memory; certificates it signs will not
    survive a restart.
    """
    cfg = config if isinstance(config, TLSConfig) else load_tls_config(config)

    if cfg.log_file:
        add_log_file(cfg.log_file)

    if cfg.ca_cert_path and cfg.ca_key_path:
        ca_certs, ca_key = load_ca(Path(cfg.ca_cert_path).read_bytes(), Path(cfg.ca_key_path).read_bytes())
        log.info(f"[CA] loaded {len(ca_certs)} CA certificate(s) from {cfg.ca_cert_path}")
    else:
        ca_cert, ca_key = generate_ca()
        ca_certs = [ca_cert]
        log.warning("[CA] no CA configured, generated an in-memory CA")

    return TLS(
        ca_certs=ca_certs,
        ca_key=ca_key,
        cn=cfg.cn,
        organization=cfg.organization,
        filter_cn=filter_cn,
        expiration_days_check=cfg.expiration_days_check,
        cert_validity_days=cfg.cert_validity_days,
        annotation_key_limit=cfg.annotation_key_limit,
    )
