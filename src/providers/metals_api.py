import logging
import os
import sqlite3
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from src.db import TRACKED_METALS, get_all_settings, get_metal_rate_rows, get_metal_rates, is_rate_fresh, upsert_metal_rates
from src.providers.base import METAL_SYMBOLS, MetalRateProvider

logger = logging.getLogger(__name__)


class MetalPriceAPIProvider(MetalRateProvider):
    """
    Provider implementation for metalpriceapi.com.

    With base set to the store currency the endpoint returns ounces of metal per
    currency unit, so each rate is inverted to get currency per troy ounce.
    """

    provider_name = "metalpriceapi"
    endpoint = "https://api.metalpriceapi.com/v1/latest"

    def __init__(
        self,
        currency: str = "INR",
        troy_oz_to_grams: float = 31.1034768,
        api_key: str | None = None,
        timeout_seconds: int = 10,
    ):
        super().__init__(currency, troy_oz_to_grams)
        self.api_key = api_key or os.getenv("METALPRICEAPI_KEY", "")
        self.timeout_seconds = timeout_seconds

    def fetch_latest_per_oz(self, metals: list[str]) -> dict[str, float]:
        if not self.api_key:
            raise RuntimeError("Missing METALPRICEAPI_KEY in .env")

        symbols = {METAL_SYMBOLS[metal]: metal for metal in metals}
        response = requests.get(
            self.endpoint,
            params={
                "api_key": self.api_key,
                "base": self.currency,
                "currencies": ",".join(symbols),
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()

        payload: dict[str, Any] = response.json()
        if payload.get("success") is False:
            raise RuntimeError(payload.get("error", "Provider returned unsuccessful response"))

        rates = payload.get("rates", {})
        result: dict[str, float] = {}
        for symbol, metal in symbols.items():
            rate = rates.get(symbol)
            if rate is None:
                continue
            if float(rate) <= 0:
                raise RuntimeError(f"Invalid {symbol} rate from provider")
            result[metal] = 1 / float(rate)

        return result


class GoldAPIProvider(MetalRateProvider):
    """
    Provider implementation for gold-api.com.

    Requests GET {base}/{symbol}/{currency} and expects a numeric `price` per
    troy ounce. A response quoted in another currency is rejected rather than
    silently mispricing the catalogue.
    """

    provider_name = "goldapi"
    endpoint_base = "https://api.gold-api.com/price"

    def __init__(
        self,
        currency: str = "INR",
        troy_oz_to_grams: float = 31.1034768,
        api_key: str | None = None,
        timeout_seconds: int = 10,
    ):
        super().__init__(currency, troy_oz_to_grams)
        self.api_key = api_key or os.getenv("GOLDAPI_KEY", "")
        self.timeout_seconds = timeout_seconds

        override_base = os.getenv("GOLDAPI_BASE_URL", "").strip()
        candidates = [override_base] if override_base else [self.endpoint_base]
        fallback_raw = os.getenv("GOLDAPI_FALLBACK_BASE_URLS", "").strip()
        if fallback_raw:
            candidates.extend(url.strip() for url in fallback_raw.split(",") if url.strip())

        self.base_urls: list[str] = []
        for base_url in candidates:
            cleaned = base_url.rstrip("/")
            if cleaned and cleaned not in self.base_urls:
                self.base_urls.append(cleaned)

        self.session = requests.Session()
        retry = Retry(
            total=2,
            connect=2,
            read=2,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def _get_payload(self, symbol: str) -> dict[str, Any]:
        headers: dict[str, str] = {}
        if self.api_key:
            headers["x-access-token"] = self.api_key

        last_error: Exception | None = None
        for base_url in self.base_urls:
            try:
                response = self.session.get(
                    f"{base_url}/{symbol}/{self.currency}",
                    headers=headers,
                    timeout=self.timeout_seconds,
                )
                response.raise_for_status()
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                logger.debug("Gold API request to %s failed: %s", base_url, exc)
                last_error = exc

        raise RuntimeError(
            f"Gold API request failed for {symbol} across configured URLs. Last error: {last_error}"
        )

    def fetch_latest_per_oz(self, metals: list[str]) -> dict[str, float]:
        result: dict[str, float] = {}
        for metal in metals:
            symbol = METAL_SYMBOLS[metal]
            payload = self._get_payload(symbol)

            if "price" not in payload:
                raise RuntimeError(f"Missing price field for {symbol} from Gold API")

            currency = str(payload.get("currency", self.currency)).upper()
            if currency != self.currency:
                raise RuntimeError(
                    f"Gold API returned {currency} for {symbol}. Expected {self.currency} pricing."
                )

            price_value = float(payload["price"])
            if price_value <= 0:
                raise RuntimeError(f"Invalid {symbol} price from Gold API")

            result[metal] = price_value

        return result


def build_provider_from_env(currency: str, troy_oz_to_grams: float) -> MetalRateProvider:
    provider_name = os.getenv("PRICE_PROVIDER", "goldapi").strip().lower()
    if provider_name == "metalpriceapi":
        return MetalPriceAPIProvider(currency, troy_oz_to_grams)
    if provider_name == "goldapi":
        return GoldAPIProvider(currency, troy_oz_to_grams)
    raise RuntimeError(
        "Unsupported PRICE_PROVIDER. Use 'goldapi' or 'metalpriceapi'."
    )


def sync_market_rates(
    conn: sqlite3.Connection,
    force_refresh: bool = False,
    provider: MetalRateProvider | None = None,
) -> tuple[dict[str, float | None], str | None]:
    """
    Pulls market rates into the metal_rates table when the stored ones are stale.

    If the provider fails, the stored rates are kept and a warning message is
    returned instead of raising.
    """
    settings = get_all_settings(conn)
    ttl = settings["rate_cache_ttl_minutes"]
    stored = get_metal_rate_rows(conn)

    need_refresh = force_refresh
    for metal in TRACKED_METALS:
        row = stored.get(metal)
        if row is None or not is_rate_fresh(row["updated_at"], ttl):
            need_refresh = True
            break

    warning = None
    if need_refresh:
        try:
            active = provider or build_provider_from_env(settings["currency_code"], settings["troy_oz_to_grams"])
            fresh = active.fetch_latest_per_gram(TRACKED_METALS)
            if fresh:
                upsert_metal_rates(conn, {metal: round(rate, 2) for metal, rate in fresh.items()}, active.provider_name)
        except Exception as exc:
            logger.warning("Market rate sync failed: %s", exc)
            if stored:
                warning = f"Rate provider unavailable. Keeping stored rates. Details: {exc}"
            else:
                warning = f"Rate provider unavailable and no rates stored yet. Details: {exc}"

    return get_metal_rates(conn), warning
