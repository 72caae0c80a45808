from abc import ABC, abstractmethod

METAL_SYMBOLS: dict[str, str] = {
    "gold": "XAU",
    "silver": "XAG",
}


class MetalRateProvider(ABC):
    provider_name: str

    def __init__(self, currency: str = "INR", troy_oz_to_grams: float = 31.1034768):
        self.currency = currency.upper()
        self.troy_oz_to_grams = troy_oz_to_grams

    @abstractmethod
    def fetch_latest_per_oz(self, metals: list[str]) -> dict[str, float]:
        """Returns {metal: price per troy ounce} in the provider's currency."""
        raise NotImplementedError

    def fetch_latest_per_gram(self, metals: list[str]) -> dict[str, float]:
        per_oz = self.fetch_latest_per_oz(metals)
        return {metal: price / self.troy_oz_to_grams for metal, price in per_oz.items()}
