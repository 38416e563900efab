import json
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent / "stock_universe.json"

# Every seed quote must carry these keys
REQUIRED_KEYS = [
    "symbol", "name", "price"
]

def load_stock_universe(path=None):
    """Load the seed quotes the price simulator starts from."""
    config_path = Path(path) if path else CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Missing stock universe at {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config = json.load(f)

    stocks = config.get("stocks")
    if not isinstance(stocks, list):
        raise KeyError(f"{config_path.name} must contain a 'stocks' list")

    for entry in stocks:
        missing_keys = [k for k in REQUIRED_KEYS if k not in entry]
        if missing_keys:
            raise KeyError(f"{config_path.name} entry {entry.get('symbol', '?')} is missing required keys: {missing_keys}")

    return stocks

# Optional: quick test
if __name__ == "__main__":
    universe = load_stock_universe()
    print("Stock universe loaded successfully. Symbols:", [s["symbol"] for s in universe])
