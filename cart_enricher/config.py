# cart_enricher/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Matching parameters
DEFAULT_MIN_CONFIDENCE = os.getenv("MIN_CONFIDENCE", "high")
TITLE_SIMILARITY_THRESHOLD = float(os.getenv("TITLE_SIMILARITY_THRESHOLD", "0.8"))
PRICE_TOLERANCE = 0.1  # 10% to absorb tax, discounts and rounding

# Upstream request limits
MAX_ITEMS_PER_SIDE = 50

# File names
INPUT_JSON = os.getenv("INPUT_JSON", "session.json")
OUTPUT_JSON = os.getenv("OUTPUT_JSON", "enriched_cart.json")
OUTPUT_CSV = os.getenv("OUTPUT_CSV", "enriched_cart.csv")
