import json
import sys
import time
from loguru import logger

from cart_enricher import enrich_cart
from cart_enricher.config import INPUT_JSON, OUTPUT_JSON, OUTPUT_CSV, LOG_LEVEL
from cart_enricher.exceptions import SessionFormatError, StoreIdMismatchError
from cart_enricher.session_io import load_session, enriched_cart_to_dict, enriched_items_to_frame

EXIT_OK = 0
EXIT_SERVER_ERROR = 1
EXIT_CLIENT_ERROR = 2


def run(input_path: str, output_json: str, output_csv: str) -> int:
    """
    Enrich one recorded session and write the results.

    Args:
        input_path (str): Session JSON with "cart", "products" and optional "options".
        output_json (str): Destination for the enriched cart in its JSON form.
        output_csv (str): Destination for the per-item CSV report.

    Returns:
        int: Process exit code. 2 for bad input (store mismatch, malformed session), 1 for other failures.
    """
    try:
        cart_items, products, options = load_session(input_path)
        logger.info(
            f"Enriching cart: {len(cart_items)} items, {len(products)} products, "
            f"minConfidence={options.min_confidence}"
        )

        start = time.perf_counter()
        enriched = enrich_cart(cart_items, products, options)
        duration_ms = round((time.perf_counter() - start) * 1000, 3)
    except (StoreIdMismatchError, SessionFormatError) as e:
        logger.warning(f"⚠️ Rejected session {input_path}: {e}")
        return EXIT_CLIENT_ERROR
    except Exception:
        logger.exception(f"Failed to enrich cart from {input_path}")
        return EXIT_SERVER_ERROR

    summary = enriched.summary
    logger.info(
        f"Cart enrichment completed: {summary.matched_items}/{summary.total_items} matched "
        f"({summary.match_rate:.1f}%) in {duration_ms}ms"
    )

    with open(output_json, "w", encoding="utf-8") as f:
        json.dump(enriched_cart_to_dict(enriched, duration_ms), f, indent=2)
    enriched_items_to_frame(enriched).to_csv(output_csv, index=False)

    return EXIT_OK


def main():
    """
    Run the enrichment for the session configured in INPUT_JSON.

    - Loads the session document.
    - Matches every cart item against the viewed products.
    - Writes OUTPUT_JSON and OUTPUT_CSV.
    """
    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    sys.exit(run(INPUT_JSON, OUTPUT_JSON, OUTPUT_CSV))


if __name__ == "__main__":
    main()
