"""
Look up one card's Card Kingdom price by Scryfall id.

    python -m ckpricing.jobs.lookup_price <scryfall_id> [--foil | --non-foil]

Prints {"price": <USD cents or null>}.
"""

import argparse
import asyncio
import json
import logging

from ckpricing.services.price_lookup import lookup_price
from ckpricing.services.pricelist_cache import get_pricelist_cache


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Look up a Card Kingdom price")
    parser.add_argument("scryfall_id", help="Scryfall card id")
    variant = parser.add_mutually_exclusive_group()
    variant.add_argument(
        "--foil",
        dest="is_foil",
        action="store_const",
        const=True,
        help="Price the foil variant only",
    )
    variant.add_argument(
        "--non-foil",
        dest="is_foil",
        action="store_const",
        const=False,
        help="Price the non-foil variant only",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    price = asyncio.run(lookup_price(get_pricelist_cache(), args.scryfall_id, args.is_foil))
    print(json.dumps({"price": price}))


if __name__ == "__main__":
    main()
