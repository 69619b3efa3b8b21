"""SenseEase command line.

Runs the two core computations over JSON files.

Usage:
    senseease price-cart cart.json                 # {"lines": [...], "coupons": [...]}
    senseease score-stress events.json [--now ISO] # [{"type": ..., "timestamp": ...}, ...]
"""

import argparse
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

from protean.exceptions import ValidationError
from pydantic import ValidationError as PydanticValidationError

from analytics.stress.log import InteractionEvent
from analytics.stress.scoring import score_stress
from ordering.cart.exceptions import DuplicateCoupon
from ordering.cart.pricing import compute_totals, make_coupon, price_line
from shared.logging import configure_logging, get_logger

logger = get_logger(__name__)


def price_cart(path: Path) -> dict:
    """Price a cart described by a JSON file and return its totals."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValidationError({"cart": ["Expected a JSON object with lines and coupons"]})

    lines = [
        price_line(
            product_id=line["product_id"],
            quantity=line.get("quantity", 1),
            unit_price=line["unit_price"],
            variant_modifiers=line.get("variant_modifiers", []),
        )
        for line in data.get("lines", [])
    ]

    coupons = {}
    for coupon in data.get("coupons", []):
        if coupon["code"] in coupons:
            raise DuplicateCoupon(coupon["code"])
        coupons[coupon["code"]] = make_coupon(coupon["code"], coupon["amount"], coupon.get("kind", "percentage"))

    totals = compute_totals(lines, coupons.values())
    logger.debug("Cart priced", path=str(path), lines=len(lines), coupons=len(coupons))
    return totals.model_dump(mode="json")


def score_stress_file(path: Path, now: datetime | None = None) -> dict:
    """Score the stress events in a JSON file, as of ``now`` (default: current time)."""
    data = json.loads(path.read_text(encoding="utf-8"))
    events = [InteractionEvent.model_validate(item) for item in data]

    state = score_stress(events, now or datetime.now(UTC))
    logger.debug("Stress scored", path=str(path), events=len(events), score=state.score)
    return state.model_dump(mode="json")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="senseease", description="SenseEase cart pricing and stress scoring")
    parser.add_argument("--log-level", default=None, help="Override the environment's log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    price_parser = subparsers.add_parser("price-cart", help="Compute cart totals from a JSON cart")
    price_parser.add_argument("file", type=Path)

    stress_parser = subparsers.add_parser("score-stress", help="Score a JSON list of stress events")
    stress_parser.add_argument("file", type=Path)
    stress_parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Evaluation time as an ISO 8601 timestamp (default: now)",
    )

    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, stream=sys.stderr)

    try:
        if args.command == "price-cart":
            result = price_cart(args.file)
        elif args.command == "score-stress":
            result = score_stress_file(args.file, args.now)
        else:
            parser.print_help()
            return 1
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: cannot read {args.file}: {exc}", file=sys.stderr)
        return 1
    except (KeyError, PydanticValidationError) as exc:
        print(f"error: invalid input in {args.file}: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"error: invalid input in {args.file}: {exc.messages}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
