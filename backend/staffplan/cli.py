import asyncio
import sys

from pydantic import ValidationError as SchemaValidationError

from staffplan.core.config import settings
from staffplan.core.errors import StaffplanError
from staffplan.core.logging import configure_logging
from staffplan.schemas.recommendations import RecommendationQuery
from staffplan.services.recommendation import RecommendationService
from staffplan.services.record_store import JsonRecordStore
from staffplan.services.traffic_client import TrafficClient
from staffplan.tools.weeks import date_range_of, parse_iso_date, week_label_of

USAGE = (
    "Usage: python -m staffplan.cli week-of YYYY-MM-DD\n"
    "       python -m staffplan.cli week-range 'W19 2025'\n"
    "       python -m staffplan.cli recommend STORE_ID 'W19 2025'"
)


def _recommend(store_id: str, week_label: str) -> str:
    service = RecommendationService(JsonRecordStore(settings.record_store_path), TrafficClient(settings), settings)
    week = asyncio.run(service.recommend_week(RecommendationQuery(store_id=store_id, target_week=week_label)))
    return week.model_dump_json(indent=2)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    command = args[0] if args else None
    configure_logging(settings.log_level)

    try:
        if command == "week-of" and len(args) == 2:
            print(week_label_of(parse_iso_date(args[1])))
            return 0

        if command == "week-range" and len(args) == 2:
            monday, sunday = date_range_of(args[1])
            print(f"{monday.isoformat()} {sunday.isoformat()}")
            return 0

        if command == "recommend" and len(args) == 3:
            print(_recommend(args[1], args[2]))
            return 0
    except (StaffplanError, SchemaValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(USAGE)
    return 2


if __name__ == "__main__":
    sys.exit(main())
